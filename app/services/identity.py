"""Phone-number login and identity refresh."""

import logging
import re
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.errors import NotFoundError, ValidationError
from app.domain.schemas import Identity, StampCard
from app.repositories.customer import CustomerRepository

logger = logging.getLogger(__name__)


def guest_identity(phone_number: str) -> Identity:
    """Synthesize an unregistered identity: no id, nickname from the last 4 digits."""
    return Identity(
        id=None,
        phone_number=phone_number,
        nickname=phone_number[-4:],
        is_guest=True,
    )


def stamp_card(identity: Identity, target: int) -> StampCard:
    """Progress towards the next stamp reward."""
    stamps = max(0, min(identity.current_stamps, target))
    return StampCard(
        stamps=stamps,
        target=target,
        remaining=target - stamps,
        reward_ready=stamps >= target,
    )


class IdentityResolver:
    """Maps a phone number to a customer identity."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._pattern = re.compile(self.settings.phone_pattern, re.ASCII)

    def validate_phone(self, phone_number: str) -> str:
        phone_number = (phone_number or "").strip()
        if not self._pattern.match(phone_number):
            raise ValidationError("Phone number must look like 010-1234-5678")
        return phone_number

    def resolve(self, phone_number: str) -> Identity:
        """Look up a customer by phone number.

        Unregistered numbers get a guest identity unless guest login is
        disabled, in which case NotFoundError is raised.

        Raises:
            ValidationError: malformed phone number (before any remote call).
            NotFoundError: unregistered number and guest login disabled.
            StorageError: the lookup failed.
        """
        phone_number = self.validate_phone(phone_number)

        row = CustomerRepository.get_by_phone(phone_number)
        if row:
            logger.info(f"Resolved customer {row['id']} by phone")
            return Identity(**row)

        if not self.settings.allow_guest_login:
            raise NotFoundError("This phone number is not registered")

        logger.info(f"Phone ending {phone_number[-4:]} not registered, using guest identity")
        return guest_identity(phone_number)

    def refresh(self, customer_id: str) -> Identity:
        """Re-read a registered customer's row."""
        row = CustomerRepository.get_by_id(customer_id)
        if not row:
            raise NotFoundError(f"Customer {customer_id} not found")
        return Identity(**row)

    def stamp_card(self, identity: Identity) -> StampCard:
        return stamp_card(identity, self.settings.stamp_target)


def create_identity_resolver() -> IdentityResolver:
    """Factory function to create an IdentityResolver with settings."""
    return IdentityResolver(get_settings())
