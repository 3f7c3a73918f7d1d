"""
Doppler secrets loader for production deployment.

Fetches the record store credentials and the admin redemption secret from
Doppler when DOPPLER_TOKEN is set. Runs before Settings is instantiated.
"""

import logging
import os

import requests

logger = logging.getLogger(__name__)

DOPPLER_API_URL = "https://api.doppler.com/v3/configs/config/secrets/download"

SECRET_KEYS = (
    "SUPABASE_URL",
    "SUPABASE_SECRET_KEY",
    "ADMIN_REDEMPTION_SECRET",
    "ALLOW_GUEST_LOGIN",
    "STAMP_TARGET",
    "ENVIRONMENT",
)


def load_doppler_secrets() -> bool:
    """
    Copy known secrets from Doppler into environment variables.

    Variables already present in the environment win over Doppler values.

    Returns:
        True if secrets were loaded, False if DOPPLER_TOKEN not set or the download failed.
    """
    token = os.getenv("DOPPLER_TOKEN")
    if not token:
        return False

    try:
        response = requests.get(
            DOPPLER_API_URL,
            params={"format": "json"},
            auth=(token, ""),  # Service token as username, empty password
            timeout=30,
        )
        response.raise_for_status()
        secrets = response.json()
    except requests.RequestException as e:
        logger.warning(f"Failed to load Doppler secrets: {e}")
        return False

    loaded = 0
    for key in SECRET_KEYS:
        if key in secrets and key not in os.environ:
            os.environ[key] = str(secrets[key])
            loaded += 1

    logger.info(f"Loaded {loaded} secrets from Doppler")
    return True


if __name__ == "__main__":
    load_doppler_secrets()
