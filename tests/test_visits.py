import pytest

from app.core.errors import NotFoundError, ValidationError, StorageError


@pytest.fixture
def visits(fake_db, customer):
    fake_db.seed(
        "visit_history",
        {"id": "v-old", "customer_id": "cust-1", "visit_date": "2024-01-05T10:00:00+00:00",
         "selected_card": "The Sun", "card_review": "Lovely", "stamps_earned": 1},
        {"id": "v-new", "customer_id": "cust-1", "visit_date": "2024-03-01T10:00:00+00:00",
         "selected_card": None, "card_review": None, "stamps_earned": 1},
        {"id": "v-other", "customer_id": "cust-2", "visit_date": "2024-02-01T10:00:00+00:00"},
    )
    return fake_db


def test_list_visits_newest_first(visits, ledger):
    result = ledger.list_visits("cust-1")
    assert [v.id for v in result] == ["v-new", "v-old"]


def test_list_visits_empty_and_guest(fake_db, ledger):
    assert ledger.list_visits("nobody") == []
    calls = len(fake_db.calls)
    assert ledger.list_visits(None) == []
    assert len(fake_db.calls) == calls


def test_attach_card_rejects_101_characters_without_writing(visits, ledger):
    with pytest.raises(ValidationError):
        ledger.attach_card("v-new", "The Moon", "x" * 101)

    row = next(r for r in visits.rows("visit_history") if r["id"] == "v-new")
    assert row["selected_card"] is None
    assert row["card_review"] is None
    assert ("visit_history", "update") not in visits.calls


def test_attach_card_with_100_characters_is_stored_exactly(visits, ledger):
    review = "가" * 50 + "b" * 50
    visit = ledger.attach_card("v-new", "The Moon", review)

    assert visit.selected_card == "The Moon"
    assert visit.card_review == review
    assert len(visits.rows("visit_history")) == 3
    assert ("visit_history", "insert") not in visits.calls


def test_attach_card_last_write_wins(visits, ledger):
    ledger.attach_card("v-new", "The Moon", "first")
    visit = ledger.attach_card("v-new", "The Star")

    assert visit.selected_card == "The Star"
    assert visit.card_review is None


def test_attach_unknown_card(visits, ledger):
    with pytest.raises(ValidationError):
        ledger.attach_card("v-new", "The Tower")


def test_attach_card_to_missing_visit_never_inserts(visits, ledger):
    with pytest.raises(NotFoundError):
        ledger.attach_card("v-missing", "The Sun")
    assert len(visits.rows("visit_history")) == 3


def test_edit_review_independent_of_card(visits, ledger):
    visit = ledger.edit_review("v-new", "Great tea")
    assert visit.card_review == "Great tea"
    assert visit.selected_card is None

    with pytest.raises(ValidationError):
        ledger.edit_review("v-old", "y" * 101)


def test_edit_review_empty_clears(visits, ledger):
    assert ledger.edit_review("v-old", "").card_review is None


def test_delete_visit_leaves_counters(visits, ledger):
    before = dict(visits.rows("customers")[0])
    ledger.delete_visit("v-old")

    assert [v.id for v in ledger.list_visits("cust-1")] == ["v-new"]
    assert visits.rows("customers")[0] == before
    assert ("customers", "update") not in visits.calls


def test_storage_failure_surfaces(visits, ledger):
    visits.fail("visit_history", "update")
    with pytest.raises(StorageError) as exc_info:
        ledger.attach_card("v-new", "The Sun")
    assert exc_info.value.cause is not None
