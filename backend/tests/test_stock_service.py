"""
Stock ledger service tests.

Verifies:
- closing_stock = opening + received - redeemed on every write
- previous closing / current stock lookups by date
- duplicate (grade, location, date) rows are rejected
- negative quantities, unknown grades and unknown locations are rejected
- explicit closing overrides are flagged
"""

import pytest

from bookvoucher.services import stock_service
from bookvoucher.validation import ConflictError, NotFoundError, ValidationError

from conftest import TEST_GRADES

LOCATION = "Hithadhoo Outlet"


def record(**overrides):
    kwargs = {
        "grade": "5",
        "location": LOCATION,
        "date": "2024-01-05",
        "opening": 50,
        "received": 10,
        "redeemed": 5,
        "grades": TEST_GRADES,
    }
    kwargs.update(overrides)
    return stock_service.record_movement(**kwargs)


class TestRecordMovement:
    def test_closing_is_computed(self, outlet):
        entry = record()
        assert entry.closing_stock == 55
        assert entry.closing_overridden is False

    def test_voucher_id_defaults_from_grade(self, outlet):
        entry = record()
        assert entry.voucher_id == "VCH-5"

    def test_explicit_voucher_id_kept(self, outlet):
        entry = record(voucher_id="BATCH-2024-5")
        assert entry.voucher_id == "BATCH-2024-5"

    def test_received_and_redeemed_default_to_zero(self, outlet):
        entry = record(received=None, redeemed=None)
        assert entry.received == 0
        assert entry.redeemed == 0
        assert entry.closing_stock == 50

    def test_matching_client_closing_accepted(self, outlet):
        entry = record(closing=55)
        assert entry.closing_stock == 55

    def test_mismatched_client_closing_rejected(self, outlet):
        with pytest.raises(ValidationError):
            record(closing=60)

    def test_date_is_normalized(self, outlet):
        entry = record(date="2024-01-05T09:30:00")
        assert entry.date == "2024-01-05"

    @pytest.mark.parametrize("field", ["opening", "received", "redeemed"])
    def test_negative_quantities_rejected(self, outlet, field):
        with pytest.raises(ValidationError):
            record(**{field: -1})

    def test_missing_opening_rejected(self, outlet):
        with pytest.raises(ValidationError):
            record(opening=None)

    def test_unknown_grade_rejected(self, outlet):
        with pytest.raises(NotFoundError):
            record(grade="13")

    def test_unknown_location_rejected(self, outlet):
        with pytest.raises(NotFoundError):
            record(location="Nowhere Outlet")

    def test_inactive_outlet_rejected(self, db_session, outlet):
        outlet.active = False
        db_session.commit()
        with pytest.raises(NotFoundError):
            record()

    def test_duplicate_key_rejected(self, outlet):
        record()
        with pytest.raises(ConflictError):
            record(opening=70)

    def test_same_day_other_grade_allowed(self, outlet):
        record()
        entry = record(grade="1", opening=20, received=0, redeemed=0)
        assert entry.closing_stock == 20


class TestLookups:
    def test_previous_closing_uses_latest_earlier_day(self, outlet):
        record(date="2024-01-03", opening=30, received=0, redeemed=0)
        record(date="2024-01-05")
        assert stock_service.previous_closing("5", LOCATION, "2024-01-06") == 55
        assert stock_service.previous_closing("5", LOCATION, "2024-01-05") == 30

    def test_previous_closing_defaults_to_zero(self, outlet):
        assert stock_service.previous_closing("5", LOCATION, "2024-01-05") == 0

    def test_previous_closing_scoped_to_location(self, outlet, other_outlet):
        record(location="Feydhoo Outlet")
        assert stock_service.previous_closing("5", LOCATION, "2024-01-06") == 0
        assert stock_service.previous_closing("5", "Feydhoo Outlet", "2024-01-06") == 55

    def test_current_stock_as_of(self, outlet):
        record(date="2024-01-03", opening=30, received=0, redeemed=0)
        record(date="2024-01-05")
        assert stock_service.current_stock("5", LOCATION, "2024-01-04") == 30
        assert stock_service.current_stock("5", LOCATION, "2024-01-05") == 55
        assert stock_service.current_stock("5", LOCATION, "2024-01-02") == 0

    def test_opening_prefers_same_day_row(self, outlet):
        record(date="2024-01-03", opening=30, received=0, redeemed=0)
        record(date="2024-01-05", opening=40)
        assert stock_service.opening_stock_for_date("5", LOCATION, "2024-01-05") == 40
        assert stock_service.opening_stock_for_date("5", LOCATION, "2024-01-04") == 30

    def test_summary_covers_every_grade(self, outlet):
        record(date="2024-01-05")
        summary = stock_service.stock_summary(LOCATION, TEST_GRADES, "2024-01-05")
        assert summary == {"1": 0, "5": 55, "9 BUS01": 0}

    def test_summary_unknown_location(self, outlet):
        with pytest.raises(NotFoundError):
            stock_service.stock_summary("Nowhere Outlet", TEST_GRADES)

    def test_list_stock_filters(self, outlet):
        record(date="2024-01-05")
        record(date="2024-01-05", grade="1", opening=5, received=0, redeemed=0)
        record(date="2024-01-06", opening=55, received=0, redeemed=3)
        assert len(stock_service.list_stock(location=LOCATION, date="2024-01-05")) == 2
        assert [e.date for e in stock_service.list_stock(grade="5")] == ["2024-01-06", "2024-01-05"]


class TestCorrections:
    def test_update_recomputes_closing(self, db_session, outlet):
        entry = record()
        updated = stock_service.update_movement(entry.id, patch={"redeemed": 8, "notes": "recount"})
        assert updated.closing_stock == 52
        assert updated.notes == "recount"

    def test_update_cannot_move_key(self, outlet):
        entry = record()
        with pytest.raises(ValidationError):
            stock_service.update_movement(entry.id, patch={"date": "2024-01-06"})

    def test_update_rejects_negative(self, outlet):
        entry = record()
        with pytest.raises(ValidationError):
            stock_service.update_movement(entry.id, patch={"received": -2})

    def test_update_unknown_entry(self, outlet):
        with pytest.raises(NotFoundError):
            stock_service.update_movement(999999, patch={"received": 1})

    def test_override_flags_entry(self, outlet):
        entry = record()
        overridden = stock_service.override_closing(entry.id, closing_stock=53, notes="2 damaged")
        assert overridden.closing_stock == 53
        assert overridden.closing_overridden is True
        assert overridden.notes == "2 damaged"

    def test_override_feeds_next_opening(self, outlet):
        entry = record()
        stock_service.override_closing(entry.id, closing_stock=53)
        assert stock_service.previous_closing("5", LOCATION, "2024-01-06") == 53

    def test_update_after_override_clears_flag(self, outlet):
        entry = record()
        stock_service.override_closing(entry.id, closing_stock=53)
        updated = stock_service.update_movement(entry.id, patch={"redeemed": 5})
        assert updated.closing_stock == 55
        assert updated.closing_overridden is False

    def test_notes_edit_keeps_override(self, outlet):
        entry = record()
        stock_service.override_closing(entry.id, closing_stock=53)
        updated = stock_service.update_movement(entry.id, patch={"notes": "typo fix", "voucher_id": "BATCH-5"})
        assert updated.closing_stock == 53
        assert updated.closing_overridden is True
        assert updated.notes == "typo fix"
        assert stock_service.previous_closing("5", LOCATION, "2024-01-06") == 53

    def test_override_rejects_negative(self, outlet):
        entry = record()
        with pytest.raises(ValidationError):
            stock_service.override_closing(entry.id, closing_stock=-1)
