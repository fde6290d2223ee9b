"""
Day-end reconciliation service tests.
"""

import pytest

from bookvoucher.models import Redemption
from bookvoucher.services import day_end_service, outlet_service, stock_service
from bookvoucher.validation import ConflictError, NotFoundError, ValidationError

from conftest import TEST_GRADES

LOCATION = "Hithadhoo Outlet"
DAY = "2024-01-05"


def add_stock(grade, opening, received=0, redeemed=0, date="2024-01-04"):
    return stock_service.record_movement(
        grade=grade,
        location=LOCATION,
        date=date,
        opening=opening,
        received=received,
        redeemed=redeemed,
        grades=TEST_GRADES,
    )


def add_redemption(db_session, staff_user, booklist, date=DAY, location=LOCATION):
    redemption = Redemption(
        voucher_id="VCH-1",
        staff_id=staff_user.id,
        date=date,
        location=location,
        parent_name="Parent",
        contact_no="7770000",
        student_name="Student",
        school="Hiriya School",
        booklist_id=booklist.id,
        customization="standard",
        delivery_status="pending",
    )
    db_session.add(redemption)
    db_session.flush()
    return redemption


def open_report(staff_user, date=DAY):
    return day_end_service.create_report(
        date=date,
        location=LOCATION,
        staff_id=staff_user.id,
        grades=TEST_GRADES,
    )


class TestCreateReport:
    def test_snapshots_every_grade(self, staff_user):
        add_stock("5", 10)
        report = open_report(staff_user)

        opening = {line.grade: line for line in report.snapshot("OPENING")}
        closing = {line.grade: line for line in report.snapshot("CLOSING")}
        assert sorted(opening) == sorted(TEST_GRADES)
        assert sorted(closing) == sorted(TEST_GRADES)
        assert opening["5"].opening_stock == 10
        assert opening["1"].opening_stock == 0
        assert closing["5"].closing_stock == 10
        assert report.stock_counted is False

    def test_same_day_row_supplies_opening(self, staff_user):
        add_stock("5", 10, date="2024-01-04")
        add_stock("5", 10, received=20, redeemed=4, date=DAY)
        report = open_report(staff_user)

        line = next(l for l in report.snapshot("OPENING") if l.grade == "5")
        assert line.opening_stock == 10
        assert line.received == 20
        assert line.redeemed == 4

    def test_redemption_totals(self, db_session, staff_user, booklist, other_outlet):
        add_redemption(db_session, staff_user, booklist)
        add_redemption(db_session, staff_user, booklist)
        add_redemption(db_session, staff_user, booklist, date="2024-01-04")
        add_redemption(db_session, staff_user, booklist, location="Feydhoo Outlet")

        report = open_report(staff_user)
        assert report.total_redemptions == 2
        assert report.total_value_cents == 2 * 58900

    def test_duplicate_report_rejected(self, staff_user):
        open_report(staff_user)
        with pytest.raises(ConflictError):
            open_report(staff_user)

    def test_other_day_allowed(self, staff_user):
        open_report(staff_user)
        report = open_report(staff_user, date="2024-01-06")
        assert report.date == "2024-01-06"

    def test_unknown_location(self, staff_user):
        with pytest.raises(NotFoundError):
            day_end_service.create_report(
                date=DAY, location="Nowhere Outlet", staff_id=staff_user.id, grades=TEST_GRADES,
            )

    def test_unknown_staff(self, outlet):
        with pytest.raises(NotFoundError):
            day_end_service.create_report(date=DAY, location=LOCATION, staff_id=999999, grades=TEST_GRADES)

    def test_missing_staff(self, outlet):
        with pytest.raises(ValidationError):
            day_end_service.create_report(date=DAY, location=LOCATION, staff_id=None, grades=TEST_GRADES)

    def test_bad_date(self, staff_user):
        with pytest.raises(ValidationError):
            open_report(staff_user, date="05/01/2024")


class TestStockCount:
    def test_all_counts_match(self, staff_user, admin_user):
        add_stock("1", 4)
        add_stock("5", 10)
        report = open_report(staff_user)

        counted = day_end_service.complete_stock_count(
            report.id,
            actual_counts={"1": 4, "5": 10, "9 BUS01": 0},
            counted_by=admin_user.id,
            grades=TEST_GRADES,
        )
        assert counted.stock_counted is True
        assert counted.stock_counted_by == admin_user.id
        assert counted.stock_count_date is not None
        assert counted.completed_at is not None
        assert counted.discrepancies == []

    def test_shortfall_recorded(self, staff_user, admin_user):
        add_stock("5", 10)
        report = open_report(staff_user)

        counted = day_end_service.complete_stock_count(
            report.id,
            actual_counts={"1": 0, "5": 7, "9 BUS01": 0},
            counted_by=admin_user.id,
            grades=TEST_GRADES,
        )
        assert len(counted.discrepancies) == 1
        discrepancy = counted.discrepancies[0]
        assert discrepancy.grade == "5"
        assert discrepancy.expected_stock == 10
        assert discrepancy.actual_stock == 7
        assert discrepancy.difference == -3
        assert discrepancy.voucher_id == "VCH-5"

        closing = {line.grade: line.closing_stock for line in counted.snapshot("CLOSING")}
        assert closing == {"1": 0, "5": 7, "9 BUS01": 0}

    def test_surplus_is_positive(self, staff_user, admin_user):
        report = open_report(staff_user)
        counted = day_end_service.complete_stock_count(
            report.id,
            actual_counts={"1": 2, "5": 0, "9 BUS01": 0},
            counted_by=admin_user.id,
            grades=TEST_GRADES,
        )
        assert [(d.grade, d.difference) for d in counted.discrepancies] == [("1", 2)]

    def test_count_uses_report_snapshot(self, staff_user, admin_user):
        add_stock("5", 10)
        report = open_report(staff_user)
        # Ledger moves after the report was opened
        add_stock("5", 10, received=5, date=DAY)

        counted = day_end_service.complete_stock_count(
            report.id,
            actual_counts={"1": 0, "5": 10, "9 BUS01": 0},
            counted_by=admin_user.id,
            grades=TEST_GRADES,
        )
        assert counted.discrepancies == []

    def test_recount_rejected(self, staff_user, admin_user):
        report = open_report(staff_user)
        counts = {"1": 0, "5": 0, "9 BUS01": 0}
        day_end_service.complete_stock_count(
            report.id, actual_counts=counts, counted_by=admin_user.id, grades=TEST_GRADES,
        )
        with pytest.raises(ConflictError):
            day_end_service.complete_stock_count(
                report.id, actual_counts=counts, counted_by=admin_user.id, grades=TEST_GRADES,
            )

    def test_missing_grade_count(self, staff_user, admin_user):
        report = open_report(staff_user)
        with pytest.raises(ValidationError):
            day_end_service.complete_stock_count(
                report.id, actual_counts={"1": 0, "5": 0}, counted_by=admin_user.id, grades=TEST_GRADES,
            )

    def test_unknown_grade_count(self, staff_user, admin_user):
        report = open_report(staff_user)
        with pytest.raises(NotFoundError):
            day_end_service.complete_stock_count(
                report.id,
                actual_counts={"1": 0, "5": 0, "9 BUS01": 0, "13": 1},
                counted_by=admin_user.id,
                grades=TEST_GRADES,
            )

    def test_grade_dropped_from_catalogue_still_counted(self, staff_user, admin_user):
        add_stock("9 BUS01", 6)
        report = open_report(staff_user)
        current = ["1", "5"]

        with pytest.raises(ValidationError):
            day_end_service.complete_stock_count(
                report.id, actual_counts={"1": 0, "5": 0}, counted_by=admin_user.id, grades=current,
            )

        counted = day_end_service.complete_stock_count(
            report.id,
            actual_counts={"1": 0, "5": 0, "9 BUS01": 4},
            counted_by=admin_user.id,
            grades=current,
        )
        assert [(d.grade, d.expected_stock, d.difference) for d in counted.discrepancies] == [
            ("9 BUS01", 6, -2),
        ]
        closing = {line.grade: line.closing_stock for line in counted.snapshot("CLOSING")}
        assert closing["9 BUS01"] == 4

    def test_negative_count(self, staff_user, admin_user):
        report = open_report(staff_user)
        with pytest.raises(ValidationError):
            day_end_service.complete_stock_count(
                report.id,
                actual_counts={"1": 0, "5": -1, "9 BUS01": 0},
                counted_by=admin_user.id,
                grades=TEST_GRADES,
            )

    def test_unknown_report(self, admin_user):
        with pytest.raises(NotFoundError):
            day_end_service.complete_stock_count(
                999999, actual_counts={}, counted_by=admin_user.id, grades=TEST_GRADES,
            )

    def test_failed_count_leaves_report_pending(self, db_session, staff_user, admin_user):
        report = open_report(staff_user)
        with pytest.raises(ValidationError):
            day_end_service.complete_stock_count(
                report.id, actual_counts={"1": 0}, counted_by=admin_user.id, grades=TEST_GRADES,
            )
        assert report.stock_counted is False
        assert report.discrepancies == []


class TestQueries:
    def test_find_and_list(self, staff_user):
        report = open_report(staff_user)
        assert day_end_service.find_report(DAY, LOCATION).id == report.id
        assert day_end_service.find_report("2024-01-06", LOCATION) is None
        assert [r.id for r in day_end_service.list_reports(location=LOCATION)] == [report.id]


class TestOutletRename:
    def test_rename_keeps_history_attached(self, db_session, staff_user, booklist, outlet):
        add_stock("5", 50, received=10, redeemed=5)
        add_redemption(db_session, staff_user, booklist)

        outlet_service.update_outlet(outlet.id, patch={"name": "Hithadhoo Main"})

        assert stock_service.previous_closing("5", LOCATION, DAY) == 0
        assert stock_service.previous_closing("5", "Hithadhoo Main", DAY) == 55

        report = day_end_service.create_report(
            date=DAY, location="Hithadhoo Main", staff_id=staff_user.id, grades=TEST_GRADES,
        )
        opening = {line.grade: line.opening_stock for line in report.snapshot("OPENING")}
        assert opening["5"] == 55
        assert report.total_redemptions == 1

    def test_rename_moves_existing_reports(self, staff_user, outlet):
        report = open_report(staff_user)
        outlet_service.update_outlet(outlet.id, patch={"name": "Hithadhoo Main"})

        assert report.location == "Hithadhoo Main"
        assert {line.location for line in report.stock_lines} == {"Hithadhoo Main"}
        assert day_end_service.find_report(DAY, "Hithadhoo Main").id == report.id
        assert day_end_service.find_report(DAY, LOCATION) is None

    def test_code_change_leaves_location_alone(self, outlet):
        entry = add_stock("5", 50)
        outlet_service.update_outlet(outlet.id, patch={"code": "OUT-101"})
        assert entry.location == LOCATION
