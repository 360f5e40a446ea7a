from __future__ import annotations

import threading
from datetime import date, datetime

import pytest

from hrms_core.core.enums import AttendanceStatus
from hrms_core.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    InvalidMonth,
    InvalidPagination,
    InvalidTimeOrder,
    NoCheckInFound,
    UserNotFound,
)


def test_check_in_creates_open_record(tracker, add_user, fixed_now):
    add_user(1)

    record = tracker.check_in(1)

    assert record.work_date == date(2024, 1, 15)
    assert record.check_in_time == fixed_now
    assert record.is_open
    assert tracker.get_today_attendance(1) == record


def test_check_in_twice_same_day_is_rejected(tracker, add_user):
    add_user(1)
    tracker.check_in(1)

    with pytest.raises(AlreadyCheckedIn):
        tracker.check_in(1)


def test_check_in_unknown_user(tracker):
    with pytest.raises(UserNotFound):
        tracker.check_in(99)


def test_supplied_timestamp_sets_time_not_date(tracker, add_user):
    add_user(1)

    record = tracker.check_in(1, at=datetime(2024, 1, 15, 8, 30))

    assert record.check_in_time == datetime(2024, 1, 15, 8, 30)
    assert record.work_date == date(2024, 1, 15)


def test_check_out_without_check_in(tracker, add_user):
    add_user(1)

    with pytest.raises(NoCheckInFound):
        tracker.check_out(1, at=datetime(2024, 1, 15, 17, 0))


def test_check_out_closes_record_and_classifies(tracker, add_user):
    add_user(1)
    tracker.check_in(1, at=datetime(2024, 1, 15, 9, 0))

    record = tracker.check_out(1, at=datetime(2024, 1, 15, 17, 30))

    assert record.work_hours == 8.5
    assert record.status == AttendanceStatus.PRESENT
    assert not record.is_open


def test_check_out_just_under_four_hours_is_half_day(tracker, add_user):
    add_user(1)
    tracker.check_in(1, at=datetime(2024, 1, 15, 9, 0, 0))

    # 3h59m59.9s rounds to 4.0 for storage but still classifies as half day
    record = tracker.check_out(1, at=datetime(2024, 1, 15, 12, 59, 59, 900000))

    assert record.work_hours == 4.0
    assert record.status == AttendanceStatus.HALF_DAY


def test_check_out_twice_is_rejected(tracker, add_user):
    add_user(1)
    tracker.check_in(1, at=datetime(2024, 1, 15, 9, 0))
    tracker.check_out(1, at=datetime(2024, 1, 15, 10, 0))

    with pytest.raises(AlreadyCheckedOut):
        tracker.check_out(1, at=datetime(2024, 1, 15, 11, 0))

    assert tracker.get_today_attendance(1).status == AttendanceStatus.ABSENT


@pytest.mark.parametrize("out_at", [datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 8, 0)])
def test_check_out_must_follow_check_in(tracker, add_user, out_at):
    add_user(1)
    tracker.check_in(1, at=datetime(2024, 1, 15, 9, 0))

    with pytest.raises(InvalidTimeOrder):
        tracker.check_out(1, at=out_at)

    assert tracker.get_today_attendance(1).is_open


def test_concurrent_check_ins_have_one_winner(tracker, add_user, store):
    add_user(1)
    barrier = threading.Barrier(8)
    outcomes = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            tracker.check_in(1)
            result = "ok"
        except AlreadyCheckedIn:
            result = "dup"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("dup") == 7
    assert len(store.attendance) == 1


def test_summary_counts_and_percentage(tracker, add_user, seed_attendance):
    add_user(1, base_salary=60000)
    statuses = {d: AttendanceStatus.PRESENT for d in range(1, 21)}
    statuses.update({21: AttendanceStatus.HALF_DAY, 22: AttendanceStatus.ABSENT, 23: AttendanceStatus.ABSENT})
    seed_attendance(1, 2024, 1, statuses)

    summary = tracker.get_attendance_summary(1, 1, 2024)

    assert summary.working_days == 31
    assert (summary.present_days, summary.half_days, summary.absent_days) == (20, 1, 2)
    # (20 + 0.5) / 31 * 100
    assert summary.attendance_percentage == 66.13
    assert summary.total_work_hours == 20 * 8.0 + 3.0 + 2 * 1.0
    assert summary.salary.salary_deduction == 4838.71
    assert summary.salary.final_salary == 55161.29
    assert len(summary.records) == 23


def test_summary_ignores_other_months(tracker, add_user, seed_attendance):
    add_user(1)
    seed_attendance(1, 2024, 1, {5: AttendanceStatus.PRESENT})
    seed_attendance(1, 2024, 2, {5: AttendanceStatus.ABSENT})

    summary = tracker.get_attendance_summary(1, "02", 2024)

    assert summary.working_days == 29
    assert (summary.present_days, summary.absent_days) == (0, 1)


def test_summary_rejects_bad_month(tracker, add_user):
    add_user(1)

    with pytest.raises(InvalidMonth):
        tracker.get_attendance_summary(1, 13, 2024)


def test_summary_unknown_user(tracker):
    with pytest.raises(UserNotFound):
        tracker.get_attendance_summary(42, 1, 2024)


def test_history_paginates_newest_first(tracker, add_user, seed_attendance):
    add_user(1)
    seed_attendance(1, 2024, 1, {d: AttendanceStatus.PRESENT for d in range(1, 13)})

    page = tracker.get_attendance_history(1, page=2, limit=5)

    assert page.total == 12
    assert page.total_pages == 3
    assert [r.work_date.day for r in page.items] == [7, 6, 5, 4, 3]


def test_history_month_filter(tracker, add_user, seed_attendance):
    add_user(1)
    seed_attendance(1, 2024, 1, {3: AttendanceStatus.PRESENT})
    seed_attendance(1, 2024, 2, {3: AttendanceStatus.PRESENT, 4: AttendanceStatus.PRESENT})

    page = tracker.get_attendance_history(1, month=2, year=2024)

    assert page.total == 2


def test_history_rejects_bad_pagination(tracker):
    with pytest.raises(InvalidPagination):
        tracker.get_attendance_history(1, page=0)


def test_all_attendance_filters(tracker, add_user, seed_attendance):
    add_user(1, department="Engineering")
    add_user(2, department="Sales")
    seed_attendance(1, 2024, 1, {10: AttendanceStatus.PRESENT, 11: AttendanceStatus.ABSENT})
    seed_attendance(2, 2024, 1, {10: AttendanceStatus.PRESENT})

    by_date = tracker.get_all_attendance(work_date=date(2024, 1, 10))
    by_dept = tracker.get_all_attendance(department="engin")
    by_status = tracker.get_all_attendance(status=AttendanceStatus.ABSENT)

    assert by_date.total == 2
    assert {row.record.user_id for row in by_dept.items} == {1}
    assert [row.record.work_date.day for row in by_status.items] == [11]
