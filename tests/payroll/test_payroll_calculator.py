from __future__ import annotations

import threading

import pytest

from hrms_core.core.enums import AttendanceStatus
from hrms_core.core.exceptions import Forbidden, InvalidMonth, SalaryRecordNotFound, UserNotFound


def _january(seed_attendance, user_id):
    statuses = {d: AttendanceStatus.PRESENT for d in range(1, 21)}
    statuses.update({21: AttendanceStatus.HALF_DAY, 22: AttendanceStatus.ABSENT, 23: AttendanceStatus.ABSENT})
    seed_attendance(user_id, 2024, 1, statuses)


def test_calculate_salary_stores_record(payroll, add_user, seed_attendance, salaries_repo):
    add_user(1, base_salary=60000)
    _january(seed_attendance, 1)

    record = payroll.calculate_salary(1, "2024-01", 2024)

    assert record.salary_id > 0
    assert (record.month, record.year) == ("2024-01", 2024)
    assert (record.working_days, record.present_days, record.half_days, record.absent_days) == (31, 20, 1, 2)
    assert record.salary_deduction == 4838.71
    assert record.final_salary == 55161.29
    assert record.attendance_percentage == 66.13
    assert record.is_processed
    assert salaries_repo.inserts == 1


def test_calculate_salary_is_idempotent(payroll, add_user, seed_attendance, salaries_repo, store):
    add_user(1, base_salary=60000)
    _january(seed_attendance, 1)

    first = payroll.calculate_salary(1, "2024-01", 2024)
    # Later attendance changes must not alter a processed month
    seed_attendance(1, 2024, 1, {24: AttendanceStatus.ABSENT})
    second = payroll.calculate_salary(1, "2024-01", 2024)

    assert second == first
    assert salaries_repo.inserts == 1


def test_concurrent_calculations_store_one_record(payroll, add_user, seed_attendance, salaries_repo):
    add_user(1)
    _january(seed_attendance, 1)
    barrier = threading.Barrier(6)
    results = []
    lock = threading.Lock()

    def run():
        barrier.wait()
        record = payroll.calculate_salary(1, "2024-01", 2024)
        with lock:
            results.append(record)

    threads = [threading.Thread(target=run) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert salaries_repo.inserts == 1
    assert len({r.salary_id for r in results}) == 1


@pytest.mark.parametrize("month, year", [("2024-13", 2024), ("2024-1", 2024), ("January", 2024), ("2024-01", 2023)])
def test_invalid_month_label(payroll, add_user, month, year):
    add_user(1)

    with pytest.raises(InvalidMonth):
        payroll.calculate_salary(1, month, year)


def test_unknown_user(payroll):
    with pytest.raises(UserNotFound):
        payroll.calculate_salary(5, "2024-01", 2024)


def test_month_without_attendance_counts_no_absences(payroll, add_user):
    add_user(1, base_salary=31000)

    record = payroll.calculate_salary(1, "2024-01", 2024)

    assert record.absent_days == 0
    assert record.final_salary == 31000


def test_get_salary_by_id_scoping(payroll, add_user):
    add_user(1)
    add_user(2)
    record = payroll.calculate_salary(1, "2024-01", 2024)

    assert payroll.get_salary_by_id(record.salary_id, requesting_user_id=1) == record
    assert payroll.get_salary_by_id(record.salary_id) == record
    with pytest.raises(Forbidden):
        payroll.get_salary_by_id(record.salary_id, requesting_user_id=2)
    with pytest.raises(SalaryRecordNotFound):
        payroll.get_salary_by_id(12345)


def test_salary_history_and_records(payroll, add_user):
    add_user(1, department="Engineering")
    add_user(2, department="Sales")
    payroll.calculate_salary(1, "2024-01", 2024)
    payroll.calculate_salary(1, "2024-02", 2024)
    payroll.calculate_salary(2, "2024-01", 2024)

    history = payroll.get_user_salary_history(1)
    january = payroll.get_salary_records(month="2024-01")
    sales = payroll.get_salary_records(department="sal")

    assert [row.record.month for row in history.items] == ["2024-02", "2024-01"]
    assert january.total == 2
    assert sales.total == 1


def test_salary_summary_department_breakdown(payroll, add_user):
    add_user(1, department="Engineering", base_salary=60000)
    add_user(2, department="Engineering", base_salary=40000)
    add_user(3, department="Sales", base_salary=30000)
    for user_id in (1, 2, 3):
        payroll.calculate_salary(user_id, "2024-01", 2024)
    payroll.calculate_salary(1, "2024-02", 2024)

    summary = payroll.get_salary_summary(year=2024)

    assert summary.total_records == 4
    assert summary.total_base_salary == 190000
    engineering = next(d for d in summary.department_breakdown if d.department == "Engineering")
    assert engineering.employee_count == 2
    assert engineering.total_base_salary == 160000
    assert [d.department for d in summary.department_breakdown] == ["Engineering", "Sales"]
