"""Tests for the attendance percentage formula."""
from rollcall.services.attendance_stats_service import (
    calculate_attendance_percentage, LATE_PENALTY_GROUP_SIZE
)

def test_no_sessions_scores_zero():
    assert calculate_attendance_percentage(0, 0, 0) == 0

def test_all_present_and_all_absent():
    assert calculate_attendance_percentage(10, 0, 0) == 100
    assert calculate_attendance_percentage(0, 0, 10) == 0

def test_three_lates_count_as_one_absence():
    assert calculate_attendance_percentage(7, 3, 0) == 90

def test_fewer_lates_than_a_group_carry_no_penalty():
    assert calculate_attendance_percentage(8, 2, 0) == 100

def test_mixed_history():
    # 13 sessions, one raw absence plus one from three lates
    assert calculate_attendance_percentage(9, 3, 1) == 85

def test_rounds_half_up():
    # 1/8 = 12.5%
    assert calculate_attendance_percentage(1, 0, 7) == 13

def test_default_group_size():
    assert LATE_PENALTY_GROUP_SIZE == 3

def test_group_size_is_overridable():
    assert calculate_attendance_percentage(8, 2, 0, late_group_size=2) == 90

def test_extra_absence_never_raises_score():
    for present in range(0, 6):
        for late in range(0, 7):
            previous = calculate_attendance_percentage(present, late, 0)
            for absent in range(1, 8):
                current = calculate_attendance_percentage(present, late, absent)
                assert current <= previous
                previous = current

def test_replacing_present_with_late_never_raises_score():
    total = 12
    previous = calculate_attendance_percentage(total, 0, 0)
    for late in range(1, total + 1):
        current = calculate_attendance_percentage(total - late, late, 0)
        assert current <= previous
        previous = current

def test_all_late_stays_in_range():
    assert calculate_attendance_percentage(0, 30, 0) == 67
    assert 0 <= calculate_attendance_percentage(0, 1000, 0) <= 100
