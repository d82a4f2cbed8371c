from datetime import date, datetime, time

import pytest

from clinicdesk.core.roles import Capability, Role, capabilities_for, capabilities_for_roles, parse_role
from clinicdesk.modules.analytics.service import resolve_range
from clinicdesk.modules.appointments.service import appointment_window, can_transition as appointment_can_transition
from clinicdesk.modules.patients.service import age_from_dob, generate_uhid
from clinicdesk.modules.visits.clinical import compute_bmi, default_timings, food_timing_label, total_quantity
from clinicdesk.modules.visits.service import can_transition, visit_number_prefix


def test_total_quantity_is_frequency_times_duration():
    assert total_quantity(3, 5) == 15
    assert total_quantity(1, 30) == 30
    assert total_quantity(4, 0) == 0


def test_bmi_rounds_to_one_decimal():
    assert compute_bmi(170, 70) == 24.2
    assert compute_bmi(None, 70) is None
    assert compute_bmi(0, 70) is None


def test_default_timings_follow_frequency():
    assert default_timings(2) == ["morning", "evening"]
    assert default_timings(4) == ["morning", "afternoon", "evening", "night"]


def test_food_timing_label():
    assert food_timing_label("after_food") == "after food"
    assert food_timing_label(None) == ""


@pytest.mark.parametrize("current,target,ok", [
    ("scheduled", "in_progress", True),
    ("scheduled", "completed", False),
    ("in_progress", "completed", True),
    ("completed", "cancelled", False),
    ("cancelled", "in_progress", False),
])
def test_visit_transitions(current, target, ok):
    assert can_transition(current, target) is ok


def test_appointment_transitions():
    assert appointment_can_transition("scheduled", "confirmed")
    assert appointment_can_transition("waiting", "no_show")
    assert not appointment_can_transition("in_progress", "cancelled")
    assert not appointment_can_transition("no_show", "scheduled")


def test_appointment_window_must_end_same_day():
    assert appointment_window(date(2025, 8, 4), time(23, 50), 30) is None
    start, end = appointment_window(date(2025, 8, 4), time(10, 0), 30)
    assert (end - start).seconds == 1800


def test_visit_number_and_uhid_formats():
    assert visit_number_prefix(date(2025, 8, 2)) == "V-20250802-"
    assert generate_uhid(datetime(2025, 8, 2, 10, 15, 0), 7) == "P-20250802-101500-007"


def test_age_from_dob_before_and_after_birthday():
    assert age_from_dob(date(1990, 8, 10), today=date(2025, 8, 2)) == 34
    assert age_from_dob(date(1990, 8, 1), today=date(2025, 8, 2)) == 35


def test_role_capabilities():
    assert Capability.ASSIGN_ADMIN_ROLE in capabilities_for(Role.ADMIN)
    assert Capability.MANAGE_USERS not in capabilities_for("doctor")
    assert Capability.MANAGE_VISITS in capabilities_for("receptionist")
    assert capabilities_for("janitor") == frozenset()
    assert parse_role("DOCTOR") is Role.DOCTOR
    assert Capability.VIEW_ANALYTICS in capabilities_for_roles(["staff", "doctor"])


def test_analytics_timeframes():
    today = date(2025, 8, 31)
    (start, end), err = resolve_range("7d", today=today)
    assert err is None and start == date(2025, 8, 25) and end == today
    assert resolve_range("custom")[1] == "range_required"
    assert resolve_range("custom", date(2025, 8, 10), date(2025, 8, 1))[1] == "invalid_range"
