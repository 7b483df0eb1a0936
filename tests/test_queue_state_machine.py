from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.queue_engine.state_machine import (
    TERMINAL_STATUSES,
    AppointmentStatus,
    InvalidTransitionError,
    build_queue_snapshot,
    can_transition,
    current_token,
    ensure_transition,
    filter_appointments,
    next_token,
    next_token_number,
    sort_queue,
    sources_for,
)

DAY = date(2026, 3, 2)
T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

_ids = iter(range(1, 10_000))


def appt(status="scheduled", token=None, minutes=0, doctor="Dr. Ravi Kumar", name="Patient", day=DAY):
    return SimpleNamespace(
        id=next(_ids),
        status=status,
        token_number=token,
        created_at=T0 + timedelta(minutes=minutes),
        doctor_name=doctor,
        patient_name=name,
        patient_phone="9000000000",
        appointment_date=day,
    )


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("scheduled", "token_generated"),
            ("token_generated", "in_progress"),
            ("in_progress", "completed"),
            ("scheduled", "cancelled"),
            ("token_generated", "cancelled"),
            ("in_progress", "cancelled"),
        ],
    )
    def test_legal_moves(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize("target", ["in_progress", "completed"])
    def test_scheduled_cannot_skip_token(self, target):
        assert not can_transition("scheduled", target)
        with pytest.raises(InvalidTransitionError):
            ensure_transition("scheduled", target)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
    def test_terminal_states_have_no_exit(self, terminal):
        for target in AppointmentStatus:
            assert not can_transition(terminal, target)

    def test_terminal_states(self):
        assert TERMINAL_STATUSES == {"completed", "cancelled"}

    def test_enum_and_string_forms_agree(self):
        assert can_transition(AppointmentStatus.SCHEDULED, "token_generated")
        assert can_transition("token_generated", AppointmentStatus.IN_PROGRESS)

    def test_error_names_both_states(self):
        with pytest.raises(InvalidTransitionError) as exc:
            ensure_transition("completed", "in_progress")
        assert exc.value.current == "completed"
        assert exc.value.target == "in_progress"
        assert "completed" in str(exc.value)

    def test_sources_for_cancel(self):
        assert set(sources_for("cancelled")) == {"scheduled", "token_generated", "in_progress"}


class TestOrdering:
    def test_tokened_first_by_token_then_untokened_by_creation(self):
        late_untokened = appt(minutes=30)
        early_untokened = appt(minutes=5)
        token_3 = appt("token_generated", 3, minutes=1)
        token_1 = appt("completed", 1, minutes=50)
        ordered = sort_queue([late_untokened, token_3, early_untokened, token_1])
        assert ordered == [token_1, token_3, early_untokened, late_untokened]

    def test_next_token_number_starts_at_one(self):
        assert next_token_number([]) == 1
        assert next_token_number([appt()]) == 1

    def test_next_token_number_is_max_plus_one(self):
        day = [appt("token_generated", 1), appt("cancelled", 4), appt("completed", 2)]
        assert next_token_number(day) == 5


class TestCurrentAndNext:
    def test_next_is_lowest_waiting_token(self):
        day = [appt("token_generated", 3), appt("token_generated", 5), appt("token_generated", 2)]
        assert current_token(day) is None
        assert next_token(day).token_number == 2

    def test_cancelled_token_is_never_next(self):
        cancelled = appt("cancelled", 1)
        waiting = appt("token_generated", 2)
        assert next_token([cancelled, waiting]) is waiting

    def test_current_is_the_in_progress_appointment(self):
        seeing = appt("in_progress", 1)
        day = [seeing, appt("token_generated", 2), appt("completed", 3)]
        assert current_token(day) is seeing
        assert next_token(day).token_number == 2

    def test_nothing_waiting(self):
        assert next_token([appt(), appt("completed", 1)]) is None


class TestFilters:
    def test_search_by_name_phone_or_token(self):
        a = appt("token_generated", 47, name="Lakshmi Iyer")
        b = appt("token_generated", 3, name="Arjun Das")
        b.patient_phone = "9811122233"
        assert filter_appointments([a, b], search="lakshmi") == [a]
        assert filter_appointments([a, b], search="98111") == [b]
        assert filter_appointments([a, b], search="47") == [a]

    def test_status_all_keeps_everything(self):
        day = [appt(), appt("completed", 1)]
        assert filter_appointments(day, status="all") == day
        assert filter_appointments(day, status="completed") == [day[1]]


class TestSnapshot:
    def test_partitions_and_stats(self):
        day = [
            appt("completed", 1),
            appt("in_progress", 2),
            appt("token_generated", 3),
            appt("token_generated", 4),
            appt("cancelled", 5),
            appt("scheduled"),
        ]
        snapshot = build_queue_snapshot(DAY, day)
        assert snapshot.current.token_number == 2
        assert snapshot.next.token_number == 3
        assert [a.token_number for a in snapshot.waiting] == [3, 4]
        assert snapshot.next_token_number == 6
        assert snapshot.stats == {"waiting": 2, "in_progress": 1, "completed": 1, "total_tokens": 5}

    def test_other_dates_are_ignored(self):
        other_day = appt("token_generated", 9, day=DAY + timedelta(days=1))
        snapshot = build_queue_snapshot(DAY, [other_day, appt("token_generated", 1)])
        assert [a.token_number for a in snapshot.appointments] == [1]
        assert snapshot.next_token_number == 2

    def test_doctor_view_keeps_day_wide_token_numbering(self):
        mine = appt("token_generated", 1, doctor="Dr. Ravi Kumar")
        theirs = appt("token_generated", 2, doctor="Dr. Meera Nair")
        snapshot = build_queue_snapshot(DAY, [mine, theirs], doctor_name="Ravi Kumar")
        assert snapshot.appointments == [mine]
        assert snapshot.next is mine
        assert snapshot.next_token_number == 3

    def test_empty_day(self):
        snapshot = build_queue_snapshot(DAY, [])
        assert snapshot.current is None
        assert snapshot.next is None
        assert snapshot.stats["total_tokens"] == 0
