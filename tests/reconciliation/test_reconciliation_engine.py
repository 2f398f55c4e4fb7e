from datetime import time

from src.restaurant_timeclock.restaurant_timeclock.core.enums import (
    ErrorType,
    NotificationType,
    NudgeStatus,
    NudgeType,
)
from src.restaurant_timeclock.restaurant_timeclock.presence.gate import PresenceReading
from src.restaurant_timeclock.restaurant_timeclock.reconciliation.model import PotentialClockOut
from tests.support import CLOCK_IN, CLOCK_OUT, JORDAN_ID, MANAGER_ID, MONDAY, SAM_ID, SATURDAY, SUNDAY, at


def _presence(services, clock, verified, when):
    """Verified readings post a heartbeat; an absence is simply no heartbeat until the reading goes stale."""
    clock.now = when
    if verified:
        services.heartbeat_gate.record(PresenceReading(verified=True, location_id="bartlesville"), at=when)
    return services.reconciliation_engine.monitor_presence(when)


def _clock_in_sam(services):
    return services.clock_processor.process_clock_in(SAM_ID, CLOCK_IN, now=at(MONDAY, 9, 0)).time_entry


def _left_and_came_back(services, clock, left_at, back_at):
    assert _presence(services, clock, True, at(MONDAY, 9, 30)) == []
    assert _presence(services, clock, False, left_at) == []
    return _presence(services, clock, True, back_at)


def test_presence_loss_then_regain_creates_one_nudge(services, clock):
    entry = _clock_in_sam(services)

    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))

    assert nudge.nudge_type == NudgeType.FORGOT_CLOCK_OUT
    assert nudge.time_entry_id == entry.entry_id
    assert nudge.potential_clock_out_time == at(MONDAY, 16, 55)
    assert nudge.suggested_time == at(MONDAY, 17, 0)
    assert nudge.scheduled_end_time == time(17, 0)
    assert nudge.is_pending

    assert _presence(services, clock, True, at(MONDAY, 17, 25)) == []
    assert len(services.reconciliation_engine.list_pending_nudges(SAM_ID)) == 1

    (note,) = services.notification_service.list_for_employee(SAM_ID)
    assert note.notification_type == NotificationType.FORGOT_CLOCK_OUT
    assert note.nudge_id == nudge.nudge_id
    assert note.action_required


def test_absence_far_from_shift_end_suggests_departure_time(services, clock):
    _clock_in_sam(services)

    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 12, 0), at(MONDAY, 12, 45))

    assert nudge.suggested_time == at(MONDAY, 12, 0)
    assert nudge.scheduled_end_time is None


def test_no_nudge_when_clocked_out_while_away(services, clock):
    _clock_in_sam(services)
    _presence(services, clock, True, at(MONDAY, 9, 30))
    _presence(services, clock, False, at(MONDAY, 16, 55))
    services.clock_processor.process_clock_out(SAM_ID, CLOCK_OUT, now=at(MONDAY, 17, 0))

    assert _presence(services, clock, True, at(MONDAY, 17, 20)) == []
    assert services.candidates_repo.list_all() == []


def test_leftover_candidate_is_nudged_on_first_verified_reading(services, clock):
    entry = _clock_in_sam(services)
    services.candidates_repo.add(
        PotentialClockOut(
            employee_id=SAM_ID,
            candidate_time=at(MONDAY, 16, 50),
            recorded_at=at(MONDAY, 16, 50),
            time_entry_id=entry.entry_id,
        )
    )

    (nudge,) = _presence(services, clock, True, at(MONDAY, 17, 30))

    assert nudge.suggested_time == at(MONDAY, 17, 0)
    assert services.candidates_repo.list_all() == []


def test_yes_closes_entry_at_suggested_time(services, clock):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    engine = services.reconciliation_engine

    result = engine.respond(nudge_id=nudge.nudge_id, response="yes", now=at(MONDAY, 17, 21))

    assert result.success
    assert result.data["hours_worked"] == "8.00"
    closed = services.entries_repo.get_by_id(entry.entry_id)
    assert closed.clock_out_time == at(MONDAY, 17, 0)
    assert closed.total_hours == 8.0
    assert closed.auto_clock_out
    assert not services.clock_processor.get_clock_status(SAM_ID).is_currently_clocked

    answered = engine.get_nudge(nudge.nudge_id)
    assert answered.status == NudgeStatus.CONFIRMED
    assert answered.confirmed_clock_out == at(MONDAY, 17, 0)

    again = engine.respond(nudge_id=nudge.nudge_id, response="NO", now=at(MONDAY, 17, 22))
    assert again.error_type == ErrorType.NUDGE_NOT_PENDING


def test_yes_with_explicit_time(services, clock):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))

    result = services.reconciliation_engine.respond(
        nudge_id=nudge.nudge_id, response="YES", clock_out_time=at(MONDAY, 16, 45), now=at(MONDAY, 17, 21)
    )

    assert result.success
    assert services.entries_repo.get_by_id(entry.entry_id).total_hours == 7.75


def test_yes_after_manual_clock_out_changes_nothing(services, clock):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    services.clock_processor.process_clock_out(SAM_ID, CLOCK_OUT, now=at(MONDAY, 17, 22))

    result = services.reconciliation_engine.respond(nudge_id=nudge.nudge_id, response="YES", now=at(MONDAY, 17, 23))

    assert result.success
    assert services.entries_repo.get_by_id(entry.entry_id).clock_out_time == at(MONDAY, 17, 22)
    assert services.reconciliation_engine.get_nudge(nudge.nudge_id).status == NudgeStatus.CONFIRMED


def test_no_escalates_to_managers_and_keeps_entry_open(services, clock):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    engine = services.reconciliation_engine

    result = engine.respond(nudge_id=nudge.nudge_id, response="NO", now=at(MONDAY, 17, 21))

    assert result.success
    assert services.entries_repo.get_by_id(entry.entry_id).is_open
    answered = engine.get_nudge(nudge.nudge_id)
    assert answered.status == NudgeStatus.NEEDS_MANAGER
    assert answered.requires_manager_action
    assert [n.nudge_id for n in engine.list_manager_corrections()] == [nudge.nudge_id]

    (note,) = services.notification_service.list_for_managers(NotificationType.CLOCK_OUT_CORRECTION_NEEDED)
    assert note.nudge_id == nudge.nudge_id


def test_manager_correction_closes_entry(services, clock):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    engine = services.reconciliation_engine
    engine.respond(nudge_id=nudge.nudge_id, response="NO", now=at(MONDAY, 17, 21))

    result = engine.resolve_with_manager(
        nudge_id=nudge.nudge_id,
        manager_id=MANAGER_ID,
        clock_out_time=at(MONDAY, 17, 10),
        notes="Checked the camera",
        now=at(MONDAY, 18, 0),
    )

    assert result.success
    closed = services.entries_repo.get_by_id(entry.entry_id)
    assert closed.clock_out_time == at(MONDAY, 17, 10)
    assert not closed.auto_clock_out
    assert closed.auto_clock_out_reason == "Corrected by manager #1: Checked the camera"
    assert engine.list_manager_corrections() == []
    assert services.notification_service.list_for_managers(NotificationType.CLOCK_OUT_CORRECTION_NEEDED) == []

    again = engine.resolve_with_manager(
        nudge_id=nudge.nudge_id, manager_id=MANAGER_ID, clock_out_time=at(MONDAY, 17, 10)
    )
    assert again.error_type == ErrorType.NUDGE_NOT_PENDING


def test_manager_correction_requires_a_no_answer(services, clock):
    _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))

    result = services.reconciliation_engine.resolve_with_manager(
        nudge_id=nudge.nudge_id, manager_id=MANAGER_ID, clock_out_time=at(MONDAY, 17, 0)
    )

    assert result.error_type == ErrorType.NUDGE_NOT_PENDING


def test_manager_correction_rejects_time_before_clock_in(services, clock):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    engine = services.reconciliation_engine
    engine.respond(nudge_id=nudge.nudge_id, response="NO", now=at(MONDAY, 17, 21))

    result = engine.resolve_with_manager(nudge_id=nudge.nudge_id, manager_id=MANAGER_ID, clock_out_time=at(MONDAY, 8, 0))

    assert result.error_type == ErrorType.VALIDATION_ERROR
    assert services.entries_repo.get_by_id(entry.entry_id).is_open
    assert engine.get_nudge(nudge.nudge_id).awaits_manager


def test_invalid_response_and_unknown_nudge(services):
    engine = services.reconciliation_engine

    assert engine.respond(nudge_id=1, response="maybe").error_type == ErrorType.VALIDATION_ERROR
    assert engine.respond(nudge_id=404, response="YES").error_type == ErrorType.NUDGE_NOT_FOUND


def test_overdue_after_threshold_once_per_day(services):
    _clock_in_sam(services)
    engine = services.reconciliation_engine

    assert engine.check_for_forgotten_clock_outs(at(MONDAY, 17, 10)) == []
    assert engine.check_for_forgotten_clock_outs(at(MONDAY, 17, 15)) == []

    (nudge,) = engine.check_for_forgotten_clock_outs(at(MONDAY, 17, 16))
    assert nudge.nudge_type == NudgeType.SHIFT_OVERDUE
    assert nudge.suggested_time == at(MONDAY, 17, 0)
    assert "16 minutes ago" in nudge.message

    assert engine.check_for_forgotten_clock_outs(at(MONDAY, 17, 45)) == []
    (note,) = services.notification_service.list_for_employee(SAM_ID)
    assert note.notification_type == NotificationType.SHIFT_OVERDUE


def test_overdue_for_overnight_shift(services):
    services.clock_processor.process_clock_in(JORDAN_ID, CLOCK_IN, now=at(SATURDAY, 22, 0))
    engine = services.reconciliation_engine

    assert engine.check_for_forgotten_clock_outs(at(SATURDAY, 23, 59)) == []
    assert engine.check_for_forgotten_clock_outs(at(SUNDAY, 6, 10)) == []
    (nudge,) = engine.check_for_forgotten_clock_outs(at(SUNDAY, 6, 16))
    assert nudge.suggested_time == at(SUNDAY, 6, 0)


def test_no_overdue_nudge_after_clock_out(services):
    _clock_in_sam(services)
    services.clock_processor.process_clock_out(SAM_ID, CLOCK_OUT, now=at(MONDAY, 17, 0))

    assert services.reconciliation_engine.check_for_forgotten_clock_outs(at(MONDAY, 18, 0)) == []


def test_off_site_heartbeat_does_not_end_presence(services, clock):
    _clock_in_sam(services)
    gate = services.heartbeat_gate
    assert _presence(services, clock, True, at(MONDAY, 10, 0)) == []

    clock.now = at(MONDAY, 10, 0, 30)
    assert gate.record(PresenceReading.unverified(), at=clock.now) is False
    assert services.reconciliation_engine.monitor_presence(clock.now) == []

    assert _presence(services, clock, True, at(MONDAY, 10, 1)) == []
    assert services.candidates_repo.list_all() == []
    assert services.reconciliation_engine.list_pending_nudges(SAM_ID) == []


def _entry_store_down(**kwargs):
    raise RuntimeError("entry store unavailable")


def test_failed_close_keeps_nudge_pending(services, clock, monkeypatch):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    engine = services.reconciliation_engine
    close_entry = services.entries_repo.close_entry
    monkeypatch.setattr(services.entries_repo, "close_entry", _entry_store_down)

    failed = engine.respond(nudge_id=nudge.nudge_id, response="YES", now=at(MONDAY, 17, 21))

    assert failed.error_type == ErrorType.PROCESSING_ERROR
    assert engine.get_nudge(nudge.nudge_id).is_pending
    assert services.entries_repo.get_by_id(entry.entry_id).is_open

    monkeypatch.setattr(services.entries_repo, "close_entry", close_entry)
    retry = engine.respond(nudge_id=nudge.nudge_id, response="YES", now=at(MONDAY, 17, 25))

    assert retry.success
    assert services.entries_repo.get_by_id(entry.entry_id).clock_out_time == at(MONDAY, 17, 0)
    assert engine.get_nudge(nudge.nudge_id).status == NudgeStatus.CONFIRMED


def test_failed_manager_correction_stays_in_queue(services, clock, monkeypatch):
    entry = _clock_in_sam(services)
    (nudge,) = _left_and_came_back(services, clock, at(MONDAY, 16, 55), at(MONDAY, 17, 20))
    engine = services.reconciliation_engine
    engine.respond(nudge_id=nudge.nudge_id, response="NO", now=at(MONDAY, 17, 21))
    close_entry = services.entries_repo.close_entry
    monkeypatch.setattr(services.entries_repo, "close_entry", _entry_store_down)

    failed = engine.resolve_with_manager(
        nudge_id=nudge.nudge_id, manager_id=MANAGER_ID, clock_out_time=at(MONDAY, 17, 10), now=at(MONDAY, 18, 0)
    )

    assert failed.error_type == ErrorType.PROCESSING_ERROR
    assert [n.nudge_id for n in engine.list_manager_corrections()] == [nudge.nudge_id]
    assert services.entries_repo.get_by_id(entry.entry_id).is_open

    monkeypatch.setattr(services.entries_repo, "close_entry", close_entry)
    retry = engine.resolve_with_manager(
        nudge_id=nudge.nudge_id, manager_id=MANAGER_ID, clock_out_time=at(MONDAY, 17, 10), now=at(MONDAY, 18, 5)
    )

    assert retry.success
    assert engine.list_manager_corrections() == []
    assert services.entries_repo.get_by_id(entry.entry_id).clock_out_time == at(MONDAY, 17, 10)


def test_no_overdue_nudge_for_clock_in_after_shift_end(services):
    late = services.clock_processor.process_clock_in(SAM_ID, CLOCK_IN, now=at(MONDAY, 17, 5))
    assert late.success

    engine = services.reconciliation_engine
    assert engine.check_for_forgotten_clock_outs(at(MONDAY, 17, 20)) == []
    assert engine.check_for_forgotten_clock_outs(at(MONDAY, 23, 0)) == []
    assert engine.list_pending_nudges(SAM_ID) == []


def test_suggestion_never_precedes_clock_in(services, clock):
    services.clock_processor.process_clock_in(SAM_ID, CLOCK_IN, now=at(MONDAY, 17, 5))
    assert _presence(services, clock, True, at(MONDAY, 17, 6)) == []
    assert _presence(services, clock, False, at(MONDAY, 17, 20)) == []

    (nudge,) = _presence(services, clock, True, at(MONDAY, 17, 40))

    assert nudge.suggested_time == at(MONDAY, 17, 20)
    assert nudge.scheduled_end_time is None
    result = services.reconciliation_engine.respond(nudge_id=nudge.nudge_id, response="YES", now=at(MONDAY, 17, 41))
    assert result.success
    assert result.data["hours_worked"] == "0.25"
