from __future__ import annotations

import pytest

from src.restaurant_timeclock.restaurant_timeclock.container import build_services
from src.restaurant_timeclock.restaurant_timeclock.presence.gate import HeartbeatPresenceGate
from tests.support import (
    MONDAY,
    FakeApprovalRepo,
    FakeCandidateRepo,
    FakeClockStatusRepo,
    FakeEmployeeRepo,
    FakeNotificationRepo,
    FakeNudgeRepo,
    FakeTimeEntryRepo,
    FixedClock,
    StaticPresenceGate,
    at,
    make_employees,
)


@pytest.fixture
def clock():
    return FixedClock(at(MONDAY, 9, 0))


@pytest.fixture
def presence():
    return StaticPresenceGate()


@pytest.fixture
def employees_repo():
    return FakeEmployeeRepo(make_employees())


@pytest.fixture
def services(clock, presence, employees_repo):
    return build_services(
        employees_repo=employees_repo,
        entries_repo=FakeTimeEntryRepo(),
        statuses_repo=FakeClockStatusRepo(),
        approvals_repo=FakeApprovalRepo(),
        nudges_repo=FakeNudgeRepo(),
        candidates_repo=FakeCandidateRepo(),
        notifications_repo=FakeNotificationRepo(),
        presence_gate=presence,
        heartbeat_gate=HeartbeatPresenceGate(timeout_seconds=90, clock=clock),
        clock=clock,
    )
