from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from flask import has_request_context, request

from .approvals.mysql_approval_repository import MySQLApprovalRepository
from .approvals.repository import ApprovalRepository
from .approvals.service import ApprovalQueue
from .common.datetime_utils import now_local
from .common.locks import KeyedLock
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .presence.gate import HeartbeatPresenceGate, NetworkPresenceGate, PresenceGate, networks_from_settings
from .reconciliation.mysql_reconciliation_repository import MySQLCandidateRepository, MySQLNudgeRepository
from .reconciliation.repository import CandidateRepository, NudgeRepository
from .reconciliation.scheduler import ReconciliationWorker
from .reconciliation.service import ReconciliationEngine
from .timeclock.factory import ClockInStrategyFactory
from .timeclock.mysql_clock_status_repository import MySQLClockStatusRepository
from .timeclock.mysql_time_entry_repository import MySQLTimeEntryRepository
from .timeclock.repository import ClockStatusRepository, TimeEntryRepository
from .timeclock.service import ClockEventProcessor


@dataclass(frozen=True)
class Container:
    employees_repo: EmployeeRepository
    entries_repo: TimeEntryRepository
    statuses_repo: ClockStatusRepository
    approvals_repo: ApprovalRepository
    nudges_repo: NudgeRepository
    candidates_repo: CandidateRepository
    notifications_repo: NotificationRepository

    presence_gate: PresenceGate
    heartbeat_gate: HeartbeatPresenceGate

    notification_service: NotificationService
    approval_queue: ApprovalQueue
    clock_processor: ClockEventProcessor
    reconciliation_engine: ReconciliationEngine
    reconciliation_worker: ReconciliationWorker

    clock_in_token: str
    clock_out_token: str


def _setting(settings: Any, name: str) -> Any:
    return getattr(settings, name, getattr(constants, name))


def _client_address() -> Optional[str]:
    return request.remote_addr if has_request_context() else None


def build_services(
    *,
    employees_repo: EmployeeRepository,
    entries_repo: TimeEntryRepository,
    statuses_repo: ClockStatusRepository,
    approvals_repo: ApprovalRepository,
    nudges_repo: NudgeRepository,
    candidates_repo: CandidateRepository,
    notifications_repo: NotificationRepository,
    presence_gate: PresenceGate,
    heartbeat_gate: Optional[HeartbeatPresenceGate] = None,
    settings: Any = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Wire services over the given repositories and presence gates."""

    locks = KeyedLock()
    clock_in_token = str(_setting(settings, "CLOCK_IN_QR_TOKEN"))
    clock_out_token = str(_setting(settings, "CLOCK_OUT_QR_TOKEN"))
    heartbeat_gate = heartbeat_gate or HeartbeatPresenceGate(
        timeout_seconds=int(_setting(settings, "PRESENCE_HEARTBEAT_TIMEOUT_SECONDS")),
        clock=clock,
    )

    notification_service = NotificationService(notifications_repo)
    approval_queue = ApprovalQueue(
        approvals_repo,
        entries_repo,
        employees_repo,
        notification_service,
        locks=locks,
        clock=clock,
    )
    clock_processor = ClockEventProcessor(
        entries_repo,
        statuses_repo,
        employees_repo,
        presence_gate,
        approval_queue,
        strategy_factory=ClockInStrategyFactory(),
        locks=locks,
        clock=clock,
        grace_before=int(_setting(settings, "GRACE_PERIOD_BEFORE")),
        grace_after=int(_setting(settings, "GRACE_PERIOD_AFTER")),
        clock_in_token=clock_in_token,
        clock_out_token=clock_out_token,
    )
    reconciliation_engine = ReconciliationEngine(
        clock_processor,
        entries_repo,
        employees_repo,
        nudges_repo,
        candidates_repo,
        notification_service,
        heartbeat_gate,
        locks=locks,
        clock=clock,
    )
    reconciliation_worker = ReconciliationWorker(
        reconciliation_engine,
        interval_minutes=int(_setting(settings, "RECONCILIATION_INTERVAL_MINUTES")),
        clock=clock,
    )

    return Container(
        employees_repo=employees_repo,
        entries_repo=entries_repo,
        statuses_repo=statuses_repo,
        approvals_repo=approvals_repo,
        nudges_repo=nudges_repo,
        candidates_repo=candidates_repo,
        notifications_repo=notifications_repo,
        presence_gate=presence_gate,
        heartbeat_gate=heartbeat_gate,
        notification_service=notification_service,
        approval_queue=approval_queue,
        clock_processor=clock_processor,
        reconciliation_engine=reconciliation_engine,
        reconciliation_worker=reconciliation_worker,
        clock_in_token=clock_in_token,
        clock_out_token=clock_out_token,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    networks = networks_from_settings(getattr(settings, "RESTAURANT_NETWORKS", {}))

    return build_services(
        employees_repo=MySQLEmployeeRepository(conn),
        entries_repo=MySQLTimeEntryRepository(conn),
        statuses_repo=MySQLClockStatusRepository(conn),
        approvals_repo=MySQLApprovalRepository(conn),
        nudges_repo=MySQLNudgeRepository(conn),
        candidates_repo=MySQLCandidateRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        presence_gate=NetworkPresenceGate(networks, _client_address),
        settings=settings,
    )
