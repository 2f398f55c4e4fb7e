from datetime import datetime, timedelta

from src.restaurant_timeclock.restaurant_timeclock.presence.gate import (
    HeartbeatPresenceGate,
    NetworkPresenceGate,
    PresenceReading,
    networks_from_settings,
)
from tests.support import FixedClock

NETWORKS = {
    "bartlesville": {"name": "Bartlesville", "network_name": "Restaurant-Bartlesville", "cidr": "192.168.1.0/24"},
    "tulsa": {"name": "Tulsa", "network_name": "Restaurant-Tulsa", "cidr": "192.168.2.0/24"},
}


def _gate(address):
    return NetworkPresenceGate(networks_from_settings(NETWORKS), lambda: address)


def test_address_inside_restaurant_network_is_verified():
    reading = _gate("192.168.2.14").get_current_presence()

    assert reading.verified
    assert reading.location_id == "tulsa"
    assert reading.location_name == "Tulsa"
    assert reading.network_name == "Restaurant-Tulsa"
    assert reading.confidence == 1.0


def test_outside_or_missing_address_is_unverified():
    for address in ("10.0.0.5", None, "", "not-an-ip"):
        reading = _gate(address).get_current_presence()
        assert not reading.verified
        assert reading.location_name == "Unknown"


def test_heartbeat_without_reports_is_unverified():
    gate = HeartbeatPresenceGate(clock=FixedClock(datetime(2026, 10, 12, 9, 0)))

    assert not gate.get_current_presence().verified


def test_heartbeat_goes_stale_after_timeout():
    clock = FixedClock(datetime(2026, 10, 12, 9, 0))
    gate = HeartbeatPresenceGate(timeout_seconds=90, clock=clock)
    gate.record(PresenceReading(verified=True, location_id="tulsa", network_name="Restaurant-Tulsa"))

    clock.now += timedelta(seconds=90)
    assert gate.get_current_presence().verified

    clock.now += timedelta(seconds=1)
    stale = gate.get_current_presence()
    assert not stale.verified
    assert stale.network_name == "Restaurant-Tulsa"


def test_heartbeat_ignores_unverified_reports():
    clock = FixedClock(datetime(2026, 10, 12, 9, 0))
    gate = HeartbeatPresenceGate(timeout_seconds=90, clock=clock)

    assert gate.record(PresenceReading.unverified()) is False
    assert not gate.get_current_presence().verified

    assert gate.record(PresenceReading(verified=True, location_id="tulsa")) is True
    clock.now += timedelta(seconds=30)
    assert gate.record(PresenceReading.unverified()) is False
    assert gate.get_current_presence().location_id == "tulsa"
