from __future__ import annotations

import ipaddress
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Protocol, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import PRESENCE_HEARTBEAT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresenceReading:
    """Whether the device is verified to be on the restaurant premises."""

    verified: bool
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    network_name: Optional[str] = None
    confidence: float = 0.0

    @classmethod
    def unverified(cls, network_name: Optional[str] = None) -> "PresenceReading":
        return cls(verified=False, location_name="Unknown", network_name=network_name)

    def to_dict(self) -> dict:
        return {
            "verified": self.verified,
            "location_id": self.location_id,
            "location_name": self.location_name,
            "network_name": self.network_name,
            "confidence": self.confidence,
        }


class PresenceGate(Protocol):
    def get_current_presence(self) -> PresenceReading:
        raise NotImplementedError


@dataclass(frozen=True)
class RestaurantNetwork:
    location_id: str
    location_name: str
    network_name: str
    cidr: str

    def contains(self, address: str) -> bool:
        try:
            return ipaddress.ip_address(address) in ipaddress.ip_network(self.cidr, strict=False)
        except ValueError:
            return False

    @classmethod
    def from_settings(cls, location_id: str, values: dict) -> "RestaurantNetwork":
        return cls(
            location_id=location_id,
            location_name=str(values.get("name", location_id)),
            network_name=str(values.get("network_name", "")),
            cidr=str(values["cidr"]),
        )


def networks_from_settings(raw: dict) -> list[RestaurantNetwork]:
    return [RestaurantNetwork.from_settings(location_id, values) for location_id, values in (raw or {}).items()]


class NetworkPresenceGate(PresenceGate):
    """On-premises when the client address falls inside a configured restaurant network."""

    def __init__(self, networks: Iterable[RestaurantNetwork], address_provider: Callable[[], Optional[str]]):
        self._networks: Sequence[RestaurantNetwork] = list(networks)
        self._address_provider = address_provider

    def check_address(self, address: Optional[str]) -> PresenceReading:
        if not address:
            return PresenceReading.unverified()
        for network in self._networks:
            if network.contains(address):
                return PresenceReading(
                    verified=True,
                    location_id=network.location_id,
                    location_name=network.location_name,
                    network_name=network.network_name,
                    confidence=1.0,
                )
        return PresenceReading.unverified()

    def get_current_presence(self) -> PresenceReading:
        return self.check_address(self._address_provider())


class HeartbeatPresenceGate(PresenceGate):
    """Presence as last reported by the on-site device.

    The device posts a heartbeat every ~30 seconds; a missing heartbeat for longer
    than the timeout reads as presence lost. Unverified reports are dropped; presence
    ends only when verified heartbeats stop.
    """

    def __init__(
        self,
        *,
        timeout_seconds: int = PRESENCE_HEARTBEAT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._timeout = timedelta(seconds=int(timeout_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._last: Optional[PresenceReading] = None
        self._last_at: Optional[datetime] = None

    def record(self, reading: PresenceReading, *, at: Optional[datetime] = None) -> bool:
        if not reading.verified:
            logger.debug("ignoring unverified presence heartbeat (network=%s)", reading.network_name)
            return False
        with self._lock:
            self._last = reading
            self._last_at = at or self._clock()
        logger.debug("presence heartbeat location=%s", reading.location_id)
        return True

    def get_current_presence(self) -> PresenceReading:
        with self._lock:
            last, last_at = self._last, self._last_at
        if last is None or last_at is None:
            return PresenceReading.unverified()
        if self._clock() - last_at > self._timeout:
            return PresenceReading.unverified(network_name=last.network_name)
        return last
