"""Free lists of MQTT 3.1.1 packets for reuse in busy brokers.

A packet must not be used after it has been released.
"""

from __future__ import annotations

import threading

from mqttwire.packets import ControlPacket
from mqttwire.v3.packets import (
    ConnAck,
    Connect,
    Disconnect,
    PingReq,
    PingResp,
    PubAck,
    PubComp,
    PubRec,
    PubRel,
    Publish,
    SubAck,
    Subscribe,
    UnsubAck,
    Unsubscribe,
)

__all__ = ["PacketPool", "acquire_by_type", "release"]

_POOLED_CLASSES: tuple[type, ...] = (
    Connect,
    ConnAck,
    Publish,
    PubAck,
    PubRec,
    PubRel,
    PubComp,
    Subscribe,
    SubAck,
    Unsubscribe,
    UnsubAck,
    PingReq,
    PingResp,
    Disconnect,
)


class PacketPool:
    """Thread-safe free lists of reset packets, one per packet type."""

    def __init__(self) -> None:
        self._classes = {cls.packet_type: cls for cls in _POOLED_CLASSES}
        self._free: dict[type, list[ControlPacket]] = {cls: [] for cls in _POOLED_CLASSES}
        self._lock = threading.Lock()

    def acquire(self, packet_type: int) -> ControlPacket | None:
        """Return a clean packet of ``packet_type``, or None for an unknown type."""
        cls = self._classes.get(packet_type)
        if cls is None:
            return None
        with self._lock:
            free = self._free[cls]
            if free:
                return free.pop()
        return cls()

    def release(self, packet: ControlPacket) -> None:
        """Reset ``packet`` and keep it for reuse; other objects are ignored."""
        free = self._free.get(type(packet))
        if free is None:
            return
        packet.reset()
        with self._lock:
            free.append(packet)


_default_pool = PacketPool()


def acquire_by_type(packet_type: int) -> ControlPacket | None:
    """Get a packet of ``packet_type`` from the shared pool."""
    return _default_pool.acquire(packet_type)


def release(packet: ControlPacket) -> None:
    """Return a packet to the shared pool."""
    _default_pool.release(packet)