# path: open-route-api/openroute/client/connectivity.py

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional
import asyncio
import logging
import time

logger = logging.getLogger(__name__)


Listener = Callable[[bool], None]
Probe = Callable[[], Awaitable[bool]]


class ConnectivityMonitor:
    """
    Observable connectivity state fed by a periodic probe.

    Going offline takes ``failure_threshold`` consecutive failed probes; one
    success brings it back. Listeners are called once per transition, never
    for a probe that leaves the state unchanged.
    """

    def __init__(
        self,
        probe: Probe,
        interval_s: float = 15.0,
        failure_threshold: int = 2,
        clock: Callable[[], float] = time.time,
    ):
        self.probe = probe
        self.interval_s = interval_s
        self.failure_threshold = failure_threshold
        self.clock = clock
        self.connected = True
        self.last_probe_at: Optional[float] = None
        self._failures = 0
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record_probe(self, ok: bool) -> bool:
        """Feed one probe result; returns True if the state changed."""
        self.last_probe_at = self.clock()
        if ok:
            self._failures = 0
            return self._set_connected(True)
        self._failures += 1
        if self._failures >= self.failure_threshold:
            return self._set_connected(False)
        return False

    def _set_connected(self, connected: bool) -> bool:
        if connected == self.connected:
            return False
        self.connected = connected
        logger.info("Connectivity changed: %s", "connected" if connected else "disconnected")
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception:
                logger.exception("Connectivity listener failed")
        return True

    async def poll_once(self) -> bool:
        try:
            ok = bool(await self.probe())
        except Exception as e:
            logger.debug("Probe raised: %s", e)
            ok = False
        return self.record_probe(ok)

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        stop = stop or asyncio.Event()
        while not stop.is_set():
            await self.poll_once()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass
