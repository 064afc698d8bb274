"""
State reporter for playback drivers.

Forwards current-leaf changes from the queue to an async send callback.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable, Optional

from .queue import ChangeReason, CurrentChange, PlaybackQueue

logger = logging.getLogger(__name__)

# Seconds to wait for pending reports when stopping
STOP_DRAIN_TIMEOUT = 2.0


@dataclass
class CurrentItemReport:
    """
    Current item state for reporting to a playback driver.

    `reason` is None for reports requested with `report_now()`.
    """

    current_id: Optional[Hashable]
    current_metadata: Any
    previous_id: Optional[Hashable]
    reason: Optional[ChangeReason]
    queue_version_major: int
    queue_version_minor: int

    @classmethod
    def from_change(cls, change: CurrentChange) -> "CurrentItemReport":
        """Build a report from a queue change notification."""
        return cls(
            current_id=change.current.item_id if change.current else None,
            current_metadata=change.current.metadata if change.current else None,
            previous_id=change.previous.item_id if change.previous else None,
            reason=change.reason,
            queue_version_major=change.version.major,
            queue_version_minor=change.version.minor,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "currentId": self.current_id,
            "currentMetadata": self.current_metadata,
            "previousId": self.previous_id,
            "reason": self.reason.value if self.reason else None,
            "queueVersion": {
                "major": self.queue_version_major,
                "minor": self.queue_version_minor,
            },
        }


# Type alias for send callback
SendCallback = Callable[[CurrentItemReport], Awaitable[None]]


class StateReporter:
    """
    Manages current-item reporting to a playback driver.

    Queue listeners run synchronously inside whichever thread mutated the
    queue; changes are handed to the event loop and sent in order.
    """

    def __init__(self, queue: PlaybackQueue, send_callback: SendCallback):
        """
        Initialize state reporter.

        Args:
            queue: Queue to observe
            send_callback: Async callback to deliver reports
        """
        self._queue = queue
        self._send_callback = send_callback

        self._is_running = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Optional[asyncio.Queue[CurrentChange]] = None
        self._dispatch_task: Optional[asyncio.Task[None]] = None

    @property
    def is_running(self) -> bool:
        """Whether the reporter is forwarding changes."""
        return self._is_running

    async def start(self) -> None:
        """Start forwarding queue changes."""
        if self._is_running:
            return

        self._loop = asyncio.get_running_loop()
        self._pending = asyncio.Queue()
        self._is_running = True
        self._queue.add_current_listener(self._on_current_change)
        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        logger.info("StateReporter started")

    async def stop(self) -> None:
        """
        Stop forwarding queue changes.

        Changes already raised by the queue are delivered before the
        dispatch task is cancelled.
        """
        self._queue.remove_current_listener(self._on_current_change)

        if self._pending is not None and self._dispatch_task is not None:
            # Let changes handed over with call_soon_threadsafe reach the queue
            await asyncio.sleep(0)
            try:
                await asyncio.wait_for(self._pending.join(), timeout=STOP_DRAIN_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Dropping {self._pending.qsize()} undelivered state reports on stop"
                )

        self._is_running = False
        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None

        logger.info("StateReporter stopped")

    async def report_now(self) -> None:
        """Send the current state immediately."""
        leaf = self._queue.current()
        version = self._queue.version
        report = CurrentItemReport(
            current_id=leaf.item_id if leaf else None,
            current_metadata=leaf.metadata if leaf else None,
            previous_id=None,
            reason=None,
            queue_version_major=version.major,
            queue_version_minor=version.minor,
        )
        await self._send(report)

    def _on_current_change(self, change: CurrentChange) -> None:
        """Queue listener: hand the change to the event loop."""
        if not self._is_running or self._loop is None or self._pending is None:
            return
        self._loop.call_soon_threadsafe(self._pending.put_nowait, change)

    async def _dispatch_loop(self) -> None:
        """Deliver pending changes in order."""
        assert self._pending is not None
        while self._is_running:
            try:
                change = await self._pending.get()
            except asyncio.CancelledError:
                break
            try:
                await self._send(CurrentItemReport.from_change(change))
            finally:
                self._pending.task_done()

    async def _send(self, report: CurrentItemReport) -> None:
        try:
            await self._send_callback(report)
            logger.debug(f"Reported current item {report.current_id!r}")
        except Exception as e:
            logger.error(f"Failed to send state report: {e}", exc_info=True)
