"""
playqueue Session.

Wires a queue, its UI command handler and an optional playback driver
reporter together and manages their lifecycle.
"""

import logging
from pathlib import Path
from typing import Optional

from playqueue.config import Config, load_config, setup_logging
from playqueue.playback import (
    PlaybackQueue,
    QueueCommandHandler,
    StateReporter,
)
from playqueue.playback.state_reporter import SendCallback

logger = logging.getLogger(__name__)


class QueueSession:
    """
    One playback session.

    Each session owns an independent queue, created empty on start and
    cleared on stop.

    Usage:
        session = QueueSession(config, send_callback=driver.on_report)
        await session.start()
        session.handler.handle_command("add", {"item": {...}})
        await session.stop()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        send_callback: Optional[SendCallback] = None,
    ):
        """
        Initialize session.

        Args:
            config: Validated configuration (defaults if omitted)
            send_callback: Async callback receiving current-item reports
        """
        self._config = config or Config()
        self._send_callback = send_callback
        self._is_running = False

        # Components (initialized in start())
        self._queue: Optional[PlaybackQueue] = None
        self._handler: Optional[QueueCommandHandler] = None
        self._state_reporter: Optional[StateReporter] = None

    @classmethod
    def from_config_file(
        cls,
        config_path: Optional[Path] = None,
        overrides: Optional[dict] = None,
        send_callback: Optional[SendCallback] = None,
    ) -> "QueueSession":
        """
        Load configuration, set up logging and create a session.

        Raises:
            ConfigError: If configuration is invalid
        """
        config = load_config(config_path, overrides)
        setup_logging(config.logging.level)
        return cls(config, send_callback=send_callback)

    async def start(self) -> None:
        """Start the session with an empty queue."""
        if self._is_running:
            return

        logger.info("Starting queue session...")
        self._queue = PlaybackQueue.from_config(self._config)
        self._handler = QueueCommandHandler(self._queue)

        if self._send_callback is not None:
            self._state_reporter = StateReporter(self._queue, self._send_callback)
            await self._state_reporter.start()

        self._is_running = True
        logger.info(f"Queue session started (repeat: {self._queue.repeat_mode.value})")

    async def stop(self) -> None:
        """Stop the session and discard its queue."""
        if not self._is_running:
            return

        logger.info("Stopping queue session...")
        # Clear first so the driver is told playback ended
        if self._queue:
            self._queue.clear()

        if self._state_reporter:
            await self._state_reporter.stop()
            self._state_reporter = None

        self._queue = None
        self._handler = None
        self._is_running = False
        logger.info("Queue session stopped")

    @property
    def is_running(self) -> bool:
        """Whether the session has been started."""
        return self._is_running

    @property
    def config(self) -> Config:
        """Session configuration."""
        return self._config

    @property
    def queue(self) -> PlaybackQueue:
        """The session's queue."""
        if self._queue is None:
            raise RuntimeError("Queue session is not running")
        return self._queue

    @property
    def handler(self) -> QueueCommandHandler:
        """The session's UI command handler."""
        if self._handler is None:
            raise RuntimeError("Queue session is not running")
        return self._handler

    @property
    def state_reporter(self) -> Optional[StateReporter]:
        """The playback driver reporter, if a send callback was given."""
        return self._state_reporter
