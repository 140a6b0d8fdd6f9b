"""Single-slot transient notifications"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 2.8


@dataclass
class Notification:
    """Message currently held by the channel"""
    message: str = ""
    visible: bool = False


class Notifier:
    """
    Shows one message at a time and hides it after a delay.

    Posting while a message is visible replaces it and restarts the timer.
    """

    def __init__(
        self,
        default_duration: float = DEFAULT_DURATION,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.default_duration = default_duration
        self.current = Notification()
        self._loop = loop
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def message(self) -> str:
        return self.current.message

    @property
    def visible(self) -> bool:
        return self.current.visible

    def post(self, message: str, duration: Optional[float] = None) -> None:
        """Show a message, replacing any visible one"""
        self._cancel_timer()
        self.current = Notification(message=message, visible=True)
        logger.debug(f"Notification posted: {message}")

        delay = self.default_duration if duration is None else duration
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self.dismiss)

    def dismiss(self) -> None:
        """Hide the current message, keeping its text"""
        self._cancel_timer()
        self.current = Notification(message=self.current.message, visible=False)

    def close(self) -> None:
        """Cancel any pending timer"""
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
