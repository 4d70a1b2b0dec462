import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from cachetools import TTLCache

from .errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass
class RateWindow:
    window_start: float
    count: int = 0


class RateGuard:
    """Per-player sliding window: at most ``limit`` actions per ``window_ms``.

    A rejected action still counts toward the window, so a client hammering
    the endpoint stays blocked until it backs off for a full window.
    """

    def __init__(
        self,
        limit: int = 15,
        window_ms: int = 2000,
        clock: Callable[[], float] = time.monotonic,
        max_players: int = 100_000,
    ):
        self.limit = limit
        self.window = window_ms / 1000.0
        self._clock = clock
        self._lock = threading.Lock()
        # A window idle for longer than its own span would be reset anyway.
        self._windows: TTLCache[str, RateWindow] = TTLCache(
            maxsize=max_players, ttl=self.window * 2, timer=clock
        )

    def check(self, player: str) -> int:
        """Count one action for ``player``; raise :class:`RateLimited` past the limit."""
        with self._lock:
            now = self._clock()
            window = self._windows.get(player)
            if window is None or now - window.window_start > self.window:
                window = RateWindow(window_start=now)
            window.count += 1
            self._windows[player] = window
            count = window.count
        if count > self.limit:
            logger.warning(
                "Action rejected by rate guard",
                extra={"player": player, "error_type": "RateLimited", "count": count},
            )
            raise RateLimited()
        return count
