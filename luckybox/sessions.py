import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from cachetools import TTLCache

from .blackjack import BlackjackRound
from .mines import MinesRound

logger = logging.getLogger(__name__)


@dataclass
class PlayerSession:
    name: str
    blackjack: Optional[BlackjackRound] = None
    mines: Optional[MinesRound] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    leases: int = 0

    @property
    def holds_rounds(self) -> bool:
        return self.blackjack is not None or self.mines is not None


class _SessionCache(TTLCache):
    def popitem(self):
        name, session = super().popitem()
        _log_dropped(name, session, "evicted")
        return name, session

    def expire(self, time=None):
        expired = super().expire(time)
        for name, session in expired or ():
            _log_dropped(name, session, "expired")
        return expired


def _log_dropped(name: str, session: PlayerSession, reason: str) -> None:
    open_rounds = [
        game
        for game, state in (("blackjack", session.blackjack), ("mines", session.mines))
        if state is not None and state.active
    ]
    if open_rounds:
        logger.warning(
            "Session dropped with open rounds",
            extra={"player": name, "reason": reason, "rounds": open_rounds},
        )


class SessionManager:
    """Owns every player's in-memory round state.

    ``lease(name)`` hands out the player's session with that player's lock
    held, so actions for one player run one at a time while different players
    proceed in parallel. Idle sessions sit in a bounded TTL cache; a leased
    session is pinned outside the cache until its last lease is returned.
    A session that holds no round is dropped on return rather than cached, so
    lookups for names without games never push real rounds out of the cache.
    """

    def __init__(self, maxsize: int = 10000, ttl: float = 3600, timer=None):
        self.maxsize = maxsize
        self.ttl = ttl
        self._registry_lock = threading.Lock()
        kwargs = {"timer": timer} if timer is not None else {}
        self._idle: TTLCache[str, PlayerSession] = _SessionCache(maxsize=maxsize, ttl=ttl, **kwargs)
        self._pinned: Dict[str, PlayerSession] = {}

    def _checkout(self, name: str) -> PlayerSession:
        with self._registry_lock:
            session = self._pinned.get(name)
            if session is None:
                session = self._idle.pop(name, None) or PlayerSession(name=name)
                self._pinned[name] = session
            session.leases += 1
            return session

    def _checkin(self, session: PlayerSession) -> None:
        with self._registry_lock:
            session.leases -= 1
            if session.leases == 0:
                self._pinned.pop(session.name, None)
                if session.holds_rounds:
                    self._idle[session.name] = session

    @contextmanager
    def lease(self, name: str) -> Iterator[PlayerSession]:
        session = self._checkout(name)
        try:
            with session.lock:
                yield session
        finally:
            self._checkin(session)

    def peek(self, name: str) -> Optional[PlayerSession]:
        """Return the session without locking it; for inspection only."""
        with self._registry_lock:
            return self._pinned.get(name) or self._idle.get(name)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._pinned) + len(self._idle)
