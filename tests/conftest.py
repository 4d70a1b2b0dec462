"""Pytest configuration shared across the test suite."""

import random
import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from luckybox.engine import GameEngine
from luckybox.errors import LedgerUnavailable
from luckybox.ledger import Ledger, Player
from luckybox.ratelimit import RateGuard
from luckybox.rng import RandomSource
from luckybox.schemas import ActionRequest
from luckybox.sessions import SessionManager


class FakeLedger(Ledger):
    """In-memory ledger recording every balance write."""

    def __init__(self, lookup_delay: float = 0.0) -> None:
        self._players: Dict[str, Player] = {}
        self._lock = threading.Lock()
        self.writes: List[tuple[str, int]] = []
        self.fail_writes = False
        self.fail_reads = False
        self.lookup_delay = lookup_delay

    def add(self, name: str, balance: int) -> Player:
        player = Player(id=str(len(self._players) + 1), name=name, balance=balance)
        self._players[name] = player
        return player

    def balance(self, name: str) -> int:
        return self._players[name].balance

    def find_by_name(self, name: str) -> Optional[Player]:
        if self.fail_reads:
            raise LedgerUnavailable("ledger request failed: connection refused")
        if self.lookup_delay:
            time.sleep(self.lookup_delay)
        with self._lock:
            return self._players.get(name)

    def create(self, name: str, initial_balance: int) -> Player:
        with self._lock:
            return self.add(name, initial_balance)

    def update_balance(self, player_id: str, name: str, new_balance: int) -> Player:
        if self.fail_writes:
            raise LedgerUnavailable("ledger returned HTTP 503")
        with self._lock:
            player = Player(id=player_id, name=name, balance=new_balance)
            self._players[name] = player
            self.writes.append((name, new_balance))
            return player


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def action(name: str = "alice", **fields) -> ActionRequest:
    return ActionRequest(playerName=name, **fields)


@pytest.fixture
def ledger() -> FakeLedger:
    fake = FakeLedger()
    fake.add("alice", 1000)
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> RandomSource:
    return RandomSource(random.Random(20251019))


@pytest.fixture
def engine(ledger: FakeLedger, rng: RandomSource) -> GameEngine:
    # generous limit so scenario tests never trip the rate guard
    return GameEngine(
        ledger=ledger,
        sessions=SessionManager(),
        rate_guard=RateGuard(limit=10_000),
        rng=rng,
    )
