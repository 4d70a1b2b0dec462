import threading
import time

from luckybox.mines import MinesRound
from luckybox.sessions import SessionManager


def open_mines_round() -> MinesRound:
    return MinesRound(bet=10, mine_count=1, mines={0})


def test_lease_returns_same_session_per_player():
    manager = SessionManager()
    with manager.lease("alice") as first:
        first.mines = open_mines_round()
    with manager.lease("alice") as second:
        assert second is first
        assert second.mines is not None
    with manager.lease("bob") as other:
        assert other is not first
    assert len(manager) == 1


def test_session_without_rounds_is_not_kept():
    manager = SessionManager()
    with manager.lease("ghost") as session:
        assert not session.holds_rounds
        assert len(manager) == 1
    assert manager.peek("ghost") is None
    assert len(manager) == 0


def test_lookups_for_other_names_do_not_evict_open_rounds(clock):
    manager = SessionManager(maxsize=2, ttl=100, timer=clock)
    with manager.lease("alice") as session:
        session.mines = open_mines_round()
    for n in range(50):
        with manager.lease(f"junk{n}"):
            pass
    kept = manager.peek("alice")
    assert kept is not None
    assert kept.mines.active


def test_lease_serializes_one_player():
    manager = SessionManager()
    inside = []
    overlaps = []

    def work():
        with manager.lease("alice"):
            if inside:
                overlaps.append(True)
            inside.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert overlaps == []


def test_different_players_do_not_block_each_other():
    manager = SessionManager()
    entered = threading.Event()
    release = threading.Event()

    def hold_alice():
        with manager.lease("alice"):
            entered.set()
            release.wait(2)

    holder = threading.Thread(target=hold_alice)
    holder.start()
    assert entered.wait(2)
    started = time.monotonic()
    with manager.lease("bob"):
        pass
    assert time.monotonic() - started < 0.5
    release.set()
    holder.join()


def test_idle_sessions_are_bounded(clock):
    manager = SessionManager(maxsize=2, ttl=100, timer=clock)
    for name in ("a", "b", "c"):
        with manager.lease(name) as session:
            session.mines = open_mines_round()
    assert manager.peek("a") is None
    assert manager.peek("b") is not None
    assert manager.peek("c") is not None


def test_leased_session_is_never_evicted(clock):
    manager = SessionManager(maxsize=1, ttl=100, timer=clock)
    with manager.lease("a") as held:
        held.mines = open_mines_round()
        for name in ("b", "c", "d"):
            with manager.lease(name) as session:
                session.mines = open_mines_round()
        clock.advance(500)
        assert manager.peek("a") is held
    assert manager.peek("a") is held


def test_idle_sessions_expire(clock):
    manager = SessionManager(maxsize=10, ttl=100, timer=clock)
    with manager.lease("a") as session:
        session.mines = open_mines_round()
    clock.advance(50)
    assert manager.peek("a") is not None
    clock.advance(51)
    assert manager.peek("a") is None
