"""Action orchestration: rate guard, per-player session, ledger write-through.

Every state-changing step runs on a copy of the player's round. The copy
replaces the live round only after the ledger has accepted the new balance,
so a failed write leaves both the remote balance and the local round exactly
as they were before the action.
"""
import copy
import logging
from typing import Callable, Dict, Tuple

from . import blackjack, roulette, slots
from .blackjack import BlackjackRound
from .errors import InsufficientFunds, StateError, ValidationError
from .ledger import Ledger, Player
from .mines import MinesRound, validate_mine_count
from .ratelimit import RateGuard
from .rng import RandomSource
from .schemas import ActionRequest
from .sessions import PlayerSession, SessionManager

logger = logging.getLogger(__name__)

Handler = Callable[[PlayerSession, Player, ActionRequest], dict]


def validate_player_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("player name is required")
    return name


def validate_bet(bet) -> int:
    if bet is None:
        raise ValidationError("bet is required")
    if isinstance(bet, bool) or not isinstance(bet, int) or bet <= 0:
        raise ValidationError("bet must be a positive integer")
    return bet


def require_funds(player: Player, stake: int) -> None:
    if player.balance < stake:
        raise InsufficientFunds()


class GameEngine:
    def __init__(
        self,
        ledger: Ledger,
        sessions: SessionManager | None = None,
        rate_guard: RateGuard | None = None,
        rng: RandomSource | None = None,
        slots_config: slots.SlotsConfig = slots.DEFAULT_SLOTS,
        initial_balance: int = 1000,
    ):
        self.ledger = ledger
        self.sessions = sessions if sessions is not None else SessionManager()
        self.rate_guard = rate_guard if rate_guard is not None else RateGuard()
        self.rng = rng if rng is not None else RandomSource()
        self.slots_config = slots_config
        self.initial_balance = initial_balance
        self._routes: Dict[Tuple[str, str], Handler] = {
            ("slots", "spin"): self._slots_spin,
            ("roulette", "spin"): self._roulette_spin,
            ("blackjack", "start"): self._blackjack_start,
            ("blackjack", "hit"): self._blackjack_hit,
            ("blackjack", "stand"): self._blackjack_stand,
            ("mines", "start"): self._mines_start,
            ("mines", "reveal"): self._mines_reveal,
            ("mines", "cashout"): self._mines_cashout,
        }

    # -- players -------------------------------------------------------------

    def find_player(self, name) -> Player | None:
        name = validate_player_name(name)
        with self.sessions.lease(name):
            return self.ledger.find_by_name(name)

    def create_player(self, name) -> Player:
        name = validate_player_name(name)
        with self.sessions.lease(name):
            if self.ledger.find_by_name(name) is not None:
                raise ValidationError("player already exists")
            player = self.ledger.create(name, self.initial_balance)
        logger.info("Player created", extra={"player": name, "balance": player.balance})
        return player

    # -- actions -------------------------------------------------------------

    def handle(self, request: ActionRequest) -> dict:
        name = validate_player_name(request.playerName)
        self.rate_guard.check(name)
        game = (request.game or "").strip().lower()
        action = (request.action or "").strip().lower()
        if game in ("slots", "roulette") and not action:
            action = "spin"
        handler = self._routes.get((game, action))
        if handler is None:
            raise ValidationError(f"unknown game action: {game or '-'}/{action or '-'}")

        with self.sessions.lease(name) as session:
            player = self.ledger.find_by_name(name)
            if player is None:
                raise ValidationError("player not found")
            return handler(session, player, request)

    def _settle(self, player: Player, stake: int, payout: int, game: str, action: str) -> Player:
        """Apply stake and payout as one balance write; skip the write when nothing changes."""
        new_balance = player.balance - stake + payout
        if new_balance == player.balance:
            return player
        updated = self.ledger.update_balance(player.id, player.name, new_balance)
        logger.info(
            "Balance updated",
            extra={
                "player": player.name,
                "game": game,
                "action": action,
                "balance": updated.balance,
                "stake": stake,
                "payout": payout,
            },
        )
        return updated

    # -- stateless games ------------------------------------------------------

    def _slots_spin(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        cost = self.slots_config.cost
        require_funds(player, cost)
        outcome = slots.spin(self.rng, self.slots_config)
        updated = self._settle(player, cost, outcome.win, "slots", "spin")
        return {
            "balance": updated.balance,
            "result": {"cost": cost, "win": outcome.win, "tier": outcome.tier},
        }

    def _roulette_spin(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        require_funds(player, roulette.COST)
        outcome = roulette.spin(self.rng, request.pick)
        updated = self._settle(player, roulette.COST, outcome.win, "roulette", "spin")
        return {
            "balance": updated.balance,
            "result": {
                "cost": roulette.COST,
                "index": outcome.index,
                "number": outcome.number,
                "color": outcome.color,
                "pick": outcome.pick,
                "win": outcome.win,
            },
        }

    # -- blackjack ------------------------------------------------------------

    def _active_blackjack(self, session: PlayerSession) -> BlackjackRound:
        current = session.blackjack
        if current is None or not current.active:
            raise StateError("round not started")
        return copy.deepcopy(current)

    def _blackjack_start(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        require_funds(player, blackjack.BET)
        candidate = BlackjackRound.deal(self.rng, blackjack.BET)
        updated = self._settle(player, blackjack.BET, 0, "blackjack", "start")
        if session.blackjack is not None and session.blackjack.active:
            logger.info("Blackjack round replaced by a new deal", extra={"player": player.name})
        session.blackjack = candidate
        return {"balance": updated.balance, "state": candidate.view()}

    def _blackjack_hit(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        candidate = self._active_blackjack(session)
        candidate.hit()
        session.blackjack = candidate
        return {"balance": player.balance, "state": candidate.view()}

    def _blackjack_stand(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        candidate = self._active_blackjack(session)
        payout = candidate.stand()
        updated = self._settle(player, 0, payout, "blackjack", "stand")
        session.blackjack = candidate
        return {"balance": updated.balance, "state": candidate.view()}

    # -- mines ----------------------------------------------------------------

    def _active_mines(self, session: PlayerSession) -> MinesRound:
        current = session.mines
        if current is None or not current.active:
            raise StateError("round not started")
        return copy.deepcopy(current)

    def _mines_start(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        bet = validate_bet(request.bet)
        mine_count = validate_mine_count(request.mineCount)
        if session.mines is not None and session.mines.active:
            raise StateError("mines round already in progress")
        require_funds(player, bet)
        candidate = MinesRound.start(self.rng, bet, mine_count)
        updated = self._settle(player, bet, 0, "mines", "start")
        session.mines = candidate
        return {"balance": updated.balance, "state": candidate.view()}

    def _mines_reveal(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        candidate = self._active_mines(session)
        if request.cellIndex is None:
            raise ValidationError("cellIndex is required")
        outcome = candidate.reveal(request.cellIndex)
        updated = self._settle(player, 0, outcome.payout, "mines", "reveal")
        session.mines = candidate
        state = candidate.view()
        state["hitMine"] = outcome.mine
        state["cell"] = outcome.index
        if outcome.finished:
            state["payout"] = outcome.payout
        return {"balance": updated.balance, "state": state}

    def _mines_cashout(self, session: PlayerSession, player: Player, request: ActionRequest) -> dict:
        candidate = self._active_mines(session)
        payout = candidate.cashout()
        updated = self._settle(player, 0, payout, "mines", "cashout")
        session.mines = candidate
        state = candidate.view(disclose=False)
        state["payout"] = payout
        return {"balance": updated.balance, "state": state}
