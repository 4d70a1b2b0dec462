from dataclasses import dataclass, field
from typing import List, Literal, Optional

from .errors import StateError
from .rng import RandomSource

BET = 200
DEALER_STANDS_ON = 17
SUITS = ["♠", "♥", "♦", "♣"]
RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

Outcome = Literal["win", "lose", "push", "bust"]


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def to_dict(self) -> dict:
        return {"rank": self.rank, "suit": self.suit, "value": card_value(self)}


def card_value(card: Card) -> int:
    if card.rank == "A":
        return 11
    if card.rank in ("J", "Q", "K"):
        return 10
    return int(card.rank)


def hand_total(cards: List[Card]) -> int:
    """Blackjack total with aces counted as 11 and dropped to 1 while the hand is over 21."""
    total = sum(card_value(c) for c in cards)
    soft_aces = sum(1 for c in cards if c.rank == "A")
    while total > 21 and soft_aces:
        total -= 10
        soft_aces -= 1
    return total


def build_deck() -> List[Card]:
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def settle_payout(player_total: int, dealer_total: int, bet: int) -> tuple[Outcome, int]:
    """Amount credited back at showdown; the stake was already taken at deal time."""
    if player_total > 21:
        return "bust", 0
    if dealer_total > 21 or player_total > dealer_total:
        return "win", bet * 2
    if player_total == dealer_total:
        return "push", bet
    return "lose", 0


@dataclass
class BlackjackRound:
    bet: int
    deck: List[Card] = field(default_factory=list)
    player: List[Card] = field(default_factory=list)
    dealer: List[Card] = field(default_factory=list)
    active: bool = True
    outcome: Optional[Outcome] = None
    payout: int = 0

    @classmethod
    def deal(cls, rng: RandomSource, bet: int = BET) -> "BlackjackRound":
        deck = build_deck()
        rng.shuffle(deck)
        player = [deck.pop(), deck.pop()]
        dealer = [deck.pop(), deck.pop()]
        return cls(bet=bet, deck=deck, player=player, dealer=dealer)

    def _require_active(self) -> None:
        if not self.active:
            raise StateError("round not started")

    def hit(self) -> Card:
        self._require_active()
        card = self.deck.pop()
        self.player.append(card)
        if hand_total(self.player) > 21:
            self.active = False
            self.outcome = "bust"
            self.payout = 0
        return card

    def stand(self) -> int:
        self._require_active()
        while hand_total(self.dealer) < DEALER_STANDS_ON:
            self.dealer.append(self.deck.pop())
        self.outcome, self.payout = settle_payout(
            hand_total(self.player), hand_total(self.dealer), self.bet
        )
        self.active = False
        return self.payout

    def view(self) -> dict:
        state = {
            "active": self.active,
            "bet": self.bet,
            "player": [c.to_dict() for c in self.player],
            "playerTotal": hand_total(self.player),
        }
        if self.active:
            state["dealer"] = [self.dealer[0].to_dict()]
            state["dealerTotal"] = card_value(self.dealer[0])
        else:
            state["dealer"] = [c.to_dict() for c in self.dealer]
            state["dealerTotal"] = hand_total(self.dealer)
            state["outcome"] = self.outcome
            state["payout"] = self.payout
        return state
