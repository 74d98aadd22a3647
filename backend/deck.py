from __future__ import annotations

import logging
import random
from typing import List, Optional

from models import RANKS, SUITS, Card

logger = logging.getLogger(__name__)


def _make_deck(joker_count: int) -> List[Card]:
    deck: List[Card] = []
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(suit=suit, rank=rank))
    for number in range(1, joker_count + 1):
        deck.append(Card.joker(number))
    return deck


class Deck:
    """Live draw pile plus the history of drawn cards.

    Drawing from an empty pile refills and reshuffles it first, so the deck
    never runs dry during a game.
    """

    def __init__(self, joker_count: int = 2, rng: Optional[random.Random] = None):
        if not 0 <= joker_count <= 2:
            raise ValueError("joker_count must be between 0 and 2")
        self.joker_count = joker_count
        self._rng = rng or random.Random()
        self.cards: List[Card] = []
        self.drawn_cards: List[Card] = []
        self.reshuffle_count = 0
        self.reset()

    def reset(self):
        self.cards = _make_deck(self.joker_count)
        self.drawn_cards = []
        self.shuffle()

    def shuffle(self):
        self._rng.shuffle(self.cards)

    def draw_card(self) -> Optional[Card]:
        if not self.cards:
            logger.info("Deck exhausted after %s draws, reshuffling", len(self.drawn_cards))
            self.reset()
            self.reshuffle_count += 1
        if not self.cards:
            return None
        card = self.cards.pop(0)
        self.drawn_cards.append(card)
        return card

    @property
    def total_cards(self) -> int:
        return 52 + self.joker_count

    @property
    def remaining_count(self) -> int:
        return len(self.cards)

    @property
    def is_exhausted(self) -> bool:
        return not self.cards
