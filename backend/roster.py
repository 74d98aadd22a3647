from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from models import Card, Player

logger = logging.getLogger(__name__)

MAX_PLAYERS = 4


class Roster:
    def __init__(self):
        self.players: List[Player] = []
        self.current_player_index: int = 0

    def add_player(self, name: str) -> bool:
        if len(self.players) >= MAX_PLAYERS:
            logger.debug("Roster full, rejecting player %r", name)
            return False
        player = Player(id=str(uuid.uuid4())[:8], name=name)
        self.players.append(player)
        logger.info("Player %s (%s) joined, %s/%s", player.id, name, len(self.players), MAX_PLAYERS)
        return True

    def remove_player(self, player_id: str):
        index = self._index(player_id)
        if index is None:
            logger.debug("Unknown player %s, nothing removed", player_id)
            return
        self.players.pop(index)
        logger.info("Player %s left", player_id)
        if not self.players:
            self.current_player_index = 0
        elif self.current_player_index >= len(self.players):
            self.current_player_index = len(self.players) - 1

    def _index(self, player_id: str) -> Optional[int]:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return None

    def get(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------
    def next_player(self):
        if not self.players:
            return
        self.current_player_index = (self.current_player_index + 1) % len(self.players)

    def select_player(self, player_id: str):
        index = self._index(player_id)
        if index is None:
            logger.debug("Cannot select unknown player %s", player_id)
            return
        self.current_player_index = index

    @property
    def current_player(self) -> Optional[Player]:
        if not self.players or self.current_player_index >= len(self.players):
            return None
        return self.players[self.current_player_index]

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------
    def set_current_card(self, player_id: str, card: Optional[Card]):
        player = self.get(player_id)
        if player is None:
            return
        player.current_card = card
        if card is not None:
            player.cards_drawn.append(card)

    def set_player_active(self, player_id: str, is_active: bool):
        player = self.get(player_id)
        if player is not None:
            player.is_active = is_active

    def reset_turns(self):
        self.current_player_index = 0
        for player in self.players:
            player.clear_turns()

    def clear(self):
        self.players = []
        self.current_player_index = 0

    @property
    def has_players(self) -> bool:
        return bool(self.players)

    @property
    def can_add_player(self) -> bool:
        return len(self.players) < MAX_PLAYERS
