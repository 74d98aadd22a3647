from __future__ import annotations

import logging
import time
from typing import Callable, List, Literal, Optional

from app.settings import Settings, get_settings
from deck import Deck
from exercises import ExerciseCatalog
from models import (
    Card,
    Exercise,
    GamePhase,
    Player,
    PlayerState,
    PlayerSummary,
    SessionState,
    Suit,
)
from roster import Roster
from timer import GameTimer

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class GameSession:
    """One game from setup to finish.

    Commands issued in the wrong phase, or naming an unknown player, are
    ignored. Every accepted command publishes a fresh ``SessionState`` to
    subscribers.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        deck: Optional[Deck] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self.deck = deck or Deck(joker_count=self.settings.joker_count)
        self.roster = Roster()
        self.exercises = ExerciseCatalog(
            joker_count=self.deck.joker_count,
            joker_repetitions=self.settings.joker_repetitions,
        )
        self.timer = GameTimer(self.settings.default_time_limit, interval=self.settings.tick_interval)
        self.state: GamePhase = "setup"
        self.end_reason: Optional[Literal["manual", "time_expired"]] = None

        self._listeners: List[StateListener] = []
        self.timer.on_tick(self._on_timer_tick)
        self.timer.on_expired(self._on_timer_expired)

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------
    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self):
        if not self._listeners:
            return
        snapshot = self.to_state()
        for listener in list(self._listeners):
            listener(snapshot)

    def _on_timer_tick(self, _timer: GameTimer):
        self._publish()

    def _on_timer_expired(self, _timer: GameTimer):
        if self.state != "playing":
            return
        logger.info("Time limit reached, ending game")
        self._finish("time_expired")

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------
    def add_player(self, name: str) -> bool:
        if self.state in ("playing", "paused"):
            logger.debug("Cannot add player %r while game is %s", name, self.state)
            return False
        added = self.roster.add_player(name)
        if added:
            self._publish()
        return added

    def remove_player(self, player_id: str):
        if self.roster.get(player_id) is None:
            logger.debug("Unknown player %s", player_id)
            return
        self.roster.remove_player(player_id)
        if not self.roster.has_players and self.state in ("playing", "paused"):
            self._finish("manual")
            return
        self._publish()

    def set_player_active(self, player_id: str, is_active: bool):
        if self.roster.get(player_id) is None:
            return
        self.roster.set_player_active(player_id, is_active)
        self._publish()

    def next_player(self):
        if not self.roster.has_players:
            return
        self.roster.next_player()
        self._publish()

    def select_player(self, player_id: str):
        if self.roster.get(player_id) is None:
            logger.debug("Cannot select unknown player %s", player_id)
            return
        self.roster.select_player(player_id)
        self._publish()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start_game(self):
        if not self.roster.has_players:
            logger.debug("Cannot start without players")
            return
        if self.state not in ("setup", "finished"):
            logger.debug("Game already %s", self.state)
            return
        self.deck.reset()
        self.roster.reset_turns()
        self.timer.reset()
        self.end_reason = None
        if self.timer.time_limit > 0:
            self.timer.start()
        self.state = "playing"
        logger.info(
            "Game started with %s players, limit=%s",
            len(self.roster.players),
            self.timer.formatted_time_limit,
        )
        self._publish()

    def pause_game(self):
        if self.state != "playing":
            return
        self.timer.pause()
        self.state = "paused"
        logger.info("Game paused at %s", self.timer.formatted_time)
        self._publish()

    def resume_game(self):
        if self.state != "paused":
            return
        if self.timer.time_limit > 0:
            self.timer.start()
        self.state = "playing"
        logger.info("Game resumed at %s", self.timer.formatted_time)
        self._publish()

    def end_game(self):
        if self.state not in ("playing", "paused"):
            return
        self._finish("manual")

    def _finish(self, reason: Literal["manual", "time_expired"]):
        now = self.clock()
        for player in self.roster.players:
            if player.current_card is not None and player.card_drawn_at is not None:
                self._record_processing_time(player, now)
        self.timer.pause()
        self.state = "finished"
        self.end_reason = reason
        logger.info("Game finished (%s)", reason)
        self._publish()

    def reset_game(self):
        self.roster.clear()
        self.deck.reset()
        self.timer.reset()
        self.state = "setup"
        self.end_reason = None
        logger.info("Game reset")
        self._publish()

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------
    def _record_processing_time(self, player: Player, now: float):
        player.processing_times.append(max(0.0, now - player.card_drawn_at))
        player.card_drawn_at = None

    def draw_card_for_player(self, player_id: str) -> Optional[Card]:
        if self.state != "playing":
            logger.debug("Ignoring draw for %s while %s", player_id, self.state)
            return None
        player = self.roster.get(player_id)
        if player is None or not player.is_active:
            logger.debug("Ignoring draw for unknown or inactive player %s", player_id)
            return None

        now = self.clock()
        if player.current_card is not None and player.card_drawn_at is not None:
            self._record_processing_time(player, now)

        card = self.deck.draw_card()
        if card is None:
            return None
        self.roster.set_current_card(player_id, card)
        player.card_drawn_at = now
        if self.deck.is_exhausted:
            logger.info("Last card drawn, reshuffling deck")
            self.deck.reset()
        self._publish()
        return card

    def complete_card(self, player_id: str):
        if self.state != "playing":
            return
        player = self.roster.get(player_id)
        if player is None or player.current_card is None:
            return
        if player.card_drawn_at is not None:
            self._record_processing_time(player, self.clock())
        player.current_card = None
        current = self.roster.current_player
        if current is not None and current.id == player_id:
            self.roster.next_player()
        self._publish()

    def skip_card(self, player_id: str):
        self.complete_card(player_id)

    # ------------------------------------------------------------------
    # Timer and exercise configuration
    # ------------------------------------------------------------------
    def set_time_limit(self, seconds: int):
        self.timer.set_time_limit(seconds)
        if self.state == "playing" and self.timer.time_limit > 0 and not self.timer.is_running:
            self.timer.start()
        self._publish()

    def set_exercise(self, suit: Suit, exercise: Exercise):
        self.exercises.set_exercise(suit, exercise)
        self._publish()

    def set_joker_exercise(self, joker_id: str, exercise: Exercise, repetitions: Optional[int] = None):
        self.exercises.set_joker_exercise(joker_id, exercise, repetitions)
        self._publish()

    def reset_exercises(self):
        self.exercises.reset_to_defaults()
        self._publish()

    def add_custom_exercise(self, name: str, description: str = "") -> Exercise:
        exercise = self.exercises.add_custom_exercise(name, description)
        self._publish()
        return exercise

    def remove_custom_exercise(self, exercise: Exercise):
        self.exercises.remove_custom_exercise(exercise)
        self._publish()

    def update_custom_exercise(self, exercise: Exercise, name: str, description: str):
        self.exercises.update_custom_exercise(exercise, name, description)
        self._publish()

    def get_exercise(self, card: Card) -> Optional[Exercise]:
        return self.exercises.get_exercise(card)

    def repetitions_for(self, card: Card) -> int:
        return self.exercises.repetitions_for(card)

    def current_exercise(self, player_id: str) -> Optional[Exercise]:
        player = self.roster.get(player_id)
        if player is None or player.current_card is None:
            return None
        return self.get_exercise(player.current_card)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def _player_state(self, player: Player) -> PlayerState:
        card = player.current_card
        exercise = self.get_exercise(card) if card else None
        return PlayerState(
            id=player.id,
            name=player.name,
            isActive=player.is_active,
            currentCard=card,
            currentExercise=exercise.model_copy() if exercise else None,
            currentRepetitions=self.repetitions_for(card) if card else 0,
            cardsDrawn=list(player.cards_drawn),
            processingTimes=list(player.processing_times),
            hasCardInProgress=player.card_drawn_at is not None,
        )

    def _player_summary(self, player: Player) -> PlayerSummary:
        times = player.processing_times
        return PlayerSummary(
            player_id=player.id,
            name=player.name,
            cards_drawn=len(player.cards_drawn),
            cards_completed=player.cards_completed,
            total_repetitions=sum(self.repetitions_for(card) for card in player.cards_drawn),
            total_time=player.total_processing_time,
            average_time=player.average_processing_time,
            fastest_time=min(times) if times else None,
        )

    def player_summaries(self) -> List[PlayerSummary]:
        return [self._player_summary(player) for player in self.roster.players]

    def to_state(self) -> SessionState:
        return SessionState(
            state=self.state,
            end_reason=self.end_reason,
            current_player_id=self.roster.current_player.id if self.roster.current_player else None,
            deck_count=self.deck.remaining_count,
            deck_total=self.deck.total_cards,
            drawn_count=len(self.deck.drawn_cards),
            timer=self.timer.to_state(),
            players=[self._player_state(player) for player in self.roster.players],
            can_add_player=self.roster.can_add_player and self.state not in ("playing", "paused"),
            exercises=self.exercises.to_state(),
            summary=self.player_summaries() if self.state == "finished" else [],
        )

