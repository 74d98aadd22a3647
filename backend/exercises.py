from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from models import (
    DEFAULT_JOKER_REPETITIONS,
    SUITS,
    Card,
    Exercise,
    ExerciseAssignments,
    JokerAssignment,
    Suit,
    joker_id,
    joker_label,
)

logger = logging.getLogger(__name__)

BUILTIN_EXERCISES: List[Exercise] = [
    Exercise(id="ex_push_ups", name="Push-ups", description="Standard push-ups"),
    Exercise(id="ex_squats", name="Squats", description="Air squats"),
    Exercise(id="ex_burpees", name="Burpees", description="Full burpees"),
    Exercise(id="ex_mountain_climbers", name="Mountain Climbers", description="Mountain climber reps"),
    Exercise(id="ex_jumping_jacks", name="Jumping Jacks", description="Jumping jacks"),
]

_BUILTIN_BY_ID: Dict[str, Exercise] = {exercise.id: exercise for exercise in BUILTIN_EXERCISES}

# Built-in exercise per slot; also the fallback when a custom exercise goes away.
DEFAULT_SUIT_EXERCISES: Dict[Suit, str] = {
    "♥": "ex_push_ups",
    "♦": "ex_squats",
    "♣": "ex_burpees",
    "♠": "ex_mountain_climbers",
}
DEFAULT_JOKER_EXERCISE = "ex_jumping_jacks"


class ExerciseCatalog:
    """Built-in and custom exercises plus the suit/joker assignment table."""

    def __init__(self, joker_count: int = 2, joker_repetitions: int = DEFAULT_JOKER_REPETITIONS):
        self.joker_ids: List[str] = [joker_id(n) for n in range(1, joker_count + 1)]
        self.joker_repetitions = joker_repetitions
        self.custom_exercises: List[Exercise] = []
        self.exercises: List[Exercise] = list(BUILTIN_EXERCISES)
        self.suit_exercises: Dict[Suit, Exercise] = {}
        self.joker_exercises: Dict[str, Exercise] = {}
        self.joker_overrides: Dict[str, int] = {}
        self.reset_to_defaults()

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------
    def reset_to_defaults(self):
        self.suit_exercises = {suit: _BUILTIN_BY_ID[DEFAULT_SUIT_EXERCISES[suit]] for suit in SUITS}
        self.joker_exercises = {jid: _BUILTIN_BY_ID[DEFAULT_JOKER_EXERCISE] for jid in self.joker_ids}
        self.joker_overrides = {}

    def set_exercise(self, suit: Suit, exercise: Exercise):
        if suit not in SUITS:
            logger.debug("Ignoring assignment for unknown suit %r", suit)
            return
        self.suit_exercises[suit] = exercise

    def set_joker_exercise(self, identity: str, exercise: Exercise, repetitions: Optional[int] = None):
        if identity not in self.joker_exercises:
            logger.debug("Ignoring assignment for unknown joker %r", identity)
            return
        self.joker_exercises[identity] = exercise
        if repetitions is not None:
            if repetitions < 1:
                logger.warning("Joker repetitions %s below 1, keeping %s", repetitions, self.repetitions_for_joker(identity))
                return
            self.joker_overrides[identity] = repetitions

    def get_exercise(self, card: Card) -> Optional[Exercise]:
        if card.is_joker:
            return self.joker_exercises.get(card.joker_id)
        if card.suit is None:
            return None
        return self.suit_exercises.get(card.suit)

    def repetitions_for_joker(self, identity: str) -> int:
        return self.joker_overrides.get(identity, self.joker_repetitions)

    def repetitions_for(self, card: Card) -> int:
        if card.is_joker:
            return self.repetitions_for_joker(card.joker_id)
        return card.exercise_count

    # ------------------------------------------------------------------
    # Custom exercises
    # ------------------------------------------------------------------
    def _rebuild_catalog(self):
        self.exercises = list(BUILTIN_EXERCISES) + list(self.custom_exercises)

    def find(self, exercise_id: str) -> Optional[Exercise]:
        return next((e for e in self.exercises if e.id == exercise_id), None)

    def add_custom_exercise(self, name: str, description: str = "") -> Exercise:
        exercise = Exercise(
            id=f"custom_{uuid.uuid4().hex[:8]}",
            name=name,
            description=description,
            is_custom=True,
        )
        self.custom_exercises.append(exercise)
        self._rebuild_catalog()
        logger.info("Custom exercise %s added (%s)", exercise.id, name)
        return exercise

    def remove_custom_exercise(self, exercise: Exercise):
        before = len(self.custom_exercises)
        self.custom_exercises = [e for e in self.custom_exercises if e.id != exercise.id]
        if len(self.custom_exercises) == before:
            logger.debug("Custom exercise %s not found", exercise.id)
            return
        self._rebuild_catalog()

        for suit, assigned in self.suit_exercises.items():
            if assigned.id == exercise.id:
                self.suit_exercises[suit] = _BUILTIN_BY_ID[DEFAULT_SUIT_EXERCISES[suit]]
        for identity, assigned in self.joker_exercises.items():
            if assigned.id == exercise.id:
                self.joker_exercises[identity] = _BUILTIN_BY_ID[DEFAULT_JOKER_EXERCISE]

    def update_custom_exercise(self, exercise: Exercise, name: str, description: str):
        target = next((e for e in self.custom_exercises if e.id == exercise.id), None)
        if target is None:
            return
        target.name = name
        target.description = description
        self._rebuild_catalog()
        for suit, assigned in self.suit_exercises.items():
            if assigned.id == target.id:
                self.suit_exercises[suit] = target
        for identity, assigned in self.joker_exercises.items():
            if assigned.id == target.id:
                self.joker_exercises[identity] = target

    def to_state(self) -> ExerciseAssignments:
        return ExerciseAssignments(
            suits={suit: exercise.model_copy() for suit, exercise in self.suit_exercises.items()},
            jokers=[
                JokerAssignment(
                    jokerId=identity,
                    label=joker_label(identity),
                    exercise=exercise.model_copy(),
                    repetitions=self.repetitions_for_joker(identity),
                )
                for identity, exercise in self.joker_exercises.items()
            ],
            catalog=[exercise.model_copy() for exercise in self.exercises],
        )
