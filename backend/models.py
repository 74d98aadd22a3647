from __future__ import annotations
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

Suit = Literal["♥","♦","♣","♠"]
GamePhase = Literal["setup", "playing", "paused", "finished"]

SUITS: List[Suit] = ["♥", "♦", "♣", "♠"]
RANKS: List[int] = list(range(2, 15))

SUIT_COLOR: Dict[Suit, Literal["red", "black"]] = {
    "♠": "black",
    "♣": "black",
    "♥": "red",
    "♦": "red",
}

RANK_SYMBOLS: Dict[int, str] = {
    **{rank: str(rank) for rank in range(2, 11)},
    11: "J",
    12: "Q",
    13: "K",
    14: "A",
}

RANK_IMAGE_CODES: Dict[int, str] = {
    **{rank: str(rank) for rank in range(2, 10)},
    10: "0",
    11: "J",
    12: "Q",
    13: "K",
    14: "A",
}

SUIT_IMAGE_CODES: Dict[Suit, str] = {
    "♠": "S",
    "♣": "C",
    "♥": "H",
    "♦": "D",
}

JOKER_GLYPH = "🃏"
DEFAULT_JOKER_REPETITIONS = 10


def _image_url(suit: Suit, rank: int) -> Optional[str]:
    suit_code = SUIT_IMAGE_CODES.get(suit)
    rank_code = RANK_IMAGE_CODES.get(rank)
    if not suit_code or not rank_code:
        return None
    return f"https://deckofcardsapi.com/static/img/{rank_code}{suit_code}.png"


def card_id(suit: Suit, rank: int) -> str:
    return f"c_{RANK_IMAGE_CODES[rank].lower()}{SUIT_IMAGE_CODES[suit].lower()}"


def joker_id(number: int) -> str:
    return f"joker_{number}"


def joker_label(identity: str) -> str:
    """``joker_2`` -> ``Joker 2``."""
    return identity.replace("_", " ").capitalize()


class Card(BaseModel):
    """A playing card or joker.

    Ids are unique within one deck and stable across resets (``c_0h`` is always
    the ten of hearts), so a history spanning a reshuffle can repeat an id.
    Key history entries by position, not by card id.
    """

    id: str
    suit: Optional[Suit] = None
    rank: Optional[int] = Field(default=None, ge=2, le=14)  # 11=J,12=Q,13=K,14=A
    joker_id: Optional[str] = Field(default=None, alias="jokerId")
    color: Optional[Literal["red", "black"]] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, value):
        if isinstance(value, dict):
            identity = value.get("jokerId") or value.get("joker_id")
            if identity:
                if value.get("id") is None:
                    value = {**value, "id": identity}
                return value
            suit = value.get("suit")
            rank = value.get("rank")
            if suit in SUIT_COLOR and value.get("color") is None:
                value = {**value, "color": SUIT_COLOR[suit]}
            if suit in SUIT_IMAGE_CODES and isinstance(rank, int) and rank in RANK_IMAGE_CODES:
                if value.get("imageUrl") is None and value.get("image_url") is None:
                    image = _image_url(suit, rank)
                    if image:
                        value = {**value, "imageUrl": image}
                if value.get("id") is None:
                    value = {**value, "id": card_id(suit, rank)}
        return value

    @model_validator(mode="after")
    def check_identity(self):
        if self.joker_id is None and (self.suit is None or self.rank is None):
            raise ValueError("Card needs either suit and rank or a joker id")
        if self.joker_id is not None and (self.suit is not None or self.rank is not None):
            raise ValueError("Joker cannot carry suit or rank")
        return self

    @classmethod
    def joker(cls, number: int) -> "Card":
        return cls(jokerId=joker_id(number))

    @property
    def is_joker(self) -> bool:
        return self.joker_id is not None

    @property
    def display_text(self) -> str:
        if self.is_joker:
            return JOKER_GLYPH
        return f"{RANK_SYMBOLS[self.rank]}{self.suit}"

    @property
    def exercise_count(self) -> int:
        if self.is_joker:
            return DEFAULT_JOKER_REPETITIONS
        return min(self.rank, 10)


class Exercise(BaseModel):
    id: str
    name: str
    description: str = ""
    is_custom: bool = Field(default=False, alias="isCustom")

    model_config = ConfigDict(populate_by_name=True)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Exercise):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)


class Player(BaseModel):
    id: str
    name: str
    is_active: bool = True
    current_card: Optional[Card] = None
    cards_drawn: List[Card] = Field(default_factory=list)
    processing_times: List[float] = Field(default_factory=list)
    card_drawn_at: Optional[float] = None

    @property
    def cards_completed(self) -> int:
        return len(self.processing_times)

    @property
    def total_processing_time(self) -> float:
        return sum(self.processing_times)

    @property
    def average_processing_time(self) -> Optional[float]:
        if not self.processing_times:
            return None
        return self.total_processing_time / len(self.processing_times)

    def clear_turns(self) -> None:
        self.current_card = None
        self.cards_drawn = []
        self.processing_times = []
        self.card_drawn_at = None


# ---------------------------------------------------------------------------
# Published snapshots
# ---------------------------------------------------------------------------
class TimerState(BaseModel):
    time_limit: int = Field(alias="timeLimit")
    remaining: int
    elapsed: int
    is_running: bool = Field(alias="isRunning")
    is_expired: bool = Field(alias="isExpired")
    formatted_time: str = Field(alias="formattedTime")
    formatted_time_limit: str = Field(alias="formattedTimeLimit")

    model_config = ConfigDict(populate_by_name=True)


class JokerAssignment(BaseModel):
    joker_id: str = Field(alias="jokerId")
    label: str
    exercise: Exercise
    repetitions: int

    model_config = ConfigDict(populate_by_name=True)


class ExerciseAssignments(BaseModel):
    suits: Dict[Suit, Exercise]
    jokers: List[JokerAssignment] = Field(default_factory=list)
    catalog: List[Exercise] = Field(default_factory=list)


class PlayerState(BaseModel):
    id: str
    name: str
    is_active: bool = Field(alias="isActive")
    current_card: Optional[Card] = Field(default=None, alias="currentCard")
    current_exercise: Optional[Exercise] = Field(default=None, alias="currentExercise")
    current_repetitions: int = Field(default=0, alias="currentRepetitions")
    cards_drawn: List[Card] = Field(default_factory=list, alias="cardsDrawn")
    processing_times: List[float] = Field(default_factory=list, alias="processingTimes")
    has_card_in_progress: bool = Field(default=False, alias="hasCardInProgress")

    model_config = ConfigDict(populate_by_name=True)


class PlayerSummary(BaseModel):
    player_id: str
    name: str
    cards_drawn: int
    cards_completed: int
    total_repetitions: int
    total_time: float
    average_time: Optional[float] = None
    fastest_time: Optional[float] = None


class SessionState(BaseModel):
    state: GamePhase
    end_reason: Optional[Literal["manual", "time_expired"]] = None
    current_player_id: Optional[str] = None
    deck_count: int
    deck_total: int
    drawn_count: int
    timer: TimerState
    players: List[PlayerState] = Field(default_factory=list)
    can_add_player: bool = True
    exercises: ExerciseAssignments
    summary: List[PlayerSummary] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
