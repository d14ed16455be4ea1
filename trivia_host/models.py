"""Frozen dataclasses and enums for the trivia session engine. No logic, no deps."""

from dataclasses import dataclass, field
from enum import Enum


class Phase(str, Enum):
    WAITING = "waiting"
    READING = "reading"
    MEDIA_PLAYBACK = "media_playback"
    DISCUSSION = "discussion"
    ANSWER = "answer"
    FEEDBACK = "feedback"
    PAUSED = "paused"
    COMPLETED = "completed"


class DiscussionPhase(str, Enum):
    PREPARATION = "preparation"
    DISCUSSION = "discussion"
    ANALYSIS = "analysis"
    ANSWER = "answer"
    COMPLETE = "complete"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class ResultsTier(str, Enum):
    OUTSTANDING = "outstanding"
    GREAT = "great"
    GOOD = "good"
    NICE_TRY = "nice try"
    DONT_GIVE_UP = "don't give up"


@dataclass(frozen=True)
class QuestionItem:
    question: str
    answer: str
    difficulty: Difficulty | None = None
    topic: str | None = None


@dataclass(frozen=True)
class Round:
    question: str
    correct_answer: str
    team_answer: str = ""
    is_correct: bool = False
    player_who_answered: str = ""
    discussion_notes: str = ""


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.WAITING
    current_round_index: int = 0
    team_answer: str = ""
    discussion_notes: str = ""
    selected_player: str = ""
    timer_seconds: int = 0
    is_timer_running: bool = False
    session_start_time: float | None = None
    round_start_time: float | None = None
    round_time: int = 0                    # configured discussion length
    reading_time_seconds: int = 0
    media_playback_complete: bool = False
    previous_phase: Phase | None = None    # set while paused


@dataclass(frozen=True)
class SpeakerContribution:
    word_count: int
    key_points: tuple[str, ...] = ()
    confidence: float = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    correct_answer_mentioned: bool
    best_guesses: tuple[str, ...]
    confidence: float
    analysis: str
    suggestions: tuple[str, ...] = ()
    key_topics: tuple[str, ...] = ()
    speaker_contributions: dict[str, SpeakerContribution] = field(default_factory=dict)
    source: str = "local"                  # "local" or "oracle"


@dataclass(frozen=True)
class DiscussionState:
    phase: DiscussionPhase = DiscussionPhase.PREPARATION
    time_remaining: int = 0
    total_time: int = 0
    is_active: bool = False
    notes: str = ""
    audio_transcript: str = ""
    analysis_result: AnalysisResult | None = None
    team_members: tuple[str, ...] = ()     # ordered, no duplicates
    current_speaker: str | None = None


@dataclass(frozen=True)
class EquivalenceVerdict:
    equivalent: bool
    confidence: float
    explanation: str = ""


@dataclass(frozen=True)
class ArbitrationResult:
    is_correct: bool
    exact_match: bool
    ai_accepted: bool = False
    ai_confidence: float | None = None
    ai_explanation: str = ""


@dataclass(frozen=True)
class PlayerPerformance:
    player: str
    total: int
    correct: int
    percentage: float


@dataclass(frozen=True)
class SessionSummary:
    performances: list[PlayerPerformance]
    feedback: str
    tier: ResultsTier
    results_message: str
    score: int
    total_rounds: int
    percentage: float


@dataclass(frozen=True)
class OracleResponse:
    provider: str
    model: str
    content: str
    latency_sec: float
    token_count: int | None = None
