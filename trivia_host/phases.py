"""Session phase reducer: (SessionState, GameEvent) -> SessionState.

The reducer is pure apart from reading the clock when no `now` is given.
States are never modified in place; every accepted event returns a new
SessionState. Events that arrive in a phase they do not apply to (a TIME_UP
after the answer was already submitted, a TICK while paused) return the
input state unchanged, which is what makes late timer ticks harmless.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from trivia_host.errors import UnknownEventError
from trivia_host.models import Phase, SessionState

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    SESSION_STARTED = "SESSION_STARTED"
    START_READING = "START_READING"
    READING_COMPLETE = "READING_COMPLETE"
    SKIP_READING = "SKIP_READING"
    START_MEDIA_PLAYBACK = "START_MEDIA_PLAYBACK"
    MEDIA_PLAYBACK_COMPLETE = "MEDIA_PLAYBACK_COMPLETE"
    SKIP_MEDIA = "SKIP_MEDIA"
    START_DISCUSSION = "START_DISCUSSION"
    TICK = "TICK"
    TIME_UP = "TIME_UP"
    SUBMIT_ANSWER = "SUBMIT_ANSWER"
    ANSWER_SUBMITTED = "ANSWER_SUBMITTED"
    NEXT_ROUND = "NEXT_ROUND"
    GAME_COMPLETED = "GAME_COMPLETED"
    RESET_ROUND = "RESET_ROUND"
    SET_ANSWER = "SET_ANSWER"
    SET_NOTES = "SET_NOTES"
    SET_PLAYER = "SET_PLAYER"
    SET_ROUND = "SET_ROUND"
    PAUSE_GAME = "PAUSE_GAME"
    RESUME_GAME = "RESUME_GAME"


@dataclass(frozen=True)
class GameEvent:
    type: str
    round_time: int | None = None
    reading_time: int | None = None
    value: str | None = None        # SET_ANSWER / SET_NOTES / SET_PLAYER payload
    round_index: int | None = None  # SET_ROUND payload


_MEDIA_DONE = frozenset({EventType.MEDIA_PLAYBACK_COMPLETE, EventType.SKIP_MEDIA})


def _round_time(state: SessionState, event: GameEvent) -> int:
    return max(0, int(event.round_time)) if event.round_time is not None else state.round_time


def _session_started(state: SessionState, event: GameEvent, now: float) -> SessionState:
    seconds = _round_time(state, event)
    return replace(
        state,
        phase=Phase.DISCUSSION,
        round_time=seconds,
        timer_seconds=seconds,
        is_timer_running=True,
        session_start_time=now,
        round_start_time=now,
    )


def _start_reading(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(
        state,
        phase=Phase.READING,
        reading_time_seconds=max(0, int(event.reading_time or 0)),
        is_timer_running=False,
        session_start_time=state.session_start_time or now,
    )


def _enter_discussion(state: SessionState, event: GameEvent, now: float) -> SessionState:
    # Reading or media finished: the countdown picks up where it was.
    return replace(
        state,
        phase=Phase.DISCUSSION,
        timer_seconds=state.timer_seconds or state.round_time,
        is_timer_running=True,
        media_playback_complete=state.media_playback_complete or event.type in _MEDIA_DONE,
        session_start_time=state.session_start_time or now,
        round_start_time=now,
    )


def _start_media(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(
        state,
        phase=Phase.MEDIA_PLAYBACK,
        media_playback_complete=False,
        is_timer_running=False,
        session_start_time=state.session_start_time or now,
    )


def _start_discussion(state: SessionState, event: GameEvent, now: float) -> SessionState:
    seconds = _round_time(state, event)
    return replace(
        state,
        phase=Phase.DISCUSSION,
        round_time=seconds,
        timer_seconds=seconds,
        is_timer_running=True,
        previous_phase=None,
        round_start_time=now,
    )


def _tick(state: SessionState, event: GameEvent, now: float) -> SessionState:
    if not state.is_timer_running:
        return state
    remaining = max(0, state.timer_seconds - 1)
    if remaining == 0:
        return replace(state, timer_seconds=0, phase=Phase.ANSWER, is_timer_running=False)
    return replace(state, timer_seconds=remaining)


def _to_answer(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, phase=Phase.ANSWER, is_timer_running=False)


def _answer_submitted(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, phase=Phase.FEEDBACK)


def _next_round(state: SessionState, event: GameEvent, now: float) -> SessionState:
    seconds = _round_time(state, event)
    return replace(
        state,
        phase=Phase.DISCUSSION,
        current_round_index=state.current_round_index + 1,
        team_answer="",
        discussion_notes="",
        selected_player="",
        round_time=seconds,
        timer_seconds=seconds,
        is_timer_running=True,
        round_start_time=now,
        media_playback_complete=False,
    )


def _game_completed(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, phase=Phase.COMPLETED, is_timer_running=False, previous_phase=None)


def _reset_round(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, team_answer="", discussion_notes="", selected_player="")


def _set_answer(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, team_answer=event.value or "")


def _set_notes(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, discussion_notes=event.value or "")


def _set_player(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, selected_player=event.value or "")


def _set_round(state: SessionState, event: GameEvent, now: float) -> SessionState:
    if event.round_index is None or event.round_index < 0:
        return state
    return replace(state, current_round_index=int(event.round_index))


def _pause(state: SessionState, event: GameEvent, now: float) -> SessionState:
    return replace(state, previous_phase=state.phase, phase=Phase.PAUSED, is_timer_running=False)


def _resume(state: SessionState, event: GameEvent, now: float) -> SessionState:
    phase = state.previous_phase or Phase.DISCUSSION
    return replace(
        state,
        phase=phase,
        previous_phase=None,
        is_timer_running=phase == Phase.DISCUSSION and state.timer_seconds > 0,
    )


_Handler = Callable[[SessionState, GameEvent, float], SessionState]

_ANY = frozenset(Phase)
_LIVE = _ANY - {Phase.COMPLETED}

# event -> (source phases it applies to, handler)
_TRANSITIONS: dict[EventType, tuple[frozenset[Phase], _Handler]] = {
    EventType.SESSION_STARTED: (frozenset({Phase.WAITING}), _session_started),
    EventType.START_READING: (frozenset({Phase.WAITING, Phase.DISCUSSION}), _start_reading),
    EventType.READING_COMPLETE: (frozenset({Phase.READING}), _enter_discussion),
    EventType.SKIP_READING: (frozenset({Phase.READING}), _enter_discussion),
    EventType.START_MEDIA_PLAYBACK: (frozenset({Phase.WAITING, Phase.READING, Phase.DISCUSSION}), _start_media),
    EventType.MEDIA_PLAYBACK_COMPLETE: (frozenset({Phase.MEDIA_PLAYBACK}), _enter_discussion),
    EventType.SKIP_MEDIA: (frozenset({Phase.MEDIA_PLAYBACK}), _enter_discussion),
    EventType.START_DISCUSSION: (_LIVE, _start_discussion),
    EventType.TICK: (frozenset({Phase.DISCUSSION}), _tick),
    EventType.TIME_UP: (frozenset({Phase.DISCUSSION}), _to_answer),
    EventType.SUBMIT_ANSWER: (frozenset({Phase.DISCUSSION}), _to_answer),
    EventType.ANSWER_SUBMITTED: (frozenset({Phase.ANSWER}), _answer_submitted),
    EventType.NEXT_ROUND: (frozenset({Phase.FEEDBACK}), _next_round),
    EventType.GAME_COMPLETED: (_ANY, _game_completed),
    EventType.RESET_ROUND: (_ANY, _reset_round),
    EventType.SET_ANSWER: (_ANY, _set_answer),
    EventType.SET_NOTES: (_ANY, _set_notes),
    EventType.SET_PLAYER: (_ANY, _set_player),
    EventType.SET_ROUND: (_ANY, _set_round),
    EventType.PAUSE_GAME: (_LIVE - {Phase.PAUSED, Phase.WAITING}, _pause),
    EventType.RESUME_GAME: (frozenset({Phase.PAUSED}), _resume),
}


def reduce(state: SessionState, event: GameEvent, now: float | None = None, strict: bool = False) -> SessionState:
    """Apply one event.

    Unknown event types return the input state unchanged, or raise
    UnknownEventError when strict is set.
    """
    transition = _TRANSITIONS.get(event.type)
    if transition is None:
        if strict:
            raise UnknownEventError(event.type)
        logger.debug("Ignoring unknown event %r", event.type)
        return state

    sources, handler = transition
    if state.phase not in sources:
        logger.debug("Ignoring %s in phase %s", event.type, state.phase.value)
        return state

    return handler(state, event, time.time() if now is None else now)
