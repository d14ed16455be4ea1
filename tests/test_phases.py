"""Tests for trivia_host/phases.py."""

from dataclasses import replace

import pytest

from trivia_host.errors import UnknownEventError
from trivia_host.models import Phase, SessionState
from trivia_host.phases import EventType, GameEvent, reduce

NOW = 1_700_000_000.0


def _discussing(**overrides) -> SessionState:
    state = reduce(SessionState(), GameEvent(EventType.SESSION_STARTED, round_time=30), now=NOW)
    return replace(state, **overrides)


def test_session_started_from_waiting():
    state = reduce(SessionState(), GameEvent(EventType.SESSION_STARTED, round_time=30), now=NOW)
    assert state.phase == Phase.DISCUSSION
    assert state.timer_seconds == 30
    assert state.is_timer_running is True
    assert state.session_start_time == NOW
    assert state.round_start_time == NOW


def test_session_started_without_round_time_uses_configured():
    state = reduce(SessionState(round_time=45), GameEvent(EventType.SESSION_STARTED), now=NOW)
    assert state.timer_seconds == 45


def test_session_started_ignored_mid_game():
    state = _discussing(phase=Phase.FEEDBACK)
    assert reduce(state, GameEvent(EventType.SESSION_STARTED, round_time=10)) is state


def test_next_round_from_feedback():
    state = _discussing(
        phase=Phase.FEEDBACK,
        current_round_index=2,
        team_answer="Paris",
        discussion_notes="maybe Paris",
        selected_player="Ana",
        is_timer_running=False,
        timer_seconds=0,
    )
    after = reduce(state, GameEvent(EventType.NEXT_ROUND), now=NOW + 5)
    assert after.current_round_index == 3
    assert after.team_answer == ""
    assert after.discussion_notes == ""
    assert after.selected_player == ""
    assert after.phase == Phase.DISCUSSION
    assert after.timer_seconds == 30
    assert after.is_timer_running is True
    assert after.round_start_time == NOW + 5


def test_next_round_with_new_round_time():
    state = _discussing(phase=Phase.FEEDBACK)
    assert reduce(state, GameEvent(EventType.NEXT_ROUND, round_time=90)).timer_seconds == 90


@pytest.mark.parametrize("event_type", [EventType.TIME_UP, EventType.SUBMIT_ANSWER])
def test_discussion_to_answer_stops_timer(event_type):
    after = reduce(_discussing(), GameEvent(event_type))
    assert after.phase == Phase.ANSWER
    assert after.is_timer_running is False


def test_late_time_up_is_noop():
    state = _discussing(phase=Phase.FEEDBACK, is_timer_running=False)
    assert reduce(state, GameEvent(EventType.TIME_UP)) is state


def test_answer_submitted_moves_to_feedback():
    state = _discussing(phase=Phase.ANSWER, is_timer_running=False)
    assert reduce(state, GameEvent(EventType.ANSWER_SUBMITTED)).phase == Phase.FEEDBACK


def test_tick_decrements():
    after = reduce(_discussing(), GameEvent(EventType.TICK))
    assert after.timer_seconds == 29
    assert after.phase == Phase.DISCUSSION


def test_tick_to_zero_is_time_up():
    after = reduce(_discussing(timer_seconds=1), GameEvent(EventType.TICK))
    assert after.timer_seconds == 0
    assert after.phase == Phase.ANSWER
    assert after.is_timer_running is False


def test_tick_ignored_when_timer_stopped():
    state = _discussing(is_timer_running=False)
    assert reduce(state, GameEvent(EventType.TICK)) is state


def test_start_discussion_from_any_live_phase():
    state = _discussing(phase=Phase.FEEDBACK, timer_seconds=0, is_timer_running=False)
    after = reduce(state, GameEvent(EventType.START_DISCUSSION, round_time=20))
    assert after.phase == Phase.DISCUSSION
    assert after.timer_seconds == 20
    assert after.is_timer_running is True


def test_completed_is_terminal():
    state = reduce(_discussing(), GameEvent(EventType.GAME_COMPLETED))
    assert state.phase == Phase.COMPLETED
    assert state.is_timer_running is False
    for event_type in (EventType.START_DISCUSSION, EventType.NEXT_ROUND, EventType.PAUSE_GAME, EventType.TICK):
        assert reduce(state, GameEvent(event_type)).phase == Phase.COMPLETED


def test_game_completed_from_waiting():
    assert reduce(SessionState(), GameEvent(EventType.GAME_COMPLETED)).phase == Phase.COMPLETED


def test_reset_round_keeps_phase():
    state = _discussing(team_answer="x", discussion_notes="y", selected_player="z")
    after = reduce(state, GameEvent(EventType.RESET_ROUND))
    assert after == replace(state, team_answer="", discussion_notes="", selected_player="")


@pytest.mark.parametrize(
    "event_type, field",
    [
        (EventType.SET_ANSWER, "team_answer"),
        (EventType.SET_NOTES, "discussion_notes"),
        (EventType.SET_PLAYER, "selected_player"),
    ],
)
def test_content_events_touch_only_their_field(event_type, field):
    state = _discussing()
    after = reduce(state, GameEvent(event_type, value="hello"))
    assert after == replace(state, **{field: "hello"})


def test_set_round():
    state = _discussing()
    assert reduce(state, GameEvent(EventType.SET_ROUND, round_index=4)).current_round_index == 4
    assert reduce(state, GameEvent(EventType.SET_ROUND, round_index=-1)) is state


def test_unknown_event_returns_equal_state():
    state = _discussing(team_answer="Paris")
    assert reduce(state, GameEvent("FLY_TO_MOON")) == state


def test_unknown_event_strict_raises():
    with pytest.raises(UnknownEventError, match="FLY_TO_MOON"):
        reduce(SessionState(), GameEvent("FLY_TO_MOON"), strict=True)


def test_plain_string_event_types_accepted():
    after = reduce(SessionState(), GameEvent("SESSION_STARTED", round_time=5), now=NOW)
    assert after.phase == Phase.DISCUSSION


def test_reading_then_discussion_keeps_timer():
    state = reduce(_discussing(), GameEvent(EventType.START_READING, reading_time=10), now=NOW)
    assert state.phase == Phase.READING
    assert state.reading_time_seconds == 10
    assert state.is_timer_running is False

    after = reduce(state, GameEvent(EventType.READING_COMPLETE), now=NOW + 10)
    assert after.phase == Phase.DISCUSSION
    assert after.timer_seconds == 30
    assert after.is_timer_running is True


def test_reading_from_waiting_then_skip():
    state = reduce(SessionState(round_time=40), GameEvent(EventType.START_READING, reading_time=5), now=NOW)
    assert state.session_start_time == NOW
    after = reduce(state, GameEvent(EventType.SKIP_READING), now=NOW + 1)
    assert after.phase == Phase.DISCUSSION
    assert after.timer_seconds == 40


@pytest.mark.parametrize("event_type", [EventType.MEDIA_PLAYBACK_COMPLETE, EventType.SKIP_MEDIA])
def test_media_playback_finishes_into_discussion(event_type):
    state = reduce(_discussing(), GameEvent(EventType.START_MEDIA_PLAYBACK))
    assert state.phase == Phase.MEDIA_PLAYBACK
    assert state.media_playback_complete is False

    after = reduce(state, GameEvent(event_type))
    assert after.phase == Phase.DISCUSSION
    assert after.media_playback_complete is True


def test_pause_and_resume_discussion():
    paused = reduce(_discussing(timer_seconds=12), GameEvent(EventType.PAUSE_GAME))
    assert paused.phase == Phase.PAUSED
    assert paused.previous_phase == Phase.DISCUSSION
    assert paused.is_timer_running is False
    assert reduce(paused, GameEvent(EventType.TICK)) is paused

    resumed = reduce(paused, GameEvent(EventType.RESUME_GAME))
    assert resumed.phase == Phase.DISCUSSION
    assert resumed.previous_phase is None
    assert resumed.timer_seconds == 12
    assert resumed.is_timer_running is True


def test_resume_into_feedback_keeps_timer_stopped():
    state = _discussing(phase=Phase.FEEDBACK, is_timer_running=False)
    resumed = reduce(reduce(state, GameEvent(EventType.PAUSE_GAME)), GameEvent(EventType.RESUME_GAME))
    assert resumed.phase == Phase.FEEDBACK
    assert resumed.is_timer_running is False


def test_reducer_never_mutates_input():
    state = _discussing()
    snapshot = replace(state)
    reduce(state, GameEvent(EventType.TIME_UP))
    assert state == snapshot
