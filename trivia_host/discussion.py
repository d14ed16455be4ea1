"""Pure updates of DiscussionState. Each function returns a new value."""

from dataclasses import replace

from trivia_host.models import AnalysisResult, DiscussionPhase, DiscussionState


def start_discussion(time_limit: int, team_members: list[str] | tuple[str, ...] = ()) -> DiscussionState:
    """Fresh discussion period: previous notes, transcript and analysis are gone."""
    limit = max(0, int(time_limit))
    return DiscussionState(
        phase=DiscussionPhase.DISCUSSION,
        time_remaining=limit,
        total_time=limit,
        is_active=True,
        team_members=tuple(dict.fromkeys(team_members)),
    )


def update_timer(state: DiscussionState, seconds: int) -> DiscussionState:
    remaining = max(0, min(int(seconds), state.total_time))
    if remaining == 0 and state.phase == DiscussionPhase.DISCUSSION:
        return replace(state, time_remaining=0, phase=DiscussionPhase.ANALYSIS, is_active=False)
    return replace(state, time_remaining=remaining)


def close_discussion(state: DiscussionState) -> DiscussionState:
    """Discussion ended early (answer submitted): keep the remaining time, move to analysis."""
    phase = DiscussionPhase.ANALYSIS if state.phase == DiscussionPhase.DISCUSSION else state.phase
    return replace(state, phase=phase, is_active=False)


def pause(state: DiscussionState) -> DiscussionState:
    return replace(state, is_active=False)


def resume(state: DiscussionState) -> DiscussionState:
    if state.time_remaining > 0:
        return replace(state, is_active=True)
    return state


def update_notes(state: DiscussionState, notes: str) -> DiscussionState:
    return replace(state, notes=notes)


def append_notes(state: DiscussionState, text: str) -> DiscussionState:
    notes = f"{state.notes}\n{text}" if state.notes else text
    return replace(state, notes=notes)


def append_transcript(state: DiscussionState, text: str, speaker: str | None = None) -> DiscussionState:
    entry = f"{speaker}: {text}" if speaker else text
    transcript = f"{state.audio_transcript}\n{entry}" if state.audio_transcript else entry
    return replace(state, audio_transcript=transcript)


def set_current_speaker(state: DiscussionState, speaker: str | None) -> DiscussionState:
    return replace(state, current_speaker=speaker)


def set_analysis_result(state: DiscussionState, result: AnalysisResult) -> DiscussionState:
    return replace(state, analysis_result=result, phase=DiscussionPhase.ANSWER)


def complete_discussion(state: DiscussionState) -> DiscussionState:
    return replace(state, phase=DiscussionPhase.COMPLETE, is_active=False)
