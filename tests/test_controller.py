"""Tests for trivia_host/controller.py."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from trivia_host.analyzer import DiscussionAnalyzer
from trivia_host.arbitrator import SemanticArbitrator
from trivia_host.controller import PhaseController
from trivia_host.errors import QuestionSourceError, UnknownEventError
from trivia_host.host import build_hint_generator
from trivia_host.models import Difficulty, DiscussionPhase, Phase, QuestionItem, ResultsTier
from trivia_host.phases import EventType, GameEvent
from tests.conftest import MockProvider, make_oracle, oracle_reply

_ANALYSIS = {
    "correctAnswerMentioned": True,
    "bestGuesses": ["Paris"],
    "confidence": 0.8,
    "analysis": "The team got there.",
}


def _slow_provider(content, delay: float = 0.02) -> MockProvider:
    provider = MockProvider()

    async def reply(*args, **kwargs):
        await asyncio.sleep(delay)
        return oracle_reply(content)

    provider.generate = AsyncMock(side_effect=reply)
    return provider


async def test_empty_question_list_rejected():
    with pytest.raises(QuestionSourceError):
        PhaseController.from_questions([])
    with pytest.raises(QuestionSourceError):
        PhaseController([])


async def test_start_enters_discussion(sample_questions):
    async with PhaseController(sample_questions, round_time=30, team_members=["Ana", "Ben"]) as controller:
        state = controller.start()
        assert state.phase == Phase.DISCUSSION
        assert state.timer_seconds == 30
        assert state.is_timer_running is True
        assert controller.timer_running is True
        assert controller.discussion.phase == DiscussionPhase.DISCUSSION
        assert controller.discussion.team_members == ("Ana", "Ben")
    assert controller.timer_running is False


async def test_countdown_reaches_answer_phase(sample_questions):
    async with PhaseController(sample_questions, round_time=2, tick_interval=0.01) as controller:
        controller.start()
        await asyncio.wait_for(controller.discussion_over.wait(), timeout=2)

        assert controller.phase == Phase.ANSWER
        assert controller.state.timer_seconds == 0
        assert controller.timer_running is False
        assert controller.discussion.phase == DiscussionPhase.ANALYSIS
        assert controller.discussion.time_remaining == 0


async def test_submit_correct_answer(sample_questions):
    async with PhaseController(sample_questions, team_members=["Ana"]) as controller:
        controller.start()
        controller.set_notes("maybe Paris")
        result = await controller.submit_answer("paris", "Ana")

        assert result.is_correct is True
        assert controller.phase == Phase.FEEDBACK
        assert controller.timer_running is False
        assert controller.discussion_over.is_set()
        round_data = controller.rounds[0]
        assert round_data.team_answer == "paris"
        assert round_data.is_correct is True
        assert round_data.player_who_answered == "Ana"
        assert round_data.discussion_notes == "maybe Paris"


async def test_concurrent_submits_share_one_oracle_call(sample_questions, sample_prompts_config):
    provider = _slow_provider({"equivalent": True, "confidence": 0.9})
    arbitrator = SemanticArbitrator(make_oracle(provider, sample_prompts_config))
    async with PhaseController(sample_questions, arbitrator=arbitrator, ai_enabled=True) as controller:
        controller.start()
        first, second = await asyncio.gather(
            controller.submit_answer("City of Light"),
            controller.submit_answer("City of Light"),
        )

        assert first is second
        assert first.is_correct is True
        assert provider.generate.await_count == 1
        assert controller.phase == Phase.FEEDBACK


async def test_cancelled_submit_does_not_abort_shared_arbitration(sample_questions, sample_prompts_config):
    provider = _slow_provider({"equivalent": True, "confidence": 0.9}, delay=0.05)
    arbitrator = SemanticArbitrator(make_oracle(provider, sample_prompts_config))
    async with PhaseController(sample_questions, arbitrator=arbitrator, ai_enabled=True) as controller:
        controller.start()
        first = asyncio.create_task(controller.submit_answer("City of Light"))
        second = asyncio.create_task(controller.submit_answer("City of Light"))
        await asyncio.sleep(0.01)
        first.cancel()

        result = await second
        with pytest.raises(asyncio.CancelledError):
            await first

        assert result.is_correct is True
        assert controller.phase == Phase.FEEDBACK
        assert controller.rounds[0].is_correct is True
        assert provider.generate.await_count == 1


async def test_resubmit_returns_stored_result(sample_questions, sample_prompts_config):
    provider = MockProvider(response_content={"equivalent": False, "confidence": 0.9})
    arbitrator = SemanticArbitrator(make_oracle(provider, sample_prompts_config))
    async with PhaseController(sample_questions, arbitrator=arbitrator, ai_enabled=True) as controller:
        controller.start()
        first = await controller.submit_answer("London")
        second = await controller.submit_answer("Lyon")

        assert second is first
        assert controller.rounds[0].team_answer == "London"
        provider.generate.assert_awaited_once()


async def test_oracle_failure_during_submit_still_reaches_feedback(sample_questions, sample_prompts_config):
    provider = MockProvider()
    provider.generate = AsyncMock(side_effect=RuntimeError("socket closed"))
    arbitrator = SemanticArbitrator(make_oracle(provider, sample_prompts_config))
    async with PhaseController(sample_questions, arbitrator=arbitrator, ai_enabled=True) as controller:
        controller.start()
        result = await controller.submit_answer("City of Light")

        assert result.is_correct is False
        assert controller.phase == Phase.FEEDBACK


async def test_submit_before_start_is_ignored(sample_questions):
    async with PhaseController(sample_questions) as controller:
        result = await controller.submit_answer("Paris")
        assert result.is_correct is False
        assert controller.phase == Phase.WAITING
        assert controller.rounds[0].team_answer == ""
        assert await controller.submit_answer("Paris") is not result


async def test_analysis_result_applied(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        controller.set_notes("I think it's maybe Paris")
        result = await controller.analyze_discussion()

        assert result is not None
        assert result.correct_answer_mentioned is True
        assert controller.discussion.analysis_result is result
        assert controller.discussion.phase == DiscussionPhase.ANSWER


async def test_stale_analysis_discarded(sample_questions, sample_prompts_config):
    provider = _slow_provider(_ANALYSIS, delay=0.05)
    analyzer = DiscussionAnalyzer(make_oracle(provider, sample_prompts_config))
    async with PhaseController(sample_questions, analyzer=analyzer) as controller:
        controller.start()
        controller.set_notes("maybe Paris")
        pending = asyncio.create_task(controller.analyze_discussion())
        await asyncio.sleep(0)

        await controller.submit_answer("Paris")
        controller.next_round()
        assert controller.state.current_round_index == 1

        assert await pending is None
        assert controller.discussion.analysis_result is None


async def test_transcript_feeds_analysis(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        controller.append_transcript("maybe Lyon", speaker="Ana")
        controller.append_transcript("no, it is Paris", speaker="Ben")
        assert controller.discussion.current_speaker == "Ben"

        result = await controller.analyze_discussion()
        assert result.correct_answer_mentioned is True
        assert set(result.speaker_contributions) == {"Ana", "Ben"}


async def test_next_round_resets_discussion(sample_questions):
    async with PhaseController(sample_questions, round_time=20) as controller:
        controller.start()
        controller.set_notes("maybe Paris")
        await controller.submit_answer("Paris")

        assert controller.next_round() is None
        assert controller.phase == Phase.DISCUSSION
        assert controller.state.current_round_index == 1
        assert controller.state.timer_seconds == 20
        assert controller.timer_running is True
        assert controller.discussion.notes == ""
        assert controller.discussion.analysis_result is None
        assert not controller.discussion_over.is_set()


async def test_full_session_summary(sample_questions):
    async with PhaseController(sample_questions, team_members=["Ana", "Ben"]) as controller:
        controller.start()
        await controller.submit_answer("Paris", "Ana")
        controller.next_round()
        await controller.submit_answer("Wellington", "Ben")
        controller.next_round()
        await controller.submit_answer("Au", "Ana")
        summary = controller.next_round()

        assert summary is not None
        assert controller.phase == Phase.COMPLETED
        assert controller.timer_running is False
        assert summary.score == 2
        assert summary.total_rounds == 3
        assert summary.tier == ResultsTier.GOOD
        assert summary.performances[0].player == "Ana"


async def test_complete_early_counts_reached_rounds(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        await controller.submit_answer("Paris")
        summary = controller.complete()

        assert summary.total_rounds == 1
        assert summary.percentage == 100
        assert controller.phase == Phase.COMPLETED


async def test_pause_and_resume_control_countdown(sample_questions):
    async with PhaseController(sample_questions, round_time=30) as controller:
        controller.start()
        controller.pause()
        assert controller.phase == Phase.PAUSED
        assert controller.timer_running is False
        assert controller.discussion.is_active is False

        controller.resume()
        assert controller.phase == Phase.DISCUSSION
        assert controller.timer_running is True
        assert controller.discussion.is_active is True


async def test_reading_pauses_countdown(sample_questions):
    async with PhaseController(sample_questions, round_time=30, reading_time=5) as controller:
        controller.start()
        controller.start_reading()
        assert controller.phase == Phase.READING
        assert controller.state.reading_time_seconds == 5
        assert controller.timer_running is False

        controller.finish_reading(skipped=True)
        assert controller.phase == Phase.DISCUSSION
        assert controller.state.timer_seconds == 30
        assert controller.timer_running is True


async def test_media_playback(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        controller.start_media()
        assert controller.phase == Phase.MEDIA_PLAYBACK
        controller.finish_media()
        assert controller.phase == Phase.DISCUSSION
        assert controller.state.media_playback_complete is True


async def test_reset_round(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        controller.set_notes("maybe Lyon")
        controller.set_answer("Lyon")
        controller.set_player("Ana")
        controller.reset_round()

        assert controller.state.team_answer == ""
        assert controller.state.discussion_notes == ""
        assert controller.state.selected_player == ""
        assert controller.discussion.notes == ""
        assert controller.phase == Phase.DISCUSSION


async def test_reset_round_event_clears_discussion_notes(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        controller.append_notes("maybe Lyon")
        controller.append_notes("or Paris")
        assert controller.discussion.notes == "maybe Lyon\nor Paris"
        assert controller.state.discussion_notes == "maybe Lyon\nor Paris"

        controller.dispatch(GameEvent(EventType.RESET_ROUND))

        assert controller.state.discussion_notes == ""
        assert controller.discussion.notes == ""


async def test_set_round_out_of_range_ignored(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.start()
        state = controller.dispatch(GameEvent(EventType.SET_ROUND, round_index=7))
        assert state.current_round_index == 0
        controller.dispatch(GameEvent(EventType.SET_ROUND, round_index=len(sample_questions)))
        assert controller.state.current_round_index == 0

        result = await controller.submit_answer("Paris")
        assert result.is_correct is True
        assert controller.current_question.answer == "Paris"


async def test_set_round_within_range(sample_questions):
    async with PhaseController(sample_questions) as controller:
        controller.dispatch(GameEvent(EventType.SET_ROUND, round_index=2))
        assert controller.current_question.answer == "Au"


async def test_start_discussion_restarts_timer(sample_questions):
    async with PhaseController(sample_questions, round_time=30) as controller:
        controller.start()
        controller.dispatch(GameEvent("TICK"))
        assert controller.state.timer_seconds == 29
        controller.start_discussion(round_time=15)
        assert controller.state.timer_seconds == 15
        assert controller.discussion.total_time == 15


async def test_unknown_event_lenient_by_default(sample_questions):
    async with PhaseController(sample_questions) as controller:
        before = controller.state
        assert controller.dispatch(GameEvent("WARP_SPEED")) is before


async def test_unknown_event_strict(sample_questions):
    async with PhaseController(sample_questions, strict_events=True) as controller:
        with pytest.raises(UnknownEventError):
            controller.dispatch(GameEvent("WARP_SPEED"))


async def test_difficulty_from_pack_skips_classifier():
    questions = [QuestionItem(question="What is the capital of France?", answer="Paris", difficulty=Difficulty.HARD)]
    async with PhaseController(questions) as controller:
        assert await controller.classify_current() == Difficulty.HARD


async def test_introduce_current_local(sample_questions):
    async with PhaseController(sample_questions) as controller:
        intro = await controller.introduce_current()
        assert intro == "Let's move on to question 1 of 3. What is the capital of France?"


async def test_hints_accumulate(sample_questions, sample_prompts_config):
    provider = MockProvider(response_content="It is on the Seine.")
    oracle = make_oracle(provider, sample_prompts_config)
    async with PhaseController(sample_questions, hint_generator=build_hint_generator(oracle)) as controller:
        controller.start()
        assert await controller.hint() == "It is on the Seine."
        await controller.hint()

        second_prompt = provider.generate.await_args_list[1].args[1]
        assert "Previous hints provided: It is on the Seine." in second_prompt


async def test_from_questions_uses_config(sample_questions, sample_app_config):
    controller = PhaseController.from_questions(sample_questions, sample_app_config, ai_enabled=False)
    async with controller:
        assert controller.state.round_time == 30
        result = await asyncio.wait_for(_start_and_submit(controller, "City of Light"), timeout=1)
        assert result.is_correct is False


async def test_from_questions_with_injected_oracle(sample_questions, sample_app_config, sample_prompts_config):
    provider = MockProvider(response_content={"equivalent": True, "confidence": 0.95})
    controller = PhaseController.from_questions(
        sample_questions,
        sample_app_config,
        oracle=make_oracle(provider, sample_prompts_config),
        ai_enabled=True,
        round_time=10,
    )
    async with controller:
        assert controller.state.round_time == 10
        result = await _start_and_submit(controller, "City of Light")
        assert result.is_correct is True
        assert result.ai_accepted is True


async def _start_and_submit(controller: PhaseController, answer: str):
    controller.start()
    return await controller.submit_answer(answer)
