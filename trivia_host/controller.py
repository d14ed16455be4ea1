"""Session orchestration: phase reducer, countdown, arbitration and analysis for one game."""

import asyncio
import logging
from dataclasses import replace

from config.config_loader import AppConfig
from trivia_host import discussion
from trivia_host.aggregator import aggregate
from trivia_host.analyzer import DifficultyClassifier, DiscussionAnalyzer
from trivia_host.arbitrator import SemanticArbitrator
from trivia_host.errors import QuestionSourceError
from trivia_host.host import HintGenerator, IntroGenerator, build_hint_generator, build_intro_generator
from trivia_host.messages import MessageCatalog
from trivia_host.models import (
    AnalysisResult,
    ArbitrationResult,
    Difficulty,
    DiscussionPhase,
    DiscussionState,
    Phase,
    QuestionItem,
    Round,
    SessionState,
    SessionSummary,
)
from trivia_host.oracle import SemanticOracle, build_oracle
from trivia_host.phases import EventType, GameEvent, reduce
from trivia_host.timer import Countdown

logger = logging.getLogger(__name__)

DEFAULT_ROUND_TIME = 60

# Events after which a running timer starts over from the full round time.
_TIMER_RESETS = frozenset({EventType.SESSION_STARTED, EventType.START_DISCUSSION, EventType.NEXT_ROUND})


class PhaseController:
    """Owns the session state for one game and keeps the countdown in step with it.

    Every state change goes through dispatch(). The countdown runs exactly
    while the state says the timer is running. Use the controller as an async
    context manager so the countdown is cancelled however the session ends.
    """

    def __init__(
        self,
        questions: list[QuestionItem],
        *,
        arbitrator: SemanticArbitrator | None = None,
        analyzer: DiscussionAnalyzer | None = None,
        classifier: DifficultyClassifier | None = None,
        intro_generator: IntroGenerator | None = None,
        hint_generator: HintGenerator | None = None,
        catalog: MessageCatalog | None = None,
        team_members: list[str] | tuple[str, ...] = (),
        round_time: int = DEFAULT_ROUND_TIME,
        reading_time: int = 0,
        ai_enabled: bool = False,
        language: str = "en",
        strict_events: bool = False,
        tick_interval: float = 1.0,
    ) -> None:
        if not questions:
            raise QuestionSourceError("No questions available for this session")

        self.questions = list(questions)
        self.rounds = [Round(question=q.question, correct_answer=q.answer) for q in self.questions]
        self.state = SessionState(round_time=max(0, round_time))
        self.discussion = DiscussionState()
        self.team_members = tuple(dict.fromkeys(team_members))
        self.reading_time = max(0, reading_time)
        # Set whenever a discussion period ends, by the timer or by a submission.
        self.discussion_over = asyncio.Event()

        self._catalog = catalog or MessageCatalog()
        self._arbitrator = arbitrator or SemanticArbitrator()
        self._analyzer = analyzer or DiscussionAnalyzer()
        self._classifier = classifier or DifficultyClassifier()
        self._intro = intro_generator or build_intro_generator(None, self._catalog)
        self._hints = hint_generator or build_hint_generator(None, self._catalog)
        self._ai_enabled = ai_enabled
        self._language = language
        self._strict = strict_events
        self._countdown = Countdown(self._on_tick, interval=tick_interval)

        self._inflight: dict[int, asyncio.Task] = {}
        self._results: dict[int, ArbitrationResult] = {}
        self._difficulties: dict[int, Difficulty] = {}
        self._given_hints: dict[int, list[str]] = {}

    @classmethod
    def from_questions(
        cls,
        questions: list[QuestionItem],
        config: AppConfig | None = None,
        *,
        oracle: SemanticOracle | None = None,
        team_members: list[str] | tuple[str, ...] = (),
        round_time: int | None = None,
        ai_enabled: bool | None = None,
        strict_events: bool = False,
        tick_interval: float = 1.0,
    ) -> "PhaseController":
        """Bootstrap a session, wiring every collaborator from one configuration value.

        Raises:
            QuestionSourceError: If there are no questions.
        """
        if not questions:
            raise QuestionSourceError("No questions available for this session")

        ai = ai_enabled if ai_enabled is not None else (config.defaults.ai_enabled if config else False)
        if ai and oracle is None and config is not None:
            oracle = build_oracle(config)
        if not ai:
            oracle = None

        analysis_oracle = oracle if config is None or config.defaults.analysis_enabled else None
        catalog = MessageCatalog(config.messages if config else None)

        if round_time is None:
            round_time = config.defaults.round_time if config else DEFAULT_ROUND_TIME

        return cls(
            questions,
            arbitrator=SemanticArbitrator(oracle),
            analyzer=DiscussionAnalyzer(analysis_oracle),
            classifier=DifficultyClassifier(oracle),
            intro_generator=build_intro_generator(oracle, catalog),
            hint_generator=build_hint_generator(oracle, catalog),
            catalog=catalog,
            team_members=team_members,
            round_time=round_time,
            reading_time=config.defaults.reading_time if config else 0,
            ai_enabled=ai,
            language=config.defaults.language if config else "en",
            strict_events=strict_events,
            tick_interval=tick_interval,
        )

    async def __aenter__(self) -> "PhaseController":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._countdown.aclose()

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def total_rounds(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> QuestionItem:
        return self.questions[self.state.current_round_index]

    @property
    def current_round(self) -> Round:
        return self.rounds[self.state.current_round_index]

    @property
    def is_last_round(self) -> bool:
        return self.state.current_round_index >= len(self.questions) - 1

    @property
    def timer_running(self) -> bool:
        return self._countdown.running

    @property
    def catalog(self) -> MessageCatalog:
        return self._catalog

    # -- state transitions -------------------------------------------------

    def dispatch(self, event: GameEvent) -> SessionState:
        before = self.state
        if event.type == EventType.SET_ROUND and not self._valid_round(event.round_index):
            logger.warning("Ignoring SET_ROUND to %r, session has %d rounds", event.round_index, self.total_rounds)
            return before
        after = reduce(before, event, strict=self._strict)
        if after is before:
            return before
        self.state = after
        self._sync_discussion(before, after, event)
        self._sync_countdown(before, after, event)
        return after

    def _valid_round(self, index: int | None) -> bool:
        return index is not None and 0 <= index < self.total_rounds

    def _sync_discussion(self, before: SessionState, after: SessionState, event: GameEvent) -> None:
        new_period = event.type in _TIMER_RESETS or (
            after.phase == Phase.DISCUSSION and self.discussion.phase == DiscussionPhase.PREPARATION
        )
        if after.phase == Phase.DISCUSSION and new_period:
            self.discussion = discussion.start_discussion(after.timer_seconds, self.team_members)
            self.discussion_over.clear()
        elif event.type == EventType.TICK:
            self.discussion = discussion.update_timer(self.discussion, after.timer_seconds)
        elif event.type in (EventType.SET_NOTES, EventType.RESET_ROUND):
            self.discussion = discussion.update_notes(self.discussion, after.discussion_notes)
        elif event.type == EventType.PAUSE_GAME:
            self.discussion = discussion.pause(self.discussion)
        elif event.type == EventType.RESUME_GAME:
            self.discussion = discussion.resume(self.discussion)

        if before.phase == Phase.DISCUSSION and after.phase == Phase.ANSWER:
            self.discussion = discussion.close_discussion(self.discussion)
            self.discussion_over.set()
        elif after.phase == Phase.COMPLETED:
            self.discussion_over.set()

    def _sync_countdown(self, before: SessionState, after: SessionState, event: GameEvent) -> None:
        if after.is_timer_running:
            if not before.is_timer_running or event.type in _TIMER_RESETS:
                self._countdown.start()
        elif before.is_timer_running:
            self._countdown.cancel()

    async def _on_tick(self) -> None:
        self.dispatch(GameEvent(EventType.TICK))

    # -- operations ----------------------------------------------------------

    def start(self, round_time: int | None = None) -> SessionState:
        return self.dispatch(GameEvent(EventType.SESSION_STARTED, round_time=round_time))

    def start_reading(self, reading_time: int | None = None) -> SessionState:
        seconds = self.reading_time if reading_time is None else reading_time
        return self.dispatch(GameEvent(EventType.START_READING, reading_time=seconds))

    def finish_reading(self, skipped: bool = False) -> SessionState:
        return self.dispatch(GameEvent(EventType.SKIP_READING if skipped else EventType.READING_COMPLETE))

    def start_media(self) -> SessionState:
        return self.dispatch(GameEvent(EventType.START_MEDIA_PLAYBACK))

    def finish_media(self, skipped: bool = False) -> SessionState:
        return self.dispatch(GameEvent(EventType.SKIP_MEDIA if skipped else EventType.MEDIA_PLAYBACK_COMPLETE))

    def start_discussion(self, round_time: int | None = None) -> SessionState:
        return self.dispatch(GameEvent(EventType.START_DISCUSSION, round_time=round_time))

    def set_notes(self, notes: str) -> SessionState:
        return self.dispatch(GameEvent(EventType.SET_NOTES, value=notes))

    def append_notes(self, text: str) -> SessionState:
        """Add one line to the discussion notes."""
        return self.set_notes(discussion.append_notes(self.discussion, text).notes)

    def append_transcript(self, text: str, speaker: str | None = None) -> DiscussionState:
        self.discussion = discussion.append_transcript(self.discussion, text, speaker)
        if speaker:
            self.discussion = discussion.set_current_speaker(self.discussion, speaker)
        return self.discussion

    def set_answer(self, answer: str) -> SessionState:
        return self.dispatch(GameEvent(EventType.SET_ANSWER, value=answer))

    def set_player(self, player: str) -> SessionState:
        return self.dispatch(GameEvent(EventType.SET_PLAYER, value=player))

    def pause(self) -> SessionState:
        return self.dispatch(GameEvent(EventType.PAUSE_GAME))

    def resume(self) -> SessionState:
        return self.dispatch(GameEvent(EventType.RESUME_GAME))

    def reset_round(self) -> SessionState:
        return self.dispatch(GameEvent(EventType.RESET_ROUND))

    async def submit_answer(self, answer: str | None = None, player: str | None = None) -> ArbitrationResult:
        """Arbitrate the team answer for the current round, then move to feedback.

        Concurrent calls for the same round share one arbitration; a round that
        already has a result returns it without asking again.
        """
        index = self.state.current_round_index
        if index in self._results:
            return self._results[index]

        task = self._inflight.get(index)
        if task is None:
            task = asyncio.create_task(self._submit(index, answer, player))
            self._inflight[index] = task
        # A cancelled caller must not cancel the arbitration other callers share.
        return await asyncio.shield(task)

    async def _submit(self, index: int, answer: str | None, player: str | None) -> ArbitrationResult:
        try:
            if answer is not None:
                self.set_answer(answer)
            if player is not None:
                self.set_player(player)
            self.dispatch(GameEvent(EventType.SUBMIT_ANSWER))
            if self.state.phase != Phase.ANSWER:
                logger.warning("Answer submitted in phase %s, ignoring", self.state.phase.value)
                return ArbitrationResult(is_correct=False, exact_match=False)

            team_answer = self.state.team_answer
            question = self.questions[index]
            result = await self._arbitrator.resolve(team_answer, question.answer, self._ai_enabled, self._language)

            self.rounds[index] = replace(
                self.rounds[index],
                team_answer=team_answer,
                is_correct=result.is_correct,
                player_who_answered=self.state.selected_player,
                discussion_notes=self.state.discussion_notes,
            )
            self._results[index] = result
            if self.state.current_round_index == index:
                self.dispatch(GameEvent(EventType.ANSWER_SUBMITTED))
                self.discussion = discussion.complete_discussion(self.discussion)
            logger.info("Round %d answer %r: %s", index + 1, team_answer, "correct" if result.is_correct else "incorrect")
            return result
        finally:
            self._inflight.pop(index, None)

    async def analyze_discussion(self) -> AnalysisResult | None:
        """Analyze the current discussion.

        Returns None when the session moved to another round (or finished)
        while the analysis was running; the late result is dropped.
        """
        index = self.state.current_round_index
        question = self.questions[index]
        result = await self._analyzer.analyze(
            question.question,
            question.answer,
            self.discussion.notes,
            self.discussion.audio_transcript or None,
        )
        if self.state.current_round_index != index or self.state.phase == Phase.COMPLETED:
            logger.info("Discarding analysis for round %d, session has moved on", index + 1)
            return None
        self.discussion = discussion.set_analysis_result(self.discussion, result)
        return result

    async def classify_current(self) -> Difficulty:
        index = self.state.current_round_index
        if index not in self._difficulties:
            question = self.questions[index]
            self._difficulties[index] = question.difficulty or await self._classifier.classify(
                question.question, question.answer,
            )
        return self._difficulties[index]

    async def introduce_current(self) -> str:
        difficulty = await self.classify_current()
        return await self._intro.introduce(
            self.current_question.question,
            difficulty,
            self.state.current_round_index + 1,
            self.total_rounds,
        )

    async def hint(self) -> str:
        index = self.state.current_round_index
        difficulty = await self.classify_current()
        previous = self._given_hints.setdefault(index, [])
        text = await self._hints.hint(
            self.questions[index].question,
            self.questions[index].answer,
            difficulty,
            list(previous) or None,
        )
        previous.append(text)
        return text

    def next_round(self, round_time: int | None = None) -> SessionSummary | None:
        """Advance to the next question, or complete the session after the last one."""
        if self.is_last_round:
            return self.complete()
        self.dispatch(GameEvent(EventType.NEXT_ROUND, round_time=round_time))
        return None

    def complete(self) -> SessionSummary:
        self.dispatch(GameEvent(EventType.GAME_COMPLETED))
        return self.summary()

    def summary(self) -> SessionSummary:
        """Statistics over every round reached so far."""
        played = self.rounds[: self.state.current_round_index + 1]
        return aggregate(played, self._catalog)
