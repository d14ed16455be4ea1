"""Click CLI: play a question pack in the terminal, or run a single check/analysis/classification."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from trivia_host.analyzer import DifficultyClassifier, DiscussionAnalyzer
from trivia_host.arbitrator import SemanticArbitrator
from trivia_host.controller import PhaseController
from trivia_host.errors import QuestionSourceError
from trivia_host.host import round_feedback
from trivia_host.oracle import SemanticOracle, build_oracle
from trivia_host.output import (
    console,
    print_analysis,
    print_arbitration,
    print_hint,
    print_question,
    print_round_feedback,
    print_summary,
    print_time_left,
)
from trivia_host.questions import load_question_pack

logger = logging.getLogger(__name__)

HINT_COMMAND = "?"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _bootstrap(verbose: bool) -> AppConfig:
    load_dotenv()
    _setup_logging(verbose)
    try:
        return load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


def _oracle_for(config: AppConfig, ai: bool) -> SemanticOracle | None:
    return build_oracle(config) if ai else None


class _LineReader:
    """Reads stdin lines on a worker thread so the countdown keeps running.

    A prompt abandoned because time ran out stays pending and answers the
    next read, so no typed line is lost to an orphaned thread.
    """

    def __init__(self) -> None:
        self._pending: asyncio.Future | None = None

    async def read(self, text: str, stop: asyncio.Event | None = None) -> str | None:
        """Return the next line, or None if `stop` was set first."""
        if self._pending is None and stop is not None and stop.is_set():
            return None
        if self._pending is None:
            self._pending = asyncio.ensure_future(
                asyncio.to_thread(click.prompt, text, default="", show_default=False)
            )
        if stop is not None:
            stopper = asyncio.ensure_future(stop.wait())
            await asyncio.wait({self._pending, stopper}, return_when=asyncio.FIRST_COMPLETED)
            stopper.cancel()
            if not self._pending.done():
                return None
        pending, self._pending = self._pending, None
        return await pending


async def _reading_pause(controller: PhaseController, reader: _LineReader) -> None:
    seconds = controller.reading_time
    controller.start_reading(seconds)
    done = asyncio.Event()
    handle = asyncio.get_running_loop().call_later(seconds, done.set)
    line = await reader.read(f"Reading time {seconds}s, press Enter to start discussing", done)
    handle.cancel()
    controller.finish_reading(skipped=line is not None)


async def _discuss(controller: PhaseController, reader: _LineReader) -> None:
    """Collect notes until an empty line or the countdown ends."""
    console.print(
        f"[dim]Discuss! Type notes line by line, '{HINT_COMMAND}' for a hint, "
        "an empty line when the team is ready to answer.[/dim]"
    )
    while True:
        print_time_left(controller.state.timer_seconds)
        line = await reader.read("Notes", controller.discussion_over)
        if line is None:
            console.print("[bold red]Time's up![/bold red]")
            return
        if line.strip() == HINT_COMMAND:
            print_hint(await controller.hint())
            continue
        if not line.strip():
            return
        controller.append_notes(line.strip())


async def _play_round(controller: PhaseController, reader: _LineReader, members: tuple[str, ...]) -> None:
    index = controller.state.current_round_index
    difficulty = await controller.classify_current()
    intro = await controller.introduce_current()
    print_question(intro, index + 1, controller.total_rounds, difficulty)

    if controller.reading_time:
        await _reading_pause(controller, reader)
    await _discuss(controller, reader)

    analysis = await controller.analyze_discussion()
    if analysis is not None and controller.discussion.notes:
        print_analysis(analysis)

    answer = await reader.read("Team answer")
    player = ""
    if members:
        player = await reader.read(f"Who answered ({', '.join(members)})")
    result = await controller.submit_answer(answer or "", player or "")

    round_data = controller.rounds[index]
    print_arbitration(result, round_data.team_answer, round_data.correct_answer)
    print_round_feedback(round_feedback(round_data, controller.catalog), round_data)


async def _run_game(controller: PhaseController, team: str) -> None:
    reader = _LineReader()
    async with controller:
        controller.start()
        while True:
            await _play_round(controller, reader, controller.team_members)
            summary = controller.next_round()
            if summary is not None:
                print_summary(summary, team)
                return


@click.group()
def main() -> None:
    """Trivia Host -- runs team trivia rounds with fuzzy and AI-assisted answer checking.

    \b
    Examples:
      trivia-host play questions.md --round-time 45
      trivia-host play questions.md --no-ai
      trivia-host check "Bonaparte" "Napoleon Bonaparte"
      trivia-host analyze notes.txt --question "Who..." --answer "Napoleon Bonaparte"
      trivia-host classify "What is the capital of France?" Paris
    """
    # Reconfigure stdout/stderr to UTF-8 on Windows so answers with accents
    # don't crash the ANSI render path.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")


@main.command()
@click.argument("pack", type=click.Path(path_type=Path))
@click.option("--round-time", default=None, type=click.IntRange(min=0),
              help="Discussion seconds per question (default: pack, then config)")
@click.option("--no-ai", is_flag=True, help="Local matching and heuristics only")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def play(pack: Path, round_time: int | None, no_ai: bool, verbose: bool) -> None:
    """Play every question in PACK (a Markdown question pack)."""
    config = _bootstrap(verbose)

    try:
        question_pack = load_question_pack(pack, limit=config.defaults.round_count)
        controller = PhaseController.from_questions(
            question_pack.questions,
            config,
            team_members=question_pack.members,
            round_time=round_time if round_time is not None else question_pack.round_time,
            ai_enabled=config.defaults.ai_enabled and not no_ai,
        )
    except QuestionSourceError as exc:
        console.print(f"[bold red]Question pack error:[/bold red] {exc}")
        sys.exit(1)

    team = question_pack.team
    console.print(
        f"\n[bold cyan]Trivia Host[/bold cyan] -- {controller.total_rounds} questions, "
        f"{controller.state.round_time}s per discussion"
        + (f" | Team: {team}" if team else "")
    )
    asyncio.run(_run_game(controller, team))


@main.command()
@click.argument("team_answer")
@click.argument("correct_answer")
@click.option("--ai/--no-ai", "ai", default=None, help="Ask the oracle on a local mismatch (default: from config)")
@click.option("--language", default=None, help="Language context for the oracle (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def check(team_answer: str, correct_answer: str, ai: bool | None, language: str | None, verbose: bool) -> None:
    """Check TEAM_ANSWER against CORRECT_ANSWER."""
    config = _bootstrap(verbose)
    ai_enabled = config.defaults.ai_enabled if ai is None else ai
    arbitrator = SemanticArbitrator(_oracle_for(config, ai_enabled))
    result = asyncio.run(
        arbitrator.resolve(team_answer, correct_answer, ai_enabled, language or config.defaults.language)
    )
    print_arbitration(result, team_answer, correct_answer)


@main.command()
@click.argument("notes_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--question", required=True, help="The question that was discussed")
@click.option("--answer", "correct_answer", required=True, help="The correct answer")
@click.option("--transcript", "transcript_file", default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Speaker transcript, one 'Name: text' line per utterance")
@click.option("--no-ai", is_flag=True, help="Local heuristics only")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def analyze(
    notes_file: Path,
    question: str,
    correct_answer: str,
    transcript_file: Path | None,
    no_ai: bool,
    verbose: bool,
) -> None:
    """Analyze discussion notes in NOTES_FILE."""
    config = _bootstrap(verbose)
    ai_enabled = config.defaults.ai_enabled and config.defaults.analysis_enabled and not no_ai
    analyzer = DiscussionAnalyzer(_oracle_for(config, ai_enabled))
    notes = notes_file.read_text(encoding="utf-8").strip()
    transcript = transcript_file.read_text(encoding="utf-8").strip() if transcript_file else None
    result = asyncio.run(analyzer.analyze(question, correct_answer, notes, transcript))
    print_analysis(result)


@main.command()
@click.argument("question")
@click.argument("answer")
@click.option("--no-ai", is_flag=True, help="Local heuristics only")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def classify(question: str, answer: str, no_ai: bool, verbose: bool) -> None:
    """Classify QUESTION/ANSWER as Easy, Medium or Hard."""
    config = _bootstrap(verbose)
    classifier = DifficultyClassifier(_oracle_for(config, config.defaults.ai_enabled and not no_ai))
    difficulty = asyncio.run(classifier.classify(question, answer))
    console.print(difficulty.value)


if __name__ == "__main__":
    main()
