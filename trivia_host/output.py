"""Rich console output for a trivia session."""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from trivia_host.models import AnalysisResult, ArbitrationResult, Difficulty, Round, SessionSummary

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_DIFFICULTY_STYLE = {
    Difficulty.EASY: "green",
    Difficulty.MEDIUM: "yellow",
    Difficulty.HARD: "red",
}


def print_question(intro: str, number: int, total: int, difficulty: Difficulty | None = None) -> None:
    console.print(Rule(f"[bold cyan]Question {number} of {total}[/bold cyan]"))
    subtitle = None
    if difficulty is not None:
        subtitle = f"[{_DIFFICULTY_STYLE[difficulty]}]{difficulty.value}[/]"
    console.print(Panel(intro, subtitle=subtitle, border_style="cyan"))


def print_hint(text: str) -> None:
    console.print(Text(f"Hint: {text}", style="italic magenta"))


def print_time_left(seconds: int) -> None:
    style = "red" if seconds <= 10 else "dim"
    console.print(Text(f"{seconds}s left", style=style))


def print_arbitration(result: ArbitrationResult, team_answer: str, correct_answer: str) -> None:
    """One-line verdict plus how it was reached."""
    if result.is_correct:
        verdict = Text("Correct", style="bold green")
    else:
        verdict = Text("Incorrect", style="bold red")
    verdict.append(f"  {team_answer or '(no answer)'} vs {correct_answer}", style="default")
    console.print(verdict)

    if result.exact_match:
        console.print(Text("Matched locally", style="dim"))
    elif result.ai_confidence is not None:
        console.print(
            Text(
                f"Oracle: confidence {result.ai_confidence:.2f}"
                + (f" | {result.ai_explanation}" if result.ai_explanation else ""),
                style="dim",
            )
        )


def print_round_feedback(text: str, round_data: Round) -> None:
    style = "green" if round_data.is_correct else "yellow"
    console.print(Panel(text, border_style=style))


def print_analysis(result: AnalysisResult) -> None:
    console.print(Rule(f"[bold]Discussion analysis[/bold] ({result.source})"))
    console.print(result.analysis)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Answer mentioned", "yes" if result.correct_answer_mentioned else "no")
    table.add_row("Confidence", f"{result.confidence:.2f}")
    if result.best_guesses:
        table.add_row("Best guesses", ", ".join(result.best_guesses))
    if result.key_topics:
        table.add_row("Key topics", ", ".join(result.key_topics))
    console.print(table)

    for suggestion in result.suggestions:
        console.print(Text(f"- {suggestion}", style="dim"))

    if result.speaker_contributions:
        speakers = Table(title="Speakers")
        speakers.add_column("Speaker")
        speakers.add_column("Words", justify="right")
        speakers.add_column("Confidence", justify="right")
        for name, contribution in result.speaker_contributions.items():
            speakers.add_row(name, str(contribution.word_count), f"{contribution.confidence:.2f}")
        console.print(speakers)


def print_summary(summary: SessionSummary, team: str = "") -> None:
    title = f"Final results: {team}" if team else "Final results"
    console.print(Rule(f"[bold green]{title}[/bold green]"))
    console.print(
        Text(
            f"Score: {summary.score}/{summary.total_rounds} ({summary.percentage:.0f}%) | "
            f"Tier: {summary.tier.value}",
            style="bold",
        )
    )
    console.print(summary.results_message)

    if summary.performances:
        table = Table(title="Players")
        table.add_column("Player")
        table.add_column("Correct", justify="right")
        table.add_column("Answered", justify="right")
        table.add_column("%", justify="right")
        for perf in summary.performances:
            table.add_row(perf.player, str(perf.correct), str(perf.total), f"{perf.percentage:.0f}")
        console.print(table)

    console.print(Panel(summary.feedback, title="Feedback", border_style="dim"))
