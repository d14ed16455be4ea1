"""End-of-session statistics and feedback text."""

from trivia_host.messages import MessageCatalog
from trivia_host.models import PlayerPerformance, ResultsTier, Round, SessionSummary

# (inclusive lower bound in percent, tier, message key), evaluated top-down
_TIERS: list[tuple[float, ResultsTier, str]] = [
    (90, ResultsTier.OUTSTANDING, "results.outstanding"),
    (70, ResultsTier.GREAT, "results.great"),
    (50, ResultsTier.GOOD, "results.good"),
    (30, ResultsTier.NICE_TRY, "results.nice_try"),
]
_MAX_TOPIC_FRAGMENTS = 3


def player_performance(rounds: list[Round]) -> list[PlayerPerformance]:
    """Per-player totals, most correct answers first. Rounds with no player are skipped."""
    stats: dict[str, list[int]] = {}
    for rnd in rounds:
        if not rnd.player_who_answered:
            continue
        entry = stats.setdefault(rnd.player_who_answered, [0, 0])
        entry[0] += 1
        if rnd.is_correct:
            entry[1] += 1

    performances = [
        PlayerPerformance(
            player=player,
            total=total,
            correct=correct,
            percentage=correct / total * 100 if total else 0.0,
        )
        for player, (total, correct) in stats.items()
    ]
    return sorted(performances, key=lambda p: -p.correct)


def results_tier(percentage: float) -> tuple[ResultsTier, str]:
    """Return (tier, message key) for an overall percentage."""
    for lower_bound, tier, key in _TIERS:
        if percentage >= lower_bound:
            return tier, key
    return ResultsTier.DONT_GIVE_UP, "results.dont_give_up"


def _topic_fragment(question: str) -> str:
    words = question.split(" ")
    return " ".join(words[1:4]) if len(words) > 3 else question[:15]


def session_feedback(
    rounds: list[Round],
    performances: list[PlayerPerformance],
    catalog: MessageCatalog | None = None,
) -> str:
    catalog = catalog or MessageCatalog()
    feedback = ""

    best = performances[0] if performances else None
    if best is not None and best.total > 1:
        feedback += catalog.lookup("feedback.top_player", player=best.player, correct=best.correct, total=best.total)

    incorrect = [rnd for rnd in rounds if not rnd.is_correct]
    if incorrect:
        topics = [_topic_fragment(rnd.question) for rnd in incorrect][:_MAX_TOPIC_FRAGMENTS]
        feedback += catalog.lookup("feedback.struggled", topics=", ".join(topics))
    else:
        feedback += catalog.lookup("feedback.all_correct")
    return feedback


def aggregate(rounds: list[Round], catalog: MessageCatalog | None = None) -> SessionSummary:
    catalog = catalog or MessageCatalog()
    performances = player_performance(rounds)
    score = sum(1 for rnd in rounds if rnd.is_correct)
    percentage = score / len(rounds) * 100 if rounds else 0.0
    tier, message_key = results_tier(percentage)
    return SessionSummary(
        performances=performances,
        feedback=session_feedback(rounds, performances, catalog),
        tier=tier,
        results_message=catalog.lookup(message_key),
        score=score,
        total_rounds=len(rounds),
        percentage=percentage,
    )
