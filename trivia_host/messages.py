"""Key -> template lookup for player-facing text."""

import logging

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES: dict[str, str] = {
    "results.outstanding": "Outstanding! Your team showcased exceptional knowledge!",
    "results.great": "Great job! Your team has impressive knowledge!",
    "results.good": "Good effort! Your team did well!",
    "results.nice_try": "Nice try! Keep learning and you'll improve!",
    "results.dont_give_up": "Don't give up! Every game is a learning opportunity!",
    "feedback.top_player": (
        "{player} was your strongest player, answering {correct} out of {total} questions correctly. "
    ),
    "feedback.struggled": (
        "The team struggled most with questions about {topics}. "
        "Consider studying these topics more for next time!"
    ),
    "feedback.all_correct": "Your team showed excellent knowledge across all question categories!",
    "round.correct": 'Great job! "{answer}" is correct!',
    "round.heard": (
        'I heard the correct answer "{answer}" during your discussion, but it wasn\'t your final answer.'
    ),
    "round.not_heard": 'The correct answer was "{answer}". I didn\'t hear this answer during your discussion.',
    "intro.local": "Let's move on to question {number} of {total}. {question}",
    "intro.oracle": "{intro}\n\nQuestion {number} of {total}: {question}",
    "hint.easy": 'The answer begins with "{initials}" and has {words} word{plural}.',
    "hint.medium": "The answer has {chars} characters in {words} word{plural}.",
    "hint.hard_multi": "The answer is a {words}-word term.",
    "hint.hard_single": "The answer is a single word with {chars} letters.",
}


class MessageCatalog:
    """Template lookup. Unknown keys come back verbatim so missing text is visible, not fatal."""

    def __init__(self, templates: dict[str, str] | None = None) -> None:
        self._templates = {**DEFAULT_MESSAGES, **(templates or {})}

    def lookup(self, key: str, **params) -> str:
        template = self._templates.get(key)
        if template is None:
            logger.debug("Missing message key: %s", key)
            return key
        try:
            return template.format(**params)
        except (KeyError, IndexError) as exc:
            logger.warning("Message %s is missing parameter %s", key, exc)
            return template
