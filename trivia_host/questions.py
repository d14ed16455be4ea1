"""Question packs: Markdown files with optional YAML frontmatter.

A pack looks like::

    ---
    team: Quiz Wizards
    members: [Ana, Ben, Chloe]
    round_time: 45
    ---

    ## What is the capital of France?
    Answer: Paris
    Topic: Geography
    Difficulty: Easy

Each `## ` heading starts a question. `Answer:` is required, `Topic:` and
`Difficulty:` are optional. Anything else under a heading is ignored.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import frontmatter

from trivia_host.errors import QuestionSourceError
from trivia_host.models import Difficulty, QuestionItem

logger = logging.getLogger(__name__)

_HEADING = re.compile(r"^##\s+(.+?)\s*$")
_FIELD = re.compile(r"^(answer|topic|difficulty)\s*:\s*(.*?)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class QuestionPack:
    questions: list[QuestionItem]
    team: str = ""
    members: tuple[str, ...] = ()
    round_time: int | None = None
    source: str = ""
    extra: dict = field(default_factory=dict)


def _parse_difficulty(raw: str, question: str) -> Difficulty | None:
    for difficulty in Difficulty:
        if raw.strip().lower() == difficulty.value.lower():
            return difficulty
    logger.warning("Unknown difficulty %r for question %r, leaving it unclassified", raw, question[:40])
    return None


def parse_questions(body: str, source: str = "<string>") -> list[QuestionItem]:
    """Parse the Markdown body of a pack.

    Raises:
        QuestionSourceError: If a question has no answer.
    """
    entries: list[dict[str, str]] = []
    for line in body.splitlines():
        heading = _HEADING.match(line)
        if heading:
            entries.append({"question": heading.group(1)})
            continue
        match = _FIELD.match(line.strip())
        if match and entries:
            entries[-1][match.group(1).lower()] = match.group(2)

    questions: list[QuestionItem] = []
    for entry in entries:
        answer = entry.get("answer", "").strip()
        if not answer:
            raise QuestionSourceError(f"{source}: question {entry['question']!r} has no answer")
        difficulty = entry.get("difficulty")
        questions.append(
            QuestionItem(
                question=entry["question"],
                answer=answer,
                difficulty=_parse_difficulty(difficulty, entry["question"]) if difficulty else None,
                topic=entry.get("topic") or None,
            )
        )
    return questions


def load_question_pack(path: Path, limit: int | None = None) -> QuestionPack:
    """Load a question pack, keeping at most `limit` questions.

    Raises:
        QuestionSourceError: If the file is missing or holds no questions.
    """
    path = Path(path)
    if not path.is_file():
        raise QuestionSourceError(f"Question pack not found: {path}")

    post = frontmatter.load(str(path))
    meta = dict(post.metadata)
    questions = parse_questions(post.content, source=str(path))
    if limit is not None:
        questions = questions[:limit]
    if not questions:
        raise QuestionSourceError(f"Question pack has no questions: {path}")

    members = meta.pop("members", None) or []
    if isinstance(members, str):
        members = [m.strip() for m in members.split(",") if m.strip()]
    round_time = meta.pop("round_time", None)

    logger.info("Loaded %d questions from %s", len(questions), path.name)
    return QuestionPack(
        questions=questions,
        team=str(meta.pop("team", "") or ""),
        members=tuple(str(m) for m in members),
        round_time=int(round_time) if round_time is not None else None,
        source=str(path),
        extra=meta,
    )
