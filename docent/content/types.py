"""
Type definitions for museum content.

These are the normalized shapes the rest of the docent works with; whatever
the backend sends is mapped onto them by content.normalize.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Theme:
    """A historical theme the visitor can tour."""

    id: str
    title: str
    description: str = ""
    long_description: str = ""
    context_prompt: str = ""  # System instruction for the docent persona
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class Item:
    """A museum item narrated as one spot of the tour."""

    item_id: str
    item_name: str
    video: str | None = None
    script_child: str = ""
    script_general: str = ""
    item_desc: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class QuizQuestion:
    """A mission question. correct_answer is always the literal option text."""

    question: str
    options: list[str]
    correct_answer: str
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class ProbeResult:
    """Raw diagnostic view of one backend request."""

    ok: bool
    status: int
    status_text: str
    headers: dict[str, str]
    body_text: str
    json: Any = None
