"""
Adapter layer between backend payloads and the content types.

The museum backend has shipped several schemas over time, so every field is
looked up through an ordered list of candidate keys. All of those lists live
here; a backend schema change is a change to this module only.

A key counts as missing when it is absent, None or "". Numeric 0 is a value.
"""

import logging
import re
from typing import Any, Iterable

from .types import Item, QuizQuestion, Theme

logger = logging.getLogger(__name__)


THEME_ID_KEYS = ("theme_id", "id", "ThemeID", "themeId")
THEME_TITLE_KEYS = ("theme_name", "title", "ThemeName", "themeName")
THEME_DESCRIPTION_KEYS = ("theme_desc", "description", "ThemeDesc", "themeDesc")
THEME_LONG_DESCRIPTION_KEYS = (
    "long_description",
    "theme_desc",
    "longDescription",
    "description",
)
THEME_CONTEXT_PROMPT_KEYS = ("context_prompt", "contextPrompt")

ITEM_ID_KEYS = ("item_id", "id", "itemId", "item_idx")
ITEM_NAME_KEYS = ("item_name", "name", "title", "itemName")
ITEM_VIDEO_KEYS = ("video", "video_src", "videoUrl", "src", "file")
ITEM_MEDIA_VIDEO_KEYS = ("video", "url")
ITEM_RAW_VIDEO_KEYS = ("video", "video_src")
ITEM_SCRIPT_CHILD_KEYS = ("script_child", "scriptChild")
ITEM_SCRIPT_GENERAL_KEYS = ("script_general", "scriptGeneral")
ITEM_DESC_KEYS = ("item_desc",)

QUIZ_QUESTION_KEYS = ("question", "question_text", "quiz_question", "prompt", "title", "q")
QUIZ_OPTIONS_KEYS = (
    "options",
    "choices",
    "answers",
    "option_list",
    "items",
    "answer_list",
    "option",
)
QUIZ_LETTER_OPTION_KEYS = ("a", "b", "c", "d", "A", "B", "C", "D")
QUIZ_CORRECT_KEYS = (
    "correctAnswer",
    "answer",
    "correct",
    "correct_answer",
    "key",
    "solution",
    "correctOption",
)

# Candidate URL fields when a video reference is an object rather than a string
VIDEO_URL_KEYS = ("video", "videoUrl", "video_url", "url", "src", "file", "path")
VIDEO_MEDIA_KEYS = ("video", "url", "src")

_OPTION_SPLIT = re.compile(r"\r?\n|\||,")


def _missing(value: Any) -> bool:
    return value is None or value == ""


def first_present(data: dict | None, keys: Iterable[str], default: Any = None) -> Any:
    """Return the value of the first key in keys that is present in data."""
    if not isinstance(data, dict):
        return default
    for key in keys:
        value = data.get(key)
        if not _missing(value):
            return value
    return default


def unescape_newlines(value: Any) -> str:
    """Turn literal backslash-n sequences from the backend into real newlines."""
    if value is None:
        return ""
    return (
        str(value)
        .replace("\\r\\n", "\n")
        .replace("\\r", "\n")
        .replace("\\n", "\n")
    )


def extract_video_url(candidate: Any) -> str | None:
    """
    Pull a video URL out of a string or a loosely-shaped object.

    Strings are trimmed; objects are searched through VIDEO_URL_KEYS and then
    a nested "media" value. Blank results are None.
    """
    if not candidate:
        return None
    if isinstance(candidate, str):
        trimmed = candidate.strip()
        return trimmed or None
    if isinstance(candidate, dict):
        direct = first_present(candidate, VIDEO_URL_KEYS)
        if isinstance(direct, str) and direct.strip():
            return direct.strip()
        media = candidate.get("media")
        if isinstance(media, str):
            media_value = media
        else:
            media_value = first_present(media, VIDEO_MEDIA_KEYS)
        if isinstance(media_value, str) and media_value.strip():
            return media_value.strip()
    return None


# --- Themes ---


def normalize_theme(data: dict) -> Theme:
    return Theme(
        id=str(first_present(data, THEME_ID_KEYS, "")),
        title=str(first_present(data, THEME_TITLE_KEYS, "")),
        description=str(first_present(data, THEME_DESCRIPTION_KEYS, "")),
        long_description=str(first_present(data, THEME_LONG_DESCRIPTION_KEYS, "")),
        context_prompt=str(first_present(data, THEME_CONTEXT_PROMPT_KEYS, "")),
        raw=data,
    )


# --- Items ---


def extract_item_video(data: dict) -> str | None:
    """Item video field: direct keys, then media.*, then the same under raw."""
    video = first_present(data, ITEM_VIDEO_KEYS)
    if _missing(video) and isinstance(data.get("media"), dict):
        video = first_present(data["media"], ITEM_MEDIA_VIDEO_KEYS)
    raw = data.get("raw")
    if _missing(video) and isinstance(raw, dict):
        video = first_present(raw, ITEM_RAW_VIDEO_KEYS)
        if _missing(video) and isinstance(raw.get("media"), dict):
            video = raw["media"].get("video")
        if _missing(video):
            video = raw.get("media_url")
    if _missing(video) or not isinstance(video, str):
        return None
    return video


def _script(data: dict, keys: tuple[str, ...]) -> str:
    value = first_present(data, keys)
    if _missing(value):
        value = first_present(data.get("raw"), keys, "")
    return str(value)


def normalize_item(data: dict, index: int) -> Item:
    return Item(
        item_id=str(first_present(data, ITEM_ID_KEYS, f"itm_{index}")),
        item_name=str(first_present(data, ITEM_NAME_KEYS, f"코스 {index + 1}")),
        video=extract_item_video(data),
        script_child=_script(data, ITEM_SCRIPT_CHILD_KEYS),
        script_general=_script(data, ITEM_SCRIPT_GENERAL_KEYS),
        item_desc=str(first_present(data, ITEM_DESC_KEYS, "")),
        raw=data,
    )


# --- Quizzes ---


def parse_options(data: dict) -> list[str]:
    """
    Find the answer options of a quiz record.

    Accepts a list, a mapping (its values, in order), or a delimited string
    (newline, pipe or comma). Falls back to per-letter fields a..d / A..D.
    """
    options = first_present(data, QUIZ_OPTIONS_KEYS)
    if isinstance(options, dict):
        options = list(options.values())
    if isinstance(options, str):
        pieces = _OPTION_SPLIT.split(unescape_newlines(options))
        options = [p.strip() for p in pieces if p.strip()]
    if not isinstance(options, list):
        options = [data[k] for k in QUIZ_LETTER_OPTION_KEYS if not _missing(data.get(k))]
    return [str(o) for o in options]


def resolve_correct_answer(correct: Any, options: list[str]) -> str:
    """
    Map a correct-answer field onto the literal option text.

    A value equal to one of the options is kept as is. Otherwise an int or an
    all-digit string is read as a 0-based index into options. Anything else,
    out-of-range indices included, is returned unchanged.
    """
    if _missing(correct):
        return ""
    text = str(correct).strip()
    if text in options:
        return text
    if isinstance(correct, bool):
        return text
    if isinstance(correct, int) or text.isdigit():
        index = int(text)
        if 0 <= index < len(options):
            return options[index]
        logger.warning(
            "Correct answer index %s out of range for %d options", text, len(options)
        )
    return text


def normalize_quiz(data: dict, index: int) -> QuizQuestion:
    options = parse_options(data)
    correct = resolve_correct_answer(first_present(data, QUIZ_CORRECT_KEYS), options)
    question = QuizQuestion(
        question=str(first_present(data, QUIZ_QUESTION_KEYS, f"문제 {index + 1}")),
        options=options,
        correct_answer=correct,
        raw=data,
    )
    if not options:
        logger.warning("Quiz item %d has no options after normalization", index)
    return question


def as_record_list(payload: Any) -> list[dict]:
    """Backend list endpoints may answer null, one object, or a list."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return [p for p in payload if isinstance(p, dict)]
    if isinstance(payload, dict):
        return [payload]
    return []
