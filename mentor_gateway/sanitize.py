"""
Bounding and normalization helpers for untrusted input.

Everything that crosses the gateway boundary (client bodies and model replies)
goes through these helpers before it is placed in a prompt or a response.
None of the functions in this module raise.
"""

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from .models import ChatMessage, Entry, Mood

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 800
DEFAULT_COLLECTION_LIMIT = 20

ENTRY_TEXT_MAX = 500
MOOD_NAME_MAX = 50
MOOD_NOTE_MAX = 240

# Timestamp keys in precedence order, the first non-empty value wins
TIMESTAMP_ALIASES = ("created_at", "createdAt")


# MARK: - Bounding


def sanitize(value: Any, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Return ``value`` as a trimmed string of at most ``max_chars`` characters."""
    if value is None:
        return ""
    return str(value).strip()[: max(max_chars, 0)].rstrip()


def clip_collection(items: Any, limit: int = DEFAULT_COLLECTION_LIMIT) -> list[Any]:
    """Return the first ``limit`` items of a list or tuple, or an empty list."""
    if not isinstance(items, (list, tuple)):
        return []
    return list(items[: max(limit, 0)])


def safe_json_parse(raw: Any, fallback: Any = None) -> Any:
    """
    Parse ``raw`` as JSON, returning ``fallback`` when it is not valid JSON.

    The fallback defaults to a fresh empty dict.
    """
    if fallback is None:
        fallback = {}
    try:
        return json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        logger.debug("Discarding unparseable JSON text")
        return fallback


def sanitize_strings(values: Any, limit: int, max_chars: int) -> list[str]:
    """Clip a collection and sanitize each element, dropping blanks."""
    cleaned = (sanitize(value, max_chars) for value in clip_collection(values, limit))
    return [value for value in cleaned if value]


# MARK: - Normalizers


def _as_mapping(item: Any) -> Mapping[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump()
    if isinstance(item, Mapping):
        return item
    return {}


def first_alias(record: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    """Return the first non-empty value among ``aliases``, else None."""
    for key in aliases:
        value = record.get(key)
        if value:
            return value
    return None


def normalize_entry(item: Any) -> Entry:
    record = _as_mapping(item)
    return Entry(
        text=sanitize(record.get("text") or "", ENTRY_TEXT_MAX),
        created_at=first_alias(record, TIMESTAMP_ALIASES),
    )


def normalize_mood(item: Any) -> Mood:
    record = _as_mapping(item)
    return Mood(
        mood=sanitize(record.get("mood") or "", MOOD_NAME_MAX),
        note=sanitize(record.get("note") or "", MOOD_NOTE_MAX),
        created_at=first_alias(record, TIMESTAMP_ALIASES),
    )


def normalize_entries(entries: Any, limit: int = DEFAULT_COLLECTION_LIMIT) -> list[Entry]:
    """
    Bound a client-supplied list of entries.

    At most ``limit`` entries are kept, in their original order. Items that
    are not objects become empty entries.
    """
    return [normalize_entry(item) for item in clip_collection(entries, limit)]


def normalize_moods(moods: Any, limit: int = DEFAULT_COLLECTION_LIMIT) -> list[Mood]:
    """Bound a client-supplied list of mood check-ins, see ``normalize_entries``."""
    return [normalize_mood(item) for item in clip_collection(moods, limit)]


def normalize_mood_value(value: Any) -> Mood | None:
    """
    Normalize a single mood given either as a record or as a bare mood name.

    Returns None when nothing usable remains.
    """
    if isinstance(value, str):
        mood = Mood(mood=sanitize(value, MOOD_NAME_MAX))
    elif isinstance(value, (Mapping, BaseModel)):
        mood = normalize_mood(value)
    else:
        return None
    if not mood.mood and not mood.note:
        return None
    return mood


def normalize_conversation(
    conversation: Any, max_messages: int, max_chars: int
) -> list[ChatMessage]:
    """
    Turn client chat history into user/assistant messages.

    Only ``assistant`` is kept as a role, everything else is sent as ``user``.
    Content comes from ``content`` then ``text``. Empty messages are dropped
    and only the most recent ``max_messages`` are returned.
    """
    if not isinstance(conversation, (list, tuple)):
        return []

    messages = []
    for item in conversation:
        record = _as_mapping(item)
        content = sanitize(record.get("content") or record.get("text") or "", max_chars)
        if not content:
            continue
        role = "assistant" if record.get("role") == "assistant" else "user"
        messages.append(ChatMessage(role=role, content=content))

    if max_messages <= 0:
        return []
    return messages[-max_messages:]
