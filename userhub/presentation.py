"""Display helpers that turn stored user records into human-readable cards."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, List, Mapping, Optional

logger = logging.getLogger("userhub.presentation")

PLACEHOLDER = "N/A"


@dataclass(frozen=True)
class UserCard:
    """Presentation details for a single user record."""

    id: str
    name: str
    email: str
    created: str
    updated: str


def format_timestamp(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """Render an ISO-8601 timestamp as e.g. ``Mar 4, 2024, 09:05 PM``.

    Empty values render as ``N/A``. Anything that cannot be parsed is returned
    unchanged so that a bad value never breaks the surrounding page.
    """

    if not value:
        return PLACEHOLDER

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        local = parsed.astimezone(tz or timezone.utc)
        return f"{local:%b} {local.day}, {local:%Y, %I:%M %p}"
    except (TypeError, ValueError, OverflowError) as exc:
        logger.debug("Unable to format timestamp %r: %s", value, exc)
        return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def card_from_record(record: Mapping[str, Any], tz: Optional[tzinfo] = None) -> UserCard:
    """Build a :class:`UserCard` from a record with string-encoded timestamps."""

    return UserCard(
        id=_as_text(record.get("id")),
        name=_as_text(record.get("name")),
        email=_as_text(record.get("email")),
        created=format_timestamp(_as_text(record.get("created_at")), tz),
        updated=format_timestamp(_as_text(record.get("updated_at")), tz),
    )


def render_card_text(card: UserCard) -> List[str]:
    return [
        f"Id: {card.id}",
        card.name,
        card.email,
        f"Created: {card.created}",
        f"Updated: {card.updated}",
    ]


__all__ = ["PLACEHOLDER", "UserCard", "card_from_record", "format_timestamp", "render_card_text"]
