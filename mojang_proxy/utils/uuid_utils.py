"""UUID normalization helpers.

The upstream hands out undashed 32-character ids; clients may send either
form in any case.  Everything inside the proxy (cache keys, responses) uses
the canonical lowercase dashed 36-character form.
"""

from __future__ import annotations

import re

_DASHED_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
_UNDASHED_RE = re.compile(r"[0-9a-f]{32}", re.IGNORECASE)


def try_parse_uuid(value: str | None) -> str | None:
    """Return the canonical dashed lowercase form of *value*, or ``None``.

    Accepts both the dashed and the undashed representation.  Anything else
    (wrong length, non-hex characters, misplaced dashes) yields ``None``.
    """
    if not value or not isinstance(value, str):
        return None
    if _DASHED_RE.fullmatch(value):
        return value.lower()
    if _UNDASHED_RE.fullmatch(value):
        return to_dashed(value).lower()
    return None


def to_dashed(undashed: str) -> str:
    """Insert dashes into a 32-character hex id (8-4-4-4-12)."""
    if not _UNDASHED_RE.fullmatch(undashed):
        raise ValueError(f"Invalid UUID format: {undashed!r}")
    return "-".join(
        (
            undashed[0:8],
            undashed[8:12],
            undashed[12:16],
            undashed[16:20],
            undashed[20:],
        )
    )


def to_undashed(uuid: str) -> str:
    """Strip dashes, producing the form the upstream profile endpoint expects."""
    return uuid.replace("-", "")
