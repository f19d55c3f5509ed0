"""Syntax checks for incoming lookup parameters."""

from __future__ import annotations

import re

# Legacy accounts may have names shorter than 3 characters or containing "-",
# so only the upper bound and the character set are enforced.
_MAX_USERNAME_LENGTH = 16
_USERNAME_RE = re.compile(r"[a-zA-Z0-9_-]+")


def is_invalid_username(username: str) -> bool:
    """Return ``True`` if *username* can never be a valid player name."""
    if len(username) > _MAX_USERNAME_LENGTH:
        return True
    return _USERNAME_RE.fullmatch(username) is None
