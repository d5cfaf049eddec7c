"""
String Sanitization
===================

Cleans untrusted strings before they reach any rendering surface.

Every value is trimmed, stripped of characters outside an allow-list and
capped by code points. Python strings are sequences of code points, so a cap
never splits a multibyte sequence.
"""

import re
from typing import Any, Optional

from alertbridge.config.runtime import DEFAULT_ALLOWED_CHARACTERS


class StringSanitizer:
    """
    Allow-list sanitizer for untrusted text.

    ``clean`` never raises: anything it cannot turn into safe text becomes None.
    """

    def __init__(
        self,
        max_length: int = 1000,
        allowed_characters: str = DEFAULT_ALLOWED_CHARACTERS
    ):
        if max_length < 1:
            raise ValueError("max_length must be positive")
        self.max_length = max_length
        self._disallowed = re.compile(f"[^{allowed_characters}]")

    def clean(self, value: Any) -> Optional[str]:
        """
        Sanitize a single value.

        Scalars (numbers, booleans) are stringified; containers and None
        yield None. Returns None when nothing safe remains.
        """
        if value is None or isinstance(value, (dict, list, tuple, set, bytes)):
            return None
        if not isinstance(value, str):
            value = str(value)

        cleaned = self._disallowed.sub("", value.strip())
        cleaned = cleaned[:self.max_length].strip()
        return cleaned or None

    def clean_or_default(self, value: Any, default: str) -> str:
        """Sanitize, falling back to ``default`` when nothing safe remains."""
        cleaned = self.clean(value)
        return cleaned if cleaned is not None else default

    def has_disallowed(self, value: str) -> bool:
        """Check whether a string would lose characters to sanitization."""
        return bool(self._disallowed.search(value))
