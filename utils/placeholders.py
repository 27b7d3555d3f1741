# utils/placeholders.py
"""
Ersetzt {{char}} und {{user}} in Stage-Prompts.

Case-insensitive und global. Fehlt ein Name, wird ein fester Fallback
eingesetzt statt zu crashen.
"""

import re
from typing import Optional

CHAR_FALLBACK = "Character"
USER_FALLBACK = "User"

_CHAR_PATTERN = re.compile(r"\{\{char\}\}", re.IGNORECASE)
_USER_PATTERN = re.compile(r"\{\{user\}\}", re.IGNORECASE)


def substitute_params(
    text: str,
    character_name: Optional[str] = None,
    user_name: Optional[str] = None,
) -> str:
    if not text:
        return ""
    char = character_name or CHAR_FALLBACK
    user = user_name or USER_FALLBACK
    # Lambda statt Replacement-String, damit Backslashes im Namen nicht als Gruppen-Referenz gelten
    text = _CHAR_PATTERN.sub(lambda _m: char, text)
    return _USER_PATTERN.sub(lambda _m: user, text)
