# core/context.py
"""
Context-Window für die Stages: die letzten N Nachrichten als Text.
Dazu der Identitäts-Key einer Nachricht für die Duplikat-Erkennung im TriggerGate.
"""

import hashlib
from typing import Optional

from core.models import ChatContext, ChatMessage
from utils.placeholders import CHAR_FALLBACK, USER_FALLBACK

DEFAULT_MAX_MESSAGES = 10


def get_recent_chat_history(context: ChatContext, max_messages: int = DEFAULT_MAX_MESSAGES) -> str:
    """
    Formatiert die letzten `max_messages` Nachrichten als
    "<speaker>: <text>", getrennt durch Leerzeilen, älteste zuerst.
    """
    if not context.chat or max_messages <= 0:
        return ""

    user_name = context.user_name or USER_FALLBACK
    char_name = context.character_name or CHAR_FALLBACK

    lines = []
    for msg in context.chat[-max_messages:]:
        speaker = user_name if msg.is_user else char_name
        lines.append(f"{speaker}: {msg.mes}")
    return "\n\n".join(lines)


def message_key(message: ChatMessage, chat_length: int) -> str:
    """
    Identity of a user turn.

    Uses the host timestamp when present. Otherwise falls back to the
    transcript length plus a hash of the full text; two different messages
    only collide if they sit at the same position with identical content.
    """
    if message.send_date:
        return f"ts:{message.send_date}"
    digest = hashlib.sha1(message.mes.encode("utf-8")).hexdigest()[:16]
    return f"len:{chat_length}:{digest}"


def last_user_message_key(context: ChatContext) -> Optional[str]:
    """Key der letzten Nachricht, falls sie vom User stammt."""
    last = context.last_message
    if last is None or not last.is_user:
        return None
    return message_key(last, len(context.chat))
