# core/events.py
"""
Host-Events, auf die sich die Pipeline registriert.

Der Host ruft emit() auf, die Handler werden in Registrierungsreihenfolge
nacheinander abgearbeitet (async Handler werden awaited). Prompt-Ready
Payloads sind mutable: Handler dürfen `messages` / `prompt` verändern,
der Host liest sie nach emit() wieder aus.
"""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class EventType(str, Enum):
    CHAT_CHANGED = "chat_changed"
    GENERATION_STARTED = "generation_started"
    PROMPT_READY_MESSAGES = "prompt_ready_messages"
    PROMPT_READY_TEXT = "prompt_ready_text"
    GENERATION_ENDED = "generation_ended"


@dataclass
class GenerationStarted:
    # internal=True: der Host meldet einen Request, den niemand "live" angestoßen hat (quiet/dry-run)
    internal: bool = False
    # Host-Kontext im Rohformat (name1, characterId, characters, chat), siehe ChatContext.from_host
    context: Optional[Dict[str, Any]] = None


@dataclass
class PromptReadyMessages:
    messages: List[Dict[str, Any]] = field(default_factory=list)
    internal: bool = False


@dataclass
class PromptReadyText:
    prompt: str = ""
    internal: bool = False


class EventSource:
    def __init__(self):
        self._handlers: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, handler: Callable):
        self._handlers.setdefault(EventType(event_type), []).append(handler)

    def off(self, event_type: EventType, handler: Callable):
        handlers = self._handlers.get(EventType(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: EventType) -> int:
        return len(self._handlers.get(EventType(event_type), []))

    async def emit(self, event_type: EventType, payload: Any = None) -> Any:
        """Ruft alle Handler auf und gibt den (ggf. veränderten) Payload zurück."""
        for handler in list(self._handlers.get(EventType(event_type), [])):
            result = handler() if payload is None else handler(payload)
            if inspect.isawaitable(result):
                await result
        return payload
