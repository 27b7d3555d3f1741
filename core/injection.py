# core/injection.py
"""
InjectionRacer: hält den letzten PipelineOutput und hängt ihn an den ersten
passenden Prompt-Ready Hook.

Zwei Hooks (Message-Liste / Prompt-String) schließen sich pro Generation aus.
Wer zuerst kommt, gewinnt: der Slot wird beim Konsumieren geleert, der zweite
Hook findet ihn leer vor.
"""

from typing import Any, Dict, List, Optional, Union

from core.events import PromptReadyMessages, PromptReadyText
from core.models import PipelineOutput
from utils.logger import log_debug, log_info

INJECTION_BANNER = "[COMPLETED STAGED REASONING - FOLLOW THIS ANALYSIS]"

PromptTarget = Union[PromptReadyMessages, PromptReadyText]


def format_injection(output: PipelineOutput) -> str:
    text = f"{INJECTION_BANNER}\n{output.accumulated_thinking}"
    if output.final_prompt.strip():
        text += f"\n\n{output.final_prompt.strip()}"
    return text


def insert_before_last_user(messages: List[Dict[str, Any]], entry: Dict[str, Any]) -> int:
    """Fügt `entry` vor der letzten User-Nachricht ein (sonst am Ende). Gibt den Index zurück."""
    for idx in range(len(messages) - 1, -1, -1):
        if messages[idx].get("role") == "user":
            messages.insert(idx, entry)
            return idx
    messages.append(entry)
    return len(messages) - 1


class InjectionRacer:
    def __init__(self):
        self._pending: Optional[PipelineOutput] = None

    @property
    def pending(self) -> Optional[PipelineOutput]:
        return self._pending

    def set_pending(self, output: PipelineOutput):
        if self._pending is not None:
            log_debug("[InjectionRacer] Overwriting unconsumed pending output")
        self._pending = output

    def clear(self):
        if self._pending is not None:
            log_debug("[InjectionRacer] Dropping unconsumed pending output")
        self._pending = None

    def try_consume(self, target: PromptTarget, internal_request: bool = False) -> bool:
        """
        Hängt den Pending-Output an `target` an und leert den Slot.

        Returns:
            True wenn injiziert wurde.
        """
        if self._pending is None:
            return False
        if internal_request or target.internal:
            log_debug("[InjectionRacer] Skipping internal request")
            return False

        output = self._pending
        self._pending = None

        if not output.has_thinking:
            log_info("[InjectionRacer] Pending output has no thinking, nothing to inject")
            return False

        block = format_injection(output)
        if isinstance(target, PromptReadyMessages):
            idx = insert_before_last_user(target.messages, {"role": "system", "content": block})
            log_info(f"[InjectionRacer] Injected thinking into message list at index {idx}")
        else:
            target.prompt = f"{block}\n\n{target.prompt}" if target.prompt else block
            log_info("[InjectionRacer] Injected thinking into prompt string")
        return True
