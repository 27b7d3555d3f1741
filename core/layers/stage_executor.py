# core/layers/stage_executor.py
"""
StageExecutor: genau EIN LLM-Call pro Stage.

- System-Prompt begrenzt das Model auf Analyse (keine Erzählung)
- User-Prompt = Stage-Prompt (Platzhalter ersetzt) + Chat-Kontext
- Eigenes Token-Budget (max_tokens_per_stage), nicht das der Haupt-Generation
- Fehler werden NICHT weitergereicht: run_stage() liefert dann None

Während ein Call läuft ist `internal_request_active` True. Der TriggerGate
nutzt das, damit unsere eigenen Calls die Pipeline nicht erneut auslösen.
"""

import asyncio
import httpx
from typing import Any, Dict, Optional

from config import STAGE_API_URL, STAGE_API_KEY
from core.errors import StageExecutionFailure
from core.models import StageDefinition
from utils.logger import log_debug, log_warning
from utils.pipeline_settings import PipelineSettings
from utils.placeholders import substitute_params

# Header markiert Requests, die von der Pipeline selbst stammen
INTERNAL_REQUEST_HEADER = "X-Staged-Thinking"

SYSTEM_PROMPT = (
    "You are performing staged reasoning for roleplay. Complete ONLY the current "
    "analysis stage. Be thorough but concise. Do not write the actual narrative yet "
    "- only complete the analysis requested."
)

TRUNCATION_MARKER = "[...]\n"


def build_system_prompt(previous_thinking: str) -> str:
    if previous_thinking.strip():
        return f"{SYSTEM_PROMPT}\n\nPrevious thinking stages:\n{previous_thinking.strip()}"
    return f"{SYSTEM_PROMPT}\n\n(This is the first stage)"


def build_user_prompt(stage_prompt: str, chat_history: str, max_chars: int = 0) -> str:
    """
    Stage-Prompt + Chat-Kontext. Bei max_chars > 0 wird der Kontext von vorne
    gekürzt, die neuesten Nachrichten bleiben erhalten.
    """
    head = f"{stage_prompt}\n\nRecent chat context:\n"
    if max_chars > 0 and len(head) + len(chat_history) > max_chars:
        budget = max_chars - len(head) - len(TRUNCATION_MARKER)
        if budget <= 0:
            return head[:max_chars]
        chat_history = TRUNCATION_MARKER + chat_history[-budget:]
    return head + chat_history


def extract_completion_text(data: Any) -> str:
    """choices[0].message.content, sonst ValueError."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"unexpected response shape: {e!r}") from e
    if content is None:
        return ""
    if not isinstance(content, str):
        raise ValueError(f"content is {type(content).__name__}, expected str")
    return content


class StageExecutor:
    def __init__(
        self,
        api_url: str = STAGE_API_URL,
        api_key: str = STAGE_API_KEY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self._transport = transport
        self.in_flight = 0

    @property
    def internal_request_active(self) -> bool:
        return self.in_flight > 0

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            INTERNAL_REQUEST_HEADER: "stage",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _call_api(
        self,
        stage_name: str,
        system_prompt: str,
        user_prompt: str,
        settings: PipelineSettings,
    ) -> str:
        """Raises StageExecutionFailure."""
        payload = {
            "model": settings.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": settings.max_tokens_per_stage,
            "temperature": settings.temperature,
            "stream": False,
        }

        self.in_flight += 1
        try:
            async with httpx.AsyncClient(
                timeout=settings.stage_timeout_s,
                transport=self._transport,
            ) as client:
                r = await client.post(self.api_url, json=payload, headers=self._headers())
                r.raise_for_status()
                data = r.json()
        except httpx.TimeoutException as e:
            raise StageExecutionFailure(stage_name, f"timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            raise StageExecutionFailure(stage_name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise StageExecutionFailure(stage_name, f"transport error: {e}") from e
        except ValueError as e:
            raise StageExecutionFailure(stage_name, f"invalid JSON body: {e}") from e
        finally:
            self.in_flight -= 1

        try:
            return extract_completion_text(data)
        except ValueError as e:
            raise StageExecutionFailure(stage_name, str(e)) from e

    async def run_stage(
        self,
        stage: StageDefinition,
        previous_thinking: str,
        chat_history: str,
        settings: PipelineSettings,
        character_name: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> Optional[str]:
        """
        Führt eine Stage aus.

        Returns:
            Text der ersten Completion-Choice, oder None bei Fehler/Timeout.
        """
        system_prompt = build_system_prompt(previous_thinking)
        user_prompt = build_user_prompt(
            substitute_params(stage.prompt, character_name, user_name),
            chat_history,
            settings.max_stage_prompt_chars,
        )
        log_debug(f"[StageExecutor] {stage.name}: user prompt {len(user_prompt)} chars")

        try:
            return await asyncio.wait_for(
                self._call_api(stage.name, system_prompt, user_prompt, settings),
                timeout=settings.stage_timeout_s,
            )
        except asyncio.TimeoutError:
            log_warning(f"[StageExecutor] Stage '{stage.name}' timed out after {settings.stage_timeout_s}s")
            return None
        except StageExecutionFailure as e:
            log_warning(f"[StageExecutor] {e}")
            return None
