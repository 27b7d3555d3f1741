# core/gate.py
"""
TriggerGate: entscheidet pro "Generation startet"-Event, ob die Pipeline läuft.

Regeln in dieser Reihenfolge, die erste zutreffende entscheidet:
  1. Pipeline deaktiviert
  2. Request stammt von uns selbst (Stage-Call)
  3. Pipeline läuft bereits
  4. Erstes Event nach Chat-(Neu-)Laden (Cold Start)
  5. Transcript leer
  6. Letzte Nachricht ist nicht vom User
  7. Diese User-Nachricht wurde schon verarbeitet
  8. Sonst: zulassen und Key SOFORT merken
"""

from typing import Callable, Optional

from core.context import last_user_message_key
from core.models import AdmissionDecision, ChatContext
from core.pipeline import StagedPipeline
from utils.logger import log_debug, log_info
from utils.pipeline_settings import PipelineSettings


class TriggerGate:
    def __init__(
        self,
        pipeline: StagedPipeline,
        settings_provider: Optional[Callable[[], PipelineSettings]] = None,
    ):
        self.pipeline = pipeline
        self.settings_provider = settings_provider or pipeline.settings_provider
        self.last_processed_key: Optional[str] = None
        # Nach Prozessstart gibt es noch keinen User-Turn, auf den wir reagieren könnten
        self.suppress_next_trigger = True

    def reset(self):
        """Chat gewechselt / neu geladen."""
        self.last_processed_key = None
        self.suppress_next_trigger = True

    def _suppress(self, reason: str) -> AdmissionDecision:
        log_debug(f"[TriggerGate] Suppressed: {reason}")
        return AdmissionDecision(admitted=False, reason=reason)

    def evaluate(self, context: ChatContext, internal: bool = False) -> AdmissionDecision:
        if not self.settings_provider().enabled:
            return self._suppress("disabled")

        if internal or self.pipeline.executor.internal_request_active:
            return self._suppress("internal_request")

        if self.pipeline.running:
            return self._suppress("pipeline_running")

        if self.suppress_next_trigger:
            self.suppress_next_trigger = False
            return self._suppress("cold_start")

        if not context.chat:
            return self._suppress("empty_chat")

        key = last_user_message_key(context)
        if key is None:
            return self._suppress("last_message_not_user")

        if key == self.last_processed_key:
            return self._suppress("already_processed")

        self.last_processed_key = key
        log_info(f"[TriggerGate] Admitted new user message ({key})")
        return AdmissionDecision(admitted=True, reason="new_user_message", message_key=key)
