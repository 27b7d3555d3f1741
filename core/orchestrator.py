# core/orchestrator.py
"""
StagedThinkingOrchestrator: verbindet Host-Events mit Gate, Pipeline und Racer.

Ablauf pro Generation:
1. GENERATION_STARTED  → TriggerGate entscheidet → Pipeline läuft → Output pending
2. PROMPT_READY_*      → InjectionRacer hängt Output an den ersten Hook
3. GENERATION_ENDED    → Pending-Slot wird sicherheitshalber geleert

Keine Exception verlässt die Handler: die Generation des Hosts darf an uns
nicht scheitern.

Der Transcript kommt bevorzugt mit dem Event (GenerationStarted.context im
Host-Format), sonst vom context_provider.
"""

from typing import Callable, Optional

from core.events import (
    EventSource,
    EventType,
    GenerationStarted,
    PromptReadyMessages,
    PromptReadyText,
)
from core.gate import TriggerGate
from core.injection import InjectionRacer
from core.layers.stage_executor import StageExecutor
from core.models import AdmissionDecision, ChatContext, PipelineOutput
from core.pipeline import StagedPipeline
from core.stage_source import StageSource
from utils.logger import log_error, log_info, log_warning
from utils.pipeline_settings import PipelineSettings, load_pipeline_settings

MANUAL_RUN_FAILED = "Staged thinking failed or is disabled."


class StagedThinkingOrchestrator:
    def __init__(
        self,
        context_provider: Optional[Callable[[], ChatContext]] = None,
        stage_source: Optional[StageSource] = None,
        executor: Optional[StageExecutor] = None,
        settings_provider: Callable[[], PipelineSettings] = load_pipeline_settings,
        pipeline: Optional[StagedPipeline] = None,
        gate: Optional[TriggerGate] = None,
        racer: Optional[InjectionRacer] = None,
    ):
        self.context_provider = context_provider
        self.stage_source = stage_source or StageSource()
        self.executor = executor or StageExecutor()
        self.pipeline = pipeline or StagedPipeline(
            self.stage_source, self.executor, settings_provider=settings_provider
        )
        self.gate = gate or TriggerGate(self.pipeline)
        self.racer = racer or InjectionRacer()
        self.last_decision: Optional[AdmissionDecision] = None

    # ═══════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════

    def load_stages(self) -> bool:
        if self.stage_source.loaded:
            return True
        return self.stage_source.try_load() is not None

    def attach(self, event_source: EventSource):
        event_source.on(EventType.CHAT_CHANGED, self.on_chat_changed)
        event_source.on(EventType.GENERATION_STARTED, self.on_generation_started)
        event_source.on(EventType.PROMPT_READY_MESSAGES, self.on_prompt_ready_messages)
        event_source.on(EventType.PROMPT_READY_TEXT, self.on_prompt_ready_text)
        event_source.on(EventType.GENERATION_ENDED, self.on_generation_ended)
        log_info("[Orchestrator] Attached to host events")

    def detach(self, event_source: EventSource):
        event_source.off(EventType.CHAT_CHANGED, self.on_chat_changed)
        event_source.off(EventType.GENERATION_STARTED, self.on_generation_started)
        event_source.off(EventType.PROMPT_READY_MESSAGES, self.on_prompt_ready_messages)
        event_source.off(EventType.PROMPT_READY_TEXT, self.on_prompt_ready_text)
        event_source.off(EventType.GENERATION_ENDED, self.on_generation_ended)

    # ═══════════════════════════════════════════════════════════════
    # EVENT HANDLERS
    # ═══════════════════════════════════════════════════════════════

    def on_chat_changed(self, _payload=None):
        self.gate.reset()
        self.racer.clear()
        log_info("[Orchestrator] Chat changed, admission state reset")

    async def on_generation_started(self, event: Optional[GenerationStarted] = None):
        event = event or GenerationStarted()
        try:
            context = self._resolve_context(event)
            decision = self.gate.evaluate(context, internal=event.internal)
            self.last_decision = decision
            if not decision.admitted:
                return

            output = await self.pipeline.run(context)
            if output is not None:
                self.racer.set_pending(output)
        except Exception as e:
            log_error(f"[Orchestrator] Generation hook error: {e}")

    def _resolve_context(self, event: GenerationStarted) -> ChatContext:
        if event.context is not None:
            return ChatContext.from_host(event.context)
        if self.context_provider is not None:
            return self.context_provider()
        log_warning("[Orchestrator] No host context on event and no context provider")
        return ChatContext()

    def on_prompt_ready_messages(self, payload: PromptReadyMessages):
        self._consume(payload)

    def on_prompt_ready_text(self, payload: PromptReadyText):
        self._consume(payload)

    def on_generation_ended(self, _payload=None):
        self.racer.clear()

    def _consume(self, payload):
        try:
            # Nur das Flag der Notification zählt: ein paralleler manueller Run
            # darf die Injection eines echten Host-Zyklus nicht blockieren
            self.racer.try_consume(payload)
        except Exception as e:
            log_error(f"[Orchestrator] Injection error: {e}")

    # ═══════════════════════════════════════════════════════════════
    # MANUAL TRIGGER
    # ═══════════════════════════════════════════════════════════════

    async def run_once(self, context: Optional[ChatContext] = None) -> Optional[PipelineOutput]:
        """Pipeline direkt ausführen, ohne Gate und ohne Pending-Slot."""
        try:
            if context is None:
                context = self.context_provider() if self.context_provider else ChatContext()
            return await self.pipeline.run(context)
        except Exception as e:
            log_error(f"[Orchestrator] Manual run error: {e}")
            return None

    async def run_manual(self, context: Optional[ChatContext] = None) -> str:
        output = await self.run_once(context)
        if output is None or not output.has_thinking:
            return MANUAL_RUN_FAILED
        log_info(f"[Orchestrator] Manual run complete ({len(output.stage_results)} stages)")
        return output.accumulated_thinking


# Singleton
_orchestrator_instance: Optional[StagedThinkingOrchestrator] = None


def get_orchestrator(
    context_provider: Optional[Callable[[], ChatContext]] = None,
) -> StagedThinkingOrchestrator:
    """Prozessweite Instanz. `context_provider` wirkt nur beim ersten Aufruf."""
    global _orchestrator_instance
    if _orchestrator_instance is None:
        _orchestrator_instance = StagedThinkingOrchestrator(context_provider=context_provider)
        _orchestrator_instance.load_stages()
    return _orchestrator_instance


def reset_orchestrator():
    global _orchestrator_instance
    _orchestrator_instance = None
