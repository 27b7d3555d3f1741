# core/__init__.py
from .models import (
    ChatMessage,
    ChatContext,
    StageDefinition,
    StageDocument,
    StageResult,
    PipelineOutput,
    AdmissionDecision,
)
from .errors import StagedThinkingError, StageSourceUnavailable, StageExecutionFailure
from .events import EventSource, EventType, GenerationStarted, PromptReadyMessages, PromptReadyText
from .orchestrator import StagedThinkingOrchestrator, get_orchestrator

__all__ = [
    "ChatMessage",
    "ChatContext",
    "StageDefinition",
    "StageDocument",
    "StageResult",
    "PipelineOutput",
    "AdmissionDecision",
    "StagedThinkingError",
    "StageSourceUnavailable",
    "StageExecutionFailure",
    "EventSource",
    "EventType",
    "GenerationStarted",
    "PromptReadyMessages",
    "PromptReadyText",
    "StagedThinkingOrchestrator",
    "get_orchestrator",
]
