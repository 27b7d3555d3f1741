"""
Staged Thinking API Routes

- GET  /settings        effective settings + source (override/env/default)
- POST /settings        persist overrides
- GET  /stages          loaded stage names
- POST /stages/reload   re-read the stage document
- POST /run             manual trigger, returns the accumulated thinking
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from core.models import ChatContext, ChatMessage
from core.orchestrator import get_orchestrator
from utils.logger import log_error, log_info
from utils.pipeline_settings import get_effective_pipeline_settings, override_key
from utils.settings import SettingsManager

router = APIRouter(tags=["staged-thinking"])


class StagedThinkingSettingsUpdate(BaseModel):
    """Partial update. Same bounds as the settings panel inputs."""
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    show_stages: Optional[bool] = None
    max_tokens_per_stage: Optional[int] = Field(default=None, ge=100, le=2000)
    delay_between_stages_ms: Optional[int] = Field(default=None, ge=0, le=1000)
    stage_timeout_s: Optional[float] = Field(default=None, gt=0)
    max_context_messages: Optional[int] = Field(default=None, ge=1)
    max_stage_prompt_chars: Optional[int] = Field(default=None, ge=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    model: Optional[str] = Field(default=None, min_length=1)


class ChatMessageIn(BaseModel):
    mes: str
    is_user: bool = False
    name: Optional[str] = None
    send_date: Optional[str] = None


class RunRequest(BaseModel):
    character_name: Optional[str] = None
    user_name: Optional[str] = None
    chat: List[ChatMessageIn] = Field(default_factory=list)

    def to_context(self) -> ChatContext:
        return ChatContext(
            character_name=self.character_name,
            user_name=self.user_name,
            chat=[ChatMessage(**m.model_dump()) for m in self.chat],
        )


@router.get("/settings")
async def get_staged_thinking_settings():
    return {"effective": get_effective_pipeline_settings(SettingsManager().settings)}


@router.post("/settings")
async def update_staged_thinking_settings(update: StagedThinkingSettingsUpdate):
    values = update.model_dump(exclude_none=True)
    if not values:
        raise HTTPException(status_code=422, detail="No settings provided")

    try:
        SettingsManager().update({override_key(k): v for k, v in values.items()})
    except RuntimeError as e:
        log_error(f"[StagedThinkingAPI] Failed to persist settings: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    log_info(f"[StagedThinkingAPI] Settings updated: {sorted(values)}")
    return {
        "success": True,
        "updated": values,
        "effective": get_effective_pipeline_settings(SettingsManager().settings),
    }


@router.get("/stages")
async def get_stages():
    orch = get_orchestrator()
    document = orch.stage_source.document
    return {
        "loaded": document is not None,
        "path": str(orch.stage_source.path),
        "stages": document.stage_names if document else [],
    }


@router.post("/stages/reload")
async def reload_stages():
    orch = get_orchestrator()
    document = orch.stage_source.reload()
    return {
        "loaded": document is not None,
        "stages": document.stage_names if document else [],
    }


@router.post("/run")
async def run_staged_thinking(request: RunRequest):
    orch = get_orchestrator()
    result = await orch.run_manual(request.to_context())
    return {"result": result}
