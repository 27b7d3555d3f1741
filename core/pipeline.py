# core/pipeline.py
"""
StagedPipeline: führt die Stages der Reihe nach aus.

Idle → Running → Idle
- Single-Flight: solange ein Run läuft, liefert run() sofort None
- Fehlgeschlagene Stage = Stage ohne Beitrag, der Run läuft weiter
- Kontext wird EINMAL extrahiert und für alle Stages genutzt
- Zwischen den Stages optional eine Pause (delay_between_stages_ms)
"""

import asyncio
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, List, Optional

from core.context import get_recent_chat_history
from core.layers.stage_executor import StageExecutor
from core.models import ChatContext, PipelineOutput, StageDocument, StageResult
from core.stage_source import StageSource
from utils.logger import log_debug, log_info, log_warning
from utils.pipeline_settings import PipelineSettings, load_pipeline_settings
from utils.placeholders import substitute_params


def format_stage_block(stage_name: str, content: str) -> str:
    return f"<think>\n[{stage_name}]\n{content}\n</think>"


class StagedPipeline:
    def __init__(
        self,
        stage_source: StageSource,
        executor: StageExecutor,
        settings_provider: Callable[[], PipelineSettings] = load_pipeline_settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.stage_source = stage_source
        self.executor = executor
        self.settings_provider = settings_provider
        self._sleep = sleep
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @contextmanager
    def _single_flight(self) -> Iterator[None]:
        self._running = True
        try:
            yield
        finally:
            self._running = False

    async def run(self, context: ChatContext) -> Optional[PipelineOutput]:
        """
        Ein kompletter Durchlauf.

        Returns:
            PipelineOutput (auch wenn einzelne Stages fehlschlagen), oder None
            wenn deaktiviert, keine Stages geladen, oder schon ein Run läuft.
        """
        settings = self.settings_provider()
        if not settings.enabled:
            log_debug("[StagedPipeline] Disabled, skipping run")
            return None

        document = self.stage_source.document
        if document is None or not document.stages:
            log_info("[StagedPipeline] No stages loaded, skipping run")
            return None

        if self._running:
            log_info("[StagedPipeline] Run already in progress, ignoring")
            return None

        with self._single_flight():
            return await self._run_stages(document, context, settings)

    async def _run_stages(self, document: StageDocument, context: ChatContext, settings: PipelineSettings) -> PipelineOutput:
        chat_history = get_recent_chat_history(context, settings.max_context_messages)
        stages = document.stages
        total = len(stages)

        blocks: List[str] = []
        results: List[StageResult] = []

        log_info(f"[StagedPipeline] Beginning staged generation ({total} stages)")

        for i, stage in enumerate(stages):
            log_info(f"[StagedPipeline] Running stage {i + 1}/{total}: {stage.name}")

            result = await self.executor.run_stage(
                stage,
                "\n\n".join(blocks),
                chat_history,
                settings,
                character_name=context.character_name,
                user_name=context.user_name,
            )

            if result:
                blocks.append(format_stage_block(stage.name, result))
                results.append(StageResult(name=stage.name, content=result))
                if settings.show_stages:
                    log_info(f"[StagedPipeline] Stage {stage.name} complete:\n{result}")
                else:
                    log_debug(f"[StagedPipeline] Stage {stage.name} complete ({len(result)} chars)")
            else:
                log_warning(f"[StagedPipeline] Stage {i + 1}/{total} {stage.name} returned no result")

            if settings.delay_between_stages_ms > 0 and i < total - 1:
                await self._sleep(settings.delay_between_stages_ms / 1000.0)

        log_info(f"[StagedPipeline] All stages complete ({len(results)}/{total} contributed)")

        return PipelineOutput(
            accumulated_thinking="\n\n".join(blocks),
            stage_results=tuple(results),
            final_prompt=substitute_params(
                document.final_prompt, context.character_name, context.user_name
            ),
        )
