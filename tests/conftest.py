# tests/conftest.py
"""
Pytest Fixtures - Wiederverwendbare Test-Komponenten.
"""

import pytest
import sys
from pathlib import Path
from typing import List, Optional

# Add parent dir to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


# ═══════════════════════════════════════════════════════════
# ISOLATION
# ═══════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Jeder Test bekommt eine leere settings.json und keine Env-Overrides."""
    from utils.pipeline_settings import PIPELINE_KEYS
    from utils.settings import SettingsManager

    monkeypatch.setenv("STAGED_THINKING_SETTINGS_FILE", str(tmp_path / "settings.json"))
    for env_key, _default, _parse in PIPELINE_KEYS.values():
        monkeypatch.delenv(env_key, raising=False)
    SettingsManager.reset()
    yield tmp_path / "settings.json"
    SettingsManager.reset()


# ═══════════════════════════════════════════════════════════
# SAMPLE DATA FIXTURES
# ═══════════════════════════════════════════════════════════

@pytest.fixture
def fast_settings():
    """Settings ohne Pause zwischen den Stages."""
    from utils.pipeline_settings import PipelineSettings
    return PipelineSettings(delay_between_stages_ms=0, show_stages=False)


@pytest.fixture
def sample_context():
    """User: hi / Bot: hello, letzte Nachricht vom User."""
    from core.models import ChatContext, ChatMessage
    return ChatContext(
        character_name="Aria",
        user_name="Danny",
        chat=[
            ChatMessage(mes="hi", is_user=True, send_date="2024-05-01T10:00:00"),
            ChatMessage(mes="hello", is_user=False, send_date="2024-05-01T10:00:05"),
            ChatMessage(mes="how are you?", is_user=True, send_date="2024-05-01T10:01:00"),
        ],
    )


@pytest.fixture
def two_stage_document():
    from core.models import StageDefinition, StageDocument
    return StageDocument(
        stages=(
            StageDefinition(name="Ground Truth", prompt="Facts about {{char}} and {{user}}."),
            StageDefinition(name="Strategy", prompt="How should {{char}} answer?"),
        ),
        final_prompt="Now write {{char}}'s reply to {{user}}.",
    )


@pytest.fixture
def loaded_source(two_stage_document):
    """StageSource mit bereits geladenem Dokument (ohne Datei)."""
    from core.stage_source import StageSource
    source = StageSource("/nonexistent/stages.yaml")
    source.document = two_stage_document
    return source


class FakeExecutor:
    """
    Ersetzt StageExecutor. `responses` wird der Reihe nach abgearbeitet,
    None simuliert eine fehlgeschlagene Stage.
    """

    def __init__(self, responses: Optional[List[Optional[str]]] = None, default: Optional[str] = "OUT"):
        self.responses = list(responses or [])
        self.default = default
        self.calls = []
        self.in_flight = 0
        self.gate = None  # optional asyncio.Event, blockiert jeden Call bis set()

    @property
    def internal_request_active(self) -> bool:
        return self.in_flight > 0

    async def run_stage(self, stage, previous_thinking, chat_history, settings,
                        character_name=None, user_name=None):
        self.calls.append({
            "stage": stage.name,
            "previous_thinking": previous_thinking,
            "chat_history": chat_history,
        })
        self.in_flight += 1
        try:
            if self.gate is not None:
                await self.gate.wait()
        finally:
            self.in_flight -= 1
        if self.responses:
            return self.responses.pop(0)
        return self.default


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def make_pipeline(loaded_source, fast_settings):
    """Factory: StagedPipeline mit FakeExecutor."""
    from core.pipeline import StagedPipeline

    def _make(executor=None, settings=None, source=None):
        executor = executor or FakeExecutor()
        return StagedPipeline(
            source or loaded_source,
            executor,
            settings_provider=lambda: settings or fast_settings,
        )
    return _make


@pytest.fixture
def executor_cls():
    return FakeExecutor
