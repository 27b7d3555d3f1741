"""
utils/pipeline_settings.py - Single Source of Truth: Staged Thinking Config

Precedence (highest wins):
  1. persisted override  (settings.json via SettingsManager)
  2. environment variable
  3. code default

Usage:
    from utils.pipeline_settings import load_pipeline_settings
    cfg = load_pipeline_settings()
    if cfg.enabled: ...
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import config
from utils.logger import log_warning


# ---------------------------------------------------------------------------
# Snapshot handed to the pipeline at the start of every run
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PipelineSettings:
    enabled: bool = True
    show_stages: bool = True
    max_tokens_per_stage: int = 500
    delay_between_stages_ms: int = 100
    stage_timeout_s: float = 60.0
    max_context_messages: int = 10
    max_stage_prompt_chars: int = 12000
    temperature: float = 0.7
    model: str = "ministral-3:8b"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_non_negative_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    parsed = int(value)
    if parsed < 0:
        raise ValueError(f"must be >= 0: {value!r}")
    return parsed


def _parse_positive_int(value: Any) -> int:
    parsed = _parse_non_negative_int(value)
    if parsed == 0:
        raise ValueError(f"must be > 0: {value!r}")
    return parsed


def _parse_positive_float(value: Any) -> float:
    parsed = float(value)
    if parsed <= 0:
        raise ValueError(f"must be > 0: {value!r}")
    return parsed


def _parse_model(value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError("empty model name")
    return text


# ---------------------------------------------------------------------------
# Canonical keys: field -> (env var, code default, parser)
# ---------------------------------------------------------------------------
PIPELINE_KEYS: Dict[str, tuple[str, Any, Callable[[Any], Any]]] = {
    "enabled":                 ("STAGED_THINKING_ENABLED", config.STAGED_THINKING_ENABLED, _parse_bool),
    "show_stages":             ("SHOW_STAGES", config.SHOW_STAGES, _parse_bool),
    "max_tokens_per_stage":    ("MAX_TOKENS_PER_STAGE", config.MAX_TOKENS_PER_STAGE, _parse_positive_int),
    "delay_between_stages_ms": ("DELAY_BETWEEN_STAGES_MS", config.DELAY_BETWEEN_STAGES_MS, _parse_non_negative_int),
    "stage_timeout_s":         ("STAGE_TIMEOUT_S", config.STAGE_TIMEOUT_S, _parse_positive_float),
    "max_context_messages":    ("MAX_CONTEXT_MESSAGES", config.MAX_CONTEXT_MESSAGES, _parse_positive_int),
    "max_stage_prompt_chars":  ("MAX_STAGE_PROMPT_CHARS", config.MAX_STAGE_PROMPT_CHARS, _parse_non_negative_int),
    "temperature":             ("STAGE_TEMPERATURE", config.STAGE_TEMPERATURE, float),
    "model":                   ("STAGE_MODEL", config.STAGE_MODEL, _parse_model),
}

# Persisted overrides are namespaced so they can share settings.json with
# other components.
OVERRIDE_PREFIX = "staged_thinking."


def override_key(field: str) -> str:
    return f"{OVERRIDE_PREFIX}{field}"


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------
def get_effective_pipeline_settings(
    persisted: Dict[str, Any],
) -> Dict[str, Dict[str, Any]]:
    """
    Resolve effective pipeline settings with source tracking.

    Args:
        persisted: Full override dict from SettingsManager.

    Returns:
        {
          "enabled": {"value": True, "source": "override"|"env"|"default"},
          ...
        }
    """
    result: Dict[str, Dict[str, Any]] = {}
    for field, (env_key, default, parse) in PIPELINE_KEYS.items():
        raw = persisted.get(override_key(field))
        if raw is not None and raw != "":
            try:
                result[field] = {"value": parse(raw), "source": "override"}
                continue
            except (TypeError, ValueError) as e:
                log_warning(f"[PipelineSettings] Ignoring override {field}={raw!r}: {e}")

        env_val = os.getenv(env_key, "")
        if env_val:
            try:
                result[field] = {"value": parse(env_val), "source": "env"}
                continue
            except (TypeError, ValueError) as e:
                log_warning(f"[PipelineSettings] Ignoring env {env_key}={env_val!r}: {e}")

        result[field] = {"value": default, "source": "default"}
    return result


def load_pipeline_settings(persisted: Optional[Dict[str, Any]] = None) -> PipelineSettings:
    """Build the settings snapshot. Reads SettingsManager unless `persisted` is given."""
    if persisted is None:
        from utils.settings import SettingsManager
        persisted = SettingsManager().settings
    effective = get_effective_pipeline_settings(persisted)
    return PipelineSettings(**{field: entry["value"] for field, entry in effective.items()})
