# core/stage_source.py
"""
Lädt das Stage-Dokument (YAML oder JSON) von EINER konfigurierten Stelle.

Format:
    stages:
      - name: Ground Truth
        prompt: "..."
    finalPrompt: "..."

Fehlt die Datei oder ist sie kaputt, bleibt die Pipeline deaktiviert bis
zum nächsten erfolgreichen reload().
"""

import yaml
from pathlib import Path
from typing import Any, Optional, Union

from config import STAGES_FILE
from core.errors import StageSourceUnavailable
from core.models import StageDefinition, StageDocument
from utils.logger import log_info, log_error


def parse_stage_document(data: Any, location: str = "<memory>") -> StageDocument:
    """Validiert ein bereits geparstes Dokument und baut daraus ein StageDocument."""
    if not isinstance(data, dict):
        raise StageSourceUnavailable(location, "document is not a mapping")

    raw_stages = data.get("stages")
    if not isinstance(raw_stages, list):
        raise StageSourceUnavailable(location, "'stages' must be a list")

    stages = []
    for idx, raw in enumerate(raw_stages):
        if not isinstance(raw, dict):
            raise StageSourceUnavailable(location, f"stage #{idx + 1} is not a mapping")
        name = str(raw.get("name") or "").strip()
        prompt = raw.get("prompt")
        if not name:
            raise StageSourceUnavailable(location, f"stage #{idx + 1} has no name")
        if not isinstance(prompt, str) or not prompt.strip():
            raise StageSourceUnavailable(location, f"stage '{name}' has no prompt")
        stages.append(StageDefinition(name=name, prompt=prompt))

    final_prompt = data.get("finalPrompt", data.get("final_prompt", "")) or ""
    if not isinstance(final_prompt, str):
        raise StageSourceUnavailable(location, "'finalPrompt' must be a string")

    return StageDocument(stages=tuple(stages), final_prompt=final_prompt)


class StageSource:
    def __init__(self, path: Union[str, Path] = STAGES_FILE):
        self.path = Path(path)
        self.document: Optional[StageDocument] = None

    @property
    def loaded(self) -> bool:
        return self.document is not None

    def load(self) -> StageDocument:
        """Liest die Datei. Raises StageSourceUnavailable."""
        location = str(self.path)
        if not self.path.is_file():
            raise StageSourceUnavailable(location, "file not found")
        try:
            # Bytes: PyYAML erkennt das Encoding selbst, kaputte Bytes werden zum ReaderError
            data = yaml.safe_load(self.path.read_bytes())
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise StageSourceUnavailable(location, f"unreadable: {e}") from e

        document = parse_stage_document(data, location)
        self.document = document
        log_info(f"[StageSource] Stages loaded: {len(document.stages)} from {location}")
        return document

    def try_load(self) -> Optional[StageDocument]:
        try:
            return self.load()
        except StageSourceUnavailable as e:
            log_error(f"[StageSource] {e}")
            return None

    def reload(self) -> Optional[StageDocument]:
        """Neu laden. Bei Fehler wird das alte Dokument verworfen."""
        self.document = None
        return self.try_load()
