# core/errors.py
"""Fehler-Taxonomie der Staged-Thinking Pipeline."""


class StagedThinkingError(Exception):
    """Basisklasse für alle Pipeline-Fehler."""


class StageSourceUnavailable(StagedThinkingError):
    """Raised when the stage document cannot be resolved or is invalid."""
    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Stage source unavailable ({location}): {reason}")


class StageExecutionFailure(StagedThinkingError):
    """Raised when the backend call for one stage fails."""
    def __init__(self, stage_name: str, reason: str):
        self.stage_name = stage_name
        self.reason = reason
        super().__init__(f"Stage '{stage_name}' failed: {reason}")
