from .stage_executor import StageExecutor

__all__ = ["StageExecutor"]
