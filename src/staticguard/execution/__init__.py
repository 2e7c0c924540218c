"""Run orchestration and progress tracking."""

from staticguard.execution.progress import ExecutionProgress, ProgressTracker, RunPhase
from staticguard.execution.task import AnalysisRun, AnalysisTask, TaskState

__all__ = [
    "AnalysisRun",
    "AnalysisTask",
    "ExecutionProgress",
    "ProgressTracker",
    "RunPhase",
    "TaskState",
]
