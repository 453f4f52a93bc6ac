# src/coreason_cookbook/models/__init__.py

"""
Data models for the cookbook pipeline.
"""

from .errors import BuildError, BuildErrorKind, ErrorDetectionResult
from .files import File, RemoteEntry
from .progress import ProgressState, ProgressStep, StepDefinition, StepStatus
from .results import (
    CommandResult,
    FixerResult,
    PipelineFailure,
    PipelineResult,
    SandboxHandle,
    SandboxResult,
)

__all__ = [
    "BuildError",
    "BuildErrorKind",
    "CommandResult",
    "ErrorDetectionResult",
    "File",
    "FixerResult",
    "PipelineFailure",
    "PipelineResult",
    "ProgressState",
    "ProgressStep",
    "RemoteEntry",
    "SandboxHandle",
    "SandboxResult",
    "StepDefinition",
    "StepStatus",
]
