# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""
coreason-cookbook
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import CookbookConfig
from .factory import ServiceFactory
from .files import merge_files
from .models import BuildError, File, PipelineFailure, PipelineResult, ProgressState
from .pipeline import GenerationPipeline
from .progress import ProgressRegistry, ProgressTracker
from .providers import E2BProvider, SandboxProvider
from .sandbox import SandboxOrchestrator

__all__ = [
    "BuildError",
    "CookbookConfig",
    "E2BProvider",
    "File",
    "GenerationPipeline",
    "PipelineFailure",
    "PipelineResult",
    "ProgressRegistry",
    "ProgressState",
    "ProgressTracker",
    "SandboxOrchestrator",
    "SandboxProvider",
    "ServiceFactory",
    "merge_files",
]
