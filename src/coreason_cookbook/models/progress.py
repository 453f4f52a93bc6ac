# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from typing import Literal

from pydantic import BaseModel

StepStatus = Literal["pending", "in-progress", "completed", "error"]


class StepDefinition(BaseModel):
    """Static description of a step, before it has any status."""

    id: str
    label: str
    description: str


class ProgressStep(StepDefinition):
    """A step of a running operation.

    Attributes:
        status: ``pending`` -> ``in-progress`` -> ``completed`` | ``error``.
        started_at: Epoch seconds when the step started.
        ended_at: Epoch seconds when the step completed or failed.
        error: Failure message for steps in ``error``.
    """

    status: StepStatus = "pending"
    started_at: float | None = None
    ended_at: float | None = None
    error: str | None = None


class ProgressState(BaseModel):
    """Progress of one generation, edit or fix operation."""

    session_id: str
    steps: list[ProgressStep]
    current_index: int = -1
    is_complete: bool = False
    has_error: bool = False
