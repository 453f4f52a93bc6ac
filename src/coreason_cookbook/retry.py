# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

import asyncio
from typing import Awaitable, Callable

from pydantic import BaseModel, Field

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy(BaseModel):
    """Bounded fixed-interval polling.

    Attributes:
        max_attempts: Number of checks before giving up.
        interval: Seconds to wait between two checks.
        command_timeout: Timeout in seconds for a single remote check command.
    """

    max_attempts: int = Field(default=20, ge=1)
    interval: float = Field(default=0.25, ge=0.0)
    command_timeout: float = Field(default=3.0, gt=0.0)


async def poll_until(
    check: Callable[[int], Awaitable[bool]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> bool:
    """Run ``check`` until it returns True or the policy is exhausted.

    Args:
        check: Coroutine function receiving the 1-based attempt number.
        policy: How many times to check and how long to wait in between.
        sleep: Sleep coroutine, injectable for deterministic tests.

    Returns:
        bool: True if a check succeeded, False once all attempts failed.
    """
    for attempt in range(1, policy.max_attempts + 1):
        if await check(attempt):
            return True
        # No wait after the final attempt
        if attempt < policy.max_attempts:
            await sleep(policy.interval)
    return False
