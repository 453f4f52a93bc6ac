# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from abc import ABC, abstractmethod
from typing import Any, Sequence

import httpx
from loguru import logger
from pydantic import ValidationError

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.exceptions import FixerError
from coreason_cookbook.models import File, FixerResult


class CodeFixer(ABC):
    """
    Abstract base class for automated code repair services.
    """

    @abstractmethod
    async def repair(self, files: Sequence[File]) -> FixerResult:
        """Ask the service for a repaired version of ``files``.

        Returns:
            FixerResult: ``success`` with the complete suggested file set, or
            ``success=False`` when the service had nothing usable to offer.

        Raises:
            FixerError: If the service cannot be reached or rejects the call.
        """
        pass  # pragma: no cover


class BenchifyFixer(CodeFixer):
    """CodeFixer backed by the Benchify fixer API."""

    def __init__(self, config: CookbookConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or CookbookConfig()
        self._client = client

    def _request_body(self, files: Sequence[File]) -> dict[str, Any]:
        return {
            "files": [{"path": file.path, "contents": file.content} for file in files],
            "fixes": {"string_literals": True},
        }

    async def repair(self, files: Sequence[File]) -> FixerResult:
        url = f"{self.config.benchify_api_url.rstrip('/')}/fixer"
        headers = {"Authorization": f"Bearer {self.config.benchify_api_key or ''}"}
        logger.info(f"Sending {len(files)} file(s) to Benchify fixer at {url}")

        client = self._client or httpx.AsyncClient(timeout=self.config.fixer_timeout)
        try:
            response = await client.post(url, json=self._request_body(files), headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Benchify API error: {e.response.status_code} {e.response.text}")
            raise FixerError(f"Benchify API error: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Benchify request failed: {e}")
            raise FixerError(f"Benchify request failed: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        return parse_fixer_response(payload)


def parse_fixer_response(payload: Any) -> FixerResult:
    """Extract the suggested files from a fixer response.

    Anything other than ``data.suggested_changes.all_files`` holding a list of
    ``{path, contents}`` objects is reported as an unsuccessful run.
    """
    try:
        all_files = payload["data"]["suggested_changes"]["all_files"]
    except (KeyError, TypeError):
        logger.warning("Benchify fixer returned no suggested changes")
        return FixerResult(success=False)
    if not isinstance(all_files, list):
        logger.warning("Benchify fixer returned an unexpected suggested_changes format")
        return FixerResult(success=False)

    try:
        suggested = [File.model_validate(entry) for entry in all_files]
    except ValidationError as e:
        logger.warning(f"Benchify fixer returned malformed files: {e}")
        return FixerResult(success=False)

    logger.info(f"Benchify fixer suggested {len(suggested)} file(s)")
    return FixerResult(success=True, suggested_files=suggested)
