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
from typing import Sequence

from loguru import logger
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.exceptions import GenerationError
from coreason_cookbook.files import file_summary
from coreason_cookbook.generation.prompts import (
    APP_SYSTEM_PROMPT,
    EDIT_SYSTEM_PROMPT,
    create_app_user_prompt,
    create_edit_user_prompt,
)
from coreason_cookbook.models import File


class GeneratedFiles(BaseModel):
    """Shape of the JSON document the model is asked to return."""

    files: list[File]


class AppGenerator(ABC):
    """
    Abstract base class for application code generators.
    """

    @abstractmethod
    async def generate(self, description: str) -> list[File]:
        """Generate a new application from a natural-language description.

        Raises:
            GenerationError: If no usable files come back.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def edit(self, files: Sequence[File], instruction: str) -> list[File]:
        """Return the files that change when ``instruction`` is applied to ``files``.

        Only changed or new files are returned; callers merge them.

        Raises:
            GenerationError: If no usable files come back.
        """
        pass  # pragma: no cover


class OpenAIGenerator(AppGenerator):
    """
    AppGenerator backed by OpenAI chat completions in JSON mode.
    """

    def __init__(self, config: CookbookConfig | None = None, client: AsyncOpenAI | None = None):
        """Initializes the OpenAIGenerator.

        Args:
            config: Model names, temperatures and credentials.
            client: Preconfigured client. Built from ``config`` when omitted.
        """
        self.config = config or CookbookConfig()
        self.client = client or AsyncOpenAI(
            api_key=self.config.openai_api_key,
            base_url=self.config.openai_base_url,
        )

    async def generate(self, description: str) -> list[File]:
        logger.info(f"Creating app with description: {description}")
        files = await self._complete(
            model=self.config.generation_model,
            temperature=self.config.generation_temperature,
            system=APP_SYSTEM_PROMPT,
            user=create_app_user_prompt(description),
        )
        logger.info(f"Generated files: {file_summary(files)}")
        return files

    async def edit(self, files: Sequence[File], instruction: str) -> list[File]:
        logger.info(f"Editing app with instruction: {instruction}")
        updated = await self._complete(
            model=self.config.edit_model,
            temperature=self.config.edit_temperature,
            system=EDIT_SYSTEM_PROMPT,
            user=create_edit_user_prompt(files, instruction),
        )
        logger.info(f"Generated updated files: {file_summary(updated)}")
        return updated

    async def _complete(self, model: str, temperature: float, system: str, user: str) -> list[File]:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise GenerationError(f"Model request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GenerationError("Failed to generate files - received empty response")

        try:
            generated = GeneratedFiles.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Model returned malformed files: {e}")
            raise GenerationError(f"Model returned malformed files: {e}") from e

        if not generated.files:
            raise GenerationError("Failed to generate files - received empty response")
        return generated.files
