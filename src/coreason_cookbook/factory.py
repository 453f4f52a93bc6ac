# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.fixer import BenchifyFixer, CodeFixer
from coreason_cookbook.generation import AppGenerator, OpenAIGenerator
from coreason_cookbook.pipeline import GenerationPipeline
from coreason_cookbook.progress import ProgressRegistry
from coreason_cookbook.providers import E2BProvider, SandboxProvider
from coreason_cookbook.sandbox import SandboxOrchestrator


class ServiceFactory:
    """
    Factory to assemble the pipeline and its collaborators from configuration.
    """

    @staticmethod
    def get_provider(config: CookbookConfig) -> SandboxProvider:
        return E2BProvider(api_key=config.e2b_api_key, timeout=config.command_timeout)

    @staticmethod
    def get_generator(config: CookbookConfig) -> AppGenerator:
        return OpenAIGenerator(config)

    @staticmethod
    def get_fixer(config: CookbookConfig) -> CodeFixer:
        return BenchifyFixer(config)

    @staticmethod
    def get_registry(config: CookbookConfig) -> ProgressRegistry:
        return ProgressRegistry(poll_policy=config.subscribe_poll_policy)

    @staticmethod
    def get_pipeline(config: CookbookConfig, registry: ProgressRegistry | None = None) -> GenerationPipeline:
        """
        Returns a GenerationPipeline wired to the configured services.

        The registry is shared with whatever streams progress, so callers that
        serve progress pass their own.
        """
        orchestrator = SandboxOrchestrator(ServiceFactory.get_provider(config), config)
        return GenerationPipeline(
            generator=ServiceFactory.get_generator(config),
            fixer=ServiceFactory.get_fixer(config),
            orchestrator=orchestrator,
            registry=registry or ServiceFactory.get_registry(config),
        )
