from unittest.mock import patch

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.factory import ServiceFactory
from coreason_cookbook.fixer import BenchifyFixer
from coreason_cookbook.generation import OpenAIGenerator
from coreason_cookbook.pipeline import GenerationPipeline
from coreason_cookbook.progress import ProgressRegistry
from coreason_cookbook.providers import E2BProvider


def test_get_provider() -> None:
    config = CookbookConfig(e2b_api_key="key", command_timeout=30.0)
    provider = ServiceFactory.get_provider(config)
    assert isinstance(provider, E2BProvider)
    assert provider.api_key == "key"
    assert provider.timeout == 30.0


def test_get_pipeline_shares_registry() -> None:
    config = CookbookConfig(openai_api_key="test")
    registry = ProgressRegistry()

    pipeline = ServiceFactory.get_pipeline(config, registry=registry)

    assert isinstance(pipeline, GenerationPipeline)
    assert pipeline.registry is registry
    assert isinstance(pipeline.generator, OpenAIGenerator)
    assert isinstance(pipeline.fixer, BenchifyFixer)
    assert isinstance(pipeline.orchestrator.provider, E2BProvider)


def test_get_pipeline_default_registry_uses_config_policy() -> None:
    with patch.dict("os.environ", {"COREASON_COOKBOOK_SUBSCRIBE_POLL_POLICY__MAX_ATTEMPTS": "7"}):
        config = CookbookConfig(openai_api_key="test")
    pipeline = ServiceFactory.get_pipeline(config)
    assert pipeline.registry.poll_policy.max_attempts == 7
