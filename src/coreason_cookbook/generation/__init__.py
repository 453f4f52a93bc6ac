from .fixtures import BUGGY_FILES, buggy_files
from .llm import AppGenerator, OpenAIGenerator

__all__ = ["AppGenerator", "BUGGY_FILES", "OpenAIGenerator", "buggy_files"]
