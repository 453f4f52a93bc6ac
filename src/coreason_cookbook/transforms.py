# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""Deterministic rewrites applied to generated files before they reach a sandbox.

LLMs keep emitting Tailwind v3 directives and the React 17 render API while the
sandbox template ships Tailwind v4 and React 18. Each rewrite is a rule made of
a predicate and a rewrite function over one file.

The React rewrite only understands the two-argument
``ReactDOM.render(<el>, document.getElementById('root'))`` shape. Other shapes
are left as they are.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from loguru import logger

from coreason_cookbook.models import File

TAILWIND_V4_IMPORT = '@import "tailwindcss";'

_LEGACY_RENDER_CALL = re.compile(
    r"ReactDOM\.render\(\s*([\s\S]*?),\s*document\.getElementById\(['\"](.*)['\"]\)\s*\)"
)
_ROOT_RENDER_CALL = r"ReactDOM.createRoot(document.getElementById('\2') as HTMLElement).render(\1)"

_LEGACY_IMPORTS = {
    "import ReactDOM from 'react-dom';": "import ReactDOM from 'react-dom/client';",
    'import ReactDOM from "react-dom";': 'import ReactDOM from "react-dom/client";',
}


@dataclass(frozen=True)
class TransformRule:
    """A rewrite applied to every file its predicate accepts."""

    name: str
    predicate: Callable[[File], bool]
    rewrite: Callable[[File], File]


def _uses_tailwind_directives(file: File) -> bool:
    return file.path.endswith(".css") and "@tailwind" in file.content


def _tailwind_v4(file: File) -> File:
    return File(path=file.path, content=TAILWIND_V4_IMPORT)


def _uses_legacy_render(file: File) -> bool:
    return file.path.endswith((".tsx", ".jsx")) and "ReactDOM.render(" in file.content


def _create_root(file: File) -> File:
    content = file.content
    for legacy, modern in _LEGACY_IMPORTS.items():
        content = content.replace(legacy, modern)
    content = _LEGACY_RENDER_CALL.sub(_ROOT_RENDER_CALL, content, count=1)
    return File(path=file.path, content=content)


TAILWIND_V4_RULE = TransformRule("tailwind_v4_import", _uses_tailwind_directives, _tailwind_v4)
REACT_CREATE_ROOT_RULE = TransformRule("react_create_root", _uses_legacy_render, _create_root)

DEFAULT_RULES: tuple[TransformRule, ...] = (TAILWIND_V4_RULE, REACT_CREATE_ROOT_RULE)


def apply_transformations(
    files: Iterable[File], rules: Sequence[TransformRule] = DEFAULT_RULES
) -> list[File]:
    """Apply each rule, in order, to the files it matches.

    The input files are not mutated.

    Args:
        files: The file set to rewrite.
        rules: Rules to apply. Defaults to the Tailwind and React rewrites.

    Returns:
        list[File]: The rewritten file set, in input order.
    """
    result = []
    for file in files:
        for rule in rules:
            if rule.predicate(file):
                logger.info(f"Applying {rule.name} to {file.path}")
                file = rule.rewrite(file)
        result.append(file)
    return result
