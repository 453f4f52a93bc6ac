# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""Read-back of the application tree from a sandbox, minus template boilerplate."""

from loguru import logger

from coreason_cookbook.models import File, RemoteEntry, SandboxHandle
from coreason_cookbook.providers.base import SandboxProvider

BOILERPLATE_FILES: frozenset[str] = frozenset({"README.md", "eslint.config.js", "package-lock.json"})

BOILERPLATE_PATHS: tuple[str, ...] = (
    "node_modules",
    "public/vite.svg",
    "src/assets/react.svg",
    ".vscode",
    ".git",
)

BINARY_EXTENSIONS: tuple[str, ...] = (".jpg", ".png", ".gif", ".ico", ".woff", ".woff2")

# The template's starter App.tsx, recognisable by this text
STARTER_APP_PATH = "src/App.tsx"
STARTER_APP_MARKER = "Your App"


def relative_path(path: str, root: str) -> str:
    """Strip the sandbox working directory from an absolute path."""
    prefix = root.rstrip("/") + "/"
    return path[len(prefix) :] if path.startswith(prefix) else path


def should_skip(entry: RemoteEntry, relative: str) -> bool:
    """Whether a listing entry is excluded from the read-back."""
    if entry.name == "node_modules" or entry.name.startswith("."):
        return True
    if relative in BOILERPLATE_FILES:
        return True
    if relative.startswith(BOILERPLATE_PATHS):
        return True
    return not entry.is_dir and entry.name.endswith(BINARY_EXTENSIONS)


async def fetch_all_files(provider: SandboxProvider, handle: SandboxHandle, root: str) -> list[File]:
    """Recursively read every application file from the sandbox.

    Dependency folders, hidden entries, boilerplate and binary files are
    skipped. A directory that cannot be listed or a file that cannot be read
    is logged and left out.

    Args:
        provider: Provider the sandbox belongs to.
        handle: Sandbox to read from.
        root: Working directory of the application inside the sandbox.

    Returns:
        list[File]: Files with paths relative to ``root``.
    """
    result: list[File] = []
    await _collect(provider, handle, root, root, result)
    return result


async def _collect(
    provider: SandboxProvider, handle: SandboxHandle, root: str, directory: str, result: list[File]
) -> None:
    try:
        entries = await provider.list_files(handle, directory)
    except Exception as e:
        logger.error(f"Error listing directory {directory}: {e}")
        return

    for entry in entries:
        relative = relative_path(entry.path, root)
        if should_skip(entry, relative):
            continue

        if entry.is_dir:
            await _collect(provider, handle, root, entry.path, result)
            continue

        try:
            content = await provider.read_file(handle, entry.path)
        except Exception as e:
            logger.error(f"Error reading file {entry.path}: {e}")
            continue

        if relative == STARTER_APP_PATH and STARTER_APP_MARKER in content:
            continue
        result.append(File(path=relative, content=content))
