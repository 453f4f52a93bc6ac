# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""Classification of captured sandbox output into user-facing build errors.

The marker tables below are plain data. Add a marker to a table to teach the
classifier about a new error shape; the control flow does not change.

Sandboxes routinely print permission warnings about their internal caches.
Those are infrastructure noise and are never reported as code errors.
"""

import re
from typing import NamedTuple

from loguru import logger

from coreason_cookbook.models import BuildError, BuildErrorKind, ErrorDetectionResult


class MarkerRule(NamedTuple):
    """A case-sensitive substring and the kind of error it signals."""

    marker: str
    kind: BuildErrorKind


# Ordered: the first matching rule decides the kind of a line.
CODE_ERROR_MARKERS: tuple[MarkerRule, ...] = (
    MarkerRule("SyntaxError", "build-error"),
    MarkerRule("Unexpected token", "build-error"),
    MarkerRule("Parse error", "build-error"),
    MarkerRule("Parsing error", "build-error"),
    MarkerRule("Unterminated string", "build-error"),
    MarkerRule("[plugin:vite:", "build-error"),
    MarkerRule("Cannot resolve module", "build-error"),
    MarkerRule("Module not found", "build-error"),
    MarkerRule("Cannot resolve import", "build-error"),
)

INFRASTRUCTURE_MARKERS: tuple[str, ...] = (
    "EACCES: permission denied",
    "failed to load config from /app/vite.config.ts",
    "error when starting dev server",
    "/app/node_modules/.vite-temp/",
)

# file(line,col): error TSxxxx: message
TYPESCRIPT_DIAGNOSTIC = re.compile(
    r"(?P<file>[^\s()]+)\((?P<line>\d+),(?P<column>\d+)\): error (?P<code>TS\d+): (?P<message>.+)"
)

# Lowercase fragments of TypeScript messages that are not worth surfacing.
TYPE_ERROR_NOISE: tuple[str, ...] = ("deprecated", "unused", "implicit any")

CRITICAL_INSTALL_MARKERS: tuple[str, ...] = ("ENOTFOUND", "ECONNREFUSED", "permission denied")

APP_DIR_PREFIX = "/app/"


def _code_rule_for(line: str) -> MarkerRule | None:
    for rule in CODE_ERROR_MARKERS:
        if rule.marker in line:
            return rule
    return None


def _is_infrastructure(text: str) -> bool:
    return any(marker in text for marker in INFRASTRUCTURE_MARKERS)


def _typescript_error(line: str) -> BuildError | None:
    match = TYPESCRIPT_DIAGNOSTIC.search(line)
    if not match:
        return None
    message = match.group("message").strip()
    if any(noise in message.lower() for noise in TYPE_ERROR_NOISE):
        return None
    return BuildError(
        kind="type-error",
        message=message,
        file=match.group("file").removeprefix(APP_DIR_PREFIX),
        line=int(match.group("line")),
        column=int(match.group("column")),
    )


def parse_typescript_errors(output: str) -> list[BuildError]:
    """Extract TypeScript diagnostics from compiler output.

    Diagnostics whose message mentions deprecation, unused symbols or implicit
    ``any`` are dropped.

    Args:
        output: Raw ``tsc`` or bundler output.

    Returns:
        list[BuildError]: One ``type-error`` per remaining diagnostic line.
    """
    errors = []
    for line in output.splitlines():
        error = _typescript_error(line)
        if error is not None:
            errors.append(error)
    return errors


def _parse_errors_from_output(output: str) -> list[BuildError]:
    errors: list[BuildError] = []
    for line in output.splitlines():
        if _is_infrastructure(line):
            continue
        if TYPESCRIPT_DIAGNOSTIC.search(line):
            error = _typescript_error(line)
            if error is not None:
                errors.append(error)
            continue
        rule = _code_rule_for(line)
        if rule is not None:
            errors.append(BuildError(kind=rule.kind, message=line.strip()))
    return errors


def classify_output(output: str) -> ErrorDetectionResult:
    """Decide whether captured output contains errors in the user's code.

    Args:
        output: Captured stdout/stderr of a build or dev-server command.

    Returns:
        ErrorDetectionResult: ``has_errors`` with the parsed errors when code
        errors are present, ``is_infrastructure_only`` when only sandbox noise
        was found, and an empty result otherwise.
    """
    has_code_markers = _code_rule_for(output) is not None or TYPESCRIPT_DIAGNOSTIC.search(output) is not None
    has_infrastructure_markers = _is_infrastructure(output)
    logger.debug(
        "Classifying output",
        length=len(output),
        code_markers=has_code_markers,
        infrastructure_markers=has_infrastructure_markers,
    )

    if has_code_markers:
        errors = _parse_errors_from_output(output)
        if errors:
            logger.info(f"Detected {len(errors)} code error(s) in sandbox output")
            return ErrorDetectionResult(errors=errors, has_errors=True)

    if has_infrastructure_markers:
        logger.info("Only infrastructure noise detected in sandbox output, ignoring")
        return ErrorDetectionResult(is_infrastructure_only=True)

    return ErrorDetectionResult()


def classify_install_output(stderr: str) -> list[BuildError]:
    """Report critical npm install failures.

    Warnings and peer dependency complaints are ignored. Only ``npm ERR!``
    output caused by network or permission problems becomes an error.
    """
    if "npm ERR!" not in stderr:
        return []
    if not any(marker in stderr for marker in CRITICAL_INSTALL_MARKERS):
        return []
    detail = stderr.split("npm ERR!")[1].strip()
    return [BuildError(kind="build-error", message=f"Package installation failed: {detail}")]


def failure(stage: str, exc: BaseException) -> BuildError:
    """Record an exception raised while installing or starting the app."""
    return BuildError(kind="build-error", message=f"{stage}: {exc}")


def unready(message: str) -> BuildError:
    """Record a preview that never answered its health check."""
    return BuildError(kind="runtime-error", message=message)
