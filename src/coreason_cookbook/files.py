# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from typing import Iterable

from coreason_cookbook.models import File


def merge_files(existing: Iterable[File], updates: Iterable[File]) -> list[File]:
    """Merge an edited subset of files into a complete file set.

    Files in ``updates`` replace the file at the same path or are appended when
    the path is new. Files of ``existing`` that are not mentioned survive
    unchanged, so the result holds exactly the union of both path sets.

    Args:
        existing: The complete prior file set.
        updates: The files changed by an edit.

    Returns:
        list[File]: The merged file set, existing order first.
    """
    merged: dict[str, File] = {file.path: file for file in existing}
    for file in updates:
        merged[file.path] = file
    return list(merged.values())


def file_summary(files: Iterable[File]) -> list[dict[str, int | str]]:
    """Path and size of each file, for log lines."""
    return [{"path": file.path, "length": len(file.content)} for file in files]
