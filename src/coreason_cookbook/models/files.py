# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from pydantic import AliasChoices, BaseModel, Field


class File(BaseModel):
    """A single source file of a generated application.

    Attributes:
        path: Relative POSIX path inside the application (e.g. ``src/App.tsx``).
        content: The full text of the file. Payloads that spell the key
            ``contents`` (LLM and fixer responses) are accepted as well.
    """

    path: str
    content: str = Field(validation_alias=AliasChoices("content", "contents"))


class RemoteEntry(BaseModel):
    """An entry of a sandbox directory listing."""

    name: str
    path: str
    is_dir: bool = False
