# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook


class CookbookError(Exception):
    """Base class for errors raised by the cookbook pipeline."""


class GenerationError(CookbookError):
    """The LLM returned no usable files. Aborts the pipeline."""


class ProvisioningError(CookbookError):
    """A sandbox could not be created or connected to. Aborts the pipeline."""


class FixerError(CookbookError):
    """The code fixer could not be reached or answered with garbage.

    Always absorbed by the pipeline, which keeps the pre-repair files.
    """
