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

from coreason_cookbook.models import CommandResult, File, RemoteEntry, SandboxHandle


class SandboxProvider(ABC):
    """
    Abstract base class for remote sandbox providers (e.g., E2B).
    Follows the Strategy Pattern.
    """

    @abstractmethod
    async def create_environment(self, template: str) -> SandboxHandle:
        """Boot a new sandbox from a template.

        Args:
            template: Provider template or image id.

        Returns:
            SandboxHandle: Reference to the running sandbox.

        Raises:
            Exception: If the sandbox cannot be created.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def connect(self, sandbox_id: str) -> SandboxHandle:
        """Attach to a running sandbox.

        Args:
            sandbox_id: Id returned by an earlier ``create_environment``.

        Returns:
            SandboxHandle: Reference to the running sandbox.

        Raises:
            Exception: If the sandbox does not exist or cannot be reached.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def write_files(self, handle: SandboxHandle, files: Sequence[File]) -> None:
        """Write files into the sandbox, replacing existing ones.

        Args:
            handle: Target sandbox.
            files: Files whose ``path`` is absolute inside the sandbox.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def run_command(
        self,
        handle: SandboxHandle,
        command: str,
        background: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a shell command.

        A non-zero exit code is reported in the result, not raised.

        Args:
            handle: Target sandbox.
            command: Shell command line.
            background: Start the command and return without waiting for it.
            timeout: Seconds to wait for a foreground command.

        Returns:
            CommandResult: Captured output. Empty for background commands.

        Raises:
            TimeoutError: If a foreground command exceeds ``timeout``.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def list_files(self, handle: SandboxHandle, path: str) -> list[RemoteEntry]:
        """List a directory of the sandbox (not recursive)."""
        pass  # pragma: no cover

    @abstractmethod
    async def read_file(self, handle: SandboxHandle, path: str) -> str:
        """Read a text file from the sandbox."""
        pass  # pragma: no cover

    @abstractmethod
    def host_for(self, handle: SandboxHandle, port: int) -> str:
        """Public host name that forwards to ``port`` inside the sandbox."""
        pass  # pragma: no cover

    @abstractmethod
    def release(self, handle: SandboxHandle) -> None:
        """Drop the local reference to a sandbox. The sandbox keeps running."""
        pass  # pragma: no cover
