import asyncio
import os
from typing import Any, Callable, Sequence, TypeVar

from e2b import CommandExitException, FileType
from e2b_code_interpreter import Sandbox as E2BSandbox
from loguru import logger

from coreason_cookbook.models import CommandResult, File, RemoteEntry, SandboxHandle
from coreason_cookbook.providers.base import SandboxProvider

T = TypeVar("T")


class E2BProvider(SandboxProvider):
    """E2B Cloud implementation of the SandboxProvider.

    Uses E2B cloud-based microVMs to run generated applications. The E2B SDK
    is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, api_key: str | None = None, timeout: float = 60.0):
        """Initializes the E2BProvider.

        Args:
            api_key: E2B API Key. Defaults to E2B_API_KEY env var.
            timeout: Default timeout in seconds for SDK calls.
        """
        self.api_key = api_key or os.getenv("E2B_API_KEY")
        self.timeout = timeout
        self._sandboxes: dict[str, E2BSandbox] = {}

    def _sandbox(self, handle: SandboxHandle) -> E2BSandbox:
        sandbox = self._sandboxes.get(handle.id)
        if sandbox is None:
            raise RuntimeError(f"Sandbox {handle.id} is not connected")
        return sandbox

    async def _run_sdk_command(
        self, func: Callable[..., T], *args: Any, limit: float | None = None, **kwargs: Any
    ) -> T:
        """Helper to run an SDK call in a thread with timeout enforcement.

        Args:
            func: The SDK function to call.
            *args: Positional arguments for the function.
            limit: Timeout in seconds. Defaults to the provider timeout.
            **kwargs: Keyword arguments for the function.

        Returns:
            T: The result of the function call.

        Raises:
            TimeoutError: If the call exceeds the timeout.
        """
        seconds = limit or self.timeout
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout=seconds)
        except asyncio.TimeoutError as e:
            raise TimeoutError(f"Sandbox call exceeded {seconds} seconds limit.") from e

    async def create_environment(self, template: str) -> SandboxHandle:
        logger.info(f"Starting E2B sandbox (template: {template})")
        try:
            sandbox = await asyncio.to_thread(E2BSandbox.create, template=template, api_key=self.api_key)
        except Exception as e:
            logger.error(f"Failed to start E2B sandbox: {e}")
            raise
        self._sandboxes[sandbox.sandbox_id] = sandbox
        logger.info(f"E2B sandbox started: {sandbox.sandbox_id}")
        return SandboxHandle(id=sandbox.sandbox_id)

    async def connect(self, sandbox_id: str) -> SandboxHandle:
        logger.info(f"Connecting to E2B sandbox: {sandbox_id}")
        try:
            sandbox = await asyncio.to_thread(E2BSandbox.connect, sandbox_id, api_key=self.api_key)
        except Exception as e:
            logger.error(f"Failed to connect to E2B sandbox {sandbox_id}: {e}")
            raise
        self._sandboxes[sandbox.sandbox_id] = sandbox
        return SandboxHandle(id=sandbox.sandbox_id)

    async def write_files(self, handle: SandboxHandle, files: Sequence[File]) -> None:
        sandbox = self._sandbox(handle)

        def _write_all() -> None:
            for file in files:
                sandbox.files.write(file.path, file.content)

        try:
            await self._run_sdk_command(_write_all)
        except Exception as e:
            logger.error(f"E2B write failed: {e}")
            raise

    async def run_command(
        self,
        handle: SandboxHandle,
        command: str,
        background: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        sandbox = self._sandbox(handle)
        if background:
            await self._run_sdk_command(sandbox.commands.run, command, background=True)
            return CommandResult()

        seconds = timeout or self.timeout
        try:
            result = await self._run_sdk_command(sandbox.commands.run, command, timeout=seconds, limit=seconds)
        except CommandExitException as e:
            # Non-zero exit is an outcome, not a failure of the provider
            return CommandResult(stdout=e.stdout, stderr=e.stderr, exit_code=e.exit_code)
        return CommandResult(stdout=result.stdout, stderr=result.stderr, exit_code=result.exit_code)

    async def list_files(self, handle: SandboxHandle, path: str) -> list[RemoteEntry]:
        sandbox = self._sandbox(handle)
        entries = await self._run_sdk_command(sandbox.files.list, path)
        return [
            RemoteEntry(name=entry.name, path=entry.path, is_dir=entry.type == FileType.DIR) for entry in entries
        ]

    async def read_file(self, handle: SandboxHandle, path: str) -> str:
        sandbox = self._sandbox(handle)
        content = await self._run_sdk_command(sandbox.files.read, path)
        if content is None:
            raise FileNotFoundError(f"Remote file not found: {path}")
        return str(content)

    def host_for(self, handle: SandboxHandle, port: int) -> str:
        return str(self._sandbox(handle).get_host(port))

    def release(self, handle: SandboxHandle) -> None:
        if self._sandboxes.pop(handle.id, None) is not None:
            logger.debug(f"Released E2B sandbox reference: {handle.id}")
