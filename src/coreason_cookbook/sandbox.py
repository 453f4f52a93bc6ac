# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

import asyncio
import json
import shlex
from typing import Iterable, Sequence

from loguru import logger

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.error_detection import (
    classify_install_output,
    classify_output,
    failure,
    unready,
)
from coreason_cookbook.exceptions import ProvisioningError
from coreason_cookbook.file_filter import fetch_all_files
from coreason_cookbook.models import BuildError, File, SandboxHandle, SandboxResult
from coreason_cookbook.progress import (
    CREATING_SANDBOX,
    FINALIZING_PREVIEW,
    HOT_RELOADING,
    INSTALLING_DEPS,
    STARTING_SERVER,
    UPDATING_FILES,
    VERIFYING_UPDATE,
    ProgressTracker,
)
from coreason_cookbook.providers.base import SandboxProvider
from coreason_cookbook.retry import RetryPolicy, Sleep, poll_until
from coreason_cookbook.transforms import apply_transformations

PACKAGE_MANIFEST = "package.json"


def extract_new_packages(manifest: str, base_packages: Iterable[str]) -> list[str]:
    """List the dependencies of a ``package.json`` missing from the template.

    Args:
        manifest: Text of the ``package.json`` file.
        base_packages: Packages the sandbox template already ships.

    Returns:
        list[str]: ``name@version`` specs to install. Empty when the manifest
        cannot be parsed.
    """
    try:
        parsed = json.loads(manifest)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing package.json: {e}")
        return []
    if not isinstance(parsed, dict):
        return []

    dependencies = parsed.get("dependencies") or {}
    preinstalled = set(base_packages)
    return [f"{name}@{version}" for name, version in dependencies.items() if name not in preinstalled]


class SandboxOrchestrator:
    """Runs a generated application in a remote sandbox.

    A fresh sandbox is created from the configured template, or an existing one
    is updated in place for the dev server to hot reload. Either way the
    application tree is read back afterwards and becomes the final file set.
    """

    def __init__(
        self,
        provider: SandboxProvider,
        config: CookbookConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initializes the SandboxOrchestrator.

        Args:
            provider: Remote sandbox provider.
            config: Configuration. Defaults are used when omitted.
            sleep: Sleep coroutine for health polling and hot-reload settling.
        """
        self.provider = provider
        self.config = config or CookbookConfig()
        self._sleep = sleep

    async def provision(
        self,
        files: Sequence[File],
        existing_handle: SandboxHandle | None = None,
        tracker: ProgressTracker | None = None,
    ) -> SandboxResult:
        """Run ``files`` in a fresh sandbox, or in ``existing_handle`` when given.

        Install, dev-server and health-check problems end up in
        ``build_errors``.

        Raises:
            ProvisioningError: If the sandbox cannot be created or reached.
        """
        if existing_handle is not None:
            return await self._update(files, existing_handle, tracker)
        return await self._create(files, tracker)

    async def _create(self, files: Sequence[File], tracker: ProgressTracker | None) -> SandboxResult:
        _start(tracker, CREATING_SANDBOX)
        try:
            handle = await self.provider.create_environment(self.config.sandbox_template)
        except Exception as e:
            raise ProvisioningError(f"Failed to create sandbox: {e}") from e
        logger.info(f"Sandbox created: {handle.id}")

        try:
            transformed = apply_transformations(files)
            await self.provider.write_files(handle, self._in_app_dir(transformed))
            _complete(tracker, CREATING_SANDBOX)

            build_errors: list[BuildError] = []

            _start(tracker, INSTALLING_DEPS)
            build_errors.extend(await self._install_new_packages(handle, transformed))
            _complete(tracker, INSTALLING_DEPS)

            _start(tracker, STARTING_SERVER)
            try:
                await self.provider.run_command(
                    handle, f"cd {self.config.sandbox_app_dir} && npm run dev", background=True
                )
                if not await self._wait_until_ready(handle, self.config.fresh_health_policy):
                    logger.warning("Dev server did not become ready within timeout period")
            except Exception as e:
                logger.error(f"Dev server check failed: {e}")
                build_errors.append(failure("Dev server failed to start", e))
            else:
                build_errors.extend(await self._check_build(handle))
            _complete(tracker, STARTING_SERVER)

            return await self._finish(handle, build_errors, tracker)
        finally:
            self.provider.release(handle)

    async def _update(
        self, files: Sequence[File], existing_handle: SandboxHandle, tracker: ProgressTracker | None
    ) -> SandboxResult:
        logger.info(f"Updating existing sandbox: {existing_handle.id}")
        _start(tracker, UPDATING_FILES)
        try:
            handle = await self.provider.connect(existing_handle.id)
        except Exception as e:
            raise ProvisioningError(f"Failed to connect to sandbox {existing_handle.id}: {e}") from e

        try:
            transformed = apply_transformations(files)
            await self.provider.write_files(handle, self._in_app_dir(transformed))
            _complete(tracker, UPDATING_FILES)

            build_errors: list[BuildError] = []

            _start(tracker, INSTALLING_DEPS)
            build_errors.extend(await self._install_new_packages(handle, transformed))
            _complete(tracker, INSTALLING_DEPS)

            _start(tracker, HOT_RELOADING)
            await self._sleep(self.config.hot_reload_delay)
            _complete(tracker, HOT_RELOADING)

            _start(tracker, VERIFYING_UPDATE)
            if not await self._wait_until_ready(handle, self.config.update_health_policy):
                build_errors.append(unready("Updated app did not respond to health checks"))
            _complete(tracker, VERIFYING_UPDATE)

            return await self._finish(handle, build_errors, tracker)
        finally:
            self.provider.release(handle)

    async def _finish(
        self, handle: SandboxHandle, build_errors: list[BuildError], tracker: ProgressTracker | None
    ) -> SandboxResult:
        _start(tracker, FINALIZING_PREVIEW)
        files = await fetch_all_files(self.provider, handle, self.config.sandbox_app_dir)
        preview_url = f"https://{self.provider.host_for(handle, self.config.dev_server_port)}"
        _complete(tracker, FINALIZING_PREVIEW)

        return SandboxResult(
            handle=handle.model_copy(update={"preview_url": preview_url}),
            files=files,
            build_errors=build_errors,
            has_errors=bool(build_errors),
            template=self.config.sandbox_template,
        )

    def _in_app_dir(self, files: Iterable[File]) -> list[File]:
        root = self.config.sandbox_app_dir.rstrip("/")
        return [File(path=f"{root}/{file.path}", content=file.content) for file in files]

    async def _install_new_packages(self, handle: SandboxHandle, files: Sequence[File]) -> list[BuildError]:
        manifest = next((file for file in files if file.path == PACKAGE_MANIFEST), None)
        if manifest is None:
            return []

        packages = extract_new_packages(manifest.content, self.config.base_packages)
        if not packages:
            logger.info("No new packages to install")
            return []

        logger.info(f"Installing new packages: {packages}")
        specs = " ".join(shlex.quote(package) for package in packages)
        command = f"cd {self.config.sandbox_app_dir} && npm install {specs} --no-save"
        try:
            result = await self.provider.run_command(handle, command, timeout=self.config.command_timeout)
        except Exception as e:
            logger.error(f"Failed to install new packages: {e}")
            return [failure("Failed to install dependencies", e)]

        if result.stderr:
            logger.warning(f"npm install warnings: {result.stderr}")
        return classify_install_output(result.stderr)

    async def _wait_until_ready(self, handle: SandboxHandle, policy: RetryPolicy) -> bool:
        url = f"http://localhost:{self.config.dev_server_port}"
        command = f'curl -s -o /dev/null -w "%{{http_code}}" {url}'

        async def healthy(attempt: int) -> bool:
            try:
                result = await self.provider.run_command(handle, command, timeout=policy.command_timeout)
            except Exception as e:
                logger.debug(f"Health check attempt {attempt} failed: {e}")
                return False
            logger.debug(f"Health check attempt {attempt}/{policy.max_attempts}: {result.stdout}")
            return result.stdout.strip() == "200"

        ready = await poll_until(healthy, policy, self._sleep)
        if ready:
            logger.info(f"App is ready at {url}")
        return ready

    async def _check_build(self, handle: SandboxHandle) -> list[BuildError]:
        seconds = self.config.build_check_seconds
        command = f"cd {self.config.sandbox_app_dir} && timeout {seconds}s npm run build 2>&1 || true"
        try:
            result = await self.provider.run_command(handle, command, timeout=seconds + self.config.command_timeout)
        except Exception as e:
            logger.warning(f"Build check failed: {e}")
            return []
        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
        return classify_output(output).errors


def _start(tracker: ProgressTracker | None, step_id: str) -> None:
    if tracker is not None:
        tracker.start_step(step_id)


def _complete(tracker: ProgressTracker | None, step_id: str) -> None:
    if tracker is not None:
        tracker.complete_step(step_id)
