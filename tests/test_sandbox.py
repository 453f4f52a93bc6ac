# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from typing import Any
from unittest.mock import MagicMock, call

import pytest

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.exceptions import ProvisioningError
from coreason_cookbook.models import CommandResult, File, SandboxHandle
from coreason_cookbook.progress import ProgressRegistry, generation_steps
from coreason_cookbook.sandbox import SandboxOrchestrator, extract_new_packages


def _commands(provider: MagicMock) -> list[str]:
    return [call.args[1] for call in provider.run_command.call_args_list]


def test_extract_new_packages() -> None:
    manifest = '{"dependencies": {"react": "^18.2.0", "lucide-react": "^0.300.0", "zustand": "4.5.0"}}'

    assert extract_new_packages(manifest, {"react", "react-dom"}) == ["lucide-react@^0.300.0", "zustand@4.5.0"]


def test_extract_new_packages_invalid_manifest() -> None:
    assert extract_new_packages("{not json", {"react"}) == []
    assert extract_new_packages("[]", {"react"}) == []
    assert extract_new_packages('{"name": "app"}', {"react"}) == []


@pytest.mark.asyncio
async def test_provision_fresh(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any, app_files: list[File]
) -> None:
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision(app_files)

    mock_provider.create_environment.assert_awaited_once_with("vite-support")
    written = mock_provider.write_files.call_args.args[1]
    assert {f.path for f in written} == {"/app/src/App.tsx", "/app/src/index.css", "/app/package.json"}
    assert next(f for f in written if f.path == "/app/src/index.css").content == '@import "tailwindcss";'

    commands = _commands(mock_provider)
    assert "cd /app && npm install 'lucide-react@^0.300.0' --no-save" in commands
    assert "cd /app && npm run dev" in commands
    assert "cd /app && timeout 5s npm run build 2>&1 || true" in commands
    dev_call = next(c for c in mock_provider.run_command.call_args_list if c.args[1] == "cd /app && npm run dev")
    assert dev_call.kwargs["background"] is True

    assert result.handle.id == "sbx-1"
    assert result.handle.preview_url == "https://5173-sbx-1.e2b.app"
    assert result.template == "vite-support"
    assert result.build_errors == []
    assert result.has_errors is False
    assert [f.path for f in result.files] == ["src/App.tsx"]
    mock_provider.host_for.assert_called_once()
    assert mock_provider.host_for.call_args.args[1] == 5173


@pytest.mark.asyncio
async def test_provision_fresh_reports_build_errors(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any, route_commands: Any
) -> None:
    mock_provider.run_command.side_effect = route_commands(
        {
            "curl": CommandResult(stdout="500"),
            "npm run build": CommandResult(stdout="[plugin:vite:react-babel] /app/src/App.tsx: Unterminated string"),
        }
    )
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision([File(path="src/App.tsx", content='const a = "oops')])

    assert result.has_errors
    assert len(result.build_errors) == 1
    assert result.build_errors[0].kind == "build-error"
    # fresh health policy: three checks, two waits
    assert fake_sleep.calls == [0.25, 0.25]


@pytest.mark.asyncio
async def test_provision_fresh_ignores_infrastructure_noise(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any, route_commands: Any
) -> None:
    mock_provider.run_command.side_effect = route_commands(
        {
            "curl": CommandResult(stdout="200"),
            "npm run build": CommandResult(stdout="error when starting dev server: EACCES: permission denied"),
        }
    )
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision([File(path="src/App.tsx", content="ok")])

    assert result.has_errors is False


@pytest.mark.asyncio
async def test_provision_fresh_dev_server_failure_recorded(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    async def run(handle: SandboxHandle, command: str, background: bool = False, timeout: Any = None) -> Any:
        if background:
            raise RuntimeError("spawn failed")
        return CommandResult(stdout="200")

    mock_provider.run_command.side_effect = run
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision([File(path="src/App.tsx", content="ok")])

    assert result.has_errors
    assert result.build_errors[0].message == "Dev server failed to start: spawn failed"


@pytest.mark.asyncio
async def test_provision_install_failure_recorded(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any, app_files: list[File], route_commands: Any
) -> None:
    mock_provider.run_command.side_effect = route_commands(
        {
            "npm install": CommandResult(stderr="npm ERR! code ENOTFOUND registry.npmjs.org", exit_code=1),
            "curl": CommandResult(stdout="200"),
        }
    )
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision(app_files)

    assert result.has_errors
    assert result.build_errors[0].message.startswith("Package installation failed")


@pytest.mark.asyncio
async def test_provision_create_failure_raises(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    mock_provider.create_environment.side_effect = RuntimeError("quota exceeded")
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    with pytest.raises(ProvisioningError, match="quota exceeded"):
        await orchestrator.provision([File(path="src/App.tsx", content="ok")])


@pytest.mark.asyncio
async def test_update_in_place(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any, registry: ProgressRegistry
) -> None:
    tracker = registry.tracker("s1", generation_steps(update_in_place=True))
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision(
        [File(path="src/App.tsx", content="updated")], SandboxHandle(id="sbx-1"), tracker
    )

    mock_provider.connect.assert_awaited_once_with("sbx-1")
    mock_provider.create_environment.assert_not_awaited()
    assert fake_sleep.calls == [config.hot_reload_delay]
    assert not any("npm run dev" in command for command in _commands(mock_provider))
    assert result.has_errors is False

    state = tracker.get_state()
    assert state is not None
    statuses = {step.id: step.status for step in state.steps}
    assert statuses["updating-files"] == "completed"
    assert statuses["verifying-update"] == "completed"
    assert statuses["finalizing-preview"] == "completed"
    assert statuses["generating-code"] == "pending"


@pytest.mark.asyncio
async def test_update_in_place_unready_is_runtime_error(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any, route_commands: Any
) -> None:
    mock_provider.run_command.side_effect = route_commands({"curl": CommandResult(stdout="502")})
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision([File(path="src/App.tsx", content="x")], SandboxHandle(id="sbx-1"))

    assert result.has_errors
    assert [error.kind for error in result.build_errors] == ["runtime-error"]
    assert fake_sleep.calls == [config.hot_reload_delay, 0.5]


@pytest.mark.asyncio
async def test_update_connect_failure_raises(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    mock_provider.connect.side_effect = RuntimeError("sandbox expired")
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    with pytest.raises(ProvisioningError, match="sbx-gone"):
        await orchestrator.provision([File(path="a", content="b")], SandboxHandle(id="sbx-gone"))


@pytest.mark.asyncio
async def test_health_check_exceptions_count_as_failed_attempts(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    attempts: list[str] = []

    async def run(handle: SandboxHandle, command: str, background: bool = False, timeout: Any = None) -> Any:
        if "curl" in command:
            attempts.append(command)
            if len(attempts) < 2:
                raise TimeoutError("curl timed out")
            return CommandResult(stdout="200")
        return CommandResult()

    mock_provider.run_command.side_effect = run
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision([File(path="src/App.tsx", content="x")], SandboxHandle(id="sbx-1"))

    assert len(attempts) == 2
    assert result.has_errors is False


@pytest.mark.asyncio
async def test_failed_build_check_is_not_a_code_error(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    async def run(handle: SandboxHandle, command: str, background: bool = False, timeout: Any = None) -> Any:
        if "npm run build" in command:
            raise TimeoutError("Sandbox call exceeded 65 seconds limit.")
        return CommandResult(stdout="200")

    mock_provider.run_command.side_effect = run
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    result = await orchestrator.provision([File(path="src/App.tsx", content="ok")])

    assert result.build_errors == []
    assert result.has_errors is False


@pytest.mark.asyncio
async def test_provision_releases_handle(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    await orchestrator.provision([File(path="src/App.tsx", content="ok")])
    await orchestrator.provision([File(path="src/App.tsx", content="ok")], SandboxHandle(id="sbx-1"))

    assert mock_provider.release.call_args_list == [call(SandboxHandle(id="sbx-1"))] * 2


@pytest.mark.asyncio
async def test_handle_released_when_write_fails(
    mock_provider: MagicMock, config: CookbookConfig, fake_sleep: Any
) -> None:
    mock_provider.write_files.side_effect = RuntimeError("disk full")
    orchestrator = SandboxOrchestrator(mock_provider, config, sleep=fake_sleep)

    with pytest.raises(RuntimeError, match="disk full"):
        await orchestrator.provision([File(path="src/App.tsx", content="ok")])

    mock_provider.release.assert_called_once_with(SandboxHandle(id="sbx-1"))
