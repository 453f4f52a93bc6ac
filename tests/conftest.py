from typing import Any, Callable, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.models import CommandResult, File, RemoteEntry, SandboxHandle
from coreason_cookbook.progress import ProgressRegistry
from coreason_cookbook.providers.base import SandboxProvider
from coreason_cookbook.retry import RetryPolicy


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


def command_router(responses: dict[str, CommandResult]) -> Callable[..., Any]:
    """Side effect for ``run_command`` answering by command substring."""

    async def run(handle: SandboxHandle, command: str, background: bool = False, timeout: float | None = None) -> Any:
        for fragment, result in responses.items():
            if fragment in command:
                return result
        return CommandResult()

    return run


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> CookbookConfig:
    return CookbookConfig(
        e2b_api_key="e2b-test",
        openai_api_key="openai-test",
        benchify_api_key="benchify-test",
        fresh_health_policy=RetryPolicy(max_attempts=3, interval=0.25, command_timeout=3.0),
        update_health_policy=RetryPolicy(max_attempts=2, interval=0.5, command_timeout=3.0),
    )


@pytest.fixture
def registry(fake_sleep: FakeSleep) -> ProgressRegistry:
    return ProgressRegistry(sleep=fake_sleep)


@pytest.fixture
def app_files() -> list[File]:
    return [
        File(
            path="src/App.tsx",
            content="export default function App() { return <button className='bg-red-500'>Click</button>; }",
        ),
        File(path="src/index.css", content="@tailwind base;\n@tailwind components;\n@tailwind utilities;"),
        File(
            path="package.json",
            content='{"dependencies": {"react": "^18.2.0", "react-dom": "^18.2.0", "lucide-react": "^0.300.0"}}',
        ),
    ]


@pytest.fixture
def mock_provider() -> Generator[MagicMock, None, None]:
    provider = MagicMock(spec=SandboxProvider)
    provider.create_environment = AsyncMock(return_value=SandboxHandle(id="sbx-1"))
    provider.connect = AsyncMock(return_value=SandboxHandle(id="sbx-1"))
    provider.write_files = AsyncMock()
    provider.run_command = AsyncMock(
        side_effect=command_router({"curl": CommandResult(stdout="200"), "npm run build": CommandResult(stdout="built")})
    )
    provider.list_files = AsyncMock(
        return_value=[
            RemoteEntry(name="App.tsx", path="/app/src/App.tsx"),
        ]
    )
    provider.read_file = AsyncMock(return_value="export default function App() { return null; }")
    provider.host_for = MagicMock(return_value="5173-sbx-1.e2b.app")
    yield provider


@pytest.fixture
def route_commands() -> Callable[[dict[str, CommandResult]], Callable[..., Any]]:
    return command_router
