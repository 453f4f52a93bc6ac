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
import time
import uuid
from typing import Callable, Sequence

from loguru import logger

from coreason_cookbook.models import ProgressState, ProgressStep, StepDefinition
from coreason_cookbook.retry import RetryPolicy, Sleep, poll_until

ProgressCallback = Callable[[ProgressState], None]
Unsubscribe = Callable[[], None]

GENERATING_CODE = "generating-code"
FIXING_CODE = "fixing-code"
RUNNING_FIXER = "running-fixer"
CREATING_SANDBOX = "creating-sandbox"
UPDATING_FILES = "updating-files"
INSTALLING_DEPS = "installing-deps"
STARTING_SERVER = "starting-server"
HOT_RELOADING = "hot-reloading"
VERIFYING_UPDATE = "verifying-update"
FINALIZING_PREVIEW = "finalizing-preview"

SANDBOX_CREATE_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        id=CREATING_SANDBOX, label="Creating Sandbox", description="Setting up development environment"
    ),
    StepDefinition(
        id=INSTALLING_DEPS,
        label="Installing Dependencies",
        description="Installing required packages and dependencies",
    ),
    StepDefinition(
        id=STARTING_SERVER,
        label="Starting Dev Server",
        description="Starting development server and running health checks",
    ),
    StepDefinition(
        id=FINALIZING_PREVIEW,
        label="Loading Application",
        description="Waiting for your application to fully load and render",
    ),
)

SANDBOX_UPDATE_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        id=UPDATING_FILES, label="Updating Files", description="Applying changes to your existing sandbox"
    ),
    StepDefinition(
        id=INSTALLING_DEPS, label="Installing Dependencies", description="Installing any new required packages"
    ),
    StepDefinition(
        id=HOT_RELOADING,
        label="Hot Reloading",
        description="Applying changes with hot reload for instant updates",
    ),
    StepDefinition(
        id=VERIFYING_UPDATE,
        label="Verifying Update",
        description="Ensuring the updated code is working correctly",
    ),
    StepDefinition(id=FINALIZING_PREVIEW, label="Finalizing", description="Your application is ready!"),
)


def generation_steps(
    use_fixer: bool = False, update_in_place: bool = False, edit: bool = False
) -> list[StepDefinition]:
    """Steps of a generation or edit run, in execution order."""
    steps = [
        StepDefinition(
            id=GENERATING_CODE,
            label="Applying Edits" if edit else "Generating Code",
            description="Updating your components with AI assistance"
            if edit
            else "Creating components and functionality with AI assistance",
        )
    ]
    if use_fixer:
        steps.append(
            StepDefinition(
                id=FIXING_CODE,
                label="Optimizing Code",
                description="Running Benchify fixer to optimize and fix potential issues",
            )
        )
    steps.extend(SANDBOX_UPDATE_STEPS if update_in_place else SANDBOX_CREATE_STEPS)
    return steps


def fixer_steps(update_in_place: bool = False) -> list[StepDefinition]:
    """Steps of a standalone fixer run, in execution order."""
    steps = [
        StepDefinition(
            id=RUNNING_FIXER,
            label="Running Benchify Fixer",
            description="Analyzing and optimizing code for better performance and quality",
        )
    ]
    steps.extend(SANDBOX_UPDATE_STEPS if update_in_place else SANDBOX_CREATE_STEPS)
    return steps


def generate_session_id() -> str:
    """Return a new opaque session identifier."""
    return uuid.uuid4().hex


def _deliver(callback: ProgressCallback, state: ProgressState) -> None:
    try:
        callback(state)
    except Exception as e:
        logger.error(f"Progress subscriber failed for session {state.session_id}: {e}")


class ProgressRegistry:
    """Keyed store of progress states shared by trackers and stream subscribers.

    One registry is created per application and injected wherever progress is
    produced or consumed. Each operation owns a unique session id; its tracker
    creates the entry and removes it again on cleanup.
    """

    def __init__(self, poll_policy: RetryPolicy | None = None, sleep: Sleep = asyncio.sleep):
        """Initializes the ProgressRegistry.

        Args:
            poll_policy: How long a subscriber waits for a session that does
                not exist yet. Defaults to 20 checks, 50 ms apart.
            sleep: Sleep coroutine used while waiting.
        """
        self.poll_policy = poll_policy or RetryPolicy(max_attempts=20, interval=0.05)
        self._sleep = sleep
        self._states: dict[str, ProgressState] = {}
        self._subscriptions: dict[str, list[ProgressCallback]] = {}

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def create(self, session_id: str, steps: Sequence[StepDefinition]) -> ProgressState:
        """Register a fresh state with every step pending."""
        state = ProgressState(
            session_id=session_id,
            steps=[ProgressStep(**step.model_dump()) for step in steps],
        )
        self._states[session_id] = state
        logger.info(f"Progress tracker created for session {session_id}: {[step.label for step in steps]}")
        return state

    def tracker(
        self,
        session_id: str,
        steps: Sequence[StepDefinition],
        clock: Callable[[], float] = time.time,
    ) -> "ProgressTracker":
        """Create the tracker of a new operation."""
        return ProgressTracker(self, session_id, steps, clock=clock)

    def get(self, session_id: str) -> ProgressState | None:
        """Return the live state of a session, if any."""
        return self._states.get(session_id)

    def snapshot(self, session_id: str) -> ProgressState | None:
        """Return an independent copy of a session's state, if any."""
        state = self._states.get(session_id)
        return state.model_copy(deep=True) if state is not None else None

    def remove(self, session_id: str) -> None:
        self._states.pop(session_id, None)

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscriptions.get(session_id, ()))

    def publish(self, state: ProgressState) -> None:
        """Fan a snapshot out to the stream subscribers of its session."""
        for callback in list(self._subscriptions.get(state.session_id, ())):
            _deliver(callback, state)

    def subscribe(self, session_id: str, callback: ProgressCallback) -> Unsubscribe:
        """Receive every update of a session, starting with its current state.

        A subscriber may attach before the session's tracker exists. In that
        case the registry keeps checking, under ``poll_policy``, for the state
        to appear and replays it once it does. It gives up silently after the
        last attempt.

        Args:
            session_id: The session to follow.
            callback: Called synchronously with a state snapshot per update.

        Returns:
            Unsubscribe: Detaches the callback and cancels any pending wait.
        """
        delivered = False

        def receive(state: ProgressState) -> None:
            nonlocal delivered
            delivered = True
            callback(state)

        callbacks = self._subscriptions.setdefault(session_id, [])
        callbacks.append(receive)

        wait_task: asyncio.Task[None] | None = None
        snapshot = self.snapshot(session_id)
        if snapshot is not None:
            _deliver(receive, snapshot)
        else:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug(f"No event loop to wait for session {session_id}; waiting for live updates only")
            else:
                wait_task = loop.create_task(self._replay_when_created(session_id, receive, lambda: delivered))

        def unsubscribe() -> None:
            if wait_task is not None and not wait_task.done():
                wait_task.cancel()
            if receive in callbacks:
                callbacks.remove(receive)
            if not callbacks and self._subscriptions.get(session_id) is callbacks:
                del self._subscriptions[session_id]

        return unsubscribe

    async def _replay_when_created(
        self, session_id: str, callback: ProgressCallback, delivered: Callable[[], bool]
    ) -> None:
        async def created(attempt: int) -> bool:
            if delivered():
                return True
            snapshot = self.snapshot(session_id)
            if snapshot is None:
                return False
            _deliver(callback, snapshot)
            return True

        await self._sleep(self.poll_policy.interval)
        if not await poll_until(created, self.poll_policy, self._sleep):
            logger.debug(f"Session {session_id} did not appear, giving up replay")


class ProgressTracker:
    """Step state machine of a single operation.

    Each step moves ``pending -> in-progress -> completed | error``. Unknown
    step ids are ignored, so collaborators can report steps that a given run
    does not define.
    """

    def __init__(
        self,
        registry: ProgressRegistry,
        session_id: str,
        steps: Sequence[StepDefinition],
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.session_id = session_id
        self._clock = clock
        self._subscribers: list[ProgressCallback] = []
        registry.create(session_id, steps)

    def _locate(self, step_id: str) -> tuple[ProgressState, int] | None:
        state = self.registry.get(self.session_id)
        if state is None:
            return None
        for index, step in enumerate(state.steps):
            if step.id == step_id:
                return state, index
        return None

    def _emit_update(self) -> None:
        snapshot = self.registry.snapshot(self.session_id)
        if snapshot is None:
            return
        for callback in list(self._subscribers):
            _deliver(callback, snapshot)
        self.registry.publish(snapshot)

    def start_step(self, step_id: str) -> None:
        located = self._locate(step_id)
        if located is None:
            return
        state, index = located
        logger.info(f"Starting step {step_id} for session {self.session_id}")
        step = state.steps[index]
        step.status = "in-progress"
        step.started_at = self._clock()
        state.current_index = index
        self._emit_update()

    def complete_step(self, step_id: str) -> None:
        located = self._locate(step_id)
        if located is None:
            return
        state, index = located
        logger.info(f"Completing step {step_id} for session {self.session_id}")
        step = state.steps[index]
        step.status = "completed"
        step.ended_at = self._clock()
        if all(s.status == "completed" for s in state.steps):
            state.is_complete = True
        self._emit_update()

    def error_step(self, step_id: str, message: str) -> None:
        located = self._locate(step_id)
        if located is None:
            return
        state, index = located
        logger.warning(f"Step {step_id} failed for session {self.session_id}: {message}")
        step = state.steps[index]
        step.status = "error"
        step.ended_at = self._clock()
        step.error = message
        state.has_error = True
        self._emit_update()

    def current_step(self) -> ProgressStep | None:
        """The step currently in progress, if any."""
        state = self.registry.get(self.session_id)
        if state is None:
            return None
        for step in state.steps:
            if step.status == "in-progress":
                return step
        return None

    def get_state(self) -> ProgressState | None:
        return self.registry.snapshot(self.session_id)

    def subscribe(self, callback: ProgressCallback) -> Unsubscribe:
        """Receive this tracker's updates, starting with the current state."""
        self._subscribers.append(callback)
        snapshot = self.registry.snapshot(self.session_id)
        if snapshot is not None:
            _deliver(callback, snapshot)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def cleanup(self) -> None:
        """Drop the session state and instance subscribers."""
        self.registry.remove(self.session_id)
        self._subscribers.clear()
