# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from typing import Sequence

from loguru import logger

from coreason_cookbook.exceptions import GenerationError
from coreason_cookbook.files import file_summary, merge_files
from coreason_cookbook.fixer import CodeFixer
from coreason_cookbook.generation import AppGenerator, buggy_files
from coreason_cookbook.models import File, PipelineFailure, PipelineResult, SandboxHandle, SandboxResult
from coreason_cookbook.progress import (
    FIXING_CODE,
    GENERATING_CODE,
    RUNNING_FIXER,
    ProgressRegistry,
    ProgressTracker,
    fixer_steps,
    generate_session_id,
    generation_steps,
)
from coreason_cookbook.sandbox import SandboxOrchestrator

GENERATION_FAILED = "Failed to generate app"
FIXER_FAILED = "Failed to run Benchify fixer"
FIXER_FALLBACK_MESSAGE = "Fixer optimization failed, continuing with original code"


class GenerationPipeline:
    """Turns a description or an edit into a running, previewable application.

    A run goes through code generation, optional repair by the code fixer and
    sandbox provisioning, reporting each step to a progress tracker keyed by
    the run's session id. Failures never escape: they come back as a
    ``PipelineFailure`` and the step that was running is marked as failed.
    """

    def __init__(
        self,
        generator: AppGenerator,
        fixer: CodeFixer,
        orchestrator: SandboxOrchestrator,
        registry: ProgressRegistry,
    ):
        self.generator = generator
        self.fixer = fixer
        self.orchestrator = orchestrator
        self.registry = registry

    async def run_pipeline(
        self,
        description: str,
        existing_files: Sequence[File] | None = None,
        edit_instruction: str | None = None,
        *,
        use_fixer: bool = False,
        use_buggy_code: bool = False,
        session_id: str | None = None,
        existing_sandbox_id: str | None = None,
    ) -> PipelineResult | PipelineFailure:
        """Generate or edit an application and run it in a sandbox.

        Args:
            description: What the application should do.
            existing_files: Current files, for an edit.
            edit_instruction: Requested change, for an edit. An edit runs only
                when both this and ``existing_files`` are given.
            use_fixer: Pass the generated code through the code fixer first.
            use_buggy_code: Skip the model and use the broken debug fixture.
            session_id: Progress session to report to. Generated when omitted.
            existing_sandbox_id: Update this sandbox instead of creating one.

        Returns:
            PipelineResult | PipelineFailure: The running application, or the
            reason it could not be produced.
        """
        is_edit = bool(existing_files) and bool(edit_instruction)
        session_id = session_id or generate_session_id()
        existing_sandbox_id = existing_sandbox_id or None
        tracker = self.registry.tracker(
            session_id,
            generation_steps(use_fixer=use_fixer, update_in_place=existing_sandbox_id is not None, edit=is_edit),
        )

        try:
            tracker.start_step(GENERATING_CODE)
            generated = await self._produce_files(description, existing_files, edit_instruction, use_buggy_code)
            tracker.complete_step(GENERATING_CODE)

            files = await self._optimize(generated, tracker) if use_fixer else generated

            sandbox = await self._provision(files, existing_sandbox_id, tracker)
            if existing_sandbox_id:
                build_output = f"Sandbox updated in place, ID: {sandbox.handle.id}"
            else:
                build_output = f"Sandbox created with template: {sandbox.template}, ID: {sandbox.handle.id}"

            return PipelineResult(
                original_files=generated,
                repaired_files=sandbox.files,
                build_output=build_output,
                preview_url=sandbox.handle.preview_url,
                sandbox_id=sandbox.handle.id,
                build_errors=sandbox.build_errors,
                has_errors=sandbox.has_errors,
                session_id=session_id,
                edit_instruction=edit_instruction if is_edit else None,
            )
        except Exception as e:
            logger.error(f"Error generating app for session {session_id}: {e}")
            _fail_current_step(tracker, str(e))
            return PipelineFailure(error=GENERATION_FAILED, message=str(e), session_id=session_id)
        finally:
            tracker.cleanup()

    async def run_fixer(
        self,
        files: Sequence[File],
        *,
        session_id: str | None = None,
        existing_sandbox_id: str | None = None,
    ) -> PipelineResult | PipelineFailure:
        """Repair ``files`` with the code fixer and run the result in a sandbox.

        An unusable fixer answer keeps the input files. A fixer that cannot be
        reached fails the run.
        """
        session_id = session_id or generate_session_id()
        existing_sandbox_id = existing_sandbox_id or None
        tracker = self.registry.tracker(session_id, fixer_steps(update_in_place=existing_sandbox_id is not None))
        originals = list(files)

        try:
            tracker.start_step(RUNNING_FIXER)
            result = await self.fixer.repair(originals)
            if result.success and result.suggested_files:
                repaired = result.suggested_files
            else:
                logger.warning("Unexpected fixer response structure, keeping original files")
                repaired = originals
            tracker.complete_step(RUNNING_FIXER)

            sandbox = await self._provision(repaired, existing_sandbox_id, tracker)
            if existing_sandbox_id:
                build_output = f"Sandbox updated with optimized code, ID: {sandbox.handle.id}"
            else:
                build_output = f"Sandbox created with template: {sandbox.template}, ID: {sandbox.handle.id}"

            return PipelineResult(
                original_files=originals,
                repaired_files=sandbox.files,
                build_output=build_output,
                preview_url=sandbox.handle.preview_url,
                sandbox_id=sandbox.handle.id,
                build_errors=sandbox.build_errors,
                has_errors=sandbox.has_errors,
                session_id=session_id,
            )
        except Exception as e:
            logger.error(f"Error running fixer for session {session_id}: {e}")
            _fail_current_step(tracker, str(e))
            return PipelineFailure(error=FIXER_FAILED, message=str(e), session_id=session_id)
        finally:
            tracker.cleanup()

    async def _produce_files(
        self,
        description: str,
        existing_files: Sequence[File] | None,
        edit_instruction: str | None,
        use_buggy_code: bool,
    ) -> list[File]:
        if existing_files and edit_instruction:
            logger.info("Processing edit request")
            updates = await self.generator.edit(existing_files, edit_instruction)
            files = merge_files(existing_files, updates)
            logger.info(f"Final merged files: {file_summary(files)}")
        elif use_buggy_code:
            logger.info("Using buggy code as requested")
            files = buggy_files()
        else:
            logger.info("Processing new generation request")
            files = await self.generator.generate(description)

        if not files:
            raise GenerationError("Failed to generate files - received empty response")
        return files

    async def _optimize(self, files: list[File], tracker: ProgressTracker) -> list[File]:
        tracker.start_step(FIXING_CODE)
        try:
            result = await self.fixer.repair(files)
        except Exception as e:
            logger.warning(f"Fixer failed, continuing with original code: {e}")
            tracker.error_step(FIXING_CODE, FIXER_FALLBACK_MESSAGE)
            return files

        tracker.complete_step(FIXING_CODE)
        if result.success and result.suggested_files:
            return result.suggested_files
        logger.warning("Fixer returned no usable files, continuing with original code")
        return files

    async def _provision(
        self, files: Sequence[File], existing_sandbox_id: str | None, tracker: ProgressTracker
    ) -> SandboxResult:
        existing = SandboxHandle(id=existing_sandbox_id) if existing_sandbox_id else None
        return await self.orchestrator.provision(files, existing, tracker)


def _fail_current_step(tracker: ProgressTracker, message: str) -> None:
    step = tracker.current_step()
    if step is not None:
        tracker.error_step(step.id, message)
