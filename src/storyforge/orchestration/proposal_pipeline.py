"""
storyforge.orchestration.proposal_pipeline - Merge Proposals
==============================================================

Turns free-form user input into a validated candidate artifact with the
help of the completion engine. Nothing here persists; the caller reviews
the proposal and commits it through CommitCoordinator.

Phases (each callable on its own):

    prepare(current, raw_input) → PromptInput
        current is None → CREATE, "<kind>-create", {user_input}
        otherwise       → MERGE,  "<kind>-merge",  {current_<kind>, user_input}
    assemble(prompt_input)      → prompt text      (strict substitution)
    invoke(prompt)              → raw response     (exactly one engine call)
    parse(raw_response)         → artifact         (JSON → model → validate)

    propose(ctx, raw_input) reads the current artifact and runs all four.

Error Mapping:
    blank raw_input                     → InvalidInputError (before any I/O)
    unknown template                    → TemplateNotFoundError
    unresolved placeholder              → SubstitutionError
    engine failure of any kind          → CompletionError
    blank / non-JSON / non-object /
        empty-object / mistyped response → ParseError
    missing required fields             → ValidationError (with raw_response)
"""

from __future__ import annotations

import json
import re
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from storyforge.core.enums import OperationType
from storyforge.core.exceptions import (
    CompletionError,
    CompletionFailureReason,
    InvalidInputError,
    ParseError,
    StoryForgeError,
    ValidationError,
)
from storyforge.core.models import NarrativeArtifact, PromptInput, Proposal, RequestContext
from storyforge.infrastructure.artifact_store import ArtifactStore
from storyforge.integrations.llm.base import BaseLLMProvider
from storyforge.orchestration.validators import ArtifactValidator
from storyforge.prompts.factory import PromptFactory

logger = structlog.get_logger()

USER_INPUT_VARIABLE = "user_input"

# ```json ... ``` or ``` ... ``` around the whole response
_CODE_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group(1).strip() if match else text


def compact_json(artifact: NarrativeArtifact) -> str:
    """The artifact as single-line JSON, as it is embedded in merge prompts."""
    return json.dumps(artifact.to_json_dict(), separators=(",", ":"), ensure_ascii=False)


class ProposalPipeline:
    """Builds proposals for one artifact kind.

    Args:
        store: The kind's ArtifactStore, read for the current artifact.
        prompt_factory: Loads templates and substitutes variables.
        llm_provider: The completion engine.
    """

    def __init__(
        self,
        store: ArtifactStore,
        prompt_factory: PromptFactory,
        llm_provider: BaseLLMProvider,
    ) -> None:
        self._store = store
        self._spec = store.spec
        self._prompts = prompt_factory
        self._llm = llm_provider
        self._validator = ArtifactValidator(store.spec)
        self._logger = logger.bind(component="proposal_pipeline", kind=store.spec.kind.value)

    # =========================================================================
    # Phase 1: Prepare
    # =========================================================================

    def prepare(
        self,
        current: Optional[NarrativeArtifact],
        raw_input: str,
    ) -> PromptInput:
        """Choose the operation and template, and build the variables.

        Raises:
            InvalidInputError: If raw_input is blank.
        """
        if not raw_input or not raw_input.strip():
            raise InvalidInputError("raw_input cannot be empty", field="raw_input")

        if current is None:
            operation = OperationType.CREATE
            variables = {USER_INPUT_VARIABLE: raw_input}
        else:
            operation = OperationType.MERGE
            variables = {
                self._spec.current_placeholder: compact_json(current),
                USER_INPUT_VARIABLE: raw_input,
            }

        return PromptInput(
            template_id=self._spec.template_id(operation),
            variables=variables,
            operation=operation,
        )

    # =========================================================================
    # Phase 2: Assemble
    # =========================================================================

    async def assemble(self, prompt_input: PromptInput) -> str:
        """Load the template and substitute every placeholder."""
        return await self._prompts.assemble(prompt_input)

    # =========================================================================
    # Phase 3: Invoke
    # =========================================================================

    async def invoke(self, prompt: str) -> str:
        """Call the completion engine once and return its raw text.

        Raises:
            CompletionError: On any engine failure. Failures the provider
                did not classify get reason "unknown".
        """
        self._logger.info("completion_invoked", prompt_length=len(prompt))
        try:
            response = await self._llm.generate(prompt)
        except CompletionError as exc:
            self._logger.error(
                "completion_failed",
                reason=exc.reason.value,
                error=exc.message,
            )
            raise
        except Exception as exc:
            self._logger.error("completion_failed", reason="unknown", error=str(exc))
            raise CompletionError(
                f"Completion engine call failed: {exc}",
                reason=CompletionFailureReason.UNKNOWN,
                details={"error_type": type(exc).__name__},
            ) from exc

        self._logger.info("completion_returned", response_length=len(response.content))
        return response.content

    # =========================================================================
    # Phase 4: Parse
    # =========================================================================

    def parse(self, raw_response: str) -> NarrativeArtifact:
        """Read the engine output as this kind's artifact and validate it.

        Raises:
            ParseError: If the output is not a usable JSON object.
            ValidationError: If required fields are missing. The error
                carries raw_response.
        """
        if raw_response is None or not raw_response.strip():
            raise ParseError("Completion engine returned an empty response", raw_response or "")

        text = _strip_code_fence(raw_response.strip())
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Failed to parse completion response as JSON: {exc.msg}. "
                f"Response: {raw_response}",
                raw_response,
            ) from exc

        if not isinstance(data, dict):
            raise ParseError(
                f"Completion response is not a JSON object. Response: {raw_response}",
                raw_response,
            )
        if not data:
            raise ParseError(
                f"Completion response is an empty JSON object. Response: {raw_response}",
                raw_response,
            )

        try:
            artifact = self._spec.build(data)
        except PydanticValidationError as exc:
            raise ParseError(
                f"Completion response does not match the {self._spec.display_name} "
                f"shape. Response: {raw_response}",
                raw_response,
                details={"error": str(exc)},
            ) from exc

        try:
            self._validator.validate(artifact)
        except ValidationError as exc:
            self._logger.warning(
                "proposal_invalid",
                missing_fields=exc.missing_fields,
                response_length=len(raw_response),
            )
            raise exc.with_raw_response(raw_response) from exc

        return artifact

    # =========================================================================
    # Full Pipeline
    # =========================================================================

    async def propose(self, ctx: RequestContext, raw_input: str) -> Proposal:
        """Build a proposal from raw_input against the caller's current artifact.

        Raises:
            Any error listed in the module docstring, with the request id
            attached as correlation_id.
        """
        try:
            if not raw_input or not raw_input.strip():
                raise InvalidInputError("raw_input cannot be empty", field="raw_input")

            current = await self._store.get_current(ctx.user_id)
            prompt_input = self.prepare(current, raw_input)
            prompt = await self.assemble(prompt_input)
            raw_response = await self.invoke(prompt)
            proposal = self.parse(raw_response)
        except StoryForgeError as exc:
            if exc.correlation_id is None:
                exc.correlation_id = ctx.request_id
            raise

        self._logger.info(
            "proposal_validated",
            user_id=ctx.user_id,
            request_id=ctx.request_id,
            operation=prompt_input.operation.value,
        )
        return Proposal(proposal=proposal, current=current, raw_response=raw_response)
