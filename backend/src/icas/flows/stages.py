"""Role-specific stages of the document pipeline.

Each stage wraps exactly one capability call and always returns a
``StageOutcome`` whose payload is fully populated:

1. No content supplied: degraded, the capability is not called
2. Capability raised: every string field carries a failure sentinel
3. Capability returned nothing: degraded with an empty-response sentinel
4. Capability returned a reply: fields copied, omitted ones defaulted
"""

import time
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from ..llm import CapabilityInvoker, PromptSpec
from ..logging import get_logger, log_stage_outcome
from .messages import (
    EMPTY_RESPONSE,
    NO_INPUT_PROVIDED,
    SYSTEM_NOTICE_SUMMARY,
    TEXT_NOT_EXTRACTED,
    UNKNOWN_FILE,
    is_failure_text,
    is_system_notice,
    press_contact_line,
    stage_failure,
)
from .models import (
    ClerkOutput,
    ClerkReply,
    ClerkReport,
    DegradationReason,
    DelegateAssessment,
    DelegateInput,
    DelegateReply,
    InputKind,
    InvestigatorAnalysis,
    InvestigatorReply,
    PressReleaseInput,
    PressReleaseOutput,
    PressReleaseReply,
    StageInput,
    StageOutcome,
)
from .prompts import CLERK_PROMPT, DELEGATE_PROMPT, INVESTIGATOR_PROMPT, PRESS_RELEASE_PROMPT

logger = get_logger(__name__)

TInput = TypeVar("TInput", bound=BaseModel)
TReply = TypeVar("TReply", bound=BaseModel)
TPayload = TypeVar("TPayload", bound=BaseModel)


class BaseStage(ABC, Generic[TInput, TReply, TPayload]):
    """Abstract base class for pipeline stages.

    Subclasses declare the prompt they call and implement:
    - failure_payload: the complete payload used when the stage degrades
    - complete: the payload built from a populated reply
    """

    name: str = ""
    prompt: PromptSpec

    def __init__(self, invoker: CapabilityInvoker):
        self.invoker = invoker

    @abstractmethod
    def failure_payload(self, cause: str, stage_input: TInput) -> TPayload:
        """Build a fully populated payload describing a failure.

        Args:
            cause: Human-readable cause (error message or fixed reason)
            stage_input: The input the stage was given

        Returns:
            Payload whose string fields carry the failure message
        """
        ...

    @abstractmethod
    def complete(self, reply: TReply, stage_input: TInput) -> TPayload:
        """Build the payload from a populated reply, defaulting omitted fields."""
        ...

    def has_input(self, stage_input: TInput) -> bool:
        """Whether the input carries anything to analyze."""
        return stage_input.has_content

    async def run(
        self,
        stage_input: TInput,
        timeout: float | None = None,
        run_id: str | None = None,
    ) -> StageOutcome[TPayload]:
        """Run the stage. Never raises for capability failures.

        Args:
            stage_input: Validated stage input
            timeout: Optional timeout in seconds for the capability call
            run_id: Pipeline run identifier, used in logs

        Returns:
            Ok or degraded outcome; the payload is complete in both cases
        """
        start = time.monotonic()
        outcome = await self._run(stage_input, timeout)
        log_stage_outcome(
            stage=self.name,
            run_id=run_id,
            status=outcome.status.value,
            reason=outcome.reason.value if outcome.reason else None,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return outcome

    async def _run(self, stage_input: TInput, timeout: float | None) -> StageOutcome[TPayload]:
        if not self.has_input(stage_input):
            logger.warning(f"{self.name}: no input content provided")
            return StageOutcome.degrade(
                self.failure_payload(NO_INPUT_PROVIDED, stage_input),
                DegradationReason.NO_INPUT,
                NO_INPUT_PROVIDED,
            )

        try:
            reply = await self.invoker.invoke(self.prompt, stage_input, timeout=timeout)
        except Exception as e:
            logger.error(f"{self.name} capability call failed: {e}")
            return StageOutcome.degrade(
                self.failure_payload(str(e), stage_input),
                DegradationReason.CAPABILITY_ERROR,
                str(e),
            )

        if reply is None:
            logger.error(f"{self.name} capability returned no output")
            return StageOutcome.degrade(
                self.failure_payload(EMPTY_RESPONSE, stage_input),
                DegradationReason.EMPTY_RESPONSE,
                EMPTY_RESPONSE,
            )

        return StageOutcome.ok(self.complete(reply, stage_input))


class InvestigatorStage(BaseStage[StageInput, InvestigatorReply, InvestigatorAnalysis]):
    """Observations and potential leads from the raw material."""

    name = "investigator"
    prompt = INVESTIGATOR_PROMPT

    def failure_payload(self, cause: str, stage_input: StageInput) -> InvestigatorAnalysis:
        return InvestigatorAnalysis(observations=stage_failure(cause), potential_leads=[])

    def complete(self, reply: InvestigatorReply, stage_input: StageInput) -> InvestigatorAnalysis:
        return InvestigatorAnalysis(
            observations=reply.observations or "No specific investigative observations provided.",
            potential_leads=reply.potential_leads or [],
        )


class ClerkStage(BaseStage[StageInput, ClerkReply, ClerkOutput]):
    """Text extraction, summary, entities and the formal clerk report.

    A system notice is transcribed verbatim into ``extracted_text`` with
    language ``N/A`` whatever the capability returns.
    """

    name = "clerk"
    prompt = CLERK_PROMPT

    def failure_payload(self, cause: str, stage_input: StageInput) -> ClerkOutput:
        file_name = stage_input.file_name or UNKNOWN_FILE
        return ClerkOutput(
            extracted_text=stage_failure(cause, file_name),
            summary=stage_failure(f"{cause}. Summary could not be generated", file_name),
            key_entities=[],
            language="N/A",
            clerk_report=ClerkReport(
                formalized_summary=stage_failure(f"{cause}. Facts could not be formalized", file_name),
                key_information_structured=[],
            ),
        )

    def complete(self, reply: ClerkReply, stage_input: StageInput) -> ClerkOutput:
        file_label = f"(File: {stage_input.file_name or UNKNOWN_FILE})"
        report = reply.clerk_report
        output = ClerkOutput(
            extracted_text=reply.extracted_text or f"{TEXT_NOT_EXTRACTED} {file_label}",
            summary=reply.summary or f"Summary not generated by the capability. {file_label}",
            key_entities=reply.key_entities or [],
            language=reply.language or "N/A",
            clerk_report=ClerkReport(
                formalized_summary=(
                    report.formalized_summary
                    if report and report.formalized_summary
                    else "Clerk report not generated or incomplete."
                ),
                key_information_structured=(report.key_information_structured or []) if report else [],
            ),
        )

        if stage_input.input_kind == InputKind.SYSTEM_NOTICE or is_system_notice(stage_input.text_content):
            output.extracted_text = stage_input.text_content or ""
            output.language = "N/A"
            if not reply.summary:
                output.summary = SYSTEM_NOTICE_SUMMARY
        return output


class DelegateStage(BaseStage[DelegateInput, DelegateReply, DelegateAssessment]):
    """Overall assessment and direction from the investigator and clerk results."""

    name = "delegate"
    prompt = DELEGATE_PROMPT

    def failure_payload(self, cause: str, stage_input: DelegateInput) -> DelegateAssessment:
        return DelegateAssessment(
            overall_assessment=stage_failure(cause),
            suggested_actions=[],
            legal_considerations=stage_failure(f"legal considerations could not be formulated: {cause}"),
        )

    def complete(self, reply: DelegateReply, stage_input: DelegateInput) -> DelegateAssessment:
        return DelegateAssessment(
            overall_assessment=reply.overall_assessment or "No overall assessment provided by the delegate.",
            suggested_actions=reply.suggested_actions or [],
            legal_considerations=reply.legal_considerations or "No specific legal considerations provided.",
        )


class PressReleaseStage(BaseStage[PressReleaseInput, PressReleaseReply, PressReleaseOutput]):
    """Public statement; falls back to a locally built text, never blank."""

    name = "press_release"
    prompt = PRESS_RELEASE_PROMPT

    def __init__(self, invoker: CapabilityInvoker, office_name: str, office_contact: str):
        super().__init__(invoker)
        self.office_name = office_name
        self.office_contact = office_contact

    def failure_payload(self, cause: str, stage_input: PressReleaseInput) -> PressReleaseOutput:
        return PressReleaseOutput(press_release=self.build_fallback(stage_input, cause))

    def complete(self, reply: PressReleaseReply, stage_input: PressReleaseInput) -> PressReleaseOutput:
        # Blank statements are replaced by the fallback in _run.
        return PressReleaseOutput(press_release=reply.press_release or "")

    async def _run(
        self, stage_input: PressReleaseInput, timeout: float | None
    ) -> StageOutcome[PressReleaseOutput]:
        outcome = await super()._run(stage_input, timeout)
        if not outcome.degraded and not outcome.payload.press_release.strip():
            logger.warning("press_release capability returned a blank statement, using fallback")
            return StageOutcome.degrade(
                self.failure_payload(EMPTY_RESPONSE, stage_input),
                DegradationReason.EMPTY_RESPONSE,
                EMPTY_RESPONSE,
            )
        return outcome

    def build_fallback(self, stage_input: PressReleaseInput, error: str | None = None) -> str:
        """Deterministic statement built without calling the capability."""
        message = "The police are analyzing a document "
        if stage_input.file_name:
            message += f"named '{stage_input.file_name}' "
        message += "received recently. "

        clerk = stage_input.clerk_analysis
        if clerk and clerk.summary and not is_failure_text(clerk.summary) and SYSTEM_NOTICE_SUMMARY not in clerk.summary:
            message += f"Preliminary summary: {clerk.summary}. "
        elif clerk and is_failure_text(clerk.extracted_text):
            message += "A technical difficulty occurred during the initial processing of the document. "
        elif error:
            message += f"An error occurred while generating the statement: {error}. "

        message += (
            "Investigations are ongoing. Further details will be provided as they become "
            "available and appropriate for public disclosure. "
        )
        message += press_contact_line(self.office_name, self.office_contact)
        return message
