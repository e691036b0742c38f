"""Multi-stage document analysis pipeline.

Intake -> processability -> investigator -> clerk -> delegate ->
press release -> gated crime classification -> assemble.

Stage failures travel forward as degraded outcomes; the only place an
unexpected exception is caught is ``analyze_document``.
"""

import re
import time
from functools import lru_cache
from uuid import uuid4

from ..config import Settings, get_settings
from ..llm import CapabilityInvoker, get_capability_invoker
from ..logging import get_context_logger, get_logger, log_pipeline_complete
from .classification import CrimeClassifier
from .messages import (
    INVALID_INPUT,
    NO_VALID_CLERK_INPUT,
    TEXT_NOT_EXTRACTED,
    UNKNOWN_FILE,
    build_system_notice,
    is_failure_text,
    is_system_notice,
    press_contact_line,
    stage_failure,
)
from .models import (
    AnalysisRequest,
    ClerkOutput,
    ClerkReport,
    CrimeClassification,
    DegradationReason,
    DelegateAssessment,
    DelegateInput,
    InputKind,
    InvestigatorAnalysis,
    PipelineResult,
    PressReleaseInput,
    StageInput,
    StageOutcome,
    StageStatus,
    StageStatusInfo,
)
from .stages import ClerkStage, DelegateStage, InvestigatorStage, PressReleaseStage

logger = get_logger(__name__)

PROCESSABLE_MIME_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "application/pdf",
})
GENERIC_MIME_TYPE = "application/octet-stream"
PDF_MIME_TYPE = "application/pdf"

STAGE_NAMES = ("investigator", "clerk", "delegate", "press_release", "crime_classification")

_MIME_PATTERN = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+);base64,")


class InvalidAnalysisRequest(ValueError):
    """Raised when a request carries neither or both of file and text content."""


def get_mime_type_from_data_uri(data_uri: str) -> str | None:
    """Extract the declared MIME type of a base64 data URI, if any."""
    match = _MIME_PATTERN.match(data_uri)
    return match.group(1) if match else None


def validate_request(request: AnalysisRequest) -> None:
    """Reject a request unless exactly one of file or text content is set.

    Raises:
        InvalidAnalysisRequest: If the request is malformed
    """
    if bool(request.file_data_uri) == bool(request.text_content):
        raise InvalidAnalysisRequest("Exactly one of fileDataUri or textContent must be provided")


def resolve_stage_input(request: AnalysisRequest) -> StageInput | None:
    """Decide how the stages see the request.

    Files whose MIME type the capability can read directly are forwarded
    as media. Other files are replaced by a system notice naming the file
    and its declared type. Returns None when there is nothing to analyze.
    """
    if request.file_data_uri:
        file_name = request.file_name or UNKNOWN_FILE
        data_uri = request.file_data_uri
        declared = get_mime_type_from_data_uri(data_uri)
        mime_type = declared.lower() if declared else None

        if file_name.lower().endswith(".pdf") and mime_type in (None, GENERIC_MIME_TYPE):
            mime_type = PDF_MIME_TYPE
            if "," in data_uri:
                data_uri = f"data:{PDF_MIME_TYPE};base64,{data_uri.split(',', 1)[1]}"

        if mime_type in PROCESSABLE_MIME_TYPES:
            return StageInput(
                file_data_uri=data_uri,
                file_name=file_name,
                is_media_input=True,
                input_kind=InputKind.MEDIA,
            )

        return StageInput(
            text_content=build_system_notice(file_name, mime_type),
            file_name=file_name,
            is_media_input=False,
            input_kind=InputKind.SYSTEM_NOTICE,
        )

    if request.text_content:
        return StageInput(
            text_content=request.text_content,
            file_name=request.file_name,
            is_media_input=False,
            input_kind=InputKind.TEXT,
        )

    return None


def _all_statuses(reason: DegradationReason, detail: str) -> dict[str, StageStatusInfo]:
    return {
        name: StageStatusInfo(status=StageStatus.DEGRADED, reason=reason, detail=detail)
        for name in STAGE_NAMES
    }


def _uniform_result(
    field_text: str,
    press_release: str,
    reason: DegradationReason,
    detail: str,
) -> PipelineResult:
    return PipelineResult(
        extracted_text=field_text,
        summary=field_text,
        key_entities=[],
        language="N/A",
        investigator_analysis=InvestigatorAnalysis(observations=field_text, potential_leads=[]),
        clerk_report=ClerkReport(formalized_summary=field_text, key_information_structured=[]),
        delegate_assessment=DelegateAssessment(
            overall_assessment=field_text,
            suggested_actions=[],
            legal_considerations=field_text,
        ),
        crime_analysis_results=CrimeClassification(crime_tags=[], overall_criminal_assessment=field_text),
        press_release=press_release,
        stage_status=_all_statuses(reason, detail),
    )


def invalid_input_result(settings: Settings | None = None) -> PipelineResult:
    """Fully populated result for a request with nothing to analyze."""
    settings = settings or get_settings()
    return _uniform_result(
        field_text=stage_failure(INVALID_INPUT),
        press_release=(
            f"The police report a technical problem: {INVALID_INPUT} "
            f"{press_contact_line(settings.press_office_name, settings.press_office_contact)}"
        ),
        reason=DegradationReason.INVALID_INPUT,
        detail=INVALID_INPUT,
    )


def critical_error_result(error: Exception, settings: Settings | None = None) -> PipelineResult:
    """Fully populated result for an unexpected error during analysis."""
    settings = settings or get_settings()
    message = (
        f"Unexpected critical error during document analysis: {error}. "
        "The technical team has been notified."
    )
    return _uniform_result(
        field_text=message,
        press_release=(
            "The police report that an unexpected critical error occurred while processing a "
            f"document. Technical details: {error}. The technical team has been notified. "
            f"{press_contact_line(settings.press_office_name, settings.press_office_contact)}"
        ),
        reason=DegradationReason.CRITICAL_ERROR,
        detail=str(error),
    )


def crime_classification_skip_reason(
    clerk_outcome: StageOutcome[ClerkOutput], stage_input: StageInput
) -> str | None:
    """Why the clerk text cannot be classified, or None if it can."""
    text = clerk_outcome.payload.extracted_text
    if not text:
        return "No useful text extracted or available for crime analysis."

    if clerk_outcome.degraded or is_failure_text(text):
        return _extraction_failed(text)

    if stage_input.input_kind == InputKind.SYSTEM_NOTICE or is_system_notice(text):
        return (
            "Crime classification not performed because the file content could not be "
            f'processed directly (unsupported file type). Notice: "{text}"'
        )

    # Placeholders only count when the clerk returned them in place of the text
    if text.startswith(NO_VALID_CLERK_INPUT) or text.startswith(TEXT_NOT_EXTRACTED):
        return _extraction_failed(text)
    return None


def _extraction_failed(text: str) -> str:
    return (
        "Crime classification not performed because the clerk text extraction failed. "
        f'Clerk failure detail: "{text}"'
    )


class DocumentAnalysisPipeline:
    """Runs the document stages in order and assembles the result."""

    def __init__(
        self,
        invoker: CapabilityInvoker,
        settings: Settings | None = None,
        timeout: float | None = None,
    ):
        """Initialize the pipeline.

        Args:
            invoker: Capability invoker shared by every stage
            settings: Application settings (press office, timeout)
            timeout: Per-call timeout override in seconds
        """
        self.settings = settings or get_settings()
        self.timeout = timeout if timeout is not None else self.settings.llm_timeout_seconds
        self.investigator = InvestigatorStage(invoker)
        self.clerk = ClerkStage(invoker)
        self.delegate = DelegateStage(invoker)
        self.press_release = PressReleaseStage(
            invoker,
            office_name=self.settings.press_office_name,
            office_contact=self.settings.press_office_contact,
        )
        self.classifier = CrimeClassifier(invoker)

    async def analyze(self, request: AnalysisRequest) -> PipelineResult:
        """Resolve the request into a stage input and run the stages.

        A request with neither file nor text content short-circuits to
        the invalid-input result without calling any stage.
        """
        stage_input = resolve_stage_input(request)
        if stage_input is None:
            logger.error("Document analysis requested without file or text content")
            return invalid_input_result(self.settings)
        return await self.run(stage_input)

    async def run(self, stage_input: StageInput) -> PipelineResult:
        run_id = uuid4().hex[:12]
        log = get_context_logger(__name__, run_id=run_id, file_name=stage_input.file_name)
        start = time.monotonic()
        log.info(f"Starting document analysis ({stage_input.input_kind.value} input)")

        base = stage_input.model_copy(
            update={
                "is_media_input": stage_input.is_media_input
                or (bool(stage_input.file_data_uri) and not stage_input.text_content)
            }
        )
        if not base.is_media_input and base.text_content:
            base.file_data_uri = None

        # The investigator sees the input as given; later stages see a
        # system notice as plain text even when flagged as media.
        downstream = self._downstream_input(base)

        investigator = await self.investigator.run(base, timeout=self.timeout, run_id=run_id)
        clerk = await self.clerk.run(downstream, timeout=self.timeout, run_id=run_id)

        delegate_input = DelegateInput(
            **downstream.model_dump(),
            investigator_observations=investigator.payload,
            clerk_analysis=clerk.payload,
            degraded_stages=[
                name for name, outcome in (("investigator", investigator), ("clerk", clerk))
                if outcome.degraded
            ],
        )
        delegate = await self.delegate.run(delegate_input, timeout=self.timeout, run_id=run_id)

        press_input = PressReleaseInput(
            **downstream.model_dump(),
            clerk_analysis=clerk.payload,
            delegate_assessment=delegate.payload,
            degraded_stages=[
                name for name, outcome in (("clerk", clerk), ("delegate", delegate))
                if outcome.degraded
            ],
        )
        press_release = await self.press_release.run(press_input, timeout=self.timeout, run_id=run_id)

        crime = await self._classify(clerk, downstream, run_id)

        outcomes = {
            "investigator": investigator,
            "clerk": clerk,
            "delegate": delegate,
            "press_release": press_release,
            "crime_classification": crime,
        }
        degraded = [name for name, outcome in outcomes.items() if outcome.degraded]
        log_pipeline_complete(
            run_id=run_id,
            file_name=stage_input.file_name,
            input_kind=stage_input.input_kind.value,
            degraded_stages=degraded,
            duration_seconds=round(time.monotonic() - start, 3),
        )

        clerk_output = clerk.payload
        return PipelineResult(
            extracted_text=clerk_output.extracted_text,
            summary=clerk_output.summary,
            key_entities=clerk_output.key_entities,
            language=clerk_output.language,
            investigator_analysis=investigator.payload,
            clerk_report=clerk_output.clerk_report,
            delegate_assessment=delegate.payload,
            crime_analysis_results=crime.payload,
            press_release=press_release.payload.press_release,
            stage_status={name: outcome.info() for name, outcome in outcomes.items()},
        )

    @staticmethod
    def _downstream_input(base: StageInput) -> StageInput:
        if base.is_media_input and is_system_notice(base.text_content):
            return base.model_copy(
                update={
                    "file_data_uri": None,
                    "is_media_input": False,
                    "input_kind": InputKind.SYSTEM_NOTICE,
                }
            )
        return base

    async def _classify(
        self,
        clerk: StageOutcome[ClerkOutput],
        stage_input: StageInput,
        run_id: str,
    ) -> StageOutcome[CrimeClassification]:
        skip_reason = crime_classification_skip_reason(clerk, stage_input)
        if skip_reason is not None:
            get_context_logger(__name__, run_id=run_id).info(
                "Skipping crime classification: clerk text is not usable"
            )
            return StageOutcome.degrade(
                CrimeClassification(crime_tags=[], overall_criminal_assessment=skip_reason),
                DegradationReason.UPSTREAM_FAILURE,
                "clerk text not usable",
            )

        context = f"Analyzed document: {stage_input.file_name or 'unknown file name'}"
        return await self.classifier.classify(
            clerk.payload.extracted_text,
            context=context,
            timeout=self.timeout,
            run_id=run_id,
        )


@lru_cache
def get_document_pipeline() -> DocumentAnalysisPipeline:
    """Get the document pipeline built from settings."""
    return DocumentAnalysisPipeline(get_capability_invoker(), get_settings())


async def analyze_document(
    request: AnalysisRequest,
    pipeline: DocumentAnalysisPipeline | None = None,
) -> PipelineResult:
    """Analyze one document or text.

    Args:
        request: File data URI or text content, plus an optional file name
        pipeline: Pipeline to use; defaults to the one built from settings

    Returns:
        A fully populated result, even when stages fail

    Raises:
        InvalidAnalysisRequest: If the request has neither or both contents
    """
    validate_request(request)
    pipeline = pipeline or get_document_pipeline()
    try:
        return await pipeline.analyze(request)
    except Exception as e:
        logger.exception(f"Unexpected critical error in analyze_document: {e}")
        return critical_error_result(e, pipeline.settings)
