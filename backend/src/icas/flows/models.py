"""Pydantic models for the analysis flows.

Field names are snake_case in Python and camelCase on the wire
(``extractedText``, ``crimeAnalysisResults``...). Payload models are always
fully populated; the ``*Reply`` models describe what the provider may send
back, where every member is optional.
"""

from enum import Enum
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class FlowModel(BaseModel):
    """Base model with camelCase aliases accepted and emitted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Enumerations
# =============================================================================


class StageStatus(str, Enum):
    """Tag of a stage outcome."""

    OK = "ok"
    DEGRADED = "degraded"


class DegradationReason(str, Enum):
    """Why a stage produced a best-effort payload instead of real content."""

    NO_INPUT = "no_input"
    EMPTY_RESPONSE = "empty_response"
    CAPABILITY_ERROR = "capability_error"
    INVALID_INPUT = "invalid_input"
    UPSTREAM_FAILURE = "upstream_failure"
    INSUFFICIENT_CONTENT = "insufficient_content"
    CRITICAL_ERROR = "critical_error"


class InputKind(str, Enum):
    """Shape of the content forwarded to the stages."""

    MEDIA = "media"
    TEXT = "text"
    SYSTEM_NOTICE = "system_notice"
    NONE = "none"


# =============================================================================
# Stage outcome
# =============================================================================


class StageStatusInfo(FlowModel):
    """Structured status of one stage, exposed on the pipeline result."""

    status: StageStatus = StageStatus.OK
    reason: DegradationReason | None = None
    detail: str | None = None


class StageOutcome(BaseModel, Generic[T]):
    """Result of a stage: ``Ok(payload)`` or ``Degraded(payload, reason)``.

    The payload is complete in both cases so downstream consumers never
    need null checks; they branch on ``degraded`` instead.
    """

    status: StageStatus = StageStatus.OK
    reason: DegradationReason | None = None
    detail: str | None = None
    payload: T

    @classmethod
    def ok(cls, payload: T) -> "StageOutcome[T]":
        return cls(payload=payload)

    @classmethod
    def degrade(
        cls, payload: T, reason: DegradationReason, detail: str | None = None
    ) -> "StageOutcome[T]":
        return cls(
            status=StageStatus.DEGRADED, reason=reason, detail=detail, payload=payload
        )

    @property
    def degraded(self) -> bool:
        return self.status == StageStatus.DEGRADED

    def info(self) -> StageStatusInfo:
        return StageStatusInfo(status=self.status, reason=self.reason, detail=self.detail)


# =============================================================================
# Document pipeline inputs
# =============================================================================


class AnalysisRequest(FlowModel):
    """A request to analyze one document.

    Exactly one of ``file_data_uri`` (``data:<mime>;base64,<payload>``) or
    ``text_content`` must be set.
    """

    file_data_uri: str | None = Field(default=None, description="File as a base64 data URI")
    text_content: str | None = Field(default=None, description="Plain text content")
    file_name: str | None = Field(default=None, description="Original file name")
    is_media_input: bool = Field(default=False, description="Internal media flag")

    @model_validator(mode="after")
    def _exactly_one_content(self) -> "AnalysisRequest":
        if bool(self.file_data_uri) == bool(self.text_content):
            raise ValueError("Exactly one of fileDataUri or textContent must be provided")
        return self

    @property
    def has_content(self) -> bool:
        return bool(self.file_data_uri) or bool(self.text_content)


class StageInput(FlowModel):
    """Input handed to the document stages after processability checks."""

    file_data_uri: str | None = None
    text_content: str | None = None
    file_name: str | None = None
    is_media_input: bool = False
    input_kind: InputKind = InputKind.TEXT

    @property
    def has_content(self) -> bool:
        return bool(self.file_data_uri) or bool(self.text_content)


# =============================================================================
# Stage payloads
# =============================================================================


class KeyEntity(FlowModel):
    """An entity extracted from the document (person, organization, date...)."""

    type: str
    value: str


class KeyInformation(FlowModel):
    """A categorized piece of key information for the police report."""

    category: str
    details: str


class InvestigatorAnalysis(FlowModel):
    observations: str
    potential_leads: list[str] = Field(default_factory=list)


class ClerkReport(FlowModel):
    formalized_summary: str
    key_information_structured: list[KeyInformation] = Field(default_factory=list)


class ClerkOutput(FlowModel):
    extracted_text: str
    summary: str
    key_entities: list[KeyEntity] = Field(default_factory=list)
    language: str = "N/A"
    clerk_report: ClerkReport


class DelegateAssessment(FlowModel):
    overall_assessment: str
    suggested_actions: list[str] = Field(default_factory=list)
    legal_considerations: str


class PressReleaseOutput(FlowModel):
    press_release: str


class DelegateInput(StageInput):
    """Delegate stage input: the document plus upstream stage results."""

    investigator_observations: InvestigatorAnalysis | None = None
    clerk_analysis: ClerkOutput | None = None
    degraded_stages: list[str] = Field(default_factory=list)


class PressReleaseInput(StageInput):
    """Press-release stage input: the document plus clerk and delegate results."""

    clerk_analysis: ClerkOutput | None = None
    delegate_assessment: DelegateAssessment | None = None
    degraded_stages: list[str] = Field(default_factory=list)


# =============================================================================
# Crime classification
# =============================================================================


class CrimeTag(FlowModel):
    """A crime identified in a text."""

    crime_type: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    involved_parties: list[str] | None = None
    relevant_excerpts: list[str] | None = None


class CrimeClassification(FlowModel):
    crime_tags: list[CrimeTag] = Field(default_factory=list)
    overall_criminal_assessment: str


class ClassifyTextInput(FlowModel):
    text_content: str
    context: str | None = None


# =============================================================================
# Pipeline result
# =============================================================================


class PipelineResult(FlowModel):
    """Aggregate output of one document analysis run."""

    extracted_text: str
    summary: str
    key_entities: list[KeyEntity] = Field(default_factory=list)
    language: str = "N/A"
    investigator_analysis: InvestigatorAnalysis
    clerk_report: ClerkReport
    delegate_assessment: DelegateAssessment
    crime_analysis_results: CrimeClassification
    press_release: str
    stage_status: dict[str, StageStatusInfo] = Field(default_factory=dict)


# =============================================================================
# Provider reply models (all members optional)
# =============================================================================


class InvestigatorReply(FlowModel):
    observations: str | None = None
    potential_leads: list[str] | None = None


class ClerkReportReply(FlowModel):
    formalized_summary: str | None = None
    key_information_structured: list[KeyInformation] | None = None


class ClerkReply(FlowModel):
    extracted_text: str | None = None
    summary: str | None = None
    key_entities: list[KeyEntity] | None = None
    language: str | None = None
    clerk_report: ClerkReportReply | None = None


class DelegateReply(FlowModel):
    overall_assessment: str | None = None
    suggested_actions: list[str] | None = None
    legal_considerations: str | None = None


class PressReleaseReply(FlowModel):
    press_release: str | None = None


class CrimeClassificationReply(FlowModel):
    crime_tags: list[CrimeTag] | None = None
    overall_criminal_assessment: str | None = None


# =============================================================================
# Audio
# =============================================================================


class TranscribeAudioInput(FlowModel):
    audio_data_uri: str = Field(..., min_length=1)
    file_name: str | None = None


class TranscribeAudioReply(FlowModel):
    transcript: str | None = None
    report: str | None = None


class TranscribeAudioOutput(FlowModel):
    transcript: str
    report: str
    crime_analysis_results: CrimeClassification | None = None


class IndividualAudioAnalysis(FlowModel):
    file_name: str | None = None
    transcript: str
    report: str


class ConsolidateAudioAnalysesInput(FlowModel):
    analyses: list[IndividualAudioAnalysis] = Field(default_factory=list)
    case_context: str | None = None


class ConsolidateAudioAnalysesReply(FlowModel):
    consolidated_report: str | None = None


class ConsolidateAudioAnalysesOutput(FlowModel):
    consolidated_report: str


# =============================================================================
# Image
# =============================================================================


class AnalyzeImageInput(FlowModel):
    photo_data_uri: str = Field(..., min_length=1)


class AnalyzeImageReply(FlowModel):
    description: str | None = None
    possible_plate_read: str | None = None


class AnalyzeImageOutput(FlowModel):
    description: str
    possible_plate_read: str | None = None


# =============================================================================
# Link analysis
# =============================================================================


class AnalysisContext(str, Enum):
    """Focus of a link analysis."""

    GENERAL = "General"
    TELEPHONY = "Telephony"
    FINANCIAL = "Financial"
    PEOPLE_AND_ORGANIZATIONS = "People and Organizations"
    DIGITAL_AND_CYBER = "Digital and Cyber"
    CRIMINAL_INVESTIGATION = "Generic Criminal Investigation"


class EntityNode(FlowModel):
    id: str
    label: str
    type: str
    properties: dict[str, str] = Field(default_factory=dict)


class EntityRelationship(FlowModel):
    source: str
    target: str
    label: str
    type: str | None = None
    direction: Literal["directional", "bidirectional", "non_directional"] | None = None
    strength: float | None = Field(default=None, ge=0.0, le=1.0)
    properties: dict[str, str] = Field(default_factory=dict)


class FindEntityRelationshipsInput(FlowModel):
    entities: list[str] = Field(default_factory=list)
    analysis_context: AnalysisContext = AnalysisContext.GENERAL
    file_origin: str | None = None


class EntityNodeReply(FlowModel):
    id: str
    label: str
    type: str
    properties: dict[str, str] | None = None


class EntityRelationshipReply(FlowModel):
    source: str
    target: str
    label: str
    type: str | None = None
    direction: Literal["directional", "bidirectional", "non_directional"] | None = None
    strength: float | None = Field(default=None, ge=0.0, le=1.0)
    properties: dict[str, str] | None = None


class FindEntityRelationshipsReply(FlowModel):
    identified_entities: list[EntityNodeReply] = Field(default_factory=list)
    relationships: list[EntityRelationshipReply] = Field(default_factory=list)
    analysis_summary: str | None = None


class FindEntityRelationshipsOutput(FlowModel):
    identified_entities: list[EntityNode] = Field(default_factory=list)
    relationships: list[EntityRelationship] = Field(default_factory=list)
    analysis_summary: str


# =============================================================================
# Financial intelligence
# =============================================================================


class FinancialMetric(FlowModel):
    label: str
    value: str
    unit: str | None = None
    category: Literal["General", "Risk", "Volume", "Frequency"] | None = None


class TopTransaction(FlowModel):
    id: str | None = None
    date: str | None = None
    description: str
    amount: str
    type: str | None = None
    risk_indicator: str | None = None


class InvolvedPartyFinancialProfile(FlowModel):
    name: str
    document: str | None = None
    total_in: str | None = None
    total_out: str | None = None
    transaction_count: int | None = None
    primary_role: str | None = None


class FinancialDashboardData(FlowModel):
    key_metrics: list[FinancialMetric] = Field(default_factory=list)
    top_suspicious_transactions: list[TopTransaction] = Field(default_factory=list)
    involved_parties_profiles: list[InvolvedPartyFinancialProfile] = Field(default_factory=list)


class AnalyzeFinancialDataInput(FlowModel):
    rif_text_content: str
    original_file_name: str | None = None
    case_context: str | None = None


class AnalyzeFinancialDataReply(FlowModel):
    financial_intelligence_report: str | None = None
    dashboard_data: FinancialDashboardData | None = None


class AnalyzeFinancialDataOutput(FlowModel):
    financial_intelligence_report: str
    dashboard_data: FinancialDashboardData


# =============================================================================
# Investigation report (RIC)
# =============================================================================


class AnalysisItem(FlowModel):
    type: str
    summary: str
    source_file_name: str | None = None


class GenerateRicInput(FlowModel):
    case_name: str = Field(..., min_length=1)
    case_description: str | None = None
    analyses: list[AnalysisItem] = Field(default_factory=list)


class GenerateRicReply(FlowModel):
    report_content: str | None = None


class GenerateRicOutput(FlowModel):
    report_content: str
