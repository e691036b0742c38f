"""API endpoints for the analysis flows.

Every endpoint returns the flow's fully populated result; capability
failures show up inside the body, never as an HTTP error.
"""

from fastapi import APIRouter, Depends
from pydantic import Field

from ..config import Settings, get_settings
from ..flows import (
    DocumentAnalysisPipeline,
    analyze_document,
    analyze_financial_data,
    analyze_image,
    classify_text_for_crimes,
    consolidate_audio_analyses,
    find_entity_relationships,
    generate_ric,
    get_document_pipeline,
    transcribe_audio,
)
from ..flows.models import (
    AnalysisRequest,
    AnalyzeFinancialDataInput,
    AnalyzeFinancialDataOutput,
    AnalyzeImageInput,
    AnalyzeImageOutput,
    ClassifyTextInput,
    ConsolidateAudioAnalysesInput,
    ConsolidateAudioAnalysesOutput,
    CrimeClassification,
    FindEntityRelationshipsInput,
    FindEntityRelationshipsOutput,
    GenerateRicInput,
    GenerateRicOutput,
    PipelineResult,
    TranscribeAudioInput,
    TranscribeAudioOutput,
)
from ..llm import CapabilityInvoker, get_capability_invoker

router = APIRouter(prefix="/analysis", tags=["analysis"])


class TranscribeAudioRequest(TranscribeAudioInput):
    classify_crimes: bool = Field(default=False, description="Also classify crimes in the transcript")


@router.post("/document", response_model=PipelineResult)
async def analyze_document_endpoint(
    request: AnalysisRequest,
    pipeline: DocumentAnalysisPipeline = Depends(get_document_pipeline),
) -> PipelineResult:
    """Run the investigator, clerk, delegate and press release stages on a document.

    Exactly one of ``fileDataUri`` or ``textContent`` must be provided;
    anything else is rejected with 422 before any stage runs.
    """
    return await analyze_document(request, pipeline=pipeline)


@router.post("/crimes", response_model=CrimeClassification)
async def classify_crimes_endpoint(
    request: ClassifyTextInput,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> CrimeClassification:
    return await classify_text_for_crimes(
        request.text_content,
        context=request.context,
        invoker=invoker,
        timeout=settings.llm_timeout_seconds,
    )


@router.post("/audio/transcribe", response_model=TranscribeAudioOutput)
async def transcribe_audio_endpoint(
    request: TranscribeAudioRequest,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> TranscribeAudioOutput:
    audio_input = TranscribeAudioInput(
        audio_data_uri=request.audio_data_uri,
        file_name=request.file_name,
    )
    return await transcribe_audio(
        audio_input,
        invoker=invoker,
        classify_crimes=request.classify_crimes,
        timeout=settings.llm_timeout_seconds,
    )


@router.post("/audio/consolidate", response_model=ConsolidateAudioAnalysesOutput)
async def consolidate_audio_endpoint(
    request: ConsolidateAudioAnalysesInput,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> ConsolidateAudioAnalysesOutput:
    return await consolidate_audio_analyses(request, invoker=invoker, timeout=settings.llm_timeout_seconds)


@router.post("/image", response_model=AnalyzeImageOutput)
async def analyze_image_endpoint(
    request: AnalyzeImageInput,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> AnalyzeImageOutput:
    return await analyze_image(request, invoker=invoker, timeout=settings.llm_timeout_seconds)


@router.post("/relationships", response_model=FindEntityRelationshipsOutput)
async def find_relationships_endpoint(
    request: FindEntityRelationshipsInput,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> FindEntityRelationshipsOutput:
    """Build a link-analysis graph from a raw entity list."""
    return await find_entity_relationships(request, invoker=invoker, timeout=settings.llm_timeout_seconds)


@router.post("/financial", response_model=AnalyzeFinancialDataOutput)
async def analyze_financial_endpoint(
    request: AnalyzeFinancialDataInput,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> AnalyzeFinancialDataOutput:
    return await analyze_financial_data(request, invoker=invoker, timeout=settings.llm_timeout_seconds)


@router.post("/report", response_model=GenerateRicOutput)
async def generate_report_endpoint(
    request: GenerateRicInput,
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
    settings: Settings = Depends(get_settings),
) -> GenerateRicOutput:
    """Draft an investigation report from analyses supplied in the request."""
    return await generate_ric(request, invoker=invoker, timeout=settings.llm_timeout_seconds)
