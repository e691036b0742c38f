"""Analysis flows.

Components:
- DocumentAnalysisPipeline: investigator, clerk, delegate and press release
  stages plus gated crime classification
- CrimeClassifier: crime classification of free text
- Supplementary flows: audio, image, link analysis, financial analysis and
  investigation report drafts

Every flow returns a fully populated result; capability failures are
reported inside the result instead of raised.
"""

from .audio import consolidate_audio_analyses, transcribe_audio
from .classification import CrimeClassifier, classify_text_for_crimes
from .document import (
    DocumentAnalysisPipeline,
    InvalidAnalysisRequest,
    analyze_document,
    get_document_pipeline,
    get_mime_type_from_data_uri,
    resolve_stage_input,
)
from .financial import analyze_financial_data
from .image import analyze_image
from .models import (
    AnalysisRequest,
    CrimeClassification,
    DegradationReason,
    InputKind,
    PipelineResult,
    StageOutcome,
    StageStatus,
)
from .relationships import find_entity_relationships
from .report import generate_ric

__all__ = [
    # Document pipeline
    "AnalysisRequest",
    "DocumentAnalysisPipeline",
    "InvalidAnalysisRequest",
    "PipelineResult",
    "analyze_document",
    "get_document_pipeline",
    "get_mime_type_from_data_uri",
    "resolve_stage_input",
    # Outcomes
    "DegradationReason",
    "InputKind",
    "StageOutcome",
    "StageStatus",
    # Classification
    "CrimeClassification",
    "CrimeClassifier",
    "classify_text_for_crimes",
    # Supplementary flows
    "analyze_financial_data",
    "analyze_image",
    "consolidate_audio_analyses",
    "find_entity_relationships",
    "generate_ric",
    "transcribe_audio",
]
