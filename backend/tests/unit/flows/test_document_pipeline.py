"""Unit tests for the document analysis pipeline.

Run with: pytest tests/unit/flows/test_document_pipeline.py -v
"""

from unittest.mock import AsyncMock

import pytest

from icas.flows.document import (
    STAGE_NAMES,
    DocumentAnalysisPipeline,
    InvalidAnalysisRequest,
    analyze_document,
    get_mime_type_from_data_uri,
    resolve_stage_input,
)
from icas.flows.messages import (
    INVALID_INPUT,
    STAGE_FAILURE_PREFIX,
    SYSTEM_NOTICE_PREFIX,
    SYSTEM_NOTICE_SUMMARY,
    TEXT_NOT_EXTRACTED,
)
from icas.flows.models import (
    AnalysisRequest,
    DegradationReason,
    InputKind,
    PipelineResult,
    StageInput,
    StageStatus,
)

PNG_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUg=="
ZIP_URI = "data:application/zip;base64,UEsDBBQAAAAIAA=="
GENERIC_PDF_URI = "data:application/octet-stream;base64,JVBERi0xLjQK"
UNTYPED_PDF_URI = "data:;base64,JVBERi0xLjQK"

STATEMENT = "I saw a man take a wallet from a stall at the Central Market."

DOCUMENT_PROMPTS = [
    "investigatorPrompt",
    "clerkPrompt",
    "delegatePrompt",
    "pressReleasePrompt",
    "classifyTextForCrimesPrompt",
]


def assert_fully_populated(result: PipelineResult) -> None:
    """Every string field of the result is non-empty."""
    assert result.extracted_text
    assert result.summary
    assert result.language
    assert result.investigator_analysis.observations
    assert result.clerk_report.formalized_summary
    assert result.delegate_assessment.overall_assessment
    assert result.delegate_assessment.legal_considerations
    assert result.crime_analysis_results.overall_criminal_assessment
    assert result.press_release
    assert set(result.stage_status) == set(STAGE_NAMES)


class TestDataUriHelpers:
    """Tests for MIME detection and processability decisions."""

    def test_mime_type_from_data_uri(self):
        assert get_mime_type_from_data_uri(PNG_URI) == "image/png"
        assert get_mime_type_from_data_uri("data:;base64,AAAA") is None
        assert get_mime_type_from_data_uri("not a data uri") is None

    def test_processable_image_is_media(self):
        stage_input = resolve_stage_input(AnalysisRequest(file_data_uri=PNG_URI, file_name="car.png"))

        assert stage_input.input_kind == InputKind.MEDIA
        assert stage_input.is_media_input
        assert stage_input.file_data_uri == PNG_URI

    def test_pdf_sniffed_from_file_name(self):
        """Test a generic MIME with a .pdf name is rewritten as a PDF."""
        stage_input = resolve_stage_input(
            AnalysisRequest(file_data_uri=GENERIC_PDF_URI, file_name="Report.PDF")
        )

        assert stage_input.input_kind == InputKind.MEDIA
        assert stage_input.file_data_uri == "data:application/pdf;base64,JVBERi0xLjQK"

    def test_unprocessable_file_becomes_notice(self):
        stage_input = resolve_stage_input(AnalysisRequest(file_data_uri=ZIP_URI, file_name="archive.zip"))

        assert stage_input.input_kind == InputKind.SYSTEM_NOTICE
        assert not stage_input.is_media_input
        assert stage_input.file_data_uri is None
        assert stage_input.text_content.startswith(SYSTEM_NOTICE_PREFIX)
        assert "archive.zip" in stage_input.text_content
        assert "application/zip" in stage_input.text_content

    def test_missing_file_name_defaults(self):
        stage_input = resolve_stage_input(AnalysisRequest(file_data_uri=ZIP_URI))

        assert stage_input.file_name == "Unknown"

    def test_text_request(self):
        stage_input = resolve_stage_input(AnalysisRequest(text_content=STATEMENT))

        assert stage_input.input_kind == InputKind.TEXT
        assert stage_input.text_content == STATEMENT

    def test_nothing_to_analyze(self):
        assert resolve_stage_input(AnalysisRequest.model_construct(file_name="x.txt")) is None


class TestPipelineScenarios:
    """End-to-end pipeline runs with a scripted capability."""

    @pytest.mark.asyncio
    async def test_plain_text_statement(self, pipeline, scripted_invoker):
        """Test a text statement flows through every stage and is classified."""
        result = await pipeline.analyze(AnalysisRequest(text_content=STATEMENT, file_name="statement.txt"))

        assert_fully_populated(result)
        assert result.extracted_text == STATEMENT
        assert result.crime_analysis_results.crime_tags[0].crime_type == "Robbery"
        assert all(info.status == StageStatus.OK for info in result.stage_status.values())
        assert scripted_invoker.call_names == DOCUMENT_PROMPTS

    @pytest.mark.asyncio
    async def test_image_document(self, pipeline, scripted_invoker):
        result = await pipeline.analyze(AnalysisRequest(file_data_uri=PNG_URI, file_name="scan.png"))

        assert_fully_populated(result)
        investigator_input = scripted_invoker.inputs_for("investigatorPrompt")[0]
        assert investigator_input.is_media_input
        assert investigator_input.file_data_uri == PNG_URI
        assert scripted_invoker.called("classifyTextForCrimesPrompt")

    @pytest.mark.asyncio
    async def test_untyped_pdf_analyzed_as_media(self, pipeline, scripted_invoker):
        """Test a .pdf upload with no declared type is read as a PDF end to end."""
        result = await pipeline.analyze(AnalysisRequest(file_data_uri=UNTYPED_PDF_URI, file_name="report.pdf"))

        assert_fully_populated(result)
        investigator_input = scripted_invoker.inputs_for("investigatorPrompt")[0]
        assert investigator_input.is_media_input
        assert investigator_input.file_data_uri == "data:application/pdf;base64,JVBERi0xLjQK"
        clerk_input = scripted_invoker.inputs_for("clerkPrompt")[0]
        assert not (clerk_input.text_content or "").startswith(SYSTEM_NOTICE_PREFIX)
        assert not result.extracted_text.startswith(SYSTEM_NOTICE_PREFIX)
        assert scripted_invoker.called("classifyTextForCrimesPrompt")

    @pytest.mark.asyncio
    async def test_unprocessable_file(self, pipeline, scripted_invoker):
        """Test a zip file is analyzed through its notice and never classified."""
        result = await pipeline.analyze(AnalysisRequest(file_data_uri=ZIP_URI, file_name="archive.zip"))

        assert_fully_populated(result)
        assert result.extracted_text.startswith(SYSTEM_NOTICE_PREFIX)
        assert result.language == "N/A"
        assert not scripted_invoker.called("classifyTextForCrimesPrompt")
        crime = result.stage_status["crime_classification"]
        assert crime.status == StageStatus.DEGRADED
        assert crime.reason == DegradationReason.UPSTREAM_FAILURE
        assert result.crime_analysis_results.crime_tags == []
        assessment = result.crime_analysis_results.overall_criminal_assessment
        assert "could not be processed directly" in assessment
        assert "extraction failed" not in assessment
        assert "archive.zip" in assessment

    @pytest.mark.asyncio
    async def test_notice_summary_kept_out_of_fallback(self, make_invoker, happy_replies, test_settings):
        replies = dict(happy_replies)
        replies["clerkPrompt"] = {"extractedText": "ignored"}
        replies["pressReleasePrompt"] = RuntimeError("provider down")
        pipeline = DocumentAnalysisPipeline(make_invoker(replies), test_settings)

        result = await pipeline.analyze(AnalysisRequest(file_data_uri=ZIP_URI, file_name="archive.zip"))

        assert result.summary == SYSTEM_NOTICE_SUMMARY
        assert "Preliminary summary" not in result.press_release
        assert "named 'archive.zip'" in result.press_release

    @pytest.mark.asyncio
    async def test_clerk_failure_skips_classification(self, make_invoker, happy_replies, test_settings):
        """Test a failed clerk stage propagates into the final result."""
        replies = dict(happy_replies)
        replies["clerkPrompt"] = RuntimeError("OCR backend unavailable")
        invoker = make_invoker(replies)
        pipeline = DocumentAnalysisPipeline(invoker, test_settings)

        result = await pipeline.analyze(AnalysisRequest(file_data_uri=PNG_URI, file_name="scan.png"))

        assert_fully_populated(result)
        assert result.extracted_text.startswith(STAGE_FAILURE_PREFIX)
        assert "(File: scan.png)" in result.extracted_text
        assert result.stage_status["clerk"].reason == DegradationReason.CAPABILITY_ERROR
        assert not invoker.called("classifyTextForCrimesPrompt")
        assert result.crime_analysis_results.overall_criminal_assessment.startswith(
            "Crime classification not performed"
        )

    @pytest.mark.asyncio
    async def test_quoted_placeholder_still_classified(self, make_invoker, happy_replies, test_settings):
        """Test a document that quotes a placeholder sentence is still classified."""
        extracted = (
            "Handwritten note found in the car: "
            f'"{TEXT_NOT_EXTRACTED}" The owner reports the car was stolen overnight.'
        )
        replies = dict(happy_replies)
        replies["clerkPrompt"] = {"extractedText": extracted, "summary": "Note about a stolen car.", "language": "en"}
        invoker = make_invoker(replies)
        pipeline = DocumentAnalysisPipeline(invoker, test_settings)

        result = await pipeline.analyze(AnalysisRequest(file_data_uri=PNG_URI, file_name="note.png"))

        assert result.extracted_text == extracted
        assert invoker.called("classifyTextForCrimesPrompt")
        assert result.stage_status["crime_classification"].status == StageStatus.OK
        assert result.crime_analysis_results.crime_tags[0].crime_type == "Robbery"

    @pytest.mark.asyncio
    async def test_classification_failure_keeps_other_fields(self, make_invoker, happy_replies, test_settings):
        replies = dict(happy_replies)
        replies["classifyTextForCrimesPrompt"] = RuntimeError("quota exceeded")
        pipeline = DocumentAnalysisPipeline(make_invoker(replies), test_settings)

        result = await pipeline.analyze(AnalysisRequest(text_content=STATEMENT))

        assert result.crime_analysis_results.crime_tags == []
        assert result.crime_analysis_results.overall_criminal_assessment == (
            "Crime classification failed: quota exceeded"
        )
        assert result.extracted_text == STATEMENT
        assert result.stage_status["crime_classification"].status == StageStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_every_capability_failing(self, make_invoker, test_settings):
        """Test the pipeline still returns a complete result when every call fails."""
        invoker = make_invoker({name: RuntimeError(f"{name} down") for name in DOCUMENT_PROMPTS})
        pipeline = DocumentAnalysisPipeline(invoker, test_settings)

        result = await pipeline.analyze(AnalysisRequest(text_content=STATEMENT, file_name="stmt.txt"))

        assert_fully_populated(result)
        assert all(info.status == StageStatus.DEGRADED for info in result.stage_status.values())
        assert result.investigator_analysis.observations.startswith(STAGE_FAILURE_PREFIX)
        assert result.delegate_assessment.overall_assessment.startswith(STAGE_FAILURE_PREFIX)
        assert "technical difficulty" in result.press_release
        assert result.press_release.endswith("Contact: Test Press Office - press@test.example.")


class TestStageWiring:
    """Tests for what each stage receives."""

    @pytest.mark.asyncio
    async def test_classification_context_names_file(self, pipeline, scripted_invoker):
        await pipeline.analyze(AnalysisRequest(text_content=STATEMENT, file_name="statement.txt"))

        classify_input = scripted_invoker.inputs_for("classifyTextForCrimesPrompt")[0]
        assert classify_input.context == "Analyzed document: statement.txt"
        assert classify_input.text_content == STATEMENT

    @pytest.mark.asyncio
    async def test_degraded_stages_reach_delegate(self, make_invoker, happy_replies, test_settings):
        replies = dict(happy_replies)
        replies["investigatorPrompt"] = None
        invoker = make_invoker(replies)
        pipeline = DocumentAnalysisPipeline(invoker, test_settings)

        await pipeline.analyze(AnalysisRequest(text_content=STATEMENT))

        delegate_input = invoker.inputs_for("delegatePrompt")[0]
        assert delegate_input.degraded_stages == ["investigator"]
        assert delegate_input.investigator_observations.observations.startswith(STAGE_FAILURE_PREFIX)
        press_input = invoker.inputs_for("pressReleasePrompt")[0]
        assert press_input.degraded_stages == []

    @pytest.mark.asyncio
    async def test_notice_flagged_as_media(self, pipeline, scripted_invoker):
        """Test only the investigator sees a notice flagged as media."""
        notice = f"{SYSTEM_NOTICE_PREFIX} The file 'a.bin' was provided."
        stage_input = StageInput(
            text_content=notice,
            file_data_uri="data:application/zip;base64,AAAA",
            file_name="a.bin",
            is_media_input=True,
            input_kind=InputKind.SYSTEM_NOTICE,
        )

        await pipeline.run(stage_input)

        investigator_input = scripted_invoker.inputs_for("investigatorPrompt")[0]
        clerk_input = scripted_invoker.inputs_for("clerkPrompt")[0]
        assert investigator_input.is_media_input
        assert not clerk_input.is_media_input
        assert clerk_input.file_data_uri is None
        assert not scripted_invoker.inputs_for("delegatePrompt")[0].is_media_input

    @pytest.mark.asyncio
    async def test_timeout_from_settings(self, pipeline, scripted_invoker):
        await pipeline.analyze(AnalysisRequest(text_content=STATEMENT))

        assert {call[2] for call in scripted_invoker.calls} == {30.0}


class TestAnalyzeDocument:
    """Tests for the analyze_document entry point."""

    @pytest.mark.asyncio
    async def test_rejects_malformed_request(self, pipeline):
        request = AnalysisRequest.model_construct(file_data_uri=PNG_URI, text_content=STATEMENT)

        with pytest.raises(InvalidAnalysisRequest):
            await analyze_document(request, pipeline)

    @pytest.mark.asyncio
    async def test_empty_request_short_circuits(self, pipeline, scripted_invoker):
        """Test the pipeline answers a contentless request without any call."""
        result = await pipeline.analyze(AnalysisRequest.model_construct(file_name="x.txt"))

        assert scripted_invoker.calls == []
        assert result.extracted_text == f"{STAGE_FAILURE_PREFIX}{INVALID_INPUT}"
        assert result.press_release.startswith("The police report a technical problem")
        assert all(info.reason == DegradationReason.INVALID_INPUT for info in result.stage_status.values())

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_result(self, pipeline):
        pipeline.analyze = AsyncMock(side_effect=KeyError("boom"))

        result = await analyze_document(AnalysisRequest(text_content=STATEMENT), pipeline)

        assert_fully_populated(result)
        assert result.extracted_text.startswith("Unexpected critical error during document analysis")
        assert "The technical team has been notified" in result.press_release
        assert result.stage_status["clerk"].reason == DegradationReason.CRITICAL_ERROR

    @pytest.mark.asyncio
    async def test_returns_pipeline_result(self, pipeline):
        result = await analyze_document(AnalysisRequest(text_content=STATEMENT), pipeline)

        assert result.press_release.startswith("Police are investigating")
