"""Unit tests for the audio, image, link, financial and report flows.

Run with: pytest tests/unit/flows/test_supplementary_flows.py -v
"""

import pytest

from icas.flows.audio import NO_AUDIO_ANALYSES, consolidate_audio_analyses, transcribe_audio
from icas.flows.financial import EMPTY_REPORT, analyze_financial_data
from icas.flows.image import analyze_image
from icas.flows.messages import STAGE_FAILURE_PREFIX
from icas.flows.models import (
    AnalysisItem,
    AnalyzeFinancialDataInput,
    AnalyzeImageInput,
    ConsolidateAudioAnalysesInput,
    FindEntityRelationshipsInput,
    FindEntityRelationshipsReply,
    GenerateRicInput,
    IndividualAudioAnalysis,
    TranscribeAudioInput,
)
from icas.flows.relationships import (
    MAX_ENTITIES,
    NO_ENTITIES,
    find_entity_relationships,
    normalize_entity_graph,
)
from icas.flows.report import generate_ric

AUDIO_URI = "data:audio/mpeg;base64,SUQzBAAAAAAA"
PHOTO_URI = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="


class TestAudioFlows:
    """Tests for transcription and consolidation."""

    @pytest.mark.asyncio
    async def test_transcription(self, make_invoker):
        invoker = make_invoker({
            "transcribeAudioPrompt": {
                "transcript": "Caller: I want the money by Friday.",
                "report": "Extortion threat by phone.",
            }
        })

        result = await transcribe_audio(TranscribeAudioInput(audio_data_uri=AUDIO_URI), invoker=invoker)

        assert result.transcript.startswith("Caller:")
        assert result.crime_analysis_results is None
        assert invoker.call_names == ["transcribeAudioPrompt"]

    @pytest.mark.asyncio
    async def test_transcription_with_classification(self, make_invoker, happy_replies):
        invoker = make_invoker({
            "transcribeAudioPrompt": {
                "transcript": "Caller: I want the money by Friday or else.",
                "report": "Extortion threat by phone.",
            },
            "classifyTextForCrimesPrompt": happy_replies["classifyTextForCrimesPrompt"],
        })

        result = await transcribe_audio(
            TranscribeAudioInput(audio_data_uri=AUDIO_URI, file_name="call.mp3"),
            invoker=invoker,
            classify_crimes=True,
        )

        assert result.crime_analysis_results.crime_tags[0].crime_type == "Robbery"
        assert invoker.inputs_for("classifyTextForCrimesPrompt")[0].context == "Audio transcript: call.mp3"

    @pytest.mark.asyncio
    async def test_failed_transcription_is_not_classified(self, make_invoker):
        invoker = make_invoker({"transcribeAudioPrompt": RuntimeError("unsupported codec")})

        result = await transcribe_audio(
            TranscribeAudioInput(audio_data_uri=AUDIO_URI, file_name="call.mp3"),
            invoker=invoker,
            classify_crimes=True,
        )

        assert result.transcript.startswith(STAGE_FAILURE_PREFIX)
        assert "(File: call.mp3)" in result.report
        assert result.crime_analysis_results is None
        assert not invoker.called("classifyTextForCrimesPrompt")

    @pytest.mark.asyncio
    async def test_consolidation_without_analyses(self, scripted_invoker):
        """Test an empty analysis list returns the fixed report."""
        result = await consolidate_audio_analyses(ConsolidateAudioAnalysesInput(), invoker=scripted_invoker)

        assert result.consolidated_report == NO_AUDIO_ANALYSES
        assert scripted_invoker.calls == []

    @pytest.mark.asyncio
    async def test_consolidation(self, make_invoker):
        invoker = make_invoker({"consolidateAudioAnalysesPrompt": {"consolidatedReport": "Same caller in both."}})
        analyses = [
            IndividualAudioAnalysis(file_name="a.mp3", transcript="t1", report="r1"),
            IndividualAudioAnalysis(file_name="b.mp3", transcript="t2", report="r2"),
        ]

        result = await consolidate_audio_analyses(
            ConsolidateAudioAnalysesInput(analyses=analyses, case_context="Extortion case"),
            invoker=invoker,
        )

        assert result.consolidated_report == "Same caller in both."

    @pytest.mark.asyncio
    async def test_blank_consolidation_is_failure(self, make_invoker):
        invoker = make_invoker({"consolidateAudioAnalysesPrompt": {"consolidatedReport": ""}})
        analyses = [IndividualAudioAnalysis(transcript="t1", report="r1")]

        result = await consolidate_audio_analyses(ConsolidateAudioAnalysesInput(analyses=analyses), invoker=invoker)

        assert result.consolidated_report.startswith(STAGE_FAILURE_PREFIX)


class TestImageFlow:
    """Tests for image analysis."""

    @pytest.mark.asyncio
    async def test_plate_read(self, make_invoker):
        invoker = make_invoker({
            "analyzeImagePrompt": {"description": "A red hatchback.", "possiblePlateRead": "ABC1D23"}
        })

        result = await analyze_image(AnalyzeImageInput(photo_data_uri=PHOTO_URI), invoker=invoker)

        assert result.description == "A red hatchback."
        assert result.possible_plate_read == "ABC1D23"

    @pytest.mark.asyncio
    async def test_failure(self, make_invoker):
        invoker = make_invoker({"analyzeImagePrompt": RuntimeError("image too large")})

        result = await analyze_image(AnalyzeImageInput(photo_data_uri=PHOTO_URI), invoker=invoker)

        assert result.description == f"{STAGE_FAILURE_PREFIX}image too large"
        assert result.possible_plate_read is None


class TestLinkAnalysis:
    """Tests for entity relationship discovery."""

    def test_ids_rebuilt_from_labels(self):
        """Test ids are sanitized, deduplicated and edges remapped."""
        reply = FindEntityRelationshipsReply.model_validate({
            "identifiedEntities": [
                {"id": "e1", "label": "John Doe", "type": "Person"},
                {"id": "e2", "label": "John-Doe", "type": "Person"},
                {"id": "e3", "label": "+55 11 9999", "type": "Phone"},
            ],
            "relationships": [
                {"source": "e1", "target": "e3", "label": "calls"},
                {"source": "John-Doe", "target": "e1", "label": "knows"},
                {"source": "e1", "target": "ghost", "label": "owes"},
            ],
            "analysisSummary": "Two people share a phone.",
        })

        nodes, relationships = normalize_entity_graph(reply)

        assert [node.id for node in nodes] == ["John_Doe", "John_Doe_2", "_55_11_9999"]
        assert [(rel.source, rel.target) for rel in relationships] == [
            ("John_Doe", "_55_11_9999"),
            ("John_Doe_2", "John_Doe"),
        ]

    def test_ids_unique_when_label_looks_suffixed(self):
        """Test a label equal to a generated suffix id does not collide with it."""
        reply = FindEntityRelationshipsReply.model_validate({
            "identifiedEntities": [
                {"id": "e1", "label": "A B", "type": "Person"},
                {"id": "e2", "label": "A_B", "type": "Person"},
                {"id": "e3", "label": "A_B_2", "type": "Vehicle"},
            ],
            "relationships": [
                {"source": "e1", "target": "e3", "label": "drives"},
                {"source": "e2", "target": "e3", "label": "owns"},
            ],
            "analysisSummary": "Two people linked to one car.",
        })

        nodes, relationships = normalize_entity_graph(reply)

        ids = [node.id for node in nodes]
        assert ids == ["A_B", "A_B_2", "A_B_2_2"]
        assert len(set(ids)) == len(ids)
        assert [(rel.source, rel.target) for rel in relationships] == [
            ("A_B", "A_B_2_2"),
            ("A_B_2", "A_B_2_2"),
        ]

    @pytest.mark.asyncio
    async def test_empty_entity_list(self, scripted_invoker):
        result = await find_entity_relationships(FindEntityRelationshipsInput(), invoker=scripted_invoker)

        assert result.analysis_summary == NO_ENTITIES
        assert result.identified_entities == []
        assert scripted_invoker.calls == []

    @pytest.mark.asyncio
    async def test_entity_list_truncated(self, make_invoker):
        invoker = make_invoker({"findEntityRelationshipsPrompt": {"identifiedEntities": [], "relationships": []}})
        entities = [f"Entity {i}" for i in range(MAX_ENTITIES + 20)]

        result = await find_entity_relationships(FindEntityRelationshipsInput(entities=entities), invoker=invoker)

        assert len(invoker.inputs_for("findEntityRelationshipsPrompt")[0].entities) == MAX_ENTITIES
        assert result.analysis_summary.startswith("NOTICE: the entity list provided (120)")
        assert result.analysis_summary.endswith("Analysis completed.")

    @pytest.mark.asyncio
    async def test_failure(self, make_invoker):
        invoker = make_invoker({"findEntityRelationshipsPrompt": RuntimeError("bad graph")})

        result = await find_entity_relationships(
            FindEntityRelationshipsInput(entities=["Alice", "Bob"]),
            invoker=invoker,
        )

        assert result.relationships == []
        assert result.analysis_summary == f"{STAGE_FAILURE_PREFIX}bad graph"


class TestFinancialAnalysis:
    """Tests for financial intelligence analysis."""

    @pytest.mark.asyncio
    async def test_blank_report(self, scripted_invoker):
        result = await analyze_financial_data(
            AnalyzeFinancialDataInput(rif_text_content="   "),
            invoker=scripted_invoker,
        )

        assert result.financial_intelligence_report == EMPTY_REPORT
        assert result.dashboard_data.key_metrics[0].label == "Error"
        assert scripted_invoker.calls == []

    @pytest.mark.asyncio
    async def test_dashboard_lists_truncated(self, make_invoker):
        invoker = make_invoker({
            "analyzeFinancialDataPrompt": {
                "financialIntelligenceReport": "Structuring pattern detected.",
                "dashboardData": {
                    "keyMetrics": [{"label": f"M{i}", "value": str(i)} for i in range(15)],
                    "topSuspiciousTransactions": [
                        {"description": f"T{i}", "amount": "9,900.00"} for i in range(12)
                    ],
                    "involvedPartiesProfiles": [{"name": f"P{i}"} for i in range(8)],
                },
            }
        })

        result = await analyze_financial_data(
            AnalyzeFinancialDataInput(rif_text_content="RIF 123: cash deposits below threshold"),
            invoker=invoker,
        )

        dashboard = result.dashboard_data
        assert len(dashboard.key_metrics) == 10
        assert len(dashboard.top_suspicious_transactions) == 10
        assert len(dashboard.involved_parties_profiles) == 5

    @pytest.mark.asyncio
    async def test_missing_dashboard_warns(self, make_invoker):
        invoker = make_invoker({"analyzeFinancialDataPrompt": {"financialIntelligenceReport": "Report"}})

        result = await analyze_financial_data(
            AnalyzeFinancialDataInput(rif_text_content="RIF 123"),
            invoker=invoker,
        )

        assert result.dashboard_data.key_metrics[0].label == "Warning"

    @pytest.mark.asyncio
    async def test_failure_names_file(self, make_invoker):
        invoker = make_invoker({"analyzeFinancialDataPrompt": RuntimeError("context too long")})

        result = await analyze_financial_data(
            AnalyzeFinancialDataInput(rif_text_content="RIF 123", original_file_name="rif.txt"),
            invoker=invoker,
        )

        assert result.financial_intelligence_report.startswith(STAGE_FAILURE_PREFIX)
        assert "(File: rif.txt)" in result.financial_intelligence_report
        assert result.dashboard_data.key_metrics[0].label == "Error"


class TestReportGeneration:
    """Tests for investigation report drafts."""

    @pytest.mark.asyncio
    async def test_report(self, make_invoker):
        invoker = make_invoker({"generateRicPrompt": {"reportContent": "# RIC\nCase Operation Pegasus"}})
        ric_input = GenerateRicInput(
            case_name="Operation Pegasus",
            analyses=[AnalysisItem(type="Document", summary="Robbery report", source_file_name="a.pdf")],
        )

        result = await generate_ric(ric_input, invoker=invoker)

        assert result.report_content.startswith("# RIC")

    @pytest.mark.asyncio
    async def test_failure_names_case(self, make_invoker):
        invoker = make_invoker({"generateRicPrompt": None})

        result = await generate_ric(GenerateRicInput(case_name="Operation Pegasus"), invoker=invoker)

        assert result.report_content.startswith(STAGE_FAILURE_PREFIX)
        assert "Operation Pegasus" in result.report_content
