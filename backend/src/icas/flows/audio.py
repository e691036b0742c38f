"""Audio transcription and consolidation of several audio analyses."""

from ..llm import CapabilityInvoker, get_capability_invoker
from ..logging import get_logger
from .classification import CrimeClassifier
from .messages import stage_failure
from .models import (
    ConsolidateAudioAnalysesInput,
    ConsolidateAudioAnalysesOutput,
    ConsolidateAudioAnalysesReply,
    TranscribeAudioInput,
    TranscribeAudioOutput,
    TranscribeAudioReply,
)
from .prompts import CONSOLIDATE_AUDIO_PROMPT, TRANSCRIBE_AUDIO_PROMPT
from .stages import BaseStage

logger = get_logger(__name__)

NO_AUDIO_ANALYSES = (
    "No audio analyses were provided for consolidation. "
    "A consolidated report cannot be generated."
)


class TranscribeAudioStage(BaseStage[TranscribeAudioInput, TranscribeAudioReply, TranscribeAudioOutput]):
    name = "audio_transcription"
    prompt = TRANSCRIBE_AUDIO_PROMPT

    def has_input(self, stage_input: TranscribeAudioInput) -> bool:
        return bool(stage_input.audio_data_uri)

    def failure_payload(self, cause: str, stage_input: TranscribeAudioInput) -> TranscribeAudioOutput:
        return TranscribeAudioOutput(
            transcript=stage_failure(cause, stage_input.file_name),
            report=stage_failure(f"{cause}. Report could not be generated", stage_input.file_name),
        )

    def complete(self, reply: TranscribeAudioReply, stage_input: TranscribeAudioInput) -> TranscribeAudioOutput:
        return TranscribeAudioOutput(
            transcript=reply.transcript or "No transcript returned.",
            report=reply.report or "No report returned.",
        )


class ConsolidateAudioStage(
    BaseStage[ConsolidateAudioAnalysesInput, ConsolidateAudioAnalysesReply, ConsolidateAudioAnalysesOutput]
):
    name = "audio_consolidation"
    prompt = CONSOLIDATE_AUDIO_PROMPT

    def has_input(self, stage_input: ConsolidateAudioAnalysesInput) -> bool:
        return bool(stage_input.analyses)

    def failure_payload(
        self, cause: str, stage_input: ConsolidateAudioAnalysesInput
    ) -> ConsolidateAudioAnalysesOutput:
        return ConsolidateAudioAnalysesOutput(consolidated_report=stage_failure(cause))

    def complete(
        self, reply: ConsolidateAudioAnalysesReply, stage_input: ConsolidateAudioAnalysesInput
    ) -> ConsolidateAudioAnalysesOutput:
        if not reply.consolidated_report:
            return self.failure_payload("no consolidated report returned", stage_input)
        return ConsolidateAudioAnalysesOutput(consolidated_report=reply.consolidated_report)


async def transcribe_audio(
    audio_input: TranscribeAudioInput,
    invoker: CapabilityInvoker | None = None,
    classify_crimes: bool = False,
    timeout: float | None = None,
) -> TranscribeAudioOutput:
    """Transcribe an audio file and write an investigation report about it.

    When ``classify_crimes`` is set and the transcription succeeded, the
    transcript is also run through crime classification.
    """
    invoker = invoker or get_capability_invoker()
    outcome = await TranscribeAudioStage(invoker).run(audio_input, timeout=timeout)
    output = outcome.payload

    if classify_crimes and not outcome.degraded:
        context = f"Audio transcript: {audio_input.file_name or 'unnamed audio file'}"
        crime = await CrimeClassifier(invoker).classify(output.transcript, context=context, timeout=timeout)
        output.crime_analysis_results = crime.payload
    return output


async def consolidate_audio_analyses(
    consolidate_input: ConsolidateAudioAnalysesInput,
    invoker: CapabilityInvoker | None = None,
    timeout: float | None = None,
) -> ConsolidateAudioAnalysesOutput:
    """Cross-reference several audio analyses into one report.

    An empty list of analyses returns a fixed report without calling the
    capability.
    """
    if not consolidate_input.analyses:
        logger.info("No audio analyses to consolidate")
        return ConsolidateAudioAnalysesOutput(consolidated_report=NO_AUDIO_ANALYSES)

    invoker = invoker or get_capability_invoker()
    outcome = await ConsolidateAudioStage(invoker).run(consolidate_input, timeout=timeout)
    return outcome.payload
