"""Image description and license plate reading."""

from ..llm import CapabilityInvoker, get_capability_invoker
from .messages import stage_failure
from .models import AnalyzeImageInput, AnalyzeImageOutput, AnalyzeImageReply
from .prompts import ANALYZE_IMAGE_PROMPT
from .stages import BaseStage


class AnalyzeImageStage(BaseStage[AnalyzeImageInput, AnalyzeImageReply, AnalyzeImageOutput]):
    name = "image_analysis"
    prompt = ANALYZE_IMAGE_PROMPT

    def has_input(self, stage_input: AnalyzeImageInput) -> bool:
        return bool(stage_input.photo_data_uri)

    def failure_payload(self, cause: str, stage_input: AnalyzeImageInput) -> AnalyzeImageOutput:
        return AnalyzeImageOutput(description=stage_failure(cause), possible_plate_read=None)

    def complete(self, reply: AnalyzeImageReply, stage_input: AnalyzeImageInput) -> AnalyzeImageOutput:
        return AnalyzeImageOutput(
            description=reply.description or "No description returned.",
            possible_plate_read=reply.possible_plate_read or None,
        )


async def analyze_image(
    image_input: AnalyzeImageInput,
    invoker: CapabilityInvoker | None = None,
    timeout: float | None = None,
) -> AnalyzeImageOutput:
    invoker = invoker or get_capability_invoker()
    outcome = await AnalyzeImageStage(invoker).run(image_input, timeout=timeout)
    return outcome.payload
