"""Criminal investigation report (RIC) drafts."""

from ..llm import CapabilityInvoker, get_capability_invoker
from .messages import stage_failure
from .models import GenerateRicInput, GenerateRicOutput, GenerateRicReply
from .prompts import GENERATE_RIC_PROMPT
from .stages import BaseStage


class GenerateRicStage(BaseStage[GenerateRicInput, GenerateRicReply, GenerateRicOutput]):
    name = "ric_generation"
    prompt = GENERATE_RIC_PROMPT

    def has_input(self, stage_input: GenerateRicInput) -> bool:
        return bool(stage_input.case_name.strip())

    def failure_payload(self, cause: str, stage_input: GenerateRicInput) -> GenerateRicOutput:
        return GenerateRicOutput(
            report_content=stage_failure(
                f"the investigation report for case '{stage_input.case_name}' could not be generated: {cause}"
            )
        )

    def complete(self, reply: GenerateRicReply, stage_input: GenerateRicInput) -> GenerateRicOutput:
        if not reply.report_content:
            return self.failure_payload("no report content returned", stage_input)
        return GenerateRicOutput(report_content=reply.report_content)


async def generate_ric(
    ric_input: GenerateRicInput,
    invoker: CapabilityInvoker | None = None,
    timeout: float | None = None,
) -> GenerateRicOutput:
    """Draft an investigation report from a case and its analyses."""
    invoker = invoker or get_capability_invoker()
    outcome = await GenerateRicStage(invoker).run(ric_input, timeout=timeout)
    return outcome.payload
