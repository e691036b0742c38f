"""Pytest fixtures for ICAS unit tests."""

from typing import Any

import pytest
from pydantic import BaseModel

from icas.config import Settings
from icas.flows.document import DocumentAnalysisPipeline
from icas.llm import CapabilityInvoker, PromptSpec


class ScriptedInvoker(CapabilityInvoker):
    """Capability invoker returning scripted replies keyed by prompt name.

    A reply may be a dict (validated into the prompt's output model), a
    model instance, an exception to raise, a callable taking the input, or
    None. Prompts without a scripted reply return None.
    """

    def __init__(self, replies: dict[str, Any] | None = None):
        self.replies = dict(replies or {})
        self.calls: list[tuple[str, BaseModel, float | None]] = []

    async def invoke(self, spec: PromptSpec, input: BaseModel, timeout: float | None = None):
        self.calls.append((spec.name, input, timeout))
        reply = self.replies.get(spec.name)
        if callable(reply):
            reply = reply(input)
        if isinstance(reply, BaseException):
            raise reply
        if reply is None:
            return None
        if isinstance(reply, dict):
            return spec.output_model.model_validate(reply)
        return reply

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)

    def inputs_for(self, name: str) -> list[BaseModel]:
        return [call[1] for call in self.calls if call[0] == name]

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


def clerk_echo(stage_input) -> dict[str, Any]:
    """Clerk reply that echoes the text it was given."""
    return {
        "extractedText": stage_input.text_content or "Text read from the scanned page: stolen car report.",
        "summary": "Witness reports a robbery at the Central Market.",
        "keyEntities": [{"type": "Place", "value": "Central Market"}],
        "language": "en",
        "clerkReport": {
            "formalizedSummary": "On the reported date a robbery occurred at the Central Market.",
            "keyInformationStructured": [{"category": "Incident", "details": "Robbery"}],
        },
    }


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a fixed press office and no demo data."""
    return Settings(
        press_office_name="Test Press Office",
        press_office_contact="press@test.example",
        seed_demo_cases=False,
        llm_timeout_seconds=30.0,
    )


@pytest.fixture
def happy_replies() -> dict[str, Any]:
    """Successful replies for every document pipeline prompt."""
    return {
        "investigatorPrompt": {
            "observations": "The witness describes an armed robbery near the market entrance.",
            "potentialLeads": ["Request market CCTV footage", "Identify the second witness"],
        },
        "clerkPrompt": clerk_echo,
        "delegatePrompt": {
            "overallAssessment": "Credible report of an armed robbery; urgent follow-up required.",
            "suggestedActions": ["Collect CCTV footage"],
            "legalConsiderations": "Possible armed robbery charge.",
        },
        "pressReleasePrompt": {
            "pressRelease": "Police are investigating a robbery reported at the Central Market.",
        },
        "classifyTextForCrimesPrompt": {
            "crimeTags": [
                {
                    "crimeType": "Robbery",
                    "description": "The statement describes goods taken under threat.",
                    "confidence": 0.9,
                }
            ],
            "overallCriminalAssessment": "A robbery is described.",
        },
    }


@pytest.fixture
def scripted_invoker(happy_replies) -> ScriptedInvoker:
    return ScriptedInvoker(happy_replies)


@pytest.fixture
def pipeline(scripted_invoker, test_settings) -> DocumentAnalysisPipeline:
    return DocumentAnalysisPipeline(scripted_invoker, test_settings)


@pytest.fixture
def make_invoker():
    """Factory for scripted invokers with custom replies."""
    return ScriptedInvoker
