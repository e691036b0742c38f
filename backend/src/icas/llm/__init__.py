"""LLM capability layer.

Components:
- PromptSpec: typed declaration of one prompt (input model, output model, renderer)
- CapabilityInvoker: single-call gateway; returns output, None (empty) or raises
- LLMCapabilityInvoker: OpenAI / Anthropic implementation
"""

from .invoker import (
    CapabilityError,
    CapabilityInvoker,
    LLMCapabilityInvoker,
    MediaPart,
    PromptSpec,
    RenderedPrompt,
    get_capability_invoker,
)

__all__ = [
    "CapabilityError",
    "CapabilityInvoker",
    "LLMCapabilityInvoker",
    "MediaPart",
    "PromptSpec",
    "RenderedPrompt",
    "get_capability_invoker",
]
