"""Capability invoker for LLM prompt calls.

A prompt is declared as a ``PromptSpec`` with a typed input model, a typed
output model and a render function. The invoker sends the rendered prompt
(plus any media attachments) to the configured provider, parses the JSON
reply and validates it against the output model.

The invoker never swallows failures:
- an empty reply is returned as ``None``
- provider, timeout and parse failures are raised
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..config import get_settings

logger = logging.getLogger(__name__)

TIn = TypeVar("TIn", bound=BaseModel)
TOut = TypeVar("TOut", bound=BaseModel)

# OpenAI input_audio only accepts these two formats
_OPENAI_AUDIO_FORMATS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
}

_DATA_URI_PATTERN = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+)?;base64,(.*)$", re.DOTALL)


class CapabilityError(Exception):
    """Raised when a capability call fails (provider, timeout or bad output)."""

    def __init__(self, message: str, spec_name: str | None = None):
        self.spec_name = spec_name
        super().__init__(message)


@dataclass(frozen=True)
class MediaPart:
    """A binary attachment passed to the provider as a data URI."""

    data_uri: str
    file_name: str | None = None

    @property
    def mime_type(self) -> str:
        match = _DATA_URI_PATTERN.match(self.data_uri)
        if match and match.group(1):
            return match.group(1).lower()
        return "application/octet-stream"

    @property
    def base64_data(self) -> str:
        match = _DATA_URI_PATTERN.match(self.data_uri)
        if match:
            return match.group(2)
        return self.data_uri.split(",", 1)[-1]

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")


@dataclass(frozen=True)
class RenderedPrompt:
    """Prompt text plus the media attachments it refers to."""

    text: str
    media: list[MediaPart] = field(default_factory=list)


@dataclass(frozen=True)
class PromptSpec(Generic[TIn, TOut]):
    """Declaration of one capability call.

    Attributes:
        name: Prompt name, used in logs and errors
        input_model: Pydantic model the input must be an instance of
        output_model: Pydantic model the reply is validated against
        render: Builds the prompt from a validated input
        system: System instruction sent with every call
    """

    name: str
    input_model: type[TIn]
    output_model: type[TOut]
    render: Callable[[TIn], RenderedPrompt]
    system: str = "You are an assistant for police investigators. Return only valid JSON."

    def output_instructions(self) -> str:
        """JSON schema instructions appended to every rendered prompt."""
        schema = json.dumps(self.output_model.model_json_schema(by_alias=True), indent=2)
        return (
            "\n\nReturn ONLY a JSON object, no other text, that conforms to this JSON schema:\n"
            f"{schema}"
        )


class CapabilityInvoker(ABC):
    """Abstract single-call gateway to the LLM capability."""

    @abstractmethod
    async def invoke(
        self,
        spec: PromptSpec[TIn, TOut],
        input: TIn,
        timeout: float | None = None,
    ) -> TOut | None:
        """Invoke the capability described by ``spec``.

        Args:
            spec: Prompt declaration
            input: Input conforming to ``spec.input_model``
            timeout: Optional timeout in seconds for the provider round-trip

        Returns:
            The validated output, or None if the provider returned nothing

        Raises:
            CapabilityError: On timeout or unparseable/invalid output
            Exception: Provider errors are propagated unchanged
        """
        ...


class LLMCapabilityInvoker(CapabilityInvoker):
    """Capability invoker backed by the OpenAI or Anthropic async SDKs."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "gpt-4o",
        api_key: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 4000,
    ):
        """Initialize the invoker.

        Args:
            provider: LLM provider ('openai' or 'anthropic')
            model: Model name sent with every request
            api_key: Provider API key; SDK environment defaults apply when None
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the reply
        """
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: Any = None

    def _get_client(self) -> Any:
        """Get or create the provider client."""
        if self._client is not None:
            return self._client

        if self.provider == "openai":
            import openai

            self._client = openai.AsyncOpenAI(api_key=self.api_key or None)
        elif self.provider == "anthropic":
            import anthropic

            self._client = anthropic.AsyncAnthropic(api_key=self.api_key or None)
        else:
            raise ValueError(f"Unknown LLM provider: {self.provider}")

        return self._client

    async def invoke(
        self,
        spec: PromptSpec[TIn, TOut],
        input: TIn,
        timeout: float | None = None,
    ) -> TOut | None:
        if not isinstance(input, spec.input_model):
            raise TypeError(
                f"{spec.name} expects {spec.input_model.__name__}, got {type(input).__name__}"
            )

        rendered = spec.render(input)
        prompt_text = rendered.text + spec.output_instructions()
        client = self._get_client()

        if self.provider == "openai":
            call = self._complete_openai(client, spec, prompt_text, rendered.media)
        else:
            call = self._complete_anthropic(client, spec, prompt_text, rendered.media)

        try:
            content = await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise CapabilityError(
                f"{spec.name} timed out after {timeout} seconds", spec_name=spec.name
            ) from e

        if content is None or not content.strip():
            logger.warning(f"{spec.name} returned an empty response")
            return None

        data = self._parse_json(content, spec)
        if not data:
            logger.warning(f"{spec.name} returned an empty JSON document")
            return None

        try:
            return spec.output_model.model_validate(data)
        except PydanticValidationError as e:
            raise CapabilityError(
                f"{spec.name} returned output that does not match "
                f"{spec.output_model.__name__}: {e.error_count()} validation error(s)",
                spec_name=spec.name,
            ) from e

    async def _complete_openai(
        self,
        client: Any,
        spec: PromptSpec,
        prompt_text: str,
        media: list[MediaPart],
    ) -> str | None:
        """Complete using OpenAI chat completions."""
        parts: list[dict[str, Any]] = [{"type": "text", "text": prompt_text}]
        for item in media:
            if item.is_pdf:
                parts.append({
                    "type": "file",
                    "file": {
                        "filename": item.file_name or "document.pdf",
                        "file_data": item.data_uri,
                    },
                })
            elif item.is_audio:
                audio_format = _OPENAI_AUDIO_FORMATS.get(item.mime_type)
                if audio_format is None:
                    raise CapabilityError(
                        f"{spec.name}: audio format {item.mime_type} is not supported by provider openai "
                        "(use MP3 or WAV)",
                        spec_name=spec.name,
                    )
                parts.append({
                    "type": "input_audio",
                    "input_audio": {"data": item.base64_data, "format": audio_format},
                })
            else:
                parts.append({"type": "image_url", "image_url": {"url": item.data_uri}})

        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": spec.system},
                {"role": "user", "content": parts if media else prompt_text},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def _complete_anthropic(
        self,
        client: Any,
        spec: PromptSpec,
        prompt_text: str,
        media: list[MediaPart],
    ) -> str | None:
        """Complete using Anthropic messages."""
        parts: list[dict[str, Any]] = []
        for item in media:
            if item.is_audio:
                raise CapabilityError(
                    f"{spec.name}: audio input not supported by provider anthropic",
                    spec_name=spec.name,
                )
            source = {
                "type": "base64",
                "media_type": item.mime_type,
                "data": item.base64_data,
            }
            parts.append({"type": "document" if item.is_pdf else "image", "source": source})
        parts.append({"type": "text", "text": prompt_text})

        response = await client.messages.create(
            model=self.model,
            system=spec.system,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[{"role": "user", "content": parts}],
        )

        texts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
        return "".join(texts) if texts else None

    def _parse_json(self, content: str, spec: PromptSpec) -> Any:
        """Parse a JSON reply, tolerating markdown code fences."""
        content = content.strip()
        if content.startswith("```"):
            lines = content.split("\n")
            content = "\n".join(lines[1:-1]) if lines[-1].strip().startswith("```") else "\n".join(lines[1:])

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise CapabilityError(
                f"{spec.name} returned invalid JSON: {e}", spec_name=spec.name
            ) from e


@lru_cache
def get_capability_invoker() -> CapabilityInvoker:
    """Get the capability invoker configured from settings."""
    settings = get_settings()
    api_key = (
        settings.anthropic_api_key
        if settings.llm_provider == "anthropic"
        else settings.openai_api_key
    )
    return LLMCapabilityInvoker(
        provider=settings.llm_provider,
        model=settings.effective_llm_model,
        api_key=api_key,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
