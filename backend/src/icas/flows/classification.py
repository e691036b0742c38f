"""Crime classification of free text.

Classification is a single capability call that always yields a valid
``CrimeClassification``: short text is answered locally and failures
become an empty tag list with an explanatory assessment.
"""

import time

from ..llm import CapabilityInvoker, get_capability_invoker
from ..logging import get_logger, log_stage_outcome
from .messages import (
    CRIME_DETECTED,
    INSUFFICIENT_TEXT,
    MIN_CLASSIFICATION_LENGTH,
    NO_CRIME_DETECTED,
)
from .models import ClassifyTextInput, CrimeClassification, DegradationReason, StageOutcome
from .prompts import CLASSIFY_CRIMES_PROMPT

logger = get_logger(__name__)

CLASSIFICATION_FAILED = "Crime classification failed"


class CrimeClassifier:
    """Classifies criminal or suspicious activity described in a text."""

    name = "crime_classification"

    def __init__(self, invoker: CapabilityInvoker):
        self.invoker = invoker

    async def classify(
        self,
        text: str | None,
        context: str | None = None,
        timeout: float | None = None,
        run_id: str | None = None,
    ) -> StageOutcome[CrimeClassification]:
        """Classify ``text``.

        Args:
            text: Text to analyze
            context: Optional context line passed to the prompt
            timeout: Optional timeout in seconds for the capability call
            run_id: Pipeline run identifier, used in logs

        Returns:
            Outcome whose payload is always a complete classification
        """
        start = time.monotonic()
        outcome = await self._classify(text, context, timeout)
        log_stage_outcome(
            stage=self.name,
            run_id=run_id,
            status=outcome.status.value,
            reason=outcome.reason.value if outcome.reason else None,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return outcome

    async def _classify(
        self, text: str | None, context: str | None, timeout: float | None
    ) -> StageOutcome[CrimeClassification]:
        if not text or len(text.strip()) < MIN_CLASSIFICATION_LENGTH:
            return StageOutcome.degrade(
                CrimeClassification(crime_tags=[], overall_criminal_assessment=INSUFFICIENT_TEXT),
                DegradationReason.INSUFFICIENT_CONTENT,
                INSUFFICIENT_TEXT,
            )

        classify_input = ClassifyTextInput(text_content=text, context=context)
        try:
            reply = await self.invoker.invoke(CLASSIFY_CRIMES_PROMPT, classify_input, timeout=timeout)
        except Exception as e:
            logger.error(f"Crime classification failed: {e}")
            return StageOutcome.degrade(
                CrimeClassification(
                    crime_tags=[],
                    overall_criminal_assessment=f"{CLASSIFICATION_FAILED}: {e}",
                ),
                DegradationReason.CAPABILITY_ERROR,
                str(e),
            )

        if reply is None:
            logger.error("Crime classification returned no output")
            return StageOutcome.degrade(
                CrimeClassification(
                    crime_tags=[],
                    overall_criminal_assessment=(
                        f"{CLASSIFICATION_FAILED}: empty response from the classification capability."
                    ),
                ),
                DegradationReason.EMPTY_RESPONSE,
            )

        tags = reply.crime_tags or []
        assessment = reply.overall_criminal_assessment
        if not assessment:
            assessment = CRIME_DETECTED if tags else NO_CRIME_DETECTED
        return StageOutcome.ok(CrimeClassification(crime_tags=tags, overall_criminal_assessment=assessment))


async def classify_text_for_crimes(
    text: str | None,
    context: str | None = None,
    invoker: CapabilityInvoker | None = None,
    timeout: float | None = None,
) -> CrimeClassification:
    """Classify crimes in ``text``; never raises for capability failures.

    Text shorter than ten non-blank characters returns an empty
    classification without calling the capability.
    """
    classifier = CrimeClassifier(invoker or get_capability_invoker())
    outcome = await classifier.classify(text, context, timeout=timeout)
    return outcome.payload
