"""
Post-interview feedback pipeline.
"""
import asyncio
import inspect
import logging
from typing import Optional, Sequence

from .errors import GenerationError
from .models import FeedbackResult, Turn
from .prompts import InterviewPrompts, PromptFormatter

logger = logging.getLogger("feedback")


class FeedbackPipeline:
    """
    Turns a finished transcript into a performance review.

    The generation client only needs a ``generate_content(prompt)`` method.
    Blocking clients run in a worker thread; clients whose method is a
    coroutine function are awaited directly.
    """

    def __init__(self, llm_client, timeout: Optional[float] = None, review_context: str = ""):
        self.llm_client = llm_client
        self.timeout = timeout
        self.review_context = review_context

    def build_prompt(self, transcript: Sequence[Turn]) -> str:
        prompt = InterviewPrompts.performance_review(
            InterviewPrompts.reviewer_persona(),
            PromptFormatter.format_transcript(transcript),
        )
        return PromptFormatter.add_custom_context(prompt, self.review_context)

    async def generate_feedback(self, transcript: Sequence[Turn]) -> FeedbackResult:
        """
        Generate the review for ``transcript``.

        Never raises for backend problems: any failure becomes a FAILED
        result carrying a generic message. The underlying error is logged.
        """
        prompt = self.build_prompt(transcript)
        logger.info("Requesting feedback for %d turns", len(transcript))
        logger.debug("Feedback prompt: %s", prompt)

        try:
            if self.timeout is not None:
                text = await asyncio.wait_for(self._call_backend(prompt), timeout=self.timeout)
            else:
                text = await self._call_backend(prompt)
        except asyncio.TimeoutError:
            logger.error("Feedback generation timed out after %.1fs", self.timeout)
            return FeedbackResult.failed()
        except Exception as e:
            logger.error("Feedback generation failed: %s", e)
            return FeedbackResult.failed()

        if not isinstance(text, str) or not text.strip():
            logger.error("Feedback generation returned no text: %r", text)
            return FeedbackResult.failed()

        logger.info("Feedback generated (%d chars)", len(text))
        return FeedbackResult.ready(text)

    async def _call_backend(self, prompt: str) -> str:
        generate = getattr(self.llm_client, "generate_content", None)
        if generate is None:
            raise GenerationError("Generation client has no generate_content method")
        if inspect.iscoroutinefunction(generate):
            return await generate(prompt)
        return await asyncio.to_thread(generate, prompt)
