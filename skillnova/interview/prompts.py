"""
Interview prompt templates and generation.

This module contains the prompt templates used for the post-interview review,
keeping them separate from the pipeline logic for easier maintenance and editing.
"""

from typing import Iterable

from .models import Turn


class InterviewPrompts:
    """Collection of interview-related prompts."""

    @staticmethod
    def reviewer_persona() -> str:
        """Who the generation backend is asked to be."""
        return """
You are a Senior Technical Recruiter at a top-tier technology company.
You have run hundreds of engineering interviews and you give candid, specific feedback.
        """.strip()

    @staticmethod
    def performance_review(reviewer_persona: str, transcript_text: str) -> str:
        """Main prompt asking for a structured review of a finished interview."""
        return f"""
{reviewer_persona}

Analyze this interview transcript. Lines spoken by the interviewer start with
"Interviewer:" and lines spoken by the candidate start with "Candidate:".

Transcript:
{transcript_text}

Provide a performance review in Markdown with these sections:
1. **Technical Accuracy** - how correct and deep the candidate's technical answers were
2. **Communication Clarity** - how clearly and concisely the candidate explained themselves
3. **Verdict:** Hire or No Hire, followed by a one-sentence justification

Keep it brief. Put the verdict on its own line starting with "**Verdict:**".
        """.strip()


class PromptFormatter:
    """Helper class for formatting prompt inputs."""

    @staticmethod
    def format_transcript(turns: Iterable[Turn]) -> str:
        """Serialise turns as ``<Speaker>: <text>`` lines, in order."""
        return "\n".join(turn.format_line() for turn in turns)

    @staticmethod
    def add_custom_context(base_prompt: str, custom_context: str) -> str:
        """Add custom context to a base prompt if provided."""
        if custom_context and custom_context.strip():
            return f"{base_prompt}\n\nADDITIONAL CONTEXT: {custom_context}"
        return base_prompt
