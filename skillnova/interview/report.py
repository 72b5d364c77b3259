"""
Plain-text rendering of the transcript and the performance review.
"""
from typing import List, Optional, Sequence

from .models import FeedbackResult, FeedbackStatus, Speaker, Turn

VERDICT_PREFIX = "**Verdict"


def format_report_lines(feedback: str) -> List[str]:
    """
    Split a Markdown review into display lines.

    Bold markers are stripped; the verdict line is framed so it stands out.
    """
    lines = []
    for line in feedback.split("\n"):
        plain = line.replace("**", "")
        if line.startswith(VERDICT_PREFIX):
            bar = "─" * max(len(plain) + 2, 20)
            lines.extend(["", f"┌{bar}", f"│ {plain}", f"└{bar}"])
        else:
            lines.append(plain)
    return lines


def display_transcript(turns: Sequence[Turn]) -> None:
    print("\n" + "=" * 50)
    print("📝 TRANSCRIPT")
    print("=" * 50)
    if not turns:
        print("(no conversation recorded)")
    for turn in turns:
        icon = "🤖" if turn.speaker is Speaker.INTERVIEWER else "🧑"
        print(f"{icon} {turn.format_line()}")


def display_feedback(feedback: Optional[FeedbackResult], model_name: str = "") -> None:
    """Print the final report, a failure notice, or nothing if no review was produced."""
    if feedback is None:
        print("\nℹ️  No feedback generated (the interview ended before anything was said).")
        return

    print("\n" + "=" * 50)
    if feedback.status is FeedbackStatus.READY:
        print(f"✅ ASSESSMENT COMPLETE  {model_name.upper()}")
        print("=" * 50)
        for line in format_report_lines(feedback.text or ""):
            print(line)
    elif feedback.status is FeedbackStatus.FAILED:
        print("❌ ASSESSMENT UNAVAILABLE")
        print("=" * 50)
        print(feedback.text)
    else:
        print("⏳ Generating performance review...")
