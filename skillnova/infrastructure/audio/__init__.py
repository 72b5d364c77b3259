"""
Local audio device access for SkillNova.

PyAudio is only imported when the microphone is actually probed.
"""

from .microphone import acquire_microphone

__all__ = ["acquire_microphone"]
