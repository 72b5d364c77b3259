"""
Microphone acquisition check run before a voice session is opened.
"""
import logging

from ...config import AUDIO_PROBE_RATE, AUDIO_PROBE_FRAMES
from ...interview.errors import MicrophoneUnavailableError
from ...utils import with_suppressed_audio_warnings

logger = logging.getLogger("microphone")


@with_suppressed_audio_warnings
def acquire_microphone(rate: int = AUDIO_PROBE_RATE, frames: int = AUDIO_PROBE_FRAMES) -> None:
    """
    Open and immediately close the default input device.

    Raises:
        MicrophoneUnavailableError: If PyAudio is missing, no input device
            exists, or the device refuses to open (e.g. permission denied)
    """
    # PyAudio imported lazily to avoid the portaudio dependency at import time
    try:
        import pyaudio
    except ImportError as e:
        raise MicrophoneUnavailableError("PyAudio is not installed; cannot access the microphone") from e

    pa = pyaudio.PyAudio()
    try:
        try:
            info = pa.get_default_input_device_info()
        except (IOError, OSError) as e:
            raise MicrophoneUnavailableError("No default microphone found") from e

        logger.info(f"Default input device: {info.get('name')} (index {info.get('index')})")
        if int(info.get("maxInputChannels", 0)) < 1:
            raise MicrophoneUnavailableError(f"Device '{info.get('name')}' has no input channels")

        try:
            stream = pa.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=rate,
                input=True,
                frames_per_buffer=frames,
            )
        except (IOError, OSError) as e:
            raise MicrophoneUnavailableError(f"Microphone access denied: {e}") from e

        stream.stop_stream()
        stream.close()
        logger.info("Microphone acquired")
    finally:
        pa.terminate()
