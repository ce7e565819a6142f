from __future__ import annotations

import logging
import math
import wave
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

TONE_SAMPLE_RATE = 24000
TONE_FREQUENCY_HZ = 1200.0
TONE_SECONDS = 0.15
TONE_AMPLITUDE = 0.4
# fade in/out to avoid clicks at the edges
FADE_SECONDS = 0.01


def tone_samples(
    duration_seconds: float = TONE_SECONDS,
    frequency_hz: float = TONE_FREQUENCY_HZ,
    sample_rate: int = TONE_SAMPLE_RATE,
    amplitude: float = TONE_AMPLITUDE,
) -> np.ndarray:
    count = int(duration_seconds * sample_rate)
    t = np.arange(count) / sample_rate
    wave_data = amplitude * np.sin(2 * math.pi * frequency_hz * t)

    fade = min(int(FADE_SECONDS * sample_rate), count // 2)
    if fade:
        ramp = np.linspace(0.0, 1.0, fade)
        wave_data[:fade] *= ramp
        wave_data[-fade:] *= ramp[::-1]
    return (wave_data * 32767).astype("<i2")


def write_alarm_tone(path: Path, duration_seconds: float = TONE_SECONDS) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    samples = tone_samples(duration_seconds)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(TONE_SAMPLE_RATE)
        wav.writeframes(samples.tobytes())
    logger.debug("Generated alarm tone at %s (%s samples)", path, len(samples))
    return path
