import wave

from alarms.sounds import TONE_SAMPLE_RATE, TONE_SECONDS, tone_samples, write_alarm_tone


def test_tone_samples_are_bounded_and_faded():
    samples = tone_samples()
    assert len(samples) == int(TONE_SECONDS * TONE_SAMPLE_RATE)
    assert samples.dtype.itemsize == 2
    assert abs(int(samples[0])) < 100
    assert abs(int(samples[-1])) < 100
    assert int(abs(samples.astype("int32")).max()) <= 32767


def test_write_alarm_tone(tmp_path):
    path = write_alarm_tone(tmp_path / "nested" / "alarm.wav")
    with wave.open(str(path), "rb") as wav:
        assert wav.getnchannels() == 1
        assert wav.getsampwidth() == 2
        assert wav.getframerate() == TONE_SAMPLE_RATE
        assert wav.getnframes() == int(TONE_SECONDS * TONE_SAMPLE_RATE)
