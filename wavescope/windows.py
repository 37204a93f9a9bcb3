import math

import numpy as np

from .types import DecodedAudio


def start_sample(audio: DecodedAudio, timestamp: float) -> int:
    return int(math.floor(timestamp * audio.sample_rate))


def _channel_average(audio: DecodedAudio, idx: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Mono value at every index, plus a mask of the indices inside the signal."""
    valid = (idx >= 0) & (idx < audio.n_samples)
    if audio.n_samples == 0:
        return np.zeros(idx.shape, dtype=np.float64), valid
    safe = np.clip(idx, 0, audio.n_samples - 1)
    mono = audio.samples[safe].astype(np.float64).sum(axis=-1) / audio.channel_count
    return np.where(valid, mono, 0.0), valid


def samples_per_column(audio: DecodedAudio, output_width: int, fps: float) -> int:
    samples_per_frame = int(math.floor(audio.sample_rate / fps))
    return max(1, samples_per_frame // max(int(output_width), 1))


def time_window(audio: DecodedAudio, timestamp: float, output_width: int, fps: float) -> np.ndarray:
    """One averaged sample per output column, starting at ``timestamp``.

    A display frame's worth of samples (sample_rate / fps) is split into
    ``output_width`` equal buckets; samples outside the signal do not count.
    """
    output_width = int(output_width)
    if output_width <= 0:
        return np.zeros(0, dtype=np.float64)

    bucket = samples_per_column(audio, output_width, fps)
    start = start_sample(audio, timestamp)
    idx = start + np.arange(output_width * bucket, dtype=np.int64).reshape(output_width, bucket)

    mono, valid = _channel_average(audio, idx)
    counts = valid.sum(axis=1)
    sums = mono.sum(axis=1)
    return np.where(counts > 0, sums / np.maximum(counts, 1), 0.0)


def frequency_window(audio: DecodedAudio, timestamp: float, fft_size: int) -> np.ndarray:
    """``fft_size`` consecutive mono samples from ``timestamp``, zero padded."""
    start = start_sample(audio, timestamp)
    idx = start + np.arange(int(fft_size), dtype=np.int64)
    mono, _ = _channel_average(audio, idx)
    return mono
