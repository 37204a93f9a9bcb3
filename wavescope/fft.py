from functools import lru_cache
import operator

import numpy as np
import jax
import jax.numpy as jnp

from .config import is_power_of_two
from .errors import ConfigurationError


def _bit_reverse_indices(n: int) -> np.ndarray:
    levels = n.bit_length() - 1
    idx = np.arange(n, dtype=np.int64)
    rev = np.zeros(n, dtype=np.int64)
    for bit in range(levels):
        rev = (rev << 1) | ((idx >> bit) & 1)
    return rev.astype(np.int32)


@lru_cache(maxsize=None)
def _build_transform(n: int):
    """Compile a radix-2 magnitude FFT for one fixed size."""

    half = n // 2
    k = np.arange(half, dtype=np.float64)
    cos_table = jnp.asarray(np.cos(2.0 * np.pi * k / n).astype(np.float32))
    sin_table = jnp.asarray(np.sin(2.0 * np.pi * k / n).astype(np.float32))
    rev = jnp.asarray(_bit_reverse_indices(n))

    @jax.jit
    def transform(x: jnp.ndarray) -> jnp.ndarray:
        real = x[rev]
        imag = jnp.zeros_like(real)

        # butterflies, unrolled at trace time (log2(n) stages)
        size = 2
        while size <= n:
            h = size // 2
            step = n // size
            wr = cos_table[::step][:h]
            wi = sin_table[::step][:h]

            re = real.reshape(-1, size)
            im = imag.reshape(-1, size)
            a_re, b_re = re[:, :h], re[:, h:]
            a_im, b_im = im[:, :h], im[:, h:]

            t_re = b_re * wr + b_im * wi
            t_im = -b_re * wi + b_im * wr

            real = jnp.concatenate([a_re + t_re, a_re - t_re], axis=1).reshape(-1)
            imag = jnp.concatenate([a_im + t_im, a_im - t_im], axis=1).reshape(-1)
            size *= 2

        return jnp.sqrt(real[:half] ** 2 + imag[:half] ** 2)

    return transform


def fft_magnitudes(samples, n: int) -> np.ndarray:
    """Unnormalized magnitude spectrum (length n/2) of the first ``n`` samples.

    Shorter input is zero-padded. ``n`` must be a power of two.
    """
    if not is_power_of_two(n):
        raise ConfigurationError(f"FFT size must be a power of two, got {n}")
    n = operator.index(n)
    if n == 1:
        return np.zeros(0, dtype=np.float32)

    x = np.zeros(n, dtype=np.float32)
    src = np.asarray(samples, dtype=np.float32).reshape(-1)[:n]
    x[: src.shape[0]] = src

    mags = _build_transform(n)(jnp.asarray(x))
    return np.asarray(jax.device_get(mags), dtype=np.float32)


def normalize_magnitudes(mags: np.ndarray) -> np.ndarray:
    """Scale by the frame's peak; a silent frame stays all zeros."""
    mags = np.asarray(mags, dtype=np.float64)
    if mags.size == 0:
        return mags
    peak = float(np.max(mags))
    if peak <= 0.0:
        return np.zeros_like(mags)
    return mags / peak


def bin_frequency(index: int, n: int, sample_rate: float) -> float:
    return index * float(sample_rate) / n
