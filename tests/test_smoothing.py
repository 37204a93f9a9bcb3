from __future__ import annotations

import numpy as np
import pytest

from wavescope import smoothing
from wavescope.errors import ConfigurationError
from wavescope.smoothing import SmoothingFilter, SmoothingState


def test_first_frame_passes_through() -> None:
    out, state = smoothing.apply([0.2, 0.4], SmoothingState(), 0.8)
    np.testing.assert_allclose(out, [0.2, 0.4])
    assert len(state) == 2


def test_weighted_average_with_previous_frame() -> None:
    _, state = smoothing.apply([1.0, 1.0], SmoothingState(), 0.8)
    out, _ = smoothing.apply([0.0, 0.0], state, 0.8)
    np.testing.assert_allclose(out, [0.8, 0.8])


def test_alpha_zero_is_identity() -> None:
    _, state = smoothing.apply([1.0, 1.0], SmoothingState(), 0.0)
    out, _ = smoothing.apply([0.3, 0.7], state, 0.0)
    np.testing.assert_allclose(out, [0.3, 0.7])


def test_converges_at_highest_alpha() -> None:
    f = SmoothingFilter()
    f.apply(np.zeros(4), 0.99)
    for _ in range(1000):
        out = f.apply(np.ones(4), 0.99)
    np.testing.assert_allclose(out, 1.0, atol=1e-3)


def test_length_change_resets_history() -> None:
    _, state = smoothing.apply(np.ones(4), SmoothingState(), 0.9)
    out, state = smoothing.apply(np.zeros(8), state, 0.9)
    assert np.all(out == 0.0)
    assert len(state) == 8


def test_style_change_resets_history() -> None:
    f = SmoothingFilter()
    f.apply(np.ones(4), 0.9, "bars")
    np.testing.assert_allclose(f.apply(np.zeros(4), 0.9, "bars"), 0.9)
    assert np.all(f.apply(np.zeros(4), 0.9, "radial") == 0.0)


def test_output_is_read_only() -> None:
    out, _ = smoothing.apply([1.0], SmoothingState(), 0.5)
    with pytest.raises(ValueError):
        out[0] = 2.0


@pytest.mark.parametrize("alpha", [-0.1, 1.0, 1.5])
def test_rejects_out_of_range_alpha(alpha: float) -> None:
    with pytest.raises(ConfigurationError):
        smoothing.apply([1.0], SmoothingState(), alpha)
