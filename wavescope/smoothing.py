from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class SmoothingState:
    """Last emitted vector of a session; ``None`` before the first frame."""

    values: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return 0 if self.values is None else int(self.values.shape[0])


def apply(current, state: SmoothingState, alpha: float) -> Tuple[np.ndarray, SmoothingState]:
    """Exponential moving average of ``current`` against the previous frame.

    The first frame (or a frame whose length differs from the state) passes
    through unchanged.
    """
    if not 0.0 <= alpha <= 0.99:
        raise ConfigurationError(f"smoothing must be in [0, 0.99], got {alpha}")

    current = np.asarray(current, dtype=np.float64)
    prev = state.values
    if prev is None or prev.shape != current.shape or alpha == 0.0:
        smoothed = current.copy()
    else:
        smoothed = alpha * prev + (1.0 - alpha) * current

    smoothed.setflags(write=False)
    return smoothed, SmoothingState(smoothed)


class SmoothingFilter:
    """One smoothing history per session (live preview or export job).

    The history is dropped whenever the visualization style changes, since
    the vector switches between time samples and frequency bins.
    """

    def __init__(self):
        self.state = SmoothingState()
        self.style: Optional[str] = None

    def reset(self):
        self.state = SmoothingState()

    def apply(self, current, alpha: float, style: Optional[str] = None) -> np.ndarray:
        if style is not None and style != self.style:
            self.reset()
            self.style = style
        smoothed, self.state = apply(current, self.state, alpha)
        return smoothed
