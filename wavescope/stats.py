from __future__ import annotations

import os
import time

import psutil

_proc = psutil.Process(os.getpid())


def ram_mb():
    return _proc.memory_info().rss / (1024 ** 2)


class Timer:
    def __init__(self, name, verbose=True):
        self.name = name
        self.verbose = verbose

    def __enter__(self):
        self.t0 = time.perf_counter()
        return self

    def __exit__(self, *_):
        self.dt = time.perf_counter() - self.t0
        if self.verbose:
            print(f"⏱️ {self.name}: {self.dt:.3f}s")


class PerfCounter:
    def __init__(self):
        self.frames = 0
        self.t0 = None
        self.t1 = None

    def start(self):
        self.t0 = time.perf_counter()

    def tick(self, n=1):
        self.frames += n

    def stop(self):
        self.t1 = time.perf_counter()

    def elapsed(self):
        if self.t0 is None:
            return 0.0
        return (self.t1 or time.perf_counter()) - self.t0

    def avg_fps(self):
        return self.frames / max(self.elapsed(), 1e-9)


def _bar(progress: float, width: int = 28) -> str:
    filled = int(max(min(progress, 1.0), 0.0) * width)
    return "#" * filled + "-" * (width - filled)


class ConsoleProgress:
    """In-place progress line, redrawn at most every ``interval`` seconds."""

    def __init__(self, total_frames: int, interval: float = 0.25, width: int = 28):
        self.total_frames = max(int(total_frames), 1)
        self.interval = interval
        self.width = width
        self.perf = PerfCounter()
        self.perf.start()
        self._last = 0.0

    def __call__(self, percent: float, frames: int):
        self.perf.frames = frames
        now = time.perf_counter()
        if percent < 100.0 and now - self._last < self.interval:
            return
        self._last = now
        stats = (
            f"{percent:5.1f}% | frames {frames}/{self.total_frames}"
            f" | avg {self.perf.avg_fps():5.1f} fps | RAM ≈ {ram_mb():.0f} MB"
        )
        end = "\n" if percent >= 100.0 else ""
        print(f"\r🚀 Rendering |{_bar(percent / 100.0, self.width)}| {stats}", end=end, flush=True)
