from __future__ import annotations

from wavescope.stats import ConsoleProgress, PerfCounter, Timer, ram_mb


def test_timer_records_duration(capsys) -> None:
    with Timer("work") as t:
        sum(range(1000))
    assert t.dt >= 0.0
    assert "work" in capsys.readouterr().out


def test_timer_can_be_silent(capsys) -> None:
    with Timer("quiet", verbose=False):
        pass
    assert capsys.readouterr().out == ""


def test_perf_counter_fps() -> None:
    perf = PerfCounter()
    assert perf.elapsed() == 0.0
    perf.start()
    perf.tick(5)
    perf.stop()
    assert perf.frames == 5
    assert perf.avg_fps() > 0


def test_console_progress_always_prints_completion(capsys) -> None:
    progress = ConsoleProgress(total_frames=10, interval=3600)
    progress(10.0, 1)
    progress(50.0, 5)
    progress(100.0, 10)
    out = capsys.readouterr().out
    assert "100.0%" in out
    assert "frames 10/10" in out
    assert ram_mb() > 0
