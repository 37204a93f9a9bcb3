"""
CLI entry point for wavescope (pip install then run: wavescope).
"""

import argparse
import sys

from .config import STYLES, AppConfig
from .diagnostics import print_env_diagnostics
from .errors import ConfigurationError, DecodeError
from .io_audio import decode_audio
from .live import run_preview
from .pipeline import ExportJob
from .stats import Timer
from .types import JobState


def build_parser() -> argparse.ArgumentParser:
    d = AppConfig.default()
    parser = argparse.ArgumentParser(
        description="Audio visualizer: live preview and frame-accurate video export."
    )
    parser.add_argument("audio", nargs="?", default=d.paths.audio_path, help="Path to the audio file")
    parser.add_argument("-o", "--output", default=d.paths.out_video, help="Output video path (.mp4)")
    parser.add_argument("--final-output", default=d.paths.out_final, help="Output path when muxing audio")
    parser.add_argument("--style", choices=STYLES, default=d.visual.style, help="Visualization style")
    parser.add_argument("--fps", type=int, default=d.visual.fps, help="Frames per second")
    parser.add_argument("--width", type=int, default=d.video.w, help="Surface width (px)")
    parser.add_argument("--height", type=int, default=d.video.h, help="Surface height (px)")
    parser.add_argument("--wave-color", default=d.visual.wave_color, help="Stroke / bar colour (#rrggbb)")
    parser.add_argument("--background-color", default=d.visual.background_color, help="Background colour")
    parser.add_argument("--gradient", action="store_true", help="Gradient strokes (circle and radial)")
    parser.add_argument(
        "--gradient-colors",
        default=",".join(d.visual.gradient_colors),
        help="Comma separated gradient stops",
    )
    parser.add_argument("--wave-height", type=float, default=d.visual.wave_height)
    parser.add_argument("--line-width", type=float, default=d.visual.line_width)
    parser.add_argument("--bar-count", type=int, default=d.visual.bar_count)
    parser.add_argument("--smoothing", type=float, default=d.visual.smoothing, help="EMA weight in [0, 0.99]")
    parser.add_argument("--fft-size", type=int, default=d.analysis.fft_size, help="Power of two")
    parser.add_argument("--sample-rate", type=int, default=None, help="Resample before analysis")
    parser.add_argument("--mux-audio", action="store_true", help="Add the source audio to the video")
    parser.add_argument("--realtime", action="store_true", help="Render no faster than playback")
    parser.add_argument("--preview", action="store_true", help="Show a live preview window instead of exporting")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    parser.add_argument("--verbose-lib", action="store_true", help="Let ffmpeg log at info level")
    return parser


def config_from_args(args: argparse.Namespace) -> AppConfig:
    cfg = AppConfig.default()
    cfg.verbose = not args.quiet
    cfg.verbose_lib = args.verbose_lib

    cfg.paths.audio_path = args.audio
    cfg.paths.out_video = args.output
    cfg.paths.out_final = args.final_output
    cfg.audio.target_sr = args.sample_rate
    cfg.video.w = args.width
    cfg.video.h = args.height
    cfg.analysis.fft_size = args.fft_size
    cfg.encode.mux_audio = args.mux_audio
    cfg.encode.realtime = args.realtime

    vis = cfg.visual
    vis.style = args.style
    vis.fps = args.fps
    vis.wave_color = args.wave_color
    vis.background_color = args.background_color
    vis.use_gradient = args.gradient
    vis.gradient_colors = [c.strip() for c in args.gradient_colors.split(",") if c.strip()]
    vis.wave_height = args.wave_height
    vis.line_width = args.line_width
    vis.bar_count = args.bar_count
    vis.smoothing = args.smoothing
    return cfg


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = config_from_args(args)
    cfg.apply_env()
    try:
        cfg.validate()
    except ConfigurationError as exc:
        parser.error(str(exc))

    if cfg.verbose:
        print_env_diagnostics(cfg)

    if args.preview:
        try:
            with Timer("audio decode", verbose=cfg.verbose):
                audio = decode_audio(cfg.paths.audio_path, cfg.audio.target_sr,
                                     ffmpeg=cfg.encode.ffmpeg, verbose=cfg.verbose_lib)
        except DecodeError as exc:
            print(f"❌ {exc}", file=sys.stderr)
            return 1
        run_preview(audio, cfg)
        return 0

    job = ExportJob(cfg.paths.audio_path, cfg)
    worker = job.start()
    try:
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        job.cancel()
        worker.join()

    result = job.result()
    if result.state is JobState.COMPLETE:
        print(f"✅ FINAL OK → {result.output_path}")
        return 0
    if result.state is JobState.CANCELLED:
        return 130
    print(f"❌ {type(result.error).__name__}: {result.error}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
