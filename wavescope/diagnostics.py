import jax
from .config import AppConfig


def print_env_diagnostics(cfg: AppConfig):
    print("backend:", jax.default_backend())
    print("devices:", jax.devices())
    if cfg.verbose:
        vis = cfg.visual
        print("🧩 Config summary")
        print(f"  OUT   : {cfg.video.w}x{cfg.video.h} @ {vis.fps} fps | {cfg.encode.codec} crf={cfg.encode.crf}")
        print(f"  STYLE : {vis.style} | bars={vis.bar_count} | smoothing={vis.smoothing} | fft={cfg.analysis.fft_size}")
        colors = ", ".join(vis.gradient_colors) if vis.use_gradient else vis.wave_color
        print(f"  COLOR : {colors} on {vis.background_color} | height={vis.wave_height} | line={vis.line_width}")
