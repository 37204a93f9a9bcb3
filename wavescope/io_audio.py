import json
import subprocess
from pathlib import Path
from typing import Union

import numpy as np

from .errors import DecodeError
from .types import DecodedAudio

AudioSource = Union[str, Path, bytes, bytearray]


def _ffprobe_bin(ffmpeg: str) -> str:
    p = Path(ffmpeg)
    if p.parent != Path("."):
        return str(p.with_name(p.name.replace("ffmpeg", "ffprobe")))
    return "ffprobe"


def probe_audio(source: AudioSource, ffmpeg: str = "ffmpeg") -> tuple[int, int]:
    """Return (sample_rate, channels) of the first audio stream."""
    is_bytes = isinstance(source, (bytes, bytearray))
    cmd = [
        _ffprobe_bin(ffmpeg),
        "-v", "error",
        "-select_streams", "a:0",
        "-show_entries", "stream=sample_rate,channels",
        "-of", "json",
        "pipe:0" if is_bytes else str(source),
    ]
    try:
        p = subprocess.run(
            cmd,
            input=bytes(source) if is_bytes else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
        )
    except FileNotFoundError as exc:
        raise DecodeError("ffprobe not found in PATH") from exc
    except subprocess.CalledProcessError as exc:
        msg = exc.stderr.decode(errors="replace").strip() if exc.stderr else ""
        raise DecodeError(f"cannot probe audio: {msg or exc}") from exc

    try:
        stream = json.loads(p.stdout or b"{}")["streams"][0]
        return int(stream["sample_rate"]), int(stream["channels"])
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise DecodeError("no audio stream found") from exc


def decode_audio(
    source: AudioSource,
    target_sr: int | None = None,
    *,
    ffmpeg: str = "ffmpeg",
    verbose: bool = False,
    max_seconds: float | None = None,
) -> DecodedAudio:
    """Decode a file path or an in-memory asset to float32 PCM via ffmpeg."""
    sr, channels = probe_audio(source, ffmpeg)
    if target_sr is not None:
        sr = int(target_sr)

    is_bytes = isinstance(source, (bytes, bytearray))
    cmd = [ffmpeg, "-v", "info" if verbose else "error"]
    if max_seconds is not None:
        cmd.extend(["-t", str(max_seconds)])
    cmd.extend([
        "-i", "pipe:0" if is_bytes else str(source),
        "-vn",
        "-ac", str(channels),
        "-ar", str(sr),
        "-f", "f32le",
        "pipe:1",
    ])
    try:
        p = subprocess.run(
            cmd,
            input=bytes(source) if is_bytes else None,
            stdout=subprocess.PIPE,
            stderr=None if verbose else subprocess.PIPE,
            check=True,
        )
    except FileNotFoundError as exc:
        raise DecodeError("ffmpeg not found in PATH") from exc
    except subprocess.CalledProcessError as exc:
        msg = exc.stderr.decode(errors="replace").strip() if exc.stderr else ""
        raise DecodeError(f"cannot decode audio: {msg or exc}") from exc

    frame_bytes = 4 * channels
    usable = len(p.stdout) - len(p.stdout) % frame_bytes
    audio = np.frombuffer(p.stdout[:usable], dtype=np.float32).reshape((-1, channels))
    return DecodedAudio(samples=audio, sample_rate=sr)
