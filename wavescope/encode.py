import os
import subprocess
from typing import Protocol

import numpy as np

from .config import EncodeConfig
from .errors import EncodeError


class FrameEncoder(Protocol):
    def open(self, width: int, height: int, fps: float) -> None: ...

    def write(self, frame: np.ndarray) -> None: ...

    def finish(self) -> str: ...

    def abort(self) -> None: ...


def remove_output(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class FFmpegEncoder:
    """Stream raw BGR frames into ffmpeg's stdin, producing a fragmented MP4."""

    def __init__(self, out_path: str, encode: EncodeConfig | None = None, verbose_lib: bool = False):
        self.out_path = out_path
        self.encode = encode or EncodeConfig()
        self.verbose_lib = verbose_lib
        self.proc: subprocess.Popen | None = None
        self.frames = 0

    def command(self, width: int, height: int, fps: float) -> list[str]:
        loglevel = "info" if self.verbose_lib else "error"
        return [
            self.encode.ffmpeg,
            "-y",
            "-loglevel", loglevel,
            "-f", "rawvideo",
            "-pix_fmt", "bgr24",
            "-s", f"{width}x{height}",
            "-r", str(fps),
            "-i", "-",
            "-an",
            "-c:v", self.encode.codec,
            "-preset", self.encode.preset,
            "-crf", str(self.encode.crf),
            "-pix_fmt", self.encode.pix_fmt,
            # yuv420p needs even dimensions
            "-vf", "pad=ceil(iw/2)*2:ceil(ih/2)*2",
            "-movflags", "frag_keyframe+empty_moov",
            self.out_path,
        ]

    def open(self, width: int, height: int, fps: float) -> None:
        try:
            self.proc = subprocess.Popen(self.command(width, height, fps), stdin=subprocess.PIPE)
        except FileNotFoundError as exc:
            raise EncodeError(f"{self.encode.ffmpeg} not found in PATH") from exc
        if self.proc.stdin is None:
            raise EncodeError("ffmpeg stdin not available")

    def write(self, frame: np.ndarray) -> None:
        if self.proc is None or self.proc.stdin is None:
            raise EncodeError("encoder is not open")
        try:
            self.proc.stdin.write(np.ascontiguousarray(frame).tobytes())
        except BrokenPipeError as exc:
            raise EncodeError("ffmpeg closed its input") from exc
        self.frames += 1

    def finish(self) -> str:
        if self.proc is None:
            raise EncodeError("encoder is not open")
        self.proc.stdin.close()
        return_code = self.proc.wait()
        self.proc = None
        if return_code != 0:
            remove_output(self.out_path)
            raise EncodeError(f"ffmpeg failed with exit code {return_code}")
        return self.out_path

    def abort(self) -> None:
        if self.proc is not None:
            try:
                self.proc.stdin.close()
            except (BrokenPipeError, OSError):
                pass
            self.proc.kill()
            self.proc.wait()
            self.proc = None
        remove_output(self.out_path)


def mux_audio(in_video: str, audio_path: str, out_mp4: str, verbose_lib: bool, encode: EncodeConfig):
    cmd = [encode.ffmpeg, "-y"]
    if not verbose_lib:
        cmd.extend(["-v", "error"])
    cmd.extend([
        "-i", in_video,
        "-i", audio_path,
        "-c:v", "copy",
        "-c:a", encode.audio_codec,
        "-shortest",
        out_mp4,
    ])
    try:
        subprocess.run(cmd, check=True)
    except FileNotFoundError as exc:
        raise EncodeError(f"{encode.ffmpeg} not found in PATH") from exc
    except subprocess.CalledProcessError as exc:
        remove_output(out_mp4)
        raise EncodeError(f"audio mux failed with exit code {exc.returncode}") from exc
    return out_mp4
