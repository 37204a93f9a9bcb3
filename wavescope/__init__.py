from .config import AppConfig, VisualizationConfig
from .errors import ConfigurationError, DecodeError, EncodeError, WavescopeError
from .fft import fft_magnitudes
from .io_audio import decode_audio
from .live import BufferAnalyser, LiveSession, run_preview
from .pipeline import CancelToken, ExportJob, ExportResult, export_video
from .renderer import render
from .smoothing import SmoothingFilter
from .types import DecodedAudio, JobState
from .windows import frequency_window, time_window

__all__ = [
    "AppConfig",
    "VisualizationConfig",
    "ConfigurationError",
    "DecodeError",
    "EncodeError",
    "WavescopeError",
    "fft_magnitudes",
    "decode_audio",
    "BufferAnalyser",
    "LiveSession",
    "run_preview",
    "CancelToken",
    "ExportJob",
    "ExportResult",
    "export_video",
    "render",
    "SmoothingFilter",
    "DecodedAudio",
    "JobState",
    "time_window",
    "frequency_window",
]
