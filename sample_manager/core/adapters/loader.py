"""Audio decoding: files and in-memory bytes -> AudioBuffer."""

import io
import mimetypes
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np
import soundfile as sf

from sample_manager.common.logging import get_logger
from sample_manager.core.errors import DecodeError, ValidationError
from sample_manager.modules.analysis.types import AudioBuffer

logger = get_logger(__name__)

MIME_TYPES = {
    '.wav': 'audio/wav',
    '.flac': 'audio/flac',
    '.ogg': 'audio/ogg',
    '.aif': 'audio/aiff',
    '.aiff': 'audio/aiff',
    '.mp3': 'audio/mpeg',
}


class AudioLoader:
    """Handles audio decoding with validation and error handling."""

    SUPPORTED_FORMATS = set(MIME_TYPES)

    def __init__(self, sample_rate: Optional[int] = None):
        """
        Initialize audio loader.

        Args:
            sample_rate: Target sample rate (None = keep the native rate)
        """
        if sample_rate is not None and sample_rate <= 0:
            raise ValidationError(
                f"sample_rate must be > 0, got {sample_rate}",
                data={"sample_rate": sample_rate},
            )
        self.sample_rate = sample_rate

    @classmethod
    def is_supported_format(cls, file_path: Union[str, Path]) -> bool:
        return Path(file_path).suffix.lower() in cls.SUPPORTED_FORMATS

    @staticmethod
    def mime_type_for(file_path: Union[str, Path]) -> str:
        """MIME type from the file extension."""
        suffix = Path(file_path).suffix.lower()
        if suffix in MIME_TYPES:
            return MIME_TYPES[suffix]
        guessed, _ = mimetypes.guess_type(str(file_path))
        return guessed or 'application/octet-stream'

    def load(self, file_path: Union[str, Path]) -> AudioBuffer:
        """
        Load audio file.

        Raises:
            FileNotFoundError: If file doesn't exist
            DecodeError: If format is unsupported or the file cannot be decoded
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")
        if not self.is_supported_format(path):
            raise DecodeError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_FORMATS))}",
                data={"file": path.name},
            )
        return self.decode(path.read_bytes(), source=path.name)

    def decode(self, data: bytes, source: str = "<bytes>") -> AudioBuffer:
        """
        Decode encoded audio bytes.

        Args:
            data: Encoded audio (WAV, FLAC, OGG, ...)
            source: Name used in log records and errors

        Raises:
            DecodeError: empty or undecodable input
        """
        if not data:
            raise DecodeError("Audio data is empty", data={"source": source})

        try:
            frames, sr = sf.read(io.BytesIO(data), dtype='float32', always_2d=True)
        except (sf.SoundFileError, RuntimeError, ValueError, TypeError) as e:
            raise DecodeError(
                f"Failed to decode audio: {e}",
                data={"source": source, "n_bytes": len(data)},
                cause=e,
            ) from e

        if frames.shape[0] == 0:
            raise DecodeError("Decoded audio has no frames", data={"source": source})

        # soundfile gives (frames, channels); buffers are (channels, frames)
        samples = np.ascontiguousarray(frames.T, dtype=np.float32)
        if self.sample_rate is not None and sr != self.sample_rate:
            samples = np.ascontiguousarray(
                librosa.resample(samples, orig_sr=sr, target_sr=self.sample_rate, axis=-1),
                dtype=np.float32,
            )
            sr = self.sample_rate

        buffer = AudioBuffer(samples=samples, sample_rate=int(sr), channels=int(samples.shape[0]))
        logger.info("Audio decoded", data={
            "source": source,
            "duration_sec": round(buffer.duration_seconds, 3),
            "sample_rate": buffer.sample_rate,
            "channels": buffer.channels,
        })
        return buffer

    def get_duration(self, file_path: Union[str, Path]) -> float:
        """Duration in seconds without decoding the whole file."""
        try:
            return float(sf.info(str(file_path)).duration)
        except (sf.SoundFileError, RuntimeError) as e:
            raise DecodeError(
                f"Failed to read audio header: {e}",
                data={"file": str(file_path)},
                cause=e,
            ) from e
