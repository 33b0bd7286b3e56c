"""
Analysis module configuration.

Thresholds for every stage of the feature extraction pipeline. A config
instance is fixed for the lifetime of the pipeline that owns it.
"""

import hashlib
import json
from dataclasses import dataclass, fields, asdict, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from sample_manager.common.primitives import (
    DEFAULT_PEAK_THRESHOLD,
    DEFAULT_DOMINANT_THRESHOLD,
    DEFAULT_WAVEFORM_POINTS,
)
from sample_manager.core.errors import ConfigurationError, ValidationError


_INT_FIELDS = ("waveform_points", "max_fft_size")


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for feature extraction."""
    # Peak/interval analysis
    peak_threshold: float = DEFAULT_PEAK_THRESHOLD
    # Tempo folding into [min_bpm, max_bpm] (off: raw peak tempo is reported)
    fold_tempo: bool = False
    min_bpm: float = 60.0
    max_bpm: float = 200.0

    # Spectral analysis
    dominant_threshold: float = DEFAULT_DOMINANT_THRESHOLD
    # Crop long signals before the FFT (None = whole signal)
    max_fft_size: Optional[int] = None

    # Aggregation
    waveform_points: int = DEFAULT_WAVEFORM_POINTS

    # Category rules (coarse heuristic, not a trained classifier)
    high_centroid_hz: float = 5000.0
    kick_rms: float = 0.7

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Reject out-of-range values with ValidationError."""
        problems = self._type_problems()
        if problems:
            raise ValidationError(
                "Invalid analysis configuration: " + "; ".join(problems),
                data={"problems": problems},
            )

        if self.peak_threshold < 0:
            problems.append("peak_threshold must be >= 0")
        if self.dominant_threshold < 0:
            problems.append("dominant_threshold must be >= 0")
        if self.waveform_points < 1:
            problems.append("waveform_points must be >= 1")
        if self.max_fft_size is not None and self.max_fft_size < 1:
            problems.append("max_fft_size must be >= 1 or None")
        if self.high_centroid_hz < 0:
            problems.append("high_centroid_hz must be >= 0")
        if self.kick_rms < 0:
            problems.append("kick_rms must be >= 0")
        if self.min_bpm <= 0 or self.max_bpm < 2 * self.min_bpm:
            problems.append("tempo range needs 0 < min_bpm and max_bpm >= 2 * min_bpm")

        if problems:
            raise ValidationError(
                "Invalid analysis configuration: " + "; ".join(problems),
                data={"problems": problems},
            )

    def _type_problems(self):
        problems = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "fold_tempo":
                ok = isinstance(value, bool)
            elif f.name in _INT_FIELDS:
                ok = (value is None and f.name == "max_fft_size") or (
                    isinstance(value, int) and not isinstance(value, bool))
            else:
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            if not ok:
                problems.append(f"{f.name} has invalid type {type(value).__name__}")
        return problems

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def fingerprint(self) -> str:
        """Short stable hash of every threshold; changes whenever any value does."""
        payload = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:8]

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'AnalysisConfig':
        """Build from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown analysis config keys: {', '.join(unknown)}",
                data={"unknown": unknown},
            )
        return cls(**d)

    @classmethod
    def from_yaml(cls, path: str) -> 'AnalysisConfig':
        """
        Load the 'analysis' section of a YAML file.

        Example file:
            analysis:
              peak_threshold: 0.7
              waveform_points: 200
        """
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                data={"path": str(config_path)},
            )

        try:
            with open(config_path, 'r') as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {config_path}",
                data={"path": str(config_path)},
                cause=e,
            ) from e

        section = raw.get('analysis', {}) if isinstance(raw, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"'analysis' section in {config_path} must be a mapping",
                data={"path": str(config_path)},
            )
        try:
            return cls.from_dict(section)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid analysis settings in {config_path}: {e}",
                data={"path": str(config_path)},
                cause=e,
            ) from e

    @classmethod
    def from_settings(cls, settings) -> 'AnalysisConfig':
        """
        Build from Settings: ANALYSIS_CONFIG file first, then
        WAVEFORM_POINTS when it differs from the default.
        """
        base = cls.from_yaml(settings.analysis_config_path) if settings.analysis_config_path else cls()
        if settings.waveform_points != DEFAULT_WAVEFORM_POINTS:
            return replace(base, waveform_points=settings.waveform_points)
        return base
