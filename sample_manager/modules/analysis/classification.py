"""
Rule-based category classification.

This is a coarse heuristic, not a trained classifier. Rules are evaluated
in order and the first match wins:

    1. spectral centroid above high_centroid_hz -> DRUMS (hi-hat class)
    2. RMS above kick_rms                       -> DRUMS (kick class)
    3. otherwise                                -> SYNTH

BASS, INSTRUMENT and OTHER exist in the Category enum for downstream
consumers but no rule currently produces them.
"""

from dataclasses import dataclass

from sample_manager.common.logging import get_logger
from .config import AnalysisConfig
from .types import Category

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClassificationFeatures:
    """Inputs to the category rules."""
    spectral_centroid_hz: float
    zero_crossing_rate: float
    rms: float


class RuleBasedClassifier:
    """Ordered threshold rules over spectral centroid and RMS."""

    def __init__(self, config: AnalysisConfig):
        """
        Initialize rule-based classifier.

        Args:
            config: AnalysisConfig carrying high_centroid_hz and kick_rms
        """
        self.high_centroid_hz = config.high_centroid_hz
        self.kick_rms = config.kick_rms

    def classify(self, features: ClassificationFeatures) -> Category:
        if features.spectral_centroid_hz > self.high_centroid_hz:
            logger.debug("Bright spectrum, classified as hi-hat", data={
                "centroid_hz": features.spectral_centroid_hz,
            })
            return Category.DRUMS

        if features.rms > self.kick_rms:
            logger.debug("High RMS, classified as kick", data={"rms": features.rms})
            return Category.DRUMS

        return Category.SYNTH


def classify_category(features: ClassificationFeatures, config: AnalysisConfig) -> Category:
    """Classify with a throwaway RuleBasedClassifier."""
    return RuleBasedClassifier(config).classify(features)
