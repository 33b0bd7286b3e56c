"""
Analysis module - feature extraction for audio samples.

- types.py           - AudioBuffer, FeatureDescriptor, Category
- config.py          - AnalysisConfig thresholds
- classification.py  - Rule-based category heuristic
- pipelines/         - Feature extraction and batch processing
- services/          - Cache-aside sample analysis
"""

from .types import AudioBuffer, FeatureDescriptor, Category
from .config import AnalysisConfig
from .pipelines import FeatureExtractionPipeline, BatchProcessor, BatchResult

__all__ = [
    'AudioBuffer',
    'FeatureDescriptor',
    'Category',
    'AnalysisConfig',
    'FeatureExtractionPipeline',
    'BatchProcessor',
    'BatchResult',
]
