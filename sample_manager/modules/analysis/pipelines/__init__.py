"""
Analysis pipelines.

- FeatureExtractionPipeline: AudioBuffer -> FeatureDescriptor
- BatchProcessor: many buffers, thread pool, progress bar
"""

from .feature_extraction import (
    FeatureExtractionPipeline,
    RhythmFeatures,
    SpectralSummary,
    analyze_buffer,
    summarize,
)
from .batch_processor import BatchProcessor, BatchResult, BatchItemResult

__all__ = [
    'FeatureExtractionPipeline',
    'RhythmFeatures',
    'SpectralSummary',
    'analyze_buffer',
    'summarize',
    'BatchProcessor',
    'BatchResult',
    'BatchItemResult',
]
