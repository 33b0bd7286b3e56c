"""
Analysis services.

- sample_service.py: cache-aside analysis over SampleCache
"""

from .sample_service import (
    SampleAnalysisService,
    AnalysisOutcome,
    features_id,
    content_id,
)

__all__ = [
    'SampleAnalysisService',
    'AnalysisOutcome',
    'features_id',
    'content_id',
]
