"""Audio segmentation module."""

from .segmenter import AdaptiveChunkSegmenter
from .analysis_pub import AnalysisPublisher

__all__ = [
    'AdaptiveChunkSegmenter',
    'AnalysisPublisher'
]
