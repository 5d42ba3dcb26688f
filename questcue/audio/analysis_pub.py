"""Publishes segmenter observations using pypubsub."""

import logging
from typing import Callable
from pubsub import pub
from ..models.audio import AudioChunk, ContentAnalysis

logger = logging.getLogger(__name__)


class AnalysisPublisher:
    """Relays segmenter observer callbacks onto pub/sub topics."""

    def __init__(self, analysis_topic: str = "segmenter.analysis",
                 chunk_topic: str = "segmenter.chunk"):
        """Initialize analysis publisher.

        Args:
            analysis_topic: Topic receiving every ContentAnalysis snapshot
            chunk_topic: Topic receiving every finalized AudioChunk
        """
        self.analysis_topic = analysis_topic
        self.chunk_topic = chunk_topic
        logger.info(f"AnalysisPublisher initialized with topics: {analysis_topic}, {chunk_topic}")

    def publish_analysis(self, analysis: ContentAnalysis) -> None:
        pub.sendMessage(self.analysis_topic, analysis=analysis)

    def publish_chunk(self, chunk: AudioChunk) -> None:
        pub.sendMessage(self.chunk_topic, chunk=chunk)
        logger.debug(f"Published chunk: {chunk.chunk_id}")

    def get_analysis_callback(self) -> Callable[[ContentAnalysis], None]:
        """Callback suitable for AdaptiveChunkSegmenter(analysis_callback=...)."""
        return self.publish_analysis

    def get_chunk_callback(self) -> Callable[[AudioChunk], None]:
        """Callback suitable for AdaptiveChunkSegmenter(chunk_callback=...)."""
        return self.publish_chunk
