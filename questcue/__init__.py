"""QuestCue - real-time audio segmentation and question detection core."""

__version__ = "0.1.0"
