"""Question publisher module for pub/sub event publishing."""

import logging
from typing import Callable, List
from pubsub import pub
from ..models.question import DetectedQuestion

logger = logging.getLogger(__name__)


class QuestionPublisher:
    """Publishes detected questions using pubsub.pub."""

    def __init__(self, topic: str = "questions.detected"):
        """Initialize question publisher.

        Args:
            topic: Pub/sub topic name for detected questions
        """
        self.topic = topic
        logger.info(f"QuestionPublisher initialized with topic: {topic}")

    def publish_question(self, question: DetectedQuestion) -> None:
        pub.sendMessage(self.topic, question=question)
        logger.debug(f"Published question {question.question_id}: {question.refined_text}")

    def publish_questions(self, questions: List[DetectedQuestion]) -> None:
        for question in questions:
            self.publish_question(question)

    def get_callback(self) -> Callable[[DetectedQuestion], None]:
        return self.publish_question
