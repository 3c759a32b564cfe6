"""
Training example construction from transcriptions and synthetic scripts.
"""

import logging
from typing import Optional

from models.data_models import (
    SOURCE_ORIGINAL,
    SOURCE_SYNTHETIC,
    ExampleMetadata,
    MarketingSegments,
    TrainingExample,
    TranscriptionResult,
)
from .topic_extractor import TopicExtractor

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Original and synthetic examples share one prompt so the fine-tuned model
# never learns to tell them apart.
INPUT_PROMPT_TEMPLATE = (
    "Write a compelling short-form video script about {topic} that follows the "
    "Hook-Bridge-Golden Nugget-WTA structure for maximum engagement."
)


class TrainingExampleBuilder:
    """Turns segmented scripts into (input prompt, output script) examples."""

    def __init__(self, topic_extractor: Optional[TopicExtractor] = None):
        self.topic_extractor = topic_extractor or TopicExtractor()

    def build_input(self, topic: str) -> str:
        return INPUT_PROMPT_TEMPLATE.format(topic=topic)

    def build_from_result(self, result: TranscriptionResult, include_metadata: bool = True,
                          topic: Optional[str] = None) -> TrainingExample:
        """
        Build an example from a successful transcription.

        The caller is responsible for passing only successful results that
        carry marketing segments.

        Args:
            result: Successful, segmented transcription result
            include_metadata: Attach source-video provenance
            topic: Topic already derived from the script; derived here when None

        Returns:
            TrainingExample prompted with the given or derived topic
        """
        output = result.marketing_segments.full_script()
        if topic is None:
            topic = self.topic_extractor.extract_topic(output)

        metadata = None
        if include_metadata:
            metadata = ExampleMetadata(
                source=SOURCE_ORIGINAL,
                video_id=result.video_id,
                platform=result.platform,
                view_count=result.view_count,
                like_count=result.like_count,
                topic=topic,
                template_used=False,
                processing_time=result.processing_time,
            )

        return TrainingExample(input=self.build_input(topic), output=output, metadata=metadata)

    def build_from_synthetic(self, topic: str, script: MarketingSegments,
                             include_metadata: bool = True) -> TrainingExample:
        """
        Build an example from a synthetic script.

        Args:
            topic: Topic the script was generated for, used as given
            script: Generated segments
            include_metadata: Attach synthetic provenance

        Returns:
            TrainingExample with no source-video fields
        """
        metadata = None
        if include_metadata:
            metadata = ExampleMetadata(source=SOURCE_SYNTHETIC, topic=topic, template_used=True)

        return TrainingExample(input=self.build_input(topic), output=script.full_script(), metadata=metadata)
