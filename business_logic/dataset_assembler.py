"""
Dataset assembly for script fine-tuning.

Filters transcription results, builds original and synthetic examples and
derives the dataset summary as a pure fold over the assembled entries.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from models.data_models import (
    SOURCE_ORIGINAL,
    SOURCE_SYNTHETIC,
    DatasetMetadata,
    DatasetSummary,
    SyntheticScript,
    TrainingDataset,
    TrainingExample,
    TranscriptionResult,
)
from .training_example_builder import TrainingExampleBuilder

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class AssemblyOptions:
    """Options controlling which examples enter a dataset."""
    include_metadata: bool = True
    include_original_transcriptions: bool = True
    include_synthetic_scripts: bool = True
    max_examples_per_video: int = 10
    min_view_count: int = 0


@dataclass(frozen=True)
class AssembledEntry:
    """An example plus the provenance the summary is computed from."""
    example: TrainingExample
    source: str
    topic: str
    platform: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _distinct(values: Iterable[Optional[str]]) -> tuple:
    seen: Dict[str, None] = {}
    for value in values:
        if value is not None and value not in seen:
            seen[value] = None
    return tuple(seen)


def _mean(values: Iterable[Optional[int]]) -> Optional[int]:
    samples = [value for value in values if value is not None]
    if not samples:
        return None
    return round_half_up(sum(samples) / len(samples))


def summarize_entries(entries: Sequence[AssembledEntry]) -> DatasetSummary:
    """
    Derive the dataset summary from its entries.

    Averages only consider entries that carry the value; platforms and topics
    keep first-seen order.
    """
    originals = [entry for entry in entries if entry.source == SOURCE_ORIGINAL]
    synthetics = [entry for entry in entries if entry.source == SOURCE_SYNTHETIC]

    return DatasetSummary(
        total_examples=len(entries),
        original_examples=len(originals),
        synthetic_examples=len(synthetics),
        platforms=_distinct(entry.platform for entry in entries),
        topics=_distinct(entry.topic for entry in entries),
        avg_view_count=_mean(entry.view_count for entry in originals),
        avg_like_count=_mean(entry.like_count for entry in originals),
    )


class DatasetAssembler:
    """
    Assembles transcription results and synthetic scripts into a dataset.

    Originals come first in input order, followed by synthetics in input order.
    """

    def __init__(self, example_builder: Optional[TrainingExampleBuilder] = None):
        self.example_builder = example_builder or TrainingExampleBuilder()

    def filter_results(self, transcription_results: Iterable[TranscriptionResult],
                       min_view_count: int = 0) -> List[TranscriptionResult]:
        """Keep successful, segmented results meeting the view-count floor."""
        return [
            result for result in transcription_results
            if result.success
            and result.marketing_segments is not None
            and (result.view_count or 0) >= min_view_count
        ]

    def assemble(self, transcription_results: Sequence[TranscriptionResult],
                 synthetic_scripts: Sequence[SyntheticScript],
                 options: Optional[AssemblyOptions] = None,
                 creator: Optional[str] = None) -> TrainingDataset:
        """
        Assemble a training dataset.

        Args:
            transcription_results: Mixed successful and failed transcriptions
            synthetic_scripts: Pre-generated (topic, script) pairs
            options: Assembly options; defaults when None
            creator: Optional creator handle recorded in the dataset metadata

        Returns:
            Immutable TrainingDataset
        """
        if options is None:
            options = AssemblyOptions()

        entries: List[AssembledEntry] = []

        if options.include_original_transcriptions:
            filtered = self.filter_results(transcription_results, options.min_view_count)
            logger.info(f"Processing {len(filtered)} of {len(transcription_results)} transcription results")
            entries.extend(self._build_original_entries(filtered, options))

        if options.include_synthetic_scripts:
            logger.info(f"Processing {len(synthetic_scripts)} synthetic scripts")
            for synthetic in synthetic_scripts:
                example = self.example_builder.build_from_synthetic(
                    synthetic.topic, synthetic.script, options.include_metadata
                )
                entries.append(AssembledEntry(example=example, source=SOURCE_SYNTHETIC, topic=synthetic.topic))

        summary = summarize_entries(entries)
        description = (
            f"Training dataset with {summary.total_examples} examples "
            f"({summary.original_examples} original + {summary.synthetic_examples} synthetic)"
        )

        logger.info(description)
        return TrainingDataset(
            examples=tuple(entry.example for entry in entries),
            summary=summary,
            metadata=DatasetMetadata(created_at=datetime.now(), description=description, creator=creator),
        )

    def _build_original_entries(self, results: Sequence[TranscriptionResult],
                                options: AssemblyOptions) -> List[AssembledEntry]:
        entries = []
        per_video: Dict[str, int] = {}

        for result in results:
            count = per_video.get(result.video_id, 0)
            if count >= options.max_examples_per_video:
                logger.warning(
                    f"Skipping result for video {result.video_id}: "
                    f"limit of {options.max_examples_per_video} examples per video reached"
                )
                continue
            per_video[result.video_id] = count + 1

            output = result.marketing_segments.full_script()
            topic = self.example_builder.topic_extractor.extract_topic(output)
            example = self.example_builder.build_from_result(result, options.include_metadata, topic=topic)
            entries.append(AssembledEntry(
                example=example,
                source=SOURCE_ORIGINAL,
                topic=topic,
                platform=result.platform,
                view_count=result.view_count,
                like_count=result.like_count,
            ))

        return entries
