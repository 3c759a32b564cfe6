"""
Tests for DatasetAssembler and the dataset summary.
"""

from unittest.mock import patch

import pytest

from business_logic.dataset_assembler import (
    AssembledEntry,
    AssemblyOptions,
    DatasetAssembler,
    round_half_up,
    summarize_entries,
)
from models.data_models import (
    SOURCE_ORIGINAL,
    SOURCE_SYNTHETIC,
    MarketingSegments,
    SyntheticScript,
    TrainingExample,
    TranscriptionMetadata,
    TranscriptionResult,
)


WORKOUT_SEGMENTS = MarketingSegments(
    hook="Stop doing crunches.",
    bridge="Your core needs a real workout.",
    golden_nugget="Try dead bugs at the gym for three sets of ten.",
    wta="Follow for more.",
)

MONEY_SEGMENTS = MarketingSegments(
    hook="Most founders waste money.",
    bridge="Here is the business trick nobody shares.",
    golden_nugget="Reinvest your first profits into retention.",
    wta="Save this for later.",
)

SYNTHETIC = SyntheticScript(
    topic="fitness motivation",
    script=MarketingSegments(
        hook="You are not lazy.",
        bridge="You just have not found the right routine.",
        golden_nugget="Pick one activity and do it ten minutes a day.",
        wta="Comment your activity below.",
    ),
)


def make_result(video_id, segments=WORKOUT_SEGMENTS, success=True, views=None, likes=None,
                platform="tiktok"):
    metadata = None
    if views is not None or likes is not None:
        metadata = TranscriptionMetadata(view_count=views, like_count=likes)
    return TranscriptionResult(
        video_id=video_id,
        video_url=f"https://www.tiktok.com/@coach/video/{video_id}",
        platform=platform,
        transcription=segments.full_script() if segments else "",
        success=success,
        marketing_segments=segments,
        metadata=metadata,
    )


def assert_summary_consistent(dataset):
    summary = dataset.summary
    assert summary.total_examples == len(dataset.examples)
    assert summary.total_examples == summary.original_examples + summary.synthetic_examples

    sources = [example.metadata.source for example in dataset.examples if example.metadata]
    if len(sources) == len(dataset.examples):
        assert sources.count(SOURCE_ORIGINAL) == summary.original_examples
        assert sources.count(SOURCE_SYNTHETIC) == summary.synthetic_examples
        assert set(summary.topics) == {example.metadata.topic for example in dataset.examples}


class TestDatasetAssembler:
    """Test cases for dataset assembly."""

    def setup_method(self):
        self.assembler = DatasetAssembler()

    def test_two_originals_and_one_synthetic(self):
        results = [
            make_result("v1", WORKOUT_SEGMENTS, views=1000),
            make_result("v2", MONEY_SEGMENTS, views=500),
        ]

        dataset = self.assembler.assemble(results, [SYNTHETIC])

        summary = dataset.summary
        assert summary.total_examples == 3
        assert summary.original_examples == 2
        assert summary.synthetic_examples == 1
        assert summary.avg_view_count == 750
        assert summary.platforms == ("tiktok",)
        assert "fitness motivation" in summary.topics
        assert summary.topics == ("fitness", "business", "fitness motivation")
        assert_summary_consistent(dataset)

    def test_originals_precede_synthetics(self):
        results = [make_result("v1", MONEY_SEGMENTS), make_result("v2", WORKOUT_SEGMENTS)]

        dataset = self.assembler.assemble(results, [SYNTHETIC])

        assert [example.metadata.source for example in dataset.examples] == [
            SOURCE_ORIGINAL, SOURCE_ORIGINAL, SOURCE_SYNTHETIC
        ]
        assert dataset.examples[0].output == MONEY_SEGMENTS.full_script()
        assert dataset.examples[1].output == WORKOUT_SEGMENTS.full_script()

    def test_failed_and_unsegmented_results_dropped(self):
        results = [
            make_result("ok"),
            make_result("failed", success=False),
            make_result("raw", segments=None),
        ]

        dataset = self.assembler.assemble(results, [])

        assert len(dataset.examples) == 1
        assert dataset.examples[0].metadata.video_id == "ok"
        assert_summary_consistent(dataset)

    def test_min_view_count(self):
        results = [make_result("low", views=99), make_result("high", views=100), make_result("unknown")]

        dataset = self.assembler.assemble(results, [], AssemblyOptions(min_view_count=100))

        assert [example.metadata.video_id for example in dataset.examples] == ["high"]

    def test_per_video_cap(self):
        results = [make_result("same"), make_result("same"), make_result("same"), make_result("other")]

        dataset = self.assembler.assemble(results, [], AssemblyOptions(max_examples_per_video=2))

        assert [example.metadata.video_id for example in dataset.examples] == ["same", "same", "other"]

    def test_include_flags(self):
        results = [make_result("v1")]

        originals_only = self.assembler.assemble(results, [SYNTHETIC], AssemblyOptions(include_synthetic_scripts=False))
        synthetics_only = self.assembler.assemble(results, [SYNTHETIC], AssemblyOptions(include_original_transcriptions=False))

        assert (originals_only.summary.original_examples, originals_only.summary.synthetic_examples) == (1, 0)
        assert (synthetics_only.summary.original_examples, synthetics_only.summary.synthetic_examples) == (0, 1)

    def test_summary_kept_without_example_metadata(self):
        results = [make_result("v1", views=10), make_result("v2", views=20)]

        dataset = self.assembler.assemble(results, [SYNTHETIC], AssemblyOptions(include_metadata=False))

        assert all(example.metadata is None for example in dataset.examples)
        assert dataset.summary.original_examples == 2
        assert dataset.summary.synthetic_examples == 1
        assert dataset.summary.avg_view_count == 15
        assert "fitness motivation" in dataset.summary.topics
        assert_summary_consistent(dataset)

    def test_averages_skip_missing_values(self):
        results = [make_result("v1", views=1, likes=100), make_result("v2", views=2)]

        summary = self.assembler.assemble(results, [SYNTHETIC]).summary

        assert summary.avg_view_count == 2
        assert summary.avg_like_count == 100

    def test_no_counts_means_no_averages(self):
        summary = self.assembler.assemble([make_result("v1")], []).summary

        assert summary.avg_view_count is None
        assert "avgViewCount" not in summary.to_dict()

    def test_empty_inputs(self):
        dataset = self.assembler.assemble([], [])

        assert dataset.examples == ()
        assert dataset.summary.total_examples == 0
        assert dataset.summary.platforms == ()
        assert dataset.metadata.description == "Training dataset with 0 examples (0 original + 0 synthetic)"

    def test_metadata_description_and_creator(self):
        dataset = self.assembler.assemble([make_result("v1")], [SYNTHETIC], creator="tiktok_coach")

        assert dataset.metadata.description == "Training dataset with 2 examples (1 original + 1 synthetic)"
        assert dataset.metadata.creator == "tiktok_coach"

    def test_platforms_in_first_seen_order(self):
        results = [
            make_result("a", platform="instagram"),
            make_result("b", platform="tiktok"),
            make_result("c", platform="instagram"),
        ]

        assert self.assembler.assemble(results, []).summary.platforms == ("instagram", "tiktok")

    def test_empty_platform_and_topic_are_listed(self):
        synthetic = SyntheticScript(topic="", script=SYNTHETIC.script)

        dataset = self.assembler.assemble([make_result("v1", platform="")], [synthetic])

        assert dataset.summary.platforms == ("",)
        assert dataset.summary.topics == ("fitness", "")
        assert_summary_consistent(dataset)

    def test_topic_derived_once_per_original(self):
        extractor = self.assembler.example_builder.topic_extractor
        with patch.object(extractor, "extract_topic", wraps=extractor.extract_topic) as extract_topic:
            dataset = self.assembler.assemble([make_result("v1"), make_result("v2")], [SYNTHETIC])

        assert extract_topic.call_count == 2
        assert dataset.summary.topics == ("fitness", "fitness motivation")


class TestSummarizeEntries:

    def test_synthetic_counts_ignored_in_averages(self):
        example = TrainingExample(input="in", output="out")
        entries = [
            AssembledEntry(example, SOURCE_ORIGINAL, "fitness", "tiktok", view_count=10),
            AssembledEntry(example, SOURCE_SYNTHETIC, "fitness", view_count=1000),
        ]

        summary = summarize_entries(entries)

        assert summary.avg_view_count == 10
        assert summary.topics == ("fitness",)


@pytest.mark.parametrize("value, expected", [(1.5, 2), (2.5, 3), (2.49, 2), (0.0, 0), (749.5, 750)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
