"""
Tests for DatasetValidator.
"""

import unittest
from datetime import datetime

from business_logic.dataset_validator import DatasetValidator
from models.data_models import (
    DatasetMetadata,
    DatasetSummary,
    TrainingDataset,
    TrainingExample,
)


GOOD_OUTPUT = "Stop scrolling. Here is the one habit that doubled my focus in a single week."


def make_dataset(examples):
    examples = tuple(examples)
    return TrainingDataset(
        examples=examples,
        summary=DatasetSummary(
            total_examples=len(examples),
            original_examples=0,
            synthetic_examples=len(examples),
            platforms=(),
            topics=(),
        ),
        metadata=DatasetMetadata(created_at=datetime(2024, 1, 1), description="test"),
    )


def good_examples(count):
    return [TrainingExample(input=f"Write a script about topic {i}", output=GOOD_OUTPUT) for i in range(count)]


class TestDatasetValidator(unittest.TestCase):
    """Test cases for dataset validation."""

    def setUp(self):
        self.validator = DatasetValidator()

    def test_clean_dataset(self):
        report = self.validator.validate(make_dataset(good_examples(10)))

        self.assertTrue(report.valid)
        self.assertEqual(report.errors, [])
        self.assertEqual(report.warnings, [])

    def test_empty_examples_reported_once(self):
        examples = good_examples(10) + [
            TrainingExample(input="Write a script", output=""),
            TrainingExample(input="   ", output=GOOD_OUTPUT),
        ]

        report = self.validator.validate(make_dataset(examples))

        self.assertFalse(report.valid)
        self.assertEqual(report.errors, ["Found 2 examples with empty input or output."])

    def test_adding_empty_example_only_adds_error(self):
        for base in (good_examples(10), good_examples(3)):
            before = self.validator.validate(make_dataset(base))
            after = self.validator.validate(make_dataset(base + [TrainingExample(input="", output="")]))

            self.assertEqual(after.warnings, before.warnings)
            self.assertEqual(len(after.errors), len(before.errors) + 1)
            self.assertFalse(after.valid)

    def test_small_dataset_warning(self):
        report = self.validator.validate(make_dataset(good_examples(3)))

        self.assertTrue(report.valid)
        self.assertEqual(
            report.warnings,
            ["Dataset has only 3 examples. Recommended minimum is 10 for fine-tuning."]
        )

    def test_length_warnings(self):
        examples = good_examples(10) + [
            TrainingExample(input="x" * 2001, output=GOOD_OUTPUT),
            TrainingExample(input="prompt", output="y" * 4001),
            TrainingExample(input="prompt", output="too short"),
        ]

        report = self.validator.validate(make_dataset(examples))

        self.assertTrue(report.valid)
        self.assertIn("1 examples have very long inputs (>2000 chars). Consider shortening.", report.warnings)
        self.assertIn("1 examples have very long outputs (>4000 chars). Consider shortening.", report.warnings)
        self.assertIn("1 examples have very short outputs (<50 chars). Consider adding more detail.", report.warnings)

    def test_custom_thresholds(self):
        validator = DatasetValidator(min_examples=2, min_output_length=1000)

        report = validator.validate(make_dataset(good_examples(2)))

        self.assertEqual(len(report.warnings), 1)
        self.assertIn("very short outputs (<1000 chars)", report.warnings[0])

    def test_stats(self):
        examples = [
            TrainingExample(input="abcd", output="x" * 10),
            TrainingExample(input="ab", output="x" * 21),
        ]

        stats = self.validator.validate(make_dataset(examples)).stats

        self.assertEqual(stats.avg_input_length, 3)
        self.assertEqual(stats.avg_output_length, 16)
        self.assertEqual(stats.min_input_length, 2)
        self.assertEqual(stats.max_input_length, 4)
        self.assertEqual(stats.min_output_length, 10)
        self.assertEqual(stats.max_output_length, 21)

    def test_empty_dataset(self):
        report = self.validator.validate(make_dataset([]))

        self.assertTrue(report.valid)
        self.assertEqual(report.errors, [])
        self.assertEqual(
            report.warnings,
            ["Dataset has only 0 examples. Recommended minimum is 10 for fine-tuning."]
        )
        self.assertEqual(report.stats.to_dict(), {
            "avgInputLength": 0,
            "avgOutputLength": 0,
            "minInputLength": 0,
            "maxInputLength": 0,
            "minOutputLength": 0,
            "maxOutputLength": 0,
        })

    def test_report_serialization(self):
        report = self.validator.validate(make_dataset(good_examples(1)))

        data = report.to_dict()

        self.assertEqual(set(data), {"valid", "errors", "warnings", "stats"})
        self.assertTrue(data["valid"])


if __name__ == '__main__':
    unittest.main()
