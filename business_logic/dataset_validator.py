"""
Fine-tuning readiness checks for assembled datasets.

Errors block export readiness; warnings are advisory only.
"""

import logging
from typing import List

from models.data_models import DatasetStats, TrainingDataset, TrainingExample, ValidationReport
from .dataset_assembler import round_half_up

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _is_blank(text: str) -> bool:
    return not text or not text.strip()


class DatasetValidator:
    """
    Validates a TrainingDataset against fine-tuning heuristics.

    Empty examples are reported once as an error and are left out of the
    size and length checks, so they never change the warnings.
    """

    def __init__(self, min_examples: int = 10, max_input_length: int = 2000,
                 max_output_length: int = 4000, min_output_length: int = 50):
        self.min_examples = min_examples
        self.max_input_length = max_input_length
        self.max_output_length = max_output_length
        self.min_output_length = min_output_length

    def validate(self, dataset: TrainingDataset) -> ValidationReport:
        """
        Validate training data quality.

        Args:
            dataset: Assembled dataset

        Returns:
            ValidationReport; ``valid`` is True when there are no errors
        """
        errors: List[str] = []
        warnings: List[str] = []

        examples = list(dataset.examples)
        usable = [example for example in examples if not self._is_empty(example)]
        empty_count = len(examples) - len(usable)

        if empty_count:
            errors.append(f"Found {empty_count} examples with empty input or output.")

        if len(usable) < self.min_examples:
            warnings.append(
                f"Dataset has only {len(usable)} examples. "
                f"Recommended minimum is {self.min_examples} for fine-tuning."
            )

        long_inputs = sum(1 for example in usable if len(example.input) > self.max_input_length)
        if long_inputs:
            warnings.append(
                f"{long_inputs} examples have very long inputs (>{self.max_input_length} chars). "
                f"Consider shortening."
            )

        long_outputs = sum(1 for example in usable if len(example.output) > self.max_output_length)
        if long_outputs:
            warnings.append(
                f"{long_outputs} examples have very long outputs (>{self.max_output_length} chars). "
                f"Consider shortening."
            )

        short_outputs = sum(1 for example in usable if len(example.output) < self.min_output_length)
        if short_outputs:
            warnings.append(
                f"{short_outputs} examples have very short outputs (<{self.min_output_length} chars). "
                f"Consider adding more detail."
            )

        report = ValidationReport(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            stats=self.compute_stats(examples),
        )

        if errors:
            logger.warning(f"Dataset validation failed: {errors}")
        logger.info(f"Dataset validation finished with {len(errors)} errors and {len(warnings)} warnings")
        return report

    def compute_stats(self, examples: List[TrainingExample]) -> DatasetStats:
        """Length statistics across all examples; zeros for an empty list."""
        if not examples:
            return DatasetStats()

        input_lengths = [len(example.input) for example in examples]
        output_lengths = [len(example.output) for example in examples]

        return DatasetStats(
            avg_input_length=round_half_up(sum(input_lengths) / len(input_lengths)),
            avg_output_length=round_half_up(sum(output_lengths) / len(output_lengths)),
            min_input_length=min(input_lengths),
            max_input_length=max(input_lengths),
            min_output_length=min(output_lengths),
            max_output_length=max(output_lengths),
        )

    def _is_empty(self, example: TrainingExample) -> bool:
        return _is_blank(example.input) or _is_blank(example.output)
