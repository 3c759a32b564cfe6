"""
Word assignment validation.

Checks that a model's per-word segment labels form a lossless partition of the
transcript it produced, and that the four segments join back to that transcript.
"""

import logging
import re
from typing import Dict, List, Sequence

from models.data_models import SEGMENT_NAMES, MarketingSegments, WordAssignment, WordAssignmentReport

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


class WordAssignmentValidator:
    """
    Validates word assignments against their transcript and segments.

    Every check runs and contributes its own error message; the report is a
    diagnostic, not a gate. Only an empty assignment list short-circuits.
    """

    def __init__(self, preview_length: int = 100):
        self.preview_length = preview_length

    def validate(self, transcript: str, segments: MarketingSegments,
                 assignments: Sequence[WordAssignment]) -> WordAssignmentReport:
        """
        Validate that assignments cover the entire transcript.

        Args:
            transcript: Transcript produced by the model
            segments: Marketing segments produced by the same call
            assignments: Word assignments, in any order

        Returns:
            WordAssignmentReport with every failed check listed in ``errors``
        """
        errors: List[str] = []

        try:
            if not assignments:
                return WordAssignmentReport(valid=False, errors=["No word assignments provided"])

            ordered = sorted(assignments, key=lambda assignment: assignment.position)
            original = normalize_text(transcript)

            reconstructed = normalize_text(" ".join(assignment.word for assignment in ordered))
            if reconstructed != original:
                errors.append(
                    f"Word assignments don't match original transcript. "
                    f"Original: \"{original[:self.preview_length]}...\" "
                    f"Reconstructed: \"{reconstructed[:self.preview_length]}...\""
                )

            if normalize_text(" ".join(segments.as_tuple())) != original:
                errors.append("Marketing segments concatenation doesn't match original transcript")

            positions = [assignment.position for assignment in ordered]
            if len(set(positions)) != len(positions):
                errors.append("Duplicate word positions found")

            present = set(positions)
            missing = [str(position) for position in range(1, len(positions) + 1) if position not in present]
            if missing:
                errors.append(f"Missing word positions: {', '.join(missing)}")

            category_counts = self.count_categories(ordered)
            logger.info(f"Word assignment category distribution: {category_counts}")

            if errors:
                logger.warning(f"Word assignment validation failed: {errors}")

            return WordAssignmentReport(valid=not errors, errors=errors, category_counts=category_counts)

        except Exception as e:
            logger.error(f"Error validating word assignments: {str(e)}")
            errors.append(f"Validation error: {str(e)}")
            return WordAssignmentReport(valid=False, errors=errors)

    def count_categories(self, assignments: Sequence[WordAssignment]) -> Dict[str, int]:
        """Count assigned words per segment, listing the four known segments first."""
        counts = {name: 0 for name in SEGMENT_NAMES}
        for assignment in assignments:
            counts[assignment.category] = counts.get(assignment.category, 0) + 1
        return counts
