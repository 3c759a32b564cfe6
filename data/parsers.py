"""
Parsers for JSON batch files of transcription results, templates and synthetic scripts.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from models.data_models import ScriptTemplate, SyntheticScript, TranscriptionResult

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TranscriptionBatchParser:
    """
    Parser for exported transcription batches.

    Accepts either an object with ``transcriptionResults``, ``templates`` and
    ``syntheticScripts`` lists, or a bare list of transcription results.
    Malformed records are logged and skipped rather than failing the batch.
    """

    def __init__(self, file_path: str):
        """
        Initialize the parser with a batch file path.

        Args:
            file_path: Path to the JSON batch file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.file_path = Path(file_path)
        self._payload = None

        if not self.file_path.exists():
            raise FileNotFoundError(f"Transcription batch file not found: {file_path}")

    def load(self) -> Dict[str, Any]:
        """
        Load and normalize the batch payload.

        Returns:
            Dictionary with ``transcriptionResults``, ``templates`` and ``syntheticScripts`` lists

        Raises:
            ValueError: If the file is not valid JSON or has an unexpected shape
        """
        if self._payload is not None:
            return self._payload

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in batch file {self.file_path}: {str(e)}")

        if isinstance(raw, list):
            raw = {'transcriptionResults': raw}

        if not isinstance(raw, dict):
            raise ValueError(f"Unexpected batch file structure in {self.file_path}")

        self._payload = {
            'transcriptionResults': self._as_list(raw, 'transcriptionResults'),
            'templates': self._as_list(raw, 'templates'),
            'syntheticScripts': self._as_list(raw, 'syntheticScripts'),
        }
        return self._payload

    def _as_list(self, raw: Dict[str, Any], key: str) -> List[Any]:
        value = raw.get(key) or []
        if not isinstance(value, list):
            raise ValueError(f"Field '{key}' must be a list in {self.file_path}")
        return value

    def parse_transcription_results(self) -> List[TranscriptionResult]:
        """Parse every well-formed transcription result in the batch."""
        results = []
        for index, item in enumerate(self.load()['transcriptionResults']):
            if not isinstance(item, dict):
                logger.warning(f"Skipping transcription result {index}: not an object")
                continue
            try:
                results.append(TranscriptionResult.from_dict(item))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed transcription result {index}: {str(e)}")

        logger.info(f"Parsed {len(results)} transcription results from {self.file_path}")
        return results

    def parse_templates(self) -> List[ScriptTemplate]:
        """Parse script templates in the batch."""
        return [ScriptTemplate.from_dict(item) for item in self.load()['templates'] if isinstance(item, dict)]

    def parse_synthetic_scripts(self) -> List[SyntheticScript]:
        """Parse synthetic scripts; entries without a topic or script are skipped."""
        scripts = []
        for index, item in enumerate(self.load()['syntheticScripts']):
            if not isinstance(item, dict) or not item.get('topic') or not isinstance(item.get('script'), dict):
                logger.warning(f"Skipping malformed synthetic script {index}")
                continue
            scripts.append(SyntheticScript.from_dict(item))
        return scripts
