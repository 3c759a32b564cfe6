"""
Serialization of assembled training datasets to JSONL and JSON.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from models.data_models import TrainingDataset

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


FORMAT_JSONL = "jsonl"
FORMAT_JSON = "json"

MIME_TYPES = {
    FORMAT_JSONL: "application/jsonl",
    FORMAT_JSON: "application/json",
}


@dataclass
class DownloadableContent:
    """Serialized dataset ready to be offered as a file download."""
    content: str
    filename: str
    mime_type: str


class DatasetExporter:
    """Formats a TrainingDataset for fine-tuning tools and downloads."""

    def export_to_jsonl(self, dataset: TrainingDataset, include_metadata: bool = False) -> str:
        """
        One example object per line, in dataset order.

        Args:
            dataset: Assembled dataset
            include_metadata: Add each example's metadata object when present

        Returns:
            JSONL text
        """
        return "\n".join(
            json.dumps(example.to_dict(include_metadata), ensure_ascii=False)
            for example in dataset.examples
        )

    def export_to_json(self, dataset: TrainingDataset, include_metadata: bool = True) -> str:
        """Whole dataset, including summary and metadata, as one indented document."""
        return json.dumps(dataset.to_dict(include_metadata), indent=2, ensure_ascii=False)

    def create_downloadable_content(self, dataset: TrainingDataset, export_format: str = FORMAT_JSONL,
                                    include_metadata: Optional[bool] = None,
                                    timestamp: Optional[datetime] = None) -> DownloadableContent:
        """
        Serialize a dataset with a timestamped filename and MIME type.

        Args:
            dataset: Assembled dataset
            export_format: "jsonl" or "json"
            include_metadata: Defaults to False for JSONL and True for JSON
            timestamp: Time used in the filename; now when None

        Returns:
            DownloadableContent

        Raises:
            ValueError: If the format is not supported
        """
        if export_format not in MIME_TYPES:
            raise ValueError(f"Unsupported export format: {export_format}")

        if include_metadata is None:
            include_metadata = export_format == FORMAT_JSON

        if export_format == FORMAT_JSONL:
            content = self.export_to_jsonl(dataset, include_metadata)
        else:
            content = self.export_to_json(dataset, include_metadata)

        stamp = (timestamp or datetime.now()).isoformat().replace(":", "-").replace(".", "-")
        return DownloadableContent(
            content=content,
            filename=f"training-data-{stamp}.{export_format}",
            mime_type=MIME_TYPES[export_format],
        )

    def write_to_file(self, dataset: TrainingDataset, file_path: str, export_format: str = FORMAT_JSONL,
                      include_metadata: Optional[bool] = None) -> str:
        """
        Write a serialized dataset to disk.

        Returns:
            The path written
        """
        download = self.create_downloadable_content(dataset, export_format, include_metadata)
        written = self.write_download(download, file_path)
        logger.info(f"Exported {len(dataset.examples)} examples to {written}")
        return written

    def write_download(self, download: DownloadableContent, file_path: str) -> str:
        """Write already serialized content; JSONL files end with a newline."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            f.write(download.content)
            if download.mime_type == MIME_TYPES[FORMAT_JSONL] and download.content:
                f.write('\n')

        return str(path)
