"""
Tests for DatasetExporter.
"""

import json
import os
import shutil
import tempfile
import unittest
from datetime import datetime

from business_logic.dataset_assembler import DatasetAssembler
from data.exporters import DatasetExporter, FORMAT_JSON, FORMAT_JSONL
from models.data_models import (
    MarketingSegments,
    SyntheticScript,
    TranscriptionMetadata,
    TranscriptionResult,
)


def build_dataset():
    segments = MarketingSegments(
        hook="Stop doing crunches.",
        bridge="Your core needs a real workout.",
        golden_nugget="Try dead bugs for three sets of ten.",
        wta="Follow for more.",
    )
    result = TranscriptionResult(
        video_id="v1",
        video_url="https://www.tiktok.com/@coach/video/1",
        platform="tiktok",
        transcription=segments.full_script(),
        success=True,
        marketing_segments=segments,
        metadata=TranscriptionMetadata(view_count=1000),
    )
    synthetic = SyntheticScript(
        topic="café culture",
        script=MarketingSegments("Ne manquez pas ça.", "Le café change tout.", "Commandez un noisette.", "Suivez-moi."),
    )
    return DatasetAssembler().assemble([result], [synthetic])


class TestDatasetExporter(unittest.TestCase):
    """Test cases for JSONL and JSON export."""

    def setUp(self):
        self.exporter = DatasetExporter()
        self.dataset = build_dataset()
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_jsonl_round_trip_preserves_pairs(self):
        content = self.exporter.export_to_jsonl(self.dataset)

        lines = content.split("\n")
        parsed = [json.loads(line) for line in lines]

        self.assertEqual(len(lines), len(self.dataset.examples))
        self.assertEqual(
            [(item["input"], item["output"]) for item in parsed],
            [(example.input, example.output) for example in self.dataset.examples]
        )
        self.assertTrue(all(set(item) == {"input", "output"} for item in parsed))

    def test_jsonl_with_metadata(self):
        parsed = [json.loads(line) for line in self.exporter.export_to_jsonl(self.dataset, True).split("\n")]

        self.assertEqual(parsed[0]["metadata"]["source"], "original")
        self.assertEqual(parsed[0]["metadata"]["viewCount"], 1000)
        self.assertEqual(parsed[1]["metadata"], {"source": "synthetic", "topic": "café culture", "templateUsed": True})

    def test_jsonl_keeps_unicode(self):
        content = self.exporter.export_to_jsonl(self.dataset)

        self.assertIn("café culture", content)
        self.assertNotIn("\\u00e9", content)

    def test_json_document(self):
        data = json.loads(self.exporter.export_to_json(self.dataset))

        self.assertEqual(set(data), {"examples", "summary", "metadata"})
        self.assertEqual(data["summary"]["totalExamples"], 2)
        self.assertEqual(data["summary"]["platforms"], ["tiktok"])
        self.assertIn("createdAt", data["metadata"])
        self.assertIn("metadata", data["examples"][0])

    def test_json_without_example_metadata(self):
        data = json.loads(self.exporter.export_to_json(self.dataset, include_metadata=False))

        self.assertNotIn("metadata", data["examples"][0])
        self.assertIn("metadata", data)

    def test_downloadable_jsonl(self):
        download = self.exporter.create_downloadable_content(
            self.dataset, FORMAT_JSONL, timestamp=datetime(2024, 1, 2, 3, 4, 5, 678000)
        )

        self.assertEqual(download.filename, "training-data-2024-01-02T03-04-05-678000.jsonl")
        self.assertEqual(download.mime_type, "application/jsonl")
        self.assertNotIn("metadata", json.loads(download.content.split("\n")[0]))

    def test_downloadable_json(self):
        download = self.exporter.create_downloadable_content(
            self.dataset, FORMAT_JSON, timestamp=datetime(2024, 1, 2, 3, 4, 5)
        )

        self.assertEqual(download.filename, "training-data-2024-01-02T03-04-05.json")
        self.assertEqual(download.mime_type, "application/json")
        self.assertIn("metadata", json.loads(download.content)["examples"][0])

    def test_unsupported_format(self):
        with self.assertRaises(ValueError):
            self.exporter.create_downloadable_content(self.dataset, "csv")

    def test_write_to_file(self):
        file_path = os.path.join(self.temp_dir, "nested", "dataset.jsonl")

        written = self.exporter.write_to_file(self.dataset, file_path)

        self.assertEqual(written, file_path)
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
        self.assertTrue(content.endswith("\n"))
        self.assertEqual(len(content.splitlines()), 2)


if __name__ == '__main__':
    unittest.main()
