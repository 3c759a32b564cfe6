"""
Unit tests for batch file parsing and the creator data store.
"""

import json
import os
import re
import shutil
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from business_logic.dataset_assembler import DatasetAssembler
from data.manager import DataManager, TRANSCRIPTIONS_FILE, generate_creator_folder_name
from data.parsers import TranscriptionBatchParser
from models.data_models import MarketingSegments, TranscriptionMetadata, TranscriptionResult


RESULT_RECORD = {
    "videoId": "v1",
    "videoUrl": "https://www.tiktok.com/@coach/video/1",
    "platform": "tiktok",
    "transcription": "Stop. Listen. Learn this. Follow.",
    "success": True,
    "marketingSegments": {"Hook": "Stop.", "Bridge": "Listen.", "GoldenNugget": "Learn this.", "WTA": "Follow."},
    "wordAssignments": [{"word": "Stop.", "category": "hook", "position": 1}],
    "processingTime": 1200,
    "metadata": {"viewCount": 1000, "likeCount": 50, "quality": "720p"},
}


class TestTranscriptionBatchParser(unittest.TestCase):
    """Test cases for TranscriptionBatchParser class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_file = os.path.join(self.temp_dir, 'batch.json')

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def write_batch(self, payload):
        with open(self.test_file, 'w', encoding='utf-8') as f:
            if isinstance(payload, str):
                f.write(payload)
            else:
                json.dump(payload, f)

    def test_init_invalid_file(self):
        """Test initialization with non-existent file."""
        with self.assertRaises(FileNotFoundError):
            TranscriptionBatchParser('non_existent_batch.json')

    def test_parse_transcription_results(self):
        self.write_batch({"transcriptionResults": [RESULT_RECORD]})

        results = TranscriptionBatchParser(self.test_file).parse_transcription_results()

        self.assertEqual(len(results), 1)
        result = results[0]
        self.assertEqual(result.video_id, "v1")
        self.assertEqual(result.marketing_segments.golden_nugget, "Learn this.")
        self.assertEqual(result.word_assignments[0].category, "Hook")
        self.assertEqual(result.view_count, 1000)
        self.assertEqual(result.metadata.quality, "720p")
        self.assertEqual(result.processing_time, 1200)

    def test_bare_list_payload(self):
        self.write_batch([RESULT_RECORD, RESULT_RECORD])

        parser = TranscriptionBatchParser(self.test_file)

        self.assertEqual(len(parser.parse_transcription_results()), 2)
        self.assertEqual(parser.parse_synthetic_scripts(), [])
        self.assertEqual(parser.parse_templates(), [])

    def test_malformed_records_skipped(self):
        broken_assignments = dict(RESULT_RECORD, wordAssignments=[{"word": "x", "position": "first"}])
        self.write_batch({"transcriptionResults": [RESULT_RECORD, "not a record", broken_assignments]})

        results = TranscriptionBatchParser(self.test_file).parse_transcription_results()

        self.assertEqual(len(results), 1)

    def test_invalid_json(self):
        self.write_batch("{not json")

        with self.assertRaises(ValueError):
            TranscriptionBatchParser(self.test_file).load()

    def test_field_must_be_list(self):
        self.write_batch({"transcriptionResults": {"videoId": "v1"}})

        with self.assertRaises(ValueError):
            TranscriptionBatchParser(self.test_file).parse_transcription_results()

    def test_unexpected_structure(self):
        self.write_batch("42")

        with self.assertRaises(ValueError):
            TranscriptionBatchParser(self.test_file).load()

    def test_parse_synthetic_scripts(self):
        self.write_batch({
            "syntheticScripts": [
                {"topic": "fitness motivation", "script": {"Hook": "H", "Bridge": "B", "Golden Nugget": "G", "WTA": "W"}},
                {"topic": "", "script": {"Hook": "H"}},
                {"topic": "no script"},
            ]
        })

        scripts = TranscriptionBatchParser(self.test_file).parse_synthetic_scripts()

        self.assertEqual(len(scripts), 1)
        self.assertEqual(scripts[0].topic, "fitness motivation")
        self.assertEqual(scripts[0].script.full_script(), "H B G W")

    def test_parse_templates(self):
        self.write_batch({"templates": [{"hook": "Stop [ACTION]", "bridge": "b", "nugget": "n", "wta": "w"}]})

        templates = TranscriptionBatchParser(self.test_file).parse_templates()

        self.assertEqual(templates[0].hook, "Stop [ACTION]")
        self.assertEqual(templates[0].nugget, "n")


class TestDataManager(unittest.TestCase):
    """Test cases for DataManager class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.manager = DataManager(data_dir=self.temp_dir, cache_ttl_hours=1)
        segments = MarketingSegments("Stop.", "Listen.", "Learn this.", "Follow.")
        self.results = [
            TranscriptionResult(
                video_id="v1",
                video_url="https://www.tiktok.com/@coach/video/1",
                platform="tiktok",
                transcription=segments.full_script(),
                success=True,
                marketing_segments=segments,
                metadata=TranscriptionMetadata(view_count=1000),
            ),
            TranscriptionResult(
                video_id="v2",
                video_url="https://www.tiktok.com/@coach/video/2",
                platform="tiktok",
                transcription="",
                success=False,
                error="Download failed",
            ),
        ]

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_folder_name_format(self):
        name = generate_creator_folder_name("tiktok", "coach", datetime(2024, 5, 6, 7, 8, 9, 123456))

        self.assertEqual(name, "tiktok_coach_2024-05-06T07-08-09")
        self.assertRegex(generate_creator_folder_name("instagram", "chef"),
                         re.compile(r"^instagram_chef_\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}$"))

    def test_save_and_load_round_trip(self):
        folder = self.manager.save_transcription_results("tiktok", "coach", self.results)

        loaded = self.manager.load_transcription_results(folder)

        self.assertTrue((Path(self.temp_dir) / folder / TRANSCRIPTIONS_FILE).exists())
        self.assertEqual(loaded, self.results)

    def test_caching_mechanism(self):
        folder = self.manager.save_transcription_results("tiktok", "coach", self.results, folder_name="coach")
        self.manager.load_transcription_results(folder)

        with patch('data.manager.TranscriptionBatchParser') as mock_parser:
            cached = self.manager.load_transcription_results(folder)
            mock_parser.assert_not_called()

        self.assertEqual(len(cached), 2)
        self.assertEqual(self.manager.get_cache_stats()['entries'], 1)

    def test_modified_file_invalidates_cache(self):
        folder = self.manager.save_transcription_results("tiktok", "coach", self.results, folder_name="coach")
        self.assertEqual(len(self.manager.load_transcription_results(folder)), 2)

        file_path = Path(self.temp_dir) / folder / TRANSCRIPTIONS_FILE
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump({"transcriptionResults": [self.results[0].to_dict()]}, f)

        self.assertEqual(len(self.manager.load_transcription_results(folder)), 1)

    def test_missing_folder(self):
        with self.assertRaises(FileNotFoundError):
            self.manager.load_transcription_results("nobody")

    def test_list_creator_folders(self):
        self.manager.save_transcription_results("tiktok", "b", self.results, folder_name="tiktok_b")
        self.manager.save_transcription_results("tiktok", "a", self.results, folder_name="tiktok_a")
        os.makedirs(os.path.join(self.temp_dir, "empty_folder"))

        self.assertEqual(self.manager.list_creator_folders(), ["tiktok_a", "tiktok_b"])

    def test_save_dataset(self):
        folder = self.manager.save_transcription_results("tiktok", "coach", self.results, folder_name="coach")
        dataset = DatasetAssembler().assemble(self.manager.load_transcription_results(folder), [])

        file_path = self.manager.save_dataset(folder, dataset)

        self.assertTrue(file_path.endswith(".jsonl"))
        self.assertEqual(Path(file_path).parent, Path(self.temp_dir) / folder)
        with open(file_path, 'r', encoding='utf-8') as f:
            self.assertEqual(len(f.read().splitlines()), 1)

    def test_save_dataset_serializes_once(self):
        folder = self.manager.save_transcription_results("tiktok", "coach", self.results, folder_name="coach")
        dataset = DatasetAssembler().assemble(self.manager.load_transcription_results(folder), [])
        exporter = self.manager.exporter

        with patch.object(exporter, 'export_to_json', wraps=exporter.export_to_json) as export_to_json:
            file_path = self.manager.save_dataset(folder, dataset, export_format="json")

        export_to_json.assert_called_once()
        self.assertTrue(Path(file_path).name.startswith("training-data-"))
        self.assertTrue(file_path.endswith(".json"))
        with open(file_path, 'r', encoding='utf-8') as f:
            self.assertEqual(json.load(f)["summary"]["totalExamples"], 1)

    def test_clear_cache(self):
        folder = self.manager.save_transcription_results("tiktok", "coach", self.results, folder_name="coach")
        self.manager.load_transcription_results(folder)

        self.manager.clear_cache()

        self.assertEqual(self.manager.get_cache_stats()['entries'], 0)


if __name__ == '__main__':
    unittest.main()
