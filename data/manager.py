"""
Local storage for per-creator transcription batches and exported datasets.
"""

import logging
import json
import hashlib
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass

from config.settings import config_manager
from models.data_models import TrainingDataset, TranscriptionResult
from .exporters import DatasetExporter, FORMAT_JSONL
from .parsers import TranscriptionBatchParser

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


TRANSCRIPTIONS_FILE = "transcriptions.json"


def generate_creator_folder_name(platform: str, username: str, timestamp: Optional[datetime] = None) -> str:
    """Unique folder name for one processing run of a creator."""
    stamp = (timestamp or datetime.now()).isoformat()[:19].replace(":", "-").replace(".", "-")
    return f"{platform}_{username}_{stamp}"


@dataclass
class DataCacheEntry:
    """Represents a cached data entry with metadata."""
    data: Any
    file_path: str
    file_hash: str
    last_updated: datetime
    last_accessed: datetime


class DataManager:
    """
    Folder-per-creator store for transcription results and datasets.

    Loaded transcription batches are cached in memory and re-read when the
    file changes or the cache entry expires.
    """

    def __init__(self, data_dir: Optional[str] = None, cache_ttl_hours: Optional[int] = None):
        """
        Initialize the DataManager.

        Args:
            data_dir: Root directory for creator folders; DATA_DIR setting if None
            cache_ttl_hours: Time-to-live for cached batches; CACHE_TIMEOUT_HOURS setting if None
        """
        self.data_dir = Path(data_dir or config_manager.get_data_dir())
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if cache_ttl_hours is None:
            cache_ttl_hours = config_manager.get_cache_timeout()
        self.cache_ttl = timedelta(hours=cache_ttl_hours)

        self._cache: Dict[str, DataCacheEntry] = {}
        self.exporter = DatasetExporter()

    def _get_file_hash(self, file_path: str) -> str:
        """
        Calculate MD5 hash of a file for change detection.

        Args:
            file_path: Path to the file

        Returns:
            MD5 hash string, empty if the file cannot be read
        """
        try:
            with open(file_path, 'rb') as f:
                file_hash = hashlib.md5()
                for chunk in iter(lambda: f.read(4096), b""):
                    file_hash.update(chunk)
                return file_hash.hexdigest()
        except OSError as e:
            logger.error(f"Error calculating file hash for {file_path}: {str(e)}")
            return ""

    def _is_cache_valid(self, cache_entry: DataCacheEntry) -> bool:
        """Check that the cached file still exists, is unchanged and has not expired."""
        if not Path(cache_entry.file_path).exists():
            logger.warning(f"Cached file no longer exists: {cache_entry.file_path}")
            return False

        if self._get_file_hash(cache_entry.file_path) != cache_entry.file_hash:
            logger.info(f"File has been modified: {cache_entry.file_path}")
            return False

        if datetime.now() - cache_entry.last_updated > self.cache_ttl:
            logger.info(f"Cache has expired for: {cache_entry.file_path}")
            return False

        return True

    def creator_folder(self, folder_name: str) -> Path:
        return self.data_dir / folder_name

    def save_transcription_results(self, platform: str, username: str,
                                   results: Sequence[TranscriptionResult],
                                   folder_name: Optional[str] = None) -> str:
        """
        Save a transcription batch into a creator folder.

        Args:
            platform: Source platform of the creator
            username: Creator handle
            results: Transcription results to store
            folder_name: Existing folder to write into; a new timestamped one if None

        Returns:
            Name of the folder written
        """
        folder_name = folder_name or generate_creator_folder_name(platform, username)
        folder = self.creator_folder(folder_name)
        folder.mkdir(parents=True, exist_ok=True)

        payload = {
            'platform': platform,
            'username': username,
            'savedAt': datetime.now().isoformat(),
            'transcriptionResults': [result.to_dict() for result in results],
        }

        file_path = folder / TRANSCRIPTIONS_FILE
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

        self._cache.pop(str(file_path), None)
        logger.info(f"Saved {len(results)} transcription results to {file_path}")
        return folder_name

    def load_transcription_results(self, folder_name: str) -> List[TranscriptionResult]:
        """
        Load and cache the transcription batch of a creator folder.

        Args:
            folder_name: Creator folder name

        Returns:
            List of transcription results

        Raises:
            FileNotFoundError: If the folder has no transcription batch
            ValueError: If the batch file is malformed
        """
        file_path = str(self.creator_folder(folder_name) / TRANSCRIPTIONS_FILE)

        cache_entry = self._cache.get(file_path)
        if cache_entry and self._is_cache_valid(cache_entry):
            cache_entry.last_accessed = datetime.now()
            logger.info(f"Using in-memory cache for {folder_name}")
            return list(cache_entry.data)

        logger.info(f"Parsing transcription batch from: {file_path}")
        results = TranscriptionBatchParser(file_path).parse_transcription_results()

        now = datetime.now()
        self._cache[file_path] = DataCacheEntry(
            data=results,
            file_path=file_path,
            file_hash=self._get_file_hash(file_path),
            last_updated=now,
            last_accessed=now
        )
        return list(results)

    def save_dataset(self, folder_name: str, dataset: TrainingDataset,
                     export_format: str = FORMAT_JSONL, include_metadata: Optional[bool] = None) -> str:
        """
        Export a dataset into a creator folder.

        Returns:
            Path of the written file
        """
        download = self.exporter.create_downloadable_content(dataset, export_format, include_metadata)
        file_path = self.exporter.write_download(download, str(self.creator_folder(folder_name) / download.filename))
        logger.info(f"Saved {len(dataset.examples)} examples to {file_path}")
        return file_path

    def list_creator_folders(self) -> List[str]:
        """Creator folders that hold a transcription batch, sorted by name."""
        return sorted(
            folder.name for folder in self.data_dir.iterdir()
            if folder.is_dir() and (folder / TRANSCRIPTIONS_FILE).exists()
        )

    def clear_cache(self):
        """Clear all cached batches."""
        self._cache = {}
        logger.info("All caches cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get statistics about cached data.

        Returns:
            Dictionary containing cache statistics
        """
        return {
            'entries': len(self._cache),
            'files': {
                path: {
                    'last_updated': entry.last_updated.isoformat(),
                    'last_accessed': entry.last_accessed.isoformat(),
                    'results': len(entry.data)
                }
                for path, entry in self._cache.items()
            },
            'data_dir': str(self.data_dir)
        }
