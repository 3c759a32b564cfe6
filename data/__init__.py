# Data layer for the training data pipeline

from .parsers import TranscriptionBatchParser
from .exporters import DatasetExporter, DownloadableContent
from .manager import DataManager, generate_creator_folder_name

__all__ = [
    'TranscriptionBatchParser',
    'DatasetExporter',
    'DownloadableContent',
    'DataManager',
    'generate_creator_folder_name',
]
