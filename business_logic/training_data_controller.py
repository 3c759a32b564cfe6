"""
Training Data Controller - orchestrates dataset generation, validation and export.

This module ties the parsing, assembly, validation and export components
together behind one interface used by the demo script and batch runs.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from models.data_models import (
    ScriptTemplate,
    SyntheticScript,
    TrainingDataset,
    TranscriptionResult,
    ValidationReport,
)
from config.settings import config_manager
from data.exporters import DatasetExporter, DownloadableContent, FORMAT_JSONL
from data.manager import DataManager
from data.parsers import TranscriptionBatchParser
from .dataset_assembler import AssemblyOptions, DatasetAssembler
from .dataset_validator import DatasetValidator
from .error_handler import error_handler
from .script_generator import DEFAULT_SYNTHETIC_TOPICS, ScriptGenerator

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TrainingDataController:
    """
    Main controller for the training data workflow.

    Assembles datasets from transcription results and synthetic scripts,
    validates them and prepares exports. The validation report is returned to
    the caller; an invalid dataset is still exported if the caller asks.
    """

    def __init__(self, data_manager: Optional[DataManager] = None,
                 script_generator: Optional[ScriptGenerator] = None):
        """
        Initialize the training data controller.

        Args:
            data_manager: Optional DataManager instance
            script_generator: Optional ScriptGenerator; created on first use if None
        """
        self.data_manager = data_manager
        self.script_generator = script_generator
        self.assembler = DatasetAssembler()
        self.validator = DatasetValidator()
        self.exporter = DatasetExporter()

        logger.info("TrainingDataController initialized")

    def default_options(self) -> AssemblyOptions:
        """Assembly options seeded from configuration."""
        config = config_manager.load_config()
        return AssemblyOptions(
            min_view_count=config.min_view_count,
            max_examples_per_video=config.max_examples_per_video
        )

    def generate_dataset(self, transcription_results: Sequence[TranscriptionResult],
                         synthetic_scripts: Sequence[SyntheticScript] = (),
                         options: Optional[AssemblyOptions] = None,
                         creator: Optional[str] = None) -> Tuple[TrainingDataset, ValidationReport]:
        """
        Assemble and validate a dataset.

        Args:
            transcription_results: Results from the transcription service
            synthetic_scripts: Pre-generated synthetic scripts
            options: Assembly options; configuration defaults if None
            creator: Creator handle recorded in the dataset metadata

        Returns:
            Tuple of (dataset, validation report)
        """
        dataset = self.assembler.assemble(
            transcription_results, synthetic_scripts, options or self.default_options(), creator
        )
        report = self.validator.validate(dataset)

        for warning in report.warnings:
            logger.warning(f"Dataset warning: {warning}")

        return dataset, report

    def generate_synthetic_scripts(self, transcription_results: Sequence[TranscriptionResult],
                                   topics: Sequence[str] = DEFAULT_SYNTHETIC_TOPICS,
                                   max_topics_per_template: int = 10) -> Tuple[List[ScriptTemplate], List[SyntheticScript]]:
        """
        Derive templates from successful results and fill them with new topics.

        Args:
            transcription_results: Results from the transcription service
            topics: Candidate topics for synthetic scripts
            max_topics_per_template: Number of topics used per template

        Returns:
            Tuple of (templates, synthetic scripts)
        """
        if self.script_generator is None:
            self.script_generator = ScriptGenerator()

        templates = []
        for result in self.assembler.filter_results(transcription_results):
            generated = self.script_generator.generate_templates_from_segments(result.marketing_segments)
            if generated.success:
                templates.append(generated.template)
            else:
                logger.warning(f"No template for video {result.video_id}: {generated.error}")

        scripts = self.script_generator.generate_synthetic_scripts(templates, topics, max_topics_per_template)
        return templates, scripts

    def prepare_download(self, dataset: TrainingDataset, export_format: str = FORMAT_JSONL,
                         include_metadata: Optional[bool] = None) -> DownloadableContent:
        """Serialize a dataset for download."""
        return self.exporter.create_downloadable_content(dataset, export_format, include_metadata)

    def process_batch_file(self, file_path: str, options: Optional[AssemblyOptions] = None,
                           creator: Optional[str] = None) -> Tuple[bool, Optional[TrainingDataset], Optional[ValidationReport], str]:
        """
        Build a dataset from a JSON batch file.

        Args:
            file_path: Batch file with transcription results and synthetic scripts
            options: Assembly options
            creator: Creator handle recorded in the dataset metadata

        Returns:
            Tuple of (success, dataset, validation report, status message)
        """
        try:
            parser = TranscriptionBatchParser(file_path)
            results = parser.parse_transcription_results()
            scripts = parser.parse_synthetic_scripts()
        except (FileNotFoundError, ValueError) as e:
            error_info = error_handler.classify_error(e, "batch file parsing")
            error_handler.log_error(error_info, "Batch file")
            return False, None, None, error_info.user_message

        dataset, report = self.generate_dataset(results, scripts, options, creator)
        return True, dataset, report, dataset.metadata.description

    def process_creator_folder(self, folder_name: str, options: Optional[AssemblyOptions] = None,
                               export_format: str = FORMAT_JSONL) -> Tuple[bool, Optional[ValidationReport], str]:
        """
        Build a dataset from a stored creator folder and save the export beside it.

        Args:
            folder_name: Creator folder managed by the DataManager
            options: Assembly options
            export_format: "jsonl" or "json"

        Returns:
            Tuple of (success, validation report, exported file path or error message)
        """
        if self.data_manager is None:
            self.data_manager = DataManager()

        try:
            results = self.data_manager.load_transcription_results(folder_name)
        except (FileNotFoundError, ValueError) as e:
            error_info = error_handler.classify_error(e, "creator folder loading")
            error_handler.log_error(error_info, "Creator folder")
            return False, None, error_info.user_message

        dataset, report = self.generate_dataset(results, (), options, creator=folder_name)
        file_path = self.data_manager.save_dataset(folder_name, dataset, export_format)
        return True, report, file_path
