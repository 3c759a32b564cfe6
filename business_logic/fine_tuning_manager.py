"""
Fine-tuning manager for short-form script datasets.

Converts an assembled TrainingDataset into OpenAI chat fine-tuning files,
uploads them and manages the resulting fine-tuning jobs.
"""

import json
import logging
import os
import random
import re
from datetime import datetime
from typing import Dict, List, Optional, Any, Sequence, Tuple
import openai
from openai import OpenAI

from models.data_models import FineTuningJob, TrainingDataset, TrainingExample
from config.settings import config_manager

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


SYSTEM_MESSAGE = (
    "You are an expert short-form video scriptwriter. Every script you write follows the "
    "Hook-Bridge-Golden Nugget-WTA structure: a hook that stops the scroll, a bridge that earns "
    "attention, a golden nugget of real value and a clear reason to act now."
)

# status -> (progress percentage, description)
JOB_STATUSES = {
    'validating_files': (10, 'Validating uploaded training files'),
    'queued': (20, 'Job queued and waiting to start'),
    'running': (50, 'Training in progress'),
    'succeeded': (100, 'Training completed successfully'),
    'failed': (0, 'Training failed'),
    'cancelled': (0, 'Training was cancelled'),
}
TERMINAL_STATUSES = ('succeeded', 'failed', 'cancelled')

# Training events read "Step 50/100: ..." or "Step 50 of 100"
STEP_PATTERN = re.compile(r'\bstep\s+(\d+)\s*(?:/|of)\s*(\d+)', re.IGNORECASE)

API_ERROR_PREFIXES = (
    (openai.AuthenticationError, "Authentication failed"),
    (openai.RateLimitError, "Rate limit exceeded"),
)


class FineTuningManager:
    """
    Manages OpenAI fine-tuning for script datasets.

    Exports datasets as chat-format JSONL, uploads training files and tracks
    job records locally in ``fine_tuning_jobs.json``.
    """

    def __init__(self, skip_openai_init: bool = False, training_data_dir: Optional[str] = None):
        """
        Initialize the Fine-Tuning Manager.

        Args:
            skip_openai_init: Skip OpenAI client initialization (for testing)
            training_data_dir: Directory for exported files and job records
        """
        self.client = None
        if not skip_openai_init:
            self._initialize_openai_client()

        self.training_data_dir = training_data_dir or config_manager.get_training_data_dir()
        self.openai_format_file = os.path.join(self.training_data_dir, "openai_training_data.jsonl")
        self.validation_format_file = os.path.join(self.training_data_dir, "openai_validation_data.jsonl")
        self.jobs_file = os.path.join(self.training_data_dir, "fine_tuning_jobs.json")

        # Fine-tuning configuration
        self.min_training_examples = 10  # OpenAI minimum
        self.max_content_length = 16000  # Conservative limit for token count
        self.validation_split = 0.1
        self.split_seed = 42

        os.makedirs(self.training_data_dir, exist_ok=True)

    def _initialize_openai_client(self):
        """Initialize OpenAI client with API key."""
        try:
            api_key = config_manager.get_openai_api_key()
            self.client = OpenAI(api_key=api_key)
            logger.info("OpenAI client initialized for fine-tuning manager")
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI client: {str(e)}")
            raise

    def convert_to_openai_format(self, example: TrainingExample) -> Dict[str, Any]:
        """
        Convert a training example to OpenAI chat fine-tuning format.

        Args:
            example: Example to convert

        Returns:
            Dictionary with a system, user and assistant message
        """
        return {
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": example.input},
                {"role": "assistant", "content": example.output}
            ]
        }

    def _validate_openai_format(self, example: Dict[str, Any]) -> bool:
        """
        Validate an example against OpenAI chat fine-tuning requirements.

        Args:
            example: Example in OpenAI format

        Returns:
            True if the example is usable, False otherwise
        """
        messages = example.get('messages')
        if not isinstance(messages, list) or len(messages) != 3:
            return False

        expected_roles = ['system', 'user', 'assistant']
        for message, role in zip(messages, expected_roles):
            if not isinstance(message, dict) or message.get('role') != role:
                return False
            content = message.get('content')
            if not isinstance(content, str) or len(content.strip()) < 10:
                return False

        if sum(len(message['content']) for message in messages) > self.max_content_length:
            logger.warning("Example content too long, may exceed token limits")
            return False

        return True

    def split_examples(self, examples: Sequence[Dict[str, Any]],
                       validation_split: float) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Split examples into training and validation sets with a seeded shuffle.

        The training set never drops below the OpenAI minimum.
        """
        if validation_split <= 0:
            return list(examples), []

        shuffled = list(examples)
        random.Random(self.split_seed).shuffle(shuffled)

        validation_count = int(len(shuffled) * validation_split)
        validation_count = min(validation_count, max(len(shuffled) - self.min_training_examples, 0))
        if validation_count == 0:
            return list(examples), []

        return shuffled[validation_count:], shuffled[:validation_count]

    def _write_jsonl(self, file_path: str, examples: Sequence[Dict[str, Any]]):
        with open(file_path, 'w', encoding='utf-8') as f:
            for example in examples:
                f.write(json.dumps(example, ensure_ascii=False) + '\n')

    def export_dataset_for_openai(self, dataset: TrainingDataset,
                                  validation_split: Optional[float] = None) -> Tuple[bool, str, Optional[str]]:
        """
        Export a dataset in OpenAI fine-tuning format (JSONL).

        Args:
            dataset: Assembled dataset
            validation_split: Share of examples held out; instance default if None

        Returns:
            Tuple of (success, training file path or error message, validation file path or None)
        """
        try:
            if validation_split is None:
                validation_split = self.validation_split

            openai_examples = []
            for example in dataset.examples:
                converted = self.convert_to_openai_format(example)
                if self._validate_openai_format(converted):
                    openai_examples.append(converted)

            skipped = len(dataset.examples) - len(openai_examples)
            if skipped:
                logger.warning(f"Skipped {skipped} examples that failed OpenAI format validation")

            if len(openai_examples) < self.min_training_examples:
                return False, (
                    f"Insufficient valid examples after conversion: "
                    f"{len(openai_examples)} < {self.min_training_examples}"
                ), None

            training, validation = self.split_examples(openai_examples, validation_split)

            self._write_jsonl(self.openai_format_file, training)
            validation_path = None
            if validation:
                self._write_jsonl(self.validation_format_file, validation)
                validation_path = self.validation_format_file

            logger.info(
                f"Exported {len(training)} training and {len(validation)} validation examples "
                f"to {self.training_data_dir}"
            )
            return True, self.openai_format_file, validation_path

        except OSError as e:
            error_msg = f"Error exporting training data: {str(e)}"
            logger.error(error_msg)
            return False, error_msg, None

    def _upload_file(self, file_path: str) -> str:
        logger.info(f"Uploading file: {file_path}")
        with open(file_path, 'rb') as f:
            uploaded = self.client.files.create(file=f, purpose='fine-tune')
        logger.info(f"File uploaded with ID: {uploaded.id}")
        return uploaded.id

    def initiate_fine_tuning_job(self, dataset: Optional[TrainingDataset] = None,
                                 model_name: Optional[str] = None,
                                 training_file_path: Optional[str] = None,
                                 validation_file_path: Optional[str] = None,
                                 hyperparameters: Optional[Dict[str, Any]] = None,
                                 suffix: Optional[str] = None) -> Tuple[bool, str]:
        """
        Initiate a fine-tuning job with OpenAI.

        Args:
            dataset: Dataset to export when no training file is given
            model_name: Base model; FINE_TUNING_BASE_MODEL setting if None
            training_file_path: Existing training JSONL file
            validation_file_path: Existing validation JSONL file (optional)
            hyperparameters: Custom hyperparameters for fine-tuning
            suffix: Suffix for the fine-tuned model name

        Returns:
            Tuple of (success, job_id or error_message)
        """
        try:
            if not self.client:
                return False, "OpenAI client not initialized"

            model_name = model_name or config_manager.get_fine_tuning_base_model()

            if not training_file_path:
                if dataset is None:
                    return False, "Either a dataset or a training file is required"
                success, path_or_error, exported_validation = self.export_dataset_for_openai(dataset)
                if not success:
                    return False, f"Failed to export training data: {path_or_error}"
                training_file_path = path_or_error
                validation_file_path = validation_file_path or exported_validation

            training_file_id = self._upload_file(training_file_path)

            validation_file_id = None
            if validation_file_path and os.path.exists(validation_file_path):
                validation_file_id = self._upload_file(validation_file_path)

            fine_tune_params = {
                'training_file': training_file_id,
                'model': model_name
            }
            if validation_file_id:
                fine_tune_params['validation_file'] = validation_file_id
            if hyperparameters:
                fine_tune_params['hyperparameters'] = hyperparameters
            if suffix:
                fine_tune_params['suffix'] = suffix

            logger.info("Creating fine-tuning job...")
            fine_tune_job = self.client.fine_tuning.jobs.create(**fine_tune_params)

            self._save_fine_tuning_job(FineTuningJob(
                job_id=fine_tune_job.id,
                model_name=model_name,
                training_file_id=training_file_id,
                status=fine_tune_job.status,
                created_at=datetime.now(),
                completed_at=None,
                fine_tuned_model=None,
                validation_file_id=validation_file_id
            ))

            logger.info(f"Fine-tuning job created with ID: {fine_tune_job.id}")
            return True, fine_tune_job.id

        except openai.APIError as e:
            prefix = next((text for error_type, text in API_ERROR_PREFIXES if isinstance(e, error_type)),
                          "OpenAI API error")
            error_msg = f"{prefix}: {str(e)}"
            logger.error(error_msg)
            return False, error_msg

        except OSError as e:
            error_msg = f"Error reading training file: {str(e)}"
            logger.error(error_msg)
            return False, error_msg

    def monitor_fine_tuning_job(self, job_id: str) -> Dict[str, Any]:
        """
        Monitor the status and progress of a fine-tuning job.

        Args:
            job_id: The fine-tuning job ID

        Returns:
            Dictionary with job status and progress information, or an 'error' key
        """
        if not self.client:
            return {'error': 'OpenAI client not initialized'}

        try:
            job = self.client.fine_tuning.jobs.retrieve(job_id)
        except openai.NotFoundError:
            return {'error': f'Fine-tuning job {job_id} not found'}
        except openai.APIError as e:
            error_msg = f"Error monitoring fine-tuning job: {str(e)}"
            logger.error(error_msg)
            return {'error': error_msg}

        self._update_fine_tuning_job_status(job_id, job.status, job.fine_tuned_model)

        events = []
        try:
            events_response = self.client.fine_tuning.jobs.list_events(job_id, limit=10)
            events = [
                {
                    'timestamp': event.created_at,
                    'level': event.level,
                    'message': event.message
                }
                for event in events_response.data
            ]
        except openai.APIError as e:
            logger.warning(f"Could not retrieve job events: {str(e)}")

        return {
            'job_id': job_id,
            'status': job.status,
            'model': job.model,
            'created_at': job.created_at,
            'finished_at': job.finished_at,
            'fine_tuned_model': job.fine_tuned_model,
            'training_file': job.training_file,
            'validation_file': job.validation_file,
            'trained_tokens': job.trained_tokens,
            'progress_estimate': self._estimate_job_progress(job.status, events),
            'recent_events': events,
            'error': job.error
        }

    def _estimate_job_progress(self, status: str, events: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Estimate job progress from its status, refined by the latest training step
        while the job is running.
        """
        percentage, description = JOB_STATUSES.get(status, (0, f'Unknown status: {status}'))

        if status == 'running':
            for event in events:
                match = STEP_PATTERN.search(event.get('message', ''))
                if match and int(match.group(2)) > 0:
                    step_progress = int(match.group(1)) / int(match.group(2)) * 100
                    percentage = 20 + step_progress * 0.7
                    break

        return {
            'percentage': min(percentage, 100),
            'status_description': description
        }

    def list_fine_tuning_jobs(self, limit: int = 10) -> List[Dict[str, Any]]:
        """
        List recent fine-tuning jobs.

        Args:
            limit: Maximum number of jobs to return

        Returns:
            List of job information dictionaries
        """
        if not self.client:
            return []

        try:
            jobs_response = self.client.fine_tuning.jobs.list(limit=limit)
        except openai.APIError as e:
            logger.error(f"Error listing fine-tuning jobs: {str(e)}")
            return []

        return [
            {
                'job_id': job.id,
                'status': job.status,
                'model': job.model,
                'created_at': job.created_at,
                'finished_at': job.finished_at,
                'fine_tuned_model': job.fine_tuned_model,
                'trained_tokens': job.trained_tokens
            }
            for job in jobs_response.data
        ]

    def cancel_fine_tuning_job(self, job_id: str) -> Tuple[bool, str]:
        """
        Cancel a running fine-tuning job.

        Args:
            job_id: The fine-tuning job ID to cancel

        Returns:
            Tuple of (success, message)
        """
        if not self.client:
            return False, "OpenAI client not initialized"

        try:
            cancelled_job = self.client.fine_tuning.jobs.cancel(job_id)
        except openai.NotFoundError:
            return False, f"Fine-tuning job {job_id} not found"
        except openai.APIError as e:
            error_msg = f"Error cancelling fine-tuning job: {str(e)}"
            logger.error(error_msg)
            return False, error_msg

        self._update_fine_tuning_job_status(job_id, cancelled_job.status)
        logger.info(f"Fine-tuning job {job_id} cancelled")
        return True, f"Job {job_id} cancelled successfully"

    def get_fine_tuned_model(self, job_id: str) -> Tuple[bool, str]:
        """
        Get the model produced by a completed job.

        Args:
            job_id: The fine-tuning job ID

        Returns:
            Tuple of (success, model_name or error_message)
        """
        job_status = self.monitor_fine_tuning_job(job_id)

        if 'job_id' not in job_status:
            return False, job_status['error']

        if job_status['status'] != 'succeeded':
            return False, f"Job not completed successfully. Status: {job_status['status']}"

        fine_tuned_model = job_status.get('fine_tuned_model')
        if not fine_tuned_model:
            return False, "No fine-tuned model available from completed job"

        logger.info(f"Fine-tuned model {fine_tuned_model} ready for use")
        return True, fine_tuned_model

    def _write_jobs(self, jobs: List[Dict[str, Any]]) -> bool:
        try:
            with open(self.jobs_file, 'w', encoding='utf-8') as f:
                json.dump(jobs, f, indent=2, ensure_ascii=False)
            return True
        except OSError as e:
            logger.error(f"Error writing fine-tuning job records: {str(e)}")
            return False

    def _save_fine_tuning_job(self, job_info: FineTuningJob):
        """Append a job record to local storage."""
        jobs = self.get_stored_fine_tuning_jobs()
        jobs.append(job_info.to_dict())
        if self._write_jobs(jobs):
            logger.info(f"Saved fine-tuning job info: {job_info.job_id}")

    def _update_fine_tuning_job_status(self, job_id: str, status: str,
                                       fine_tuned_model: Optional[str] = None):
        jobs = self.get_stored_fine_tuning_jobs()
        job = next((job for job in jobs if job['job_id'] == job_id), None)
        if job is None:
            return

        job['status'] = status
        if fine_tuned_model:
            job['fine_tuned_model'] = fine_tuned_model
        if status in TERMINAL_STATUSES and not job.get('completed_at'):
            job['completed_at'] = datetime.now().isoformat()
        self._write_jobs(jobs)

    def get_stored_fine_tuning_jobs(self) -> List[Dict[str, Any]]:
        """Get locally stored fine-tuning job information."""
        if not os.path.exists(self.jobs_file):
            return []

        try:
            with open(self.jobs_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error getting stored fine-tuning jobs: {str(e)}")
            return []
