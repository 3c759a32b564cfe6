"""
Transcription result construction and request validation.

Turns raw transcription-service responses into TranscriptionResult records,
running word assignment validation as a side check that never blocks a result.
"""

import logging
import uuid
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from models.data_models import (
    TranscriptionJobResult,
    TranscriptionMetadata,
    TranscriptionResult,
    VideoDescriptor,
)
from .response_parser import ResponseParser
from .word_assignment_validator import WordAssignmentValidator

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


SUPPORTED_PLATFORMS = ("tiktok", "instagram")


class TranscriptionProcessor:
    """
    Builds transcription results from collaborator responses.

    Word assignment problems are logged and the result is kept as-is.
    """

    def __init__(self, parser: Optional[ResponseParser] = None,
                 validator: Optional[WordAssignmentValidator] = None,
                 max_videos_per_request: int = 50):
        self.parser = parser or ResponseParser()
        self.validator = validator or WordAssignmentValidator()
        self.max_videos_per_request = max_videos_per_request

    def create_result(self, video: VideoDescriptor, response_text: str, success: bool = True,
                      error: Optional[str] = None, processing_time: int = 0,
                      extract_marketing_segments: bool = True) -> TranscriptionResult:
        """
        Create a transcription result from a raw response.

        Args:
            video: The transcribed video
            response_text: Raw text returned by the transcription service
            success: Whether the service call succeeded
            error: Error message for failed calls
            processing_time: Milliseconds spent on the video
            extract_marketing_segments: Whether segmentation was requested

        Returns:
            TranscriptionResult; failed calls carry the error and no segments
        """
        result = TranscriptionResult(
            video_id=video.id,
            video_url=video.video_url or "",
            platform=video.platform,
            transcription="",
            success=success,
            processing_time=processing_time or 0,
            metadata=TranscriptionMetadata(
                view_count=video.view_count,
                like_count=video.like_count,
                quality=video.quality,
            ),
        )

        if error:
            result.success = False
            result.error = error
            return result

        if success and response_text and extract_marketing_segments:
            parsed = self.parser.parse(response_text, marketing_requested=True)
            result.transcription = parsed.transcription
            result.marketing_segments = parsed.marketing_segments
            result.word_assignments = parsed.word_assignments

            if parsed.word_assignments is not None and parsed.marketing_segments is not None:
                report = self.validator.validate(
                    parsed.transcription, parsed.marketing_segments, parsed.word_assignments
                )
                if report.valid:
                    logger.info(f"Word assignment validation passed for video {video.id}")
                else:
                    logger.warning(f"Word assignment validation failed for video {video.id}: {report.errors}")
        else:
            result.transcription = self.parser.parse(response_text, marketing_requested=False).transcription

        return result

    def create_failed_result(self, video: VideoDescriptor, error: str,
                             processing_time: int = 0) -> TranscriptionResult:
        return self.create_result(video, "", success=False, error=error, processing_time=processing_time)

    def validate_request(self, videos: Optional[Sequence[VideoDescriptor]]) -> Tuple[bool, List[str]]:
        """
        Validate a batch of videos before transcription.

        Args:
            videos: Videos requested for transcription

        Returns:
            Tuple of (valid, errors)
        """
        errors: List[str] = []

        if videos is None:
            return False, ["Videos array is required"]

        if len(videos) == 0:
            errors.append("At least one video is required")

        if len(videos) > self.max_videos_per_request:
            errors.append(f"Maximum {self.max_videos_per_request} videos per request")

        for index, video in enumerate(videos):
            if not video.video_url:
                errors.append(f"Video {index}: URL is required")
            elif not self._is_valid_url(video.video_url):
                errors.append(f"Video {index}: Invalid URL format")

            if not video.id:
                errors.append(f"Video {index}: ID is required")

            if video.platform not in SUPPORTED_PLATFORMS:
                errors.append(f"Video {index}: Platform must be 'tiktok' or 'instagram'")

        return not errors, errors

    def _is_valid_url(self, url: str) -> bool:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    def summarize_job(self, results: Sequence[TranscriptionResult], processing_time: int,
                      job_id: Optional[str] = None) -> TranscriptionJobResult:
        """Aggregate per-video results into a job result."""
        successful = sum(1 for result in results if result.success)
        job = TranscriptionJobResult(
            job_id=job_id or f"job_{uuid.uuid4().hex[:12]}",
            total_videos=len(results),
            successful_transcriptions=successful,
            failed_transcriptions=len(results) - successful,
            results=list(results),
            processing_time=processing_time,
        )
        logger.info(
            f"Transcription job {job.job_id}: {successful}/{len(results)} videos succeeded "
            f"in {processing_time}ms"
        )
        return job
