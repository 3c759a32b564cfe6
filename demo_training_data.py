#!/usr/bin/env python3
"""
Demo script for the training data pipeline.

This script demonstrates:
1. Parsing raw transcription responses, including malformed ones
2. Checking word assignments against their transcript
3. Assembling and validating a fine-tuning dataset
4. Exporting the dataset as JSONL and JSON
5. Converting the dataset to OpenAI fine-tuning format
"""

import json
import os
import sys
import tempfile

# Add the project root to the Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from business_logic.fine_tuning_manager import FineTuningManager
from business_logic.training_data_controller import TrainingDataController
from business_logic.transcription_processor import TranscriptionProcessor
from models.data_models import MarketingSegments, SyntheticScript, VideoDescriptor


SAMPLE_RESPONSES = [
    """Okay, I'm ready to analyze this video and provide the JSON output.
```json
{
  "transcription": "Stop doing crunches. Your core needs a real workout. Try dead bugs for three sets of ten. Follow for more fitness tips.",
  "marketingSegments": {
    "Hook": "Stop doing crunches.",
    "Bridge": "Your core needs a real workout.",
    "Golden Nugget": "Try dead bugs for three sets of ten.",
    "WTA": "Follow for more fitness tips."
  },
  "wordAssignments": [
    {"word": "Stop", "category": "Hook", "position": 1},
    {"word": "doing", "category": "Hook", "position": 2},
    {"word": "crunches.", "category": "Hook", "position": 3}
  ]
}
```
Note: the word assignments are abbreviated.""",
    """{"transcription": "Most founders waste money on ads. Here is the business growth trick nobody shares. Reinvest your first profits into retention. Save this for later.",
 "marketingSegments": {"Hook": "Most founders waste money on ads.", "Bridge": "Here is the business growth trick nobody shares.", "Golden Nugget": "Reinvest your first profits into retention.", "WTA": "Save this for later."},
 "wordAssignments": [{"word": "Most", "category": "Hook", "position": 1}, {"word": "founders" """,
    "Sorry, I could not process this video.",
]


def demo_parsing():
    """Parse sample responses into transcription results."""
    print("\n=== Parsing transcription responses ===")
    processor = TranscriptionProcessor()

    videos = [
        VideoDescriptor(id="v1", platform="tiktok", video_url="https://www.tiktok.com/@coach/video/1", view_count=1000, like_count=120),
        VideoDescriptor(id="v2", platform="tiktok", video_url="https://www.tiktok.com/@coach/video/2", view_count=500, like_count=40),
        VideoDescriptor(id="v3", platform="instagram", video_url="https://www.instagram.com/reel/3", view_count=80),
    ]

    valid, errors = processor.validate_request(videos)
    print(f"Request valid: {valid} {errors if errors else ''}")

    results = []
    for video, response in zip(videos, SAMPLE_RESPONSES):
        result = processor.create_result(video, response, success=True, processing_time=1200)
        results.append(result)
        print(f"- {video.id}: {result.transcription[:60]}...")
        if result.marketing_segments:
            print(f"  Hook: {result.marketing_segments.hook}")

    results.append(processor.create_failed_result(
        VideoDescriptor(id="v4", platform="tiktok", video_url="https://www.tiktok.com/@coach/video/4"),
        "Video download timed out"
    ))

    job = processor.summarize_job(results, processing_time=5000)
    print(f"Job {job.job_id}: {job.successful_transcriptions}/{job.total_videos} succeeded")
    return results


def demo_dataset(results):
    """Assemble, validate and export a dataset."""
    print("\n=== Assembling dataset ===")
    controller = TrainingDataController()

    synthetic = [
        SyntheticScript(
            topic="fitness motivation",
            script=MarketingSegments(
                hook="You are not lazy.",
                bridge="You just never found a workout you enjoy.",
                golden_nugget="Pick one activity and do it for ten minutes a day for two weeks.",
                wta="Comment your activity below."
            )
        )
    ]

    dataset, report = controller.generate_dataset(results, synthetic, creator="tiktok_coach")
    print(dataset.metadata.description)
    print(json.dumps(dataset.summary.to_dict(), indent=2))
    print(f"Valid: {report.valid}")
    for warning in report.warnings:
        print(f"  warning: {warning}")

    download = controller.prepare_download(dataset)
    print(f"\nDownload {download.filename} ({download.mime_type}):")
    print(download.content)
    return dataset


def demo_fine_tuning_export(dataset):
    """Show the OpenAI chat format without contacting the API."""
    print("\n=== OpenAI fine-tuning format ===")
    with tempfile.TemporaryDirectory() as temp_dir:
        manager = FineTuningManager(skip_openai_init=True, training_data_dir=temp_dir)
        example = manager.convert_to_openai_format(dataset.examples[0])
        print(json.dumps(example, indent=2))

        success, message, _ = manager.export_dataset_for_openai(dataset)
        print(f"Export ready: {success} ({message})")


def main():
    results = demo_parsing()
    dataset = demo_dataset(results)
    demo_fine_tuning_export(dataset)


if __name__ == "__main__":
    main()
