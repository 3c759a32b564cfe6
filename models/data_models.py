"""
Core data models for the short-form script training data pipeline.

Attribute names are snake_case; ``to_dict``/``from_dict`` map to the camelCase
wire format used by the transcription service and by exported dataset files.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any, Tuple


SEGMENT_NAMES = ("Hook", "Bridge", "Golden Nugget", "WTA")

SOURCE_ORIGINAL = "original"
SOURCE_SYNTHETIC = "synthetic"

_CATEGORY_ALIASES = {
    "hook": "Hook",
    "bridge": "Bridge",
    "golden nugget": "Golden Nugget",
    "goldennugget": "Golden Nugget",
    "golden_nugget": "Golden Nugget",
    "nugget": "Golden Nugget",
    "wta": "WTA",
}


def normalize_category(category: Any) -> str:
    """Map a segment label onto its canonical name, leaving unknown labels untouched."""
    text = str(category).strip() if category is not None else ""
    return _CATEGORY_ALIASES.get(text.lower(), text)


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class MarketingSegments:
    """The four rhetorical segments of one short-form script."""
    hook: str
    bridge: str
    golden_nugget: str
    wta: str

    def as_tuple(self) -> Tuple[str, str, str, str]:
        """Segments in their fixed script order."""
        return (self.hook, self.bridge, self.golden_nugget, self.wta)

    def full_script(self) -> str:
        """Join the segments in script order with single spaces."""
        return " ".join(self.as_tuple()).strip()

    def to_dict(self) -> Dict[str, str]:
        return dict(zip(SEGMENT_NAMES, self.as_tuple()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketingSegments":
        """
        Build segments from a wire-format mapping.

        Accepts ``Golden Nugget``, ``GoldenNugget`` and ``golden_nugget`` for the
        third segment. Missing segments become empty strings.
        """
        def text(*keys: str) -> str:
            value = _first_present(data, *keys)
            return "" if value is None else str(value)

        return cls(
            hook=text("Hook", "hook"),
            bridge=text("Bridge", "bridge"),
            golden_nugget=text("Golden Nugget", "GoldenNugget", "golden_nugget", "goldenNugget"),
            wta=text("WTA", "wta"),
        )


@dataclass(frozen=True)
class WordAssignment:
    """One transcript word tied to the segment it belongs to."""
    word: str
    category: str
    position: int

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "category": self.category, "position": self.position}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordAssignment":
        return cls(
            word=str(data.get("word", "")),
            category=normalize_category(data.get("category")),
            position=int(data.get("position", 0)),
        )


@dataclass
class ScriptTemplate:
    """Placeholder-bearing version of a script, produced by template generation."""
    hook: str
    bridge: str
    nugget: str
    wta: str

    def to_dict(self) -> Dict[str, str]:
        return {"hook": self.hook, "bridge": self.bridge, "nugget": self.nugget, "wta": self.wta}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScriptTemplate":
        return cls(
            hook=str(data.get("hook", "")),
            bridge=str(data.get("bridge", "")),
            nugget=str(data.get("nugget", "")),
            wta=str(data.get("wta", "")),
        )


@dataclass
class TranscriptionMetadata:
    """Engagement and media details carried alongside a transcription."""
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    quality: Optional[str] = None
    file_size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "viewCount": self.view_count,
            "likeCount": self.like_count,
            "quality": self.quality,
            "fileSize": self.file_size,
        }
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionMetadata":
        quality = data.get("quality")
        return cls(
            view_count=_optional_int(_first_present(data, "viewCount", "view_count", "views")),
            like_count=_optional_int(_first_present(data, "likeCount", "like_count", "likes")),
            quality=str(quality) if quality is not None else None,
            file_size=_optional_int(_first_present(data, "fileSize", "file_size")),
        )


@dataclass
class VideoDescriptor:
    """A video handed over by the discovery service."""
    id: str
    platform: str
    video_url: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    quality: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoDescriptor":
        url = _first_present(data, "url", "video_url", "videoUrl")
        quality = data.get("quality")
        return cls(
            id=str(data.get("id", "")),
            platform=str(data.get("platform", "")),
            video_url=str(url) if url is not None else None,
            view_count=_optional_int(_first_present(data, "viewCount", "view_count", "views")),
            like_count=_optional_int(_first_present(data, "likeCount", "like_count", "likes")),
            quality=str(quality) if quality is not None else None,
        )


@dataclass
class TranscriptionResult:
    """Outcome of transcribing and segmenting one video."""
    video_id: str
    video_url: str
    platform: str
    transcription: str
    success: bool
    marketing_segments: Optional[MarketingSegments] = None
    word_assignments: Optional[List[WordAssignment]] = None
    script_template: Optional[ScriptTemplate] = None
    processing_time: int = 0
    error: Optional[str] = None
    metadata: Optional[TranscriptionMetadata] = None

    @property
    def view_count(self) -> Optional[int]:
        return self.metadata.view_count if self.metadata else None

    @property
    def like_count(self) -> Optional[int]:
        return self.metadata.like_count if self.metadata else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "videoId": self.video_id,
            "videoUrl": self.video_url,
            "platform": self.platform,
            "transcription": self.transcription,
            "success": self.success,
            "processingTime": self.processing_time,
        }
        if self.marketing_segments is not None:
            data["marketingSegments"] = self.marketing_segments.to_dict()
        if self.word_assignments is not None:
            data["wordAssignments"] = [assignment.to_dict() for assignment in self.word_assignments]
        if self.script_template is not None:
            data["scriptTemplate"] = self.script_template.to_dict()
        if self.error is not None:
            data["error"] = self.error
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionResult":
        segments = data.get("marketingSegments")
        assignments = data.get("wordAssignments")
        template = data.get("scriptTemplate")
        metadata = data.get("metadata")
        error = data.get("error")
        return cls(
            video_id=str(_first_present(data, "videoId", "video_id") or ""),
            video_url=str(_first_present(data, "videoUrl", "video_url") or ""),
            platform=str(data.get("platform", "")),
            transcription=str(data.get("transcription", "")),
            success=bool(data.get("success", False)),
            marketing_segments=MarketingSegments.from_dict(segments) if isinstance(segments, dict) else None,
            word_assignments=(
                [WordAssignment.from_dict(item) for item in assignments if isinstance(item, dict)]
                if isinstance(assignments, list) else None
            ),
            script_template=ScriptTemplate.from_dict(template) if isinstance(template, dict) else None,
            processing_time=_optional_int(_first_present(data, "processingTime", "processing_time")) or 0,
            error=str(error) if error is not None else None,
            metadata=TranscriptionMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
        )


@dataclass
class TranscriptionJobResult:
    """Aggregate outcome of one batch transcription job."""
    job_id: str
    total_videos: int
    successful_transcriptions: int
    failed_transcriptions: int
    results: List[TranscriptionResult]
    processing_time: int


@dataclass(frozen=True)
class ParsedResponse:
    """Structured content recovered from a raw model response."""
    transcription: str
    marketing_segments: Optional[MarketingSegments] = None
    word_assignments: Optional[List[WordAssignment]] = None


@dataclass
class WordAssignmentReport:
    """Diagnostic result of checking word assignments against a transcript."""
    valid: bool
    errors: List[str]
    category_counts: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ExampleMetadata:
    """Provenance attached to a training example."""
    source: str
    video_id: Optional[str] = None
    platform: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    topic: Optional[str] = None
    template_used: Optional[bool] = None
    processing_time: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "source": self.source,
            "videoId": self.video_id,
            "platform": self.platform,
            "viewCount": self.view_count,
            "likeCount": self.like_count,
            "topic": self.topic,
            "templateUsed": self.template_used,
            "processingTime": self.processing_time,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class TrainingExample:
    """One (input prompt, output script) pair."""
    input: str
    output: str
    metadata: Optional[ExampleMetadata] = None

    def to_dict(self, include_metadata: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {"input": self.input, "output": self.output}
        if include_metadata and self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data


@dataclass(frozen=True)
class SyntheticScript:
    """A script generated for a topic from a template."""
    topic: str
    script: MarketingSegments

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyntheticScript":
        return cls(
            topic=str(data.get("topic", "")),
            script=MarketingSegments.from_dict(data.get("script") or {}),
        )


@dataclass(frozen=True)
class DatasetSummary:
    """Counts and distinct values derived from a dataset's examples."""
    total_examples: int
    original_examples: int
    synthetic_examples: int
    platforms: Tuple[str, ...]
    topics: Tuple[str, ...]
    avg_view_count: Optional[int] = None
    avg_like_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "totalExamples": self.total_examples,
            "originalExamples": self.original_examples,
            "syntheticExamples": self.synthetic_examples,
            "platforms": list(self.platforms),
            "topics": list(self.topics),
        }
        if self.avg_view_count is not None:
            data["avgViewCount"] = self.avg_view_count
        if self.avg_like_count is not None:
            data["avgLikeCount"] = self.avg_like_count
        return data


@dataclass(frozen=True)
class DatasetMetadata:
    """Creation stamp and description of a dataset."""
    created_at: datetime
    description: str
    creator: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "createdAt": self.created_at.isoformat(),
            "description": self.description,
        }
        if self.creator is not None:
            data["creator"] = self.creator
        return data


@dataclass(frozen=True)
class TrainingDataset:
    """Assembled fine-tuning dataset."""
    examples: Tuple[TrainingExample, ...]
    summary: DatasetSummary
    metadata: DatasetMetadata

    def to_dict(self, include_metadata: bool = True) -> Dict[str, Any]:
        return {
            "examples": [example.to_dict(include_metadata) for example in self.examples],
            "summary": self.summary.to_dict(),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class DatasetStats:
    """Length statistics over a dataset's inputs and outputs."""
    avg_input_length: int = 0
    avg_output_length: int = 0
    min_input_length: int = 0
    max_input_length: int = 0
    min_output_length: int = 0
    max_output_length: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "avgInputLength": self.avg_input_length,
            "avgOutputLength": self.avg_output_length,
            "minInputLength": self.min_input_length,
            "maxInputLength": self.max_input_length,
            "minOutputLength": self.min_output_length,
            "maxOutputLength": self.max_output_length,
        }


@dataclass
class ValidationReport:
    """Fine-tuning readiness judgement for a dataset."""
    valid: bool
    errors: List[str]
    warnings: List[str]
    stats: DatasetStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "stats": self.stats.to_dict(),
        }


@dataclass
class FineTuningJob:
    """Fine-tuning job tracking."""
    job_id: str
    model_name: str
    training_file_id: str
    status: str
    created_at: datetime
    completed_at: Optional[datetime]
    fine_tuned_model: Optional[str]
    validation_file_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'job_id': self.job_id,
            'model_name': self.model_name,
            'training_file_id': self.training_file_id,
            'validation_file_id': self.validation_file_id,
            'status': self.status,
            'created_at': self.created_at.isoformat(),
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'fine_tuned_model': self.fine_tuned_model,
        }
