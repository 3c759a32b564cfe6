"""
Response parser for transcription and segmentation model output.

Model responses are expected to be a single JSON object holding the transcript,
the four marketing segments and optionally a word-by-word segment assignment.
In practice they arrive wrapped in chatter, code fences and trailing notes, or
with a broken word-assignment array. The parser tries an ordered chain of
extraction strategies and degrades to sentinel values instead of raising.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Pattern, Sequence

from models.data_models import (
    SEGMENT_NAMES,
    MarketingSegments,
    ParsedResponse,
    WordAssignment,
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


NOT_PRESENT = "Not Present"
PARSING_ERROR = "Parsing Error"
PARSE_FAILURE_TRANSCRIPT = "Parsing failed - unable to extract transcription"

DEFAULT_PREFIX_PATTERNS = tuple(re.compile(pattern, re.IGNORECASE) for pattern in (
    r"^.*?(?:Okay, I'm ready to analyze this video and provide the JSON output\.).*?(?:\n|$)",
    r"^.*?(?:I'm ready to analyze.*?and provide.*?JSON.*?output).*?(?:\n|$)",
    r"^.*?(?:I'm ready to analyze|Here's the analysis|Let me analyze).*?(?:\n|$)",
    r"^.*?(?:```json|```)",
    r"^.*?(?:Okay,|Sure,|Here's|Let me).*?(?:\n|$)",
    r"^.*?(?:Based on|Looking at|After analyzing).*?(?:\n|$)",
    r"^.*?(?:The video|This video|I can see).*?(?:\n|$)",
))

DEFAULT_TRAILING_PATTERNS = tuple(re.compile(pattern, re.DOTALL) for pattern in (
    r"```.*$",
    r"\n\s*Note:.*$",
    r"\n\s*Please.*$",
))

_CODE_BLOCK = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)

_CORE_TRANSCRIPTION = re.compile(r'"transcription"\s*:\s*("(?:[^"\\]|\\.)*")', re.DOTALL)
_CORE_SEGMENTS = re.compile(r'"marketingSegments"\s*:\s*(\{[^{}]*\})', re.DOTALL)

_TRANSCRIPTION_PATTERNS = tuple(re.compile(pattern, re.IGNORECASE | re.DOTALL) for pattern in (
    r'"transcription"\s*:\s*"(.*?)"\s*[,}]',
    r'transcription[\'"]\s*:\s*[\'"](.*?)[\'"]\s*[,}]',
    r'Transcription:\s*(.*?)(?:\n\n|\n(?=[A-Z])|\Z)',
    r'"transcription"\s*:\s*"(.*?)"\s*,\s*"(?:marketingSegments|wordAssignments)',
))

_SEGMENT_LABELS = {
    "Hook": r"Hook",
    "Bridge": r"Bridge",
    "Golden Nugget": r"Golden\s?Nugget",
    "WTA": r"WTA",
}

_SEGMENT_PATTERNS = {
    name: re.compile(
        rf"(?:{label}['\"]\s*:\s*['\"](.*?)['\"]\s*[,}}])|(?:{label}:\s*(.*?)(?:\n|$))",
        re.IGNORECASE | re.DOTALL,
    )
    for name, label in _SEGMENT_LABELS.items()
}

ParseStrategy = Callable[[str, str], Optional[ParsedResponse]]


def _unescape(fragment: str) -> str:
    """Decode JSON string escapes in a regex-captured fragment when possible."""
    try:
        return json.loads(f'"{fragment}"')
    except (json.JSONDecodeError, ValueError):
        return fragment


def _brace_span(text: str) -> Optional[str]:
    """Text from the first '{' through the last '}', or None without a pair."""
    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace == -1 or last_brace < first_brace:
        return None
    return text[first_brace:last_brace + 1].strip()


def _decodes_to_object(text: str) -> bool:
    try:
        return isinstance(json.loads(text), dict)
    except (json.JSONDecodeError, ValueError):
        return False


def _to_word_assignments(items: List[Any]) -> Optional[List[WordAssignment]]:
    try:
        return [WordAssignment.from_dict(item) for item in items if isinstance(item, dict)]
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding malformed word assignments: {str(e)}")
        return None


class ResponseParser:
    """
    Parses raw model responses into transcript, segments and word assignments.

    The extraction chain lives in ``self.strategies``; each strategy takes the
    raw text and the cleaned text and returns a ParsedResponse or None.
    """

    def __init__(self, prefix_patterns: Optional[Sequence[Pattern]] = None,
                 trailing_patterns: Optional[Sequence[Pattern]] = None):
        """
        Initialize the parser.

        Args:
            prefix_patterns: Compiled patterns for chatter removed ahead of the JSON body
            trailing_patterns: Compiled patterns for notes and fences removed after it
        """
        self.prefix_patterns = tuple(prefix_patterns) if prefix_patterns is not None else DEFAULT_PREFIX_PATTERNS
        self.trailing_patterns = tuple(trailing_patterns) if trailing_patterns is not None else DEFAULT_TRAILING_PATTERNS
        self.strategies: List[ParseStrategy] = [
            self._parse_direct_json,
            self._parse_core_json,
            self._parse_manual_fields,
        ]

    def parse(self, response_text: str, marketing_requested: bool = True) -> ParsedResponse:
        """
        Parse a raw model response.

        Args:
            response_text: Untrusted text returned by the model
            marketing_requested: Whether segmentation was asked for

        Returns:
            ParsedResponse; never raises. Unrecoverable input yields the failure
            sentinel transcript with every segment set to "Parsing Error".
        """
        try:
            text = response_text or ""

            if not marketing_requested:
                return ParsedResponse(transcription=text.strip())

            cleaned = self.clean_response(text)

            for strategy in self.strategies:
                parsed = strategy(text, cleaned)
                if parsed is not None:
                    return parsed

            logger.warning("No extraction strategy recovered content from response")
            return self._failure_response()

        except Exception as e:
            logger.error(f"Error parsing marketing response: {str(e)}")
            return self._failure_response()

    def clean_response(self, response_text: str) -> str:
        """
        Strip chatter ahead of the JSON body and notes after it.

        Candidate bodies are, in order, a fenced ```json block, the brace span
        of the text after chatter and notes are stripped, and the brace span of
        the raw text. The first candidate that decodes to a JSON object wins.

        Args:
            response_text: Raw model response

        Returns:
            The winning candidate; the raw brace span when none decodes; the
            stripped text when there are no braces at all
        """
        stripped = self._strip_trailing(self._strip_prefixes(response_text))
        raw_body = _brace_span(response_text)
        if raw_body is None:
            return stripped.strip()

        code_block = _CODE_BLOCK.search(response_text)
        candidates = [
            code_block.group(1) if code_block else None,
            _brace_span(stripped),
            raw_body,
        ]
        for candidate in candidates:
            if candidate and _decodes_to_object(candidate):
                if candidate != raw_body:
                    logger.info("Removed chatter around the JSON body")
                return candidate

        return raw_body

    def _strip_prefixes(self, text: str) -> str:
        for pattern in self.prefix_patterns:
            text = pattern.sub("", text, count=1)
        return text

    def _strip_trailing(self, text: str) -> str:
        for pattern in self.trailing_patterns:
            text = pattern.sub("", text, count=1)
        return text

    def _parse_direct_json(self, raw_text: str, cleaned_text: str) -> Optional[ParsedResponse]:
        """Parse the cleaned body as a complete JSON document."""
        try:
            parsed = json.loads(cleaned_text)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"JSON parsing failed: {str(e)}")
            return None

        if not isinstance(parsed, dict):
            return None

        transcription = parsed.get("transcription")
        segments = parsed.get("marketingSegments")
        if not transcription or not isinstance(segments, dict) or not segments:
            logger.warning("Parsed JSON missing required fields")
            return None

        assignments = parsed.get("wordAssignments")
        word_assignments = _to_word_assignments(assignments) if isinstance(assignments, list) else None

        return ParsedResponse(
            transcription=str(transcription),
            marketing_segments=MarketingSegments.from_dict(segments),
            word_assignments=word_assignments,
        )

    def _parse_core_json(self, raw_text: str, cleaned_text: str) -> Optional[ParsedResponse]:
        """Rebuild a minimal object from the transcription and marketingSegments fields only."""
        transcription_match = _CORE_TRANSCRIPTION.search(cleaned_text)
        segments_match = _CORE_SEGMENTS.search(cleaned_text)
        if not transcription_match or not segments_match:
            return None

        core_json = (
            f'{{"transcription": {transcription_match.group(1)}, '
            f'"marketingSegments": {segments_match.group(1)}}}'
        )
        try:
            core = json.loads(core_json)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Core JSON parsing also failed: {str(e)}")
            return None

        if not core.get("transcription") or not core.get("marketingSegments"):
            return None

        logger.info("Parsed core JSON without word assignments")
        return ParsedResponse(
            transcription=str(core["transcription"]),
            marketing_segments=MarketingSegments.from_dict(core["marketingSegments"]),
        )

    def _parse_manual_fields(self, raw_text: str, cleaned_text: str) -> Optional[ParsedResponse]:
        """Pull each field out with its own pattern, rebuilding the transcript if needed."""
        logger.warning("Failed to parse JSON response, attempting manual extraction")

        transcription = ""
        for pattern in _TRANSCRIPTION_PATTERNS:
            match = pattern.search(raw_text)
            if match and match.group(1).strip():
                transcription = _unescape(match.group(1).strip())
                break

        fragments: Dict[str, str] = {}
        for name in SEGMENT_NAMES:
            match = _SEGMENT_PATTERNS[name].search(raw_text)
            if match:
                fragments[name] = _unescape((match.group(1) or match.group(2) or "").strip())

        if not transcription:
            found = [fragments[name] for name in SEGMENT_NAMES if fragments.get(name)]
            if not found:
                return None
            logger.warning("Could not extract transcription, reconstructed it from segments")
            transcription = " ".join(found).strip()

        segments = MarketingSegments(*(fragments.get(name, NOT_PRESENT) for name in SEGMENT_NAMES))
        return ParsedResponse(transcription=transcription, marketing_segments=segments)

    def _failure_response(self) -> ParsedResponse:
        return ParsedResponse(
            transcription=PARSE_FAILURE_TRANSCRIPT,
            marketing_segments=MarketingSegments(*([PARSING_ERROR] * len(SEGMENT_NAMES))),
        )


def extract_json_object(response_text: str) -> Optional[Dict[str, Any]]:
    """
    Extract the JSON object embedded in a model response.

    Args:
        response_text: Raw model response, possibly wrapped in chatter or fences

    Returns:
        The decoded object, or None if no JSON object could be decoded
    """
    cleaned = ResponseParser().clean_response(response_text or "")
    try:
        parsed = json.loads(cleaned)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None
