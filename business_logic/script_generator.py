"""
Script template and synthetic script generation using OpenAI.

Generalizes the segments of a real script into placeholder templates, then
fills those templates with new topics to produce synthetic training scripts.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
import openai
from openai import OpenAI

from models.data_models import MarketingSegments, ScriptTemplate, SyntheticScript
from config.settings import config_manager
from .error_handler import error_handler, RetryConfig
from .response_parser import extract_json_object

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEFAULT_SYNTHETIC_TOPICS = (
    "productivity tips",
    "social media growth",
    "healthy eating",
    "fitness motivation",
    "business advice",
    "personal development",
    "technology trends",
    "creative inspiration",
    "financial literacy",
    "relationship advice",
    "career growth",
    "mental health",
    "time management",
    "leadership skills",
    "marketing strategies",
)

COMPONENT_TYPES = ("hook", "bridge", "nugget", "wta")

SYSTEM_PROMPT = (
    "You are an expert short-form video content strategist. "
    "Always respond with a single JSON object and nothing else."
)

TEMPLATE_PROMPT = """Convert a specific script component into a generic, reusable template. Analyze the provided text and identify its underlying structure. Replace specific nouns, topics, and outcomes with generic, bracketed placeholders like [Topic], [Target Audience], [Common Problem], [Desired Outcome], [Specific Action], or [Benefit]. The template must be adaptable to ANY subject.

Example:
- Specific Text: "If you want your videos to look pro, here is why you need to stop using your back camera."
- Generated Template: "If you want to achieve [Desired Outcome], here is why you need to stop [Common Mistake]."

Component Type: {component_type}
Specific Text to Analyze:
"{component_text}"

Expected JSON format:
{{
  "template": "Your generic template with [Placeholders] here",
  "placeholders": ["List", "of", "placeholder", "types", "used"],
  "explanation": "Brief explanation of the pattern identified"
}}"""

SYNTHETIC_SCRIPT_PROMPT = """Generate a complete, cohesive, and compelling short-form video script about the topic below by filling in the placeholders of the structural templates. The script must read naturally.

Topic to Write About:
{topic}

Script Templates:
- Hook Template: "{hook}"
- Bridge Template: "{bridge}"
- Golden Nugget Template: "{nugget}"
- WTA Template: "{wta}"

Expected JSON format:
{{
  "Hook": "Complete hook text with placeholders filled in",
  "Bridge": "Complete bridge text with placeholders filled in",
  "Golden Nugget": "Complete golden nugget text with placeholders filled in",
  "WTA": "Complete WTA text with placeholders filled in",
  "fullScript": "Complete script as one flowing piece of content"
}}"""


@dataclass
class TemplateGenerationResult:
    """Outcome of generalizing one script into a template."""
    success: bool
    template: Optional[ScriptTemplate] = None
    error: Optional[str] = None
    processing_time: int = 0


@dataclass
class SyntheticScriptResult:
    """Outcome of filling a template for one topic."""
    success: bool
    script: Optional[MarketingSegments] = None
    error: Optional[str] = None
    processing_time: int = 0


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


class ScriptGenerator:
    """
    Generates script templates and synthetic scripts with OpenAI chat models.

    API calls go through the shared error handler's retry with backoff; a
    failure for one component or topic is reported, never raised.
    """

    def __init__(self, skip_openai_init: bool = False, model_name: Optional[str] = None):
        """
        Initialize the Script Generator.

        Args:
            skip_openai_init: Skip OpenAI client initialization (for testing)
            model_name: Chat model to use; GENERATION_MODEL setting if None
        """
        self.client = None
        if not skip_openai_init:
            self._initialize_openai_client()

        self.model_name = model_name or config_manager.get_generation_model()
        self.temperature = 0.7
        self.max_tokens = 1024
        self.retry_config = RetryConfig(max_attempts=3, base_delay=1.0)

    def _initialize_openai_client(self):
        """Initialize OpenAI client with API key."""
        try:
            api_key = config_manager.get_openai_api_key()
            self.client = OpenAI(api_key=api_key)
            logger.info("OpenAI client initialized for script generator")
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI client: {str(e)}")
            raise

    def _request_json(self, prompt: str) -> Dict[str, Any]:
        """
        Send one prompt and decode the JSON object in the reply.

        Raises:
            openai.OpenAIError: For API failures, left for the retry classifier
            ValueError: If the reply holds no JSON object
        """
        if not self.client:
            raise ValueError("OpenAI client not initialized. Please check API key configuration.")

        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
                timeout=config_manager.get_request_timeout()
            )
        except openai.RateLimitError:
            error_handler._track_rate_limit()
            raise

        if not response.choices:
            raise ValueError("OpenAI returned empty response")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise ValueError("OpenAI returned empty content")

        parsed = extract_json_object(content)
        if parsed is None:
            logger.error(f"Failed to parse JSON response: {content[:500]}...")
            raise ValueError("No JSON object found in response")

        return parsed

    def create_template_from_component(self, component_text: str, component_type: str) -> Tuple[bool, str]:
        """
        Convert one segment into a generic template.

        Args:
            component_text: Segment text from a real script
            component_type: One of "hook", "bridge", "nugget", "wta"

        Returns:
            Tuple of (success, template or error_message)
        """
        if component_type not in COMPONENT_TYPES:
            return False, f"Unknown component type: {component_type}"

        logger.info(f"Creating template for {component_type}: {component_text[:100]}...")
        prompt = TEMPLATE_PROMPT.format(component_type=component_type.upper(), component_text=component_text)

        success, parsed, error_info = error_handler.retry_with_backoff(
            lambda: self._request_json(prompt), self.retry_config, f"template generation ({component_type})"
        )
        if not success:
            return False, error_info.message

        template = parsed.get("template")
        if not isinstance(template, str) or not template.strip():
            return False, "Response missing 'template' field"

        return True, template.strip()

    def generate_templates_from_segments(self, segments: MarketingSegments) -> TemplateGenerationResult:
        """
        Generate templates for all four segments of a script.

        Args:
            segments: Segments of a successfully transcribed script

        Returns:
            TemplateGenerationResult; fails if any segment fails
        """
        start_time = time.time()
        logger.info("Generating templates from marketing segments")

        templates = {}
        errors = []
        for component_type, text in zip(COMPONENT_TYPES, segments.as_tuple()):
            success, value = self.create_template_from_component(text, component_type)
            if success:
                templates[component_type] = value
            else:
                errors.append(f"{component_type.capitalize()}: {value}")

        if errors:
            error_msg = f"Template generation failed: {'; '.join(errors)}"
            logger.error(error_msg)
            return TemplateGenerationResult(success=False, error=error_msg, processing_time=_elapsed_ms(start_time))

        processing_time = _elapsed_ms(start_time)
        logger.info(f"Generated all templates in {processing_time}ms")
        return TemplateGenerationResult(
            success=True,
            template=ScriptTemplate(**templates),
            processing_time=processing_time
        )

    def generate_synthetic_script(self, topic: str, template: ScriptTemplate) -> SyntheticScriptResult:
        """
        Fill a template with a topic.

        Args:
            topic: Topic to write about
            template: Structural template

        Returns:
            SyntheticScriptResult with the generated segments on success
        """
        start_time = time.time()
        logger.info(f"Generating synthetic script for topic: {topic}")

        prompt = SYNTHETIC_SCRIPT_PROMPT.format(topic=topic, **template.to_dict())
        success, parsed, error_info = error_handler.retry_with_backoff(
            lambda: self._request_json(prompt), self.retry_config, f"synthetic script ({topic})"
        )
        if not success:
            return SyntheticScriptResult(success=False, error=error_info.message,
                                         processing_time=_elapsed_ms(start_time))

        script = MarketingSegments.from_dict(parsed)
        if not script.full_script():
            return SyntheticScriptResult(success=False, error="Response contained no script segments",
                                         processing_time=_elapsed_ms(start_time))

        return SyntheticScriptResult(success=True, script=script, processing_time=_elapsed_ms(start_time))

    def generate_synthetic_scripts(self, templates: Sequence[ScriptTemplate],
                                   topics: Sequence[str] = DEFAULT_SYNTHETIC_TOPICS,
                                   max_topics_per_template: int = 10) -> List[SyntheticScript]:
        """
        Generate synthetic scripts for every template over the leading topics.

        Args:
            templates: Templates to fill
            topics: Candidate topics, used in order
            max_topics_per_template: Number of topics used per template

        Returns:
            Successfully generated scripts; failures are logged and skipped
        """
        scripts = []
        selected_topics = list(topics)[:max_topics_per_template]

        for index, template in enumerate(templates):
            for topic in selected_topics:
                result = self.generate_synthetic_script(topic, template)
                if result.success:
                    scripts.append(SyntheticScript(topic=topic, script=result.script))
                else:
                    logger.warning(f"Skipping topic '{topic}' for template {index}: {result.error}")

        logger.info(f"Generated {len(scripts)} synthetic scripts from {len(templates)} templates")
        return scripts
