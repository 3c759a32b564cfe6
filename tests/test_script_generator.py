"""
Unit tests for ScriptGenerator with a mocked OpenAI client.
"""

import json
import unittest
from unittest.mock import Mock, MagicMock, patch

from business_logic.error_handler import RetryConfig
from business_logic.script_generator import DEFAULT_SYNTHETIC_TOPICS, ScriptGenerator
from models.data_models import MarketingSegments, ScriptTemplate


def completion(content):
    """Build a chat completion response carrying ``content``."""
    return Mock(choices=[Mock(message=Mock(content=content))])


def template_reply(template):
    return completion(json.dumps({"template": template, "placeholders": ["Topic"], "explanation": "pattern"}))


SCRIPT_REPLY = completion(
    "```json\n" + json.dumps({
        "Hook": "Stop wasting your mornings.",
        "Bridge": "Your first hour decides your day.",
        "Golden Nugget": "Plan tomorrow's top task before bed.",
        "WTA": "Follow for more productivity tips.",
        "fullScript": "ignored",
    }) + "\n```"
)

TEMPLATE = ScriptTemplate(
    hook="Stop [Common Mistake].",
    bridge="Your [Time Period] decides your [Desired Outcome].",
    nugget="[Specific Action] before [Moment].",
    wta="Follow for more [Topic] tips.",
)


class TestScriptGenerator(unittest.TestCase):
    """Test cases for template and synthetic script generation."""

    def setUp(self):
        """Set up test fixtures."""
        self.config_patcher = patch('business_logic.script_generator.config_manager')
        mock_config = self.config_patcher.start()
        mock_config.get_request_timeout.return_value = 30.0

        self.sleep_patcher = patch('business_logic.error_handler.time.sleep')
        self.sleep_patcher.start()

        self.generator = ScriptGenerator(skip_openai_init=True, model_name="gpt-test")
        self.generator.client = MagicMock()
        self.create = self.generator.client.chat.completions.create

    def tearDown(self):
        self.sleep_patcher.stop()
        self.config_patcher.stop()

    def test_initialization(self):
        self.assertEqual(self.generator.model_name, "gpt-test")
        self.assertEqual(self.generator.retry_config.max_attempts, 3)

    def test_create_template_from_component(self):
        self.create.return_value = template_reply("If you want [Desired Outcome], stop [Common Mistake].")

        success, template = self.generator.create_template_from_component(
            "If you want pro videos, stop using your back camera.", "hook"
        )

        self.assertTrue(success)
        self.assertEqual(template, "If you want [Desired Outcome], stop [Common Mistake].")
        kwargs = self.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-test")
        self.assertEqual(kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(kwargs["timeout"], 30.0)
        self.assertIn("Component Type: HOOK", kwargs["messages"][1]["content"])

    def test_unknown_component_type(self):
        success, message = self.generator.create_template_from_component("text", "outro")

        self.assertFalse(success)
        self.assertEqual(message, "Unknown component type: outro")
        self.create.assert_not_called()

    def test_template_field_missing(self):
        self.create.return_value = completion(json.dumps({"placeholders": []}))

        success, message = self.generator.create_template_from_component("text", "wta")

        self.assertFalse(success)
        self.assertEqual(message, "Response missing 'template' field")

    def test_unparseable_reply_is_not_retried(self):
        self.create.return_value = completion("I cannot help with that.")

        success, message = self.generator.create_template_from_component("text", "bridge")

        self.assertFalse(success)
        self.assertIn("No JSON object found", message)
        self.assertEqual(self.create.call_count, 1)

    def test_transient_failure_is_retried(self):
        self.create.side_effect = [ConnectionError("connection reset"), template_reply("[Topic] matters.")]

        success, template = self.generator.create_template_from_component("Focus matters.", "nugget")

        self.assertTrue(success)
        self.assertEqual(template, "[Topic] matters.")
        self.assertEqual(self.create.call_count, 2)

    def test_generate_templates_from_segments(self):
        self.create.side_effect = [
            template_reply(TEMPLATE.hook),
            template_reply(TEMPLATE.bridge),
            template_reply(TEMPLATE.nugget),
            template_reply(TEMPLATE.wta),
        ]
        segments = MarketingSegments("Stop snoozing.", "Your morning decides your day.",
                                     "Drink water before coffee.", "Follow for more health tips.")

        result = self.generator.generate_templates_from_segments(segments)

        self.assertTrue(result.success)
        self.assertEqual(result.template, TEMPLATE)
        self.assertIsNone(result.error)

    def test_generate_templates_reports_failed_component(self):
        self.generator.retry_config = RetryConfig(max_attempts=1)
        self.create.side_effect = [
            template_reply(TEMPLATE.hook),
            completion(json.dumps({"explanation": "no template"})),
            template_reply(TEMPLATE.nugget),
            template_reply(TEMPLATE.wta),
        ]

        result = self.generator.generate_templates_from_segments(MarketingSegments("a", "b", "c", "d"))

        self.assertFalse(result.success)
        self.assertIsNone(result.template)
        self.assertEqual(result.error, "Template generation failed: Bridge: Response missing 'template' field")

    def test_generate_synthetic_script(self):
        self.create.return_value = SCRIPT_REPLY

        result = self.generator.generate_synthetic_script("productivity tips", TEMPLATE)

        self.assertTrue(result.success)
        self.assertEqual(result.script.golden_nugget, "Plan tomorrow's top task before bed.")
        prompt = self.create.call_args.kwargs["messages"][1]["content"]
        self.assertIn("productivity tips", prompt)
        self.assertIn(TEMPLATE.nugget, prompt)

    def test_synthetic_script_without_segments(self):
        self.create.return_value = completion(json.dumps({"fullScript": "just text"}))

        result = self.generator.generate_synthetic_script("fitness motivation", TEMPLATE)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "Response contained no script segments")

    def test_generate_synthetic_scripts(self):
        self.generator.retry_config = RetryConfig(max_attempts=1)
        self.create.side_effect = [SCRIPT_REPLY, completion("not json"), SCRIPT_REPLY, SCRIPT_REPLY]

        scripts = self.generator.generate_synthetic_scripts([TEMPLATE, TEMPLATE], DEFAULT_SYNTHETIC_TOPICS, 2)

        self.assertEqual(self.create.call_count, 4)
        self.assertEqual([script.topic for script in scripts],
                         ["productivity tips", "productivity tips", "social media growth"])

    def test_missing_client(self):
        self.generator.client = None
        self.generator.retry_config = RetryConfig(max_attempts=1)

        success, message = self.generator.create_template_from_component("text", "hook")

        self.assertFalse(success)
        self.assertIn("OpenAI client not initialized", message)


if __name__ == '__main__':
    unittest.main()
