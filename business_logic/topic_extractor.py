"""
Keyword-based topic classification for short-form scripts.
"""

import logging
from types import MappingProxyType
from typing import Mapping, Sequence

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEFAULT_TOPIC = "general advice"

# Seeds are matched as substrings of tokens, so stems cover inflections.
DEFAULT_TOPIC_KEYWORDS: Mapping[str, Sequence[str]] = MappingProxyType({
    "productivity": ("productiv", "efficien", "time", "focus", "deadline"),
    "fitness": ("workout", "exercise", "gym", "health", "fitness"),
    "business": ("business", "entrepreneur", "money", "success", "growth"),
    "social media": ("content", "followers", "engagement", "viral", "social"),
    "personal development": ("mindset", "habits", "goals", "motivation", "self"),
    "technology": ("tech", "app", "digital", "online", "software"),
    "relationships": ("relationship", "dating", "love", "communication"),
    "creativity": ("creative", "art", "design", "inspiration", "ideas"),
})


class TopicExtractor:
    """
    Labels a script with the taxonomy topic whose seed keywords it mentions most.

    Ties go to the topic listed first in the taxonomy; a script that matches
    nothing gets the default topic.
    """

    def __init__(self, taxonomy: Mapping[str, Sequence[str]] = DEFAULT_TOPIC_KEYWORDS,
                 default_topic: str = DEFAULT_TOPIC):
        self.taxonomy = MappingProxyType(
            {topic: tuple(keyword.lower() for keyword in keywords) for topic, keywords in taxonomy.items()}
        )
        self.default_topic = default_topic

    def score(self, content: str) -> dict:
        """
        Score every topic against the content.

        Args:
            content: Script text

        Returns:
            Mapping of topic to the number of tokens containing one of its seeds
        """
        tokens = (content or "").lower().split()
        return {
            topic: sum(1 for token in tokens if any(keyword in token for keyword in keywords))
            for topic, keywords in self.taxonomy.items()
        }

    def extract_topic(self, content: str) -> str:
        """Return the dominant topic of the content."""
        best_topic = self.default_topic
        best_score = 0

        for topic, topic_score in self.score(content).items():
            if topic_score > best_score:
                best_topic = topic
                best_score = topic_score

        return best_topic
