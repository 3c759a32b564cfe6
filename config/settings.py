"""
Configuration management for the script training data pipeline.
Handles API keys, generation and fine-tuning settings, and local storage paths.
"""

import os
import streamlit as st
from typing import Optional
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""
    openai_api_key: Optional[str] = None
    generation_model: str = "gpt-4o-mini"
    fine_tuning_base_model: str = "gpt-4o-mini-2024-07-18"
    data_dir: str = "creator_data"
    training_data_dir: str = "training_data"
    cache_timeout_hours: int = 24
    request_timeout_seconds: int = 60
    min_view_count: int = 0
    max_examples_per_video: int = 10
    max_videos_per_request: int = 50


class ConfigManager:
    """Manages application configuration and settings."""

    def __init__(self):
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from Streamlit secrets and the environment."""
        if self._config is not None:
            return self._config

        self._config = AppConfig(
            openai_api_key=self._get_secret_or_env("OPENAI_API_KEY"),
            generation_model=self._get_setting("GENERATION_MODEL", "gpt-4o-mini"),
            fine_tuning_base_model=self._get_setting("FINE_TUNING_BASE_MODEL", "gpt-4o-mini-2024-07-18"),
            data_dir=self._get_setting("DATA_DIR", "creator_data"),
            training_data_dir=self._get_setting("TRAINING_DATA_DIR", "training_data"),
            cache_timeout_hours=self._get_int_setting("CACHE_TIMEOUT_HOURS", 24),
            request_timeout_seconds=self._get_int_setting("REQUEST_TIMEOUT_SECONDS", 60),
            min_view_count=self._get_int_setting("MIN_VIEW_COUNT", 0),
            max_examples_per_video=self._get_int_setting("MAX_EXAMPLES_PER_VIDEO", 10),
            max_videos_per_request=self._get_int_setting("MAX_VIDEOS_PER_REQUEST", 50)
        )

        return self._config

    def reset(self):
        """Drop the loaded configuration so the next access re-reads it."""
        self._config = None

    def _get_secret_or_env(self, key: str) -> Optional[str]:
        """Get value from Streamlit secrets or environment variables."""
        # Streamlit raises when no secrets file exists
        try:
            if hasattr(st, 'secrets') and key in st.secrets:
                return st.secrets[key]
        except Exception:
            pass

        return os.getenv(key)

    def _get_setting(self, key: str, default: str) -> str:
        """Get string setting with default value."""
        value = self._get_secret_or_env(key)
        return value if value is not None else default

    def _get_int_setting(self, key: str, default: int) -> int:
        """Get integer setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return default

    def get_openai_api_key(self) -> str:
        """
        Get OpenAI API key.

        Raises:
            ValueError: If no key is configured
        """
        api_key = self.load_config().openai_api_key
        if not api_key:
            raise ValueError(
                "OpenAI API key not found. Please set OPENAI_API_KEY in "
                "Streamlit secrets or environment variables."
            )
        return api_key

    def get_generation_model(self) -> str:
        return self.load_config().generation_model

    def get_fine_tuning_base_model(self) -> str:
        return self.load_config().fine_tuning_base_model

    def get_data_dir(self) -> str:
        return self.load_config().data_dir

    def get_training_data_dir(self) -> str:
        return self.load_config().training_data_dir

    def get_cache_timeout(self) -> int:
        """Get cache timeout in hours."""
        return self.load_config().cache_timeout_hours

    def get_request_timeout(self) -> float:
        """Get request timeout for API calls in seconds."""
        return float(self.load_config().request_timeout_seconds)


# Global configuration manager instance
config_manager = ConfigManager()
