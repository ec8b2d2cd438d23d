from dotenv import load_dotenv
from dataclasses import dataclass, field
from typing import List
from pathlib import Path
import json
import os

from compatcheck.constants import (
    DEFAULT_MARKUP_ELEMENTS,
    DEFAULT_MARKUP_THRESHOLD,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    SECONDARY_USER_AGENT,
)
from compatcheck.models import ElementCheckConfig

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    SECONDARY_USER_AGENT = os.getenv("COMPATCHECK_SECONDARY_USER_AGENT", SECONDARY_USER_AGENT)
    LIBRARY_CONFIG_FILE = os.getenv("COMPATCHECK_LIBRARY_CONFIG")
    MARKUP_CONFIG_FILE = os.getenv("COMPATCHECK_MARKUP_CONFIG")


settings = Settings()


def _default_elements() -> List[ElementCheckConfig]:
    return [ElementCheckConfig.from_dict(item) for item in DEFAULT_MARKUP_ELEMENTS]


@dataclass
class MarkupCheckConfig:
    """Configuration for the markup consistency check."""
    default_threshold: float = DEFAULT_MARKUP_THRESHOLD
    elements: List[ElementCheckConfig] = field(default_factory=_default_elements)
    exclude_list: List[str] = field(default_factory=list)
    user_agent: str = SECONDARY_USER_AGENT
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "MarkupCheckConfig":
        """Load configuration from environment variables.

        COMPATCHECK_MARKUP_EXCLUDE is a comma separated list of URL fragments.

        Returns:
            MarkupCheckConfig with values from environment
        """
        config = cls(user_agent=settings.SECONDARY_USER_AGENT)

        threshold = os.getenv("COMPATCHECK_MARKUP_THRESHOLD")
        if threshold is not None:
            try:
                config.default_threshold = float(threshold)
            except ValueError:
                pass  # Keep default if conversion fails

        exclude = os.getenv("COMPATCHECK_MARKUP_EXCLUDE")
        if exclude:
            config.exclude_list = [part.strip() for part in exclude.split(",") if part.strip()]

        timeout = os.getenv("COMPATCHECK_TIMEOUT")
        if timeout is not None:
            try:
                config.timeout = float(timeout)
            except ValueError:
                pass

        return config

    @classmethod
    def from_file(cls, path: str) -> "MarkupCheckConfig":
        """Load configuration from a JSON file.

        The file may hold the settings at top level or under a "markup" key:

            {"markup": {"default_threshold": 0.8,
                        "elements": [{"name": "div", "threshold": 0.5}],
                        "exclude_list": ["example.com/news"]}}

        Args:
            path: Path to JSON configuration file

        Returns:
            MarkupCheckConfig with values from file
        """
        config = cls()
        file_path = Path(path)

        if not file_path.exists():
            return config

        with open(file_path, 'r') as f:
            data = json.load(f)

        markup_config = data.get('markup', data)

        if 'default_threshold' in markup_config:
            config.default_threshold = float(markup_config['default_threshold'])
        if 'elements' in markup_config:
            config.elements = [
                ElementCheckConfig.from_dict(item) for item in markup_config['elements']
            ]
        if 'exclude_list' in markup_config:
            config.exclude_list = list(markup_config['exclude_list'])
        if 'user_agent' in markup_config:
            config.user_agent = markup_config['user_agent']
        if 'timeout' in markup_config:
            config.timeout = float(markup_config['timeout'])

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {
            'default_threshold': self.default_threshold,
            'elements': [element.to_dict() for element in self.elements],
            'exclude_list': list(self.exclude_list),
            'user_agent': self.user_agent,
            'timeout': self.timeout,
        }

    def save_to_file(self, path: str) -> None:
        """Save current configuration to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'markup': self.to_dict()}, f, indent=2)


# Global default markup configuration
default_markup_config = MarkupCheckConfig()


def load_markup_config() -> MarkupCheckConfig:
    """Load the markup configuration from COMPATCHECK_MARKUP_CONFIG, else the environment."""
    if settings.MARKUP_CONFIG_FILE:
        return MarkupCheckConfig.from_file(settings.MARKUP_CONFIG_FILE)
    return MarkupCheckConfig.from_env()
