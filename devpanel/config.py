"""
Configuration for the plugin host and the bundled plugins.
"""

import copy
import os
from dataclasses import dataclass
from typing import Dict, Any, Optional


DEFAULT_PLUGIN_SETTINGS: Dict[str, Dict[str, Any]] = {
    "github": {
        "token": "",
        "currentRepo": None,
        "cacheTimeout": 300,
        "maxCommits": 50,
        "maxIssues": 50,
        "requestTimeout": 10.0,
    },
    "eslint": {
        "lintRules": {
            "no-unused-vars": "error",
            "no-console": "warn",
            "prefer-const": "error",
            "no-var": "error",
            "eqeqeq": "error",
            "curly": "error",
        },
        "autoLint": True,
        "lintOnSave": True,
        "showWarnings": True,
    },
    "testing": {
        "testFramework": "jest",
        "testPattern": "**/*.{test,spec}.{js,jsx,ts,tsx}",
        "coverage": True,
        "watchMode": False,
        "verbose": True,
        "simulatedDelay": (0.5, 1.5),
    },
}

SUPPORTED_LINT_FILE_TYPES = [".js", ".jsx", ".ts", ".tsx", ".vue"]

TEST_FRAMEWORKS: Dict[str, Dict[str, Any]] = {
    "jest": {
        "config_file": "jest.config.js",
        "command": "npm test",
        "patterns": ["**/*.test.js", "**/*.spec.js"],
    },
    "mocha": {
        "config_file": ".mocharc.json",
        "command": "npm run test:mocha",
        "patterns": ["test/**/*.js", "spec/**/*.js"],
    },
    "vitest": {
        "config_file": "vitest.config.js",
        "command": "npm run test:vitest",
        "patterns": ["**/*.test.{js,ts}", "**/*.spec.{js,ts}"],
    },
}


def get_default_settings(plugin_id: str) -> Dict[str, Any]:
    """Get a fresh copy of the default settings for a plugin."""
    return copy.deepcopy(DEFAULT_PLUGIN_SETTINGS.get(plugin_id, {}))


@dataclass
class Settings:
    """Process-level settings read from the environment."""
    github_token: Optional[str] = None
    github_timeout: float = 10.0
    log_level: str = "WARNING"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-haiku-latest"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create Settings from environment variables."""
        return cls(
            github_token=os.getenv('GITHUB_TOKEN') or None,
            github_timeout=float(os.getenv('GITHUB_API_TIMEOUT', '10.0')),
            log_level=os.getenv('DEVPANEL_LOG_LEVEL', 'WARNING').upper(),
            anthropic_api_key=os.getenv('ANTHROPIC_API_KEY') or None,
            anthropic_model=os.getenv('ANTHROPIC_MODEL', 'claude-3-5-haiku-latest'),
            openai_api_key=os.getenv('OPENAI_API_KEY') or None,
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
        )
