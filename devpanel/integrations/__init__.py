"""
Integrations with hosted version-control services.
"""

from .github_plugin import GitHubPlugin

__all__ = ["GitHubPlugin"]
