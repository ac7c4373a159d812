"""
Static analysis plugins.
"""

from .lint_plugin import LintPlugin

__all__ = ["LintPlugin"]
