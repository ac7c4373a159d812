"""
Test execution plugins.
"""

from .test_runner_plugin import TestRunnerPlugin

__all__ = ["TestRunnerPlugin"]
