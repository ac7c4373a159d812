"""
devpanel - plugin host core for the developer panel.
"""

__version__ = "1.0.0"
