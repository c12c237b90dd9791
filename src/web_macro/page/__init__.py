"""
Page module - Per-tab recording and replay agent.
"""

from web_macro.page.agent import PageAgent

__all__ = ["PageAgent"]
