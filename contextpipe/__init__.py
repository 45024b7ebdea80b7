"""
contextpipe - context-window management pipeline for LLM agents
"""

__version__ = "0.1.0"
__logo__ = "🧵"
