"""
SelfAI
======

Rule-based conversational agent with a keyword knowledge base and
pluggable skills.
"""

__version__ = "1.0.0"
