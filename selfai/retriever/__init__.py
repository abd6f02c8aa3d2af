"""
Retriever Module
================

Keyword-indexed knowledge base with two-tier relevance scoring.
"""

from .knowledge_base import KnowledgeBase, KnowledgeEntry, jaccard_similarity, STOP_WORDS
from .builtin_knowledge import BUILTIN_KNOWLEDGE

__all__ = [
    'KnowledgeBase',
    'KnowledgeEntry',
    'jaccard_similarity',
    'STOP_WORDS',
    'BUILTIN_KNOWLEDGE'
]
