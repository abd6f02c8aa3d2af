"""
Knowledge Base
==============

In-memory question/answer store with an inverted keyword index.

Queries run in two tiers:

1. Indexed match: candidates sharing at least one keyword with the query are
   scored by ``keyword_weight * overlap_ratio + similarity_weight * jaccard``.
2. Fuzzy fallback: only when no indexed candidate clears the relevance
   threshold, every entry is scanned with containment and keyword-substring
   checks.

Entries are append-only; the index is updated in the same call that stores
the entry, so every keyword of every entry is always reachable.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..config import KnowledgeConfig
from ..error_handling import KnowledgeBaseError
from .builtin_knowledge import BUILTIN_KNOWLEDGE

logger = logging.getLogger(__name__)

STOP_WORDS = ['为什么', '什么', '怎么', '如何', '的', '是', '在', '了', '和', '与', '或', '吗', '呢']

SEPARATORS = re.compile(r'[\s,，.。!！?？;；:：、]+')
STOP_WORD_SPLIT = re.compile('|'.join(sorted(STOP_WORDS, key=len, reverse=True)))

# Entity types whose values are useful as extra query keywords.
ENTITY_KEYWORD_TYPES = ('programming_language', 'framework')


@dataclass(frozen=True)
class KnowledgeEntry:
    """A single question/answer pair."""
    id: str
    category: str
    question: str
    answer: str
    keywords: Tuple[str, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'category': self.category,
            'question': self.question,
            'answer': self.answer,
            'keywords': list(self.keywords),
            'created_at': self.created_at.isoformat()
        }


def jaccard_similarity(s1: str, s2: str) -> float:
    """Jaccard coefficient over the character sets of two strings."""
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    set1 = set(s1)
    set2 = set(s2)
    return len(set1 & set2) / len(set1 | set2)


class KnowledgeBase:
    """Keyword-indexed knowledge store with relevance ranking."""

    def __init__(self, config: Optional[KnowledgeConfig] = None, load_builtin: bool = True):
        self.config = config or KnowledgeConfig()
        self._entries: Dict[str, KnowledgeEntry] = {}
        self._keyword_index: Dict[str, Set[str]] = {}

        if load_builtin:
            for category, question, answer, keywords in BUILTIN_KNOWLEDGE:
                self.add(category, question, answer, keywords)
            logger.info(f"Knowledge base initialized with {len(self._entries)} entries")

    @property
    def size(self) -> int:
        return len(self._entries)

    def extract_keywords(self, text: str) -> List[str]:
        """Split on punctuation and stop words, keeping tokens of the minimum length."""
        keywords = []
        for chunk in SEPARATORS.split(text):
            for token in STOP_WORD_SPLIT.split(chunk):
                token = token.strip()
                if len(token) >= self.config.min_keyword_length and token not in keywords:
                    keywords.append(token)
        return keywords

    def add(self, category: str, question: str, answer: str,
            keywords: Optional[Iterable[str]] = None) -> str:
        """
        Store an entry and index its keywords.

        Args:
            category: Topic group, e.g. ``programming``
            question: Canonical question text
            answer: Answer returned on match
            keywords: Extra keywords; keywords extracted from the question are added

        Returns:
            The new entry id
        """
        if not question or not answer:
            raise KnowledgeBaseError("Knowledge entries need both a question and an answer")

        merged: Dict[str, None] = {}
        for keyword in list(keywords or []) + self.extract_keywords(question):
            keyword = str(keyword).strip()
            if keyword:
                merged.setdefault(keyword, None)

        entry = KnowledgeEntry(
            id=f"{category}_{uuid.uuid4().hex[:12]}",
            category=category,
            question=question,
            answer=answer,
            keywords=tuple(merged)
        )
        self._entries[entry.id] = entry

        for keyword in entry.keywords:
            self._keyword_index.setdefault(keyword.lower(), set()).add(entry.id)

        logger.debug(f"Added knowledge entry {entry.id} with {len(entry.keywords)} keywords")
        return entry.id

    def get(self, entry_id: str) -> Optional[KnowledgeEntry]:
        return self._entries.get(entry_id)

    def lookup_keyword(self, keyword: str) -> Set[str]:
        """Entry ids indexed under a keyword."""
        return set(self._keyword_index.get(keyword.lower(), ()))

    def query(self, query_text: str, entities: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Find the best answer for a free-text query.

        Returns:
            ``{found, answer, confidence, category, related_questions}`` on a
            hit, ``{found: False, answer: None, confidence: 0}`` otherwise.
        """
        query = (query_text or '').strip().lower()
        results: List[Tuple[KnowledgeEntry, float]] = []

        if query:
            query_keywords = self._query_keywords(query, entities or {})
            results = self._indexed_candidates(query, query_keywords)
            if not results:
                results = self._fuzzy_candidates(query)

        # sorted() is stable: equal scores keep insertion order
        results = sorted(results, key=lambda item: item[1], reverse=True)

        if results:
            best, score = results[0]
            related = results[1:1 + self.config.max_related_questions]
            logger.debug(f"Knowledge hit {best.id} (score={score:.3f}) for query '{query_text}'")
            return {
                'found': True,
                'answer': best.answer,
                'confidence': score,
                'category': best.category,
                'question': best.question,
                'related_questions': [entry.question for entry, _ in related]
            }

        logger.debug(f"Knowledge miss for query '{query_text}'")
        return {
            'found': False,
            'answer': None,
            'confidence': 0
        }

    def _query_keywords(self, query: str, entities: Dict[str, Any]) -> List[str]:
        keywords = self.extract_keywords(query)
        for entity_type in ENTITY_KEYWORD_TYPES:
            values = entities.get(entity_type)
            if values is None:
                continue
            for value in values if isinstance(values, list) else [values]:
                value = str(value).lower()
                if value not in keywords:
                    keywords.append(value)
        return keywords

    def _indexed_candidates(self, query: str, query_keywords: List[str]) -> List[Tuple[KnowledgeEntry, float]]:
        candidate_ids: Dict[str, None] = {}
        for keyword in query_keywords:
            for entry_id in self._keyword_index.get(keyword, ()):
                candidate_ids.setdefault(entry_id, None)

        # Score in insertion order so ties resolve deterministically
        scored = []
        for entry_id in self._entries:
            if entry_id not in candidate_ids:
                continue
            entry = self._entries[entry_id]
            score = self.calculate_relevance(query, query_keywords, entry)
            if score > self.config.relevance_threshold:
                scored.append((entry, score))
        return scored

    def _fuzzy_candidates(self, query: str) -> List[Tuple[KnowledgeEntry, float]]:
        scored = []
        for entry in self._entries.values():
            score = self.fuzzy_match(query, entry)
            if score > self.config.fuzzy_threshold:
                scored.append((entry, score))
        return scored

    def calculate_relevance(self, query: str, query_keywords: List[str], entry: KnowledgeEntry) -> float:
        """Blend keyword overlap with question similarity."""
        entry_keywords = {k.lower() for k in entry.keywords}
        match_count = sum(1 for keyword in query_keywords if keyword in entry_keywords)

        score = (match_count / max(len(query_keywords), 1)) * self.config.keyword_weight
        score += jaccard_similarity(query, entry.question.lower()) * self.config.similarity_weight
        return min(score, 1.0)

    def fuzzy_match(self, query: str, entry: KnowledgeEntry) -> float:
        """Containment and substring scoring used when the index misses."""
        question = entry.question.lower()

        if query == question:
            return self.config.exact_match_score
        if question in query or query in question:
            return self.config.containment_score

        for keyword in entry.keywords:
            if keyword.lower() in query:
                return self.config.keyword_match_score

        return jaccard_similarity(query, question) * self.config.fuzzy_similarity_weight

    def get_categories(self) -> List[str]:
        """Distinct categories in insertion order."""
        categories: Dict[str, None] = {}
        for entry in self._entries.values():
            categories.setdefault(entry.category, None)
        return list(categories)

    def get_by_category(self, category: str) -> List[KnowledgeEntry]:
        return [entry for entry in self._entries.values() if entry.category == category]
