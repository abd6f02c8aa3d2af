"""
Unit Tests for Knowledge Base
=============================

Indexed and fuzzy retrieval, index consistency and the built-in seed data.
"""

import pytest

from selfai.config import KnowledgeConfig
from selfai.error_handling import KnowledgeBaseError
from selfai.retriever import KnowledgeBase, jaccard_similarity


@pytest.fixture
def empty_kb():
    return KnowledgeBase(load_builtin=False)


@pytest.fixture
def builtin_kb():
    return KnowledgeBase()


class TestKnowledgeEntries:
    """Test adding entries and the inverted index."""

    def test_round_trip(self, empty_kb):
        empty_kb.add('programming', '什么是闭包', '闭包是能够访问外部作用域变量的函数。', ['闭包'])
        result = empty_kb.query('什么是闭包')

        assert result['found'] is True
        assert result['answer'] == '闭包是能够访问外部作用域变量的函数。'
        assert result['confidence'] > 0
        assert result['category'] == 'programming'

    def test_every_keyword_is_indexed(self, empty_kb):
        entry_id = empty_kb.add('programming', '什么是OOP', '面向对象编程。', ['OOP', '面向对象', 'OOP'])
        entry = empty_kb.get(entry_id)

        assert entry.keywords == ('OOP', '面向对象')
        for keyword in entry.keywords:
            assert entry_id in empty_kb.lookup_keyword(keyword)
        assert entry_id in empty_kb.lookup_keyword('oop')

    def test_question_keywords_are_merged(self, empty_kb):
        entry_id = empty_kb.add('general', '如何学习编程', '多写代码。', ['学习路线'])

        assert empty_kb.get(entry_id).keywords == ('学习路线', '学习编程')

    def test_entry_requires_question_and_answer(self, empty_kb):
        with pytest.raises(KnowledgeBaseError):
            empty_kb.add('general', '', 'answer')
        with pytest.raises(KnowledgeBaseError):
            empty_kb.add('general', 'question', None)

    def test_entry_ids_are_unique(self, empty_kb):
        first = empty_kb.add('general', '问题一', '答案一')
        second = empty_kb.add('general', '问题一', '答案一')

        assert first != second
        assert empty_kb.size == 2


class TestKnowledgeQuery:
    """Test relevance scoring and fallbacks."""

    def test_builtin_lookup_with_related_questions(self, builtin_kb):
        result = builtin_kb.query('什么是变量')

        assert result['found'] is True
        assert result['question'] == '什么是变量'
        assert result['confidence'] == pytest.approx(1.0)
        assert 'let和const的区别' in result['related_questions']

    def test_related_questions_are_bounded(self, empty_kb):
        for i in range(6):
            empty_kb.add('general', f'数据结构问题{i}', f'答案{i}', ['数据结构'])

        result = empty_kb.query('数据结构')
        assert result['found'] is True
        assert len(result['related_questions']) == 3

    def test_fuzzy_fallback_on_index_miss(self, empty_kb):
        empty_kb.add('general', '如何学习编程', '多写代码。', ['学习路线'])
        result = empty_kb.query('我想学习路线图')

        assert result['found'] is True
        assert result['confidence'] == pytest.approx(0.4)

    def test_containment_scores_in_fuzzy_tier(self, empty_kb):
        empty_kb.add('general', 'abc', '字母表。', ['zz'])
        result = empty_kb.query('xabcx')

        assert result['found'] is True
        assert result['confidence'] == pytest.approx(0.6)

    def test_entity_values_extend_the_query(self, empty_kb):
        empty_kb.add('programming', 'Python简介', 'Python是一门解释型语言。', ['Python'])
        result = empty_kb.query('这个语言怎么样', {'programming_language': 'Python'})

        assert result['found'] is True
        assert result['answer'].startswith('Python')

    def test_miss_is_not_an_error(self, empty_kb):
        empty_kb.add('general', '什么是闭包', '闭包。', ['闭包'])
        result = empty_kb.query('量子力学')

        assert result == {'found': False, 'answer': None, 'confidence': 0}

    def test_empty_query(self, builtin_kb):
        assert builtin_kb.query('   ')['found'] is False

    def test_thresholds_come_from_config(self):
        kb = KnowledgeBase(KnowledgeConfig(fuzzy_threshold=0.5), load_builtin=False)
        kb.add('general', '如何学习编程', '多写代码。', ['学习路线'])

        assert kb.query('我想学习路线图')['found'] is False


class TestKnowledgeHelpers:

    def test_jaccard_similarity(self):
        assert jaccard_similarity('abc', 'abc') == 1.0
        assert jaccard_similarity('abc', '') == 0.0
        assert jaccard_similarity('ab', 'bc') == pytest.approx(1 / 3)

    def test_categories(self, builtin_kb):
        assert builtin_kb.get_categories() == ['programming', 'framework', 'general', 'about', 'comparison']
        assert len(builtin_kb.get_by_category('framework')) == 3
