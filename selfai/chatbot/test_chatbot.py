"""
Unit Tests for Chatbot Module
=============================

Test suite for the conversation engine:
- Intent recognition and entity extraction
- Dialogue state machine, slot filling and action policy
- Response rendering and anti-repetition
- Session store expiry
- End-to-end turns through the agent, including concurrent turns
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from selfai.chatbot import (
    DialogContext, DialogState, DialogueAction, DialogueManager, InMemorySessionStore,
    IntentRecognizer, ResponseGenerator, SelfAIAgent, TemplatePool, UnderstandingResult,
    normalize_text
)
from selfai.chatbot.base_core import FAILURE_TEXT
from selfai.chatbot.dialog_state import GENERIC_CLARIFICATION, TRANSITIONS, DialogueDecision
from selfai.chatbot.response_generator import SUGGESTIONS, TEMPLATES
from selfai.config import AgentConfig, ResponseConfig, Settings


def understanding(intent, confidence=0.9, text='', entities=None, keywords=None):
    return UnderstandingResult(
        intent=intent,
        confidence=confidence,
        entities=entities or {},
        keywords=keywords or [],
        original_text=text
    )


def decision(action, **payload):
    return DialogueDecision(state=DialogState.TASK, previous_state=DialogState.IDLE, action=action, **payload)


class TestIntentRecognizer:
    """Test rule-based understanding."""

    @pytest.fixture
    def recognizer(self):
        return IntentRecognizer()

    def test_greeting(self, recognizer):
        result = recognizer.understand('你好')

        assert result.intent == 'greeting'
        assert result.confidence == pytest.approx(0.95)

    def test_calculation(self, recognizer):
        result = recognizer.understand('1+1等于几')

        assert result.intent == 'calculate'
        assert result.confidence == pytest.approx(0.65)
        assert result.entities['number'] == 1.0

    def test_programming_language_normalized(self, recognizer):
        result = recognizer.understand('用js写一个排序函数')

        assert result.intent == 'code_help'
        assert result.entities['programming_language'] == 'JavaScript'

    def test_several_values_become_a_list(self, recognizer):
        result = recognizer.understand('Python和Java哪个好')

        assert result.entities['programming_language'] == ['Python', 'Java']
        assert 'python' in result.keywords
        assert 'java' in result.keywords

    def test_target_language_synonyms(self, recognizer):
        result = recognizer.understand('把你好翻译成英语')

        assert result.intent == 'translate'
        assert result.entities['language'] == '英文'

    def test_date_time_and_city(self, recognizer):
        entities = recognizer.extract_entities('明天下午3点去上海')

        assert entities['date'] == '明天'
        assert entities['time'] == ['3点', '下午']
        assert entities['city'] == '上海'

    def test_keyword_fallback(self, recognizer):
        result = recognizer.understand('编程')

        assert result.intent == 'code_help'
        assert result.confidence == pytest.approx(0.7)

    def test_unparseable_input_degrades_to_unknown(self, recognizer):
        for text in ('', '   ', 'asdfgh'):
            result = recognizer.understand(text)
            assert result.intent == 'unknown'
            assert result.confidence == 0

    def test_question_and_sentiment(self, recognizer):
        assert recognizer.understand('什么是变量').is_question is True
        assert recognizer.understand('今天天气不错').is_question is False
        assert recognizer.understand('太棒了，谢谢').sentiment == 'positive'
        assert recognizer.understand('这个工具真难用').sentiment == 'negative'

    def test_custom_intent_pattern(self, recognizer):
        recognizer.add_intent_pattern('weather', '天气', priority=8)

        assert recognizer.understand('今天天气怎么样').intent == 'weather'
        assert 'weather' in recognizer.get_supported_intents()
        assert 'unknown' in recognizer.get_supported_intents()

    def test_normalize_text(self):
        assert normalize_text('  你好？  世界！ ') == '你好? 世界!'
        assert normalize_text(None) == ''


class TestDialogueManager:
    """Test state transitions, slot filling and the action policy."""

    @pytest.fixture
    def manager(self):
        return DialogueManager(max_context_turns=3)

    @pytest.fixture
    def context(self, manager):
        return manager.create_context('session-1')

    @pytest.mark.parametrize("state,intent,expected", [
        (state, intent, target)
        for state, row in TRANSITIONS.items()
        for intent, target in row.items()
    ])
    def test_table_transitions_are_deterministic(self, manager, state, intent, expected):
        assert manager.transition(state, intent) == expected
        assert manager.transition(state, intent) == expected

    def test_unmapped_intents_use_row_default(self, manager):
        assert manager.transition(DialogState.IDLE, 'summarize') == DialogState.TASK
        assert manager.transition(DialogState.COMPLETE, 'greeting') == DialogState.IDLE
        assert manager.transition(DialogState.CONFIRM, 'chitchat') == DialogState.CONFIRM

    def test_missing_row_and_default(self):
        manager = DialogueManager(transitions={DialogState.IDLE: {'default': DialogState.GREETING}})
        assert manager.transition(DialogState.TASK, 'anything') == DialogState.GREETING

        manager = DialogueManager(transitions={DialogState.IDLE: {}})
        assert manager.transition(DialogState.IDLE, 'anything') == DialogState.TASK

    def test_low_confidence_unknown_asks_for_clarification(self, manager, context):
        result = manager.process(understanding('unknown', confidence=0.2, text='嗯'), context)

        assert result.action == DialogueAction.CLARIFY
        assert result.need_clarification is True
        assert result.clarification_prompt == GENERIC_CLARIFICATION
        assert context.current_intent is None

    def test_first_missing_slot_is_requested(self, manager, context):
        result = manager.process(understanding('translate'), context)

        assert result.action == DialogueAction.CLARIFY
        assert result.clarification_prompt == '请提供要翻译的文本'

    def test_free_text_fills_primary_slot(self, manager, context):
        result = manager.process(understanding('translate', text='翻译一下'), context)

        assert context.slots['source_text'] == '翻译一下'
        assert result.action == DialogueAction.CLARIFY
        assert result.clarification_prompt == '您想翻译成什么语言？'

    def test_entities_fill_declared_slots_only(self, manager, context):
        manager.process(understanding(
            'code_help', text='用Python写爬虫',
            entities={'programming_language': 'Python', 'city': '北京'}
        ), context)

        assert context.slots == {'programming_language': 'Python', 'task_description': '用Python写爬虫'}

    def test_no_schema_means_no_slots(self, manager, context):
        manager.process(understanding('explain', text='什么是变量', entities={'number': 3.0}), context)

        assert context.slots == {}

    def test_complete_slots_dispatch_skill(self, manager, context):
        result = manager.process(understanding(
            'translate', text='把你好翻译成英文', entities={'language': '英文'}
        ), context)

        assert result.action == DialogueAction.SKILL
        assert result.skill == 'translator'
        assert result.params == {'target_language': '英文', 'source_text': '把你好翻译成英文'}

    def test_text_parameter_skills(self, manager, context):
        result = manager.process(understanding('calculate', text='1+1等于几'), context)

        assert result.skill == 'calculator'
        assert result.params == {'expression': '1+1等于几'}

        result = manager.process(understanding('datetime', text='现在几点了'), context)
        assert result.skill == 'datetime'
        assert result.params == {}

    def test_direct_and_knowledge_actions(self, manager, context):
        result = manager.process(understanding('chitchat', keywords=['爱好']), context)
        assert result.action == DialogueAction.DIRECT
        assert result.data == {'response_type': 'chitchat', 'topic': '爱好'}

        result = manager.process(understanding('ask_capability'), context)
        assert result.data == {'response_type': 'capability'}

        result = manager.process(understanding('explain', text='什么是变量'), context)
        assert result.action == DialogueAction.KNOWLEDGE
        assert result.query == '什么是变量'

    def test_states_recorded_on_decision(self, manager, context):
        result = manager.process(understanding('greeting'), context)

        assert result.previous_state == DialogState.IDLE
        assert result.state == DialogState.GREETING
        assert context.state == DialogState.GREETING

    def test_history_is_bounded(self, manager, context):
        for _ in range(20):
            manager.process(understanding('explain', text='什么是变量'), context)

        assert context.turn_count == 20
        assert len(context.history) == 6
        assert [record.turn for record in context.history] == list(range(15, 21))

    def test_complete_clears_slots_and_intent(self, manager, context):
        context.state = DialogState.TASK
        context.current_intent = 'code_help'
        context.slots['programming_language'] = 'Go'

        result = manager.process(understanding('thanks'), context)
        manager.update_context(context, result, '不客气！')

        assert context.state == DialogState.COMPLETE
        assert context.slots == {}
        assert context.current_intent is None
        assert context.last_response == '不客气！'

        manager.process(understanding('explain', text='什么是变量'), context)
        assert context.state == DialogState.IDLE

    def test_executed_skill_releases_slots(self, manager, context):
        result = manager.process(understanding('code_help', text='写一个排序'), context)
        manager.update_context(context, result, 'code')

        assert context.slots == {}
        assert context.current_intent == 'code_help'

    def test_summary(self, manager, context):
        manager.process(understanding('greeting'), context)
        manager.process(understanding('translate', text='翻译一下'), context)

        summary = manager.get_summary(context)

        assert summary['state'] == 'task'
        assert summary['turn_count'] == 2
        assert summary['current_intent'] == 'translate'
        assert summary['filled_slots'] == ['source_text']
        assert summary['recent_intents'] == ['greeting', 'translate']


class TestResponseGenerator:
    """Test template rendering."""

    @pytest.fixture
    def generator(self):
        return ResponseGenerator(ResponseConfig(follow_up_probability=0), rng=random.Random(42))

    def test_no_immediate_repeats(self, generator):
        picks = [generator.pick(TemplatePool.GREETING) for _ in range(300)]

        assert all(a != b for a, b in zip(picks, picks[1:]))
        assert set(picks) == set(TEMPLATES[TemplatePool.GREETING])

    def test_pools_are_tracked_separately(self, generator):
        first = generator.pick(TemplatePool.GOODBYE)
        generator.pick(TemplatePool.THANKS)

        assert generator.pick(TemplatePool.GOODBYE) != first

    def test_single_entry_pool(self, generator):
        assert generator.pick(TemplatePool.CAPABILITY) == TEMPLATES[TemplatePool.CAPABILITY][0]
        assert generator.pick(TemplatePool.CAPABILITY) == TEMPLATES[TemplatePool.CAPABILITY][0]
        assert generator.pick_from([]) == ''

    def test_chitchat_routing(self, generator):
        cases = {
            '你今年几岁了': TemplatePool.CHITCHAT_AGE,
            '你有什么爱好': TemplatePool.CHITCHAT_HOBBY,
            '你心情怎么样': TemplatePool.CHITCHAT_FEELING,
            '你吃饭了吗': TemplatePool.CHITCHAT_EAT,
            '你需要休息吗': TemplatePool.CHITCHAT_SLEEP,
            '陪我聊天': TemplatePool.CHITCHAT_DEFAULT,
        }
        for text, pool in cases.items():
            response = generator.generate(
                understanding('chitchat', text=text),
                decision(DialogueAction.DIRECT, data={'response_type': 'chitchat'})
            )
            assert response.text in TEMPLATES[pool]

    def test_knowledge_answer_with_related_questions(self, generator):
        response = generator.generate(
            understanding('explain', text='什么是变量', entities={'programming_language': 'Python'}),
            decision(DialogueAction.KNOWLEDGE, query='什么是变量'),
            {'found': True, 'answer': '变量是容器。', 'related_questions': ['什么是函数', '什么是数组']}
        )

        assert any(response.text.startswith(prefix) for prefix in TEMPLATES[TemplatePool.EXPLAIN_PREFIX])
        assert '变量是容器。' in response.text
        assert '**相关问题**：\n- 什么是函数\n- 什么是数组\n' in response.text
        assert response.suggestions == SUGGESTIONS['programming']

    def test_knowledge_miss(self, generator):
        response = generator.generate(
            understanding('question', text='宇宙有多大?'),
            decision(DialogueAction.KNOWLEDGE, query='宇宙有多大?'),
            {'found': False, 'answer': None, 'confidence': 0}
        )

        assert response.text in TEMPLATES[TemplatePool.KNOWLEDGE_NOT_FOUND]
        assert len(response.suggestions) == 3

    def test_calculation_rendering(self, generator):
        response = generator.generate(
            understanding('calculate', text='1+1等于几'),
            decision(DialogueAction.SKILL, skill='calculator'),
            {'success': True, 'result': 2, 'expression': '1+1'}
        )

        assert response.text in {'计算结果是：2', '答案是 2', '让我算算... 结果是 2', '1+1 = 2'}

    def test_skill_failure_is_apologetic(self, generator):
        response = generator.generate(
            understanding('calculate', text='5/0'),
            decision(DialogueAction.SKILL, skill='calculator'),
            {'success': False, 'error': '计算出错: 计算结果无效'}
        )

        assert '计算出错: 计算结果无效' in response.text

    def test_translator_and_default_skill_rendering(self, generator):
        text = generator.generate_skill_response('translator', {'success': True, 'translation': 'Hello'})
        assert text == '翻译结果：\n\nHello'

        assert generator.generate_skill_response('custom', {'success': True}) == '操作完成。'
        assert generator.generate_skill_response('custom', {'success': True, 'result': 'done'}) == 'done'

    def test_follow_up_suffix(self):
        generator = ResponseGenerator(ResponseConfig(follow_up_probability=1.0), rng=random.Random(1))
        asked = generator.generate(
            understanding('unknown', confidence=0),
            decision(DialogueAction.CLARIFY, clarification_prompt=GENERIC_CLARIFICATION)
        )
        assert asked.text == GENERIC_CLARIFICATION

        texts = set()
        for _ in range(20):
            response = generator.generate(
                understanding('goodbye'), decision(DialogueAction.DIRECT, data={'response_type': 'goodbye'})
            )
            texts.add(response.text)
        assert any(text.endswith(suffix) for text in texts
                   for suffix in TEMPLATES[TemplatePool.FOLLOW_UP] if suffix)


class TestSessionStore:
    """Test the in-memory session table."""

    def test_get_or_create_is_idempotent(self):
        store = InMemorySessionStore()
        session = store.get_or_create('a')

        assert store.get_or_create('a') is session
        assert isinstance(session.context, DialogContext)
        assert session.context.state == DialogState.IDLE
        assert store.get('missing') is None

    def test_expiry(self):
        store = InMemorySessionStore()
        now = datetime.now(timezone.utc)
        store.get_or_create('stale').last_active_at = now - timedelta(hours=25)
        store.get_or_create('recent').last_active_at = now - timedelta(hours=23)

        assert store.cleanup_expired(timedelta(hours=24), now=now) == 1
        assert store.get('stale') is None
        assert store.get('recent') is not None

    def test_lock_is_per_session(self):
        store = InMemorySessionStore()

        assert store.lock_for('a') is store.lock_for('a')
        assert store.lock_for('a') is not store.lock_for('b')

    def test_cleanup_prunes_locks_without_sessions(self):
        store = InMemorySessionStore()
        store.get_or_create('live')
        store.lock_for('live')
        store.lock_for('gone')

        assert store.cleanup_expired(timedelta(hours=24)) == 0
        assert set(store._locks) == {'live'}

    def test_transcript_is_bounded(self):
        session = InMemorySessionStore().get_or_create('a')
        for i in range(10):
            session.add_message('user', str(i), limit=4)

        assert [m.content for m in session.messages] == ['6', '7', '8', '9']


class TestSelfAIAgent:
    """End-to-end turns through the agent."""

    @pytest.fixture
    def agent(self):
        settings = Settings(responses=ResponseConfig(follow_up_probability=0))
        return SelfAIAgent(settings, rng=random.Random(7))

    @pytest.mark.asyncio
    async def test_greeting(self, agent):
        response = await agent.process('s1', '你好')

        assert response.success is True
        assert response.intent == 'greeting'
        assert response.response_text in TEMPLATES[TemplatePool.GREETING]
        assert agent.sessions.get('s1').context.state == DialogState.GREETING

    @pytest.mark.asyncio
    async def test_calculation(self, agent):
        captured = {}
        calculator = agent.skills.get('calculator')

        def spy(params, context):
            captured.update(params)
            return calculator(params, context)

        agent.register_skill('calculator', spy, replace=True)
        response = await agent.process('s1', '1+1等于几')

        assert response.intent == 'calculate'
        assert captured == {'expression': '1+1等于几'}
        assert response.response_text in {'计算结果是：2', '答案是 2', '让我算算... 结果是 2', '1+1 = 2'}

    @pytest.mark.asyncio
    async def test_knowledge_answer(self, agent):
        response = await agent.process('s1', '什么是变量')

        assert response.intent == 'explain'
        assert '变量是程序中用于存储数据的容器' in response.response_text
        assert len(response.suggestions) == 3

    @pytest.mark.asyncio
    async def test_added_knowledge_is_used(self, agent):
        agent.add_knowledge('programming', '什么是闭包', '闭包是能够访问外部作用域变量的函数。', ['闭包'])
        response = await agent.process('s1', '什么是闭包？')

        assert '闭包是能够访问外部作用域变量的函数。' in response.response_text

    @pytest.mark.asyncio
    async def test_code_generation(self, agent):
        response = await agent.process('s1', '用python写一个排序函数')

        assert response.intent == 'code_help'
        assert response.entities['programming_language'] == 'Python'
        assert '```python' in response.response_text

    @pytest.mark.asyncio
    async def test_translation(self, agent):
        response = await agent.process('s1', '把你好翻译成英文')

        assert response.intent == 'translate'
        assert response.response_text == '翻译结果：\n\nHello'

    @pytest.mark.asyncio
    async def test_skill_failure_is_not_an_agent_failure(self, agent):
        response = await agent.process('s1', '5/0等于多少')

        assert response.success is True
        assert '计算结果无效' in response.response_text

    @pytest.mark.asyncio
    async def test_unknown_input_asks_for_clarification(self, agent):
        response = await agent.process('s1', 'asdfgh')

        assert response.intent == 'unknown'
        assert response.response_text == GENERIC_CLARIFICATION

    @pytest.mark.asyncio
    async def test_internal_error_becomes_failure_response(self, agent, monkeypatch):
        def broken(understanding, context):
            raise RuntimeError('corrupted session')

        monkeypatch.setattr(agent.dialogue, 'process', broken)
        response = await agent.process('s1', '你好')

        assert response.success is False
        assert response.response_text == FAILURE_TEXT
        assert response.error == 'corrupted session'
        assert agent.metrics['failed_turns'] == 1

    @pytest.mark.asyncio
    async def test_history_bound(self):
        agent = SelfAIAgent(Settings(agent=AgentConfig(max_context_turns=2)))
        for _ in range(10):
            await agent.process('s1', '什么是变量')

        session = agent.sessions.get('s1')
        assert session.context.turn_count == 10
        assert len(session.context.history) == 4
        assert len(session.messages) == 4

    @pytest.mark.asyncio
    async def test_history_and_summary(self, agent):
        await agent.process('s1', '你好')
        history = agent.get_history('s1')

        assert [m['role'] for m in history] == ['user', 'assistant']
        assert history[0]['content'] == '你好'

        summary = agent.get_session_summary('s1')
        assert summary['message_count'] == 2
        assert summary['state'] == 'greeting'
        assert agent.get_session_summary('missing') is None

    @pytest.mark.asyncio
    async def test_clear_session_keeps_record(self, agent):
        await agent.process('s1', '你好')

        assert await agent.clear_session('s1') is True
        session = agent.sessions.get('s1')
        assert session is not None
        assert session.messages == []
        assert session.context.state == DialogState.IDLE
        assert session.context.history == []
        assert await agent.clear_session('missing') is False

    @pytest.mark.asyncio
    async def test_clearing_unknown_sessions_allocates_nothing(self, agent):
        for i in range(100):
            assert await agent.clear_session(f'ghost-{i}') is False

        assert len(agent.sessions) == 0
        assert agent.sessions._locks == {}

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, agent):
        await agent.process('s1', '你好')

        assert agent.sessions.get('s2') is None
        await agent.process('s2', '什么是变量')
        assert agent.sessions.get('s1').context.state == DialogState.GREETING
        assert agent.sessions.get('s2').context.state == DialogState.TASK

    @pytest.mark.asyncio
    async def test_same_session_turns_are_serialized(self, agent):
        active = 0
        peak = 0

        async def slow_clock(params, context):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return {'datetime': 'now'}

        agent.register_skill('datetime', slow_clock, replace=True)
        responses = await asyncio.gather(*[agent.process('s1', '现在几点了') for _ in range(5)])

        assert all(r.success for r in responses)
        assert peak == 1
        context = agent.sessions.get('s1').context
        assert [record.turn for record in context.history] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_expired_sessions_are_evicted(self, agent):
        await agent.process('old', '你好')
        await agent.process('new', '你好')
        agent.sessions.get('old').last_active_at -= timedelta(hours=25)

        assert agent.cleanup_expired_sessions() == 1
        assert agent.sessions.get('old') is None
        assert agent.sessions.get('new') is not None

    @pytest.mark.asyncio
    async def test_start_and_stop(self, agent):
        assert await agent.start() is True
        assert agent.get_status()['running'] is True

        assert await agent.stop() is True
        status = agent.get_status()
        assert status['running'] is False
        assert 'calculator' in status['skills']
        assert status['knowledge_entries'] == 15
