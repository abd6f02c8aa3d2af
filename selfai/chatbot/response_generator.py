"""
Response Generator
==================

Template-based rendering of the final reply.

Every response category has a pool of phrasings. Selection is random but
never repeats the previous pick from the same pool; the generator keeps an
explicit map from a pool's content hash to the index it last used.
"""

import hashlib
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import ResponseConfig
from .dialog_state import DialogueAction, DialogueDecision
from .intent_recognizer import UnderstandingResult

logger = logging.getLogger(__name__)


class TemplatePool(Enum):
    """Named pools of candidate phrasings."""
    GREETING = "greeting"
    GOODBYE = "goodbye"
    THANKS = "thanks"
    CAPABILITY = "capability"
    NOT_UNDERSTAND = "not_understand"
    KNOWLEDGE_NOT_FOUND = "knowledge_not_found"
    CHITCHAT_AGE = "chitchat_age"
    CHITCHAT_HOBBY = "chitchat_hobby"
    CHITCHAT_FEELING = "chitchat_feeling"
    CHITCHAT_EAT = "chitchat_eat"
    CHITCHAT_SLEEP = "chitchat_sleep"
    CHITCHAT_DEFAULT = "chitchat_default"
    CALCULATE = "calculate"
    DATETIME = "datetime"
    CODE_PREFIX = "code_prefix"
    EXPLAIN_PREFIX = "explain_prefix"
    FOLLOW_UP = "follow_up"
    SKILL_ERROR = "skill_error"


TEMPLATES: Dict[TemplatePool, List[str]] = {
    TemplatePool.GREETING: [
        '你好！我是智器云助手，很高兴为您服务！有什么我可以帮助您的吗？',
        '您好！欢迎使用智器云助手！请问有什么可以帮您？',
        '嗨！我是智器云AI助手，随时准备为您解答问题！',
        '你好呀！我是您的智能助手，有什么想问的尽管说！',
        '您好！智器云助手在线，请问需要什么帮助？',
    ],
    TemplatePool.GOODBYE: [
        '再见！期待下次与您交流！',
        '拜拜！有问题随时来找我哦！',
        '再见！祝您工作顺利！',
        '好的，再见！随时欢迎回来！',
        '下次见！希望今天的交流对您有帮助！',
    ],
    TemplatePool.THANKS: [
        '不客气！能帮到您我很开心！',
        '不用谢！这是我应该做的！',
        '很高兴能帮到您！还有其他问题吗？',
        '不客气！有问题随时问我！',
        '能帮到您是我的荣幸！',
    ],
    TemplatePool.CAPABILITY: [
        '我是智器云自主研发的AI助手，我可以：\n\n'
        '**编程帮助**\n'
        '   - 解释编程概念（变量、函数、循环、面向对象等）\n'
        '   - 介绍技术框架（React、Vue、Node.js等）\n'
        '   - 回答技术问题\n\n'
        '**知识问答**\n'
        '   - 解释各种概念和术语\n'
        '   - 对比不同技术的区别\n'
        '   - 提供学习建议\n\n'
        '**实用工具**\n'
        '   - 数学计算\n'
        '   - 日期时间查询\n'
        '   - 代码片段生成\n\n'
        '**日常对话**\n'
        '   - 闲聊交流\n'
        '   - 回答各种问题\n\n'
        '试着问我一个问题吧！比如"什么是变量"或"React和Vue有什么区别"',
    ],
    TemplatePool.NOT_UNDERSTAND: [
        '抱歉，我不太理解您的意思。能否换个方式描述一下？',
        '不好意思，我没有完全理解。您能说得更具体一些吗？',
        '我可能没有理解您的问题，能否再解释一下？',
        '抱歉，这个问题我不太明白。您可以换个说法吗？',
    ],
    TemplatePool.KNOWLEDGE_NOT_FOUND: [
        '抱歉，关于这个问题我的知识库中暂时没有相关信息。您可以尝试换个问法，或者问我其他问题。',
        '这个问题超出了我目前的知识范围。不过您可以问我编程、技术框架等方面的问题！',
        '我暂时无法回答这个问题。作为自研AI，我的知识还在不断扩充中。试试问我其他问题？',
    ],
    TemplatePool.CHITCHAT_AGE: [
        '我是一个AI程序，没有年龄的概念哦！但我的代码是最近才写的，算是很年轻吧！',
        '作为AI，我不像人类那样有年龄。不过我的知识库一直在更新，永远保持"年轻"！',
    ],
    TemplatePool.CHITCHAT_HOBBY: [
        '我最喜欢的事情就是回答问题和帮助用户！每次能帮到人我都很开心。',
        '我喜欢学习新知识，和用户交流也让我很快乐！',
    ],
    TemplatePool.CHITCHAT_FEELING: [
        '作为AI，我没有真正的情感，但我被设计成友好和乐于助人的！',
        '我没有人类的情感，但我会尽力让每次对话都愉快有帮助！',
    ],
    TemplatePool.CHITCHAT_EAT: [
        '我不需要吃饭哦，我靠电力运行！不过我可以帮你推荐美食~',
        '作为AI我不吃东西，但我知道很多关于美食的知识！',
    ],
    TemplatePool.CHITCHAT_SLEEP: [
        '我不需要睡觉，24小时都在线为您服务！',
        '我是AI，不需要休息。随时都可以来找我聊天！',
    ],
    TemplatePool.CHITCHAT_DEFAULT: [
        '这是个有趣的话题！虽然作为AI我的体验有限，但我很乐意和您聊天。',
        '哈哈，这个问题很有意思！您还想聊点什么？',
    ],
    TemplatePool.CALCULATE: [
        '计算结果是：{result}',
        '答案是 {result}',
        '让我算算... 结果是 {result}',
        '{expression} = {result}',
    ],
    TemplatePool.DATETIME: [
        '现在是 {datetime}',
        '当前时间：{datetime}',
        '现在的时间是 {datetime}',
    ],
    TemplatePool.CODE_PREFIX: [
        '好的，这是为您生成的代码：\n\n',
        '根据您的需求，我生成了以下代码：\n\n',
        '这是实现该功能的代码示例：\n\n',
    ],
    TemplatePool.EXPLAIN_PREFIX: [
        '让我来解释一下：\n\n',
        '关于这个问题：\n\n',
        '好的，我来说明一下：\n\n',
    ],
    TemplatePool.FOLLOW_UP: [
        '\n\n还有其他问题吗？',
        '\n\n希望这个回答对您有帮助！',
        '\n\n如果还有疑问，随时问我！',
        '',
    ],
    TemplatePool.SKILL_ERROR: [
        '抱歉，执行该操作时出现了问题：{error}',
        '不好意思，这次没能完成：{error}。您可以换个说法再试一次。',
        '操作没有成功（{error}），请检查输入后再试。',
    ],
}

SUGGESTIONS: Dict[str, List[str]] = {
    'programming': ['什么是函数', '什么是数组', '什么是面向对象'],
    'framework': ['React是什么', 'Vue是什么', 'Node.js是什么'],
    'general': ['什么是人工智能', '什么是机器学习'],
}

# (keywords, pool), checked in order against the raw utterance
CHITCHAT_ROUTES = [
    (('几岁', '年龄', '多大'), TemplatePool.CHITCHAT_AGE),
    (('喜欢', '爱好', '兴趣'), TemplatePool.CHITCHAT_HOBBY),
    (('感觉', '心情', '开心'), TemplatePool.CHITCHAT_FEELING),
    (('吃', '饿'), TemplatePool.CHITCHAT_EAT),
    (('睡', '休息'), TemplatePool.CHITCHAT_SLEEP),
]

DIRECT_POOLS = {
    'greeting': TemplatePool.GREETING,
    'goodbye': TemplatePool.GOODBYE,
    'thanks': TemplatePool.THANKS,
    'capability': TemplatePool.CAPABILITY,
}

UNANSWERED_QUESTION = (
    '这是个好问题！不过我目前的知识库中没有找到直接相关的答案。'
    '您可以尝试问我编程、技术框架等方面的问题，或者换个方式描述您的问题。'
)
GENERIC_ACKNOWLEDGEMENT = '我理解了您说的内容。请问有什么具体问题需要我帮助解答吗？'


@dataclass
class GeneratedResponse:
    """Rendered reply for one turn."""
    text: str
    suggestions: List[str] = field(default_factory=list)
    intent: str = "unknown"
    confidence: float = 0.0


def pool_key(pool: List[str]) -> str:
    """Stable identity of a pool, derived from its content."""
    return hashlib.sha1('\x1f'.join(pool).encode('utf-8')).hexdigest()


class ResponseGenerator:
    """Renders replies from template pools without immediate repeats."""

    def __init__(self, config: Optional[ResponseConfig] = None, rng: Optional[random.Random] = None,
                 templates: Optional[Dict[TemplatePool, List[str]]] = None):
        self.config = config or ResponseConfig()
        self.rng = rng or random.Random()
        self.templates = templates or TEMPLATES
        self._last_used: Dict[str, int] = {}

    def pick(self, pool: TemplatePool) -> str:
        return self.pick_from(self.templates[pool])

    def pick_from(self, candidates: List[str]) -> str:
        """Random choice that differs from the previous choice for this pool."""
        if not candidates:
            return ''
        if len(candidates) == 1:
            return candidates[0]

        key = pool_key(candidates)
        last_index = self._last_used.get(key)
        index = self.rng.randrange(len(candidates))
        while index == last_index:
            index = self.rng.randrange(len(candidates))

        self._last_used[key] = index
        return candidates[index]

    def generate(self, understanding: UnderstandingResult, decision: DialogueDecision,
                 action_result: Optional[Dict[str, Any]] = None) -> GeneratedResponse:
        """
        Render the reply for a turn.

        Args:
            understanding: Result of intent and entity extraction
            decision: Dialogue policy decision
            action_result: Skill or knowledge result, if an action ran

        Returns:
            GeneratedResponse with text and follow-up suggestions
        """
        suggestions: List[str] = []

        if decision.action == DialogueAction.DIRECT:
            text = self.generate_direct_response(decision.data, understanding)
        elif decision.action == DialogueAction.KNOWLEDGE:
            text = self.generate_knowledge_response(action_result)
            suggestions = self.get_suggestions(understanding)
        elif decision.action == DialogueAction.SKILL:
            text = self.generate_skill_response(decision.skill, action_result)
        elif decision.action == DialogueAction.CLARIFY:
            text = decision.clarification_prompt or self.pick(TemplatePool.NOT_UNDERSTAND)
        else:
            text = self.generate_default_response(understanding)

        if '?' not in text and '？' not in text and self.rng.random() < self.config.follow_up_probability:
            text += self.pick(TemplatePool.FOLLOW_UP)

        return GeneratedResponse(
            text=text,
            suggestions=suggestions,
            intent=understanding.intent,
            confidence=understanding.confidence
        )

    def generate_direct_response(self, data: Dict[str, Any], understanding: UnderstandingResult) -> str:
        response_type = (data or {}).get('response_type')

        if response_type in DIRECT_POOLS:
            return self.pick(DIRECT_POOLS[response_type])
        if response_type == 'chitchat':
            return self.generate_chitchat_response(understanding)
        return self.generate_default_response(understanding)

    def generate_chitchat_response(self, understanding: UnderstandingResult) -> str:
        text = understanding.original_text.lower()
        for keywords, pool in CHITCHAT_ROUTES:
            if any(keyword in text for keyword in keywords):
                return self.pick(pool)
        return self.pick(TemplatePool.CHITCHAT_DEFAULT)

    def generate_knowledge_response(self, result: Optional[Dict[str, Any]]) -> str:
        if not result or not result.get('found'):
            return self.pick(TemplatePool.KNOWLEDGE_NOT_FOUND)

        response = self.pick(TemplatePool.EXPLAIN_PREFIX) + result['answer']

        related = result.get('related_questions') or []
        if related:
            response += '\n\n**相关问题**：\n'
            for question in related[:3]:
                response += f"- {question}\n"

        return response

    def generate_skill_response(self, skill: Optional[str], result: Optional[Dict[str, Any]]) -> str:
        if not result or not result.get('success'):
            error = (result or {}).get('error') or '未知错误'
            return self.pick(TemplatePool.SKILL_ERROR).replace('{error}', str(error))

        if skill == 'calculator':
            return (self.pick(TemplatePool.CALCULATE)
                    .replace('{result}', str(result.get('result')))
                    .replace('{expression}', str(result.get('expression') or '')))
        if skill == 'datetime':
            return self.pick(TemplatePool.DATETIME).replace('{datetime}', str(result.get('datetime')))
        if skill == 'code_generator':
            return self.pick(TemplatePool.CODE_PREFIX) + result.get('code', '')
        if skill == 'translator':
            return f"翻译结果：\n\n{result.get('translation')}"

        return str(result.get('result') or '操作完成。')

    def generate_default_response(self, understanding: UnderstandingResult) -> str:
        if understanding.confidence < 0.3:
            return self.pick(TemplatePool.NOT_UNDERSTAND)
        if understanding.is_question:
            return UNANSWERED_QUESTION
        return GENERIC_ACKNOWLEDGEMENT

    def get_suggestions(self, understanding: UnderstandingResult) -> List[str]:
        """Follow-up questions related to the entities of the turn."""
        if understanding.entities.get('programming_language'):
            return list(SUGGESTIONS['programming'])
        if understanding.entities.get('framework'):
            return list(SUGGESTIONS['framework'])

        everything = [q for topic in SUGGESTIONS.values() for q in topic]
        self.rng.shuffle(everything)
        return everything[:self.config.suggestion_count]
