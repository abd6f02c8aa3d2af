"""
Intent Recognition
==================

Rule-based intent classification and entity extraction.

Intents come from a fixed catalogue of regex patterns with priorities. A
pattern match scores ``min(0.95, match_ratio * 0.5 + priority * 0.05)`` and
the best score wins. When nothing scores at least the fallback threshold, a
plain keyword table gets a second chance. Entities are pulled out with
pattern rules and normalized (``js`` becomes ``JavaScript``, ``英语``
becomes ``英文``).
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern

logger = logging.getLogger(__name__)

UNKNOWN_INTENT = 'unknown'
MAX_CONFIDENCE = 0.95
MAX_KEYWORDS = 5


class ConfidenceLevel(Enum):
    """Intent confidence levels."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class IntentDefinition:
    """One catalogue entry: an intent tag, its patterns and a priority."""
    intent: str
    patterns: List[Pattern]
    priority: int


@dataclass
class EntityDefinition:
    """Extraction rules for one entity type."""
    entity_type: str
    patterns: List[Pattern]
    normalize: Callable[[str], Any] = lambda match: match


@dataclass
class UnderstandingResult:
    """Structured reading of one utterance."""
    intent: str = UNKNOWN_INTENT
    confidence: float = 0.0
    entities: Dict[str, Any] = field(default_factory=dict)
    keywords: List[str] = field(default_factory=list)
    original_text: str = ""
    is_question: bool = False
    sentiment: str = "neutral"
    matched_text: Optional[str] = None

    @property
    def confidence_level(self) -> ConfidenceLevel:
        if self.confidence >= 0.8:
            return ConfidenceLevel.HIGH
        elif self.confidence >= 0.5:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            'intent': self.intent,
            'confidence': self.confidence,
            'entities': self.entities,
            'keywords': self.keywords,
            'original_text': self.original_text,
            'is_question': self.is_question,
            'sentiment': self.sentiment
        }


def _compile(*patterns: str, flags: int = 0) -> List[Pattern]:
    return [re.compile(p, flags) for p in patterns]


def default_intent_catalogue() -> List[IntentDefinition]:
    """The built-in intent catalogue, in evaluation order."""
    return [
        IntentDefinition('greeting', _compile(
            r'^(你好|您好|hi|hello|嗨|哈喽|早上好|下午好|晚上好|早安|晚安)',
            r'^(在吗|在不在|有人吗)',
            flags=re.IGNORECASE), 10),
        IntentDefinition('goodbye', _compile(
            r'^(再见|拜拜|bye|goodbye|回见|下次见|晚安)',
            r'(结束|退出|关闭).*对话',
            flags=re.IGNORECASE), 10),
        IntentDefinition('thanks', _compile(
            r'(谢谢|感谢|多谢|thanks|thank you|thx)',
            r'辛苦了',
            flags=re.IGNORECASE), 10),
        IntentDefinition('ask_capability', _compile(
            r'(你能|你会|你可以|能不能|会不会|可不可以).*(做什么|干什么|帮.*什么)',
            r'(你|你们).*(功能|能力|本事|特长)',
            r'你是(谁|什么|干嘛的)',
            r'(介绍|说说).*(自己|你自己)',
            r'^(你能做什么|你会什么|你有什么功能)'), 9),
        IntentDefinition('code_help', _compile(
            r'(写|生成|创建|编写|实现).*(代码|程序|函数|方法|类|脚本)',
            r'(代码|程序|函数).*(怎么写|如何写|怎样写)',
            r'帮我.*(写|实现|编写).*(代码|程序|功能)',
            r'(javascript|python|java|c\+\+|go|rust|html|css|sql|react|vue)',
            flags=re.IGNORECASE), 8),
        IntentDefinition('explain', _compile(
            r'(什么是|解释一下|说明一下|介绍一下|讲讲|说说)',
            r'(是什么意思|什么意思|啥意思)',
            r'(.+)(是什么|是啥)',
            r'(怎么理解|如何理解)'), 7),
        IntentDefinition('how_to', _compile(
            r'(怎么|如何|怎样|咋).*(做|实现|完成|处理|解决|使用|操作)',
            r'(.+)的(方法|步骤|流程|教程)',
            r'(教我|告诉我).*(怎么|如何)'), 7),
        IntentDefinition('compare', _compile(
            r'(.+)和(.+)(的区别|有什么区别|区别是什么|哪个好|哪个更好)',
            r'(.+)与(.+)(对比|比较|相比)',
            r'(比较|对比).*(.+)和(.+)'), 7),
        IntentDefinition('calculate', _compile(
            r'(\d+)\s*[+\-*/×÷]\s*(\d+)',
            r'(计算|算一下|算算|多少)',
            r'(\d+).*(加|减|乘|除).*(\d+)'), 8),
        IntentDefinition('datetime', _compile(
            r'(现在|今天|明天|昨天|这周|下周|上周|这个月|下个月).*(几点|几号|星期几|日期|时间)',
            r'(几点了|什么时候|什么时间)',
            r'今天是.*(几号|星期几)'), 8),
        IntentDefinition('translate', _compile(
            r'(翻译|translate).*(成|为|到)',
            r'(.+)(用|的)(英文|中文|日文|韩文|法文|德文)',
            r'(英文|中文|日文|韩文).*怎么说',
            flags=re.IGNORECASE), 8),
        IntentDefinition('summarize', _compile(
            r'(总结|概括|归纳|提炼|摘要)',
            r'帮我.*(总结|概括)'), 7),
        IntentDefinition('recommend', _compile(
            r'(推荐|建议|有什么好的|有没有好的)',
            r'给我.*(推荐|建议)',
            r'(什么|哪个|哪些).*(好|值得|推荐)'), 6),
        IntentDefinition('chitchat', _compile(
            r'(无聊|聊天|陪我|说话|讲个笑话|讲笑话)',
            r'(你.*几岁|你.*年龄|你.*多大)',
            r'(你.*喜欢|你.*爱好|你.*兴趣)',
            r'(你.*吃饭|你.*睡觉|你.*休息)'), 5),
        IntentDefinition('question', _compile(
            r'\?$',
            r'？$',
            r'^(为什么|为啥|怎么回事)',
            r'(吗|呢|吧)$'), 3),
    ]


# Second-chance keyword table used when no pattern is convincing.
KEYWORD_INTENTS = {
    'greeting': ['你好', '您好', '嗨', '早上好', '下午好', '晚上好'],
    'code_help': ['代码', '程序', '函数', '编程', '开发', '实现'],
    'explain': ['什么是', '解释', '说明', '介绍', '讲讲'],
    'how_to': ['怎么', '如何', '怎样', '方法', '步骤'],
    'ask_capability': ['你能', '你会', '功能', '能力'],
}

PROGRAMMING_LANGUAGES = {
    'js': 'JavaScript', 'javascript': 'JavaScript',
    'ts': 'TypeScript', 'typescript': 'TypeScript',
    'python': 'Python', 'java': 'Java',
    'c++': 'C++', 'cpp': 'C++',
    'c#': 'C#', 'csharp': 'C#',
    'go': 'Go', 'golang': 'Go',
    'rust': 'Rust', 'ruby': 'Ruby', 'php': 'PHP', 'swift': 'Swift',
    'kotlin': 'Kotlin', 'scala': 'Scala', 'matlab': 'MATLAB',
    'sql': 'SQL', 'html': 'HTML', 'css': 'CSS', 'shell': 'Shell', 'bash': 'Bash',
}

FRAMEWORKS = {
    'react': 'React', 'vue': 'Vue', 'angular': 'Angular', 'svelte': 'Svelte',
    'nextjs': 'Next.js', 'nuxt': 'Nuxt', 'express': 'Express', 'koa': 'Koa',
    'fastify': 'Fastify', 'django': 'Django', 'flask': 'Flask', 'spring': 'Spring',
    'springboot': 'Spring Boot', 'laravel': 'Laravel', 'rails': 'Rails',
    'gin': 'Gin', 'echo': 'Echo', 'fiber': 'Fiber',
}

TARGET_LANGUAGES = {
    '英文': '英文', '英语': '英文',
    '中文': '中文', '汉语': '中文',
    '日文': '日文', '日语': '日文',
    '韩文': '韩文', '韩语': '韩文',
    '法文': '法文', '法语': '法文',
    '德文': '德文', '德语': '德文',
}

CITIES = (
    '北京|上海|广州|深圳|杭州|南京|成都|武汉|西安|重庆|天津|苏州|郑州|长沙|青岛|大连|宁波|厦门|福州|'
    '济南|合肥|昆明|贵阳|南宁|海口|拉萨|乌鲁木齐|呼和浩特|银川|西宁|兰州|太原|石家庄|沈阳|长春|哈尔滨'
)


def _word_alternation(names) -> str:
    """Alternation of ASCII names, longest first, bounded by non-alphanumerics."""
    ordered = sorted(names, key=len, reverse=True)
    body = '|'.join(re.escape(name) for name in ordered)
    return rf'(?<![A-Za-z0-9#+])(?:{body})(?![A-Za-z0-9#+])'


def default_entity_rules() -> List[EntityDefinition]:
    """Built-in entity extraction rules."""
    return [
        EntityDefinition(
            'programming_language',
            _compile(_word_alternation(PROGRAMMING_LANGUAGES), flags=re.IGNORECASE),
            lambda match: PROGRAMMING_LANGUAGES.get(match.lower(), match)
        ),
        EntityDefinition(
            'number',
            _compile(r'(?<![\d.])\d+(?:\.\d+)?'),
            float
        ),
        EntityDefinition(
            'date',
            _compile(
                r'\d{4}[-/年]\d{1,2}[-/月]\d{1,2}[日号]?',
                r'(?:大后天|大前天|今天|明天|昨天|后天|前天)',
                r'(?:这周|下周|上周|本周)[一二三四五六日天]?'
            )
        ),
        EntityDefinition(
            'time',
            _compile(r'\d{1,2}[点时:：]\d{0,2}分?', r'(?:早上|上午|中午|下午|晚上|凌晨)')
        ),
        EntityDefinition('city', _compile(f'(?:{CITIES})')),
        EntityDefinition(
            'framework',
            _compile(_word_alternation(FRAMEWORKS), flags=re.IGNORECASE),
            lambda match: FRAMEWORKS.get(match.lower(), match)
        ),
        EntityDefinition(
            'language',
            _compile('(?:' + '|'.join(TARGET_LANGUAGES) + ')'),
            lambda match: TARGET_LANGUAGES.get(match, match)
        ),
    ]


STOP_WORDS = {
    '的', '了', '是', '在', '我', '有', '和', '就', '不', '人', '都', '一', '一个',
    '上', '也', '很', '到', '说', '要', '去', '你', '会', '着', '没有', '看', '好',
    '自己', '这', '那', '什么', '吗', '呢', '啊', '哦', '嗯', '请', '帮', '帮我'
}

TOKEN_PATTERN = re.compile(r'[A-Za-z0-9_+#.]+|[一-鿿]+')
CJK_STOP_SPLIT = re.compile('|'.join(sorted(STOP_WORDS, key=len, reverse=True)))

QUESTION_PATTERNS = _compile(
    r'[?？]$',
    r'^(什么|怎么|如何|为什么|哪|谁|几|多少)',
    r'(吗|呢|吧|啊)$'
)

POSITIVE_WORDS = ['好', '棒', '优秀', '喜欢', '感谢', '谢谢', '开心', '高兴', '满意', '不错', '厉害', '牛', '赞']
NEGATIVE_WORDS = ['差', '烂', '糟糕', '讨厌', '生气', '愤怒', '失望', '不满', '垃圾', '坑', '难用']

FULLWIDTH_PUNCTUATION = str.maketrans({'？': '?', '！': '!', '，': ',', '。': '.', '：': ':', '；': ';'})


def normalize_text(text: Optional[str]) -> str:
    """Trim, convert full-width punctuation to ASCII and collapse whitespace."""
    if not text:
        return ''
    return re.sub(r'\s+', ' ', text.strip().translate(FULLWIDTH_PUNCTUATION))


class IntentRecognizer:
    """Rule-based intent recognizer and entity extractor."""

    def __init__(self, keyword_fallback_threshold: float = 0.3):
        self.keyword_fallback_threshold = keyword_fallback_threshold
        self.intent_catalogue = default_intent_catalogue()
        self.entity_rules = default_entity_rules()
        self.keyword_intents = {intent: list(words) for intent, words in KEYWORD_INTENTS.items()}

    def understand(self, text: str, context: Any = None) -> UnderstandingResult:
        """
        Analyze one utterance.

        Args:
            text: Normalized user text
            context: Current dialogue context (unused by the rules, kept for extensions)

        Returns:
            UnderstandingResult; empty or unparseable input yields ``unknown`` with confidence 0
        """
        result = UnderstandingResult(original_text=text or "")
        if not text or not text.strip():
            return result

        try:
            result.keywords = self.extract_keywords(text)
            intent, confidence, matched = self.recognize_intent(text)
            result.intent = intent
            result.confidence = confidence
            result.matched_text = matched
            result.entities = self.extract_entities(text)
            result.sentiment = self.analyze_sentiment(text)
            result.is_question = self.is_question(text)
        except Exception as e:
            logger.error(f"Intent recognition failed: {e}")
            return UnderstandingResult(original_text=text)

        logger.debug(f"Recognized intent {result.intent} ({result.confidence:.2f}) for '{text}'")
        return result

    def recognize_intent(self, text: str):
        """Return ``(intent, confidence, matched_text)`` for the best rule."""
        best_intent, best_confidence, best_match = UNKNOWN_INTENT, 0.0, None

        for definition in self.intent_catalogue:
            for pattern in definition.patterns:
                match = pattern.search(text)
                if not match:
                    continue
                match_ratio = len(match.group(0)) / len(text)
                confidence = min(MAX_CONFIDENCE, match_ratio * 0.5 + definition.priority * 0.05)
                if confidence > best_confidence:
                    best_intent, best_confidence, best_match = definition.intent, confidence, match.group(0)

        if best_confidence < self.keyword_fallback_threshold:
            intent, confidence, keyword = self.match_by_keywords(text)
            if confidence > best_confidence:
                best_intent, best_confidence, best_match = intent, confidence, keyword

        return best_intent, best_confidence, best_match

    def match_by_keywords(self, text: str):
        """Keyword containment fallback."""
        best = (UNKNOWN_INTENT, 0.0, None)
        for intent, keywords in self.keyword_intents.items():
            for keyword in keywords:
                if keyword in text:
                    confidence = 0.4 + (len(keyword) / len(text)) * 0.3
                    if confidence > best[1]:
                        best = (intent, confidence, keyword)
        return best

    def extract_entities(self, text: str) -> Dict[str, Any]:
        """Typed values found in the text; a list when several distinct ones appear."""
        entities: Dict[str, Any] = {}

        for rule in self.entity_rules:
            found: List[Any] = []
            for pattern in rule.patterns:
                for match in pattern.finditer(text):
                    value = rule.normalize(match.group(0))
                    if value not in found:
                        found.append(value)
            if found:
                entities[rule.entity_type] = found[0] if len(found) == 1 else found

        return entities

    def extract_keywords(self, text: str) -> List[str]:
        """Most frequent non-stop-word tokens, at most five."""
        tokens = []
        for raw in TOKEN_PATTERN.findall(text):
            if raw.isascii():
                token = raw.strip('.').lower()
                if token:
                    tokens.append(token)
            else:
                tokens.extend(part for part in CJK_STOP_SPLIT.split(raw) if part)

        filtered = [t for t in tokens if t not in STOP_WORDS and len(t) > 1]
        return [word for word, _ in Counter(filtered).most_common(MAX_KEYWORDS)]

    def analyze_sentiment(self, text: str) -> str:
        positive = sum(1 for word in POSITIVE_WORDS if word in text)
        negative = sum(1 for word in NEGATIVE_WORDS if word in text)

        if positive > negative:
            return 'positive'
        if negative > positive:
            return 'negative'
        return 'neutral'

    def is_question(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in QUESTION_PATTERNS)

    def add_intent_pattern(self, intent: str, pattern: str, priority: int = 5):
        """Add a new intent pattern, creating the intent if needed."""
        compiled = re.compile(pattern, re.IGNORECASE)
        for definition in self.intent_catalogue:
            if definition.intent == intent:
                definition.patterns.append(compiled)
                return
        self.intent_catalogue.append(IntentDefinition(intent, [compiled], priority))

    def get_supported_intents(self) -> List[str]:
        """Get list of supported intents."""
        return [definition.intent for definition in self.intent_catalogue] + [UNKNOWN_INTENT]
