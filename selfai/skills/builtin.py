"""
Built-in Skills
===============

Stateless handlers registered by default: date/time, code template lookup,
dictionary translation and extractive summarization. The calculator lives
in its own module because of its parser.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

from .code_templates import CODE_TEMPLATES, DEFAULT_LANGUAGE, GENERIC_TEMPLATE

WEEKDAYS = ['一', '二', '三', '四', '五', '六', '日']

DEFAULT_TARGET_LANGUAGE = '英文'

DICTIONARY = {
    '你好': {'英文': 'Hello', '日文': 'こんにちは'},
    '谢谢': {'英文': 'Thank you', '日文': 'ありがとう'},
    '再见': {'英文': 'Goodbye', '日文': 'さようなら'},
    '早上好': {'英文': 'Good morning', '日文': 'おはようございます'},
    '晚上好': {'英文': 'Good evening', '日文': 'こんばんは'},
    '对不起': {'英文': 'Sorry', '日文': 'すみません'},
    '是': {'英文': 'Yes', '日文': 'はい'},
    '不是': {'英文': 'No', '日文': 'いいえ'},
}

# Patterns locating the term inside a translation request, tried in order.
TRANSLATION_TERM_PATTERNS = [
    re.compile(r'["“”\'‘’「」](.+?)["“”\'‘’「」]'),
    re.compile(r'把(.+?)(?:翻译|译)'),
    re.compile(r'翻译(?:一下)?(.+?)(?:成|为|到)'),
    re.compile(r'^(.+?)(?:用|的)(?:英文|英语|中文|日文|日语|韩文|韩语|法文|法语|德文|德语)'),
]

SENTENCE_SPLIT = re.compile(r'[。！？.!?]+')
MIN_SUMMARY_LENGTH = 50
SUMMARY_SENTENCES = 3


def datetime_skill(params: Dict[str, Any], context: Any = None,
                   now: Optional[datetime] = None) -> Dict[str, Any]:
    """Current local date and time in several granularities."""
    now = now or datetime.now()
    week_day = f"星期{WEEKDAYS[now.weekday()]}"
    date_text = f"{now.year}年{now.month}月{now.day}日"
    time_text = now.strftime('%H:%M:%S')

    return {
        'datetime': f"{date_text} {week_day} {time_text}",
        'date': date_text,
        'time': time_text,
        'weekDay': week_day,
        'timestamp': int(now.timestamp() * 1000)
    }


def code_generator_skill(params: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Return a canned snippet for the first topic keyword found in the task."""
    task_description = params.get('task_description') or ''
    language = params.get('programming_language') or DEFAULT_LANGUAGE
    if isinstance(language, list):
        language = language[0]

    task_lower = task_description.lower()
    code = None
    for keyword, templates in CODE_TEMPLATES.items():
        if keyword.lower() in task_lower:
            code = templates.get(language) or templates[DEFAULT_LANGUAGE]
            break

    if code is None:
        code = GENERIC_TEMPLATE.format(language=language, task=task_description)

    return {
        'code': f"```{language.lower()}\n{code}\n```",
        'language': language
    }


def extract_translation_term(source_text: str) -> str:
    """Pull the phrase to translate out of a full request."""
    text = source_text.strip()
    for pattern in TRANSLATION_TERM_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return text


def translator_skill(params: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Exact-match dictionary translation."""
    source_text = params.get('source_text') or ''
    target_language = params.get('target_language') or DEFAULT_TARGET_LANGUAGE
    if isinstance(target_language, list):
        target_language = target_language[0]

    term = extract_translation_term(source_text)
    translation = DICTIONARY.get(term, {}).get(target_language)

    if translation:
        return {'translation': translation, 'term': term, 'target_language': target_language}

    return {
        'translation': (
            f'抱歉，我目前的词典中没有"{term}"的{target_language}翻译。'
            f'作为自研AI，我的翻译能力还在扩充中。'
        ),
        'term': term,
        'target_language': target_language,
        'known': False
    }


def summarizer_skill(params: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Extractive summary: the first three sentences."""
    text = params.get('text') or ''

    if len(text) < MIN_SUMMARY_LENGTH:
        return {'result': '文本太短，无需总结。'}

    sentences = [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]
    picked = sentences[:SUMMARY_SENTENCES]
    summary = '。'.join(picked) + '。'

    return {
        'result': (
            f"**摘要**：\n{summary}\n\n"
            f"（原文共{len(text)}字，提取了前{len(picked)}句作为摘要）"
        ),
        'summary': summary,
        'sentence_count': len(sentences)
    }
