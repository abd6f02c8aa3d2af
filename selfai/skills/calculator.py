"""
Safe Arithmetic Evaluation
==========================

Calculator skill backed by a tokenizer and recursive-descent parser.

Input text is normalized (Chinese operator words, full-width symbols), the
first arithmetic run is extracted, checked against a strict character
whitelist, parsed into a small tagged AST and evaluated recursively. Nothing
derived from user input is ever executed as code.

Grammar::

    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := ('+' | '-') factor | primary
    primary    := NUMBER | '(' expression ')'
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..error_handling import ExpressionError

WHITELIST = re.compile(r'^[0-9+\-*/(). ]+$')
TOKEN_PATTERN = re.compile(r'\s*(?:(\d+\.?\d*|\.\d+)|(.))')
EXPRESSION_RUN = re.compile(r'[0-9+\-*/().\s]+')

OPERATOR_WORDS = {
    '加上': '+',
    '减去': '-',
    '乘以': '*',
    '除以': '/',
    '加': '+',
    '减': '-',
    '乘': '*',
    '除': '/',
    '×': '*',
    '÷': '/',
    '（': '(',
    '）': ')',
    '＋': '+',
    '－': '-',
    '＊': '*',
    '／': '/',
}

MAX_NESTING = 64
MAX_TOKENS = 256


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Number, UnaryOp, BinaryOp]


@dataclass(frozen=True)
class Token:
    kind: str  # "number" or "op"
    text: str


def tokenize(expression: str) -> List[Token]:
    """Split a whitelisted expression into number and operator tokens."""
    tokens = []
    position = 0
    stripped = expression.rstrip()

    while position < len(stripped):
        match = TOKEN_PATTERN.match(stripped, position)
        if not match:
            raise ExpressionError("表达式格式错误")
        number, op = match.groups()
        if number is not None:
            tokens.append(Token("number", number))
        elif op in "+-*/()":
            tokens.append(Token("op", op))
        else:
            raise ExpressionError("表达式包含非法字符")
        if len(tokens) > MAX_TOKENS:
            raise ExpressionError("表达式过长")
        position = match.end()

    return tokens


class Parser:
    """Recursive-descent parser producing a tagged AST."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0
        self.depth = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ExpressionError("表达式为空")
        node = self._expression()
        if self._peek() is not None:
            raise ExpressionError("表达式格式错误")
        return node

    def _peek(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise ExpressionError("表达式不完整")
        self.position += 1
        return token

    def _expression(self) -> Node:
        node = self._term()
        while True:
            token = self._peek()
            if token is None or token.text not in "+-":
                return node
            self._advance()
            node = BinaryOp(token.text, node, self._term())

    def _term(self) -> Node:
        node = self._factor()
        while True:
            token = self._peek()
            if token is None or token.text not in "*/":
                return node
            self._advance()
            node = BinaryOp(token.text, node, self._factor())

    def _factor(self) -> Node:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in "+-":
            self._advance()
            self._enter()
            try:
                return UnaryOp(token.text, self._factor())
            finally:
                self.depth -= 1
        return self._primary()

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == "number":
            return Number(float(token.text))
        if token.text == "(":
            self._enter()
            try:
                node = self._expression()
            finally:
                self.depth -= 1
            closing = self._advance()
            if closing.text != ")":
                raise ExpressionError("括号不匹配")
            return node
        raise ExpressionError("表达式格式错误")

    def _enter(self):
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ExpressionError("表达式嵌套过深")


def evaluate(node: Node) -> float:
    """Evaluate an AST node."""
    if isinstance(node, Number):
        return node.value
    if isinstance(node, UnaryOp):
        value = evaluate(node.operand)
        return -value if node.op == "-" else value
    if isinstance(node, BinaryOp):
        left = evaluate(node.left)
        right = evaluate(node.right)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise ExpressionError("计算结果无效")
        return left / right
    raise ExpressionError(f"未知的表达式节点: {type(node).__name__}")


def normalize_expression_text(text: str) -> str:
    """Replace Chinese operator words and full-width symbols with ASCII."""
    for word, symbol in OPERATOR_WORDS.items():
        text = text.replace(word, symbol)
    return text


def extract_math_expression(text: str) -> Optional[str]:
    """Return the first arithmetic run that contains a digit."""
    normalized = normalize_expression_text(text)
    for match in EXPRESSION_RUN.finditer(normalized):
        candidate = re.sub(r'\s+', ' ', match.group(0)).strip()
        if any(ch.isdigit() for ch in candidate):
            return candidate
    return None


def safe_calculate(expression: str) -> Union[int, float]:
    """Validate and evaluate an arithmetic expression."""
    if not WHITELIST.match(expression):
        raise ExpressionError("表达式包含非法字符")

    result = evaluate(Parser(tokenize(expression)).parse())

    if not math.isfinite(result):
        raise ExpressionError("计算结果无效")
    if float(result).is_integer():
        return int(result)
    return round(result, 6)


def calculator_skill(params: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Evaluate the arithmetic found in ``params['expression']``."""
    expression = (params or {}).get('expression')
    if not expression:
        raise ExpressionError("请提供计算表达式")

    math_expression = extract_math_expression(str(expression))
    if not math_expression:
        raise ExpressionError("无法识别数学表达式")

    try:
        result = safe_calculate(math_expression)
    except ExpressionError as e:
        raise ExpressionError(f"计算出错: {e}") from e

    return {
        'result': result,
        'expression': math_expression
    }
