import logging
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping

import numpy as np

logger = logging.getLogger(__name__)


class EvaluationError(Enum):
    """
    表达式求值的结果分类，OK 以外均为错误
    """
    OK = "ok"
    INVALID_CHARACTERS = "invalid_characters"
    UNKNOWN_OPERATOR = "unknown_operator"
    MISMATCHED_PARENTHESES = "mismatched_parentheses"
    TOO_MANY_INPUTS = "too_many_inputs"
    NOT_ENOUGH_INPUTS = "not_enough_inputs"


class CalculationError(ValueError):
    """
    流水线任一阶段失败时抛出，携带对应的 EvaluationError
    """

    def __init__(self, error: EvaluationError) -> None:
        super().__init__(describe_error(error))
        self.error = error


class TokenType(Enum):
    NUMBER = "number"
    ADD = "+"
    SUB = "-"
    MULT = "*"
    DIV = "/"
    EXP = "^"
    LPAREN = "("
    RPAREN = ")"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: float = 0.0

    def __str__(self) -> str:
        if self.type == TokenType.NUMBER:
            return f"{self.value:g}"
        return self.type.value


operators: Mapping[str, Token] = MappingProxyType({
    t.value: Token(t) for t in TokenType if t != TokenType.NUMBER
})

precedence: Mapping[TokenType, int] = MappingProxyType({
    TokenType.ADD: 0,
    TokenType.SUB: 0,
    TokenType.MULT: 1,
    TokenType.DIV: 1,
    TokenType.EXP: 2,
})
right_associative = frozenset({TokenType.EXP})

_error_messages: Mapping[EvaluationError, str] = MappingProxyType({
    EvaluationError.OK: "OK",
    EvaluationError.INVALID_CHARACTERS: "Invalid characters were detected in the expression.",
    EvaluationError.UNKNOWN_OPERATOR: "An unknown operator was supplied.",
    EvaluationError.MISMATCHED_PARENTHESES: "Mismatched parentheses were detected!",
    EvaluationError.TOO_MANY_INPUTS: "Too many inputs for a given operation were supplied, e.g. 1 3 + 4",
    EvaluationError.NOT_ENOUGH_INPUTS: "Not enough inputs for the given expression, e.g. 1 - 2 +",
})

_digits = "0123456789"
# 与 strtod 一致：只取开头能识别的十进制部分
_number_prefix = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)", re.ASCII)


def describe_error(error: EvaluationError) -> str:
    """
    返回错误对应的可读描述，未知值返回通用提示
    """
    return _error_messages.get(error, "Invalid EvaluationError supplied!")


def _fail(error: EvaluationError, stage: str, detail: str) -> CalculationError:
    logger.debug(f"{stage} 失败 ({error.name}): {detail}")
    return CalculationError(error)


def parse_number(text: str) -> float:
    """
    宽松地解析数字文本，例如 "1.2.3" 得到 1.2，无法识别时得到 0.0
    """
    match = _number_prefix.match(text)
    if match is None:
        return 0.0
    return float(match.group())


def tokenize(expression: str) -> List[Token]:
    """
    将表达式字符串分解为标记列表

    两个状态：读数字 / 读运算符。
    读运算符时遇到数字、小数点或紧跟数字的 '-' 进入读数字状态；
    读数字时遇到空白或运算符结束当前数字。
    """
    tokens: List[Token] = []
    start: int = 0
    parsing_number: bool = False

    for i, char in enumerate(expression):
        if char.isalpha():
            raise _fail(EvaluationError.INVALID_CHARACTERS, "分词", f"位置 {i} 的字符 {char!r}")

        is_space = char.isspace()
        is_operator = char in operators

        if not parsing_number:
            # 处理负数的情况：'-' 后面紧跟数字
            if (
                    char in _digits or char == '.' or (
                    char == '-' and i + 1 < len(expression) and expression[i + 1] in _digits)
            ):
                parsing_number = True
                start = i
            elif is_operator:
                tokens.append(operators[char])
            elif is_space:
                continue
            else:
                raise _fail(EvaluationError.UNKNOWN_OPERATOR, "分词", f"位置 {i} 的字符 {char!r}")
        elif is_space or is_operator:
            parsing_number = False
            tokens.append(Token(TokenType.NUMBER, parse_number(expression[start:i])))
            if is_operator:
                tokens.append(operators[char])

    # 结尾仍在读数字
    if parsing_number:
        tokens.append(Token(TokenType.NUMBER, parse_number(expression[start:])))

    return tokens


def infix_to_postfix(tokens: List[Token]) -> List[Token]:
    """
    使用调度场算法将中缀表达式转换为后缀表达式（逆波兰表示法）
    """
    output: List[Token] = []
    operator_stack: List[Token] = []

    for token in tokens:
        if token.type == TokenType.NUMBER:
            output.append(token)
        elif token.type == TokenType.LPAREN:
            operator_stack.append(token)
        elif token.type == TokenType.RPAREN:
            # 右括号：弹出运算符直到遇到左括号
            while operator_stack and operator_stack[-1].type != TokenType.LPAREN:
                output.append(operator_stack.pop())
            if not operator_stack:
                raise _fail(EvaluationError.MISMATCHED_PARENTHESES, "转换", "多余的右括号")
            operator_stack.pop()
        else:
            left_associative = token.type not in right_associative
            while operator_stack and operator_stack[-1].type != TokenType.LPAREN:
                top = precedence[operator_stack[-1].type]
                current = precedence[token.type]
                if not ((left_associative and current <= top) or (not left_associative and current < top)):
                    break
                output.append(operator_stack.pop())
            operator_stack.append(token)

    # 弹出剩余运算符
    while operator_stack:
        token = operator_stack.pop()
        if token.type == TokenType.LPAREN:
            raise _fail(EvaluationError.MISMATCHED_PARENTHESES, "转换", "缺少右括号")
        output.append(token)

    return output


def _apply(operator: TokenType, left: np.float64, right: np.float64) -> np.float64:
    if operator == TokenType.ADD:
        return left + right
    if operator == TokenType.SUB:
        return left - right
    if operator == TokenType.MULT:
        return left * right
    if operator == TokenType.DIV:
        return left / right
    return np.power(left, right)


def evaluate_postfix(postfix_tokens: List[Token]) -> float:
    """
    计算后缀表达式的值

    除零、溢出等按 IEEE 754 得到 inf 或 nan，不视为错误。
    """
    stack: List[np.float64] = []

    with np.errstate(all='ignore'):
        for token in postfix_tokens:
            if token.type == TokenType.NUMBER:
                stack.append(np.float64(token.value))
                continue

            if len(stack) < 2:
                raise _fail(EvaluationError.NOT_ENOUGH_INPUTS, "求值", f"运算符 {token} 缺少操作数")

            right = stack.pop()
            left = stack.pop()
            stack.append(_apply(token.type, left, right))

    if len(stack) > 1:
        raise _fail(EvaluationError.TOO_MANY_INPUTS, "求值", f"剩余 {len(stack)} 个值")
    if not stack:
        raise _fail(EvaluationError.NOT_ENOUGH_INPUTS, "求值", "空表达式")

    return float(stack[0])


def evaluate(expression: str) -> float:
    """
    计算中缀表达式的值

    :param expression: 中缀表达式字符串
    :return: 计算结果
    :raises CalculationError: 任一阶段失败
    """
    # 1. 分词
    tokens: List[Token] = tokenize(expression)
    # 2. 转换为后缀表达式
    postfix: List[Token] = infix_to_postfix(tokens)
    # 3. 计算后缀表达式
    return evaluate_postfix(postfix)
