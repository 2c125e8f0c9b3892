"""
Strata 词法分析模块。

将源代码切分为 Token 序列。圆括号内的换行会被忽略，
因此函数调用参数和 for 头部可以跨行书写。
"""

import re
from dataclasses import dataclass
from typing import List

from .errors import StrataSyntaxError


KEYWORDS = {"func", "return", "if", "else", "while", "for", "print", "true", "false"}

TOKEN_RE = re.compile(
    r"""
    (?P<COMMENT>//[^\n]*)
  | (?P<NUMBER>\d+(?:\.\d+)?)
  | (?P<STRING>"(?:\\.|[^"\\\n])*")
  | (?P<OP>==|!=|<=|>=|&&|\|\||[+\-*/%<>=!,;{}()])
  | (?P<ID>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<NEWLINE>\n)
  | (?P<SKIP>[ \t\r]+)
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE,
)

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


@dataclass
class Token:
    """词法单元。

    Attributes:
        kind: NUMBER / STRING / OP / ID / KW / NEWLINE / EOF
        value: 原始文本（STRING 为解码后的内容）
        line: 行号
        col: 列号
    """

    kind: str
    value: str
    line: int
    col: int


def decode_string(raw: str) -> str:
    """去掉引号并处理 \\n \\t \\" \\\\ 转义。"""
    body = raw[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def tokenize(source: str) -> List[Token]:
    """词法分析。

    Args:
        source: Strata 源代码

    Returns:
        Token 列表（以 EOF 结尾）

    Raises:
        StrataSyntaxError: 非法字符或未闭合的字符串
    """
    tokens: List[Token] = []
    line = 1
    col = 1
    pos = 0
    paren_depth = 0

    while pos < len(source):
        m = TOKEN_RE.match(source, pos)
        kind = m.lastgroup or "MISMATCH"
        value = m.group(0)

        if kind in {"SKIP", "COMMENT"}:
            pass
        elif kind == "NEWLINE":
            if paren_depth == 0:
                tokens.append(Token("NEWLINE", value, line, col))
            line += 1
            col = 0
        elif kind == "MISMATCH":
            if value == '"':
                raise StrataSyntaxError("unterminated string literal", line)
            raise StrataSyntaxError(f"unexpected character {value!r}", line)
        elif kind == "STRING":
            tokens.append(Token("STRING", decode_string(value), line, col))
        elif kind == "ID" and value in KEYWORDS:
            tokens.append(Token("KW", value, line, col))
        else:
            if value == "(":
                paren_depth += 1
            elif value == ")" and paren_depth > 0:
                paren_depth -= 1
            tokens.append(Token(kind, value, line, col))

        pos = m.end()
        col += len(value)

    tokens.append(Token("EOF", "", line, col))
    return tokens
