"""
Strata 玩具语言模块。

提供词法分析、语法分析和树遍历解释器。
"""

from typing import Callable

from .errors import (
    StrataError,
    StrataSyntaxError,
    StrataNameError,
    StrataTypeError,
    StrataRuntimeError,
)
from .lexer import Token, tokenize
from .parser import Parser, parse_source
from .interpreter import Interpreter, format_value


def run_source(
    source: str, write_line: Callable[[str], None], max_call_depth: int = 100
) -> None:
    """解析并执行 Strata 源代码。

    Args:
        source: 源代码
        write_line: print 的输出回调
        max_call_depth: 最大函数调用深度

    Raises:
        StrataError: 语法或运行期错误
    """
    program = parse_source(source)
    Interpreter(write_line, max_call_depth=max_call_depth).run(program)


__all__ = [
    "StrataError",
    "StrataSyntaxError",
    "StrataNameError",
    "StrataTypeError",
    "StrataRuntimeError",
    "Token",
    "tokenize",
    "Parser",
    "parse_source",
    "Interpreter",
    "format_value",
    "run_source",
]
