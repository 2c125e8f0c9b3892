"""Strata 语言异常类型。"""

from typing import Optional


class StrataError(Exception):
    """Strata 语言异常基类。

    Attributes:
        message: 错误描述
        line: 出错行号（未知时为 None）
    """

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        super().__init__(f"{message} (line {line})" if line else message)


class StrataSyntaxError(StrataError):
    """词法/语法错误。"""


class StrataNameError(StrataError):
    """引用了未定义的名称。"""


class StrataTypeError(StrataError):
    """操作数类型不匹配或调用参数个数错误。"""


class StrataRuntimeError(StrataError):
    """其他运行期错误（除零、调用深度超限等）。"""
