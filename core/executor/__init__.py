"""
代码执行器模块。

提供执行沙箱、隔离作用域和 Strata 表层改写。
"""

from .sandbox import Sandbox, RunResult, RunState, trim_long_string
from .scope import Console, rewrite_surface, format_exception

__all__ = [
    "Sandbox",
    "RunResult",
    "RunState",
    "Console",
    "rewrite_surface",
    "format_exception",
    "trim_long_string",
]
