"""Strata 语法树节点。"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


# ---- 表达式 ----


@dataclass
class Literal:
    value: Any
    line: int = 0


@dataclass
class Var:
    name: str
    line: int = 0


@dataclass
class Unary:
    op: str
    expr: Any
    line: int = 0


@dataclass
class Binary:
    left: Any
    op: str
    right: Any
    line: int = 0


@dataclass
class Call:
    callee: Any
    args: List[Any] = field(default_factory=list)
    line: int = 0


# ---- 语句 ----


@dataclass
class ExprStmt:
    expr: Any
    line: int = 0


@dataclass
class Assign:
    name: str
    expr: Any
    line: int = 0


@dataclass
class If:
    cond: Any
    then_body: List[Any]
    else_body: List[Any] = field(default_factory=list)
    line: int = 0


@dataclass
class While:
    cond: Any
    body: List[Any]
    line: int = 0


@dataclass
class For:
    init: Optional[Any]
    cond: Optional[Any]
    step: Optional[Any]
    body: List[Any]
    line: int = 0


@dataclass
class FuncDecl:
    name: str
    params: List[str]
    body: List[Any]
    line: int = 0


@dataclass
class Return:
    expr: Optional[Any]
    line: int = 0


@dataclass
class Program:
    body: List[Any] = field(default_factory=list)
