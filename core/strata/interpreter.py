"""
Strata 解释器模块。

对 Parser 产出的语法树进行树遍历求值。print 是唯一的输出通道，
通过构造时注入的 write_line 回调输出一行文本。
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .errors import StrataNameError, StrataRuntimeError, StrataTypeError
from .nodes import (
    Assign,
    Binary,
    Call,
    ExprStmt,
    For,
    FuncDecl,
    If,
    Literal,
    Program,
    Return,
    Unary,
    Var,
    While,
)


def format_value(value: Any) -> str:
    """将 Strata 值转换为输出文本。

    规则:
        - 整数值的浮点数不带小数部分（2.0 -> "2"）
        - 布尔值输出 true/false，空值输出 null
        - 溢出与非数字输出 Infinity / -Infinity / NaN
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, StrataFunction):
        return f"<func {value.decl.name}>"
    if isinstance(value, BuiltinFunction):
        return f"<builtin {value.name}>"
    return str(value)


def is_truthy(value: Any) -> bool:
    """false、0、""、null 为假，其余为真。"""
    if value is None:
        return False
    if isinstance(value, (StrataFunction, BuiltinFunction)):
        return True
    return bool(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class StrataFunction:
    """用户定义函数（携带定义时的作用域）。"""

    decl: FuncDecl
    closure: "Environment"


@dataclass
class BuiltinFunction:
    """内置函数。"""

    name: str
    fn: Callable[[List[Any]], Any]


class _ReturnSignal(Exception):
    """函数返回的控制流信号。"""

    def __init__(self, value: Any = None):
        super().__init__()
        self.value = value


class Environment:
    """词法作用域。"""

    def __init__(self, parent: Optional["Environment"] = None):
        self.values: Dict[str, Any] = {}
        self.parent = parent

    def define(self, name: str, value: Any) -> None:
        self.values[name] = value

    def _resolve(self, name: str) -> Optional["Environment"]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def lookup(self, name: str, line: int = 0) -> Any:
        env = self._resolve(name)
        if env is None:
            raise StrataNameError(f"'{name}' is not defined", line)
        return env.values[name]

    def assign(self, name: str, value: Any) -> None:
        """更新最近的已有绑定，不存在时在当前作用域定义。"""
        env = self._resolve(name) or self
        env.values[name] = value


class Interpreter:
    """Strata 树遍历解释器。

    Attributes:
        write_line: 输出一行文本的回调
        max_call_depth: 最大函数调用深度
        globals: 全局作用域（预置 print）
    """

    def __init__(self, write_line: Callable[[str], None], max_call_depth: int = 100):
        self.write_line = write_line
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        self.globals = Environment()
        self.globals.define("print", BuiltinFunction("print", self._builtin_print))

    def _builtin_print(self, args: List[Any]) -> None:
        self.write_line(" ".join(format_value(a) for a in args))

    def run(self, program: Program) -> None:
        self.exec_block(program.body, self.globals)

    # ---- 语句 ----

    def exec_block(self, body: List[Any], env: Environment) -> None:
        for stmt in body:
            self.exec_stmt(stmt, env)

    def exec_stmt(self, stmt: Any, env: Environment) -> None:
        if isinstance(stmt, ExprStmt):
            self.eval_expr(stmt.expr, env)
        elif isinstance(stmt, Assign):
            env.assign(stmt.name, self.eval_expr(stmt.expr, env))
        elif isinstance(stmt, If):
            if is_truthy(self.eval_expr(stmt.cond, env)):
                self.exec_block(stmt.then_body, env)
            else:
                self.exec_block(stmt.else_body, env)
        elif isinstance(stmt, While):
            while is_truthy(self.eval_expr(stmt.cond, env)):
                self.exec_block(stmt.body, env)
        elif isinstance(stmt, For):
            if stmt.init is not None:
                self.exec_stmt(stmt.init, env)
            while stmt.cond is None or is_truthy(self.eval_expr(stmt.cond, env)):
                self.exec_block(stmt.body, env)
                if stmt.step is not None:
                    self.exec_stmt(stmt.step, env)
        elif isinstance(stmt, FuncDecl):
            env.define(stmt.name, StrataFunction(stmt, env))
        elif isinstance(stmt, Return):
            value = None if stmt.expr is None else self.eval_expr(stmt.expr, env)
            raise _ReturnSignal(value)
        else:
            raise StrataRuntimeError(f"unknown statement {type(stmt).__name__}")

    # ---- 表达式 ----

    def eval_expr(self, expr: Any, env: Environment) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Var):
            return env.lookup(expr.name, expr.line)
        if isinstance(expr, Unary):
            value = self.eval_expr(expr.expr, env)
            if expr.op == "!":
                return not is_truthy(value)
            if not _is_number(value):
                raise StrataTypeError(
                    f"bad operand for unary -: {format_value(value)!r}", expr.line
                )
            return -value
        if isinstance(expr, Binary):
            return self._eval_binary(expr, env)
        if isinstance(expr, Call):
            return self._eval_call(expr, env)
        raise StrataRuntimeError(f"unknown expression {type(expr).__name__}")

    def _eval_binary(self, expr: Binary, env: Environment) -> Any:
        op = expr.op

        # 短路求值，返回操作数本身
        if op == "&&":
            left = self.eval_expr(expr.left, env)
            return self.eval_expr(expr.right, env) if is_truthy(left) else left
        if op == "||":
            left = self.eval_expr(expr.left, env)
            return left if is_truthy(left) else self.eval_expr(expr.right, env)

        left = self.eval_expr(expr.left, env)
        right = self.eval_expr(expr.right, env)

        if op == "==":
            return _equals(left, right)
        if op == "!=":
            return not _equals(left, right)

        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            return format_value(left) + format_value(right)

        if op in {"<", ">", "<=", ">="}:
            comparable = (_is_number(left) and _is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            )
            if not comparable:
                raise StrataTypeError(
                    f"cannot compare {format_value(left)!r} {op} {format_value(right)!r}",
                    expr.line,
                )
            if op == "<":
                return left < right
            if op == ">":
                return left > right
            if op == "<=":
                return left <= right
            return left >= right

        if not (_is_number(left) and _is_number(right)):
            raise StrataTypeError(
                f"unsupported operands for {op}: "
                f"{format_value(left)!r} and {format_value(right)!r}",
                expr.line,
            )
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op in {"/", "%"} and right == 0:
            raise StrataRuntimeError("division by zero", expr.line)
        if op == "/":
            return left / right
        if op == "%":
            return left % right
        raise StrataRuntimeError(f"unknown operator {op!r}", expr.line)

    def _eval_call(self, expr: Call, env: Environment) -> Any:
        callee = self.eval_expr(expr.callee, env)
        args = [self.eval_expr(a, env) for a in expr.args]

        if isinstance(callee, BuiltinFunction):
            return callee.fn(args)

        if not isinstance(callee, StrataFunction):
            raise StrataTypeError(
                f"{format_value(callee)!r} is not callable", expr.line
            )

        decl = callee.decl
        if len(args) != len(decl.params):
            raise StrataTypeError(
                f"{decl.name}() takes {len(decl.params)} arguments, got {len(args)}",
                expr.line,
            )
        if self.call_depth >= self.max_call_depth:
            raise StrataRuntimeError(
                f"maximum call depth exceeded ({self.max_call_depth})", expr.line
            )

        local = Environment(callee.closure)
        for name, value in zip(decl.params, args):
            local.define(name, value)

        self.call_depth += 1
        try:
            self.exec_block(decl.body, local)
        except _ReturnSignal as ret:
            return ret.value
        finally:
            self.call_depth -= 1
        return None


def _equals(left: Any, right: Any) -> bool:
    # 布尔值与数字不相等（Python 中 True == 1）
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right
