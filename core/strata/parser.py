"""
Strata 语法分析模块。

递归下降解析器，语句以换行或 ';' 分隔，代码块使用 '{' '}'。

表达式优先级（由低到高）:
    ||  &&  == !=  < > <= >=  + -  * / %  一元 - !  调用
"""

from typing import List, Optional, Sequence

from .errors import StrataSyntaxError
from .lexer import Token, tokenize
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


class Parser:
    """Strata 递归下降解析器。"""

    def __init__(self, tokens: Sequence[Token]):
        self.tokens = list(tokens)
        self.i = 0
        self.func_depth = 0

    # ---- Token 游标 ----

    def cur(self) -> Token:
        return self.tokens[self.i]

    def peek(self, offset: int = 1) -> Token:
        j = min(self.i + offset, len(self.tokens) - 1)
        return self.tokens[j]

    def check(self, kind: str, value: Optional[str] = None) -> bool:
        t = self.cur()
        return t.kind == kind and (value is None or t.value == value)

    def match(self, kind: str, value: Optional[str] = None) -> Optional[Token]:
        if not self.check(kind, value):
            return None
        t = self.cur()
        self.i += 1
        return t

    def expect(self, kind: str, value: Optional[str] = None) -> Token:
        t = self.cur()
        if not self.check(kind, value):
            want = value or kind
            got = t.value if t.kind != "EOF" else "end of input"
            raise StrataSyntaxError(f"expected {want!r}, got {got!r}", t.line)
        self.i += 1
        return t

    def skip_separators(self) -> None:
        while self.match("NEWLINE") or self.match("OP", ";"):
            pass

    # ---- 语句 ----

    def parse(self) -> Program:
        program = Program()
        self.skip_separators()
        while not self.check("EOF"):
            program.body.append(self.parse_stmt())
            self._end_of_stmt()
            self.skip_separators()
        return program

    def _end_of_stmt(self) -> None:
        """语句之后必须是分隔符、'}' 或输入结束。"""
        if self.check("NEWLINE") or self.check("OP", ";"):
            return
        if self.check("OP", "}") or self.check("EOF"):
            return
        t = self.cur()
        raise StrataSyntaxError(f"unexpected {t.value!r} after statement", t.line)

    def parse_block(self) -> List:
        self.expect("OP", "{")
        body: List = []
        self.skip_separators()
        while not self.match("OP", "}"):
            if self.check("EOF"):
                raise StrataSyntaxError("missing '}'", self.cur().line)
            body.append(self.parse_stmt())
            self._end_of_stmt()
            self.skip_separators()
        return body

    def parse_stmt(self):
        t = self.cur()

        if self.match("KW", "func"):
            return self.parse_func(t.line)

        if self.match("KW", "return"):
            if self.func_depth == 0:
                raise StrataSyntaxError("'return' outside func", t.line)
            if self.check("NEWLINE") or self.check("OP", ";") or self.check("OP", "}"):
                return Return(None, t.line)
            return Return(self.parse_expr(), t.line)

        if self.match("KW", "if"):
            return self.parse_if(t.line)

        if self.match("KW", "while"):
            cond = self.parse_expr()
            return While(cond, self.parse_block(), t.line)

        if self.match("KW", "for"):
            return self.parse_for(t.line)

        if self.match("KW", "else"):
            raise StrataSyntaxError("'else' without 'if'", t.line)

        return self.parse_simple()

    def parse_simple(self):
        t = self.cur()
        if t.kind == "ID" and self.peek().kind == "OP" and self.peek().value == "=":
            self.i += 2
            return Assign(t.value, self.parse_expr(), t.line)
        return ExprStmt(self.parse_expr(), t.line)

    def parse_func(self, line: int) -> FuncDecl:
        name = self.expect("ID").value
        self.expect("OP", "(")
        params: List[str] = []
        if not self.match("OP", ")"):
            while True:
                param = self.expect("ID").value
                if param in params:
                    raise StrataSyntaxError(f"duplicate parameter {param!r}", line)
                params.append(param)
                if self.match("OP", ")"):
                    break
                self.expect("OP", ",")

        self.func_depth += 1
        try:
            body = self.parse_block()
        finally:
            self.func_depth -= 1
        return FuncDecl(name, params, body, line)

    def parse_if(self, line: int) -> If:
        cond = self.parse_expr()
        then_body = self.parse_block()
        else_body: List = []

        # 允许 "}" 换行后再写 else
        j = self.i
        while self.tokens[j].kind == "NEWLINE":
            j += 1
        if self.tokens[j].kind == "KW" and self.tokens[j].value == "else":
            self.i = j + 1
            else_tok = self.tokens[j]
            if self.match("KW", "if"):
                else_body = [self.parse_if(else_tok.line)]
            else:
                else_body = self.parse_block()

        return If(cond, then_body, else_body, line)

    def parse_for(self, line: int) -> For:
        self.expect("OP", "(")
        init = None if self.check("OP", ";") else self.parse_simple()
        self.expect("OP", ";")
        cond = None if self.check("OP", ";") else self.parse_expr()
        self.expect("OP", ";")
        step = None if self.check("OP", ")") else self.parse_simple()
        self.expect("OP", ")")
        return For(init, cond, step, self.parse_block(), line)

    # ---- 表达式 ----

    def parse_expr(self):
        return self.parse_or()

    def _binary_level(self, ops: set, operand):
        expr = operand()
        while self.cur().kind == "OP" and self.cur().value in ops:
            t = self.expect("OP")
            expr = Binary(expr, t.value, operand(), t.line)
        return expr

    def parse_or(self):
        return self._binary_level({"||"}, self.parse_and)

    def parse_and(self):
        return self._binary_level({"&&"}, self.parse_eq)

    def parse_eq(self):
        return self._binary_level({"==", "!="}, self.parse_cmp)

    def parse_cmp(self):
        return self._binary_level({"<", ">", "<=", ">="}, self.parse_term)

    def parse_term(self):
        return self._binary_level({"+", "-"}, self.parse_factor)

    def parse_factor(self):
        return self._binary_level({"*", "/", "%"}, self.parse_unary)

    def parse_unary(self):
        t = self.cur()
        if t.kind == "OP" and t.value in {"-", "!"}:
            self.i += 1
            return Unary(t.value, self.parse_unary(), t.line)
        return self.parse_call()

    def parse_call(self):
        expr = self.parse_primary()
        while self.check("OP", "("):
            t = self.expect("OP", "(")
            args: List = []
            if not self.match("OP", ")"):
                while True:
                    args.append(self.parse_expr())
                    if self.match("OP", ")"):
                        break
                    self.expect("OP", ",")
            expr = Call(expr, args, t.line)
        return expr

    def parse_primary(self):
        t = self.cur()
        if self.match("NUMBER"):
            value = float(t.value) if "." in t.value else int(t.value)
            return Literal(value, t.line)
        if self.match("STRING"):
            return Literal(t.value, t.line)
        if self.match("KW", "true"):
            return Literal(True, t.line)
        if self.match("KW", "false"):
            return Literal(False, t.line)
        if self.match("KW", "print"):
            return Var("print", t.line)
        if self.match("ID"):
            return Var(t.value, t.line)
        if self.match("OP", "("):
            expr = self.parse_expr()
            self.expect("OP", ")")
            return expr

        got = t.value if t.kind != "EOF" else "end of input"
        raise StrataSyntaxError(f"unexpected {got!r} in expression", t.line)


def parse_source(source: str) -> Program:
    """解析 Strata 源代码为 Program。"""
    return Parser(tokenize(source)).parse()
