"""
core/strata 的单元测试（词法、语法、解释执行）。
"""

import pytest

from core.strata import (
    Parser,
    StrataError,
    StrataNameError,
    StrataRuntimeError,
    StrataSyntaxError,
    StrataTypeError,
    format_value,
    parse_source,
    run_source,
    tokenize,
)
from core.strata.nodes import Assign, Call, ExprStmt, For, FuncDecl, If, Var


def run(source: str, **kwargs) -> list:
    """执行源码并返回输出行。"""
    lines = []
    run_source(source, lines.append, **kwargs)
    return lines


class TestLexer:
    """测试词法分析。"""

    def test_token_kinds(self):
        tokens = tokenize('x = 1.5 + "a\\n" // 注释\nprint(x)')
        kinds = [(t.kind, t.value) for t in tokens]
        assert kinds == [
            ("ID", "x"),
            ("OP", "="),
            ("NUMBER", "1.5"),
            ("OP", "+"),
            ("STRING", "a\n"),
            ("NEWLINE", "\n"),
            ("KW", "print"),
            ("OP", "("),
            ("ID", "x"),
            ("OP", ")"),
            ("EOF", ""),
        ]

    def test_line_numbers(self):
        tokens = tokenize("a\n\nb")
        assert [(t.value, t.line) for t in tokens if t.kind == "ID"] == [("a", 1), ("b", 3)]

    def test_newlines_inside_parens_are_dropped(self):
        """测试圆括号内的换行被忽略。"""
        tokens = tokenize("f(1,\n  2)")
        assert "NEWLINE" not in [t.kind for t in tokens]

    def test_two_char_operators(self):
        tokens = tokenize("a <= b && c != d || !e")
        ops = [t.value for t in tokens if t.kind == "OP"]
        assert ops == ["<=", "&&", "!=", "||", "!"]

    def test_unterminated_string(self):
        with pytest.raises(StrataSyntaxError, match="unterminated string"):
            tokenize('print("hello)')

    def test_unexpected_character(self):
        with pytest.raises(StrataSyntaxError, match="unexpected character '@'") as exc_info:
            tokenize("x = 1\ny = @")
        assert exc_info.value.line == 2


class TestParser:
    """测试语法分析。"""

    def test_program_structure(self):
        program = parse_source(
            "func add(a, b) {\n  return a + b\n}\n"
            "x = add(1, 2); print(x)\n"
        )
        func, assign, call = program.body
        assert isinstance(func, FuncDecl)
        assert func.params == ["a", "b"]
        assert isinstance(assign, Assign) and assign.name == "x"
        assert isinstance(call, ExprStmt) and isinstance(call.expr, Call)
        assert isinstance(call.expr.callee, Var) and call.expr.callee.name == "print"

    def test_else_on_next_line(self):
        """测试 '}' 换行后再写 else。"""
        program = parse_source("if x {\n  a = 1\n}\nelse if y {\n  a = 2\n} else {\n  a = 3\n}")
        stmt = program.body[0]
        assert isinstance(stmt, If)
        nested = stmt.else_body[0]
        assert isinstance(nested, If)
        assert isinstance(nested.else_body[0], Assign)

    def test_for_header(self):
        program = parse_source("for (i = 0; i < 3; i = i + 1) { print(i) }")
        loop = program.body[0]
        assert isinstance(loop, For)
        assert isinstance(loop.init, Assign)
        assert isinstance(loop.step, Assign)

    def test_precedence(self):
        assert run("print(1 + 2 * 3)") == ["7"]
        assert run("print((1 + 2) * 3)") == ["9"]
        assert run("print(-2 * 3 + 10 % 4)") == ["-4"]
        assert run("print(1 < 2 == true)") == ["true"]

    @pytest.mark.parametrize(
        "source, message",
        [
            ("func f( {", "expected 'ID'"),
            ("if x { print(1)", "missing '}'"),
            ("return 1", "'return' outside func"),
            ("else { }", "'else' without 'if'"),
            ("x = 1 2", "unexpected '2' after statement"),
            ("print(", "in expression"),
            ("func f(a, a) { }", "duplicate parameter"),
        ],
    )
    def test_syntax_errors(self, source, message):
        with pytest.raises(StrataSyntaxError, match=message):
            parse_source(source)

    def test_parser_accepts_token_list(self):
        program = Parser(tokenize("x = 1")).parse()
        assert len(program.body) == 1


class TestInterpreter:
    """测试解释执行。"""

    def test_print_lines_in_order(self):
        """测试两次 print 输出两行且顺序一致。"""
        assert run("print(1)\nprint(2)") == ["1", "2"]

    def test_print_multiple_args(self):
        assert run('print("a", 1, true, 2.5)') == ["a 1 true 2.5"]

    def test_functions_and_recursion(self):
        source = (
            "func fib(n) {\n"
            "  if n < 2 { return n }\n"
            "  return fib(n - 1) + fib(n - 2)\n"
            "}\n"
            "print(fib(10))\n"
        )
        assert run(source) == ["55"]

    def test_closures_capture_definition_scope(self):
        source = (
            "func make() {\n"
            "  count = 0\n"
            "  func inc() {\n"
            "    count = count + 1\n"
            "    return count\n"
            "  }\n"
            "  return inc\n"
            "}\n"
            "c = make()\n"
            "c()\n"
            "print(c())\n"
        )
        assert run(source) == ["2"]

    def test_while_and_for(self):
        source = (
            "total = 0\n"
            "i = 0\n"
            "while i < 4 { total = total + i; i = i + 1 }\n"
            "for (j = 0; j < 3; j = j + 1) { total = total + 10 }\n"
            "print(total)\n"
        )
        assert run(source) == ["36"]

    def test_string_concatenation(self):
        assert run('print("n=" + 3)') == ["n=3"]
        assert run('print("ok: " + true)') == ["ok: true"]

    def test_division_formats_whole_numbers(self):
        assert run("print(6 / 3)") == ["2"]
        assert run("print(7 / 2)") == ["3.5"]

    def test_float_overflow_and_nan(self):
        """测试浮点溢出输出 Infinity，无意义运算输出 NaN。"""
        source = (
            "x = 2.5\n"
            "for (i = 0; i < 400; i = i + 1) { x = x * 10 }\n"
            "print(x)\n"
            "print(0 - x)\n"
            "print(x - x)\n"
            "print(\"v=\" + x)\n"
        )
        assert run(source) == ["Infinity", "-Infinity", "NaN", "v=Infinity"]

    def test_short_circuit(self):
        """测试 && / || 短路，右侧未定义名称不会被求值。"""
        assert run("print(false && missing)") == ["false"]
        assert run("print(1 || missing)") == ["1"]

    def test_equality_does_not_mix_bool_and_number(self):
        assert run("print(true == 1)") == ["false"]
        assert run('print("a" != "b")') == ["true"]

    def test_function_without_return(self):
        assert run("func f() { x = 1 }\nprint(f())") == ["null"]

    def test_print_writes_before_failure(self):
        """测试失败前的输出已经写出。"""
        lines = []
        with pytest.raises(StrataNameError):
            run_source("print(1)\nprint(y)", lines.append)
        assert lines == ["1"]

    def test_undefined_name(self):
        with pytest.raises(StrataNameError, match="'nope' is not defined") as exc_info:
            run("x = 1\nprint(nope)")
        assert exc_info.value.line == 2

    def test_type_errors(self):
        with pytest.raises(StrataTypeError, match="unsupported operands for -"):
            run('print("a" - 1)')
        with pytest.raises(StrataTypeError, match="cannot compare"):
            run('print(1 < "a")')
        with pytest.raises(StrataTypeError, match="is not callable"):
            run("x = 1\nx()")

    def test_arity_mismatch(self):
        with pytest.raises(StrataTypeError, match=r"f\(\) takes 2 arguments, got 1"):
            run("func f(a, b) { return a }\nf(1)")

    def test_division_by_zero(self):
        with pytest.raises(StrataRuntimeError, match="division by zero"):
            run("print(1 / 0)")
        with pytest.raises(StrataRuntimeError, match="division by zero"):
            run("print(1 % 0)")

    def test_call_depth_limit(self):
        with pytest.raises(StrataRuntimeError, match=r"maximum call depth exceeded \(20\)"):
            run("func loop(n) { return loop(n + 1) }\nloop(0)", max_call_depth=20)

    def test_errors_share_base_class(self):
        with pytest.raises(StrataError):
            run("print(")

    def test_error_message_includes_line(self):
        with pytest.raises(StrataError) as exc_info:
            run("\n\nprint(1 / 0)")
        assert str(exc_info.value) == "division by zero (line 3)"


class TestFormatValue:
    """测试值的输出格式。"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "null"),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (3.0, "3"),
            (0.25, "0.25"),
            (float("inf"), "Infinity"),
            (float("-inf"), "-Infinity"),
            (float("nan"), "NaN"),
            ("text", "text"),
        ],
    )
    def test_format(self, value, expected):
        assert format_value(value) == expected
