"""
隔离执行作用域模块。

被执行代码唯一可见的全局绑定是能力对象 console，它只提供 log(*args)：
将参数 str() 后以空格拼接，作为一行输出。内置函数采用白名单，
不包含 open / __import__ / eval / exec / input；白名单中的 print 经 PrintShim 转发到 console.log。

注意: 这是协作式隔离，不是安全沙箱。
"""

import builtins
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.strata import run_source


SAFE_BUILTIN_NAMES = [
    "abs", "all", "any", "ascii", "bin", "bool", "callable", "chr", "dict",
    "divmod", "enumerate", "filter", "float", "format", "frozenset", "hash",
    "hex", "int", "isinstance", "issubclass", "iter", "len", "list", "map",
    "max", "min", "next", "object", "oct", "ord", "pow", "range", "repr",
    "reversed", "round", "set", "slice", "sorted", "str", "sum", "super",
    "tuple", "type", "zip", "property", "staticmethod", "classmethod",
    "Exception", "ArithmeticError", "AssertionError", "AttributeError",
    "IndexError", "KeyError", "LookupError", "NameError", "NotImplementedError",
    "RecursionError", "RuntimeError", "StopIteration", "TypeError",
    "ValueError", "ZeroDivisionError",
]

PRINT_CALL = "print("
CONSOLE_CALL = "console.log("


class Console:
    """能力对象：被执行代码回传输出的唯一通道。"""

    def __init__(self, emit: Callable[[str], None]):
        self._emit = emit

    def log(self, *args: Any) -> None:
        self._emit(" ".join(str(a) for a in args))


class PrintShim:
    """被执行代码中的 print：按 sep / end 拼接文本，经 console.log 逐行输出。

    console.log 每次调用输出一行，因此文本先进入缓冲区，遇到换行才发出；
    end 不含换行时（如 end=""）内容留在缓冲区，与下一次 print 拼接。
    执行结束时 flush_pending 发出剩余的半行。file 与 flush 参数被忽略。
    """

    def __init__(self, console: Console):
        self._console = console
        self._pending = ""

    def __call__(
        self, *args: Any, sep: Optional[str] = " ", end: Optional[str] = "\n",
        file: Any = None, flush: bool = False,
    ) -> None:
        sep = " " if sep is None else sep
        end = "\n" if end is None else end
        self._pending += sep.join(str(a) for a in args) + end
        *complete, self._pending = self._pending.split("\n")
        for line in complete:
            self._console.log(line)

    def flush_pending(self) -> None:
        if self._pending:
            self._console.log(self._pending)
            self._pending = ""


def rewrite_surface(code: str) -> str:
    """将 Strata 的 print( 逐字替换为 console.log(。

    朴素文本替换，字符串和注释中的 print( 同样会被替换。
    """
    return code.replace(PRINT_CALL, CONSOLE_CALL)


def build_scope(console: Console) -> Dict[str, Any]:
    """构造全新的全局作用域（仅暴露 console）。"""
    safe_builtins = {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}
    safe_builtins["print"] = PrintShim(console)
    # class 语句依赖 __build_class__ 和 __name__
    safe_builtins["__build_class__"] = builtins.__build_class__
    safe_builtins["__name__"] = "__workspace__"
    return {"__builtins__": safe_builtins, "console": console}


def format_exception(exc: BaseException) -> str:
    """异常 -> "类名: 消息"（消息为空时只返回类名）。"""
    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


def execute(
    request: Dict[str, Any], console: Console
) -> Optional[Tuple[str, str]]:
    """在隔离作用域中执行请求。

    Args:
        request: {"file_name", "language": "python"|"strata", "source", "max_call_depth"}
        console: 能力对象

    Returns:
        None 表示成功；失败返回 (异常类型名, 错误描述)
    """
    source = request.get("source", "")
    file_name = request.get("file_name", "untitled")

    try:
        if request.get("language") == "strata":
            run_source(
                source, console.log, max_call_depth=request.get("max_call_depth", 100)
            )
        else:
            code = compile(source, f"<{file_name}>", "exec")
            scope = build_scope(console)
            shim = scope["__builtins__"]["print"]
            try:
                exec(code, scope)
            finally:
                shim.flush_pending()
    except Exception as e:
        return type(e).__name__, format_exception(e)

    return None


def capture(request: Dict[str, Any]) -> Tuple[List[str], Optional[Tuple[str, str]]]:
    """在当前进程内执行并收集输出行（无超时，供测试和调试使用）。"""
    lines: List[str] = []
    error = execute(request, Console(lines.append))
    return lines, error
