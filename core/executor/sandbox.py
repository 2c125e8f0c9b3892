"""
代码执行沙箱模块（子进程版本）。

在独立的 Python 子进程中执行工作区文件内容，支持：
- Strata 文件的解释执行或表层改写（print( -> console.log(）
- 超时控制（超时后终止子进程）
- 输出行的增量回传（on_line 回调）

Sandbox 只接收文件名和内容，从不修改 Workspace。
"""

import json
import os
import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Callable, List, Literal, Optional, Tuple

from dataclasses_json import DataClassJsonMixin

from utils.languages import is_strata_file, resolve_language
from utils.logger_system import log_exception, log_json, log_msg

from .scope import rewrite_surface

PROJECT_ROOT = Path(__file__).resolve().parents[2]
RUNNER_MODULE = "core.executor.runner"
EVENT_QUEUE_SIZE = 1024

RunStatus = Literal["idle", "succeeded", "failed", "timeout"]


def trim_long_string(string: str, threshold: int = 100_000, k: int = 0) -> str:
    """截断过长的字符串，保留首尾 k 个字符。

    Args:
        string: 输入字符串
        threshold: 超过此长度才截断
        k: 保留首尾各 k 个字符（默认 threshold // 2）

    Returns:
        截断后的字符串
    """
    if len(string) <= threshold:
        return string
    k = k or threshold // 2
    truncated_len = len(string) - 2 * k
    return f"{string[:k]}\n ... [{truncated_len} 字符被截断] ... \n{string[-k:]}"


class RunState(str, Enum):
    """单次运行的状态机: IDLE -> REWRITING -> EXECUTING -> SUCCEEDED|FAILED -> IDLE。"""

    IDLE = "idle"
    REWRITING = "rewriting"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class RunResult(DataClassJsonMixin):
    """运行结果容器。

    Attributes:
        file_name: 运行的文件名（空表示没有可运行的文件）
        status: idle / succeeded / failed / timeout
        output: 展示给用户的输出（成功为输出行，失败为错误描述）
        lines: 捕获到的输出行（失败时也保留失败前的行，超过 output_limit 后不再收集）
        language: 编辑器语言 ID
        exc_type: 异常类型名，成功时为 None
        exec_time: 执行时间（秒）
        dropped_lines: 超过 output_limit 后被丢弃的行数
    """

    file_name: str = ""
    status: RunStatus = "idle"
    output: str = ""
    lines: List[str] = field(default_factory=list)
    language: str = ""
    exc_type: Optional[str] = None
    exec_time: float = 0.0
    dropped_lines: int = 0

    @property
    def success(self) -> bool:
        return self.status == "succeeded"


@dataclass
class OutputCapture:
    """输出行收集器：累计字符数达到 limit 后只计数、不再保存。"""

    limit: int
    lines: List[str] = field(default_factory=list)
    size: int = 0
    dropped: int = 0

    def add(self, text: str) -> bool:
        """收集一行，返回是否被保存。"""
        if self.size >= self.limit:
            self.dropped += 1
            return False
        self.lines.append(text)
        self.size += len(text) + 1
        return True


class Sandbox:
    """工作区代码执行沙箱。

    每次 run 都启动一个新的子进程，运行之间不共享任何状态。
    """

    def __init__(
        self,
        timeout: float = 10.0,
        strata_mode: str = "interpret",
        python_path: Optional[str] = None,
        max_call_depth: int = 100,
        output_limit: int = 100_000,
    ):
        """初始化沙箱。

        Args:
            timeout: 单次运行的超时时间（秒）
            strata_mode: "interpret"（解释执行）或 "rewrite"（表层改写后按 Python 执行）
            python_path: 子进程 Python 解释器路径，None 则使用 sys.executable
            max_call_depth: Strata 最大函数调用深度
            output_limit: 输出超过该字符数时截断首尾
        """
        if strata_mode not in {"interpret", "rewrite"}:
            raise ValueError(f"未知的 strata_mode: {strata_mode}")

        self.timeout = timeout
        self.strata_mode = strata_mode
        self.python_path = python_path or sys.executable
        self.max_call_depth = max_call_depth
        self.output_limit = output_limit
        self.state = RunState.IDLE

        log_msg(
            "INFO",
            f"Sandbox 初始化: timeout={self.timeout}s, strata_mode={self.strata_mode}, "
            f"python={self.python_path}",
        )

    def prepare(self, file_name: str, content: str) -> Tuple[str, str]:
        """确定执行语言并做必要的源码改写。

        Returns:
            (执行语言 "strata"|"python", 待执行源码)
        """
        if not is_strata_file(file_name):
            return "python", content
        if self.strata_mode == "rewrite":
            return "python", rewrite_surface(content)
        return "strata", content

    def run(
        self,
        file_name: str,
        content: str,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> RunResult:
        """执行文件内容。

        Args:
            file_name: 文件名（为空时直接返回 idle 结果）
            content: 文件内容
            on_line: 每捕获一行输出时的回调

        Returns:
            RunResult 对象（任何失败都转换为 output 中的错误描述）
        """
        if not file_name:
            return RunResult()

        # Phase 1: 改写
        self.state = RunState.REWRITING
        language, source = self.prepare(file_name, content or "")

        # Phase 2: 执行
        self.state = RunState.EXECUTING
        request = {
            "file_name": file_name,
            "language": language,
            "source": source,
            "max_call_depth": self.max_call_depth,
        }
        start_time = time.time()
        capture = OutputCapture(limit=self.output_limit)
        lines = capture.lines
        try:
            status, exc_type, error_text = self._execute(request, capture, on_line)
        except OSError as e:
            log_exception(e, f"启动执行子进程失败 ({file_name})")
            status, exc_type, error_text = "failed", type(e).__name__, f"{type(e).__name__}: {e}"
        exec_time = time.time() - start_time

        # Phase 3: 构建结果
        if status == "succeeded":
            output = trim_long_string("\n".join(lines), threshold=self.output_limit)
            if capture.dropped:
                output += f"\n ... [{capture.dropped} 行输出被丢弃] ..."
        else:
            # 失败时只展示错误描述，失败前的输出保留在 lines 中
            output = error_text or ""

        result = RunResult(
            file_name=file_name,
            status=status,
            output=output,
            lines=lines,
            language=resolve_language(file_name),
            exc_type=exc_type,
            exec_time=exec_time,
            dropped_lines=capture.dropped,
        )

        self.state = RunState.SUCCEEDED if result.success else RunState.FAILED
        log_msg(
            "INFO" if result.success else "WARNING",
            f"运行 {file_name}: status={status}, lines={len(lines)}, "
            f"dropped={capture.dropped}, "
            f"time={exec_time:.2f}s",
        )
        log_json(
            {
                "event": "run",
                "file_name": file_name,
                "language": language,
                "status": status,
                "exc_type": exc_type,
                "lines": len(lines),
                "dropped_lines": capture.dropped,
                "exec_time": round(exec_time, 4),
            }
        )

        self.state = RunState.IDLE
        return result

    def _spawn(self) -> subprocess.Popen:
        pythonpath = os.environ.get("PYTHONPATH", "")
        env = {
            **os.environ,
            "PYTHONPATH": os.pathsep.join(p for p in [str(PROJECT_ROOT), pythonpath] if p),
            "PYTHONUNBUFFERED": "1",
            "PYTHONIOENCODING": "utf-8",
        }
        return subprocess.Popen(
            [self.python_path, "-m", RUNNER_MODULE],
            cwd=str(PROJECT_ROOT),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            env=env,
        )

    def _execute(
        self,
        request: dict,
        capture: OutputCapture,
        on_line: Optional[Callable[[str], None]],
    ) -> Tuple[RunStatus, Optional[str], Optional[str]]:
        """启动子进程并消费事件，直到完成、失败或超时。

        Returns:
            (status, exc_type, error_text)
        """
        proc = self._spawn()
        events: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=EVENT_QUEUE_SIZE)
        reader = threading.Thread(
            target=_pump_lines, args=(proc.stdout, events), daemon=True
        )
        reader.start()

        diagnostics: List[str] = []
        deadline = time.monotonic() + self.timeout

        try:
            try:
                proc.stdin.write(json.dumps(request, ensure_ascii=False))
                proc.stdin.close()
            except OSError as e:
                log_msg("WARNING", f"写入执行请求失败: {e}")

            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return self._timeout_outcome()
                try:
                    raw = events.get(timeout=remaining)
                except queue.Empty:
                    return self._timeout_outcome()

                if raw is None:
                    code = proc.wait()
                    detail = diagnostics[-1] if diagnostics else f"exit code {code}"
                    log_msg("ERROR", f"执行子进程异常退出: {detail}")
                    return (
                        "failed",
                        "RuntimeError",
                        f"RuntimeError: runner exited unexpectedly ({detail})",
                    )

                event = _decode_event(raw)
                if event is None:
                    diagnostics.append(raw.rstrip("\n"))
                    continue

                kind = event.get("event")
                if kind == "line":
                    text = str(event.get("text", ""))
                    if capture.add(text) and on_line is not None:
                        try:
                            on_line(text)
                        except Exception as e:
                            log_exception(e, "on_line 回调出错")
                elif kind == "error":
                    return "failed", event.get("exc_type"), str(event.get("text", ""))
                elif kind == "done":
                    return "succeeded", None, None
        finally:
            self._cleanup_process(proc)
            _drain(events, reader)

    def _timeout_outcome(self) -> Tuple[RunStatus, str, str]:
        log_msg("WARNING", f"执行超时 ({self.timeout}s)，终止子进程")
        return (
            "timeout",
            "TimeoutError",
            f"TimeoutError: execution exceeded {self.timeout:g} seconds",
        )

    def _cleanup_process(self, proc: subprocess.Popen) -> None:
        """终止子进程（先 terminate，2 秒后仍未退出则 kill）。"""
        try:
            if proc.poll() is None:
                proc.terminate()
                try:
                    proc.wait(timeout=2)
                except subprocess.TimeoutExpired:
                    log_msg("WARNING", "子进程未能优雅终止，强制终止")
                    proc.kill()
                    proc.wait()
        except OSError as e:
            log_msg("WARNING", f"清理子进程时出错: {e}")
        finally:
            if proc.stdout is not None:
                proc.stdout.close()


def _pump_lines(stream: IO[str], events: "queue.Queue[Optional[str]]") -> None:
    """读取子进程 stdout 放入队列，结束时放入 None。"""
    try:
        for raw in stream:
            events.put(raw)
    except (OSError, ValueError):
        # 管道在清理时被关闭
        pass
    finally:
        events.put(None)


def _drain(events: "queue.Queue[Optional[str]]", reader: threading.Thread) -> None:
    """清空事件队列，使阻塞在 put 上的读取线程得以退出。"""
    deadline = time.monotonic() + 2
    while reader.is_alive() and time.monotonic() < deadline:
        try:
            events.get(timeout=0.1)
        except queue.Empty:
            pass


def _decode_event(raw: str) -> Optional[dict]:
    try:
        event = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return event if isinstance(event, dict) else None
