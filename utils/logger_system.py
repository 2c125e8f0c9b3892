"""日志系统模块。

提供文本日志和 JSON 运行记录的双通道输出功能：
- 文本日志: system.log + 终端，支持级别过滤
- JSON 日志: runs.json，记录每次代码运行的摘要
"""

import datetime
import json
import traceback
from pathlib import Path
from typing import Any, Dict, List

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class LoggerSystem:
    """日志系统类。

    提供文本日志（system.log）和 JSON 日志（runs.json）的双通道输出。
    """

    def __init__(
        self,
        log_dir: str | Path,
        level: str = "INFO",
        console_output: bool = True,
        file_output: bool = True,
    ):
        """初始化日志系统。

        Args:
            log_dir: 日志目录路径
            level: 最低输出级别（DEBUG, INFO, WARNING, ERROR）
            console_output: 是否打印到终端
            file_output: 是否写入文件
        """
        self.log_dir = Path(log_dir)
        self.level = LEVELS.get(level.upper(), LEVELS["INFO"])
        self.console_output = console_output
        self.file_output = file_output

        self.text_log_path = self.log_dir / "system.log"
        self.json_log_path = self.log_dir / "runs.json"
        self.json_data: List[Dict[str, Any]] = []

        if self.file_output:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            if self.json_log_path.exists():
                try:
                    content = self.json_log_path.read_text(encoding="utf-8")
                    if content:
                        self.json_data = json.loads(content)
                except json.JSONDecodeError:
                    self.json_data = []  # 损坏时重置

    def enabled(self, level: str) -> bool:
        return LEVELS.get(level.upper(), LEVELS["INFO"]) >= self.level

    def text_log(self, level: str, message: str) -> None:
        """记录文本日志到 system.log 并打印到终端。

        Args:
            level: 日志级别
            message: 日志消息
        """
        if not self.enabled(level):
            return

        timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] [{level}] {message}\n"

        if self.file_output:
            with open(self.text_log_path, "a", encoding="utf-8") as f:
                f.write(log_entry)

        if self.console_output:
            print(log_entry.strip())

    def json_log(self, data: Dict[str, Any]) -> None:
        """追加一条记录到 runs.json。"""
        record = {"time": datetime.datetime.now().isoformat(), **data}
        self.json_data.append(record)

        if self.file_output:
            with open(self.json_log_path, "w", encoding="utf-8") as f:
                json.dump(self.json_data, f, indent=4, ensure_ascii=False)


# ============================================================
# 全局日志实例
# ============================================================

logger: LoggerSystem | None = None


def init_logger(
    log_dir: str | Path,
    level: str = "INFO",
    console_output: bool = True,
    file_output: bool = True,
) -> LoggerSystem:
    """初始化全局日志系统。

    Returns:
        初始化的 LoggerSystem 实例
    """
    global logger
    logger = LoggerSystem(
        log_dir, level=level, console_output=console_output, file_output=file_output
    )
    return logger


# ============================================================
# 便捷日志函数
# ============================================================


def log_msg(level: str, message: str) -> None:
    """记录文本日志。

    注意:
        如果 logger 未初始化，回退到 print（DEBUG 级别不输出）
    """
    if logger:
        logger.text_log(level, message)
    elif level != "DEBUG":
        print(f"[{level}] {message}")


def log_json(data: Dict[str, Any]) -> None:
    """记录 JSON 数据（logger 未初始化时忽略）。"""
    if logger:
        logger.json_log(data)


def ensure(condition: bool, error_msg: str) -> None:
    """断言工具，失败时记录错误并抛出异常。

    Raises:
        AssertionError: 条件为 False 时抛出

    示例:
        >>> ensure(cfg.execution.timeout > 0, "timeout 必须为正数")
    """
    if not condition:
        log_msg("ERROR", error_msg)
        raise AssertionError(error_msg)


def log_exception(exc: Exception, context: str = "") -> None:
    """记录异常信息和堆栈跟踪。

    示例:
        >>> try:
        ...     studio.run()
        ... except Exception as e:
        ...     log_exception(e, "运行文件时")
    """
    error_msg = f"{context}: {exc}" if context else str(exc)
    traceback_str = "".join(traceback.format_tb(exc.__traceback__))
    full_msg = f"{error_msg}\n{traceback_str}"

    log_msg("ERROR", full_msg)
