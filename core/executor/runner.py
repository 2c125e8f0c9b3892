"""
执行子进程入口（python -m core.executor.runner）。

协议:
    stdin  - 一个 JSON 请求（见 scope.execute）
    stdout - 每行一个 JSON 事件:
        {"event": "line", "text": "..."}
        {"event": "error", "exc_type": "...", "text": "..."}
        {"event": "done"}

console.log 是唯一写入 stdout 的途径，sys.stdout 在执行前被重定向到 stderr。
"""

import json
import sys

from core.executor.scope import Console, execute


def main() -> int:
    channel = sys.stdout
    sys.stdout = sys.stderr

    def emit(payload: dict) -> None:
        channel.write(json.dumps(payload, ensure_ascii=False) + "\n")
        channel.flush()

    try:
        request = json.loads(sys.stdin.read() or "{}")
    except json.JSONDecodeError as e:
        emit({"event": "error", "exc_type": "ValueError", "text": f"ValueError: {e}"})
        return 1

    # 每层 Strata 调用约占用十个 Python 栈帧
    depth = int(request.get("max_call_depth", 100))
    sys.setrecursionlimit(max(sys.getrecursionlimit(), depth * 20 + 200))

    console = Console(lambda line: emit({"event": "line", "text": line}))
    error = execute(request, console)

    if error is None:
        emit({"event": "done"})
    else:
        exc_type, text = error
        emit({"event": "error", "exc_type": exc_type, "text": text})
    return 0


if __name__ == "__main__":
    sys.exit(main())
