"""Strata Studio 主程序入口。

终端交互外壳：命令对应原编辑器的菜单与快捷键，
仅调用 Studio / Workspace 的公开操作。

用法:
    python main.py [key=value ...]   # 例如 execution.strata_mode=rewrite
"""

import shlex
from typing import Callable, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.tree import Tree

from core.studio import Studio
from core.workspace import FolderNode
from utils.config import load_config
from utils.languages import resolve_icon
from utils.logger_system import init_logger, log_exception, log_msg

HELP_TEXT = """\
new <name>      新建文件 (Ctrl+N)
mkdir <name>    新建文件夹 (Ctrl+F)
open <name>     打开文件标签
close <name>    关闭标签
edit            编辑激活文件（单独一行 "." 结束输入）
show            显示激活文件
toggle <name>   展开/折叠文件夹
rm <name>       删除文件或文件夹
tree            显示文件树
tabs            显示标签
run             运行激活文件 (Ctrl+R)
quit            退出"""


class Shell:
    """基于 rich 的终端外壳。"""

    def __init__(self, studio: Studio, console: Console | None = None):
        self.studio = studio
        self.console = console or Console()
        self.commands: Dict[str, Callable[[List[str]], None]] = {
            "new": self.cmd_new,
            "mkdir": self.cmd_mkdir,
            "open": self.cmd_open,
            "close": self.cmd_close,
            "edit": self.cmd_edit,
            "show": self.cmd_show,
            "toggle": self.cmd_toggle,
            "rm": self.cmd_rm,
            "tree": self.cmd_tree,
            "tabs": self.cmd_tabs,
            "run": self.cmd_run,
            "help": lambda args: self.console.print(HELP_TEXT),
        }

    def notify(self, message: str | None) -> None:
        if message:
            self.console.print(f"[bold red]{message}[/bold red]")

    # ---- 命令 ----

    def cmd_new(self, args: List[str]) -> None:
        self.notify(self.studio.new_file(" ".join(args)))

    def cmd_mkdir(self, args: List[str]) -> None:
        self.notify(self.studio.new_folder(" ".join(args)))

    def cmd_open(self, args: List[str]) -> None:
        self.notify(self.studio.click_file(" ".join(args)))

    def cmd_close(self, args: List[str]) -> None:
        active = self.studio.close_tab(" ".join(args))
        self.console.print(f"激活文件: {active or '(无)'}")

    def cmd_edit(self, args: List[str]) -> None:
        if self.studio.editor_view() is None:
            self.notify("请先打开一个文件")
            return
        lines: List[str] = []
        while True:
            line = input()
            if line == ".":
                break
            lines.append(line)
        self.studio.edit("\n".join(lines))

    def cmd_show(self, args: List[str]) -> None:
        view = self.studio.editor_view()
        if view is None:
            self.console.print("选择一个文件开始编辑")
            return
        content, language = view
        syntax = Syntax(content, language, theme="monokai", line_numbers=True)
        self.console.print(Panel(syntax, title=self.studio.workspace.active_file))

    def cmd_toggle(self, args: List[str]) -> None:
        node = self.studio.workspace.find_node(" ".join(args))
        if not isinstance(node, FolderNode):
            self.notify("文件夹不存在")
            return
        self.studio.click_folder(node)
        self.cmd_tree([])

    def cmd_rm(self, args: List[str]) -> None:
        node = self.studio.workspace.find_node(" ".join(args))
        if node is None:
            self.notify("节点不存在")
            return
        self.studio.workspace.delete_node(node)

    def cmd_tree(self, args: List[str]) -> None:
        root = Tree("EXPLORER")
        branches = {-1: root}
        for row in self.studio.workspace.render_tree(visible_only=True):
            parent = branches[row.depth - 1]
            if row.kind == "folder":
                caret = "▾" if row.open else "▸"
                branches[row.depth] = parent.add(f"{caret} [bold]{row.name}[/bold]")
            else:
                parent.add(f"{row.name} [dim]{resolve_icon(row.name)}[/dim]")
        self.console.print(root)

    def cmd_tabs(self, args: List[str]) -> None:
        active = self.studio.workspace.active_file
        labels = [f"[reverse]{t}[/reverse]" if t == active else t for t in self.studio.workspace.tabs]
        self.console.print(" | ".join(labels) or "(无标签)")

    def cmd_run(self, args: List[str]) -> None:
        output = self.studio.run()
        self.console.print(Panel(output, title="OUTPUT"))

    # ---- 主循环 ----

    def loop(self) -> None:
        self.console.print("[bold]Strata Studio[/bold]  输入 help 查看命令")
        while True:
            try:
                raw = Prompt.ask(">", console=self.console)
            except (EOFError, KeyboardInterrupt):
                break
            try:
                parts = shlex.split(raw)
            except ValueError as e:
                self.notify(str(e))
                continue
            if not parts:
                continue
            name, args = parts[0], parts[1:]
            if name in {"quit", "exit"}:
                break
            handler = self.commands.get(name)
            if handler is None:
                self.notify(f"未知命令: {name}")
                continue
            try:
                handler(args)
            except Exception as e:
                log_exception(e, f"执行命令 {name} 时")
                self.notify(str(e))


def main() -> None:
    config = load_config()
    init_logger(
        config.project.log_dir,
        level=config.logging.level,
        console_output=config.logging.console_output,
        file_output=config.logging.file_output,
    )
    log_msg("INFO", f"{config.project.name} v{config.project.version} 启动")

    Shell(Studio.from_config(config)).loop()


if __name__ == "__main__":
    main()
