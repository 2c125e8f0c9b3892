"""
Studio 控制器模块。

组合 Workspace、Sandbox 和输出缓冲区，提供菜单/快捷键绑定的动作：
    - Ctrl+N 新建文件  -> new_file
    - Ctrl+F 新建文件夹 -> new_folder
    - Ctrl+R 运行      -> run
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from core.executor import RunResult, Sandbox
from core.workspace import FolderNode, Workspace, WorkspaceError
from utils.config import Config
from utils.languages import resolve_language
from utils.logger_system import log_msg


@dataclass
class OutputBuffer:
    """输出缓冲区：每次运行整体替换，不保留历史。"""

    text: str = ""
    last_result: Optional[RunResult] = None

    def replace(self, result: RunResult) -> None:
        self.text = result.output
        self.last_result = result


class Studio:
    """UI 层使用的控制器。

    Attributes:
        workspace: 工作区模型
        sandbox: 执行沙箱
        output: 输出缓冲区
    """

    def __init__(self, workspace: Workspace, sandbox: Sandbox):
        self.workspace = workspace
        self.sandbox = sandbox
        self.output = OutputBuffer()

    @classmethod
    def from_config(cls, config: Config) -> "Studio":
        """根据配置创建工作区和沙箱。"""
        workspace = Workspace.from_seed(config.workspace.seed)
        sandbox = Sandbox(
            timeout=config.execution.timeout,
            strata_mode=config.execution.strata_mode,
            python_path=config.execution.python_path,
            max_call_depth=config.execution.max_call_depth,
            output_limit=config.execution.output_limit,
        )
        return cls(workspace, sandbox)

    # ---- 文件操作 ----

    def new_file(self, name: str) -> Optional[str]:
        """新建文件。

        Returns:
            失败时返回通知文本（阻塞提示），成功返回 None
        """
        try:
            self.workspace.create_file(name)
        except WorkspaceError as e:
            return str(e)
        return None

    def new_folder(self, name: str) -> Optional[str]:
        """新建文件夹，失败时返回通知文本。"""
        try:
            self.workspace.create_folder(name)
        except WorkspaceError as e:
            return str(e)
        return None

    def click_file(self, name: str) -> Optional[str]:
        """点击资源管理器中的文件或标签。"""
        try:
            self.workspace.open_file(name)
        except WorkspaceError as e:
            return str(e)
        return None

    def click_folder(self, folder: FolderNode) -> bool:
        return self.workspace.toggle_folder(folder)

    def close_tab(self, name: str) -> str:
        return self.workspace.close_tab(name)

    # ---- 编辑器协作 ----

    def editor_view(self) -> Optional[Tuple[str, str]]:
        """返回编辑器需要的 (内容, 语言 ID)，无激活文件时返回 None。"""
        active = self.workspace.active_file
        if not active:
            return None
        return self.workspace.read_content(active), resolve_language(active)

    def edit(self, text: str) -> None:
        """编辑器 onChange：更新激活文件内容（无激活文件时忽略）。"""
        active = self.workspace.active_file
        if active:
            self.workspace.update_content(active, text)

    # ---- 运行 ----

    def run(self, on_line: Optional[Callable[[str], None]] = None) -> str:
        """运行激活文件并替换输出缓冲区。

        无激活文件时不做任何事（输出缓冲区保持不变）。

        Returns:
            当前输出缓冲区文本
        """
        active = self.workspace.active_file
        if not active:
            log_msg("DEBUG", "没有激活文件，跳过运行")
            return self.output.text

        result = self.sandbox.run(
            active, self.workspace.read_content(active), on_line=on_line
        )
        self.output.replace(result)
        return self.output.text
