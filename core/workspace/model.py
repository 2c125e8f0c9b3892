"""
工作区模型模块。

Workspace 聚合了文件树、内容存储和标签页会话，所有状态变更都通过其方法完成，
以便集中维护不变量：
    - 同级节点名称唯一
    - 每个文件节点在内容存储中有对应条目（缺失时读取为空字符串）
    - active_file 为 "" 或已打开的标签
"""

import copy
from typing import Any, Dict, List, Optional

from utils.logger_system import log_msg

from .errors import DuplicateNameError, InvalidNameError, UnknownFileError
from .tabs import TabSession
from .tree import (
    FileNode,
    FolderNode,
    Node,
    TreeRow,
    find_owner,
    iter_files,
    node_from_seed,
    walk,
)


class Workspace:
    """虚拟文件工作区。

    Attributes:
        nodes: 顶层节点列表
        contents: 内容存储（文件名 -> 文本）
        session: 标签页会话
    """

    def __init__(
        self,
        nodes: Optional[List[Node]] = None,
        contents: Optional[Dict[str, str]] = None,
    ):
        self.nodes: List[Node] = nodes if nodes is not None else []
        self.contents: Dict[str, str] = contents if contents is not None else {}
        self.session = TabSession()

    @classmethod
    def from_seed(cls, seed: List[Dict[str, Any]]) -> "Workspace":
        """根据种子描述创建工作区。

        Args:
            seed: 顶层节点的种子描述列表（格式见 tree.node_from_seed）

        Returns:
            初始化后的 Workspace
        """
        contents: Dict[str, str] = {}
        nodes = [node_from_seed(entry, contents) for entry in seed]
        workspace = cls(nodes=nodes, contents=contents)
        log_msg(
            "DEBUG",
            f"工作区已初始化: {len(nodes)} 个顶层节点, {len(contents)} 个内容条目",
        )
        return workspace

    # ---- 只读属性 ----

    @property
    def tabs(self) -> List[str]:
        """打开的标签（副本）。"""
        return list(self.session.tabs)

    @property
    def active_file(self) -> str:
        return self.session.active_file

    def has_file(self, name: str) -> bool:
        """检查文件是否已知（在内容存储中或存在同名文件节点）。"""
        if name in self.contents:
            return True
        return any(node.name == name for node in iter_files(self.nodes))

    def read_content(self, name: str) -> str:
        """读取文件内容。

        Raises:
            UnknownFileError: 文件不存在
        """
        if not self.has_file(name):
            raise UnknownFileError(name)
        return self.contents.get(name, "")

    def find_node(self, name: str) -> Optional[Node]:
        """按先序遍历返回第一个同名节点。"""
        for row in walk(self.nodes):
            if row.name == name:
                return row.node
        return None

    def render_tree(self, visible_only: bool = False) -> List[TreeRow]:
        """生成带深度信息的先序遍历结果（无副作用）。

        Args:
            visible_only: 为 True 时跳过折叠文件夹的子节点

        Returns:
            TreeRow 列表
        """
        return list(walk(self.nodes, visible_only=visible_only))

    def snapshot(self) -> Dict[str, Any]:
        """返回可 JSON 序列化的状态快照。"""
        return {
            "tree": [node.to_dict() for node in self.nodes],
            "contents": copy.deepcopy(self.contents),
            "session": self.session.to_dict(),
        }

    # ---- 变更操作 ----

    def create_file(self, name: str) -> FileNode:
        """在顶层新建文件，打开并激活。

        Args:
            name: 文件名（含扩展名）

        Returns:
            新建的文件节点

        Raises:
            InvalidNameError: 名称为空
            DuplicateNameError: 工作区中已有同名文件，或顶层已存在同名节点
        """
        self._check_name(name)
        if self.has_file(name) or self._top_level_has(name):
            log_msg("WARNING", f"新建文件失败，名称已存在: {name}")
            raise DuplicateNameError(name)

        node = FileNode(name=name)
        self.contents[name] = ""
        self.nodes.append(node)
        self.session.open(name)

        log_msg("INFO", f"新建文件: {name}")
        return node

    def create_folder(self, name: str) -> FolderNode:
        """在顶层新建文件夹（初始折叠）。

        Raises:
            InvalidNameError: 名称为空
            DuplicateNameError: 顶层已存在同名节点
        """
        self._check_name(name)
        if self._top_level_has(name):
            log_msg("WARNING", f"新建文件夹失败，名称已存在: {name}")
            raise DuplicateNameError(name)

        node = FolderNode(name=name)
        self.nodes.append(node)

        log_msg("INFO", f"新建文件夹: {name}")
        return node

    def toggle_folder(self, node: FolderNode) -> bool:
        """切换文件夹展开状态。

        Returns:
            切换后的 open 值
        """
        node.open = not node.open
        return node.open

    def open_file(self, name: str) -> None:
        """打开文件标签并激活。

        Raises:
            UnknownFileError: 文件不存在
        """
        if not self.has_file(name):
            raise UnknownFileError(name)
        self.session.open(name)

    def close_tab(self, name: str) -> str:
        """关闭标签，返回新的 active_file。"""
        return self.session.close(name)

    def update_content(self, name: str, text: str) -> None:
        """整体替换文件内容（不做任何规范化）。

        Raises:
            UnknownFileError: 文件不存在（状态不变）
        """
        if not self.has_file(name):
            log_msg("WARNING", f"更新内容失败，文件不存在: {name}")
            raise UnknownFileError(name)
        self.contents[name] = text

    def delete_node(self, node: Node) -> None:
        """删除节点，并清理其下所有文件的内容与标签。

        Raises:
            UnknownFileError: 节点不在树中
        """
        owner = find_owner(self.nodes, node)
        if owner is None:
            raise UnknownFileError(node.name)

        if isinstance(node, FolderNode):
            removed = [f.name for f in iter_files(node.children)]
        else:
            removed = [node.name]

        owner.remove(node)
        for name in removed:
            self.contents.pop(name, None)
            self.session.close(name)

        log_msg("INFO", f"删除节点: {node.name}（清理 {len(removed)} 个文件）")

    # ---- 内部工具 ----

    def _top_level_has(self, name: str) -> bool:
        return any(node.name == name for node in self.nodes)

    @staticmethod
    def _check_name(name: str) -> None:
        if not name or not name.strip():
            raise InvalidNameError(name)
