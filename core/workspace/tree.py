"""
工作区树节点模块。

定义文件/文件夹节点（标签联合类型）以及树的遍历工具函数。
节点本身不保存文件内容，内容统一存放在 Workspace 的内容存储中。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Literal, Optional, Union

from dataclasses_json import DataClassJsonMixin


@dataclass(eq=False)
class FileNode(DataClassJsonMixin):
    """文件节点。

    Attributes:
        name: 文件名（同级唯一，同时也是内容存储的 key）
        kind: 节点类型标签，固定为 "file"
    """

    name: str
    kind: Literal["file"] = field(default="file", init=False)


@dataclass(eq=False)
class FolderNode(DataClassJsonMixin):
    """文件夹节点。

    Attributes:
        name: 文件夹名（同级唯一）
        children: 子节点列表（按插入顺序）
        open: 展开状态，仅影响显示，不影响结构
        kind: 节点类型标签，固定为 "folder"
    """

    name: str
    children: List["Node"] = field(default_factory=list)
    open: bool = False
    kind: Literal["folder"] = field(default="folder", init=False)


Node = Union[FolderNode, FileNode]


@dataclass
class TreeRow:
    """renderTree 的一行输出（只读视图）。

    Attributes:
        name: 节点名称
        kind: "folder" 或 "file"
        depth: 缩进深度（顶层为 0）
        open: 文件夹的展开状态，文件为 None
        node: 对应的节点对象（供 UI 回调 toggle/delete 使用）
    """

    name: str
    kind: str
    depth: int
    open: Optional[bool] = None
    node: Optional[Node] = field(default=None, repr=False, compare=False)


def walk(
    nodes: List[Node], depth: int = 0, visible_only: bool = False
) -> Iterator[TreeRow]:
    """先序遍历节点树。

    文件夹在其子节点之前输出，子节点按插入顺序输出。

    Args:
        nodes: 同级节点列表
        depth: 当前深度
        visible_only: 为 True 时跳过已折叠文件夹的子节点

    Yields:
        TreeRow 行对象
    """
    for node in nodes:
        if isinstance(node, FolderNode):
            yield TreeRow(node.name, "folder", depth, node.open, node)
            if node.open or not visible_only:
                yield from walk(node.children, depth + 1, visible_only)
        else:
            yield TreeRow(node.name, "file", depth, None, node)


def iter_files(nodes: List[Node]) -> Iterator[FileNode]:
    """按先序遍历返回所有文件节点。"""
    for row in walk(nodes):
        if isinstance(row.node, FileNode):
            yield row.node


def find_owner(nodes: List[Node], target: Node) -> Optional[List[Node]]:
    """查找持有 target 的同级列表（按对象身份比较）。

    Args:
        nodes: 根节点列表
        target: 待查找的节点

    Returns:
        包含 target 的列表，未找到返回 None
    """
    for node in nodes:
        if node is target:
            return nodes
        if isinstance(node, FolderNode):
            owner = find_owner(node.children, target)
            if owner is not None:
                return owner
    return None


def node_from_seed(entry: Dict[str, Any], contents: Dict[str, str]) -> Node:
    """从种子描述构造节点，文件内容写入 contents。

    种子格式:
        {"name": "src", "type": "folder", "open": false, "children": [...]}
        {"name": "main.str", "type": "file", "content": "..."}

    Args:
        entry: 单个节点的种子描述
        contents: 内容存储（原地写入）

    Returns:
        构造的节点

    Raises:
        ValueError: 节点类型非法
    """
    node_type = entry.get("type", "file")
    name = entry["name"]

    if node_type == "folder":
        folder = FolderNode(name=name, open=bool(entry.get("open", False)))
        for child in entry.get("children") or []:
            folder.children.append(node_from_seed(child, contents))
        return folder

    if node_type == "file":
        # 未提供 content 时不写入存储，读取时按空字符串处理
        if entry.get("content") is not None:
            contents[name] = str(entry["content"])
        return FileNode(name=name)

    raise ValueError(f"未知节点类型: {node_type} ({name})")
