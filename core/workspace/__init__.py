"""
工作区模块。

导出 Workspace 聚合、树节点、标签会话和异常类型。
"""

from .errors import (
    WorkspaceError,
    DuplicateNameError,
    UnknownFileError,
    InvalidNameError,
)
from .tabs import TabSession
from .tree import FileNode, FolderNode, Node, TreeRow
from .model import Workspace

__all__ = [
    "Workspace",
    "TabSession",
    "FileNode",
    "FolderNode",
    "Node",
    "TreeRow",
    "WorkspaceError",
    "DuplicateNameError",
    "UnknownFileError",
    "InvalidNameError",
]
