"""
工作区异常模块。

定义 Workspace Model 对外抛出的异常类型。
"""


class WorkspaceError(Exception):
    """工作区操作异常基类。"""


class DuplicateNameError(WorkspaceError):
    """名称已存在（内容存储或同级节点中）。

    Attributes:
        name: 冲突的名称
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"名称已存在: {name}")


class UnknownFileError(WorkspaceError):
    """文件不存在于工作区中。

    Attributes:
        name: 未知的文件名
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"文件不存在: {name}")


class InvalidNameError(WorkspaceError):
    """名称为空或仅包含空白字符。"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"非法名称: {name!r}")
