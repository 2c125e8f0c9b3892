"""
标签页会话模块。

维护打开文件的有序列表和当前激活文件。
"""

from dataclasses import dataclass, field
from typing import List

from dataclasses_json import DataClassJsonMixin


@dataclass
class TabSession(DataClassJsonMixin):
    """标签页会话。

    不变量:
        - tabs 无重复，按打开顺序排列
        - active_file 为 "" 或 tabs 中的成员

    Attributes:
        tabs: 打开的文件名列表
        active_file: 当前激活文件，"" 表示未选中
    """

    tabs: List[str] = field(default_factory=list)
    active_file: str = ""

    def __contains__(self, name: str) -> bool:
        return name in self.tabs

    def open(self, name: str) -> None:
        """打开标签并激活（已打开时只移动激活指针）。"""
        if name not in self.tabs:
            self.tabs.append(name)
        self.active_file = name

    def close(self, name: str) -> str:
        """关闭标签。

        关闭的是激活标签时，新激活标签为原顺序中紧随其后的标签；
        若其后没有标签则取剩余的第一个；全部关闭则为 ""。

        Args:
            name: 文件名（未打开时为空操作）

        Returns:
            关闭后的 active_file
        """
        if name not in self.tabs:
            return self.active_file

        index = self.tabs.index(name)
        self.tabs.remove(name)

        if self.active_file == name:
            if index < len(self.tabs):
                self.active_file = self.tabs[index]
            elif self.tabs:
                self.active_file = self.tabs[0]
            else:
                self.active_file = ""

        return self.active_file
