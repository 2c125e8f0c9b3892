"""
core/workspace 的单元测试。
"""

import json

import pytest

from core.workspace import (
    DuplicateNameError,
    FileNode,
    FolderNode,
    InvalidNameError,
    UnknownFileError,
    Workspace,
)


@pytest.fixture
def workspace():
    """空工作区。"""
    return Workspace()


@pytest.fixture
def seeded():
    """带种子内容的工作区（与默认配置结构一致）。"""
    return Workspace.from_seed(
        [
            {
                "name": "src",
                "type": "folder",
                "children": [
                    {"name": "main.str", "type": "file", "content": "print(1)"},
                    {"name": "lib", "type": "folder", "children": [
                        {"name": "util.py", "type": "file"},
                    ]},
                ],
            },
            {"name": "WELCOME.txt", "type": "file", "content": "hi"},
        ]
    )


class TestCreate:
    """测试 create_file / create_folder。"""

    def test_distinct_creates_keep_insertion_order(self, workspace):
        """测试不同名称的创建按插入顺序出现在树中。"""
        workspace.create_file("a.py")
        workspace.create_folder("docs")
        workspace.create_file("b.str")
        workspace.create_folder("assets")

        rows = workspace.render_tree()
        assert [r.name for r in rows] == ["a.py", "docs", "b.str", "assets"]
        assert [r.kind for r in rows] == ["file", "folder", "file", "folder"]
        assert all(r.depth == 0 for r in rows)

    def test_create_file_opens_and_activates(self, workspace):
        """测试新建文件后内容为空、被打开并激活。"""
        node = workspace.create_file("main.str")

        assert isinstance(node, FileNode)
        assert workspace.read_content("main.str") == ""
        assert workspace.tabs == ["main.str"]
        assert workspace.active_file == "main.str"

    def test_create_folder_is_closed(self, workspace):
        """测试新建文件夹初始为折叠状态且不影响标签。"""
        folder = workspace.create_folder("src")

        assert isinstance(folder, FolderNode)
        assert folder.open is False
        assert folder.children == []
        assert workspace.tabs == []

    def test_duplicate_file_leaves_state_unchanged(self, workspace):
        """测试重复文件名报错且状态不变。"""
        workspace.create_file("a.py")
        workspace.update_content("a.py", "x = 1")
        workspace.create_file("b.py")
        before = json.dumps(workspace.snapshot(), sort_keys=True)

        with pytest.raises(DuplicateNameError) as exc_info:
            workspace.create_file("a.py")

        assert exc_info.value.name == "a.py"
        assert json.dumps(workspace.snapshot(), sort_keys=True) == before

    def test_duplicate_detected_for_empty_content(self, workspace):
        """测试内容为空的文件同样视为已存在。"""
        workspace.create_file("empty.txt")
        with pytest.raises(DuplicateNameError):
            workspace.create_file("empty.txt")

    def test_duplicate_file_nested_in_folder(self, seeded):
        """测试内容存储中已有的嵌套文件名不能再次创建。"""
        with pytest.raises(DuplicateNameError):
            seeded.create_file("main.str")

    def test_duplicate_nested_file_without_content(self, seeded):
        """测试种子中没有内容条目的嵌套文件同样阻止重名创建。"""
        before = seeded.snapshot()
        with pytest.raises(DuplicateNameError):
            seeded.create_file("util.py")

        assert seeded.snapshot() == before
        assert [r.name for r in seeded.render_tree()].count("util.py") == 1

    def test_duplicate_folder_rejected(self, workspace):
        """测试顶层重名文件夹被拒绝。"""
        workspace.create_folder("src")
        with pytest.raises(DuplicateNameError):
            workspace.create_folder("src")
        assert len(workspace.render_tree()) == 1

    def test_file_and_folder_share_sibling_names(self, workspace):
        """测试文件与文件夹在同级也不能重名。"""
        workspace.create_folder("build")
        with pytest.raises(DuplicateNameError):
            workspace.create_file("build")
        assert "build" not in workspace.contents

    @pytest.mark.parametrize("name", ["", "   "])
    def test_invalid_names(self, workspace, name):
        """测试空名称被拒绝。"""
        with pytest.raises(InvalidNameError):
            workspace.create_file(name)
        with pytest.raises(InvalidNameError):
            workspace.create_folder(name)
        assert workspace.render_tree() == []


class TestTabs:
    """测试 open_file / close_tab。"""

    @pytest.fixture
    def abc(self, workspace):
        for name in ["a", "b", "c"]:
            workspace.create_file(name)
        return workspace

    def test_open_is_idempotent_on_sequence(self, abc):
        """测试重复打开只改变激活文件。"""
        abc.open_file("a")
        assert abc.tabs == ["a", "b", "c"]
        assert abc.active_file == "a"

        abc.open_file("a")
        abc.open_file("b")
        assert abc.tabs == ["a", "b", "c"]
        assert abc.active_file == "b"

    def test_open_unknown_file(self, abc):
        """测试打开不存在的文件。"""
        with pytest.raises(UnknownFileError):
            abc.open_file("missing")
        assert abc.tabs == ["a", "b", "c"]

    def test_open_seeded_file_without_content_entry(self, seeded):
        """测试没有内容条目的文件节点可以打开，内容为空。"""
        seeded.open_file("util.py")
        assert seeded.active_file == "util.py"
        assert seeded.read_content("util.py") == ""

    def test_close_active_middle_selects_next(self, abc):
        """测试关闭中间的激活标签后激活其后一个。"""
        abc.open_file("b")
        assert abc.close_tab("b") == "c"
        assert abc.tabs == ["a", "c"]

    def test_close_active_last_selects_first(self, abc):
        """测试关闭最后的激活标签后激活第一个。"""
        abc.open_file("c")
        assert abc.close_tab("c") == "a"
        assert abc.tabs == ["a", "b"]

    def test_close_inactive_keeps_active(self, abc):
        """测试关闭非激活标签不改变激活文件。"""
        abc.open_file("c")
        abc.close_tab("a")
        assert abc.active_file == "c"
        assert abc.tabs == ["b", "c"]

    def test_close_last_remaining(self, workspace):
        """测试关闭唯一标签后激活文件为空。"""
        workspace.create_file("only")
        assert workspace.close_tab("only") == ""
        assert workspace.tabs == []

    def test_close_not_open_is_noop(self, abc):
        """测试关闭未打开的标签为空操作。"""
        abc.close_tab("zzz")
        assert abc.tabs == ["a", "b", "c"]
        assert abc.active_file == "c"

    def test_tabs_property_is_copy(self, abc):
        """测试 tabs 返回副本，外部修改不影响会话。"""
        abc.tabs.append("x")
        assert abc.tabs == ["a", "b", "c"]


class TestContent:
    """测试内容存储。"""

    def test_update_round_trip(self, workspace):
        """测试写入后读取完全一致（不做规范化）。"""
        workspace.create_file("main.str")
        text = "  print(1)\r\n\tprint(2)  \n\n"
        workspace.update_content("main.str", text)
        assert workspace.read_content("main.str") == text
        assert workspace.contents["main.str"] == text

    def test_update_unknown_raises(self, workspace):
        """测试更新未知文件时报错且不创建条目。"""
        with pytest.raises(UnknownFileError):
            workspace.update_content("ghost.py", "x")
        assert "ghost.py" not in workspace.contents

    def test_read_unknown_raises(self, workspace):
        with pytest.raises(UnknownFileError):
            workspace.read_content("ghost.py")


class TestTree:
    """测试树的遍历与文件夹切换。"""

    def test_render_tree_preorder_with_depth(self, seeded):
        """测试先序遍历与深度标注。"""
        rows = seeded.render_tree()
        assert [(r.name, r.depth) for r in rows] == [
            ("src", 0),
            ("main.str", 1),
            ("lib", 1),
            ("util.py", 2),
            ("WELCOME.txt", 0),
        ]

    def test_render_tree_visible_only(self, seeded):
        """测试只输出展开文件夹的子节点。"""
        assert [r.name for r in seeded.render_tree(visible_only=True)] == [
            "src",
            "WELCOME.txt",
        ]

        seeded.toggle_folder(seeded.find_node("src"))
        assert [r.name for r in seeded.render_tree(visible_only=True)] == [
            "src",
            "main.str",
            "lib",
            "WELCOME.txt",
        ]

    def test_render_tree_has_no_side_effects(self, seeded):
        before = seeded.snapshot()
        seeded.render_tree()
        seeded.render_tree(visible_only=True)
        assert seeded.snapshot() == before

    def test_toggle_twice_restores(self, seeded):
        """测试切换两次恢复原值且不影响子节点。"""
        folder = seeded.find_node("src")
        children = list(folder.children)

        assert seeded.toggle_folder(folder) is True
        assert seeded.toggle_folder(folder) is False
        assert folder.open is False
        assert folder.children == children

    def test_seed_contents(self, seeded):
        """测试种子内容写入内容存储。"""
        assert seeded.contents == {"main.str": "print(1)", "WELCOME.txt": "hi"}
        assert seeded.tabs == []
        assert seeded.active_file == ""

    def test_seed_unknown_type(self):
        with pytest.raises(ValueError):
            Workspace.from_seed([{"name": "x", "type": "link"}])

    def test_snapshot_is_json_serializable(self, seeded):
        snapshot = seeded.snapshot()
        data = json.loads(json.dumps(snapshot))
        assert data["tree"][0]["kind"] == "folder"
        assert data["tree"][0]["children"][0] == {"name": "main.str", "kind": "file"}
        assert data["session"] == {"tabs": [], "active_file": ""}


class TestDelete:
    """测试 delete_node。"""

    def test_delete_file_cleans_content_and_tab(self, workspace):
        """测试删除文件时清理内容与标签。"""
        for name in ["a", "b", "c"]:
            workspace.create_file(name)
        workspace.open_file("b")

        workspace.delete_node(workspace.find_node("b"))

        assert [r.name for r in workspace.render_tree()] == ["a", "c"]
        assert "b" not in workspace.contents
        assert workspace.tabs == ["a", "c"]
        assert workspace.active_file == "c"

    def test_delete_folder_cleans_descendants(self, seeded):
        """测试删除文件夹时清理其下所有文件。"""
        seeded.open_file("main.str")
        seeded.open_file("WELCOME.txt")

        seeded.delete_node(seeded.find_node("src"))

        assert [r.name for r in seeded.render_tree()] == ["WELCOME.txt"]
        assert "main.str" not in seeded.contents
        assert seeded.tabs == ["WELCOME.txt"]

    def test_delete_then_recreate(self, workspace):
        """测试删除后可以重新创建同名文件。"""
        workspace.create_file("a.py")
        workspace.delete_node(workspace.find_node("a.py"))
        workspace.create_file("a.py")
        assert workspace.read_content("a.py") == ""

    def test_delete_detached_node(self, workspace):
        with pytest.raises(UnknownFileError):
            workspace.delete_node(FileNode(name="detached"))
