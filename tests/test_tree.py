import os
import time

import pytest

from toolboxer.commands.tree import execute, human_size
from toolboxer.config import TreeConfig


@pytest.fixture
def project(tmp_path):
    (tmp_path / "b_dir").mkdir()
    (tmp_path / "b_dir" / "inner.txt").write_text("hello")
    (tmp_path / "b_dir" / "deep").mkdir()
    (tmp_path / "b_dir" / "deep" / "leaf.py").write_text("")
    (tmp_path / "a.py").write_text("x" * 50000)
    (tmp_path / "c.txt").write_text("c")
    (tmp_path / ".hidden").write_text("")
    return tmp_path


def lines(cfg):
    return execute(cfg).splitlines()


class TestTree:
    def test_default_layout(self, project):
        out = lines(TreeConfig(root=project))
        assert out[0] == str(project)
        assert out[1:7] == [
            "├── a.py",
            "├── b_dir/",
            "│   ├── deep/",
            "│   │   └── leaf.py",
            "│   └── inner.txt",
            "└── c.txt",
        ]
        assert out[-1] == "2 directories, 4 files"

    def test_hidden_files(self, project):
        assert "├── .hidden" in lines(TreeConfig(root=project, show_hidden=True))
        assert not any(".hidden" in l for l in lines(TreeConfig(root=project)))

    def test_depth(self, project):
        out = lines(TreeConfig(root=project, max_depth=1))
        assert "├── b_dir/" in out
        assert not any("inner.txt" in l for l in out)

    def test_pattern_keeps_directories(self, project):
        out = lines(TreeConfig(root=project, pattern="*.py"))
        assert "│       └── leaf.py" in out
        assert not any(l.endswith(".txt") for l in out)

    def test_dirs_only(self, project):
        out = lines(TreeConfig(root=project, directories_only=True))
        assert out[1:3] == ["└── b_dir/", "    └── deep/"]
        assert out[-1] == "2 directories"

    def test_sort_by_type_puts_directories_first(self, project):
        out = lines(TreeConfig(root=project, sort_by="type"))
        assert out[1] == "├── b_dir/"

    def test_sort_by_size(self, project):
        out = lines(TreeConfig(root=project, sort_by="size"))
        top = [l for l in out if l.startswith(("├── ", "└── "))]
        assert top[0] == "├── a.py"

    def test_sort_by_date(self, project):
        newest = project / "c.txt"
        later = time.time() + 100
        os.utime(newest, (later, later))
        out = lines(TreeConfig(root=project, sort_by="date"))
        assert out[1] == "├── c.txt"

    def test_metadata_columns(self, project):
        out = lines(TreeConfig(root=project, show_size=True, show_permissions=True))
        row = next(l for l in out if l.endswith("a.py"))
        assert "48.83 KiB" in row
        assert row.startswith("├── [-")


def test_human_size():
    assert human_size(0) == "0 B"
    assert human_size(1023) == "1023 B"
    assert human_size(1536) == "1.50 KiB"
    assert human_size(5 * 1024 ** 3) == "5.00 GiB"
