"""Tests for directory traversal and ignore rules."""

from pathlib import Path

import pytest

from pith_cli.errors import PathNotFoundError
from pith_cli.walker import WalkOptions, build_tree, count_lines, walk


def _write(root: Path, rel: str, content: str = "x\n") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _rel_files(root: Path, options: WalkOptions = None):
    return [
        e.path.relative_to(root).as_posix()
        for e in walk(root, options)
        if e.is_file
    ]


def test_walk_sorted_and_recursive(temp_dir: Path):
    _write(temp_dir, "b.py")
    _write(temp_dir, "a.py")
    _write(temp_dir, "pkg/c.py")

    assert _rel_files(temp_dir) == ["a.py", "b.py", "pkg/c.py"]


def test_gitignore_respected(temp_dir: Path):
    _write(temp_dir, ".gitignore", "*.log\nbuild/\n")
    _write(temp_dir, "main.go")
    _write(temp_dir, "debug.log")
    _write(temp_dir, "build/out.go")

    assert _rel_files(temp_dir) == ["main.go"]


def test_nested_gitignore_scoped_to_its_directory(temp_dir: Path):
    _write(temp_dir, "sub/.gitignore", "skip.py\n")
    _write(temp_dir, "skip.py")
    _write(temp_dir, "sub/skip.py")
    _write(temp_dir, "sub/keep.py")

    assert _rel_files(temp_dir) == ["skip.py", "sub/keep.py"]


@pytest.mark.filterwarnings("error::DeprecationWarning")
def test_gitignore_negation_reincludes(temp_dir: Path):
    _write(temp_dir, ".gitignore", "*.log\n!keep.log\n")
    _write(temp_dir, ".pithignore", "tmp/\n")
    _write(temp_dir, "debug.log")
    _write(temp_dir, "keep.log")
    _write(temp_dir, "tmp/a.rs")

    assert _rel_files(temp_dir) == ["keep.log"]


def test_gitignore_can_be_disabled(temp_dir: Path):
    _write(temp_dir, ".gitignore", "*.log\n")
    _write(temp_dir, "debug.log")

    assert _rel_files(temp_dir, WalkOptions(respect_gitignore=False)) == ["debug.log"]


def test_pithignore_respected(temp_dir: Path):
    _write(temp_dir, ".pithignore", "vendor/\nsecret.rs\n")
    _write(temp_dir, "lib.rs")
    _write(temp_dir, "secret.rs")
    _write(temp_dir, "vendor/dep.rs")

    assert _rel_files(temp_dir) == ["lib.rs"]


def test_git_info_exclude(temp_dir: Path):
    _write(temp_dir, ".git/info/exclude", "local.py\n")
    _write(temp_dir, "local.py")
    _write(temp_dir, "shared.py")

    assert _rel_files(temp_dir) == ["shared.py"]


def test_custom_ignore_file(temp_dir: Path):
    extra = _write(temp_dir / "cfg", "ignore.txt", "*.ts\n")
    _write(temp_dir / "src", "a.ts")
    _write(temp_dir / "src", "b.py")

    files = _rel_files(temp_dir / "src", WalkOptions(custom_ignores=[extra]))
    assert files == ["b.py"]


def test_hidden_files_skipped_by_default(temp_dir: Path):
    _write(temp_dir, ".env")
    _write(temp_dir, ".hidden/x.py")
    _write(temp_dir, "visible.py")

    assert _rel_files(temp_dir) == ["visible.py"]
    assert _rel_files(temp_dir, WalkOptions(include_hidden=True)) == [".env", "visible.py", ".hidden/x.py"]


def test_git_directory_always_skipped(temp_dir: Path):
    _write(temp_dir, ".git/HEAD", "ref: refs/heads/main\n")
    _write(temp_dir, "a.py")

    assert _rel_files(temp_dir, WalkOptions(include_hidden=True)) == ["a.py"]


def test_max_depth(temp_dir: Path):
    _write(temp_dir, "top.py")
    _write(temp_dir, "one/mid.py")
    _write(temp_dir, "one/two/deep.py")

    assert _rel_files(temp_dir, WalkOptions(max_depth=1)) == ["top.py"]
    assert _rel_files(temp_dir, WalkOptions(max_depth=2)) == ["top.py", "one/mid.py"]


def test_entries_carry_size(temp_dir: Path):
    _write(temp_dir, "a.py", "abc")
    entry = next(e for e in walk(temp_dir) if e.is_file)

    assert entry.size == 3
    assert entry.depth == 1


def test_missing_root_raises(temp_dir: Path):
    with pytest.raises(PathNotFoundError) as excinfo:
        list(walk(temp_dir / "nope"))

    assert excinfo.value.exit_code == 3


def test_single_file_root(temp_dir: Path):
    path = _write(temp_dir, "only.rs")

    entries = list(walk(path))
    assert [(e.path, e.is_file) for e in entries] == [(path, True)]


def test_count_lines(temp_dir: Path):
    assert count_lines(_write(temp_dir, "a.txt", "one\ntwo\n")) == 2
    assert count_lines(_write(temp_dir, "b.txt", "one\ntwo")) == 2
    assert count_lines(_write(temp_dir, "c.txt", "")) == 0


def test_build_tree(temp_dir: Path):
    _write(temp_dir, "z.py")
    _write(temp_dir, "src/lib.rs", "fn a() {}\nfn b() {}\n")

    tree = build_tree(temp_dir)

    assert tree.is_dir
    assert [c.name for c in tree.children] == ["src", "z.py"]
    lib = tree.children[0].children[0]
    assert lib.name == "lib.rs"
    assert lib.extension == "rs"
    assert lib.lines == 2
    assert lib.path == temp_dir / "src" / "lib.rs"


def test_sample_project_ignores_log(sample_project_path: Path):
    files = _rel_files(sample_project_path)

    assert "build.log" not in files
    assert files == ["Cargo.toml", "src/item.rs", "src/lib.rs"]
