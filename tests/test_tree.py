"""Tests for the file tree model and its rendering."""

from pathlib import Path

from pith_cli.tree import FileNode, RenderOptions, format_number, format_size, render_tree


def _sample_tree() -> FileNode:
    root = FileNode.directory("proj", Path("proj"))
    readme = FileNode.file("README.md", Path("proj/README.md"), "md", 100, 3)
    src = FileNode.directory("src", Path("proj/src"))
    lib = FileNode.file("lib.rs", Path("proj/src/lib.rs"), "rs", 2048, 10)
    main = FileNode.file("Main.rs", Path("proj/src/Main.rs"), "rs", 10, 1)
    src.add_child(lib)
    src.add_child(main)
    root.add_child(readme)
    root.add_child(src)
    root.sort_children()
    return root


def test_sort_directories_first_then_name():
    root = _sample_tree()

    assert [c.name for c in root.children] == ["src", "README.md"]
    assert [c.name for c in root.children[0].children] == ["lib.rs", "Main.rs"]


def test_render_plain():
    assert render_tree(_sample_tree()) == (
        "proj/\n"
        "├── src/\n"
        "│   ├── lib.rs\n"
        "│   └── Main.rs\n"
        "└── README.md\n"
    )


def test_render_with_metadata_and_markers():
    options = RenderOptions.with_metadata(
        selected=[Path("proj/README.md"), Path("proj/src/lib.rs")],
        has_codemap=[Path("proj/src/lib.rs"), Path("proj/src/Main.rs")],
    )
    text = render_tree(_sample_tree(), options)

    assert "│   ├── lib.rs [rust, 10 lines, 2.0KB] *+\n" in text
    assert "│   └── Main.rs [rust, 1 lines, 10B] +\n" in text
    assert "└── README.md [3 lines, 100B] *\n" in text


def test_counts():
    root = _sample_tree()

    assert root.file_count() == 3
    assert root.directory_count() == 2


def test_language_property():
    root = _sample_tree()

    assert root.language is None
    assert root.children[0].children[0].language == "rust"
    assert root.children[1].language is None


def test_format_size():
    assert format_size(512) == "512B"
    assert format_size(1536) == "1.5KB"
    assert format_size(1024 * 1024) == "1.0MB"


def test_format_number():
    assert format_number(0) == "0"
    assert format_number(999) == "999"
    assert format_number(1234567) == "1,234,567"
