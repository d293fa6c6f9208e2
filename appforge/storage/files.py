"""Helpers for generated file maps."""

from typing import Any

TreeItem = str | list[Any]


def files_to_tree(files: dict[str, str]) -> list[TreeItem]:
    """Convert a ``{path: content}`` map into a nested tree for a file browser.

    Files are plain names; a directory is a list whose first element is its name followed
    by its children. Paths are sorted so the output is stable.

    Example:
        >>> files_to_tree({"src/index.ts": "", "src/lib/utils.ts": "", "README.md": ""})
        ['README.md', ['src', 'index.ts', ['lib', 'utils.ts']]]
    """
    root: dict[str, Any] = {}
    for path in sorted(files):
        parts = [p for p in path.split("/") if p]
        if not parts:
            continue
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node.setdefault(parts[-1], None)

    def convert(node: dict[str, Any]) -> list[TreeItem]:
        items: list[TreeItem] = []
        for name, child in node.items():
            if child is None:
                items.append(name)
            else:
                items.append([name, *convert(child)])
        return items

    return convert(root)
