from __future__ import annotations

import sys
from pathlib import Path


class UnsafeDataPathError(RuntimeError):
    """The data file would sit inside a git working tree."""

    def __init__(self, data_path: Path, repo_root: Path):
        super().__init__(f"{data_path} is inside the git repo at {repo_root}")
        self.data_path = data_path
        self.repo_root = repo_root

    def hint_lines(self) -> list[str]:
        return [
            "🚫 Refusing to keep mood history inside a git repo.",
            f"   data_path: {self.data_path}",
            f"   repo_root: {self.repo_root}",
            "   Fix: use ~/.config/moodflow/*.json, set MOODFLOW_DATA, or pass --allow-repo-data-path",
        ]


def find_git_root(start: Path) -> Path | None:
    for cur in (start, *start.parents):
        if (cur / ".git").exists():
            return cur
    return None


def check_data_path(data_path: Path, allow_repo_data_path: bool = False) -> Path | None:
    """
    Returns the enclosing repo root when the override allows it, None when the
    path is outside any repo. Raises UnsafeDataPathError otherwise.
    """
    repo_root = find_git_root(data_path.parent)
    if repo_root and not allow_repo_data_path:
        raise UnsafeDataPathError(data_path, repo_root)
    return repo_root


def assert_safe_data_path(data_path: Path, allow_repo_data_path: bool) -> None:
    try:
        check_data_path(data_path, allow_repo_data_path)
    except UnsafeDataPathError as e:
        for line in e.hint_lines():
            print(line, file=sys.stderr)
        raise SystemExit(2) from None
