from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from archctl.scan.files import _build_gitignore_matcher, find_source_files

if TYPE_CHECKING:
    from pathlib import Path


def _touch(root: Path, rel_path: str, content: str = "") -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_find_source_files_skips_symlinked_dirs(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _touch(repo_root, "src/module.ts", "export const ok = 1;\n")

    external_root = tmp_path / "external"
    _touch(external_root, "leak.ts", "export const leak = 1;\n")

    (repo_root / "linked").symlink_to(external_root, target_is_directory=True)
    (repo_root / "src" / "alias.ts").symlink_to(external_root / "leak.ts")

    assert find_source_files(repo_root) == ["src/module.ts"]


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_nested_gitignore_skips_symlinked_gitignore(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _touch(repo_root, "pkg/module.py", "print('ok')\n")
    _touch(repo_root, ".gitignore", "*.bin\n")

    external_root = tmp_path / "external"
    _touch(external_root, "outside.gitignore", "pkg/module.py\n")
    (repo_root / "linked.gitignore").symlink_to(external_root / "outside.gitignore")

    matcher = _build_gitignore_matcher(repo_root, nested_gitignore=True)
    assert matcher is not None
    assert matcher(str(repo_root / "pkg" / "module.py")) is False


def test_finds_supported_languages_sorted(tmp_path: Path) -> None:
    for rel_path in [
        "src/b.ts",
        "src/a.tsx",
        "lib/tool.mjs",
        "app/main.py",
        "src/main/java/App.java",
        "README.md",
        "styles.css",
    ]:
        _touch(tmp_path, rel_path)

    assert find_source_files(tmp_path) == [
        "app/main.py",
        "lib/tool.mjs",
        "src/a.tsx",
        "src/b.ts",
        "src/main/java/App.java",
    ]


def test_skips_output_dir_and_vendored_dirs(tmp_path: Path) -> None:
    _touch(tmp_path, "src/a.ts")
    _touch(tmp_path, ".archctl/leftover.ts")
    _touch(tmp_path, "node_modules/react/index.js")
    _touch(tmp_path, "pkg/__pycache__/mod.py")

    assert find_source_files(tmp_path) == ["src/a.ts"]


def test_respects_root_gitignore(tmp_path: Path) -> None:
    _touch(tmp_path, ".gitignore", "dist/**\n*.gen.ts\n")
    _touch(tmp_path, "src/a.ts")
    _touch(tmp_path, "src/schema.gen.ts")
    _touch(tmp_path, "dist/bundle.js")

    assert find_source_files(tmp_path) == ["src/a.ts"]


def test_nested_gitignore_only_when_enabled(tmp_path: Path) -> None:
    _touch(tmp_path, "src/a.ts")
    _touch(tmp_path, "src/legacy/.gitignore", "*.ts\n")
    _touch(tmp_path, "src/legacy/old.ts")

    assert find_source_files(tmp_path) == ["src/a.ts", "src/legacy/old.ts"]
    assert find_source_files(tmp_path, nested_gitignore=True) == ["src/a.ts"]


def test_include_and_exclude_patterns(tmp_path: Path) -> None:
    _touch(tmp_path, "src/a.ts")
    _touch(tmp_path, "src/a.test.ts")
    _touch(tmp_path, "scripts/build.js")

    found = find_source_files(
        tmp_path,
        include_patterns=["src/**"],
        exclude_patterns=["**/*.test.ts"],
    )

    assert found == ["src/a.ts"]


def test_depth_bound(tmp_path: Path) -> None:
    _touch(tmp_path, "a/top.ts")
    _touch(tmp_path, "a/b/deep.ts")

    assert find_source_files(tmp_path, max_depth=1) == ["a/top.ts"]
    assert find_source_files(tmp_path) == ["a/b/deep.ts", "a/top.ts"]
