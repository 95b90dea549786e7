from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from archctl.parse.tsconfig import (
    TsConfigPaths,
    load_tsconfig,
    parse_tsconfig_text,
    strip_json_comments,
)

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

TSCONFIG = """{
  // path aliases
  "compilerOptions": {
    "baseUrl": "./src",
    /* shared code */
    "paths": {
      "@app/*": ["*"],
      "@shared/*": ["shared/*", "vendor/shared/*",],
      "broken": "not-a-list",
    },
  },
}
"""


def test_strip_json_comments_keeps_comment_markers_inside_strings() -> None:
    text = '{"url": "http://example.com/*x*/"} // trailing'

    assert strip_json_comments(text).strip() == '{"url": "http://example.com/*x*/"}'


def test_parse_tsconfig_text_tolerates_comments_and_trailing_commas() -> None:
    data = parse_tsconfig_text(TSCONFIG)

    assert data["compilerOptions"]["baseUrl"] == "./src"


def test_load_tsconfig(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text(TSCONFIG, encoding="utf-8")

    assert load_tsconfig(tmp_path) == TsConfigPaths(
        base_url="src",
        paths={"@app/*": ("*",), "@shared/*": ("shared/*", "vendor/shared/*")},
    )


def test_missing_tsconfig(tmp_path: Path) -> None:
    assert load_tsconfig(tmp_path) is None


def test_tsconfig_without_compiler_options(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text('{"include": ["src"]}', encoding="utf-8")

    assert load_tsconfig(tmp_path) == TsConfigPaths()


def test_invalid_tsconfig_is_ignored_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "tsconfig.json").write_text("{ nope", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert load_tsconfig(tmp_path) is None

    assert "tsconfig.json" in caplog.text
