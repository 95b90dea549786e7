from __future__ import annotations

from typing import TYPE_CHECKING

import orjson

from archctl.cli import EXIT_CONFIG_ERROR, EXIT_FAILED, EXIT_OK, main

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

CONFIG = """
[[layers]]
name = "domain"

[[layers]]
name = "infra"

[[layerMappings]]
layer = "domain"
include = ["src/domain/**"]

[[layerMappings]]
layer = "infra"
include = ["src/infra/**"]

[[rules]]
kind = "forbidden-layer-import"
id = "no-domain-infra"
fromLayer = "domain"
toLayer = "infra"
"""


def _write_repo(root: Path) -> None:
    (root / "src" / "domain").mkdir(parents=True)
    (root / "src" / "infra").mkdir(parents=True)
    (root / "archctl.toml").write_text(CONFIG, encoding="utf-8")
    (root / "src" / "domain" / "a.ts").write_text(
        'import { db } from "../infra/db";\nexport const a = db;\n', encoding="utf-8"
    )
    (root / "src" / "infra" / "db.ts").write_text("export const db = 1;\n", encoding="utf-8")


def test_lint_fails_on_new_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_repo(tmp_path)

    exit_code = main(["lint", str(tmp_path)])

    assert exit_code == EXIT_FAILED
    out = capsys.readouterr().out
    assert "src/domain/a.ts:1:0: error [no-domain-infra]" in out
    assert "1 new" in out


def test_baseline_ratchet_workflow(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)

    assert main(["lint", str(tmp_path), "--update-baseline"]) == EXIT_OK
    assert (tmp_path / ".archctl" / "baseline.json").is_file()
    assert main(["lint", str(tmp_path)]) == EXIT_OK

    (tmp_path / "src" / "domain" / "a.ts").write_text(
        "export const a = 1;\n", encoding="utf-8"
    )
    capsys.readouterr()

    assert main(["lint", str(tmp_path)]) == EXIT_OK
    assert main(["lint", str(tmp_path), "--ratchet"]) == EXIT_FAILED
    assert "ratchet" in capsys.readouterr().err

    assert main(["lint", str(tmp_path), "--update-baseline"]) == EXIT_OK
    assert main(["lint", str(tmp_path), "--ratchet"]) == EXIT_OK


def test_lint_json_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_repo(tmp_path)

    exit_code = main(["lint", str(tmp_path), "--json", "--no-cache"])

    assert exit_code == EXIT_FAILED
    assert not (tmp_path / ".archctl" / "cache.json").exists()
    report = orjson.loads(capsys.readouterr().out)
    assert report["summary"]["errors"] == 1
    assert report["stats"]["fileCount"] == 2
    assert report["new"][0]["ruleId"] == "no-domain-infra"
    assert report["new"][0]["metadata"]["importedFile"] == "src/infra/db.ts"


def test_invalid_config_exits_with_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    (tmp_path / "archctl.toml").write_text(
        '[[rules]]\nkind = "no-such-rule"\nid = "x"\n', encoding="utf-8"
    )

    assert main(["lint", str(tmp_path)]) == EXIT_CONFIG_ERROR
    assert "config error" in capsys.readouterr().err
    assert main(["graph", str(tmp_path)]) == EXIT_CONFIG_ERROR


def test_graph_export(tmp_path: Path) -> None:
    _write_repo(tmp_path)
    out_path = tmp_path / "out" / "graph.json"

    assert main(["graph", str(tmp_path), "--out", str(out_path)]) == EXIT_OK

    payload = orjson.loads(out_path.read_bytes())
    assert set(payload["graph"]["files"]) == {"src/domain/a.ts", "src/infra/db.ts"}
    (edge,) = payload["graph"]["edges"]
    assert (edge["from"], edge["to"], edge["source"]) == (
        "src/domain/a.ts",
        "src/infra/db.ts",
        "tsjs",
    )
    assert edge["range"]["startLine"] == 1
    assert payload["stats"]["edgeCount"] == 1


def test_output_dir_outside_root_is_a_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _write_repo(repo)
    config_path = repo / "archctl.toml"
    config_path.write_text(
        'outputDir = "../elsewhere"\n' + config_path.read_text(encoding="utf-8"),
        encoding="utf-8",
    )

    assert main(["graph", str(repo)]) == EXIT_CONFIG_ERROR
    assert "escapes the repository root" in capsys.readouterr().err
    assert main(["lint", str(repo)]) == EXIT_CONFIG_ERROR
