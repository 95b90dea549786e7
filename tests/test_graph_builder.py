from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

import orjson
import pytest

from archctl.graph.builder import (
    build_project_graph,
    get_file_dependencies,
    get_file_dependents,
    get_graph_stats,
)
from archctl.graph.cache import CACHE_VERSION
from archctl.rules.config import ArchctlConfig

if TYPE_CHECKING:
    from pathlib import Path

    from archctl.models.graph import ProjectGraph


def _write(root: Path, rel_path: str, content: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _config(**overrides: object) -> ArchctlConfig:
    data: dict[str, object] = {
        "layers": [{"name": "domain"}, {"name": "infra"}],
        "layerMappings": [
            {"layer": "domain", "include": ["src/domain/**"]},
            {"layer": "infra", "include": ["src/infra/**"]},
        ],
        "contextMappings": [{"context": "core", "include": ["src/**"]}],
    }
    data.update(overrides)
    return ArchctlConfig.model_validate(data)


def _ts_project(root: Path) -> list[str]:
    _write(root, "src/domain/a.ts", 'import { b } from "../infra/b";\nimport React from "react";\n')
    _write(root, "src/infra/b.ts", 'import { c } from "./c";\nimport { c as d } from "./c";\n')
    _write(root, "src/infra/c.ts", "export const c = 1;\n")
    _write(root, "scripts/tool.js", 'const b = require("../src/infra/b");\n')
    return ["src/domain/a.ts", "src/infra/b.ts", "src/infra/c.ts", "scripts/tool.js"]


def _edge_multiset(graph: ProjectGraph) -> Counter[tuple[str, str]]:
    return Counter((edge.from_file, edge.to_file) for edge in graph.edges)


def test_build_graph_classifies_and_links_files(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)

    graph = build_project_graph(tmp_path, files, _config(), use_cache=False)

    assert set(graph.files) == set(files)
    a = graph.files["src/domain/a.ts"]
    assert a.layer == "domain"
    assert a.context == "core"
    assert a.raw_imports == ["../infra/b", "react"]
    assert a.external_imports == ["react"]
    assert graph.files["scripts/tool.js"].layer is None
    assert _edge_multiset(graph) == Counter(
        {
            ("src/domain/a.ts", "src/infra/b.ts"): 1,
            ("src/infra/b.ts", "src/infra/c.ts"): 2,
            ("scripts/tool.js", "src/infra/b.ts"): 1,
        }
    )


def test_edges_carry_import_range_and_confidence(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)

    graph = build_project_graph(tmp_path, files, _config(), use_cache=False)

    edge = next(e for e in graph.edges if e.from_file == "src/domain/a.ts")
    assert edge.range is not None
    assert edge.range.start_line == 1
    assert edge.source == "tsjs"
    assert 0.9 <= edge.confidence <= 1.0


def test_every_edge_targets_a_graph_file(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)
    _write(tmp_path, "src/domain/dangling.ts", 'import x from "./not-there";\n')
    files.append("src/domain/dangling.ts")

    graph = build_project_graph(tmp_path, files, _config(), use_cache=False)

    assert all(edge.to_file in graph.files for edge in graph.edges)
    assert graph.files["src/domain/dangling.ts"].external_imports == []


def test_rebuild_is_idempotent_with_and_without_cache(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)
    config = _config()

    first = build_project_graph(tmp_path, files, config, use_cache=True)
    assert (tmp_path / ".archctl" / "cache.json").is_file()
    second = build_project_graph(tmp_path, files, config, use_cache=True)
    third = build_project_graph(tmp_path, files, config, use_cache=False)

    assert first.files == second.files == third.files
    assert _edge_multiset(first) == _edge_multiset(second) == _edge_multiset(third)


def test_parallel_extraction_matches_sequential(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)

    sequential = build_project_graph(tmp_path, files, _config(), use_cache=False)
    parallel = build_project_graph(
        tmp_path, files, _config(), use_cache=False, max_workers=4
    )

    assert parallel == sequential


def test_unreadable_and_undecodable_files_are_skipped(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    files = _ts_project(tmp_path)
    (tmp_path / "src" / "domain" / "bad.ts").write_bytes(b"\xff\xfe\xfa")
    files += ["src/domain/missing.ts", "src/domain/bad.ts"]

    with caplog.at_level(logging.WARNING):
        graph = build_project_graph(tmp_path, files, _config(), use_cache=False)

    assert "src/domain/missing.ts" not in graph.files
    assert "src/domain/bad.ts" not in graph.files
    assert "src/domain/a.ts" in graph.files
    assert "missing.ts" in caplog.text
    assert "bad.ts" in caplog.text


def test_corrupt_cache_is_discarded_and_rewritten(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    files = _ts_project(tmp_path)
    cache_path = tmp_path / ".archctl" / "cache.json"
    cache_path.parent.mkdir()
    cache_path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        graph = build_project_graph(tmp_path, files, _config(), use_cache=True)

    assert len(graph.edges) == 4
    assert "scan cache" in caplog.text
    data = orjson.loads(cache_path.read_bytes())
    assert data["version"] == CACHE_VERSION
    assert set(data["entries"]) == set(files)


def test_cache_with_other_version_is_ignored(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)
    cache_path = tmp_path / ".archctl" / "cache.json"
    cache_path.parent.mkdir()
    cache_path.write_bytes(
        orjson.dumps(
            {
                "version": "0.0.1",
                "entries": {
                    "src/domain/a.ts": {"hash": "x", "timestamp": "t", "result": {}}
                },
            }
        )
    )

    graph = build_project_graph(tmp_path, files, _config(), use_cache=True)

    assert graph.files["src/domain/a.ts"].raw_imports == ["../infra/b", "react"]


def test_changed_file_is_re_extracted(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)
    build_project_graph(tmp_path, files, _config(), use_cache=True)

    _write(tmp_path, "src/domain/a.ts", "export const a = 1;\n")
    graph = build_project_graph(tmp_path, files, _config(), use_cache=True)

    assert graph.files["src/domain/a.ts"].raw_imports == []
    assert not any(edge.from_file == "src/domain/a.ts" for edge in graph.edges)


def test_python_and_java_files(tmp_path: Path) -> None:
    _write(tmp_path, "app/__init__.py", "")
    _write(tmp_path, "app/models.py", "import os\n")
    _write(tmp_path, "app/services.py", "from .models import User\nfrom app import models\n")
    _write(
        tmp_path,
        "src/main/java/com/acme/Service.java",
        "import com.acme.domain.User;\nimport java.util.List;\n"
        "import static com.acme.util.Strings.*;\n",
    )
    _write(tmp_path, "src/main/java/com/acme/domain/User.java", "class User {}\n")
    _write(tmp_path, "src/main/java/com/acme/util/Strings.java", "class Strings {}\n")
    files = [
        "app/__init__.py",
        "app/models.py",
        "app/services.py",
        "src/main/java/com/acme/Service.java",
        "src/main/java/com/acme/domain/User.java",
        "src/main/java/com/acme/util/Strings.java",
    ]

    graph = build_project_graph(tmp_path, files, ArchctlConfig(), use_cache=False)

    assert _edge_multiset(graph) == Counter(
        {
            ("app/services.py", "app/models.py"): 1,
            ("app/services.py", "app/__init__.py"): 1,
            (
                "src/main/java/com/acme/Service.java",
                "src/main/java/com/acme/domain/User.java",
            ): 1,
            (
                "src/main/java/com/acme/Service.java",
                "src/main/java/com/acme/util/Strings.java",
            ): 1,
        }
    )
    assert graph.files["app/models.py"].external_imports == ["os"]
    assert graph.files["src/main/java/com/acme/Service.java"].external_imports == [
        "java.util"
    ]


def test_graph_stats_and_queries(tmp_path: Path) -> None:
    files = _ts_project(tmp_path)
    graph = build_project_graph(tmp_path, files, _config(), use_cache=False)

    stats = get_graph_stats(graph)

    assert stats.file_count == 4
    assert stats.edge_count == 4
    assert stats.unmapped_files == 1
    assert stats.average_dependencies_per_file == 1.0
    assert stats.language_counts == {"typescript": 3, "javascript": 1}
    assert stats.layer_counts == {"domain": 1, "infra": 2}
    assert get_file_dependencies(graph, "src/infra/b.ts") == ["src/infra/c.ts"]
    assert get_file_dependents(graph, "src/infra/b.ts") == [
        "src/domain/a.ts",
        "scripts/tool.js",
    ]
