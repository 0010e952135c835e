from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from flatcompose.linearise import (
    linearise,
    linearise_file,
    linearise_with_diagnostics,
    trim_output,
)
from flatcompose.models import FileAccessError, ParseError
from flatcompose.settings import LineariseSettings


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content.strip() + "\n", encoding="utf-8")


WRAPPED = """
version: '3.8'
x-common:
  restart: always
services:
  base:
    image: "a"
    ports: [80]
    environment:
      A: 1
      B: 2
  web:
    extends: base
    image: "b"
    ports: [443]
    environment:
      B: 3
      C: 4
networks:
  default: {}
"""


def test_wrapped_document_resolves_services_and_keeps_siblings(tmp_path: Path) -> None:
    out = linearise(WRAPPED, tmp_path)
    data = yaml.safe_load(out)

    assert list(data.keys()) == ["version", "x-common", "networks", "services"]
    assert data["version"] == "3.8"
    assert data["x-common"] == {"restart": "always"}
    assert data["networks"] == {"default": {}}
    assert data["services"]["web"] == {
        "image": "b",
        "ports": [80, 443],
        "environment": {"A": 1, "B": 3, "C": 4},
    }
    assert data["services"]["base"]["image"] == "a"
    assert "extends" not in out


def test_flat_document_is_resolved_as_a_services_map(tmp_path: Path) -> None:
    out = linearise(
        """
db:
  image: postgres
  volumes: [pgdata:/var/lib/postgresql/data]
db-test:
  extends: db
  environment:
    POSTGRES_DB: test
""",
        tmp_path,
    )

    assert yaml.safe_load(out) == {
        "db": {
            "image": "postgres",
            "volumes": ["pgdata:/var/lib/postgresql/data"],
        },
        "db-test": {
            "image": "postgres",
            "volumes": ["pgdata:/var/lib/postgresql/data"],
            "environment": {"POSTGRES_DB": "test"},
        },
    }


def test_output_is_trimmed_and_idempotent(tmp_path: Path) -> None:
    once = linearise(WRAPPED, tmp_path)
    twice = linearise(once, tmp_path)

    assert once == twice
    assert not once.endswith("\n")
    assert not once.startswith("-")


def test_document_without_extends_passes_through(tmp_path: Path) -> None:
    text = "web:\n  image: nginx\n  ports:\n  - 80\ncache:\n  image: redis"

    assert linearise(text, tmp_path) == text


def test_trim_can_be_disabled(tmp_path: Path) -> None:
    out = linearise("web:\n  image: nginx\n", tmp_path, settings=LineariseSettings(trim=()))

    assert out == "---\nweb:\n  image: nginx\n"


def test_trim_output_strips_each_set_in_order() -> None:
    assert trim_output("--- \nweb: x\n...\n", ("-", " \n")) == "web: x\n..."
    assert trim_output("\n- a\n- b\n", ("-", " \n")) == "- a\n- b"
    assert trim_output("  keep  ", ()) == "  keep  "


def test_cross_file_reference_from_main_document(tmp_path: Path) -> None:
    _write(
        tmp_path / "common.yaml",
        """
services:
  base:
    image: base-img
    ports: [80]
""",
    )
    _write(
        tmp_path / "main.yaml",
        """
services:
  web:
    extends:
      service: base
      file: common.yaml
    ports: [443]
""",
    )

    out, diagnostics = linearise_file(tmp_path / "main.yaml")

    assert yaml.safe_load(out)["services"]["web"] == {
        "image": "base-img",
        "ports": [80, 443],
    }
    assert diagnostics["shape"] == "wrapped"
    assert diagnostics["services"] == ["web"]
    assert diagnostics["files"] == [
        str((tmp_path / "main.yaml").resolve()),
        str((tmp_path / "common.yaml").resolve()),
    ]


def test_empty_base_dir_defaults_to_cwd(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(tmp_path / "common.yaml", "base:\n  image: from-cwd\n")
    monkeypatch.chdir(tmp_path)

    out = linearise("web:\n  extends: {service: base, file: common.yaml}\n", "")

    assert yaml.safe_load(out) == {"web": {"image": "from-cwd"}}


def test_dangling_reference_yields_child_fields_only(tmp_path: Path) -> None:
    out, diagnostics = linearise_with_diagnostics(
        "web:\n  extends: ghost\n  image: own\n", tmp_path
    )

    assert yaml.safe_load(out) == {"web": {"image": "own"}}
    assert diagnostics["dangling_references"][0]["target"] == "ghost"


def test_missing_referenced_file_aborts(tmp_path: Path) -> None:
    with pytest.raises(FileAccessError, match="extends of service 'web'"):
        linearise("web:\n  extends: {service: base, file: missing.yaml}\n", tmp_path)


def test_malformed_document_aborts(tmp_path: Path) -> None:
    with pytest.raises(ParseError):
        linearise("services: {web: [}\n", tmp_path)


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ParseError, match="document root must be a mapping"):
        linearise("- web\n- db\n", tmp_path)


def test_linearise_file_missing_document(tmp_path: Path) -> None:
    with pytest.raises(FileAccessError, match="File not found"):
        linearise_file(tmp_path / "absent.yaml")


def test_quoted_keys_stay_strings_through_linearisation(tmp_path: Path) -> None:
    text = """
base:
  image: nginx
  labels:
    'true': a
web:
  extends: base
  environment:
    'on': x
    '80': y
  labels:
    'true': b
    8080: c
"""

    out = linearise(text, tmp_path)

    assert yaml.safe_load(out)["web"] == {
        "image": "nginx",
        "labels": {"true": "b", 8080: "c"},
        "environment": {"on": "x", "80": "y"},
    }


def test_default_trim_keeps_leading_dash_in_service_names(tmp_path: Path) -> None:
    out = linearise("-legacy:\n  image: nginx\nweb:\n  extends: -legacy\n", tmp_path)

    assert out.startswith("-legacy:")
    assert yaml.safe_load(out) == {
        "-legacy": {"image": "nginx"},
        "web": {"image": "nginx"},
    }


def test_default_trim_removes_document_start_marker(tmp_path: Path) -> None:
    assert linearise("web:\n  image: nginx\n", tmp_path) == "web:\n  image: nginx"
    assert linearise("", tmp_path) == "{}"
