from __future__ import annotations

import json
from pathlib import Path

import pytest

from sketchbook.cli.build_site import main as build_site_main
from sketchbook.cli.extract_annotations import main as extract_annotations_main


def test_extract_cli_prints_code_and_annotations(tmp_path: Path, capsys: object) -> None:
    source = tmp_path / "blink.ino"
    source.write_text(
        "// NOTE: runs once at boot\nvoid setup() {\n  pinMode(13, OUTPUT);\n}\n",
        encoding="utf-8",
    )

    exit_code = extract_annotations_main(["--path", str(source)])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["path"] == str(source)
    assert payload["code"] == "void setup() {\n  pinMode(13, OUTPUT);\n}\n"
    assert payload["annotations"] == [
        {
            "start_line": 0,
            "end_line": 0,
            "text": "runs once at boot",
            "anchor_column": None,
            "marker_id": None,
            "depth": 0,
        }
    ]
    assert payload["warnings"] == []


def test_extract_cli_reports_marker_errors(tmp_path: Path, capsys: object) -> None:
    source = tmp_path / "broken.ino"
    source.write_text("void loop() {}\n// @annotate(loop) never closed\n", encoding="utf-8")

    exit_code = extract_annotations_main(["--path", str(source), "--name", "sketches/broken.ino"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 1
    assert payload["error_type"] == "UnterminatedAnnotation"
    assert payload["line"] == 2
    assert "source=sketches/broken.ino" in payload["error"]


def test_extract_cli_reports_unreadable_file(tmp_path: Path, capsys: object) -> None:
    exit_code = extract_annotations_main(["--path", str(tmp_path / "missing.ino")])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 1
    assert payload["error"].startswith("Failed to read source file")


def test_build_cli_writes_output_and_prints_stats(
    tmp_path: Path,
    capsys: object,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("SKETCHBOOK_ENV", "SKETCHBOOK_CONTENT_DIR", "SKETCHBOOK_OUTPUT_DIR", "SKETCHBOOK_BUILD_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)

    project_dir = tmp_path / "content" / "blink"
    project_dir.mkdir(parents=True)
    (project_dir / "project.json").write_text(json.dumps({"name": "Blink"}), encoding="utf-8")
    (project_dir / "blink.ino").write_text("void loop() {}\n", encoding="utf-8")
    output_dir = tmp_path / "build"

    exit_code = build_site_main(["--content-dir", str(tmp_path / "content"), "--output-dir", str(output_dir)])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["scanned"] == 1
    assert payload["built"] == 1
    assert payload["errors"] == 0
    assert (output_dir / "projects" / "blink.json").is_file()
    assert (output_dir / "index.json").is_file()


def test_build_cli_rejects_invalid_configuration(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SKETCHBOOK_BUILD_CONCURRENCY", "zero")

    assert build_site_main([]) == 2
