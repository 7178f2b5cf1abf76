"""
Tests for the command-line interface.
"""

import pytest
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def items_file(tmp_path):
    """Two pages of pre-extracted text items with a running header."""
    pages = [
        [{"str": "Physics 101", "transform": [1, 0, 0, 1, 72, 40]},
         {"str": "Energy is E = mc", "transform": [1, 0, 0, 1, 72, 100]},
         {"str": "2", "transform": [1, 0, 0, 1, 150, 95]},
         {"str": "in every frame.", "transform": [1, 0, 0, 1, 72, 115]}],
        [{"str": "Physics 101", "transform": [1, 0, 0, 1, 72, 40]},
         {"str": "Mass is conserved.", "transform": [1, 0, 0, 1, 72, 100]}],
    ]
    path = tmp_path / "lecture.json"
    path.write_text(json.dumps(pages))
    return path


def run(argv):
    from pdf_dictation.cli import setup_argparser, run_pipeline

    return run_pipeline(setup_argparser().parse_args(argv))


class TestPageRange:
    """Tests for page range parsing."""

    @pytest.mark.parametrize("page_str,max_pages,expected", [
        ("1-3", 5, [1, 2, 3]),
        ("1-3,5", 4, [1, 2, 3]),
        ("2,2,1", 4, [1, 2]),
        ("3-10", 4, [3, 4]),
        ("0-2", 4, [1, 2]),
        ("1,,2", 4, [1, 2]),
    ])
    def test_parse(self, page_str, max_pages, expected):
        from pdf_dictation.cli import parse_page_range

        assert parse_page_range(page_str, max_pages) == expected


class TestArguments:
    """Tests for argument handling."""

    def test_build_config(self, monkeypatch):
        from pdf_dictation.cli import setup_argparser, build_config

        monkeypatch.delenv("DICTATION_MATH_MODE", raising=False)
        args = setup_argparser().parse_args([
            "-i", "in.pdf", "-o", "out", "--no-math", "--no-minus-heuristics",
            "--ocr-fallback", "--tolerance", "2.0", "--format", "speech", "docx",
        ])

        config = build_config(args)

        assert not config.speech.math_mode
        assert not config.repair.minus_heuristics
        assert config.decoder.ocr_fallback
        assert config.grouping.line_tolerance == 2.0
        assert config.export.output_formats == ["speech", "docx"]

    def test_invalid_format_rejected(self):
        from pdf_dictation.cli import setup_argparser

        with pytest.raises(SystemExit):
            setup_argparser().parse_args(["-i", "a", "-o", "b", "--format", "latex"])


class TestRunPipeline:
    """Tests for a full CLI run."""

    def test_exports_default_formats(self, items_file, tmp_path):
        out = tmp_path / "out"

        assert run(["-i", str(items_file), "-o", str(out), "-q"]) == 0

        assert (out / "lecture.json").exists()
        assert (out / "lecture.md").exists()
        text = (out / "lecture.txt").read_text(encoding="utf-8")
        assert "Physics 101" not in text
        assert "E = mc²" in text

    def test_speech_format(self, items_file, tmp_path):
        out = tmp_path / "out"

        assert run(["-i", str(items_file), "-o", str(out), "-q", "-f", "speech"]) == 0

        lines = (out / "lecture.speech.txt").read_text(encoding="utf-8").splitlines()
        assert lines == ["Energy is E equals mc squared in every frame.", "Mass is conserved."]

    def test_pages_filter(self, items_file, tmp_path):
        out = tmp_path / "out"

        assert run(["-i", str(items_file), "-o", str(out), "-q", "-f", "json", "--pages", "2"]) == 0

        data = json.loads((out / "lecture.json").read_text(encoding="utf-8"))
        assert data["sentences"] == [{"index": 0, "text": "Mass is conserved.", "page": 2}]
        assert data["metrics"]["pages_processed"] == 1
        assert data["metrics"]["sentences"]["total"] == 1
        assert data["metrics"]["sentences"]["mathematical"] == 0

    def test_debug_env_enables_debug_logging(self, items_file, tmp_path, monkeypatch):
        root = logging.getLogger()
        previous = root.level
        monkeypatch.setenv("DICTATION_DEBUG", "1")
        try:
            assert run(["-i", str(items_file), "-o", str(tmp_path / "out"), "-f", "json"]) == 0
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous)

    def test_decode_failure_exit_code(self, tmp_path):
        assert run(["-i", str(tmp_path / "missing.pdf"), "-o", str(tmp_path / "out"), "-q"]) == 1

    def test_version(self, capsys):
        from pdf_dictation.cli import main

        with pytest.raises(SystemExit) as exc:
            main(["--version"])

        assert exc.value.code == 0
        assert "1.0.0" in capsys.readouterr().out
