"""
Tests for decoding adapters and I/O helpers.
"""

import pytest
import numpy as np
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestFragmentItems:
    """Tests for adapting externally extracted text items."""

    def test_mixed_item_shapes(self):
        from pdf_dictation.utils.decoder import fragments_from_items

        items = [
            {"str": "a", "transform": [1, 0, 0, 1, 0, 100]},
            ["b", [1, 0, 0, 1, 0, 101]],
            {"text": "c"},
        ]

        fragments = fragments_from_items(items, page_index=4)

        assert [f.text for f in fragments] == ["a", "b", "c"]
        assert [f.baseline_y for f in fragments] == [100.0, 101.0, 0.0]
        assert all(f.page_index == 4 for f in fragments)

    def test_decoded_document_to_dict(self):
        from pdf_dictation.utils.decoder import DecodedDocument, fragments_from_items

        doc = DecodedDocument(
            page_count=2,
            pages=[fragments_from_items([["a", None]], 0), []],
            source_name="x.pdf",
            ocr_pages=[1]
        )

        assert doc.fragment_count == 1
        assert doc.to_dict() == {
            "source_name": "x.pdf",
            "page_count": 2,
            "fragment_count": 1,
            "ocr_pages": [2]
        }


class TestLoadFragmentsJson:
    """Tests for loading pre-extracted text items."""

    def test_list_of_pages(self, tmp_path):
        from pdf_dictation.utils.io import load_fragments_json

        path = tmp_path / "items.json"
        path.write_text(json.dumps([
            [{"str": "Hello", "transform": [1, 0, 0, 1, 72, 700]}],
            [],
        ]))

        doc = load_fragments_json(path)

        assert doc.page_count == 2
        assert doc.pages[0][0].text == "Hello"
        assert doc.pages[1] == []
        assert doc.source_name == "items.json"

    def test_object_with_page_count(self, tmp_path):
        from pdf_dictation.utils.io import load_fragments_json

        path = tmp_path / "items.json"
        path.write_text(json.dumps({"page_count": 5, "pages": [[["x", [1, 0, 0, 1, 0, 1]]]]}))

        doc = load_fragments_json(path)

        assert doc.page_count == 5
        assert len(doc.pages) == 1

    @pytest.mark.parametrize("content", ["{not json", json.dumps({"items": []}), json.dumps([[42]])])
    def test_bad_shape_raises_decode_error(self, tmp_path, content):
        from pdf_dictation.utils.io import load_fragments_json
        from pdf_dictation.utils.decoder import DecodeError

        path = tmp_path / "bad.json"
        path.write_text(content)

        with pytest.raises(DecodeError):
            load_fragments_json(path)

    def test_missing_file(self, tmp_path):
        from pdf_dictation.utils.io import load_fragments_json
        from pdf_dictation.utils.decoder import DecodeError

        with pytest.raises(DecodeError):
            load_fragments_json(tmp_path / "missing.json")


class TestIOOperations:
    """Tests for I/O operations."""

    def test_save_and_load_json(self, tmp_path):
        from pdf_dictation.utils.io import save_json, load_json
        from pdf_dictation.utils.sentences import Sentence

        data = {
            "count": np.int64(3),
            "ratio": np.float32(0.5),
            "sentence": Sentence("Hi.", 1),
            "lines": {"b", "a"},
            "path": Path("x/y"),
        }

        path = save_json(data, tmp_path / "nested" / "out.json")
        loaded = load_json(path)

        assert loaded["count"] == 3
        assert loaded["ratio"] == 0.5
        assert loaded["sentence"] == {"text": "Hi.", "page": 1}
        assert loaded["lines"] == ["a", "b"]
        assert loaded["path"] == str(Path("x/y"))

    def test_non_ascii_preserved(self, tmp_path):
        from pdf_dictation.utils.io import save_json

        path = save_json({"text": "x² ≤ 1"}, tmp_path / "out.json")

        assert "x² ≤ 1" in path.read_text(encoding="utf-8")

    def test_detect_input_type(self, tmp_path):
        from pdf_dictation.utils.io import detect_input_type

        pdf = tmp_path / "doc.pdf"
        pdf.write_bytes(b"%PDF-1.7\n")
        items = tmp_path / "items.json"
        items.write_text("[]")
        sniffed = tmp_path / "upload"
        sniffed.write_bytes(b"%PDF-1.4\n")
        other = tmp_path / "notes.txt"
        other.write_text("hello")

        assert detect_input_type(pdf) == "pdf"
        assert detect_input_type(items) == "fragments_json"
        assert detect_input_type(sniffed) == "pdf"
        assert detect_input_type(other) == "unknown"
        assert detect_input_type(tmp_path / "missing.pdf") == "unknown"
        assert detect_input_type(tmp_path) == "unknown"

    def test_ensure_dir(self, tmp_path):
        from pdf_dictation.utils.io import ensure_dir

        path = ensure_dir(tmp_path / "a" / "b")

        assert path.is_dir()


class TestOcrDecoder:
    """Tests for word-box to fragment conversion."""

    class FakeTesseract:
        class Output:
            DICT = "dict"

        def image_to_data(self, image, lang, config, output_type):
            return {
                "text": ["Hello", "world", "", "Next"],
                "conf": ["95", "90", "-1", "88"],
                "block_num": [1, 1, 1, 1],
                "par_num": [1, 1, 1, 1],
                "line_num": [1, 1, 1, 2],
                "top": [100, 104, 0, 200],
                "height": [20, 18, 0, 20],
            }

    def test_decode_image(self):
        pytest.importorskip("cv2")
        from pdf_dictation.utils.decoder import OcrDecoder
        from pdf_dictation.utils.grouping import group_fragments

        decoder = OcrDecoder.__new__(OcrDecoder)
        decoder.pytesseract = self.FakeTesseract()
        decoder.dpi = 300
        decoder.language = "eng"
        decoder.config = ""

        image = np.full((60, 60, 3), 255, dtype=np.uint8)
        fragments = decoder.decode_image(image, page_index=0)

        assert [f.text for f in fragments] == ["Hello", "world", "Next"]
        # Lowest box edge of the line, in PDF points
        assert fragments[0].baseline_y == pytest.approx(122 * 72 / 300)
        assert fragments[0].baseline_y == fragments[1].baseline_y
        assert [l.text for l in group_fragments(fragments)] == ["Hello world", "Next"]
