#!/usr/bin/env python
"""
Evaluation script for the PDF dictation pipeline.

Computes sentence statistics on exported documents and compares them against
expected sentence lists.

Usage:
    python eval.py output/doc.json --expected expected_outputs/doc.json
    python eval.py output/ --expected expected_outputs/ --report report.json
"""

import argparse
import difflib
import json
import logging
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import List, Optional, Dict, Any
import sys

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class EvaluationMetrics:
    """Evaluation metrics for a processed document."""
    pages_total: int = 0
    pages_with_sentences: int = 0

    sentences_total: int = 0
    sentences_per_page: float = 0.0
    avg_sentence_length: float = 0.0
    math_sentences: int = 0

    chrome_lines_dropped: int = 0

    # Accuracy (if expected output provided)
    exact_match_rate: Optional[float] = None
    text_similarity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_document(json_path: Path) -> Dict[str, Any]:
    """Load a document JSON file."""
    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def sentence_texts(doc: Any) -> List[str]:
    """Sentence texts from a document JSON or a plain expected list."""
    items = doc.get("sentences", []) if isinstance(doc, dict) else doc
    return [item["text"] if isinstance(item, dict) else str(item) for item in items]


def evaluate_document(doc: Dict[str, Any]) -> EvaluationMetrics:
    """Evaluate a single processed document."""
    metrics = EvaluationMetrics()

    sentences = doc.get("sentences", [])
    metrics.pages_total = doc.get("page_count", len(doc.get("pages", [])))
    metrics.pages_with_sentences = len({s.get("page") for s in sentences})
    metrics.sentences_total = len(sentences)

    if metrics.pages_total > 0:
        metrics.sentences_per_page = metrics.sentences_total / metrics.pages_total

    texts = sentence_texts(doc)
    if texts:
        metrics.avg_sentence_length = sum(len(t) for t in texts) / len(texts)

    doc_metrics = doc.get("metrics", {})
    metrics.math_sentences = doc_metrics.get("sentences", {}).get("mathematical", 0)
    metrics.chrome_lines_dropped = doc_metrics.get("lines", {}).get("chrome_dropped", 0)

    return metrics


def compare_sentences(expected: List[str], actual: List[str]) -> Dict[str, float]:
    """
    Compare expected and actual sentence sequences.

    ``exact_match_rate`` is the share of expected sentences found verbatim and
    in order; ``text_similarity`` is the character-level ratio of the joined
    transcripts.
    """
    if not expected:
        return {"exact_match_rate": 0.0, "text_similarity": 0.0}

    matcher = difflib.SequenceMatcher(None, expected, actual, autojunk=False)
    matched = sum(block.size for block in matcher.get_matching_blocks())

    similarity = difflib.SequenceMatcher(
        None, " ".join(expected), " ".join(actual), autojunk=False
    ).ratio()

    return {
        "exact_match_rate": matched / len(expected),
        "text_similarity": similarity
    }


def evaluate_against_expected(
    doc: Dict[str, Any],
    expected: Any
) -> EvaluationMetrics:
    """Evaluate document against expected output."""
    metrics = evaluate_document(doc)

    scores = compare_sentences(sentence_texts(expected), sentence_texts(doc))
    metrics.exact_match_rate = scores["exact_match_rate"]
    metrics.text_similarity = scores["text_similarity"]

    return metrics


def print_metrics(metrics: EvaluationMetrics, name: str = "Document"):
    """Print metrics in a formatted way."""
    print(f"\n{'='*60}")
    print(f"Evaluation Results: {name}")
    print('='*60)

    print("\n📄 Pages:")
    print(f"  Total: {metrics.pages_total}")
    print(f"  With sentences: {metrics.pages_with_sentences}")
    print(f"  Header/footer lines dropped: {metrics.chrome_lines_dropped}")

    print("\n📝 Sentences:")
    print(f"  Total: {metrics.sentences_total}")
    print(f"  Per page: {metrics.sentences_per_page:.1f}")
    print(f"  Average length: {metrics.avg_sentence_length:.1f} chars")
    print(f"  Mathematical: {metrics.math_sentences}")

    if metrics.exact_match_rate is not None:
        print("\n🎯 Accuracy (vs expected):")
        print(f"  Exact sentence matches: {metrics.exact_match_rate:.1%}")
        print(f"  Text similarity: {metrics.text_similarity:.1%}")

    print('='*60)


def generate_report(
    results: Dict[str, EvaluationMetrics]
) -> Dict[str, Any]:
    """Generate a summary report from multiple evaluations."""
    if not results:
        return {"error": "No results to report"}

    total_docs = len(results)
    total_sentences = sum(m.sentences_total for m in results.values())
    total_pages = sum(m.pages_total for m in results.values())

    compared = [m for m in results.values() if m.exact_match_rate is not None]

    summary = {
        "documents_evaluated": total_docs,
        "total_pages": total_pages,
        "total_sentences": total_sentences,
        "total_math_sentences": sum(m.math_sentences for m in results.values()),
        "sentences_per_page": round(total_sentences / total_pages, 2) if total_pages > 0 else 0
    }
    if compared:
        summary["average_exact_match_rate"] = round(
            sum(m.exact_match_rate for m in compared) / len(compared), 3
        )
        summary["average_text_similarity"] = round(
            sum(m.text_similarity for m in compared) / len(compared), 3
        )

    return {
        "summary": summary,
        "individual_results": {
            name: metrics.to_dict()
            for name, metrics in results.items()
        }
    }


def collect_outputs(paths: List[Path]) -> List[Path]:
    """Expand directories into the document JSON files they hold."""
    found = []
    for path in paths:
        if path.is_dir():
            found.extend(p for p in sorted(path.glob("*.json")) if p.name != "report.json")
        elif path.suffix == ".json":
            found.append(path)
        else:
            logger.warning(f"Skipping non-JSON input: {path}")
    return found


def find_expected(output: Path, expected: Optional[Path]) -> Optional[Path]:
    """Expected file for an output: the file itself, or a same-named file in a directory."""
    if expected is None:
        return None
    if expected.is_dir():
        candidate = expected / output.name
        return candidate if candidate.exists() else None
    return expected if expected.exists() else None


def evaluate_outputs(
    outputs: List[Path],
    expected: Optional[Path] = None
) -> Dict[str, EvaluationMetrics]:
    """Evaluate each output, comparing where an expected file is available."""
    results = {}

    for output in outputs:
        doc = load_document(output)
        expected_file = find_expected(output, expected)

        if expected_file is not None:
            results[output.stem] = evaluate_against_expected(doc, load_document(expected_file))
        else:
            results[output.stem] = evaluate_document(doc)

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Evaluate PDF dictation outputs"
    )

    parser.add_argument(
        "outputs",
        nargs="+",
        type=Path,
        help="Document JSON files or directories of them"
    )

    parser.add_argument(
        "--expected", "-e",
        type=Path,
        help="Expected sentences JSON, or a directory of same-named files"
    )

    parser.add_argument(
        "--report", "-r",
        type=Path,
        help="Write a JSON summary report to this path"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only write the report"
    )

    args = parser.parse_args()

    outputs = collect_outputs(args.outputs)
    if not outputs:
        logger.error("No document JSON files to evaluate")
        return 1

    results = evaluate_outputs(outputs, args.expected)

    if not args.quiet:
        for name, metrics in results.items():
            print_metrics(metrics, name)

    if args.report:
        report = generate_report(results)
        args.report.parent.mkdir(parents=True, exist_ok=True)
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2)

        logger.info(f"Wrote report: {args.report}")

        if not args.quiet:
            print("\nSummary:")
            for key, value in report["summary"].items():
                print(f"  {key}: {value}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
