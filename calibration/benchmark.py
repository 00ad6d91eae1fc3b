"""
Benchmark Runner — Precision/Recall/F1 on a Labeled Corpus

Runs a labeled corpus through a fresh Detector and compares its output
against the human labels. Produces:

  1. Confusion counts and precision/recall/F1 at the display threshold
  2. The same metrics under the any-signal flagging policy (is_ai)
  3. Average confidence per label and the gap between them
  4. Misclassified posts for manual review

Posts are analyzed in corpus order, so duplicate detection sees them
the way a live feed would.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tweetdetect.config import settings
from tweetdetect.detector import Detector
from calibration.corpus import LabeledPost, load_corpus


@dataclass
class Confusion:
    """Binary confusion counts; "positive" means machine-generated."""
    true_positives: int = 0   # Flagged, labeled ai
    false_positives: int = 0  # Flagged, labeled human
    false_negatives: int = 0  # Missed, labeled ai
    true_negatives: int = 0   # Not flagged, labeled human

    def add(self, predicted: bool, actual: bool) -> None:
        if predicted and actual:
            self.true_positives += 1
        elif predicted:
            self.false_positives += 1
        elif actual:
            self.false_negatives += 1
        else:
            self.true_negatives += 1

    @property
    def total(self) -> int:
        return (self.true_positives + self.false_positives
                + self.false_negatives + self.true_negatives)

    @property
    def accuracy(self) -> float:
        return (self.true_positives + self.true_negatives) / self.total if self.total else 0.0

    @property
    def precision(self) -> float:
        denom = self.true_positives + self.false_positives
        return self.true_positives / denom if denom > 0 else 0.0

    @property
    def recall(self) -> float:
        denom = self.true_positives + self.false_negatives
        return self.true_positives / denom if denom > 0 else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if (p + r) > 0 else 0.0

    def as_dict(self) -> dict:
        return {
            "tp": self.true_positives,
            "fp": self.false_positives,
            "fn": self.false_negatives,
            "tn": self.true_negatives,
            "accuracy": round(self.accuracy, 4),
            "precision": round(self.precision, 4),
            "recall": round(self.recall, 4),
            "f1": round(self.f1, 4),
        }


@dataclass
class BenchmarkResult:
    """Full benchmark output."""
    total_posts: int
    ai_posts: int
    human_posts: int
    threshold: float
    at_threshold: Confusion          # Flagged = should_display(threshold)
    any_signal: Confusion            # Flagged = is_ai
    avg_confidence_ai: float
    avg_confidence_human: float
    # Detailed results for review
    misclassified: list[dict] = field(default_factory=list)

    @property
    def separation(self) -> float:
        return round(self.avg_confidence_ai - self.avg_confidence_human, 4)

    def as_dict(self) -> dict:
        return {
            "total_posts": self.total_posts,
            "ai_posts": self.ai_posts,
            "human_posts": self.human_posts,
            "threshold": self.threshold,
            "at_threshold": self.at_threshold.as_dict(),
            "any_signal": self.any_signal.as_dict(),
            "confidence": {
                "avg_ai": self.avg_confidence_ai,
                "avg_human": self.avg_confidence_human,
                "separation": self.separation,
            },
            "misclassified": self.misclassified,
        }


def run_benchmark(
    posts: list[LabeledPost],
    threshold: Optional[float] = None,
    detector: Optional[Detector] = None,
) -> BenchmarkResult:
    """
    Run the calibration benchmark.

    Args:
        posts: Labeled posts, analyzed in order.
        threshold: Display threshold; settings.CONFIDENCE_THRESHOLD by default.
        detector: Detector to use. A fresh one by default, so duplicate
            history from elsewhere cannot leak in.

    Returns:
        BenchmarkResult with full metrics.
    """
    if not posts:
        raise ValueError("No posts to benchmark")

    if threshold is None:
        threshold = settings.CONFIDENCE_THRESHOLD
    detector = detector or Detector()

    at_threshold = Confusion()
    any_signal = Confusion()
    ai_scores = []
    human_scores = []
    misclassified = []

    for post in posts:
        result = detector.analyze_sync(post.text, post.metadata)
        flagged = result.should_display(threshold)
        post.result = {
            "is_ai": result.is_ai,
            "confidence": round(result.confidence, 4),
            "reasons": list(result.reasons),
            "flagged": flagged,
        }

        at_threshold.add(flagged, post.is_ai)
        any_signal.add(result.is_ai, post.is_ai)
        (ai_scores if post.is_ai else human_scores).append(result.confidence)

        if flagged != post.is_ai:
            misclassified.append({
                "line": post.line,
                "label": post.label,
                "text": post.text[:200],
                "confidence": round(result.confidence, 4),
                "reasons": list(result.reasons),
            })

    avg_ai = sum(ai_scores) / len(ai_scores) if ai_scores else 0.0
    avg_human = sum(human_scores) / len(human_scores) if human_scores else 0.0

    return BenchmarkResult(
        total_posts=len(posts),
        ai_posts=len(ai_scores),
        human_posts=len(human_scores),
        threshold=threshold,
        at_threshold=at_threshold,
        any_signal=any_signal,
        avg_confidence_ai=round(avg_ai, 4),
        avg_confidence_human=round(avg_human, 4),
        misclassified=misclassified,
    )


def run_corpus_benchmark(
    corpus: str | Path,
    threshold: Optional[float] = None,
) -> BenchmarkResult:
    """Load a corpus file or directory and benchmark it."""
    return run_benchmark(load_corpus(corpus), threshold=threshold)


def format_report(result: BenchmarkResult) -> str:
    """Format benchmark results as a human-readable report."""
    def metrics_block(title: str, c: Confusion) -> list[str]:
        return [
            f"--- {title} ---",
            f"Accuracy:  {c.accuracy:.1%}",
            f"Precision: {c.precision:.1%}",
            f"Recall:    {c.recall:.1%}",
            f"F1 Score:  {c.f1:.1%}",
            f"TP {c.true_positives}  FP {c.false_positives}  "
            f"FN {c.false_negatives}  TN {c.true_negatives}",
            "",
        ]

    lines = [
        "=" * 60,
        "TWEETDETECT CALIBRATION REPORT",
        "=" * 60,
        "",
        f"Posts: {result.total_posts} "
        f"({result.ai_posts} ai, {result.human_posts} human)",
        "",
    ]
    lines += metrics_block(f"AT DISPLAY THRESHOLD ({result.threshold:.2f})", result.at_threshold)
    lines += metrics_block("ANY-SIGNAL POLICY", result.any_signal)
    lines += [
        "--- CONFIDENCE ---",
        f"Avg confidence (ai posts):    {result.avg_confidence_ai:.3f}",
        f"Avg confidence (human posts): {result.avg_confidence_human:.3f}",
        f"Separation:                   {result.separation:.3f}",
    ]

    if result.misclassified:
        lines.extend([
            "",
            "--- MISCLASSIFIED ---",
        ])
        for miss in result.misclassified[:10]:
            lines.append(
                f"  [{miss['label']} @ {miss['confidence']:.2f}] {miss['text'][:80]}"
            )
            if miss["reasons"]:
                lines.append(f"    Reasons: {'; '.join(miss['reasons'])}")

    lines.extend(["", "=" * 60])
    return "\n".join(lines)


def save_report(result: BenchmarkResult, output_dir: str | Path = "calibration/reports"):
    """Save benchmark results as both human-readable report and JSON."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / "calibration_report.txt"
    report_path.write_text(format_report(result), encoding="utf-8")

    json_path = output_dir / "calibration_report.json"
    json_path.write_text(json.dumps(result.as_dict(), indent=2), encoding="utf-8")

    return report_path, json_path
