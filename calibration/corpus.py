"""
Corpus Reader — Labeled Calibration Posts

Reads JSON Lines corpus files. One post per line:

    {"text": "...", "label": "ai", "metadata": {"username": "..."}}

label is "ai" or "human". metadata is optional and takes the same
fields as the /analyze endpoint. Blank lines and lines starting with
'#' are ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LABELS = ("ai", "human")


class CorpusError(ValueError):
    """A corpus line could not be parsed."""


@dataclass
class LabeledPost:
    """A single labeled post from the calibration corpus."""
    text: str
    label: str
    metadata: dict = field(default_factory=dict)
    line: int = 0                 # 1-based line in the source file

    # Populated after detector evaluation
    result: Optional[dict] = None

    @property
    def is_ai(self) -> bool:
        return self.label == "ai"


def parse_line(raw: str, line: int = 0) -> Optional[LabeledPost]:
    """Parse one JSONL line. Returns None for blank and comment lines."""
    stripped = raw.strip()
    if not stripped or stripped.startswith("#"):
        return None

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise CorpusError(f"line {line}: invalid JSON ({e.msg})") from e

    if not isinstance(data, dict):
        raise CorpusError(f"line {line}: expected an object")
    text = data.get("text")
    if not isinstance(text, str):
        raise CorpusError(f"line {line}: 'text' must be a string")
    label = str(data.get("label", "")).lower()
    if label not in LABELS:
        raise CorpusError(f"line {line}: label must be one of {LABELS}, got {label!r}")
    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise CorpusError(f"line {line}: 'metadata' must be an object")

    return LabeledPost(text=text, label=label, metadata=metadata, line=line)


def parse_corpus(path: str | Path) -> list[LabeledPost]:
    """Parse a single corpus file."""
    path = Path(path)
    posts = []
    with path.open(encoding="utf-8") as fh:
        for number, raw in enumerate(fh, start=1):
            post = parse_line(raw, number)
            if post is not None:
                posts.append(post)
    return posts


def load_corpus(path: str | Path) -> list[LabeledPost]:
    """Load a corpus file, or every *.jsonl file in a directory (sorted by name)."""
    path = Path(path)
    if path.is_dir():
        posts = []
        for file in sorted(path.glob("*.jsonl")):
            posts.extend(parse_corpus(file))
        return posts
    return parse_corpus(path)
