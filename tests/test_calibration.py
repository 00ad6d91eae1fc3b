"""
Calibration Tests

Corpus parsing, benchmark metrics and the CLI exit codes.
"""

import json

import pytest

from calibration.benchmark import Confusion, format_report, run_benchmark, save_report
from calibration.corpus import CorpusError, LabeledPost, load_corpus, parse_line
from tweetdetect.detector import Detector


AI_TEXT = (
    "It's important to note that we must delve into the rich tapestry of this "
    "multifaceted issue; furthermore, solutions require thought."
)
HUMAN_TEXTS = (
    "lol that's so funny, can't wait to see you this weekend",
    "just got back from the hardware store with exactly none of the things "
    "i went there for, classic saturday",
)


def labeled_posts():
    return [
        LabeledPost(text=AI_TEXT, label="ai"),
        LabeledPost(text="Nice!", label="ai"),
        LabeledPost(text=HUMAN_TEXTS[0], label="human"),
        LabeledPost(text=HUMAN_TEXTS[1], label="human"),
    ]


def write_corpus(path, posts):
    lines = ["# test corpus", ""]
    lines += [json.dumps({"text": p.text, "label": p.label}) for p in posts]
    path.write_text("\n".join(lines), encoding="utf-8")


class TestCorpus:

    def test_parse_line(self):
        post = parse_line('{"text": "hi", "label": "AI", "metadata": {"username": "x"}}', 3)
        assert post.label == "ai"
        assert post.is_ai is True
        assert post.metadata == {"username": "x"}
        assert post.line == 3

    def test_blank_and_comment_lines(self):
        assert parse_line("   ") is None
        assert parse_line("# note") is None

    @pytest.mark.parametrize("raw", [
        "{not json",
        '["text"]',
        '{"label": "ai"}',
        '{"text": "hi", "label": "robot"}',
        '{"text": "hi", "label": "human", "metadata": "x"}',
    ])
    def test_invalid_lines(self, raw):
        with pytest.raises(CorpusError):
            parse_line(raw, 1)

    def test_load_directory(self, tmp_path):
        write_corpus(tmp_path / "a.jsonl", labeled_posts()[:2])
        write_corpus(tmp_path / "b.jsonl", labeled_posts()[2:])
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
        posts = load_corpus(tmp_path)
        assert [p.label for p in posts] == ["ai", "ai", "human", "human"]

    def test_bundled_sample_corpus(self):
        from run_calibration import DEFAULT_CORPUS
        posts = load_corpus(DEFAULT_CORPUS)
        assert {p.label for p in posts} == {"ai", "human"}


class TestConfusion:

    def test_metrics(self):
        c = Confusion(true_positives=3, false_positives=1, false_negatives=1, true_negatives=5)
        assert c.total == 10
        assert c.accuracy == 0.8
        assert c.precision == 0.75
        assert c.recall == 0.75
        assert c.f1 == pytest.approx(0.75)

    def test_empty(self):
        c = Confusion()
        assert c.accuracy == c.precision == c.recall == c.f1 == 0.0


class TestBenchmark:

    def test_perfect_separation(self, bundled_config):
        result = run_benchmark(labeled_posts(), threshold=0.6,
                               detector=Detector(patterns=bundled_config))
        assert result.total_posts == 4
        assert result.ai_posts == 2
        assert result.at_threshold.f1 == 1.0
        assert result.at_threshold.true_negatives == 2
        assert result.misclassified == []
        assert result.avg_confidence_human == 0.0
        assert result.separation > 0.6

    def test_misclassified_recorded(self, bundled_config):
        posts = [LabeledPost(text=HUMAN_TEXTS[0], label="ai", line=7)]
        result = run_benchmark(posts, threshold=0.6,
                               detector=Detector(patterns=bundled_config))
        assert result.at_threshold.false_negatives == 1
        assert result.misclassified[0]["line"] == 7
        assert posts[0].result["flagged"] is False

    def test_empty_corpus_rejected(self):
        with pytest.raises(ValueError):
            run_benchmark([])

    def test_report_and_save(self, bundled_config, tmp_path):
        result = run_benchmark(labeled_posts(), threshold=0.6,
                               detector=Detector(patterns=bundled_config))
        report = format_report(result)
        assert "TWEETDETECT CALIBRATION REPORT" in report
        assert "ANY-SIGNAL POLICY" in report

        report_path, json_path = save_report(result, tmp_path / "reports")
        assert report_path.read_text(encoding="utf-8") == report
        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert data["at_threshold"]["f1"] == 1.0


class TestCli:

    def test_passing_corpus(self, tmp_path, capsys):
        from run_calibration import main
        corpus = tmp_path / "good.jsonl"
        write_corpus(corpus, labeled_posts())
        with pytest.raises(SystemExit) as exc_info:
            main(["--corpus", str(corpus), "--json"])
        assert exc_info.value.code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["total_posts"] == 4

    def test_failing_corpus_exits_2(self, tmp_path):
        from run_calibration import main
        corpus = tmp_path / "bad.jsonl"
        write_corpus(corpus, [LabeledPost(text=t, label="ai") for t in HUMAN_TEXTS])
        with pytest.raises(SystemExit) as exc_info:
            main(["--corpus", str(corpus), "--json"])
        assert exc_info.value.code == 2

    def test_missing_corpus_exits_1(self, tmp_path):
        from run_calibration import main
        with pytest.raises(SystemExit) as exc_info:
            main(["--corpus", str(tmp_path / "nope.jsonl"), "--json"])
        assert exc_info.value.code == 1
