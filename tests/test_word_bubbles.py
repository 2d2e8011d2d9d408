"""
End-to-end tests for the word bubble pipeline.
"""

import json
import math
import threading
from unittest.mock import patch

import pytest

from assets import AssetLoadError, WordAssets
from config import OUTPUT_CONFIG
from embedding import VocabularyLookupError
from word_bubbles import (
    Bubble,
    PipelineCancelled,
    WordBubbles,
    clamp_clusters,
    timed,
    visualize,
)
from test_data_loader import WORD_GROUPS

SAMPLE_TEXT = """
The dog chased the cat past the car. A horse and a tiger watched the bus.
An apple, a banana and a cherry fell on the train. The wolf ate a mango;
the mice hid in the truck while the boat and the plane waited. Grape, lemons.
The dog and the cat ran to the car again.
"""


class FixedWidthMeasurer:
    def measure(self, text, font_family, font_weight, size):
        return 0.6 * size * len(text), size


def assert_no_overlap(bubbles):
    for i, a in enumerate(bubbles):
        for b in bubbles[i + 1 :]:
            distance = math.hypot(a.x - b.x, a.y - b.y)
            assert distance >= a.r + b.r, f"{a.word} overlaps {b.word}"


@pytest.mark.integration
class TestVisualize:
    def test_three_words_single_group(self, fruit_assets):
        text = " ".join(["apple"] * 5 + ["banana"] * 3 + ["cherry"])
        bubbles = visualize(text, fruit_assets, num_clusters=1, min_r=6, max_r=30)

        assert [b.word for b in bubbles] == ["apple", "banana", "cherry"]
        assert [b.count for b in bubbles] == [5, 3, 1]
        assert all(b.group == 0 for b in bubbles)
        assert bubbles[0].r > bubbles[1].r > bubbles[2].r
        assert bubbles[0].r == pytest.approx(30.0)
        assert bubbles[2].r == pytest.approx(6.0)
        assert_no_overlap(bubbles)

    def test_one_bubble_per_distinct_vocabulary_word(self, fruit_assets):
        bubbles = visualize(SAMPLE_TEXT, fruit_assets, num_clusters=3)
        words = [b.word for b in bubbles]
        vocabulary = {w for group in WORD_GROUPS.values() for w in group}

        assert len(words) == len(set(words))
        assert set(words) == set(fruit_assets.tokenize(SAMPLE_TEXT))
        assert set(words) <= vocabulary
        assert words[:4] == ["dog", "cat", "car", "horse"]
        counts = dict((b.word, b.count) for b in bubbles)
        assert counts["dog"] == 2 and counts["mouse"] == 1 and counts["grape"] == 1
        assert_no_overlap(bubbles)

    def test_pre_layout_positions_are_kept(self, fruit_assets):
        bubbles = visualize(SAMPLE_TEXT, fruit_assets, num_clusters=3)
        for bubble in bubbles:
            assert -600.0 <= bubble.x0 <= 600.0
            assert -600.0 <= bubble.y0 <= 600.0
        assert any((b.x, b.y) != (b.x0, b.y0) for b in bubbles)

    def test_empty_text(self, fruit_assets):
        assert visualize("", fruit_assets) == []
        assert visualize("nothing here matches", fruit_assets) == []

    def test_same_seed_same_layout(self, fruit_assets):
        first = visualize(SAMPLE_TEXT, fruit_assets, random_state=11)
        second = visualize(SAMPLE_TEXT, fruit_assets, random_state=11)
        assert first == second

    def test_cluster_count_is_clamped(self, fruit_assets):
        many = visualize(SAMPLE_TEXT, fruit_assets, num_clusters=50)
        assert max(b.group for b in many) < 10
        none = visualize(SAMPLE_TEXT, fruit_assets, num_clusters=-2)
        assert {b.group for b in none} == {0}

    def test_more_clusters_than_words(self, fruit_assets):
        bubbles = visualize("dog cat", fruit_assets, num_clusters=5)
        assert len(bubbles) == 2
        assert all(0 <= b.group < 2 for b in bubbles)

    def test_single_word(self, fruit_assets):
        bubbles = visualize("dog dog dog", fruit_assets, min_r=6, max_r=30)
        assert len(bubbles) == 1
        assert bubbles[0].group == 0
        assert bubbles[0].r == pytest.approx(18.0)

    def test_font_fitting(self, fruit_assets):
        bubbles = visualize(
            "dog dog cat", fruit_assets, fit_fonts=True, measurer=FixedWidthMeasurer()
        )
        assert all(b.font_size is not None and b.font_size > 0 for b in bubbles)
        assert bubbles[0].font_size >= bubbles[1].font_size

    def test_font_failure_keeps_layout(self, fruit_assets):
        class RendererlessMeasurer(FixedWidthMeasurer):
            def measure(self, text, font_family, font_weight, size):
                if text == "cat":
                    raise RuntimeError("renderer unavailable")
                return super().measure(text, font_family, font_weight, size)

        bubbles = visualize(
            "dog dog cat",
            fruit_assets,
            fit_fonts=True,
            measurer=RendererlessMeasurer(),
        )
        assert [b.word for b in bubbles] == ["dog", "cat"]
        assert bubbles[0].font_size > 0
        assert bubbles[1].font_size is None
        assert_no_overlap(bubbles)

    def test_invalid_radius_range_fails_before_projection(self, fruit_assets):
        with patch("word_bubbles.project") as project:
            with pytest.raises(ValueError, match="must not exceed"):
                visualize("dog cat", fruit_assets, min_r=30, max_r=6)
            with pytest.raises(ValueError, match="non-negative"):
                visualize("dog cat", fruit_assets, min_r=-1, max_r=6)
        project.assert_not_called()

    def test_fonts_not_fitted_by_default(self, fruit_assets):
        bubbles = visualize("dog cat", fruit_assets)
        assert all(b.font_size is None for b in bubbles)

    def test_lookup_failure_aborts(self, fruit_assets):
        with patch("word_bubbles.count_words", return_value=[("zebra", 2)]):
            with pytest.raises(VocabularyLookupError):
                visualize("zebra zebra", fruit_assets)

    def test_asset_failure_aborts(self, tmp_path):
        assets = WordAssets.load(
            str(tmp_path / "missing.npy"), str(tmp_path / "missing.json")
        )
        with pytest.raises(AssetLoadError):
            visualize(SAMPLE_TEXT, assets)

    def test_cancelled_before_start(self, fruit_assets):
        event = threading.Event()
        event.set()
        with pytest.raises(PipelineCancelled):
            visualize(SAMPLE_TEXT, fruit_assets, cancel_event=event)

    def test_cancelled_between_stages(self, fruit_assets):
        event = threading.Event()

        def cancel_after_projection(*args, **kwargs):
            event.set()
            return [0] * 18

        with patch("word_bubbles.cluster_points") as cluster_points:
            cluster_points.side_effect = cancel_after_projection
            with pytest.raises(PipelineCancelled):
                visualize(SAMPLE_TEXT, fruit_assets, cancel_event=event)

    def test_bubbles_are_immutable(self, fruit_assets):
        bubble = visualize("dog", fruit_assets)[0]
        with pytest.raises(AttributeError):
            bubble.x = 1.0


@pytest.mark.unit
def test_timed_reports_failed_stage(monkeypatch, capsys):
    monkeypatch.setitem(OUTPUT_CONFIG, "timing_info", True)
    with pytest.raises(RuntimeError):
        with timed("clustering"):
            raise RuntimeError("boom")
    assert capsys.readouterr().out.startswith("clustering: ")


@pytest.mark.unit
def test_clamp_clusters():
    assert clamp_clusters(-1) == 0
    assert clamp_clusters(4) == 4
    assert clamp_clusters(25) == 10


@pytest.mark.integration
class TestWordBubbles:
    def test_records_have_colors(self, fruit_assets):
        visualizer = WordBubbles(fruit_assets, num_clusters=3, random_state=0)
        bubbles = visualizer.visualize(SAMPLE_TEXT)
        records = visualizer.to_records()

        assert len(records) == len(bubbles)
        for record, bubble in zip(records, bubbles):
            assert record["word"] == bubble.word
            assert record["color"].startswith("#") and len(record["color"]) == 7
        by_group = {}
        for record in records:
            by_group.setdefault(record["group"], set()).add(record["color"])
        assert all(len(colors) == 1 for colors in by_group.values())

    def test_save_json(self, fruit_assets, temp_output_file):
        visualizer = WordBubbles(fruit_assets)
        visualizer.visualize("dog cat dog")
        visualizer.save_json(temp_output_file)

        with open(temp_output_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        assert [b["word"] for b in data["bubbles"]] == ["dog", "cat"]
        assert set(data["bubbles"][0]) >= {"x", "y", "x0", "y0", "group", "r", "color"}

    def test_default_bubble_fields(self):
        bubble = Bubble(word="dog", count=2)
        assert (bubble.x, bubble.y, bubble.r) == (0.0, 0.0, 0.0)
        assert bubble.font_size is None
