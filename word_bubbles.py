"""
Semantic word bubbles.
Turns text into one bubble per distinct vocabulary word, placed so that
similar words sit close together, sized by frequency and packed without overlap.
"""

import json
import threading
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, replace
from typing import Dict, List, Optional

import matplotlib.colors as mcolors
from matplotlib import colormaps

from assets import WordAssets
from bubble_layout import ForceLayout, check_radius_range, sqrt_scale
from clustering import cluster_points
from config import CLUSTERING_CONFIG, LAYOUT_CONFIG, OUTPUT_CONFIG, RADIUS_CONFIG
from embedding import lookup_vectors
from font_fitter import TextMeasurer, fit_font_sizes
from projection import project
from tokenizer import count_words


class PipelineCancelled(RuntimeError):
    """Raised when a visualization is cancelled between stages."""


@dataclass(frozen=True)
class Bubble:
    """One distinct word and everything computed for it so far."""

    word: str
    count: int
    x: float = 0.0
    y: float = 0.0
    x0: float = 0.0
    y0: float = 0.0
    group: int = 0
    r: float = 0.0
    font_size: Optional[float] = None


@contextmanager
def timed(label: str):
    """Print how long a pipeline stage took."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        if OUTPUT_CONFIG["timing_info"]:
            elapsed = (time.perf_counter() - start_time) * 1000
            print(f"{label}: {elapsed:.3f}ms")


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PipelineCancelled("Visualization cancelled")


def clamp_clusters(num_clusters: int) -> int:
    """Keep a requested cluster count inside [0, max_clusters]."""
    return max(0, min(int(num_clusters), CLUSTERING_CONFIG["max_clusters"]))


def visualize(
    text: str,
    assets: WordAssets,
    num_clusters: Optional[int] = None,
    min_r: Optional[float] = None,
    max_r: Optional[float] = None,
    random_state: Optional[int] = None,
    fit_fonts: bool = False,
    measurer: Optional[TextMeasurer] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[Bubble]:
    """
    Lay out one bubble per distinct vocabulary word in the text.

    Args:
        text: Raw input text
        assets: Embedding matrix, vocabulary and tokenizer
        num_clusters: Number of color groups, clamped to [0, 10]
        min_r: Radius of the least frequent word
        max_r: Radius of the most frequent word
        random_state: Seed shared by the projection and the clustering
        fit_fonts: Also fit a font size for every bubble
        measurer: Text measurer used when fitting fonts
        cancel_event: Checked between stages; set it to abort

    Returns:
        Bubbles in order of each word's first occurrence

    Raises:
        AssetLoadError: If the assets failed to load
        VocabularyLookupError: If a counted word has no embedding
        PipelineCancelled: If cancel_event was set
        ValueError: If min_r or max_r is negative or min_r exceeds max_r
    """
    if num_clusters is None:
        num_clusters = CLUSTERING_CONFIG["default_clusters"]
    min_r = RADIUS_CONFIG["min_radius"] if min_r is None else min_r
    max_r = RADIUS_CONFIG["max_radius"] if max_r is None else max_r
    check_radius_range(min_r, max_r)

    assets.wait_until_ready()
    _check_cancelled(cancel_event)

    with timed("preprocess"):
        counts = count_words(assets.tokenize(text))
    bubbles = [Bubble(word=word, count=count) for word, count in counts]
    if not bubbles:
        if OUTPUT_CONFIG["verbose"]:
            print("No vocabulary words found in text")
        return []
    _check_cancelled(cancel_event)

    with timed("inference"):
        vectors = lookup_vectors(
            [bubble.word for bubble in bubbles], assets.vocabulary, assets.embeddings
        )
    _check_cancelled(cancel_event)

    with timed("dimensionalityReduction"):
        xy = project(vectors, random_state)
    _check_cancelled(cancel_event)

    with timed("clustering"):
        groups = cluster_points(xy, clamp_clusters(num_clusters), random_state)
    _check_cancelled(cancel_event)

    radii = sqrt_scale([bubble.count for bubble in bubbles], min_r, max_r)
    scale = LAYOUT_CONFIG["position_scale"]
    bubbles = [
        replace(
            bubble,
            x=float(xy[i, 0] * scale),
            y=float(xy[i, 1] * scale),
            x0=float(xy[i, 0] * scale),
            y0=float(xy[i, 1] * scale),
            group=int(groups[i]),
            r=float(radii[i]),
        )
        for i, bubble in enumerate(bubbles)
    ]

    with timed("improveLayout"):
        xs, ys = ForceLayout().declutter(
            [bubble.x for bubble in bubbles],
            [bubble.y for bubble in bubbles],
            [bubble.r for bubble in bubbles],
        )
    bubbles = [
        replace(bubble, x=float(xs[i]), y=float(ys[i]))
        for i, bubble in enumerate(bubbles)
    ]

    if fit_fonts:
        _check_cancelled(cancel_event)
        with timed("fontFitting"):
            sizes = fit_font_sizes(
                [(bubble.word, bubble.r) for bubble in bubbles], measurer
            )
        bubbles = [
            replace(bubble, font_size=sizes[i]) for i, bubble in enumerate(bubbles)
        ]

    if OUTPUT_CONFIG["verbose"]:
        total = sum(bubble.count for bubble in bubbles)
        print(f"Laid out {len(bubbles)} bubbles from {total} words")
    return bubbles


def group_color(group: int) -> str:
    """Hex color of a group in the configured matplotlib palette."""
    cmap = colormaps[OUTPUT_CONFIG["palette"]]
    return mcolors.to_hex(cmap(group % cmap.N))


class WordBubbles:
    """Main entry point holding assets and layout settings between calls."""

    def __init__(
        self,
        assets: WordAssets,
        num_clusters: Optional[int] = None,
        min_r: Optional[float] = None,
        max_r: Optional[float] = None,
        random_state: Optional[int] = None,
    ):
        """
        Initialize the visualizer.

        Args:
            assets: Loaded (or loading) word assets
            num_clusters: Number of color groups
            min_r: Smallest bubble radius
            max_r: Largest bubble radius
            random_state: Seed for projection and clustering
        """
        self.assets = assets
        self.num_clusters = (
            CLUSTERING_CONFIG["default_clusters"]
            if num_clusters is None
            else num_clusters
        )
        self.min_r = RADIUS_CONFIG["min_radius"] if min_r is None else min_r
        self.max_r = RADIUS_CONFIG["max_radius"] if max_r is None else max_r
        self.random_state = random_state
        self.bubbles: List[Bubble] = []

    def visualize(
        self,
        text: str,
        fit_fonts: bool = False,
        measurer: Optional[TextMeasurer] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Bubble]:
        """Run the pipeline with this instance's settings."""
        self.bubbles = visualize(
            text,
            self.assets,
            num_clusters=self.num_clusters,
            min_r=self.min_r,
            max_r=self.max_r,
            random_state=self.random_state,
            fit_fonts=fit_fonts,
            measurer=measurer,
            cancel_event=cancel_event,
        )
        return self.bubbles

    def to_records(self, bubbles: Optional[List[Bubble]] = None) -> List[Dict]:
        """JSON-ready dicts, one per bubble, with a group color."""
        if bubbles is None:
            bubbles = self.bubbles
        records = []
        for bubble in bubbles:
            record = asdict(bubble)
            record["color"] = group_color(bubble.group)
            records.append(record)
        return records

    def save_json(self, filepath: str, bubbles: Optional[List[Bubble]] = None) -> None:
        """Save bubbles to a JSON file."""
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump({"bubbles": self.to_records(bubbles)}, f, indent=2)
