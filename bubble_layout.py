"""
Bubble sizing and overlap removal.
Radii follow a square-root scale of word counts; positions are relaxed with a
fixed number of force simulation ticks (many-body repulsion, collision and
centering forces).
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from config import LAYOUT_CONFIG


def check_radius_range(min_r: float, max_r: float) -> None:
    """Reject negative radii and an inverted range."""
    if min_r < 0 or max_r < 0:
        raise ValueError("Radii must be non-negative")
    if min_r > max_r:
        raise ValueError(f"min_r ({min_r}) must not exceed max_r ({max_r})")


def sqrt_scale(counts: Sequence[int], min_r: float, max_r: float) -> np.ndarray:
    """
    Map counts to radii so that bubble area grows linearly with count.

    The smallest count maps to min_r and the largest to max_r. When every
    count is equal the radius is the midpoint of [min_r, max_r].

    Args:
        counts: Word counts
        min_r: Radius for the smallest count
        max_r: Radius for the largest count

    Returns:
        Radii in the same order as counts
    """
    check_radius_range(min_r, max_r)

    counts = np.asarray(counts, dtype=np.float64)
    if counts.size == 0:
        return np.zeros(0)

    roots = np.sqrt(counts)
    low, high = roots.min(), roots.max()
    if high == low:
        return np.full(counts.shape, (min_r + max_r) / 2.0)

    return min_r + (roots - low) / (high - low) * (max_r - min_r)


class Jiggle:
    """Tiny deterministic offsets used to separate coincident bubbles."""

    A = 1664525
    C = 1013904223
    M = 4294967296

    def __init__(self, seed: int = 1):
        self.state = seed

    def random(self) -> float:
        self.state = (self.A * self.state + self.C) % self.M
        return self.state / self.M

    def __call__(self) -> float:
        return (self.random() - 0.5) * 1e-6


class ForceLayout:
    """Fixed-tick force relaxation that removes overlap between bubbles."""

    def __init__(
        self,
        charge_strength: Optional[float] = None,
        collide_padding: Optional[float] = None,
        collide_iterations: Optional[int] = None,
        center_strength: Optional[float] = None,
        ticks: Optional[int] = None,
    ):
        def pick(value, key):
            return LAYOUT_CONFIG[key] if value is None else value

        self.charge_strength = pick(charge_strength, "charge_strength")
        self.collide_padding = pick(collide_padding, "collide_padding")
        self.collide_iterations = pick(collide_iterations, "collide_iterations")
        self.center_strength = pick(center_strength, "center_strength")
        self.ticks = pick(ticks, "ticks")
        self.collide_strength = LAYOUT_CONFIG["collide_strength"]
        self.distance_min2 = LAYOUT_CONFIG["charge_distance_min"] ** 2
        self.alpha_min = LAYOUT_CONFIG["alpha_min"]
        self.alpha_decay = 1 - math.pow(self.alpha_min, 1 / 300)
        self.velocity_decay = 1 - LAYOUT_CONFIG["velocity_decay"]

    def declutter(
        self, xs: Sequence[float], ys: Sequence[float], radii: Sequence[float]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Relax positions so that bubbles stop overlapping.

        Args:
            xs: Initial x positions
            ys: Initial y positions
            radii: Bubble radii

        Returns:
            New (xs, ys) arrays in the same order
        """
        x = np.array(xs, dtype=np.float64)
        y = np.array(ys, dtype=np.float64)
        radii = np.asarray(radii, dtype=np.float64) + self.collide_padding
        if not (x.shape == y.shape == radii.shape):
            raise ValueError("xs, ys and radii must have the same length")

        vx = np.zeros_like(x)
        vy = np.zeros_like(y)
        jiggle = Jiggle()
        alpha = LAYOUT_CONFIG["alpha"]

        for _ in range(self.ticks):
            alpha += (0.0 - alpha) * self.alpha_decay
            self._apply_charge(x, y, vx, vy, alpha, jiggle)
            self._apply_collide(x, y, vx, vy, radii, jiggle)
            vx += (0.0 - x) * self.center_strength * alpha
            vy += (0.0 - y) * self.center_strength * alpha

            vx *= self.velocity_decay
            vy *= self.velocity_decay
            x += vx
            y += vy

        return x, y

    def _apply_charge(self, x, y, vx, vy, alpha, jiggle):
        """Pairwise repulsion, inversely proportional to distance."""
        n = x.shape[0]
        if n < 2:
            return

        dx = x[None, :] - x[:, None]
        dy = y[None, :] - y[:, None]
        off_diagonal = ~np.eye(n, dtype=bool)
        for delta in (dx, dy):
            zeros = np.argwhere((delta == 0) & off_diagonal)
            for i, j in zeros:
                delta[i, j] = jiggle()

        l = dx * dx + dy * dy
        close = l < self.distance_min2
        l[close] = np.sqrt(self.distance_min2 * l[close])
        np.fill_diagonal(l, np.inf)

        w = -self.charge_strength * alpha / l
        vx += np.sum(dx * w, axis=1)
        vy += np.sum(dy * w, axis=1)

    def _apply_collide(self, x, y, vx, vy, radii, jiggle):
        """Push apart bubbles whose predicted positions overlap."""
        n = x.shape[0]
        if n < 2:
            return

        sq_radii = radii * radii
        upper = np.triu(np.ones((n, n), dtype=bool), k=1)

        for _ in range(self.collide_iterations):
            px = x + vx
            py = y + vy
            gap = (px[:, None] - px[None, :]) ** 2 + (py[:, None] - py[None, :]) ** 2
            reach = (radii[:, None] + radii[None, :]) ** 2
            if not np.any((gap < reach) & upper):
                break

            for i in range(n - 1):
                xi = x[i] + vx[i]
                yi = y[i] + vy[i]
                j = np.arange(i + 1, n)
                dx = xi - x[j] - vx[j]
                dy = yi - y[j] - vy[j]
                l = dx * dx + dy * dy
                r = radii[i] + radii[j]
                hit = l < r * r
                if not np.any(hit):
                    continue

                j, dx, dy, l, r = j[hit], dx[hit], dy[hit], l[hit], r[hit]
                for delta in (dx, dy):
                    for k in np.flatnonzero(delta == 0):
                        delta[k] = jiggle()
                        l[k] += delta[k] * delta[k]

                l = np.sqrt(l)
                l = (r - l) / l * self.collide_strength
                dx *= l
                dy *= l
                share = sq_radii[j] / (sq_radii[i] + sq_radii[j])
                vx[i] += np.sum(dx * share)
                vy[i] += np.sum(dy * share)
                vx[j] -= dx * (1 - share)
                vy[j] -= dy * (1 - share)


def declutter(
    xs: Sequence[float], ys: Sequence[float], radii: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    """Run the configured force layout."""
    return ForceLayout().declutter(xs, ys, radii)
