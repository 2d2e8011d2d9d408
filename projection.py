"""
t-SNE projection of word vectors to 2D.
Exact (O(N^2)) implementation in numpy with a fixed iteration budget,
so that small word sets and short runs behave predictably.
"""

from typing import Optional

import numpy as np

from config import PROJECTION_CONFIG

MACHINE_EPSILON = np.finfo(np.double).eps


def squared_distances(X: np.ndarray) -> np.ndarray:
    """Pairwise squared euclidean distances."""
    sum_x = np.sum(np.square(X), axis=1)
    distances = -2.0 * (X @ X.T) + sum_x[:, None] + sum_x[None, :]
    np.maximum(distances, 0.0, out=distances)
    np.fill_diagonal(distances, 0.0)
    return distances


def _entropy_and_probabilities(distances: np.ndarray, beta: float):
    """Gaussian conditional probabilities for one row and their entropy (nats)."""
    shifted = distances - distances.min()
    P = np.exp(-shifted * beta)
    sum_p = np.sum(P)
    H = np.log(sum_p) + beta * np.sum(shifted * P) / sum_p
    return H, P / sum_p


def conditional_probabilities(
    distances: np.ndarray,
    perplexity: float,
    tol: float = 1e-4,
    max_tries: int = 50,
) -> np.ndarray:
    """
    Binary search a precision per point so each row matches the target perplexity.

    Args:
        distances: Squared distances [N, N]
        perplexity: Target perplexity
        tol: Tolerance on the entropy difference
        max_tries: Maximum binary search steps per point

    Returns:
        Row-stochastic conditional probabilities [N, N] with zero diagonal
    """
    n = distances.shape[0]
    P = np.zeros((n, n))
    log_u = np.log(perplexity)

    for i in range(n):
        others = np.concatenate((np.r_[0:i], np.r_[i + 1 : n]))
        row = distances[i, others]

        beta = 1.0
        beta_min = -np.inf
        beta_max = np.inf
        H, this_p = _entropy_and_probabilities(row, beta)
        h_diff = H - log_u
        tries = 0

        while abs(h_diff) > tol and tries < max_tries:
            if h_diff > 0:
                beta_min = beta
                beta = beta * 2.0 if beta_max == np.inf else (beta + beta_max) / 2.0
            else:
                beta_max = beta
                beta = beta / 2.0 if beta_min == -np.inf else (beta + beta_min) / 2.0

            H, this_p = _entropy_and_probabilities(row, beta)
            h_diff = H - log_u
            tries += 1

        P[i, others] = this_p

    return P


def joint_probabilities(X: np.ndarray, perplexity: float) -> np.ndarray:
    """Symmetrized joint probabilities of the high-dimensional points."""
    n = X.shape[0]
    P = conditional_probabilities(squared_distances(X), perplexity)
    P = (P + P.T) / (2.0 * n)
    return np.maximum(P, 1e-100)


def scale_output(Y: np.ndarray) -> np.ndarray:
    """
    Min-max scale each axis into [-1, 1].

    An axis with no spread maps to 0.
    """
    Y = np.asarray(Y, dtype=np.float64)
    if Y.shape[0] == 0:
        return Y.copy()

    low = Y.min(axis=0)
    high = Y.max(axis=0)
    spread = high - low
    scaled = np.zeros_like(Y)
    nonzero = spread > 0
    scaled[:, nonzero] = (Y[:, nonzero] - low[nonzero]) / spread[nonzero] * 2.0 - 1.0
    return scaled


class TSNE:
    """t-distributed Stochastic Neighbor Embedding."""

    def __init__(
        self,
        n_components: Optional[int] = None,
        perplexity: Optional[float] = None,
        early_exaggeration: Optional[float] = None,
        learning_rate: Optional[float] = None,
        n_iter: Optional[int] = None,
        metric: Optional[str] = None,
        random_state: Optional[int] = None,
    ):
        """
        Initialize the projection.

        Args:
            n_components: Output dimension
            perplexity: Effective neighborhood size
            early_exaggeration: Factor applied to P during the first phase
            learning_rate: Gradient step size
            n_iter: Number of gradient steps (no early stopping)
            metric: Distance metric, only "euclidean" is supported
            random_state: Seed for the initial embedding
        """

        def pick(value, key):
            return PROJECTION_CONFIG[key] if value is None else value

        self.n_components = pick(n_components, "n_components")
        self.perplexity = pick(perplexity, "perplexity")
        self.early_exaggeration = pick(early_exaggeration, "early_exaggeration")
        self.learning_rate = pick(learning_rate, "learning_rate")
        self.n_iter = pick(n_iter, "n_iter")
        self.metric = pick(metric, "metric")
        self.random_state = pick(random_state, "random_state")
        self.exaggeration_iterations = PROJECTION_CONFIG["exaggeration_iterations"]

        if self.metric != "euclidean":
            raise ValueError(f"Unsupported metric: {self.metric}")
        if self.perplexity <= 0:
            raise ValueError("perplexity must be positive")

        self.embedding_: Optional[np.ndarray] = None
        self.kl_divergence_: Optional[float] = None

    def fit_transform(self, X: np.ndarray) -> np.ndarray:
        """Project the rows of X and return the raw (unscaled) embedding."""
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {X.shape}")

        n = X.shape[0]
        rng = np.random.default_rng(self.random_state)

        if n == 0:
            self.embedding_ = np.zeros((0, self.n_components))
            self.kl_divergence_ = 0.0
            return self.embedding_
        if n == 1:
            self.embedding_ = np.zeros((1, self.n_components))
            self.kl_divergence_ = 0.0
            return self.embedding_

        P = joint_probabilities(X, self.perplexity)
        Y = rng.normal(0.0, 1e-4, size=(n, self.n_components))
        update = np.zeros_like(Y)
        gains = np.ones_like(Y)

        P *= self.early_exaggeration
        for it in range(self.n_iter):
            if it == self.exaggeration_iterations:
                P /= self.early_exaggeration

            momentum = 0.5 if it < 250 else 0.8
            grad, _ = self._gradient(P, Y)

            inc = update * grad < 0.0
            gains[inc] += 0.2
            gains[~inc] *= 0.8
            np.clip(gains, 0.01, np.inf, out=gains)

            update = momentum * update - self.learning_rate * gains * grad
            Y += update
            Y -= np.mean(Y, axis=0)

        if self.n_iter <= self.exaggeration_iterations:
            P /= self.early_exaggeration
        _, self.kl_divergence_ = self._gradient(P, Y)
        self.embedding_ = Y
        return Y

    @staticmethod
    def _gradient(P: np.ndarray, Y: np.ndarray):
        """KL(P||Q) gradient with Student-t low-dimensional affinities."""
        num = 1.0 / (1.0 + squared_distances(Y))
        np.fill_diagonal(num, 0.0)
        Q = np.maximum(num / np.sum(num), MACHINE_EPSILON)

        PQ = (P - Q) * num
        grad = 4.0 * (np.diag(PQ.sum(axis=1)) - PQ) @ Y

        kl = float(np.sum(P * np.log(np.maximum(P, MACHINE_EPSILON) / Q)))
        return grad, kl


def project(vectors: np.ndarray, random_state: Optional[int] = None) -> np.ndarray:
    """Run t-SNE with the configured parameters and scale the result to [-1, 1]."""
    model = TSNE(random_state=random_state)
    return scale_output(model.fit_transform(vectors))
