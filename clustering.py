"""
K-means grouping of projected word positions.
Clustering runs on the 2D points so groups stay visually coherent.
"""

from typing import Optional

import numpy as np
from sklearn.cluster import KMeans

from config import CLUSTERING_CONFIG


def effective_clusters(num_clusters: int, points: np.ndarray) -> int:
    """
    Resolve a requested cluster count against the data.

    Zero or negative requests collapse to a single cluster, and requests
    above the number of distinct points are clamped to that number.
    """
    points = np.asarray(points)
    if points.shape[0] == 0:
        return 0

    distinct = np.unique(points, axis=0).shape[0]
    return max(1, min(int(num_clusters), distinct))


def cluster_points(
    points: np.ndarray, num_clusters: int, random_state: Optional[int] = None
) -> np.ndarray:
    """
    Assign a group id to every point.

    Args:
        points: Projected positions [N, 2]
        num_clusters: Requested number of groups
        random_state: Seed for centroid initialization

    Returns:
        Integer labels [N] in [0, k), in input order
    """
    points = np.asarray(points, dtype=np.float64)
    k = effective_clusters(num_clusters, points)
    if k == 0:
        return np.zeros(0, dtype=int)
    if k == 1:
        return np.zeros(points.shape[0], dtype=int)

    if random_state is None:
        random_state = CLUSTERING_CONFIG["random_state"]

    kmeans = KMeans(
        n_clusters=k,
        n_init=CLUSTERING_CONFIG["n_init"],
        random_state=random_state,
    )
    return kmeans.fit_predict(points).astype(int)
