"""
Embedding lookup for counted words.
"""

from typing import Dict, Sequence

import numpy as np


class VocabularyLookupError(LookupError):
    """Raised when a counted word has no row in the embedding matrix."""

    def __init__(self, word: str):
        super().__init__(f"Word not found in vocabulary: {word!r}")
        self.word = word


def lookup_vectors(
    words: Sequence[str], vocabulary: Dict[str, int], embeddings: np.ndarray
) -> np.ndarray:
    """
    Fetch one embedding row per word, in the order given.

    Args:
        words: Distinct words, already filtered against the vocabulary
        vocabulary: Mapping of word to embedding row
        embeddings: Matrix of shape [vocabulary_size, D]

    Returns:
        Array of shape [len(words), D]

    Raises:
        VocabularyLookupError: If any word is missing from the vocabulary
    """
    indices = []
    for word in words:
        if word not in vocabulary:
            raise VocabularyLookupError(word)
        indices.append(vocabulary[word])

    if not indices:
        return np.empty((0, embeddings.shape[1]), dtype=embeddings.dtype)
    return embeddings[np.asarray(indices, dtype=np.intp)]
