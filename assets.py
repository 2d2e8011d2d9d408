"""
Startup assets for the word bubble pipeline.
Loads the embedding matrix, the vocabulary and the tokenizer concurrently,
then shares them read-only across pipeline calls.
"""

import json
import os
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, List, Optional

import numpy as np

from config import ASSET_CONFIG, OUTPUT_CONFIG
from tokenizer import DictionaryTokenizer, Tokenizer, filter_vocabulary


class AssetLoadError(RuntimeError):
    """Raised when an embedding, vocabulary or tokenizer asset cannot be loaded."""


def load_embedding_matrix(
    filepath: str, key: Optional[str] = None, transpose: bool = False
) -> np.ndarray:
    """
    Load the embedding weight matrix.

    Args:
        filepath: Path to a .npy file, or an .npz archive
        key: Array name inside an .npz archive (first array if None)
        transpose: Transpose weights stored as [D, V]

    Returns:
        Read-only array of shape [vocabulary_size, D]
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Embedding file not found: {filepath}")

    if filepath.endswith(".npz"):
        with np.load(filepath) as archive:
            if key is None:
                if not archive.files:
                    raise ValueError(f"Embedding archive is empty: {filepath}")
                key = archive.files[0]
            matrix = archive[key]
    else:
        matrix = np.load(filepath)

    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError(f"Embedding matrix must be 2D, got shape {matrix.shape}")
    if transpose:
        matrix = matrix.T.copy()

    matrix.setflags(write=False)
    return matrix


def load_vocabulary(filepath: str) -> Dict[str, int]:
    """Load the flat word -> index JSON vocabulary."""
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Vocabulary file must contain a JSON object")

    vocabulary = {}
    for word, index in data.items():
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"Invalid vocabulary index for {word!r}: {index!r}")
        vocabulary[word] = index
    return vocabulary


def load_tokenizer(lemma_path: Optional[str] = None) -> Tokenizer:
    """Build the dictionary-backed tokenizer."""
    if lemma_path is None:
        return DictionaryTokenizer()
    return DictionaryTokenizer.from_file(lemma_path)


def validate_assets(matrix: np.ndarray, vocabulary: Dict[str, int]) -> None:
    """Check that every vocabulary index addresses a unique embedding row."""
    indices = list(vocabulary.values())
    if len(set(indices)) != len(indices):
        raise ValueError("Vocabulary indices must be unique")
    if indices and max(indices) >= matrix.shape[0]:
        raise ValueError(
            f"Vocabulary index {max(indices)} out of range for "
            f"{matrix.shape[0]} embedding rows"
        )


class WordAssets:
    """Read-only holder of the embedding matrix, vocabulary and tokenizer."""

    def __init__(self):
        self._futures: Dict[str, Future] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._ready = False
        self.embeddings: Optional[np.ndarray] = None
        self.vocabulary: Optional[Dict[str, int]] = None
        self.tokenizer: Optional[Tokenizer] = None

    @classmethod
    def load(
        cls,
        embedding_path: Optional[str] = None,
        vocabulary_path: Optional[str] = None,
        lemma_path: Optional[str] = None,
    ) -> "WordAssets":
        """
        Start loading the three assets in the background.

        Returns immediately; call wait_until_ready() before use.
        """
        embedding_path = embedding_path or ASSET_CONFIG["embedding_path"]
        vocabulary_path = vocabulary_path or ASSET_CONFIG["vocabulary_path"]
        lemma_path = lemma_path or ASSET_CONFIG["lemma_path"]

        assets = cls()
        assets._executor = ThreadPoolExecutor(
            max_workers=ASSET_CONFIG["load_workers"],
            thread_name_prefix="asset-loader",
        )
        assets._futures = {
            "embeddings": assets._executor.submit(
                load_embedding_matrix,
                embedding_path,
                ASSET_CONFIG["embedding_key"],
                ASSET_CONFIG["transpose_embeddings"],
            ),
            "vocabulary": assets._executor.submit(load_vocabulary, vocabulary_path),
            "tokenizer": assets._executor.submit(load_tokenizer, lemma_path),
        }
        return assets

    @classmethod
    def from_arrays(
        cls,
        embeddings: np.ndarray,
        vocabulary: Dict[str, int],
        tokenizer: Optional[Tokenizer] = None,
    ) -> "WordAssets":
        """Build an already-resolved instance from in-memory assets."""
        matrix = np.asarray(embeddings, dtype=np.float64)
        if matrix.ndim != 2:
            raise AssetLoadError(
                f"Embedding matrix must be 2D, got shape {matrix.shape}"
            )
        try:
            validate_assets(matrix, vocabulary)
        except ValueError as e:
            raise AssetLoadError(str(e)) from e

        assets = cls()
        assets.embeddings = matrix
        assets.vocabulary = dict(vocabulary)
        assets.tokenizer = tokenizer or DictionaryTokenizer()
        assets._ready = True
        return assets

    @property
    def ready(self) -> bool:
        return self._ready

    def wait_until_ready(self, timeout: Optional[float] = None) -> "WordAssets":
        """
        Block until all assets are loaded.

        The first successful call resolves the assets; later calls return at once.

        Raises:
            AssetLoadError: If any asset fails to load or the timeout expires
        """
        if self._ready:
            return self
        if not self._futures:
            raise AssetLoadError("Assets were never scheduled for loading")

        if timeout is None:
            timeout = ASSET_CONFIG["load_timeout"]

        results = {}
        try:
            for name, future in self._futures.items():
                try:
                    results[name] = future.result(timeout=timeout)
                except FutureTimeoutError as e:
                    raise AssetLoadError(
                        f"Timed out after {timeout}s loading {name}"
                    ) from e
                except Exception as e:
                    raise AssetLoadError(f"Failed to load {name}: {e}") from e

            try:
                validate_assets(results["embeddings"], results["vocabulary"])
            except ValueError as e:
                raise AssetLoadError(f"Inconsistent assets: {e}") from e
        finally:
            if self._executor is not None:
                self._executor.shutdown(wait=False)

        self.embeddings = results["embeddings"]
        self.vocabulary = results["vocabulary"]
        self.tokenizer = results["tokenizer"]
        self._ready = True
        self._executor = None

        if OUTPUT_CONFIG["verbose"]:
            print(
                f"Loaded {len(self.vocabulary)} vocabulary words with "
                f"{self.embeddings.shape[1]}-dimensional embeddings"
            )
        return self

    def close(self) -> None:
        """Stop any loading that has not started and release the worker threads."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def tokenize(self, text: str) -> List[str]:
        """Tokenize text and keep only vocabulary words."""
        self.wait_until_ready()
        return filter_vocabulary(self.tokenizer.tokenize(text), self.vocabulary)
