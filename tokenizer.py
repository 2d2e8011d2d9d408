"""
Tokenization and vocabulary filtering.
Turns raw text into base word forms and counts distinct words.
"""

import string
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from config import ANALYSIS_CONFIG


class Tokenizer(Protocol):
    """Anything that turns text into an ordered list of base word forms."""

    def tokenize(self, text: str) -> List[str]: ...


class DictionaryTokenizer:
    """Whitespace tokenizer that maps surface forms to base forms via a lemma table."""

    def __init__(self, lemmas: Optional[Dict[str, str]] = None):
        """
        Initialize the tokenizer.

        Args:
            lemmas: Optional mapping of surface form to base (dictionary) form
        """
        self.case_sensitive = ANALYSIS_CONFIG["case_sensitive"]
        self.lemmas = {}
        for surface, base in (lemmas or {}).items():
            self.lemmas[self._normalize(surface)] = self._normalize(base)

    @classmethod
    def from_file(cls, filepath: str) -> "DictionaryTokenizer":
        """Build a tokenizer from a tab separated "surface<TAB>base" file."""
        lemmas = {}
        with open(filepath, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                parts = line.split("\t")
                if len(parts) != 2:
                    raise ValueError(
                        f"Malformed lemma entry at {filepath}:{line_number}: {line!r}"
                    )
                lemmas[parts[0]] = parts[1]
        return cls(lemmas)

    def _normalize(self, word: str) -> str:
        return word if self.case_sensitive else word.lower()

    def tokenize(self, text: str) -> List[str]:
        """Split text into base word forms in order of occurrence."""
        words = []
        for token in text.split():
            if ANALYSIS_CONFIG["strip_punctuation"]:
                token = token.strip(string.punctuation)
            if not token or not token.isalpha():
                continue
            token = self._normalize(token)
            words.append(self.lemmas.get(token, token))
        return words


def _strip_plural(word: str, vocabulary: Dict[str, int]) -> Optional[str]:
    """
    Try plural suffix stripping until a vocabulary word is found.

    Each round tries the "s"-stripped form before the "es"-stripped one, so
    "horses" finds "horse" and "boxes" finds "box".
    """
    current_word = word
    for _ in range(ANALYSIS_CONFIG["max_plural_attempts"]):
        candidates = []
        if current_word.endswith("s") and len(current_word) > 1:
            candidates.append(current_word[:-1])
        if current_word.endswith("es") and len(current_word) > 2:
            candidates.append(current_word[:-2])
        if not candidates:
            break

        for candidate in candidates:
            if candidate in vocabulary:
                return candidate
        current_word = candidates[-1]

    return None


def filter_vocabulary(words: Iterable[str], vocabulary: Dict[str, int]) -> List[str]:
    """
    Keep only words present in the vocabulary, preserving order and duplicates.

    Args:
        words: Base word forms from a tokenizer
        vocabulary: Mapping of word to embedding row

    Returns:
        Vocabulary words in order of occurrence
    """
    kept = []
    for word in words:
        if word in vocabulary:
            kept.append(word)
        elif ANALYSIS_CONFIG["plural_handling"]:
            if (singular := _strip_plural(word, vocabulary)) is not None:
                kept.append(singular)
    return kept


def count_words(words: Iterable[str]) -> List[Tuple[str, int]]:
    """Count distinct words, keeping the order of first occurrence."""
    counts: Dict[str, int] = {}
    for word in words:
        if word not in counts:
            counts[word] = 0
        counts[word] += 1
    return list(counts.items())
