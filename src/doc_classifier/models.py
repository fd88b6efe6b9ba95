"""Data models for document categorization."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional

from .preprocessing import tokenize


class FeatureAlgorithm(str, Enum):
    """Available feature extraction algorithms (CLI names as values)."""

    TF = "tf"
    BINARY = "binary"
    TFIDF = "tfidf"
    MI = "mi"

    @property
    def description(self) -> str:
        return {
            FeatureAlgorithm.TF: "term frequency (document frequency) algorithm",
            FeatureAlgorithm.BINARY: "binary feature algorithm",
            FeatureAlgorithm.TFIDF: "term frequency-inverse document frequency algorithm",
            FeatureAlgorithm.MI: "mutual information feature selection",
        }[self]


class ClassifierKind(str, Enum):
    """Available classifiers (CLI names as values)."""

    BAYES = "bayes"
    KNN = "knn"

    @property
    def description(self) -> str:
        return {
            ClassifierKind.BAYES: "Naive Bayes classifier",
            ClassifierKind.KNN: "k-nearest neighbours classifier",
        }[self]


@dataclass(frozen=True)
class Category:
    """A named classification category. Equal by name."""

    name: str

    def __str__(self) -> str:
        return self.name


class CategoryRegistry:
    """Categories known to one training or classification run.

    Owns the running count of documents attributed to each category.
    Counter updates are serialized so several pipelines may share a
    registry safely.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._categories: dict[str, Category] = {}
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()
        for name in names:
            self.get_or_create(name)

    def get_or_create(self, name: str) -> Category:
        with self._lock:
            category = self._categories.get(name)
            if category is None:
                category = Category(name)
                self._categories[name] = category
                self._counts[name] = 0
            return category

    def get(self, name: str) -> Optional[Category]:
        return self._categories.get(name)

    def increment(self, category: Category) -> int:
        """Attribute one more document to ``category``; returns the new count."""
        with self._lock:
            self._counts[category.name] = self._counts.get(category.name, 0) + 1
            return self._counts[category.name]

    def decrement(self, category: Category) -> int:
        """Withdraw one document from ``category``; returns the new count."""
        with self._lock:
            self._counts[category.name] = self._counts.get(category.name, 0) - 1
            return self._counts[category.name]

    def count(self, category: Category) -> int:
        return self._counts.get(category.name, 0)

    def names(self) -> list[str]:
        return list(self._categories)

    @property
    def categories(self) -> list[Category]:
        return list(self._categories.values())

    def __iter__(self) -> Iterator[Category]:
        return iter(list(self._categories.values()))

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Category):
            return item.name in self._categories
        return item in self._categories

    def __repr__(self) -> str:
        return f"CategoryRegistry({self._counts!r})"


@dataclass
class Document:
    """A document to train the classifier with or to classify.

    ``features`` is attached by a feature extractor. It maps terms to
    weights in rank order; ranked-list extractors store unit weights.
    """

    content: str
    categories: tuple[Category, ...] = ()
    _features: Optional[dict[str, float]] = field(default=None, repr=False)

    @property
    def has_features(self) -> bool:
        return self._features is not None

    @property
    def features(self) -> dict[str, float]:
        if self._features is None:
            raise RuntimeError("Document features have not been computed. Run a feature extractor first.")
        return self._features

    @features.setter
    def features(self, value: dict[str, float]) -> None:
        self._features = dict(value)

    @property
    def feature_terms(self) -> list[str]:
        """Selected terms in rank order."""
        return list(self.features)

    @property
    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]

    def tokens(self) -> list[str]:
        """Whitespace tokens of the content, empty tokens dropped."""
        return tokenize(self.content)

    def belongs_to(self, category: Category) -> bool:
        return category in self.categories
