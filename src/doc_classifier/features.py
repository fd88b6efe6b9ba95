"""Feature extraction: turning document text into weighted terms.

Provides the feature algorithms used by the classifiers:

- Term frequency (occurrences divided by document length)
- Binary (1.0 for every distinct term)
- TF-IDF (term frequency scaled by ``log(N / (df + 1))``)
- Mutual information (top informative terms per document category)

Every extractor attaches a ``dict[str, float]`` to the document. When an
extractor is bounded by ``feature_count`` the mapping holds only the
selected terms, in rank order.

Document frequency is measured by substring containment in the raw
content of the reference corpus, not by exact token match, so a term
also counts as present in documents containing a longer word that
includes it.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import Counter
from typing import Optional, Sequence

from .models import Category, Document, FeatureAlgorithm

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Feature Selector
# ---------------------------------------------------------------------------

def select_features(scores: dict[str, float], k: int) -> list[str]:
    """Select up to ``k`` terms with the highest scores.

    Repeatedly takes the term with the maximum remaining score and removes
    it from the pool. Ties go to the term found first in iteration order.
    The input mapping is left untouched.

    Args:
        scores: Mapping of terms to their scores.
        k: Maximum number of terms to select.

    Returns:
        Selected terms in descending score order.
    """
    pool = dict(scores)
    selected: list[str] = []
    for _ in range(max(k, 0)):
        if not pool:
            break
        term = max(pool, key=pool.__getitem__)
        del pool[term]
        selected.append(term)
    return selected


def _truncate(weights: dict[str, float], feature_count: Optional[int]) -> dict[str, float]:
    if feature_count is None:
        return weights
    return {term: weights[term] for term in select_features(weights, feature_count)}


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

class FeatureExtractor(ABC):
    """Base class for feature algorithms.

    Args:
        feature_count: Number of features to keep per document, or ``None``
            to keep every term. Zero makes extraction a no-op.
    """

    algorithm: FeatureAlgorithm

    def __init__(self, feature_count: Optional[int] = None) -> None:
        if feature_count is not None and feature_count < 0:
            raise ValueError(f"feature_count must be non-negative, got {feature_count}")
        self.feature_count = feature_count

    def create_features(self, document: Document) -> Optional[dict[str, float]]:
        """Compute features for ``document`` and attach them to it.

        Returns:
            The attached features, or ``None`` when the document has no
            content or no features were requested.
        """
        if not document.content or self.feature_count == 0:
            return None
        tokens = document.tokens()
        if not tokens:
            return None
        document.features = self._compute(document, tokens)
        return document.features

    def create_features_for(self, documents: Sequence[Document]) -> None:
        """Compute features for every document in a corpus."""
        logger.info("Computing %s features for %d documents...", self.algorithm.value, len(documents))
        for document in documents:
            self.create_features(document)
        logger.info("Features for document set computed.")

    @abstractmethod
    def _compute(self, document: Document, tokens: list[str]) -> dict[str, float]:
        ...


def term_frequencies(tokens: list[str]) -> dict[str, float]:
    """Occurrences of each distinct token divided by the token count."""
    counts = Counter(t for t in tokens if t)
    total = sum(counts.values())
    if total == 0:
        return {}
    return {term: count / total for term, count in counts.items()}


class TermFrequency(FeatureExtractor):
    """Weights each term by its relative frequency in the document."""

    algorithm = FeatureAlgorithm.TF

    def _compute(self, document: Document, tokens: list[str]) -> dict[str, float]:
        return _truncate(term_frequencies(tokens), self.feature_count)


class TermBinary(FeatureExtractor):
    """Assigns 1.0 to every distinct term regardless of repetition."""

    algorithm = FeatureAlgorithm.BINARY

    def _compute(self, document: Document, tokens: list[str]) -> dict[str, float]:
        weights = {term: 1.0 for term in tokens}
        if self.feature_count is not None:
            # Equal scores: keep first-occurrence order
            return {term: 1.0 for term in list(weights)[: self.feature_count]}
        return weights


class TFIDF(FeatureExtractor):
    """Term frequency multiplied by ``log(N / (df + 1))``.

    ``N`` is the size of the reference corpus and ``df`` the number of its
    documents whose content contains the term. The ``+ 1`` keeps unseen
    terms from dividing by zero.

    Args:
        corpus: Reference corpus (the training set).
        feature_count: Optional bound on the number of features kept.
    """

    algorithm = FeatureAlgorithm.TFIDF

    def __init__(self, corpus: Sequence[Document], feature_count: Optional[int] = None) -> None:
        super().__init__(feature_count)
        self._corpus = list(corpus)
        self._df_cache: dict[str, int] = {}

    def document_frequency(self, term: str) -> int:
        df = self._df_cache.get(term)
        if df is None:
            df = sum(1 for doc in self._corpus if term in doc.content)
            self._df_cache[term] = df
        return df

    def idf(self, term: str) -> float:
        n_docs = len(self._corpus)
        if n_docs == 0:
            return 0.0
        return math.log(n_docs / (self.document_frequency(term) + 1))

    def _compute(self, document: Document, tokens: list[str]) -> dict[str, float]:
        tf = term_frequencies(tokens)
        weights = {term: freq * self.idf(term) for term, freq in tf.items()}
        return _truncate(weights, self.feature_count)


class MutualInformation(FeatureExtractor):
    """Selects the terms carrying the most information about each category.

    The feature budget is split evenly (integer division) across the
    document's categories. For each category every candidate term is
    scored by the mutual information between "term present" and "document
    in category" over the reference corpus, and the best terms of all
    categories are unioned. Documents without categories (ad-hoc input)
    spread the budget over every category seen in the corpus.

    Selected terms are stored with unit weight.

    Args:
        corpus: Reference corpus (the training set).
        feature_count: Total number of features per document. Required.
    """

    algorithm = FeatureAlgorithm.MI

    def __init__(self, corpus: Sequence[Document], feature_count: Optional[int] = None) -> None:
        if feature_count is None:
            raise ValueError("Mutual information requires a feature_count")
        super().__init__(feature_count)
        self._corpus = list(corpus)
        self._corpus_categories: list[Category] = []
        for doc in self._corpus:
            for category in doc.categories:
                if category not in self._corpus_categories:
                    self._corpus_categories.append(category)

    def _compute(self, document: Document, tokens: list[str]) -> dict[str, float]:
        categories = list(document.categories) or self._corpus_categories
        if not categories:
            logger.warning("No categories available for mutual information; no features selected.")
            return {}
        per_category = self.feature_count // len(categories)

        selected: dict[str, float] = {}
        candidates = list(dict.fromkeys(tokens))
        for category in categories:
            scores = {term: self.term_information(term, category) for term in candidates}
            for term in select_features(scores, per_category):
                selected.setdefault(term, 1.0)
        return selected

    def term_information(self, term: str, category: Category) -> float:
        """Mutual information (in bits) between ``term`` and ``category``."""
        n = len(self._corpus)
        if n == 0:
            return 0.0

        in_term = in_no_term = out_term = out_no_term = 0
        for doc in self._corpus:
            has_term = term in doc.content
            if doc.belongs_to(category):
                if has_term:
                    in_term += 1
                else:
                    in_no_term += 1
            elif has_term:
                out_term += 1
            else:
                out_no_term += 1

        docs_in = in_term + in_no_term
        docs_out = out_term + out_no_term
        docs_term = in_term + out_term
        docs_no_term = in_no_term + out_no_term

        return (
            _mi_quadrant(in_term, n, docs_term, docs_in)
            + _mi_quadrant(in_no_term, n, docs_no_term, docs_in)
            + _mi_quadrant(out_term, n, docs_term, docs_out)
            + _mi_quadrant(out_no_term, n, docs_no_term, docs_out)
        )


def _mi_quadrant(joint: int, n: int, marginal_term: int, marginal_class: int) -> float:
    """One term of the MI sum; zero counts contribute nothing."""
    if joint == 0 or marginal_term == 0 or marginal_class == 0:
        return 0.0
    return (joint / n) * math.log2((n * joint) / (marginal_term * marginal_class))


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_extractor(
    algorithm: FeatureAlgorithm | str,
    corpus: Sequence[Document] = (),
    feature_count: Optional[int] = None,
) -> FeatureExtractor:
    """Build the extractor for ``algorithm``.

    Args:
        algorithm: Feature algorithm (enum member or its CLI name).
        corpus: Reference corpus, used by TF-IDF and mutual information.
        feature_count: Bound on features per document.

    Raises:
        ValueError: If ``algorithm`` is not a known feature algorithm.
    """
    algorithm = FeatureAlgorithm(algorithm)
    if algorithm is FeatureAlgorithm.TF:
        return TermFrequency(feature_count)
    if algorithm is FeatureAlgorithm.BINARY:
        return TermBinary(feature_count)
    if algorithm is FeatureAlgorithm.TFIDF:
        return TFIDF(corpus, feature_count)
    return MutualInformation(corpus, feature_count)
