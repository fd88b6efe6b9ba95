"""Document classifiers and evaluation metrics.

Provides the classifiers that assign categories to featurized documents:

- Naive Bayes with Laplace (add-one) smoothing over the training set's
  aggregate term weights
- k-nearest neighbours over Euclidean distance between feature vectors

Both classifiers return a one-element list of categories, or ``None``
when a document cannot be classified (no content or no features).

Also provides accuracy, per-category precision / recall / F1, and
confusion counts for evaluating a classifier on a labeled testing set.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .models import Category, ClassifierKind, Document

logger = logging.getLogger(__name__)


class Classifier(ABC):
    """Base class for document classifiers."""

    kind: ClassifierKind

    @abstractmethod
    def classify(self, document: Document) -> Optional[list[Category]]:
        """Assign categories to a featurized document.

        Returns:
            Predicted categories, or ``None`` if the document cannot be
            classified.
        """

    def classify_batch(self, documents: Sequence[Document]) -> list[Optional[list[Category]]]:
        return [self.classify(doc) for doc in documents]

    @staticmethod
    def _can_classify(document: Document) -> bool:
        return bool(document.content) and document.has_features and bool(document.features)


# ---------------------------------------------------------------------------
# Naive Bayes
# ---------------------------------------------------------------------------

class NaiveBayesClassifier(Classifier):
    """Naive Bayes classifier with Laplace smoothing.

    The posterior of category ``c`` for a document is::

        P(c) * prod_w (occ(w, c) + 1) / (total_words_in_class[c] + total_unique_words)

    where ``w`` runs over the document's whitespace tokens and ``occ(w, c)``
    sums the feature weight of ``w`` over training documents labeled ``c``.

    Build with :meth:`fit` to compute the aggregates from a training set, or
    with :meth:`from_persisted` to reuse aggregates restored from a model.

    Args:
        training_set: Featurized training documents.
        categories: Candidate categories, in tie-breaking order.
        total_unique_words: Number of distinct terms in the training set.
        total_words_in_class: Sum of feature weights per category name.
        log_space: Accumulate log probabilities instead of multiplying.
            Long documents underflow to zero without it.
    """

    kind = ClassifierKind.BAYES

    def __init__(
        self,
        training_set: Sequence[Document],
        categories: Sequence[Category],
        total_unique_words: int,
        total_words_in_class: dict[str, float],
        log_space: bool = False,
    ) -> None:
        if total_unique_words <= 0:
            raise ValueError(f"total_unique_words must be positive, got {total_unique_words}")
        self.training_set = list(training_set)
        self.categories = list(categories)
        self.total_unique_words = total_unique_words
        self.total_words_in_class = dict(total_words_in_class)
        self.log_space = log_space

        self._class_doc_counts: Counter[str] = Counter()
        self._term_weights: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        for doc in self.training_set:
            for category in doc.categories:
                self._class_doc_counts[category.name] += 1
                weights = self._term_weights[category.name]
                for term, weight in doc.features.items():
                    weights[term] += weight

    @classmethod
    def fit(
        cls,
        training_set: Sequence[Document],
        categories: Sequence[Category],
        log_space: bool = False,
    ) -> "NaiveBayesClassifier":
        """Train on featurized documents, computing the word-count aggregates.

        Raises:
            ValueError: If the training set has no features at all.
        """
        unique_words: set[str] = set()
        words_in_class: dict[str, float] = {c.name: 0.0 for c in categories}
        for doc in training_set:
            if not doc.has_features:
                continue
            unique_words.update(doc.features)
            doc_weight = sum(doc.features.values())
            for category in doc.categories:
                words_in_class[category.name] = words_in_class.get(category.name, 0.0) + doc_weight

        if not unique_words:
            raise ValueError("Cannot fit Naive Bayes: training set contains no features")

        featurized = [doc for doc in training_set if doc.has_features]
        logger.info(
            "Naive Bayes fitted on %d documents (%d unique words).",
            len(featurized),
            len(unique_words),
        )
        return cls(featurized, categories, len(unique_words), words_in_class, log_space=log_space)

    @classmethod
    def from_persisted(
        cls,
        training_set: Sequence[Document],
        categories: Sequence[Category],
        total_unique_words: int,
        total_words_in_class: dict[str, float],
        log_space: bool = False,
    ) -> "NaiveBayesClassifier":
        """Rebuild a classifier from aggregates restored from a saved model."""
        return cls(training_set, categories, total_unique_words, total_words_in_class, log_space=log_space)

    def prior(self, category: Category) -> float:
        """Fraction of training documents labeled ``category``."""
        if not self.training_set:
            return 0.0
        return self._class_doc_counts.get(category.name, 0) / len(self.training_set)

    def likelihood(self, term: str, category: Category) -> float:
        """Smoothed ``P(term | category)``; always strictly positive."""
        occurrence = self._term_weights.get(category.name, {}).get(term, 0.0)
        denominator = self.total_words_in_class.get(category.name, 0.0) + self.total_unique_words
        return (occurrence + 1.0) / denominator

    def posteriors(self, document: Document) -> dict[Category, float]:
        """Unnormalized posterior per category (log posterior in log space)."""
        tokens = document.tokens()
        scores: dict[Category, float] = {}
        for category in self.categories:
            prior = self.prior(category)
            if self.log_space:
                if prior == 0.0:
                    scores[category] = -math.inf
                    continue
                score = math.log(prior)
                for token in tokens:
                    score += math.log(self.likelihood(token, category))
            else:
                score = prior
                for token in tokens:
                    score *= self.likelihood(token, category)
            scores[category] = score
        return scores

    def classify(self, document: Document) -> Optional[list[Category]]:
        if not self._can_classify(document) or not self.categories:
            return None
        scores = self.posteriors(document)
        best = max(scores, key=scores.__getitem__)
        return [best]


# ---------------------------------------------------------------------------
# k-Nearest Neighbours
# ---------------------------------------------------------------------------

def euclidean_distance(a: dict[str, float], b: dict[str, float]) -> float:
    """Euclidean distance between sparse vectors; missing keys weigh 0."""
    total = 0.0
    for term in a.keys() | b.keys():
        diff = a.get(term, 0.0) - b.get(term, 0.0)
        total += diff * diff
    return math.sqrt(total)


class KNNClassifier(Classifier):
    """k-nearest neighbours classifier.

    Picks the ``k`` training documents closest to the query and returns
    the category most frequent among their labels. Distance ties keep
    training-set order; vote ties go to the category seen first among the
    nearest neighbours.

    Args:
        training_set: Featurized training documents.
        k: Number of neighbours to consult.
    """

    kind = ClassifierKind.KNN

    def __init__(self, training_set: Sequence[Document], k: int = 3) -> None:
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.training_set = [doc for doc in training_set if doc.has_features]
        self.k = k

    def nearest_neighbours(self, document: Document) -> list[tuple[Document, float]]:
        """Training documents sorted by distance to ``document``, closest first."""
        query = document.features
        distances = [
            (candidate, euclidean_distance(query, candidate.features))
            for candidate in self.training_set
        ]
        distances.sort(key=lambda pair: pair[1])
        return distances[: self.k]

    def classify(self, document: Document) -> Optional[list[Category]]:
        if not self._can_classify(document) or not self.training_set:
            return None

        votes: dict[Category, int] = {}
        for neighbour, _ in self.nearest_neighbours(document):
            for category in neighbour.categories:
                votes[category] = votes.get(category, 0) + 1
        if not votes:
            return None
        return [max(votes, key=votes.__getitem__)]


# ---------------------------------------------------------------------------
# Evaluation Metrics
# ---------------------------------------------------------------------------

@dataclass
class ClassificationMetrics:
    """Evaluation metrics for a classified testing set.

    A document counts as correct when any predicted category is among its
    ground-truth categories. Accuracy is correct documents divided by all
    testing documents; documents that could not be classified count as
    incorrect.

    Attributes:
        total: Number of testing documents.
        correct: Number of correctly classified documents.
        unclassified: Number of documents the classifier returned nothing for.
        per_class: Per-category precision, recall, F1.
        confusion: Dict of {true_category: {predicted_category: count}}.
        support: Per-category count of ground-truth labels.
    """

    total: int = 0
    correct: int = 0
    unclassified: int = 0
    per_class: dict[str, dict[str, float]] = field(default_factory=dict)
    confusion: dict[str, dict[str, int]] = field(default_factory=dict)
    support: dict[str, int] = field(default_factory=dict)

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0

    @property
    def macro_f1(self) -> float:
        if not self.per_class:
            return 0.0
        return sum(m["f1"] for m in self.per_class.values()) / len(self.per_class)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "correct": self.correct,
            "unclassified": self.unclassified,
            "accuracy": round(self.accuracy, 4),
            "macro_f1": round(self.macro_f1, 4),
            "per_class": {
                cls: {k: round(v, 4) for k, v in metrics.items()}
                for cls, metrics in self.per_class.items()
            },
            "confusion": self.confusion,
        }

    def summary(self) -> str:
        """Human-readable summary of metrics."""
        lines = [
            f"Number of classified documents: {self.total}",
            f"Number of correctly classified documents: {self.correct}",
            f"Accuracy: {self.accuracy:.2%}",
            "",
            f"{'Category':<20} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Support':>10}",
            "-" * 62,
        ]
        for cls in sorted(self.per_class):
            m = self.per_class[cls]
            lines.append(
                f"{cls:<20} {m['precision']:>10.4f} {m['recall']:>10.4f} "
                f"{m['f1']:>10.4f} {self.support.get(cls, 0):>10}"
            )
        return "\n".join(lines)


UNCLASSIFIED = "<none>"


def compute_metrics(
    truths: Sequence[Sequence[str]],
    predictions: Sequence[Optional[Sequence[str]]],
) -> ClassificationMetrics:
    """Compute metrics from ground-truth and predicted category names.

    Args:
        truths: Ground-truth category names per document.
        predictions: Predicted category names per document, ``None`` when
            the document could not be classified.

    Returns:
        ClassificationMetrics for the testing set.
    """
    if len(truths) != len(predictions):
        raise ValueError("truths and predictions must have the same length")

    correct = 0
    unclassified = 0
    support: Counter[str] = Counter()
    tp: Counter[str] = Counter()
    fp: Counter[str] = Counter()
    fn: Counter[str] = Counter()
    confusion: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    for truth, predicted in zip(truths, predictions):
        truth_set = set(truth)
        predicted_list = list(predicted or [])
        support.update(truth_set)
        if not predicted_list:
            unclassified += 1
        if truth_set & set(predicted_list):
            correct += 1

        for name in predicted_list:
            if name in truth_set:
                tp[name] += 1
            else:
                fp[name] += 1
        for name in truth_set:
            if name not in predicted_list:
                fn[name] += 1
            for pred in predicted_list or [UNCLASSIFIED]:
                confusion[name][pred] += 1

    per_class: dict[str, dict[str, float]] = {}
    for cls in sorted(set(support) | set(tp) | set(fp)):
        precision = tp[cls] / (tp[cls] + fp[cls]) if (tp[cls] + fp[cls]) > 0 else 0.0
        recall = tp[cls] / (tp[cls] + fn[cls]) if (tp[cls] + fn[cls]) > 0 else 0.0
        f1 = (
            2 * precision * recall / (precision + recall)
            if (precision + recall) > 0
            else 0.0
        )
        per_class[cls] = {"precision": precision, "recall": recall, "f1": f1}

    return ClassificationMetrics(
        total=len(truths),
        correct=correct,
        unclassified=unclassified,
        per_class=per_class,
        confusion={t: dict(p) for t, p in confusion.items()},
        support=dict(support),
    )


def evaluate(classifier: Classifier, testing_set: Sequence[Document]) -> ClassificationMetrics:
    """Classify every testing document and score the predictions."""
    logger.info("Classifying %d documents...", len(testing_set))
    truths = [doc.category_names for doc in testing_set]
    predictions = [
        [c.name for c in result] if result else None
        for result in classifier.classify_batch(testing_set)
    ]
    metrics = compute_metrics(truths, predictions)
    logger.info("Classification complete.")
    return metrics


def create_classifier(
    kind: ClassifierKind | str,
    training_set: Sequence[Document],
    categories: Sequence[Category],
    knn_k: int = 3,
    bayes_log_space: bool = False,
) -> Classifier:
    """Fit the classifier named by ``kind`` on a featurized training set.

    Raises:
        ValueError: If ``kind`` is not a known classifier.
    """
    kind = ClassifierKind(kind)
    if kind is ClassifierKind.BAYES:
        return NaiveBayesClassifier.fit(training_set, categories, log_space=bayes_log_space)
    return KNNClassifier(training_set, k=knn_k)
