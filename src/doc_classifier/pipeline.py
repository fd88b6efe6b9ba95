"""Training/evaluation loop and classification of ad-hoc text.

``run_training`` is the primary entry point for building a model: it
validates the requested algorithms, loads the category list and the
training and testing corpora, computes features, fits the classifier,
scores it on the testing set, and saves the trained model.

``ClassificationSession`` restores a saved model and classifies free
text without reprocessing the training corpus.

Example::

    config = TrainingConfig(
        categories_file="categories.txt",
        training_dir="data/train",
        testing_dir="data/test",
        feature_algorithm="tf",
        classifier="bayes",
        model_name="news",
    )
    report = run_training(config)
    print(report.metrics.summary())

    session = ClassificationSession.from_model("news")
    print(session.classify("The ball was kicked into the goal"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .classifier import (
    ClassificationMetrics,
    Classifier,
    KNNClassifier,
    NaiveBayesClassifier,
    create_classifier,
    evaluate,
)
from .config import Settings
from .errors import ConfigurationError, DocClassifierError, ResourceError
from .features import FeatureExtractor, create_extractor
from .loaders import load_categories, load_corpus
from .models import Category, CategoryRegistry, ClassifierKind, Document, FeatureAlgorithm
from .persistence import ModelSnapshot, load_model, model_path, save_model
from .preprocessing import normalize_text

__all__ = [
    "ClassificationSession",
    "ConfigurationError",
    "DocClassifierError",
    "ResourceError",
    "TrainingConfig",
    "TrainingReport",
    "parse_classifier",
    "parse_feature_algorithm",
    "run_training",
]

logger = logging.getLogger(__name__)


def parse_feature_algorithm(name: str) -> FeatureAlgorithm:
    """Validate a feature algorithm name.

    Raises:
        ConfigurationError: Listing the available algorithms.
    """
    try:
        return FeatureAlgorithm(name)
    except ValueError:
        options = "\n".join(f"{a.value} - {a.description}" for a in FeatureAlgorithm)
        raise ConfigurationError(
            f"No feature algorithm with this name found! (passed name: {name})\n"
            f"Available feature algorithms:\n{options}"
        ) from None


def parse_classifier(name: str) -> ClassifierKind:
    """Validate a classifier name.

    Raises:
        ConfigurationError: Listing the available classifiers.
    """
    try:
        return ClassifierKind(name)
    except ValueError:
        options = "\n".join(f"{c.value} - {c.description}" for c in ClassifierKind)
        raise ConfigurationError(
            f"No classifier with this name found! (passed name: {name})\n"
            f"Available classifiers:\n{options}"
        ) from None


def _extractor_for(
    algorithm: FeatureAlgorithm,
    training_set: list[Document],
    settings: Settings,
) -> FeatureExtractor:
    feature_count = settings.feature_count if algorithm is FeatureAlgorithm.MI else None
    return create_extractor(algorithm, training_set, feature_count=feature_count)


# ---------------------------------------------------------------------------
# Training / Evaluation
# ---------------------------------------------------------------------------

@dataclass
class TrainingConfig:
    """Arguments of a training run (the six positional CLI parameters)."""

    categories_file: str | Path
    training_dir: str | Path
    testing_dir: str | Path
    feature_algorithm: str
    classifier: str
    model_name: str


@dataclass
class TrainingReport:
    """Outcome of a training run."""

    metrics: ClassificationMetrics
    snapshot: ModelSnapshot
    model_path: Path

    @property
    def total(self) -> int:
        return self.metrics.total

    @property
    def correct(self) -> int:
        return self.metrics.correct

    @property
    def accuracy(self) -> float:
        return self.metrics.accuracy

    def to_dict(self) -> dict:
        return {
            "model": self.snapshot.name,
            "model_path": str(self.model_path),
            "feature_algorithm": self.snapshot.feature_algorithm.value,
            "classifier": self.snapshot.classifier.value,
            "training_documents": len(self.snapshot.training_set),
            **self.metrics.to_dict(),
        }


def run_training(config: TrainingConfig, settings: Optional[Settings] = None) -> TrainingReport:
    """Train a classifier, evaluate it on the testing set, and save the model.

    Args:
        config: Input files, algorithm names, and output model name.
        settings: Pipeline settings; read from the environment if omitted.

    Returns:
        TrainingReport with accuracy metrics and the saved snapshot.

    Raises:
        ConfigurationError: If an algorithm name is unknown. Raised before
            anything is loaded or written.
        ResourceError: If the category file or a corpus directory cannot be
            loaded.
    """
    settings = settings or Settings.from_env()
    classifier_kind = parse_classifier(config.classifier)
    algorithm = parse_feature_algorithm(config.feature_algorithm)

    registry = load_categories(config.categories_file)
    if registry is None:
        raise ResourceError(f"Categories could not be loaded: {config.categories_file}")

    logger.info("Loading training set...")
    training_set = load_corpus(config.training_dir, registry)
    if training_set is None:
        raise ResourceError(f"Training set could not be loaded: {config.training_dir}")

    logger.info("Loading testing set...")
    testing_set = load_corpus(config.testing_dir, registry)
    if testing_set is None:
        raise ResourceError(f"Testing set could not be loaded: {config.testing_dir}")

    extractor = _extractor_for(algorithm, training_set, settings)
    extractor.create_features_for(training_set)
    extractor.create_features_for(testing_set)

    featurized = [doc for doc in training_set if doc.has_features]
    try:
        classifier = create_classifier(
            classifier_kind,
            featurized,
            registry.categories,
            knn_k=settings.knn_k,
            bayes_log_space=settings.bayes_log_space,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Classifier could not be trained: {exc}") from exc

    metrics = evaluate(classifier, testing_set)
    logger.info(
        "Classified %d documents, %d correctly (accuracy %.4f).",
        metrics.total,
        metrics.correct,
        metrics.accuracy,
    )

    total_unique_words: Optional[int] = None
    total_words_in_class: Optional[dict[str, float]] = None
    if isinstance(classifier, NaiveBayesClassifier):
        total_unique_words = classifier.total_unique_words
        total_words_in_class = dict(classifier.total_words_in_class)

    snapshot = ModelSnapshot(
        name=config.model_name,
        categories_file=str(config.categories_file),
        feature_algorithm=algorithm,
        classifier=classifier_kind,
        training_set=featurized,
        total_unique_words=total_unique_words,
        total_words_in_class=total_words_in_class,
    )

    logger.info("Saving model as \"%s\"...", config.model_name)
    try:
        path = save_model(snapshot, settings.model_dir)
    except OSError as exc:
        raise ResourceError(
            f"Model could not be saved: {model_path(config.model_name, settings.model_dir)}"
        ) from exc
    return TrainingReport(metrics=metrics, snapshot=snapshot, model_path=path)


# ---------------------------------------------------------------------------
# Classification of ad-hoc input
# ---------------------------------------------------------------------------

class ClassificationSession:
    """A restored model ready to classify free text.

    Args:
        snapshot: Restored model.
        extractor: Feature extractor matching the model's algorithm.
        classifier: Classifier rebuilt from the model.
    """

    def __init__(
        self,
        snapshot: ModelSnapshot,
        extractor: FeatureExtractor,
        classifier: Classifier,
    ) -> None:
        self.snapshot = snapshot
        self.extractor = extractor
        self.classifier = classifier

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ModelSnapshot,
        registry: Optional[CategoryRegistry] = None,
        settings: Optional[Settings] = None,
    ) -> "ClassificationSession":
        """Rebuild extractor and classifier from a snapshot.

        The category list is re-read from the file the model was trained
        with; if it is gone, the training documents' categories are used.
        """
        settings = settings or Settings.from_env()
        registry = registry if registry is not None else CategoryRegistry()

        categories = _restore_categories(snapshot, registry)
        training_set = snapshot.training_set
        extractor = _extractor_for(snapshot.feature_algorithm, training_set, settings)

        classifier: Classifier
        if snapshot.classifier is ClassifierKind.BAYES:
            classifier = NaiveBayesClassifier.from_persisted(
                training_set,
                categories,
                total_unique_words=snapshot.total_unique_words or 0,
                total_words_in_class=snapshot.total_words_in_class or {},
                log_space=settings.bayes_log_space,
            )
        else:
            classifier = KNNClassifier(training_set, k=settings.knn_k)
        return cls(snapshot, extractor, classifier)

    @classmethod
    def from_model(cls, model_name: str, settings: Optional[Settings] = None) -> "ClassificationSession":
        """Load model ``model_name`` from the configured model directory.

        Raises:
            ResourceError: If the model is missing or malformed.
        """
        settings = settings or Settings.from_env()
        registry = CategoryRegistry()
        snapshot = load_model(model_name, settings.model_dir, registry=registry)
        if snapshot is None:
            raise ResourceError(
                f"Model not found! (name: {model_name}, path: {model_path(model_name, settings.model_dir)})"
            )
        return cls.from_snapshot(snapshot, registry=registry, settings=settings)

    def classify_document(self, document: Document) -> Optional[list[Category]]:
        self.extractor.create_features(document)
        if not document.has_features:
            return None
        return self.classifier.classify(document)

    def classify(self, text: str) -> Optional[str]:
        """Classify free text; returns the category name or ``None``."""
        document = Document(content=normalize_text(text))
        result = self.classify_document(document)
        if not result:
            return None
        return result[0].name


def _restore_categories(snapshot: ModelSnapshot, registry: CategoryRegistry) -> list[Category]:
    path = Path(snapshot.categories_file)
    if path.is_file():
        loaded = load_categories(path, CategoryRegistry())
        if loaded is not None:
            return [registry.get_or_create(name) for name in loaded.names()]
    logger.warning(
        "Category file %s not available; using categories from the model's training set.",
        snapshot.categories_file,
    )
    seen: dict[str, Category] = {}
    for doc in snapshot.training_set:
        for category in doc.categories:
            seen.setdefault(category.name, registry.get_or_create(category.name))
    return list(seen.values())
