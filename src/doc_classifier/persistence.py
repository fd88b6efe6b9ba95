"""Saving and loading of trained models.

A model is stored as a UTF-8 ``.model`` file made of tagged sections::

    #categories_file
    categories.txt
    #feature_algorithm
    tf
    #classifier
    bayes
    42
    sports;1.0 politics;1.0
    #training_set
    #document
    sports
    ball;1.0
    #document
    ...

The two lines after the classifier name are present only for Naive
Bayes: the number of unique words in the training set and the total
feature weight per category. Each ``#document`` section holds the
document's category names and its ``term;weight`` feature pairs; the
document content is rebuilt by joining the terms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from .models import CategoryRegistry, ClassifierKind, Document, FeatureAlgorithm

logger = logging.getLogger(__name__)

MODEL_FILE_EXTENSION = ".model"

CATEGORIES_FILE_TAG = "#categories_file"
FEATURE_ALGORITHM_TAG = "#feature_algorithm"
CLASSIFIER_TAG = "#classifier"
TRAINING_SET_TAG = "#training_set"
DOCUMENT_TAG = "#document"


class ModelFormatError(ValueError):
    """Raised internally when a model file does not follow the format."""


@dataclass
class ModelSnapshot:
    """Everything needed to classify without the raw training corpus.

    Attributes:
        name: Model name; the file is ``<name>.model``.
        categories_file: Path of the category-list file used in training.
        feature_algorithm: Feature algorithm the training set was built with.
        classifier: Classifier to rebuild.
        training_set: Training documents with their features.
        total_unique_words: Naive Bayes only; distinct terms in training set.
        total_words_in_class: Naive Bayes only; feature weight per category.
    """

    name: str
    categories_file: str
    feature_algorithm: FeatureAlgorithm
    classifier: ClassifierKind
    training_set: list[Document] = field(default_factory=list)
    total_unique_words: Optional[int] = None
    total_words_in_class: Optional[dict[str, float]] = None

    def __post_init__(self) -> None:
        has_unique = self.total_unique_words is not None
        has_class_totals = self.total_words_in_class is not None
        if has_unique != has_class_totals:
            raise ValueError("total_unique_words and total_words_in_class must be set together")
        if has_unique and self.total_unique_words <= 0:  # type: ignore[operator]
            raise ValueError("total_unique_words must be positive")
        if self.classifier is ClassifierKind.BAYES and not has_unique:
            raise ValueError("A Naive Bayes model requires its word-count aggregates")

    @property
    def file_name(self) -> str:
        return self.name + MODEL_FILE_EXTENSION


def model_path(name: str, model_dir: str | Path = ".") -> Path:
    """Path of the file holding model ``name`` in ``model_dir``."""
    if name.endswith(MODEL_FILE_EXTENSION):
        name = name[: -len(MODEL_FILE_EXTENSION)]
    return Path(model_dir) / (name + MODEL_FILE_EXTENSION)


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------

def _format_pairs(pairs: dict[str, float]) -> str:
    return " ".join(f"{key};{value!r}" for key, value in pairs.items())


def dump_model(snapshot: ModelSnapshot) -> str:
    """Serialize a snapshot to model-file text."""
    lines = [
        CATEGORIES_FILE_TAG,
        snapshot.categories_file,
        FEATURE_ALGORITHM_TAG,
        snapshot.feature_algorithm.value,
        CLASSIFIER_TAG,
        snapshot.classifier.value,
    ]
    if snapshot.classifier is ClassifierKind.BAYES:
        lines.append(str(snapshot.total_unique_words))
        lines.append(_format_pairs({k: float(v) for k, v in (snapshot.total_words_in_class or {}).items()}))

    lines.append(TRAINING_SET_TAG)
    for document in snapshot.training_set:
        lines.append(DOCUMENT_TAG)
        lines.append(" ".join(document.category_names))
        lines.append(_format_pairs({k: float(v) for k, v in document.features.items()}))
    return "\n".join(lines) + "\n"


def save_model(snapshot: ModelSnapshot, model_dir: str | Path = ".") -> Path:
    """Write ``snapshot`` to ``<model_dir>/<name>.model``.

    Returns:
        Path of the written file.
    """
    path = model_path(snapshot.name, model_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dump_model(snapshot))
    logger.info("Model \"%s\" saved to %s", snapshot.name, path)
    return path


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class _LineReader:
    """Sequential access to model-file lines."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._pos = 0

    def next_tag(self) -> Optional[str]:
        """Next non-blank line, or ``None`` at end of file."""
        while self._pos < len(self._lines):
            line = self._lines[self._pos].strip()
            self._pos += 1
            if line:
                return line
        return None

    def payload(self) -> str:
        if self._pos >= len(self._lines):
            raise ModelFormatError("Unexpected end of model file")
        line = self._lines[self._pos].strip()
        self._pos += 1
        return line

    def __iter__(self) -> Iterator[str]:
        while True:
            tag = self.next_tag()
            if tag is None:
                return
            yield tag


def _parse_pairs(line: str) -> dict[str, float]:
    pairs: dict[str, float] = {}
    for item in line.split():
        key, sep, value = item.rpartition(";")
        if not sep or not key:
            raise ModelFormatError(f"Malformed pair: {item!r}")
        try:
            pairs[key] = float(value)
        except ValueError as exc:
            raise ModelFormatError(f"Malformed weight: {item!r}") from exc
    return pairs


def loads_model(text: str, name: str, registry: Optional[CategoryRegistry] = None) -> ModelSnapshot:
    """Parse model-file text.

    Args:
        text: Contents of a model file.
        name: Name to give the snapshot.
        registry: Registry restored categories are created in.

    Raises:
        ModelFormatError: If the text does not follow the model format.
    """
    registry = registry if registry is not None else CategoryRegistry()
    reader = _LineReader(text.splitlines())

    categories_file: Optional[str] = None
    feature_algorithm: Optional[FeatureAlgorithm] = None
    classifier: Optional[ClassifierKind] = None
    total_unique_words: Optional[int] = None
    total_words_in_class: Optional[dict[str, float]] = None
    training_set: Optional[list[Document]] = None

    for tag in reader:
        if tag == CATEGORIES_FILE_TAG:
            categories_file = reader.payload()
        elif tag == FEATURE_ALGORITHM_TAG:
            try:
                feature_algorithm = FeatureAlgorithm(reader.payload())
            except ValueError as exc:
                raise ModelFormatError(str(exc)) from exc
        elif tag == CLASSIFIER_TAG:
            try:
                classifier = ClassifierKind(reader.payload())
            except ValueError as exc:
                raise ModelFormatError(str(exc)) from exc
            if classifier is ClassifierKind.BAYES:
                try:
                    total_unique_words = int(reader.payload())
                except ValueError as exc:
                    raise ModelFormatError("Malformed unique word count") from exc
                total_words_in_class = _parse_pairs(reader.payload())
        elif tag == TRAINING_SET_TAG:
            if training_set is not None:
                raise ModelFormatError("Duplicate training set section")
            training_set = []
        elif tag == DOCUMENT_TAG:
            if training_set is None:
                raise ModelFormatError("Document section before training set")
            categories = tuple(registry.get_or_create(n) for n in reader.payload().split())
            features = _parse_pairs(reader.payload())
            document = Document(content=" ".join(features), categories=categories)
            document.features = features
            for category in categories:
                registry.increment(category)
            training_set.append(document)
        else:
            raise ModelFormatError(f"Unknown section tag: {tag!r}")

    if categories_file is None or feature_algorithm is None or classifier is None or training_set is None:
        raise ModelFormatError("Model file is missing a required section")

    try:
        return ModelSnapshot(
            name=name,
            categories_file=categories_file,
            feature_algorithm=feature_algorithm,
            classifier=classifier,
            training_set=training_set,
            total_unique_words=total_unique_words,
            total_words_in_class=total_words_in_class,
        )
    except ValueError as exc:
        raise ModelFormatError(str(exc)) from exc


def load_model(
    name: str,
    model_dir: str | Path = ".",
    registry: Optional[CategoryRegistry] = None,
) -> Optional[ModelSnapshot]:
    """Load model ``name`` from ``model_dir``.

    Returns:
        The snapshot, or ``None`` if the file is missing or malformed.
    """
    path = model_path(name, model_dir)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError:
        logger.error("Model file not found! (path: %s)", path)
        return None

    try:
        snapshot = loads_model(text, name=path.stem, registry=registry)
    except ModelFormatError as exc:
        logger.error("Invalid model file format! (path: %s): %s", path, exc)
        return None

    logger.info("Model \"%s\" loaded (%d training documents).", snapshot.name, len(snapshot.training_set))
    return snapshot
