"""Document Classifier -- statistical text categorization."""

__version__ = "0.1.0"

from .classifier import (
    ClassificationMetrics,
    Classifier,
    KNNClassifier,
    NaiveBayesClassifier,
    compute_metrics,
    create_classifier,
    euclidean_distance,
    evaluate,
)
from .config import Settings
from .errors import ConfigurationError, DocClassifierError, ResourceError
from .features import (
    TFIDF,
    FeatureExtractor,
    MutualInformation,
    TermBinary,
    TermFrequency,
    create_extractor,
    select_features,
    term_frequencies,
)
from .loaders import load_categories, load_corpus, load_document, parse_document
from .models import Category, CategoryRegistry, ClassifierKind, Document, FeatureAlgorithm
from .persistence import ModelSnapshot, load_model, model_path, save_model
from .pipeline import ClassificationSession, TrainingConfig, TrainingReport, run_training
from .preprocessing import normalize_text, tokenize

__all__ = [
    # Data model
    "Category",
    "CategoryRegistry",
    "Document",
    "FeatureAlgorithm",
    "ClassifierKind",
    # Preprocessing / loading
    "normalize_text",
    "tokenize",
    "load_categories",
    "load_corpus",
    "load_document",
    "parse_document",
    # Features
    "FeatureExtractor",
    "TermFrequency",
    "TermBinary",
    "TFIDF",
    "MutualInformation",
    "create_extractor",
    "select_features",
    "term_frequencies",
    # Classification
    "Classifier",
    "NaiveBayesClassifier",
    "KNNClassifier",
    "ClassificationMetrics",
    "compute_metrics",
    "create_classifier",
    "euclidean_distance",
    "evaluate",
    # Persistence
    "ModelSnapshot",
    "load_model",
    "model_path",
    "save_model",
    # Pipeline
    "ClassificationSession",
    "TrainingConfig",
    "TrainingReport",
    "run_training",
    "Settings",
    # Errors
    "DocClassifierError",
    "ConfigurationError",
    "ResourceError",
]
