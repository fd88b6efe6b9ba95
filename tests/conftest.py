"""Shared test fixtures for doc-classifier tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from doc_classifier.config import Settings
from doc_classifier.models import CategoryRegistry, Document


def make_document(registry: CategoryRegistry, content: str, *categories: str) -> Document:
    """Build a labeled document, attributing it to its categories."""
    cats = tuple(registry.get_or_create(name) for name in categories)
    for cat in cats:
        registry.increment(cat)
    return Document(content=content, categories=cats)


def write_document(folder: Path, name: str, categories: str, *lines: str) -> Path:
    """Write a document file in the on-disk corpus format."""
    path = folder / name
    path.write_text("\n".join([categories, *lines]) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def registry() -> CategoryRegistry:
    return CategoryRegistry(["sports", "politics"])


@pytest.fixture
def sports_politics_docs(registry: CategoryRegistry) -> list[Document]:
    """Small two-category training set with distinct vocabularies."""
    return [
        make_document(registry, "ball goal match ball team", "sports"),
        make_document(registry, "team coach ball score", "sports"),
        make_document(registry, "vote election parliament vote", "politics"),
        make_document(registry, "minister vote law parliament", "politics"),
    ]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(feature_count=10, knn_k=3, model_dir=tmp_path / "models")


@pytest.fixture
def corpus_dirs(tmp_path: Path) -> dict[str, Path]:
    """On-disk category file, training and testing folders (sports vs politics)."""
    categories = tmp_path / "categories.txt"
    categories.write_text("sports\npolitics\n", encoding="utf-8")

    train = tmp_path / "train"
    train.mkdir()
    write_document(train, "001.txt", "sports", "Ball! Ball, ball.", "BALL ball")
    write_document(train, "002.txt", "politics", "Vote vote; vote.", "VOTE vote")

    test = tmp_path / "test"
    test.mkdir()
    write_document(test, "001.txt", "sports", "ball ball")
    write_document(test, "002.txt", "politics", "vote")

    return {"categories": categories, "train": train, "test": test}
