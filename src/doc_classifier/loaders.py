"""Loading of category lists, labeled documents, and corpus directories.

A document file holds its space-separated category names on the first
non-empty line; every following non-empty line is content. Content is
normalized with :func:`~doc_classifier.preprocessing.normalize_text`.

Loaders report missing or unreadable resources through the log, naming
the offending path, and return ``None`` so that the caller decides how
to proceed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .models import CategoryRegistry, Document
from .preprocessing import normalize_text

logger = logging.getLogger(__name__)


def load_categories(path: str | Path, registry: Optional[CategoryRegistry] = None) -> Optional[CategoryRegistry]:
    """Load category names, one per line, into a registry.

    Args:
        path: Path to the category-list file.
        registry: Registry to add to; a fresh one is created if omitted.

    Returns:
        The registry, or ``None`` if the file cannot be read.
    """
    path = Path(path)
    registry = registry if registry is not None else CategoryRegistry()
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                name = line.strip()
                if name:
                    registry.get_or_create(name)
    except OSError:
        logger.error("File containing categories not found! (%s)", path)
        return None
    logger.info("Categories loaded: %s", ", ".join(registry.names()))
    return registry


def parse_document(text: str, registry: CategoryRegistry) -> Document:
    """Build a labeled document from the raw text of a document file."""
    names: list[str] = []
    content_lines: list[str] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        if not names and not content_lines:
            names = line.split()
        else:
            content_lines.append(line)

    categories = tuple(registry.get_or_create(name) for name in dict.fromkeys(names))
    return Document(content=normalize_text(" ".join(content_lines)), categories=categories)


def load_document(path: str | Path, registry: CategoryRegistry) -> Optional[Document]:
    """Load one labeled document file.

    Returns:
        The document, or ``None`` if the file cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        logger.error("File was not found! (file: %s)", path.resolve())
        return None
    except OSError:
        logger.error("Error while reading from file! (file: %s)", path.resolve())
        return None
    return parse_document(text, registry)


def load_corpus(folder: str | Path, registry: CategoryRegistry) -> Optional[list[Document]]:
    """Load every document file in ``folder`` (sorted by file name).

    Each loaded document is attributed to its categories in ``registry``.

    Returns:
        The documents, or ``None`` if the folder is missing, empty, or one
        of its files cannot be read.
    """
    folder = Path(folder)
    if not folder.is_dir():
        logger.error("Directory in given path was not found! (path: %s)", folder)
        return None

    files = sorted(p for p in folder.iterdir() if p.is_file())
    if not files:
        logger.error("Directory is empty! (path: %s)", folder)
        return None

    documents: list[Document] = []
    for file in files:
        document = load_document(file, registry)
        if document is None:
            return None
        if not document.categories:
            logger.warning("Document has no categories, skipping. (file: %s)", file)
            continue
        for category in document.categories:
            registry.increment(category)
        documents.append(document)

    logger.info("Data set loaded: %d documents from %s", len(documents), folder)
    return documents
