"""Runtime settings read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

ENV_PREFIX = "DOC_CLASSIFIER_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class Settings:
    """Tunable parameters of the training and classification pipeline.

    Attributes:
        feature_count: Features per document for mutual information.
        knn_k: Number of neighbours consulted by k-NN.
        model_dir: Directory models are saved to and loaded from.
        log_level: Logging level name for the command-line interface.
        bayes_log_space: Accumulate Naive Bayes posteriors as log sums.
    """

    feature_count: int = 100
    knn_k: int = 3
    model_dir: Path = Path(".")
    log_level: str = "WARNING"
    bayes_log_space: bool = False

    def __post_init__(self) -> None:
        if self.feature_count < 1:
            raise ConfigurationError(f"feature_count must be positive, got {self.feature_count}")
        if self.knn_k < 1:
            raise ConfigurationError(f"knn_k must be positive, got {self.knn_k}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"log_level must be a logging level name, got {self.log_level!r}")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from ``DOC_CLASSIFIER_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            dotenv: Load a ``.env`` file into the environment first.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        def get(key: str) -> Optional[str]:
            return environ.get(ENV_PREFIX + key)

        defaults = cls()
        return cls(
            feature_count=_parse_int("FEATURE_COUNT", get("FEATURE_COUNT"), defaults.feature_count),
            knn_k=_parse_int("KNN_K", get("KNN_K"), defaults.knn_k),
            model_dir=Path(get("MODEL_DIR") or defaults.model_dir),
            log_level=(get("LOG_LEVEL") or defaults.log_level).upper(),
            bayes_log_space=_parse_bool("BAYES_LOG_SPACE", get("BAYES_LOG_SPACE"), defaults.bayes_log_space),
        )


def _parse_int(key: str, value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{key} must be an integer, got {value!r}") from exc


def _parse_bool(key: str, value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{key} must be a boolean, got {value!r}")
