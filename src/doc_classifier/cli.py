"""Command-line interface for doc-classifier.

Provides ``train`` and ``classify`` commands with rich terminal output
using the ``click`` and ``rich`` libraries.

Usage::

    doc-classifier train categories.txt data/train data/test tf bayes news
    doc-classifier classify news
    doc-classifier classify news --text "the ball went into the goal"
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import Settings
from .errors import DocClassifierError
from .pipeline import ClassificationSession, TrainingConfig, TrainingReport, run_training

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except DocClassifierError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@click.group()
@click.version_option(package_name="doc-classifier")
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline progress.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """📄 Document Classifier — statistical text categorization.

    Train Naive Bayes or k-NN classifiers on labeled document folders and
    classify new text with a saved model.
    """
    settings = _load_settings()
    _configure_logging("INFO" if verbose else settings.log_level)
    ctx.obj = settings


@main.command()
@click.argument("categories_file", type=click.Path(path_type=Path))
@click.argument("training_dir", type=click.Path(path_type=Path))
@click.argument("testing_dir", type=click.Path(path_type=Path))
@click.argument("feature_algorithm")
@click.argument("classifier")
@click.argument("model_name")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def train(
    settings: Settings,
    categories_file: Path,
    training_dir: Path,
    testing_dir: Path,
    feature_algorithm: str,
    classifier: str,
    model_name: str,
    output: str,
) -> None:
    """Train a classifier, report its accuracy, and save the model.

    FEATURE_ALGORITHM is one of tf, binary, tfidf, mi.
    CLASSIFIER is one of bayes, knn.

    Example: doc-classifier train categories.txt train/ test/ tfidf bayes news
    """
    config = TrainingConfig(
        categories_file=categories_file,
        training_dir=training_dir,
        testing_dir=testing_dir,
        feature_algorithm=feature_algorithm,
        classifier=classifier,
        model_name=model_name,
    )

    with console.status("[bold blue]Executing supervised learning...", spinner="dots"):
        try:
            report = run_training(config, settings)
        except DocClassifierError as e:
            console.print(f"[bold red]Error:[/] {e}")
            sys.exit(1)

    if output == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _render_report(report)


@main.command()
@click.argument("model_name")
@click.option("--text", "-t", default=None, help="Text to classify (prompts interactively if omitted).")
@click.pass_obj
def classify(settings: Settings, model_name: str, text: Optional[str]) -> None:
    """Classify text with a saved model.

    Without --text, reads lines interactively until an empty line.

    Example: doc-classifier classify news --text "parliament passed the bill"
    """
    try:
        session = ClassificationSession.from_model(model_name, settings)
    except DocClassifierError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)

    if text is not None:
        _print_category(session.classify(text))
        return

    console.print(Panel(
        f"Model name: [bold]{model_name}[/]\n"
        f"Feature algorithm: {session.snapshot.feature_algorithm.value} | "
        f"Classifier: {session.snapshot.classifier.value}",
        title="📄 Document classifier",
        border_style="blue",
    ))
    while True:
        try:
            line = click.prompt("Text", default="", show_default=False)
        except (click.Abort, EOFError):
            break
        if not line.strip():
            break
        _print_category(session.classify(line))


def _print_category(category: Optional[str]) -> None:
    if category is None:
        console.print("Classified category: [dim]<none>[/]")
    else:
        console.print(f"Classified category: [bold green]{category}[/]")


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_report(report: TrainingReport) -> None:
    """Render a TrainingReport with rich formatting."""
    metrics = report.metrics
    console.print()
    console.print(Panel(
        f"[bold]{report.snapshot.name}[/] → {report.model_path}\n"
        f"Feature algorithm: {report.snapshot.feature_algorithm.value} | "
        f"Classifier: {report.snapshot.classifier.value} | "
        f"Training documents: {len(report.snapshot.training_set)}",
        title="📄 Training complete",
        border_style="blue",
    ))

    if metrics.per_class:
        table = Table(title="Per-category results", show_lines=False)
        table.add_column("Category", style="cyan")
        table.add_column("Precision", justify="right")
        table.add_column("Recall", justify="right")
        table.add_column("F1", justify="right")
        table.add_column("Support", justify="right")
        for name in sorted(metrics.per_class):
            m = metrics.per_class[name]
            table.add_row(
                name,
                f"{m['precision']:.4f}",
                f"{m['recall']:.4f}",
                f"{m['f1']:.4f}",
                str(metrics.support.get(name, 0)),
            )
        console.print(table)

    accuracy = metrics.accuracy
    if accuracy >= 0.8:
        style = "bold green"
    elif accuracy >= 0.5:
        style = "bold yellow"
    else:
        style = "bold red"

    console.print(f"Number of classified documents: {metrics.total}")
    console.print(f"Number of correctly classified documents: {metrics.correct}")
    console.print(f"Accuracy: [{style}]{accuracy:.2%}[/]")
    console.print()


if __name__ == "__main__":
    main()
