"""Tests for the click command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from doc_classifier.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    return {"DOC_CLASSIFIER_MODEL_DIR": str(tmp_path / "models")}


def train_args(corpus_dirs, algorithm="tf", classifier="bayes", model_name="news"):
    return [
        "train",
        str(corpus_dirs["categories"]),
        str(corpus_dirs["train"]),
        str(corpus_dirs["test"]),
        algorithm,
        classifier,
        model_name,
    ]


class TestTrainCommand:

    def test_rich_report(self, runner, env, corpus_dirs, tmp_path):
        result = runner.invoke(main, train_args(corpus_dirs), env=env)
        assert result.exit_code == 0, result.output
        assert "Number of classified documents: 2" in result.output
        assert "Number of correctly classified documents: 2" in result.output
        assert "Accuracy: 100.00%" in result.output
        assert (tmp_path / "models" / "news.model").is_file()

    def test_json_output(self, runner, env, corpus_dirs):
        result = runner.invoke(main, train_args(corpus_dirs, "binary", "knn") + ["--output", "json"], env=env)
        assert result.exit_code == 0, result.output
        stdout = result.stdout
        data = json.loads(stdout[stdout.index("{"):])
        assert data["model"] == "news"
        assert data["feature_algorithm"] == "binary"
        assert data["classifier"] == "knn"
        assert data["total"] == 2
        assert data["accuracy"] == 1.0

    def test_unknown_classifier(self, runner, env, corpus_dirs, tmp_path):
        result = runner.invoke(main, train_args(corpus_dirs, classifier="svm"), env=env)
        assert result.exit_code == 1
        assert "No classifier with this name found" in result.output
        assert not (tmp_path / "models").exists()

    def test_unknown_feature_algorithm(self, runner, env, corpus_dirs):
        result = runner.invoke(main, train_args(corpus_dirs, algorithm="lsa"), env=env)
        assert result.exit_code == 1
        assert "No feature algorithm with this name found" in result.output

    def test_missing_arguments(self, runner, env):
        result = runner.invoke(main, ["train", "categories.txt"], env=env)
        assert result.exit_code == 2

    @pytest.mark.parametrize("variable,value,message", [
        ("DOC_CLASSIFIER_KNN_K", "zero", "must be an integer"),
        ("DOC_CLASSIFIER_LOG_LEVEL", "loud", "must be a logging level name"),
    ])
    def test_invalid_environment(self, runner, corpus_dirs, variable, value, message):
        result = runner.invoke(main, train_args(corpus_dirs), env={variable: value})
        assert result.exit_code == 1
        assert message in result.output

    def test_unwritable_model_dir(self, runner, corpus_dirs, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        env = {"DOC_CLASSIFIER_MODEL_DIR": str(blocker / "models")}
        result = runner.invoke(main, train_args(corpus_dirs), env=env)
        assert result.exit_code == 1
        assert "Model could not be saved" in result.output


class TestClassifyCommand:

    @pytest.fixture
    def trained(self, runner, env, corpus_dirs):
        result = runner.invoke(main, train_args(corpus_dirs), env=env)
        assert result.exit_code == 0, result.output

    def test_text_option(self, runner, env, trained):
        result = runner.invoke(main, ["classify", "news", "--text", "Ball!"], env=env)
        assert result.exit_code == 0, result.output
        assert "Classified category: sports" in result.output

    def test_text_without_features(self, runner, env, trained):
        result = runner.invoke(main, ["classify", "news", "-t", "42"], env=env)
        assert result.exit_code == 0
        assert "Classified category: <none>" in result.output

    def test_interactive_until_empty_line(self, runner, env, trained):
        result = runner.invoke(main, ["classify", "news"], input="ball\nvote vote\n\nball\n", env=env)
        assert result.exit_code == 0, result.output
        assert result.output.count("Classified category:") == 2
        assert "Classified category: sports" in result.output
        assert "Classified category: politics" in result.output

    def test_interactive_end_of_input(self, runner, env, trained):
        result = runner.invoke(main, ["classify", "news"], input="vote\n", env=env)
        assert result.exit_code == 0, result.output
        assert "Classified category: politics" in result.output

    def test_missing_model(self, runner, env):
        result = runner.invoke(main, ["classify", "ghost", "--text", "ball"], env=env)
        assert result.exit_code == 1
        assert "Model not found" in result.output
