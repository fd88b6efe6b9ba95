"""Tests for the feature selector and the feature extraction algorithms."""

from __future__ import annotations

import math

import pytest
from conftest import make_document

from doc_classifier.features import (
    TFIDF,
    MutualInformation,
    TermBinary,
    TermFrequency,
    create_extractor,
    select_features,
    term_frequencies,
)
from doc_classifier.models import CategoryRegistry, Document, FeatureAlgorithm


# ---------------------------------------------------------------------------
# Feature Selector
# ---------------------------------------------------------------------------

class TestSelectFeatures:

    def test_descending_order_for_distinct_scores(self):
        scores = {"a": 0.1, "b": 0.9, "c": 0.5, "d": 0.7}
        assert select_features(scores, 3) == ["b", "d", "c"]

    def test_never_more_than_k(self):
        scores = {f"t{i}": float(i) for i in range(20)}
        assert len(select_features(scores, 5)) == 5

    def test_pool_exhausted_before_k(self):
        assert select_features({"x": 1.0, "y": 2.0}, 10) == ["y", "x"]

    def test_only_terms_from_input(self):
        scores = {"alpha": 3.0, "beta": 1.0, "gamma": 2.0}
        selected = select_features(scores, 2)
        assert set(selected) <= set(scores)

    def test_input_not_mutated(self):
        scores = {"a": 1.0, "b": 2.0}
        select_features(scores, 2)
        assert scores == {"a": 1.0, "b": 2.0}

    def test_zero_and_negative_k(self):
        assert select_features({"a": 1.0}, 0) == []
        assert select_features({"a": 1.0}, -3) == []

    def test_empty_pool(self):
        assert select_features({}, 3) == []


# ---------------------------------------------------------------------------
# Term Frequency
# ---------------------------------------------------------------------------

class TestTermFrequency:

    def test_relative_frequencies(self):
        doc = Document(content="a b a c")
        features = TermFrequency().create_features(doc)
        assert features == {"a": 0.5, "b": 0.25, "c": 0.25}
        assert doc.features == features

    @pytest.mark.parametrize("content", [
        "word",
        "one two three",
        "the ball the goal the match the end",
        "x  y   z x",
    ])
    def test_weights_sum_to_one(self, content):
        doc = Document(content=content)
        features = TermFrequency().create_features(doc)
        assert math.isclose(sum(features.values()), 1.0, rel_tol=1e-9)

    def test_empty_tokens_discarded(self):
        assert term_frequencies(["a", "", "a", "b", ""]) == {"a": 2 / 3, "b": 1 / 3}

    def test_empty_content_is_noop(self):
        doc = Document(content="")
        assert TermFrequency().create_features(doc) is None
        assert not doc.has_features

    def test_zero_feature_count_is_noop(self):
        doc = Document(content="a b c")
        assert TermFrequency(feature_count=0).create_features(doc) is None
        assert not doc.has_features

    def test_bounded_keeps_top_terms_in_rank_order(self):
        doc = Document(content="a a a b b c")
        features = TermFrequency(feature_count=2).create_features(doc)
        assert list(features) == ["a", "b"]
        assert features["a"] == pytest.approx(0.5)

    def test_negative_feature_count_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            TermFrequency(feature_count=-1)


# ---------------------------------------------------------------------------
# Binary
# ---------------------------------------------------------------------------

class TestTermBinary:

    def test_every_distinct_term_weighs_one(self):
        doc = Document(content="ball ball goal ball team")
        features = TermBinary().create_features(doc)
        assert features == {"ball": 1.0, "goal": 1.0, "team": 1.0}

    def test_absent_terms_not_present(self):
        doc = Document(content="ball goal")
        features = TermBinary().create_features(doc)
        assert "vote" not in features

    def test_bounded_keeps_first_terms(self):
        doc = Document(content="c b a c")
        features = TermBinary(feature_count=2).create_features(doc)
        assert list(features) == ["c", "b"]


# ---------------------------------------------------------------------------
# TF-IDF
# ---------------------------------------------------------------------------

class TestTFIDF:

    @pytest.fixture
    def corpus(self) -> list[Document]:
        return [
            Document(content="apple banana"),
            Document(content="apple cherry"),
            Document(content="apple date"),
            Document(content="banana fig"),
        ]

    def test_weight_formula(self, corpus):
        extractor = TFIDF(corpus)
        doc = Document(content="banana banana fig kiwi")
        features = extractor.create_features(doc)
        assert features["banana"] == pytest.approx(0.5 * math.log(4 / 3))
        assert features["fig"] == pytest.approx(0.25 * math.log(4 / 2))
        # Unseen term: df = 0, guarded by the +1
        assert features["kiwi"] == pytest.approx(0.25 * math.log(4 / 1))

    def test_non_increasing_in_document_frequency(self, corpus):
        extractor = TFIDF(corpus)
        doc = Document(content="apple banana fig kiwi")
        features = extractor.create_features(doc)
        # df: apple=3, banana=2, fig=1, kiwi=0; equal raw tf
        assert features["apple"] <= features["banana"] <= features["fig"] <= features["kiwi"]

    def test_document_frequency_uses_substring_containment(self):
        extractor = TFIDF([Document(content="cart"), Document(content="car")])
        assert extractor.document_frequency("car") == 2
        assert extractor.document_frequency("cart") == 1

    def test_empty_corpus_gives_zero_weights(self):
        features = TFIDF([]).create_features(Document(content="a b"))
        assert features == {"a": 0.0, "b": 0.0}

    def test_bounded_selection(self, corpus):
        features = TFIDF(corpus, feature_count=1).create_features(Document(content="apple kiwi"))
        assert list(features) == ["kiwi"]


# ---------------------------------------------------------------------------
# Mutual Information
# ---------------------------------------------------------------------------

class TestMutualInformation:

    def test_requires_feature_count(self, sports_politics_docs):
        with pytest.raises(ValueError, match="feature_count"):
            MutualInformation(sports_politics_docs)

    def test_selects_informative_terms(self, registry, sports_politics_docs):
        extractor = MutualInformation(sports_politics_docs, feature_count=2)
        doc = make_document(registry, "ball vote the", "sports")
        features = extractor.create_features(doc)
        assert len(features) <= 2
        assert "ball" in features
        assert all(w == 1.0 for w in features.values())

    def test_budget_split_across_categories(self, registry, sports_politics_docs):
        extractor = MutualInformation(sports_politics_docs, feature_count=3)
        doc = make_document(registry, "ball goal vote election minister coach", "sports", "politics")
        features = extractor.create_features(doc)
        # 3 // 2 == 1 feature per category, the remainder is dropped
        assert 1 <= len(features) <= 2

    def test_term_in_every_document_carries_no_information(self, registry, sports_politics_docs):
        docs = [make_document(registry, d.content + " common", *d.category_names) for d in sports_politics_docs]
        extractor = MutualInformation(docs, feature_count=5)
        value = extractor.term_information("common", registry.get("sports"))
        assert value == 0.0

    def test_zero_quadrants_stay_finite(self, registry, sports_politics_docs):
        extractor = MutualInformation(sports_politics_docs, feature_count=5)
        for term in ("ball", "vote", "unseen"):
            for category in registry:
                assert math.isfinite(extractor.term_information(term, category))

    def test_perfectly_separating_term_scores_one_bit(self):
        reg = CategoryRegistry()
        docs = [make_document(reg, "ball", "sports"), make_document(reg, "vote", "politics")]
        extractor = MutualInformation(docs, feature_count=4)
        assert extractor.term_information("ball", reg.get("sports")) == pytest.approx(1.0)

    def test_unlabeled_document_uses_corpus_categories(self, sports_politics_docs):
        extractor = MutualInformation(sports_politics_docs, feature_count=4)
        features = extractor.create_features(Document(content="ball vote"))
        assert set(features) == {"ball", "vote"}

    def test_empty_corpus_without_categories_selects_nothing(self):
        extractor = MutualInformation([], feature_count=4)
        features = extractor.create_features(Document(content="ball"))
        assert features == {}


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class TestCreateExtractor:

    @pytest.mark.parametrize("name,cls", [
        ("tf", TermFrequency),
        ("binary", TermBinary),
        ("tfidf", TFIDF),
    ])
    def test_by_name(self, name, cls):
        assert isinstance(create_extractor(name), cls)

    def test_mutual_information(self, sports_politics_docs):
        extractor = create_extractor(FeatureAlgorithm.MI, sports_politics_docs, feature_count=5)
        assert isinstance(extractor, MutualInformation)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            create_extractor("word2vec")

    def test_create_features_for_corpus(self, sports_politics_docs):
        create_extractor("tf").create_features_for(sports_politics_docs)
        assert all(doc.has_features for doc in sports_politics_docs)
