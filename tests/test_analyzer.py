"""Tests for the shared text analyzer."""

from site_search_index.analyzer import Analyzer, stem


def test_terms_lowercase_and_stem() -> None:
    """Test that terms are lower-cased and stemmed."""
    analyzer = Analyzer()
    assert analyzer.terms("Order Tracking — First Steps") == ["order", "track", "first", "step"]


def test_terms_without_stemming() -> None:
    """Test that stemming can be disabled."""
    analyzer = Analyzer(stemming=False)
    assert analyzer.terms("Order Tracking — First Steps") == ["order", "tracking", "first", "steps"]


def test_hyphenated_tags_split() -> None:
    """Test that hyphenated tags produce one term per part."""
    assert Analyzer(stemming=False).terms("order-tracking spring-boot") == ["order", "tracking", "spring", "boot"]


def test_stopwords_are_kept() -> None:
    """Test that short function words stay searchable."""
    assert Analyzer().terms("Welcome to the Blog") == ["welcome", "to", "the", "blog"]


def test_positions_follow_token_order() -> None:
    """Test that token positions count words in order."""
    tokens = list(Analyzer().tokens("My Portfolio, my rules"))
    assert [token.position for token in tokens] == [0, 1, 2, 3]
    assert tokens[0].text == tokens[2].text == "my"


def test_unicode_is_normalised() -> None:
    """Test NFKC normalisation of compatibility characters."""
    assert Analyzer(stemming=False).terms("Ｃａｆé") == ["café"]


def test_punctuation_only_has_no_terms() -> None:
    """Test that text without words yields no terms."""
    assert Analyzer().terms("— !!! ...") == []


def test_stem_keeps_short_words() -> None:
    """Test that stemming never shortens a word below three characters."""
    assert stem("is") == "is"
    assert stem("its") == "its"
    assert stem("process") == "process"
    assert stem("orders") == "order"


def test_analyzer_round_trips_settings() -> None:
    """Test that analyzer settings survive serialization."""
    analyzer = Analyzer(stemming=False)
    assert Analyzer.from_dict(analyzer.to_dict()) == analyzer
