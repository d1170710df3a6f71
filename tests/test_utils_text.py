"""Tests for the shared tokenizer."""

from __future__ import annotations

from pkgsearch.utils.text import STOP_WORDS, iter_tokens, tokenize


class TestTokenize:
    """Test tokenize and iter_tokens."""

    def test_empty_text(self) -> None:
        """Should return no tokens for empty text."""
        assert tokenize("") == []
        assert list(iter_tokens("")) == []

    def test_case_folding(self) -> None:
        """Should lowercase every token."""
        assert tokenize("HTTP Client") == ["http", "client"]

    def test_splits_on_whitespace_and_punctuation(self) -> None:
        """Should split on spaces, commas and trailing periods."""
        assert tokenize("client, server; proxy.") == ["client", "server", "proxy"]

    def test_keeps_paths_together(self) -> None:
        """Should keep slash, dot and dash joined words as one token."""
        assert tokenize("see golang.org/x/net and net/http") == ["see", "golang.org/x/net", "net/http"]
        assert tokenize("go-cmp") == ["go-cmp"]

    def test_keeps_tilde_and_plus_in_paths(self) -> None:
        """Should keep characters that are legal in path segments."""
        assert tokenize("example.com/a+b/pkg~x") == ["example.com/a+b/pkg~x"]
        assert tokenize("pkg~x a+b") == ["pkg~x", "a+b"]

    def test_drops_stop_words(self) -> None:
        """Should drop common English stop words."""
        assert tokenize("the client and the server") == ["client", "server"]
        assert "the" in STOP_WORDS

    def test_deduplicates_preserving_order(self) -> None:
        """Should keep the first occurrence of each token."""
        assert tokenize("json yaml JSON toml yaml") == ["json", "yaml", "toml"]

    def test_iter_tokens_keeps_duplicates(self) -> None:
        """iter_tokens yields every occurrence."""
        assert list(iter_tokens("json JSON")) == ["json", "json"]
