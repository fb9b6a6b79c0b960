"""Tests for placeholder grammar and resolution."""

import copy
import re

import pytest

from chunkwise.chunks import ChunkLedger
from chunkwise.placeholders import (
    InvalidPlaceholderPatternError,
    PlaceholderParser,
    PlaceholderResolver,
    StructureTooDeepError,
    compile_placeholder_pattern,
)


class TestPlaceholderSyntax:
    """Test pattern compilation."""

    def test_default_pattern(self):
        """Test the default pattern captures the digits."""
        pattern = compile_placeholder_pattern()
        assert pattern.fullmatch("$12").group(1) == "12"

    def test_compile_string_pattern(self):
        """Test compiling a custom pattern from source."""
        pattern = compile_placeholder_pattern(r"^\{id:(\d+)\}$")
        assert pattern.groups == 1

    def test_pattern_without_group_rejected(self):
        """Test a pattern with no capturing group is rejected."""
        with pytest.raises(InvalidPlaceholderPatternError):
            compile_placeholder_pattern(r"^\$\d+$")

    def test_pattern_with_two_groups_rejected(self):
        """Test a pattern with two capturing groups is rejected."""
        with pytest.raises(ValueError, match="exactly one capturing group"):
            PlaceholderParser(re.compile(r"^(\$)(\d+)$"))


class TestPlaceholderParser:
    """Test placeholder recognition and discovery."""

    def test_is_placeholder(self):
        """Test only whole-string matches are placeholders."""
        parser = PlaceholderParser()

        assert parser.is_placeholder("$1") is True
        assert parser.is_placeholder("$123") is True
        assert parser.is_placeholder("$") is False
        assert parser.is_placeholder("$abc") is False
        assert parser.is_placeholder("price: $1") is False
        assert parser.is_placeholder("$1 ") is False
        assert parser.is_placeholder("$1\n") is False
        assert parser.is_placeholder(1) is False
        assert parser.is_placeholder(None) is False
        assert parser.is_placeholder(["$1"]) is False

    def test_extract_identifier(self):
        """Test identifier extraction returns None instead of raising."""
        parser = PlaceholderParser()

        assert parser.extract_identifier("$42") == "42"
        assert parser.extract_identifier("$007") == "007"
        assert parser.extract_identifier("hello") is None
        assert parser.extract_identifier({"a": "$1"}) is None
        assert parser.extract_identifier(3.5) is None

    def test_find_all_identifiers(self):
        """Test identifiers are collected from every depth."""
        parser = PlaceholderParser()
        document = {
            "a": "$1",
            "b": [1, "$2", 3, ["$4"]],
            "c": {"d": "$1", "e": {"f": "$3"}},
            "$9": "keys are not placeholders",
        }

        assert parser.find_all_identifiers(document) == {"1", "2", "3", "4"}

    def test_find_identifiers_in_order(self):
        """Test first-seen ordering with duplicates removed."""
        parser = PlaceholderParser()
        document = {"a": "$2", "b": ["$1", "$2"], "c": "$3"}

        assert parser.find_identifiers_in_order(document) == ["2", "1", "3"]

    def test_find_in_scalar_and_tuple(self):
        """Test scalar documents and tuples are walked too."""
        parser = PlaceholderParser()

        assert parser.find_all_identifiers("$5") == {"5"}
        assert parser.find_all_identifiers(("$1", ("$2",))) == {"1", "2"}
        assert parser.find_all_identifiers(42) == set()

    def test_custom_pattern(self):
        """Test a custom pattern replaces the default grammar."""
        parser = PlaceholderParser(r"^\{id:(\d+)\}$")

        assert parser.is_placeholder("{id:123}") is True
        assert parser.is_placeholder("{id:abc}") is False
        assert parser.is_placeholder("prefix{id:123}") is False
        assert parser.is_placeholder("$123") is False
        assert parser.extract_identifier("{id:0}") == "0"

        data = {
            "user": "{id:123}",
            "posts": ["{id:456}", "{id:789}", "regular_string"],
            "nested": {"avatar": "{id:999}", "count": 42},
        }
        assert parser.find_all_identifiers(data) == {"123", "456", "789", "999"}

    def test_cyclic_document_fails_fast(self):
        """Test cyclic input raises instead of recursing forever."""
        parser = PlaceholderParser()
        document = {"a": "$1"}
        document["self"] = document

        with pytest.raises(StructureTooDeepError):
            parser.find_all_identifiers(document)

    def test_depth_limit(self):
        """Test the nesting limit is configurable."""
        parser = PlaceholderParser(max_depth=3)

        assert parser.find_all_identifiers([[["$1"]]]) == {"1"}
        with pytest.raises(StructureTooDeepError):
            parser.find_all_identifiers([[[["$1"]]]])

    def test_explicit_zero_depth(self):
        """Test a depth limit of zero is honoured rather than replaced."""
        parser = PlaceholderParser(max_depth=0)

        assert parser.max_depth == 0
        assert parser.find_all_identifiers("$1") == {"1"}
        with pytest.raises(StructureTooDeepError):
            parser.find_all_identifiers({"a": "$1"})


class TestPlaceholderResolver:
    """Test placeholder substitution."""

    def test_resolve_nested(self, resolver, ledger):
        """Test loaded placeholders are replaced at every depth."""
        document = {"a": "$1", "b": [1, "$2", 3], "c": {"d": "$1"}}
        ledger.resolve("1", "X")
        ledger.resolve("2", "Y")

        result = resolver.resolve_placeholders(document, ledger)

        assert result == {"a": "X", "b": [1, "Y", 3], "c": {"d": "X"}}

    def test_unresolved_document_unchanged(self, resolver, ledger):
        """Test nothing changes before any chunk arrives."""
        document = {"a": "$1", "b": [1, "$2", 3], "c": {"d": "$1"}}
        ledger.register("1")
        ledger.register("2")

        assert resolver.resolve_placeholders(document, ledger) == document

    def test_partial_resolution(self, resolver, ledger, nested_document):
        """Test unloaded placeholders pass through as strings."""
        for chunk_id in ("1", "2", "3"):
            ledger.register(chunk_id)
        ledger.resolve("1", "avatar_url.png")
        ledger.resolve("2", ["post1", "post2"])

        result = resolver.resolve_placeholders(nested_document, ledger)

        assert result["user"]["avatar"] == "avatar_url.png"
        assert result["user"]["posts"] == ["post1", "post2"]
        assert result["settings"]["notifications"] == "$3"

    def test_rejected_placeholder_passes_through(self, resolver, ledger):
        """Test a failed chunk leaves its placeholder in place."""
        ledger.register("1")
        ledger.reject("1", RuntimeError("boom"))

        assert resolver.resolve_placeholders({"a": "$1"}, ledger) == {"a": "$1"}

    def test_none_is_a_resolved_value(self, resolver, ledger):
        """Test a chunk resolved with None substitutes None."""
        ledger.resolve("1", None)

        assert resolver.resolve_placeholders({"a": "$1"}, ledger) == {"a": None}

    def test_input_not_mutated(self, resolver, ledger, nested_document):
        """Test the input document is left untouched."""
        original = copy.deepcopy(nested_document)
        ledger.resolve("1", "x")

        result = resolver.resolve_placeholders(nested_document, ledger)

        assert nested_document == original
        assert result is not nested_document
        assert result["settings"] is not nested_document["settings"]

    def test_keys_preserved_in_order(self, resolver, ledger):
        """Test mapping keys keep their text and order."""
        document = {"z": "$1", "$1": "key", "a": 1}
        ledger.resolve("1", "v")

        result = resolver.resolve_placeholders(document, ledger)

        assert list(result) == ["z", "$1", "a"]
        assert result["$1"] == "key"

    def test_scalar_document(self, resolver, ledger):
        """Test a bare placeholder resolves too."""
        ledger.resolve("7", {"deep": True})

        assert resolver.resolve_placeholders("$7", ledger) == {"deep": True}
        assert resolver.resolve_placeholders(3, ledger) == 3

    def test_custom_pattern_resolution(self, ledger):
        """Test resolution with a custom pattern."""
        resolver = PlaceholderResolver(r"^\{id:(\d+)\}$")
        ledger.resolve("1", "custom_avatar.png")

        result = resolver.resolve_placeholders({"avatar": "{id:1}", "other": "$1"}, ledger)

        assert result == {"avatar": "custom_avatar.png", "other": "$1"}


class TestResolverCache:
    """Test fingerprint-based result caching."""

    def test_repeated_calls_hit_cache(self, resolver, ledger, nested_document):
        """Test a second identical call is served from the cache."""
        ledger.resolve("1", "a.png")

        first = resolver.resolve_placeholders(nested_document, ledger)
        second = resolver.resolve_placeholders(nested_document, ledger)

        assert first == second
        info = resolver.cache_info()
        assert info.misses == 1
        assert info.hits == 1
        assert info.size == 1

    def test_new_chunk_invalidates(self, resolver, ledger, nested_document):
        """Test a newly loaded chunk is reflected by the next call."""
        ledger.resolve("1", "a.png")
        resolver.resolve_placeholders(nested_document, ledger)
        resolver.resolve_placeholders(nested_document, ledger)

        ledger.resolve("3", True)
        third = resolver.resolve_placeholders(nested_document, ledger)

        assert third["settings"]["notifications"] is True
        assert third["user"]["avatar"] == "a.png"
        assert resolver.cache_info().misses == 2

    def test_equal_content_shares_entry(self, resolver, ledger, nested_document):
        """Test the key depends on content, not object identity."""
        ledger.resolve("2", [])
        resolver.resolve_placeholders(nested_document, ledger)
        resolver.resolve_placeholders(copy.deepcopy(nested_document), ledger)

        assert resolver.cache_info().hits == 1

    def test_different_scalar_types_do_not_collide(self, resolver, ledger):
        """Test "1" and 1 produce different fingerprints."""
        assert resolver.fingerprint({"a": "1"}, ledger) != resolver.fingerprint({"a": 1}, ledger)
        assert resolver.fingerprint(["a", "b"], ledger) != resolver.fingerprint(["ab"], ledger)

    def test_cleared_ledger_is_not_served_stale(self, resolver, ledger):
        """Test refilling a cleared ledger with other data is not served stale."""
        document = {"a": "$1"}
        ledger.resolve("1", "old")
        assert resolver.resolve_placeholders(document, ledger) == {"a": "old"}

        ledger.clear()
        ledger.resolve("1", "new")

        assert resolver.resolve_placeholders(document, ledger) == {"a": "new"}

    def test_uncached_call_leaves_cache_alone(self, resolver, ledger, nested_document):
        """Test use_cache=False neither reads nor writes the cache."""
        ledger.resolve("1", "a.png")

        result = resolver.resolve_placeholders(nested_document, ledger, use_cache=False)

        assert result["user"]["avatar"] == "a.png"
        info = resolver.cache_info()
        assert info.size == 0
        assert info.hits == 0
        assert info.misses == 0

    def test_clear_cache(self, resolver, ledger, nested_document):
        """Test clear_cache empties the cache but keeps ledger state."""
        ledger.resolve("1", "a.png")
        resolver.resolve_placeholders(nested_document, ledger)

        resolver.clear_cache()

        assert resolver.cache_info().size == 0

    def test_mutating_result_does_not_affect_cache(self, resolver, ledger, nested_document):
        """Test a caller mutating a returned result cannot corrupt later calls."""
        document = {"a": "$1", "b": [1], "c": {"d": "$2"}}
        ledger.resolve("1", "X")

        first = resolver.resolve_placeholders(document, ledger)
        first["b"].append(99)
        first["c"]["d"] = "changed"
        first["new"] = True
        second = resolver.resolve_placeholders(document, ledger)

        assert second == {"a": "X", "b": [1], "c": {"d": "$2"}}
        assert resolver.cache_info().hits == 1

        second["b"].append(100)
        assert resolver.resolve_placeholders(copy.deepcopy(document), ledger)["b"] == [1]
        assert ledger.is_resolved("1")
        assert resolver.resolve_placeholders(nested_document, ledger)["user"]["avatar"] == "a.png"

    def test_cache_is_bounded(self, ledger):
        """Test the least recently used entry is evicted."""
        resolver = PlaceholderResolver(cache_size=2)

        for i in range(3):
            resolver.resolve_placeholders({"i": i}, ledger)

        assert resolver.cache_info().size == 2
        assert resolver.cache_info().max_size == 2

    def test_cache_disabled(self, ledger):
        """Test a zero-size cache never stores results."""
        resolver = PlaceholderResolver(cache_size=0)
        resolver.resolve_placeholders({"a": "$1"}, ledger)

        assert resolver.cache_info().size == 0

    def test_cyclic_document_fails_fast(self, resolver, ledger):
        """Test resolution of a cyclic document raises."""
        document = []
        document.append(document)

        with pytest.raises(StructureTooDeepError):
            resolver.resolve_placeholders(document, ledger)
        with pytest.raises(StructureTooDeepError):
            resolver.resolve_placeholders(document, ledger, use_cache=False)
