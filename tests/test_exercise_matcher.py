"""
Tests for ExerciseMatcher: caching, batch matching, annotation and entry creation.
"""
import asyncio
import copy
from unittest.mock import patch

import pytest

from exercise_matcher.cache import TTLCache
from exercise_matcher.canonicalizer import AliasTable
from exercise_matcher.catalog_source import InMemoryCatalogSource
from exercise_matcher.config import MatcherConfig
from exercise_matcher.models import ImportedExercise
from exercise_matcher.resolution import ExerciseMatcher, similarity, slugify
from tests.conftest import single_name_rows
from tests.test_cache import FakeClock


class TestConcreteScenario:
    """Bench Press / Panca Piana catalog with a single entry."""

    def test_exact_italian_name(self, scenario_matcher):
        result = asyncio.run(scenario_matcher.match_one("panca piana", "it", 0.7))

        assert result.found is True
        assert result.matched_id == "ex1"
        assert result.matched_name == "Panca Piana"
        assert result.matched_slug == "bench-press"
        assert result.confidence == 1.0
        assert result.match_method == "exact"

    def test_missing_letter(self, scenario_matcher):
        result = asyncio.run(scenario_matcher.match_one("panca pian", "it", 0.7))

        assert result.found is True
        assert result.matched_id == "ex1"
        assert result.match_method in ("ngram", "fuzzy")
        assert 0.7 <= result.confidence < 1.0

    def test_garbage(self, scenario_matcher):
        result = asyncio.run(scenario_matcher.match_one("xyz123", "it", 0.7))

        assert result.found is False
        assert result.matched_id is None
        assert result.confidence < 0.7
        assert result.match_method == "none"


class TestMatchOne:
    """Tests for ExerciseMatcher.match_one."""

    def test_alias_resolution(self):
        source = InMemoryCatalogSource(single_name_rows("Bench Press"))
        matcher = ExerciseMatcher(source)

        result = asyncio.run(matcher.match_one("panca piana", "en", 0.7))

        assert result.found is True
        assert result.matched_name == "Bench Press"
        assert result.confidence == 0.95
        assert result.match_method == "alias"

    def test_exact_takes_precedence(self, matcher):
        """Test that exact matches skip the later stages entirely."""
        with patch("exercise_matcher.resolution.fuzzy_matcher.similarity") as fuzzy:
            result = asyncio.run(matcher.match_one("Bench-Press", "en"))

        fuzzy.assert_not_called()
        assert result.confidence == 1.0
        assert result.match_method == "exact"
        assert result.suggestions == ()

    def test_repeated_call_served_from_cache(self, matcher, source):
        """Test that the second call returns an identical result without recomputing."""
        first = asyncio.run(matcher.match_one("panca pian", "it"))

        with patch.object(matcher._policy, "resolve") as resolve:
            second = asyncio.run(matcher.match_one("panca pian", "it"))

        resolve.assert_not_called()
        assert second == first
        assert source.fetch_count == 1

    def test_cache_hit_keeps_callers_spelling(self, matcher):
        asyncio.run(matcher.match_one("Panca Piana", "it"))

        result = asyncio.run(matcher.match_one("PANCA-PIANA", "it"))

        assert result.original_query == "PANCA-PIANA"
        assert result.matched_id == "ex1"

    def test_threshold_boundary(self, scenario_matcher):
        best = asyncio.run(scenario_matcher.match_one("panca pian", "it", 0.7)).confidence

        at_threshold = asyncio.run(scenario_matcher.match_one("panca pian", "it", best))
        above = asyncio.run(scenario_matcher.match_one("panca pian", "it", min(1.0, best + 0.01)))

        assert at_threshold.found is True
        assert at_threshold.confidence == best
        assert above.found is False
        assert above.confidence == best
        assert above.suggestions[0].id == "ex1"

    def test_found_iff_confidence_reaches_threshold(self, matcher):
        queries = ["Bench Press", "panca", "panca pian", "lateral rase", "sqaut", "xyz123", "stacco terra"]
        for threshold in (0.5, 0.7, 0.9):
            for query in queries:
                result = asyncio.run(matcher.match_one(query, "en", threshold))
                assert result.found == (result.confidence >= threshold), (query, threshold)

    def test_empty_query(self, matcher, source):
        result = asyncio.run(matcher.match_one("   ", "en"))

        assert result.found is False
        assert result.confidence == 0.0
        assert result.suggestions == ()
        assert source.fetch_count == 0

    def test_stop_words_only_query(self, matcher):
        result = asyncio.run(matcher.match_one("the", "en"))

        assert result.found is False
        assert result.confidence == 0.0

    def test_phonetic_fallback(self):
        matcher = ExerciseMatcher(InMemoryCatalogSource(single_name_rows("Pullover", "Bench Press")))

        result = asyncio.run(matcher.match_one("plvr", "en", 0.75))

        assert result.found is True
        assert result.matched_name == "Pullover"
        assert result.confidence == 0.75
        assert result.match_method == "phonetic"

    def test_not_found_returns_suggestions(self, matcher):
        result = asyncio.run(matcher.match_one("lateral rase", "en", 0.95))
        confidences = [s.confidence for s in result.suggestions]

        assert result.found is False
        assert 0 < len(result.suggestions) <= 5
        assert result.suggestions[0].name == "Lateral Raise"
        assert result.confidence == result.suggestions[0].confidence
        assert confidences == sorted(confidences, reverse=True)

    def test_search_term_match_is_weighted(self, matcher):
        found = asyncio.run(matcher.match_one("conventional deadlift", "en", 0.7))
        strict = asyncio.run(matcher.match_one("conventional deadlift", "en", 0.95))

        assert found.found is True
        assert found.matched_name == "Deadlift"
        assert found.match_method == "fuzzy"
        assert found.confidence == pytest.approx(0.9)
        assert strict.found is False
        assert strict.confidence == pytest.approx(0.9)

    def test_ties_resolved_by_exercise_id(self):
        rows = [
            {"id": "b", "slug": "plank-b", "translations": [{"locale": "en", "name": "Plank"}]},
            {"id": "a", "slug": "plank-a", "translations": [{"locale": "en", "name": "Plank"}]},
        ]
        matcher = ExerciseMatcher(InMemoryCatalogSource(rows))

        result = asyncio.run(matcher.match_one("plank"))

        assert result.matched_id == "a"

    def test_empty_alias_table_disables_alias_stage(self, source):
        matcher = ExerciseMatcher(source, aliases=AliasTable({}))

        result = asyncio.run(matcher.match_one("panca", "en"))

        assert result.match_method != "alias"

    def test_defaults_from_config(self, source):
        matcher = ExerciseMatcher(source, MatcherConfig(default_locale="it", match_threshold=0.99))

        result = asyncio.run(matcher.match_one("panca pian"))

        assert result.found is False

    @pytest.mark.parametrize("threshold", [-0.1, 0.0, 1.5])
    def test_invalid_threshold(self, matcher, threshold):
        with pytest.raises(ValueError):
            asyncio.run(matcher.match_one("squat", "en", threshold))

    def test_zero_threshold_rejected_before_empty_query_shortcut(self, matcher, source):
        """Test that a blank query cannot come back as not found at threshold 0."""
        with pytest.raises(ValueError):
            asyncio.run(matcher.match_one("   ", "en", 0.0))

        with pytest.raises(ValueError):
            ExerciseMatcher(source, MatcherConfig(match_threshold=0.0))

    def test_candidate_work_bounded_by_shortlist(self):
        """Test that a large catalog only gets edit distance on the n-gram shortlist."""
        names = [f"Cable Exercise Number {i}" for i in range(200)]
        matcher = ExerciseMatcher(InMemoryCatalogSource(single_name_rows(*names)))

        with patch("exercise_matcher.resolution.fuzzy_matcher.similarity", wraps=similarity) as spy:
            result = asyncio.run(matcher.match_one("cable exercise numbr 42", "en"))

        assert result.found is True
        assert result.matched_name == "Cable Exercise Number 42"
        assert spy.call_count <= 50


class TestCacheExpiry:
    """Tests for TTL behaviour of the injected caches."""

    def test_match_result_expires(self, source):
        clock = FakeClock()
        matcher = ExerciseMatcher(source, match_cache=TTLCache(100, 300, clock=clock))
        asyncio.run(matcher.match_one("panca pian", "it"))

        clock.advance(301)
        with patch.object(matcher._policy, "resolve", wraps=matcher._policy.resolve) as resolve:
            asyncio.run(matcher.match_one("panca pian", "it"))

        assert resolve.call_count == 1

    def test_catalog_and_index_expire(self, source):
        clock = FakeClock()
        matcher = ExerciseMatcher(
            source,
            catalog_cache=TTLCache(10, 1800, clock=clock),
            index_cache=TTLCache(5, 1800, clock=clock),
            match_cache=TTLCache(100, 300, clock=clock),
        )
        asyncio.run(matcher.match_one("squat", "en"))
        clock.advance(600)
        asyncio.run(matcher.match_one("deadlift", "en"))
        assert source.fetch_count == 1

        clock.advance(1300)
        asyncio.run(matcher.match_one("lateral raise", "en"))
        assert source.fetch_count == 2

    def test_catalog_cached_per_locale(self, matcher, source):
        asyncio.run(matcher.match_one("squat", "en"))
        asyncio.run(matcher.match_one("squat", "it"))
        asyncio.run(matcher.match_one("deadlift", "it"))

        assert source.fetch_count == 2


class TestMatchBatch:
    """Tests for ExerciseMatcher.match_batch."""

    def test_variants_resolved_once(self, matcher):
        """Test that names normalizing to the same query share one pipeline run."""
        with patch.object(matcher._policy, "resolve", wraps=matcher._policy.resolve) as resolve:
            results = asyncio.run(matcher.match_batch(["Squat", "squat", "SQUAT "], "en"))

        assert resolve.call_count == 1
        assert list(results) == ["Squat", "squat", "SQUAT "]
        assert {r.matched_id for r in results.values()} == {"ex2"}
        assert {r.confidence for r in results.values()} == {0.95}
        assert results["SQUAT "].original_query == "SQUAT "

    def test_duplicates_collapse(self, matcher):
        results = asyncio.run(matcher.match_batch(["Deadlift", "Deadlift", "Panca Piana"], "it"))

        assert list(results) == ["Deadlift", "Panca Piana"]

    def test_prewarms_catalog_once(self, matcher, source):
        names = [f"exercise {i}" for i in range(25)]

        asyncio.run(matcher.match_batch(names, "en"))

        assert source.fetch_count == 1

    def test_concurrency_bounded_by_window(self, source):
        matcher = ExerciseMatcher(source, MatcherConfig(batch_concurrency=10))
        original = matcher.match_one
        in_flight = 0
        peak = 0

        async def tracking(name, locale=None, threshold=None):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            try:
                return await original(name, locale, threshold)
            finally:
                in_flight -= 1

        matcher.match_one = tracking
        results = asyncio.run(matcher.match_batch([f"exercise {i}" for i in range(25)], "en"))

        assert len(results) == 25
        assert peak == 10

    def test_empty_batch(self, matcher):
        assert asyncio.run(matcher.match_batch([], "en")) == {}

    def test_invalid_concurrency(self, source):
        with pytest.raises(ValueError):
            ExerciseMatcher(source, MatcherConfig(batch_concurrency=0))


class TestApplyMatches:
    """Tests for ExerciseMatcher.apply_matches."""

    def test_annotates_records(self, matcher):
        records = [
            {"name": "Panca Piana", "sets": 3},
            {"name": "xyz123"},
            ImportedExercise(name="Panca Piana"),
            {"name": "never matched"},
        ]
        matches = asyncio.run(matcher.match_batch(["Panca Piana", "xyz123"], "it"))

        annotated = matcher.apply_matches(records, matches)

        assert annotated[0].catalog_id == "ex1"
        assert annotated[0].match_confidence == 1.0
        assert annotated[0].not_found is False
        assert annotated[0].sets == 3

        assert annotated[1].catalog_id is None
        assert annotated[1].not_found is True
        assert annotated[1].match_confidence == matches["xyz123"].confidence

        assert annotated[2].catalog_id == "ex1"

        assert annotated[3].not_found is True
        assert annotated[3].catalog_id is None

    def test_input_records_not_mutated(self, matcher):
        record = ImportedExercise(name="Panca Piana")
        matches = asyncio.run(matcher.match_batch(["Panca Piana"], "it"))

        matcher.apply_matches([record], matches)

        assert record.catalog_id is None


class TestCreateMissingExercise:
    """Tests for entry creation and cache invalidation."""

    def test_returns_existing_id_for_near_duplicate(self, matcher, source):
        exercise_id = asyncio.run(matcher.create_missing_exercise("Panca Piana", "it", "user-1"))

        assert exercise_id == "ex1"
        assert len(source.rows) == 4

    def test_creates_pending_entry(self, source):
        matcher = ExerciseMatcher(source, id_factory=lambda: "new-1")

        exercise_id = asyncio.run(matcher.create_missing_exercise(" Zercher Carry ", "en", "user-1"))

        row = source.rows[-1]
        assert exercise_id == "new-1"
        assert row["id"] == "new-1"
        assert row["status"] == "pending"
        assert row["createdBy"] == "user-1"
        assert row["slug"].startswith("imported-zercher-carry-")
        assert row["translations"][0]["locale"] == "en"
        assert row["translations"][0]["name"] == "Zercher Carry"
        assert list(row["translations"][0]["searchTerms"]) == ["zercher carry"]

    def test_new_entry_visible_after_creation(self, source):
        matcher = ExerciseMatcher(source, id_factory=lambda: "new-1")
        before = asyncio.run(matcher.match_one("Zercher Carry", "en"))

        asyncio.run(matcher.create_missing_exercise("Zercher Carry", "en", "user-1"))
        after = asyncio.run(matcher.match_one("Zercher Carry", "en"))

        assert before.found is False
        assert after.found is True
        assert after.matched_id == "new-1"
        assert after.match_method == "exact"

    def test_second_creation_reuses_entry(self, source):
        ids = iter(["new-1", "new-2"])
        matcher = ExerciseMatcher(source, id_factory=lambda: next(ids))

        first = asyncio.run(matcher.create_missing_exercise("Zercher Carry", "en", "user-1"))
        second = asyncio.run(matcher.create_missing_exercise("zercher-carry", "en", "user-2"))

        assert first == second == "new-1"
        assert len(source.rows) == 5

    def test_empty_name_rejected(self, matcher):
        with pytest.raises(ValueError):
            asyncio.run(matcher.create_missing_exercise("  ", "en", "user-1"))

    def test_bulk_creation_collects_failures(self, catalog_rows):
        class FlakySource(InMemoryCatalogSource):
            async def create_entry(self, entry):
                if "fail" in entry.translations[0].name.lower():
                    raise RuntimeError("write rejected")
                await super().create_entry(entry)

        source = FlakySource(copy.deepcopy(catalog_rows))
        matcher = ExerciseMatcher(source)

        created, warnings = asyncio.run(matcher.create_missing_exercises(
            ["Zercher Carry", "Fail Press", "Zercher Carry"], "en", "user-1"
        ))

        assert list(created) == ["Zercher Carry"]
        assert len(warnings) == 1
        assert "Fail Press" in warnings[0]


class TestInvalidateCache:
    """Tests for ExerciseMatcher.invalidate_cache."""

    def test_clears_all_layers(self, matcher, source):
        asyncio.run(matcher.match_one("squat", "en"))

        matcher.invalidate_cache()
        with patch.object(matcher._policy, "resolve", wraps=matcher._policy.resolve) as resolve:
            asyncio.run(matcher.match_one("squat", "en"))

        assert resolve.call_count == 1
        assert source.fetch_count == 2

    def test_fetch_in_flight_does_not_repopulate_caches(self, catalog_rows):
        """Test that a lookup started before invalidation leaves every cache empty."""

        class GatedSource(InMemoryCatalogSource):
            started = None
            release = None

            async def fetch_approved(self, locale):
                rows = await super().fetch_approved(locale)
                if not self.release.is_set():
                    self.started.set()
                    await self.release.wait()
                return rows

        source = GatedSource(catalog_rows)
        catalog_cache, index_cache, match_cache = TTLCache(10, 60), TTLCache(10, 60), TTLCache(10, 60)
        matcher = ExerciseMatcher(
            source,
            catalog_cache=catalog_cache,
            index_cache=index_cache,
            match_cache=match_cache,
        )

        async def run():
            source.started = asyncio.Event()
            source.release = asyncio.Event()
            task = asyncio.create_task(matcher.match_one("bench press", "en"))
            await source.started.wait()
            matcher.invalidate_cache()
            source.release.set()
            return await task

        result = asyncio.run(run())

        assert result.found is True
        assert len(catalog_cache) == 0
        assert len(index_cache) == 0
        assert len(match_cache) == 0

        asyncio.run(matcher.match_one("bench press", "en"))

        assert source.fetch_count == 2
        assert len(match_cache) == 1

    def test_instances_do_not_share_caches(self, catalog_rows):
        first_source = InMemoryCatalogSource(catalog_rows)
        second_source = InMemoryCatalogSource(single_name_rows("Zercher Carry"))
        first = ExerciseMatcher(first_source)
        second = ExerciseMatcher(second_source)

        a = asyncio.run(first.match_one("Zercher Carry", "en"))
        b = asyncio.run(second.match_one("Zercher Carry", "en"))

        assert a.found is False
        assert b.found is True


def test_slugify():
    assert slugify("Panca Piàna 45°") == "panca-piana-45"
    assert slugify("  --  ") == "exercise"
