import copy

import pytest

from exercise_matcher.catalog_source import InMemoryCatalogSource
from exercise_matcher.models import CatalogEntry
from exercise_matcher.resolution import ExerciseMatcher, MatchContext, build_ngram_index
from exercise_matcher.canonicalizer import normalize


BILINGUAL_ROWS = [
    {
        "id": "ex1",
        "slug": "bench-press",
        "translations": [
            {"locale": "en", "name": "Bench Press", "searchTerms": []},
            {"locale": "it", "name": "Panca Piana", "searchTerms": []},
        ],
    },
    {
        "id": "ex2",
        "slug": "back-squat",
        "translations": [
            {"locale": "en", "name": "Back Squat", "searchTerms": ["squat"]},
            {"locale": "it", "name": "Squat con Bilanciere", "searchTerms": []},
        ],
    },
    {
        "id": "ex3",
        "slug": "deadlift",
        "translations": [
            {"locale": "en", "name": "Deadlift", "searchTerms": ["conventional deadlift"]},
            {"locale": "it", "name": "Stacco da Terra", "searchTerms": ["stacco"]},
        ],
    },
    {
        "id": "ex4",
        "slug": "lateral-raise",
        "translations": [
            {"locale": "en", "name": "Lateral Raise", "searchTerms": []},
            {"locale": "it", "name": "Alzate Laterali", "searchTerms": None},
        ],
    },
]

SCENARIO_ROWS = [
    {
        "id": "ex1",
        "slug": "bench-press",
        "translations": [
            {"locale": "en", "name": "Bench Press", "searchTerms": []},
            {"locale": "it", "name": "Panca Piana", "searchTerms": []},
        ],
    },
]


@pytest.fixture
def catalog_rows():
    """Small bilingual catalog."""
    return copy.deepcopy(BILINGUAL_ROWS)


@pytest.fixture
def source(catalog_rows):
    return InMemoryCatalogSource(catalog_rows)


@pytest.fixture
def matcher(source):
    return ExerciseMatcher(source)


@pytest.fixture
def scenario_matcher():
    """Matcher over the single-entry Bench Press / Panca Piana catalog."""
    return ExerciseMatcher(InMemoryCatalogSource(copy.deepcopy(SCENARIO_ROWS)))


@pytest.fixture
def make_context():
    """Build a MatchContext over the given rows (bilingual catalog by default)."""
    def _make(query, threshold=0.7, rows=None, locale="en"):
        entries = [CatalogEntry.model_validate(r) for r in (rows or BILINGUAL_ROWS)]
        return MatchContext(
            original_query=query,
            normalized_query=normalize(query),
            locale=locale,
            threshold=threshold,
            index=build_ngram_index(sorted(entries, key=lambda e: e.id)),
        )
    return _make


def single_name_rows(*names):
    """One catalog entry per name, ids ex0, ex1, ..."""
    return [
        {
            "id": f"ex{i}",
            "slug": f"slug-{i}",
            "translations": [{"locale": "en", "name": name, "searchTerms": []}],
        }
        for i, name in enumerate(names)
    ]


@pytest.fixture
def rows_for():
    return single_name_rows
