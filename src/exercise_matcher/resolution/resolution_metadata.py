"""
Import review metadata built from match results.

Used by import pipelines to decide whether a human has to review the
unmatched names before the workout is saved.
"""
from typing import Dict, Iterable, List, Mapping

from ..models import ImportedExercise
from ..schemas import MatchResult, MatchSummary, UnmatchedExercise


def summarize_matches(
    records: Iterable[ImportedExercise],
    matches: Mapping[str, MatchResult],
) -> MatchSummary:
    """
    Count matched/unmatched records and collect suggestions for the unmatched.

    :param records: Records annotated by ExerciseMatcher.apply_matches
    :param matches: Results from ExerciseMatcher.match_batch
    :return: MatchSummary with unique unmatched names in first-seen order
    """
    matched_count = 0
    unmatched_count = 0
    unmatched: Dict[str, UnmatchedExercise] = {}

    for record in records:
        if not record.not_found:
            matched_count += 1
            continue

        unmatched_count += 1
        if record.name not in unmatched:
            match = matches.get(record.name)
            suggestions = list(match.suggestions) if match else []
            unmatched[record.name] = UnmatchedExercise(name=record.name, suggestions=suggestions)

    return MatchSummary(
        matched_count=matched_count,
        unmatched_count=unmatched_count,
        unmatched=list(unmatched.values()),
    )


def summary_to_dict(summary: MatchSummary) -> dict:
    """Convert to dictionary for serialization."""
    unmatched: List[dict] = [
        {
            "name": item.name,
            "suggestions": [s.to_dict() for s in item.suggestions],
        }
        for item in summary.unmatched
    ]
    return {
        "matchedExercises": summary.matched_count,
        "unmatchedExercises": summary.unmatched_count,
        "needsReview": summary.needs_review,
        "unmatched": unmatched,
    }
