"""
Core abstractions for exercise name resolution.

Defines the strategy protocol, the scored candidate type and the per-query
context the strategies share.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from ..schemas import MatchMethod, Suggestion
from .ngram_index import NgramIndex, NgramIndexEntry


@dataclass(frozen=True)
class ScoredCandidate:
    """
    A catalog translation with the confidence one strategy gave it.

    Attributes:
        exercise_id: Catalog id
        name: Translation display name
        slug: Catalog slug
        confidence: Score between 0.0 and 1.0
        method: Strategy that produced the score
    """
    exercise_id: str
    name: str
    slug: str
    confidence: float
    method: MatchMethod

    @classmethod
    def from_entry(cls, entry: NgramIndexEntry, confidence: float, method: MatchMethod) -> "ScoredCandidate":
        return cls(
            exercise_id=entry.exercise_id,
            name=entry.name,
            slug=entry.slug,
            confidence=min(1.0, max(0.0, confidence)),
            method=method,
        )

    @property
    def key(self) -> Tuple[str, str]:
        return (self.exercise_id, self.name)

    def to_suggestion(self) -> Suggestion:
        return Suggestion(
            id=self.exercise_id,
            name=self.name,
            slug=self.slug,
            confidence=self.confidence,
        )


@dataclass
class MatchContext:
    """
    Working state of one pipeline execution.

    Strategies read the query and index from here and append the candidates
    they scored, so later stages and the final suggestions see them.
    """
    original_query: str
    normalized_query: str
    locale: str
    threshold: float
    index: NgramIndex
    candidates: List[ScoredCandidate] = field(default_factory=list)
    _keys: Set[Tuple[str, str]] = field(default_factory=set, init=False, repr=False)
    _exercise_ids: Set[str] = field(default_factory=set, init=False, repr=False)

    def add_candidate(self, candidate: ScoredCandidate) -> bool:
        """Record a candidate unless that translation was already scored."""
        if candidate.key in self._keys:
            return False
        self.candidates.append(candidate)
        self._keys.add(candidate.key)
        self._exercise_ids.add(candidate.exercise_id)
        return True

    def has_candidate(self, exercise_id: str, name: str) -> bool:
        return (exercise_id, name) in self._keys

    def has_exercise(self, exercise_id: str) -> bool:
        return exercise_id in self._exercise_ids

    def ranked_candidates(self) -> List[ScoredCandidate]:
        """Candidates best first; equal scores ordered by exercise id, then name."""
        return sorted(self.candidates, key=lambda c: (-c.confidence, c.exercise_id, c.name))

    def best_candidate(self) -> Optional[ScoredCandidate]:
        ranked = self.ranked_candidates()
        return ranked[0] if ranked else None


class MatchStrategy(ABC):
    """
    One stage of the resolution pipeline.

    A strategy scores what it can, records its candidates on the context and
    returns its best candidate (or None). The policy decides acceptance.
    """

    name: MatchMethod = "none"

    @abstractmethod
    def attempt(self, context: MatchContext) -> Optional[ScoredCandidate]:
        """
        Try to resolve the query in ``context``.

        :param context: Shared per-query state
        :return: Best candidate this strategy found, or None
        """
        pass
