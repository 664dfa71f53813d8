from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

MatchMethod = Literal["exact", "alias", "ngram", "fuzzy", "phonetic", "none"]

MAX_SUGGESTIONS = 5


@dataclass(frozen=True)
class Suggestion:
    id: str
    name: str
    slug: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Immutable result of resolving one exercise name against the catalog.

    Attributes:
        original_query: Raw text the caller asked about
        matched_id: Catalog id of the accepted match, or None
        matched_name: Translation name of the accepted match
        matched_slug: Catalog slug of the accepted match
        confidence: Score of the accepted match, or best score seen (0.0-1.0)
        found: True when confidence reached the threshold
        suggestions: Up to five alternatives, best first, never the match itself
        match_method: Strategy that produced the score
    """
    original_query: str
    matched_id: Optional[str]
    matched_name: Optional[str]
    matched_slug: Optional[str]
    confidence: float
    found: bool
    suggestions: Tuple[Suggestion, ...] = field(default_factory=tuple)
    match_method: MatchMethod = "none"

    def __post_init__(self):
        """Validate confidence score."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")
        if len(self.suggestions) > MAX_SUGGESTIONS:
            raise ValueError(f"At most {MAX_SUGGESTIONS} suggestions allowed, got {len(self.suggestions)}")

    @classmethod
    def not_found(
        cls,
        query: str,
        confidence: float = 0.0,
        suggestions: Tuple[Suggestion, ...] = (),
    ) -> "MatchResult":
        return cls(
            original_query=query,
            matched_id=None,
            matched_name=None,
            matched_slug=None,
            confidence=confidence,
            found=False,
            suggestions=suggestions,
            match_method="none",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase shape used by import pipelines."""
        return {
            "originalQuery": self.original_query,
            "matchedId": self.matched_id,
            "matchedName": self.matched_name,
            "matchedSlug": self.matched_slug,
            "confidence": self.confidence,
            "found": self.found,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "matchMethod": self.match_method,
        }


@dataclass
class UnmatchedExercise:
    name: str
    suggestions: List[Suggestion] = field(default_factory=list)


@dataclass
class MatchSummary:
    matched_count: int
    unmatched_count: int
    unmatched: List[UnmatchedExercise] = field(default_factory=list)

    @property
    def needs_review(self) -> bool:
        return self.unmatched_count > 0
