"""
Resolution policy for strategy escalation.

Implements the escalation logic: exact → alias → n-gram/fuzzy → phonetic.
"""
import logging
from typing import List, Sequence

from ..schemas import MAX_SUGGESTIONS, MatchResult
from .semantic_resolver import MatchContext, MatchStrategy, ScoredCandidate

logger = logging.getLogger(__name__)


class ResolutionPolicy:
    """
    Policy for escalating through multiple matching strategies.

    Tries strategies in order until one returns a candidate whose confidence
    reaches the context threshold. Adding a strategy means adding it to the
    list; the pipeline itself does not change.
    """

    def __init__(self, strategies: Sequence[MatchStrategy]):
        """
        :param strategies: Strategies to try in order
        """
        if not strategies:
            raise ValueError("At least one strategy must be provided")

        self._strategies: List[MatchStrategy] = list(strategies)

    @property
    def strategies(self) -> List[MatchStrategy]:
        return list(self._strategies)

    def resolve(self, context: MatchContext) -> MatchResult:
        """
        Resolve the query in ``context`` by trying strategies in order.

        Escalation logic:
        1. Run the next strategy
        2. If its best candidate reaches the threshold, accept it
        3. Otherwise continue; candidates already scored stay on the context
        4. When every strategy is exhausted, report the best score seen
           together with up to five suggestions

        :param context: Per-query state
        :return: MatchResult, found only when confidence >= threshold
        """
        for strategy in self._strategies:
            candidate = strategy.attempt(context)

            if candidate is not None and candidate.confidence >= context.threshold:
                logger.debug(
                    f"'{context.original_query}' resolved by {strategy.name}: "
                    f"{candidate.exercise_id} ({candidate.confidence:.3f})"
                )
                return self._accepted(context, candidate)

        # A strategy may have recorded a better candidate than the one it returned
        best = context.best_candidate()
        if best is not None and best.confidence >= context.threshold:
            return self._accepted(context, best)

        return self._rejected(context)

    def _accepted(self, context: MatchContext, match: ScoredCandidate) -> MatchResult:
        suggestions = tuple(
            c.to_suggestion() for c in context.ranked_candidates() if c.key != match.key
        )[:MAX_SUGGESTIONS]

        return MatchResult(
            original_query=context.original_query,
            matched_id=match.exercise_id,
            matched_name=match.name,
            matched_slug=match.slug,
            confidence=match.confidence,
            found=True,
            suggestions=suggestions,
            match_method=match.method,
        )

    def _rejected(self, context: MatchContext) -> MatchResult:
        ranked = context.ranked_candidates()
        best_confidence = ranked[0].confidence if ranked else 0.0

        logger.debug(
            f"No match for '{context.original_query}' "
            f"(best {best_confidence:.3f} < {context.threshold})"
        )
        return MatchResult.not_found(
            context.original_query,
            confidence=best_confidence,
            suggestions=tuple(c.to_suggestion() for c in ranked[:MAX_SUGGESTIONS]),
        )
