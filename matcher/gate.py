from typing import List, Optional

from models import AcceptanceThresholds, Evaluation

DEFAULT_THRESHOLDS = AcceptanceThresholds()


def score_rejections(semantic_relevance: float, intro_support: float, honesty_risk: float,
                     thresholds: Optional[AcceptanceThresholds] = None) -> List[str]:
    t = thresholds or DEFAULT_THRESHOLDS
    reasons = []
    if not semantic_relevance >= t.min_semantic_relevance:
        reasons.append(f"semantic_relevance {semantic_relevance:.2f} < {t.min_semantic_relevance:.2f}")
    if not intro_support >= t.min_intro_support:
        reasons.append(f"intro_support {intro_support:.2f} < {t.min_intro_support:.2f}")
    if not honesty_risk <= t.max_honesty_risk:
        reasons.append(f"honesty_risk {honesty_risk:.2f} > {t.max_honesty_risk:.2f}")
    return reasons

def rejection_reasons(evaluation: Evaluation, thresholds: Optional[AcceptanceThresholds] = None) -> List[str]:
    """Every failed predicate; an empty list means the pair is accepted."""
    reasons = [] if evaluation.allowed else ["model did not allow"]
    return reasons + score_rejections(evaluation.semantic_relevance, evaluation.intro_support,
                                      evaluation.honesty_risk, thresholds)

def is_accepted(evaluation: Evaluation, thresholds: Optional[AcceptanceThresholds] = None) -> bool:
    return not rejection_reasons(evaluation, thresholds)
