from matcher import is_accepted, rejection_reasons
from models import AcceptanceThresholds, Evaluation


def _evaluation(**kw):
    data = dict(semantic_relevance=0.8, intro_support=0.8, honesty_risk=0.1, allowed=True,
                titles=["t"], thumbnails=["th"], notes="n")
    data.update(kw)
    return Evaluation(**data)


def test_all_predicates_pass():
    assert is_accepted(_evaluation())
    assert rejection_reasons(_evaluation()) == []


def test_boundaries_are_inclusive():
    assert is_accepted(_evaluation(semantic_relevance=0.65, intro_support=0.65, honesty_risk=0.30))


def test_each_predicate_rejects_on_its_own():
    assert not is_accepted(_evaluation(allowed=False))
    assert not is_accepted(_evaluation(semantic_relevance=0.64))
    assert not is_accepted(_evaluation(intro_support=0.64))
    assert not is_accepted(_evaluation(honesty_risk=0.31))


def test_reasons_list_every_failure():
    reasons = rejection_reasons(_evaluation(allowed=False, semantic_relevance=0.1, honesty_risk=0.9))
    assert len(reasons) == 3
    assert reasons[0] == "model did not allow"


def test_intro_threshold_is_configurable():
    strict = AcceptanceThresholds(min_intro_support=0.70)
    evaluation = _evaluation(intro_support=0.68)
    assert is_accepted(evaluation)
    assert not is_accepted(evaluation, strict)
