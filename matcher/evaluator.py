"""
Single-shot model evaluation of a (trend, candidate video) pair.

The model is asked for a JSON object but nothing enforces it, so the raw text
goes through an ordered list of parse strategies. Each strategy is a pure
function ``text -> Evaluation | EvaluationFailure``; the first Evaluation wins.
Anything that still fails, including provider errors, becomes the same
always-rejected sentinel via ``conservative_rejection``.
"""
import json
import logging
from typing import Any, Callable, List, Sequence, Union

from json_repair import repair_json
from pydantic import ValidationError

from models import Evaluation, EvaluationFailure, FailureReason, Trend, Video
from services.base import GenerationProvider, ProviderError

logger = logging.getLogger(__name__)

Outcome = Union[Evaluation, EvaluationFailure]
ParseStrategy = Callable[[str], Outcome]

SYSTEM_PROMPT = """You are a YouTube packaging strategist. Decide whether an EXISTING long-form video
can honestly be REPACKAGED (new title and thumbnail, same content) to ride a trending topic.
Look for genuine thematic overlap and audience overlap, even when the video never names the trend.
Never endorse framing that would mislead viewers or imply false timeliness.
Respond with a single JSON object and nothing else."""

USER_PROMPT_TEMPLATE = """Trend:
- Title: {trend_title}
- Summary: {trend_summary}
- Keywords: {trend_keywords}

Video:
- Current Title: {video_title}
- Transcript Intro:
{video_intro}

- Relevant Transcript Excerpts:
{excerpts}

How to judge:
1) Thematic connection: does the video's subject meaningfully intersect the trend?
2) Audience overlap: would people following the trend care about this video?
3) Repackaging potential: can the video be framed around the trend without distortion?
4) Honesty risk: would the new framing mislead viewers?

Scoring guidance:
- semantic_relevance: 0.6-0.8 a creative angle exists, 0.8+ a strong direct connection
- intro_support: 0.7+ the intro naturally leads into the trend angle
- honesty_risk: below 0.3 is an honest repackaging, above 0.5 is forced or misleading

Only allow a pair with a STRONG, honest angle. Reject weak or forced connections.

Return JSON with exactly these fields:
{{
  "semantic_relevance": 0.0-1.0,
  "intro_support": 0.0-1.0,
  "honesty_risk": 0.0-1.0,
  "allowed": true/false,
  "titles": ["title with the trend angle", "title 2", "title 3"],
  "thumbnails": ["thumbnail concept 1", "thumbnail concept 2"],
  "notes": "the angle and how to frame the video"
}}"""


def build_user_prompt(trend: Trend, video: Video, top_chunks: Sequence[str]) -> str:
    excerpts = "\n\n".join(f"[Excerpt {i + 1}]\n{chunk}" for i, chunk in enumerate(top_chunks))
    return USER_PROMPT_TEMPLATE.format(
        trend_title=trend.title,
        trend_summary=trend.summary,
        trend_keywords=trend.keywords,
        video_title=video.title,
        video_intro=video.intro,
        excerpts=excerpts or "(none)",
    )


# ----- parse strategies -----
def _validate(obj: Any) -> Outcome:
    if not isinstance(obj, dict):
        return EvaluationFailure(reason=FailureReason.INVALID_SCHEMA,
                                 detail=f"expected a JSON object, got {type(obj).__name__}")
    try:
        return Evaluation.model_validate(obj)
    except ValidationError as e:
        detail = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        return EvaluationFailure(reason=FailureReason.INVALID_SCHEMA, detail=detail)

def parse_direct(text: str) -> Outcome:
    try:
        return _validate(json.loads(text))
    except json.JSONDecodeError as e:
        return EvaluationFailure(reason=FailureReason.INVALID_JSON, detail=f"direct: {e}")

def parse_braced_slice(text: str) -> Outcome:
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return EvaluationFailure(reason=FailureReason.INVALID_JSON, detail="slice: no {...} span")
    try:
        return _validate(json.loads(text[start:end + 1]))
    except json.JSONDecodeError as e:
        return EvaluationFailure(reason=FailureReason.INVALID_JSON, detail=f"slice: {e}")

def parse_repaired(text: str) -> Outcome:
    """Generic repair (unterminated strings, trailing commas, truncation) then validate."""
    try:
        obj = repair_json(text, return_objects=True)
    except (ValueError, RecursionError) as e:
        return EvaluationFailure(reason=FailureReason.INVALID_JSON, detail=f"repair: {e}")
    if obj in ("", None):
        return EvaluationFailure(reason=FailureReason.INVALID_JSON, detail="repair: nothing recoverable")
    return _validate(obj)

PARSE_STRATEGIES: Sequence[ParseStrategy] = (parse_direct, parse_braced_slice, parse_repaired)


def parse_evaluation(text: str, strategies: Sequence[ParseStrategy] = PARSE_STRATEGIES) -> Outcome:
    """Try each strategy in order and stop at the first Evaluation.

    When all fail, the last schema failure outranks any syntax failure.
    """
    if not text or not text.strip():
        return EvaluationFailure(reason=FailureReason.EMPTY_RESPONSE, detail="model returned no text")
    failures: List[EvaluationFailure] = []
    for strategy in strategies:
        outcome = strategy(text)
        if isinstance(outcome, Evaluation):
            if failures:
                logger.info(f"[evaluate] recovered via {strategy.__name__} after {len(failures)} failed parse(s)")
            return outcome
        failures.append(outcome)
    schema = [f for f in failures if f.reason == FailureReason.INVALID_SCHEMA]
    return (schema or failures)[-1]


def conservative_rejection(failure: EvaluationFailure) -> Evaluation:
    """The one mapping from any evaluation failure to a result the gate always rejects."""
    return Evaluation(
        semantic_relevance=0.0,
        intro_support=0.0,
        honesty_risk=1.0,
        allowed=False,
        titles=[],
        thumbnails=[],
        notes=f"Evaluation failed ({failure.reason.value}): {failure.detail}",
    )


async def request_evaluation(generator: GenerationProvider, trend: Trend, video: Video,
                             top_chunks: Sequence[str]) -> Outcome:
    """Exactly one model call; no retries."""
    user_prompt = build_user_prompt(trend, video, top_chunks)
    try:
        raw = await generator.complete(SYSTEM_PROMPT, user_prompt)
    except ProviderError as e:
        logger.exception(f"[evaluate] provider error for video={video.video_id}")
        return EvaluationFailure(reason=FailureReason.PROVIDER_ERROR, detail=str(e))
    return parse_evaluation(raw)


async def evaluate_candidate(generator: GenerationProvider, trend: Trend, video: Video,
                             top_chunks: Sequence[str]) -> Evaluation:
    outcome = await request_evaluation(generator, trend, video, top_chunks)
    if isinstance(outcome, EvaluationFailure):
        logger.warning(f"[evaluate] {outcome.reason.value} for video={video.video_id}: {outcome.detail}")
        return conservative_rejection(outcome)
    return outcome
