# services/presentation.py
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from schemas import AnalysisResult, FeedbackItem, ImprovementSuggestion, PhotoAnalysis
from services.samples import sample_result

log = logging.getLogger(__name__)

SAMPLE_BANNER = "Sample analysis: we couldn't analyze your profile right now, so here is an example of what you'll get."
DEGRADED_BANNER = "Some of this feedback was pieced together from a partial answer."

_DETAIL_LABELS = (
    ("photoQuality", "Photo Quality"),
    ("diversity", "Photo Diversity"),
    ("impression", "First Impression"),
)


class RenderState(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class DetailRow(BaseModel):
    label: str
    score: Optional[str] = None
    feedback: str = ""


class ResultView(BaseModel):
    state: RenderState
    banner: Optional[str] = None
    score: Optional[str] = None
    badge: Optional[str] = None
    swipe: Optional[str] = None
    swipeReason: str = ""
    photoFeedback: List[FeedbackItem] = Field(default_factory=list)
    bioFeedback: List[FeedbackItem] = Field(default_factory=list)
    suggestions: List[ImprovementSuggestion] = Field(default_factory=list)
    details: List[DetailRow] = Field(default_factory=list)
    photos: List[PhotoAnalysis] = Field(default_factory=list)


def score_badge(score: Optional[float]) -> Optional[str]:
    if score is None:
        return None
    if score >= 7:
        return "Good"
    if score >= 5:
        return "Average"
    return "Needs Work"


def _fmt(score: Optional[float]) -> Optional[str]:
    if score is None:
        return None
    return f"{score:g}/10"


def _coerce(result: Union[AnalysisResult, Dict[str, Any], None]) -> Optional[AnalysisResult]:
    if result is None or isinstance(result, AnalysisResult):
        return result
    try:
        return AnalysisResult.model_validate(result)
    except ValidationError as e:
        log.warning("unrenderable analysis payload: %s", e.error_count())
        return None


def build_view(result: Union[AnalysisResult, Dict[str, Any], None] = None, loading: bool = False) -> ResultView:
    """Everything the UI needs, with every optional field already defaulted."""
    if loading:
        return ResultView(state=RenderState.LOADING)

    r = _coerce(result)
    state = RenderState.SUCCESS
    banner = None
    if r is None or r.fallback:
        state = RenderState.FAILED
        banner = SAMPLE_BANNER
        photos = r.photos if r is not None else []
        r = sample_result()
        r.photos = photos
    elif r.degraded:
        banner = DEGRADED_BANNER

    details = []
    if r.detailedAnalysis is not None:
        for key, label in _DETAIL_LABELS:
            note = getattr(r.detailedAnalysis, key)
            if note is not None:
                details.append(DetailRow(label=label, score=_fmt(note.score), feedback=note.feedback))

    return ResultView(
        state=state,
        banner=banner,
        score=_fmt(r.overallScore),
        badge=score_badge(r.overallScore),
        swipe=f"Would swipe {r.firstImpression.wouldSwipe}" if r.firstImpression else None,
        swipeReason=r.firstImpression.reason if r.firstImpression else "",
        photoFeedback=r.photoFeedback,
        bioFeedback=r.bioFeedback,
        suggestions=r.improvementSuggestions,
        details=details,
        photos=r.photos,
    )


class SubmissionSlot:
    """Holds the result for the latest submission only.

    begin() hands out a token per submission; accept() drops any result
    whose token is no longer the latest.
    """

    def __init__(self):
        self.latest = 0
        self.pending = False
        self.result: Optional[Any] = None

    def begin(self) -> int:
        self.latest += 1
        self.pending = True
        self.result = None
        return self.latest

    def accept(self, token: int, result: Any) -> bool:
        if token != self.latest:
            log.info("discarding result for stale submission %d (latest %d)", token, self.latest)
            return False
        self.result = result
        self.pending = False
        return True

    def view(self) -> Optional[ResultView]:
        if self.pending:
            return build_view(loading=True)
        if self.latest == 0:
            return None
        return build_view(self.result)
