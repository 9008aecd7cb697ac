# services/normalize.py
"""Map the reply shapes the model is known to produce onto AnalysisResult.

Three shapes show up in practice:

* SCORED    - ``overallScore`` / ``strengths`` / ``weaknesses`` / string suggestions
* FEEDBACK  - older ``score`` / ``photoFeedback`` / ``bioFeedback`` / suggestion objects
* PHOTO_SET - per-photo ``analyses`` with ``overallVerdict`` / ``overallSuggestion``

Values are coerced leniently. Anything that can't be coerced is dropped, so a
reply with odd types still yields a (smaller) result instead of an error.
"""
import math
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from schemas import (
    AnalysisResult,
    DetailedAnalysis,
    ExtractionSource,
    FeedbackItem,
    FirstImpression,
    ImprovementSuggestion,
    PhotoAnalysis,
    ScoredNote,
    Verdict,
)

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

BIO_POSITIVE_THRESHOLD = 7


class ReplyShape(str, Enum):
    SCORED = "scored"
    FEEDBACK = "feedback"
    PHOTO_SET = "photo_set"


_SHAPE_KEYS = (
    (ReplyShape.FEEDBACK, {"score", "photoFeedback", "bioFeedback"}),
    (ReplyShape.SCORED, {"overallScore", "strengths", "weaknesses", "improvementSuggestions",
                         "detailedAnalysis", "firstImpression"}),
    (ReplyShape.PHOTO_SET, {"analyses", "overallVerdict", "overallSuggestion"}),
)


def classify_verdict(text: Any) -> Verdict:
    s = str(text or "").strip()
    if s.startswith("Good"):
        return "Good"
    if s.startswith("Okay"):
        return "Okay"
    return "Needs Improvement"


def detect_shape(payload: Dict[str, Any]) -> Optional[ReplyShape]:
    keys = set(payload)
    for shape, markers in _SHAPE_KEYS:
        if keys & markers:
            return shape
    return None


# --- lenient coercion -----------------------------------------------------

def _num(v: Any) -> Optional[float]:
    """A 0-10 score, or None for anything else."""
    if isinstance(v, bool):
        return None
    if isinstance(v, str):
        m = _NUMBER.search(v)
        v = m.group(0) if m else None
    if not isinstance(v, (int, float, str)):
        return None
    try:
        f = float(v)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(f) or not 0 <= f <= 10:
        return None
    return f


def _text(v: Any) -> str:
    if isinstance(v, str):
        return v.strip()
    if isinstance(v, dict):
        for k in ("text", "description", "feedback", "suggestion"):
            if isinstance(v.get(k), str):
                return v[k].strip()
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return ""


def str_list(v: Any) -> List[str]:
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, list):
        return []
    return [t for t in (_text(x) for x in v) if t]


def _feedback_list(v: Any) -> List[FeedbackItem]:
    out = []
    for x in v if isinstance(v, list) else []:
        text = _text(x)
        if not text:
            continue
        kind = str(x.get("type", "")).lower() if isinstance(x, dict) else ""
        out.append(FeedbackItem(type="positive" if kind.startswith("pos") else "improvement", text=text))
    return out


def _suggestions(v: Any) -> List[ImprovementSuggestion]:
    out = []
    for x in v if isinstance(v, list) else ([v] if isinstance(v, str) else []):
        desc = _text(x)
        if not desc:
            continue
        s = ImprovementSuggestion(description=desc)
        if isinstance(x, dict):
            if isinstance(x.get("title"), str) and x["title"].strip():
                s.title = x["title"].strip()
            if isinstance(x.get("actionText"), str) and x["actionText"].strip():
                s.actionText = x["actionText"].strip()
        out.append(s)
    return out


def _first_impression(v: Any) -> Optional[FirstImpression]:
    if not isinstance(v, dict):
        return None
    swipe = v.get("wouldSwipe", v.get("would_swipe"))
    if isinstance(swipe, bool):
        swipe = "right" if swipe else "left"
    swipe = str(swipe or "").strip().lower()
    if swipe not in ("right", "left"):
        return None
    return FirstImpression(wouldSwipe=swipe, reason=_text(v.get("reason")))


def _note(v: Any) -> Optional[ScoredNote]:
    if not isinstance(v, dict):
        return None
    return ScoredNote(score=_num(v.get("score")), feedback=_text(v.get("feedback")))


def _detailed(v: Any) -> Optional[DetailedAnalysis]:
    if not isinstance(v, dict):
        return None
    notes = {k: _note(v.get(k)) for k in DetailedAnalysis.model_fields}
    if not any(notes.values()):
        return None
    return DetailedAnalysis(**notes)


def photo_from_dict(v: Dict[str, Any]) -> PhotoAnalysis:
    return PhotoAnalysis(
        description=_text(v.get("description")),
        verdict=classify_verdict(v.get("verdict")),
        suggestion=_text(v.get("suggestion")),
    )


# --- per-shape normalizers ------------------------------------------------

def _from_scored(p: Dict[str, Any]) -> Dict[str, Any]:
    return dict(
        overallScore=_num(p.get("overallScore")),
        strengths=str_list(p.get("strengths")),
        weaknesses=str_list(p.get("weaknesses")),
        improvementSuggestions=_suggestions(p.get("improvementSuggestions")),
        detailedAnalysis=_detailed(p.get("detailedAnalysis")),
        firstImpression=_first_impression(p.get("firstImpression")),
    )


def _from_feedback(p: Dict[str, Any]) -> Dict[str, Any]:
    score = p.get("score", p.get("overallScore"))
    return dict(
        overallScore=_num(score),
        photoFeedback=_feedback_list(p.get("photoFeedback")),
        bioFeedback=_feedback_list(p.get("bioFeedback")),
        improvementSuggestions=_suggestions(p.get("improvementSuggestions")),
        firstImpression=_first_impression(p.get("firstImpression")),
        strengths=str_list(p.get("strengths")),
        weaknesses=str_list(p.get("weaknesses")),
    )


def _from_photo_set(p: Dict[str, Any]) -> Dict[str, Any]:
    analyses = p.get("analyses")
    return dict(
        overallScore=_num(p.get("overallScore")),
        photos=[photo_from_dict(a) for a in analyses if isinstance(a, dict)] if isinstance(analyses, list) else [],
        overallVerdict=_text(p.get("overallVerdict")) or None,
        overallSuggestion=_text(p.get("overallSuggestion")) or None,
    )


_NORMALIZERS = {
    ReplyShape.SCORED: _from_scored,
    ReplyShape.FEEDBACK: _from_feedback,
    ReplyShape.PHOTO_SET: _from_photo_set,
}


def derive_fields(r: AnalysisResult) -> AnalysisResult:
    if not r.photoFeedback:
        r.photoFeedback = [FeedbackItem(type="positive", text=s) for s in r.strengths] + \
                          [FeedbackItem(type="improvement", text=w) for w in r.weaknesses]
    if not r.strengths and not r.weaknesses:
        r.strengths = [f.text for f in r.photoFeedback if f.type == "positive"]
        r.weaknesses = [f.text for f in r.photoFeedback if f.type == "improvement"]
    bio = r.detailedAnalysis.bioFeedback if r.detailedAnalysis else None
    if not r.bioFeedback and bio and bio.feedback:
        positive = bio.score is not None and bio.score >= BIO_POSITIVE_THRESHOLD
        r.bioFeedback = [FeedbackItem(type="positive" if positive else "improvement", text=bio.feedback)]
    return r


def to_canonical(payload: Dict[str, Any], source: ExtractionSource) -> Optional[AnalysisResult]:
    """Canonical result for a parsed reply, or None when the shape is unknown."""
    shape = detect_shape(payload)
    if shape is None:
        return None
    fields = _NORMALIZERS[shape](payload)
    return derive_fields(AnalysisResult(source=source, **fields))
