# services/extraction.py
"""Recover structured results from the completion service's reply text.

Structured strategies run first (whole text, ```json fence, first embedded
object). Heuristic section splitting is the isolated last resort and is only
reached when none of them yields a usable object. Nothing in here raises on
bad model output.
"""
import json
import os
import re
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from schemas import (
    AnalysisResult,
    ConversationStarters,
    ExtractionSource,
    ImprovementSuggestion,
    PhotoAnalysis,
)
from services.normalize import classify_verdict, derive_fields, detect_shape, photo_from_dict, str_list, to_canonical
from services.utils import fenced_json, iter_json_objects

log = logging.getLogger(__name__)


def _max_items_from_env() -> Optional[int]:
    raw = os.getenv("MAX_ITEMS_PER_CATEGORY", "3").strip().lower()
    if raw in ("", "none", "0"):
        return None
    try:
        return int(raw)
    except ValueError:
        log.warning("MAX_ITEMS_PER_CATEGORY=%r is not a number, using 3", raw)
        return 3


# None keeps every item the model returned
MAX_ITEMS = _max_items_from_env()

PLACEHOLDERS = {
    "strengths": "Your profile has a solid foundation to build on.",
    "weaknesses": "Some photos could show more of your personality and lifestyle.",
    "suggestions": "Lead with a clear, well-lit photo where you are smiling and looking at the camera.",
    "messages": "Hey! Your profile caught my eye. What's the story behind your favorite photo?",
    "followUps": "That sounds great! What got you into that?",
    "tips": "Reference something specific from their profile to show you actually read it.",
    "bios": "Curious, easygoing and always up for a good conversation. Ask me about my latest adventure.",
    "responses": "Ask me in person, the story is better with a drink in hand.",
    "replies": "That sounds like a great time! What was the best part?",
}

# (category, pattern) pairs, first match wins
ANALYSIS_CATEGORIES = (
    ("suggestions", re.compile(r"\bsuggest(?:ion|ions|ed)?\b|\btips?\b|\brecommend\w*|\bnext steps?\b|\btry(?:ing)?\b", re.I)),
    ("strengths", re.compile(r"\bstrengths?\b|\bpositives?\b|\bworks? well\b|\bwhat works\b|\bgood\b", re.I)),
    ("weaknesses", re.compile(r"\bweakness(?:es)?\b|\bimprove(?:ment|ments)?\b|\bnegatives?\b|\bred flags?\b|\bavoid\w*", re.I)),
)

STARTER_CATEGORIES = (
    ("followUps", re.compile(r"\bfollow[- ]?ups?\b", re.I)),
    ("tips", re.compile(r"\btips?\b|\badvice\b", re.I)),
    ("messages", re.compile(r"\bmessages?\b|\bopen(?:er|ers|ing)\b|\bstarters?\b|\bicebreakers?\b", re.I)),
)

_MARKER = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+")
_LABEL = re.compile(r"^([^:\n]{1,40}):\s*(.*)$", re.S)
_SCORE_OUT_OF = re.compile(r"(\d+(?:\.\d+)?)\s*(?:/|out of)\s*10\b", re.I)
_SCORE_LABEL = re.compile(r"\bscore\b[^\d\n]{0,20}(\d+(?:\.\d+)?)", re.I)


# --- structured strategies -----------------------------------------------

def _whole(text: str) -> Any:
    return json.loads(text.strip())


def _fenced(text: str) -> Any:
    block = fenced_json(text)
    if block is None:
        raise ValueError("no fenced json block")
    return json.loads(block)


def _embedded(text: str, accept: Callable[[Any], bool]) -> Any:
    for obj in iter_json_objects(text):
        if accept(obj):
            return obj
    raise ValueError("no embedded object")


def parse_structured(text: str, accept: Callable[[Any], bool]) -> Tuple[Any, Optional[ExtractionSource]]:
    """First object accepted by ``accept`` along the strategy chain, with its source tag."""
    strategies = (
        (ExtractionSource.JSON, _whole),
        (ExtractionSource.FENCED, _fenced),
        (ExtractionSource.EMBEDDED, lambda t: _embedded(t, accept)),
    )
    for source, strategy in strategies:
        try:
            obj = strategy(text)
        except (ValueError, RecursionError):
            continue
        if accept(obj):
            return obj, source
    return None, None


# --- heuristic splitting --------------------------------------------------

def split_sections(text: str) -> List[Tuple[str, bool]]:
    """Split text into (section, is_list_item) on list markers and blank lines."""
    sections: List[List[Any]] = []
    current = None
    for line in text.splitlines():
        if not line.strip():
            current = None
            continue
        m = _MARKER.match(line)
        if m:
            current = [line[m.end():].strip(), True]
            sections.append(current)
        elif current is None:
            current = [line.strip(), False]
            sections.append(current)
        else:
            current[0] = f"{current[0]}\n{line.strip()}"
    return [(s, numbered) for s, numbered in sections]


def _clean(text: str) -> str:
    text = text.replace("**", "").replace("__", "").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    return text.strip("“”").strip()


def _match(text: str, categories: Sequence[Tuple[str, re.Pattern]]) -> Optional[str]:
    for name, pattern in categories:
        if pattern.search(text):
            return name
    return None


def heuristic_split(
    text: str,
    categories: Sequence[Tuple[str, re.Pattern]],
    max_items: Optional[int] = None,
) -> Dict[str, List[str]]:
    """Classify free-text sections into categories by keyword.

    A section ending in ':' (or a markdown heading) is a header: it names the
    category for the unlabeled list items that follow. A labeled item
    ("Message 2: ...") is classified by its label; anything else by its
    whole text.
    """
    found: Dict[str, List[str]] = {name: [] for name, _ in categories}
    header: Optional[str] = None
    for raw, numbered in split_sections(text):
        section = _clean(raw)
        if not section:
            continue
        if section.endswith(":") or section.startswith("#"):
            header = _match(section, categories)
            continue

        category = None
        body = section
        m = _LABEL.match(section)
        if m and _match(m.group(1), categories):
            category = _match(m.group(1), categories)
            body = m.group(2)
        elif header and numbered:
            category = header
        else:
            category = _match(section, categories)

        body = _clean(body)
        if category and body:
            found[category].append(body)

    if max_items is not None:
        found = {k: v[:max_items] for k, v in found.items()}
    return found


def _fill(items: List[str], category: str) -> List[str]:
    return items or [PLACEHOLDERS.get(category, PLACEHOLDERS["suggestions"])]


def _cap(items: List[str], max_items: Optional[int]) -> List[str]:
    return items if max_items is None else items[:max_items]


def extract_score(text: str) -> Optional[float]:
    for pattern in (_SCORE_OUT_OF, _SCORE_LABEL):
        m = pattern.search(text)
        if m:
            value = float(m.group(1))
            if 0 <= value <= 10:
                return value
    return None


# --- public extractors ----------------------------------------------------

def _is_analysis(obj: Any) -> bool:
    return isinstance(obj, dict) and detect_shape(obj) is not None


def extract_analysis(text: str, max_items: Optional[int] = MAX_ITEMS) -> AnalysisResult:
    text = text or ""
    obj, source = parse_structured(text, _is_analysis)
    if source is not None:
        return to_canonical(obj, source)

    log.warning("analysis reply had no usable JSON, falling back to heuristics (%d chars)", len(text))
    found = heuristic_split(text, ANALYSIS_CATEGORIES, max_items)
    return derive_fields(AnalysisResult(
        overallScore=extract_score(text),
        strengths=_fill(found["strengths"], "strengths"),
        weaknesses=_fill(found["weaknesses"], "weaknesses"),
        improvementSuggestions=[
            ImprovementSuggestion(description=s) for s in _fill(found["suggestions"], "suggestions")
        ],
        source=ExtractionSource.HEURISTIC,
    ))


def _is_starters(obj: Any) -> bool:
    return isinstance(obj, dict) and bool(str_list(obj.get("messages")))


def extract_conversation_starters(text: str, max_items: Optional[int] = MAX_ITEMS) -> ConversationStarters:
    text = text or ""
    obj, source = parse_structured(text, _is_starters)
    if source is not None:
        return ConversationStarters(
            messages=_cap(str_list(obj.get("messages")), max_items),
            followUps=_cap(str_list(obj.get("followUps", obj.get("follow_ups"))), max_items),
            tips=_cap(str_list(obj.get("tips")), max_items),
            source=source,
        )

    log.warning("conversation reply had no usable JSON, falling back to heuristics")
    found = heuristic_split(text, STARTER_CATEGORIES, max_items)
    return ConversationStarters(
        messages=_fill(found["messages"], "messages"),
        followUps=_fill(found["followUps"], "followUps"),
        tips=_fill(found["tips"], "tips"),
        source=ExtractionSource.HEURISTIC,
    )


def extract_string_list(text: str, key: str, max_items: Optional[int] = MAX_ITEMS) -> Tuple[List[str], ExtractionSource]:
    """Items under ``key`` (or a bare JSON array), else every list item in the text."""
    text = text or ""

    def accept(obj: Any) -> bool:
        if isinstance(obj, list):
            return bool(str_list(obj))
        return isinstance(obj, dict) and bool(str_list(obj.get(key)))

    obj, source = parse_structured(text, accept)
    if source is not None:
        items = str_list(obj if isinstance(obj, list) else obj.get(key))
        return _cap(items, max_items), source

    items = [_clean(s) for s, numbered in split_sections(text) if numbered]
    items = [s for s in items if s]
    return _fill(_cap(items, max_items), key), ExtractionSource.HEURISTIC


_PHOTO_FIELD = re.compile(r"^\W*(description|verdict|suggestion)\W*:\s*(.+)$", re.I | re.M)


def _is_photo(obj: Any) -> bool:
    return isinstance(obj, dict) and bool({"description", "verdict", "suggestion"} & set(obj))


def extract_photo_analysis(text: str) -> PhotoAnalysis:
    text = text or ""
    obj, source = parse_structured(text, _is_photo)
    if source is not None:
        return photo_from_dict(obj)

    fields = {k.lower(): _clean(v) for k, v in _PHOTO_FIELD.findall(text)}
    if not fields:
        log.warning("photo reply had no recognizable fields")
    return PhotoAnalysis(
        description=fields.get("description") or _clean(text)[:300] or "We couldn't describe this photo.",
        verdict=classify_verdict(fields.get("verdict")),
        suggestion=fields.get("suggestion") or PLACEHOLDERS["suggestions"],
    )
