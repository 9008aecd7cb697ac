# services/pipeline.py
import os
import asyncio
import logging
from functools import partial
from typing import Callable, List, Optional, Sequence, TypeVar

from prompts import (
    BIO_SYSTEM_PROMPT,
    CONVERSATION_SYSTEM_PROMPT,
    PUNCHUP_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_bio_prompt,
    build_conversation_prompt,
    build_message_prompt,
    build_punchup_prompt,
)
from schemas import (
    AnalysisRequest,
    AnalysisResult,
    BioRequest,
    BioSuggestions,
    ConversationStarterRequest,
    ConversationStarters,
    ExtractionSource,
    MessageSuggestionRequest,
    MessageSuggestions,
    PhotoAnalysis,
    PromptPunchUpRequest,
    PromptResponses,
)
from services.errors import AnalysisValidationError, InvokerError, InvokerTimeout
from services.extraction import (
    PLACEHOLDERS,
    extract_analysis,
    extract_conversation_starters,
    extract_string_list,
)
from services.openai_review import InvokerConfig, evaluate_image, invoke
from services.samples import photo_placeholder, sample_result

log = logging.getLogger(__name__)

T = TypeVar("T")

PARALLEL_PHOTO_CALLS = os.getenv("PARALLEL_PHOTO_CALLS", "true").lower() == "true"


async def _bounded(fn: Callable[..., T], *args, deadline: float, **kwargs) -> T:
    """Run a blocking model call off the event loop with a hard upper bound."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(partial(fn, *args, **kwargs)), timeout=deadline)
    except asyncio.TimeoutError as e:
        raise InvokerTimeout(f"no reply within {deadline}s") from e


async def _analyze_photos(
    images: Sequence[str],
    config: InvokerConfig,
    parallel: bool,
) -> List[Optional[PhotoAnalysis]]:
    """Per-photo verdicts in submission order, None where the call failed."""
    total = len(images)

    async def one(i: int, url: str) -> Optional[PhotoAnalysis]:
        try:
            return await _bounded(evaluate_image, url, i + 1, total, config, deadline=config.deadline())
        except InvokerError as e:
            log.warning("photo %d/%d failed (%s): %s", i + 1, total, e.kind, e.detail or e)
            return None

    if parallel:
        # gather keeps argument order regardless of completion order
        return list(await asyncio.gather(*(one(i, url) for i, url in enumerate(images))))
    return [await one(i, url) for i, url in enumerate(images)]


async def analyze_profile(
    req: AnalysisRequest,
    config: Optional[InvokerConfig] = None,
    parallel: Optional[bool] = None,
) -> AnalysisResult:
    """Full analysis round trip. Only AnalysisValidationError escapes.

    Provider failures degrade to the sample result (``fallback`` true);
    unparseable replies degrade to heuristics (``source == "heuristic"``).
    """
    if not req.has_content():
        raise AnalysisValidationError("At least one photo, a bio or a prompt answer is required")
    config = config or InvokerConfig.from_env()
    parallel = PARALLEL_PHOTO_CALLS if parallel is None else parallel

    prompt, images = build_analysis_prompt(req)
    photos = await _analyze_photos(images, config, parallel) if images else []

    try:
        raw = await _bounded(invoke, prompt, images, config=config, json_response=True,
                             deadline=config.deadline())
    except InvokerError as e:
        log.error("profile analysis call failed (%s): %s", e.kind, e.detail or e)
        result = sample_result()
    else:
        result = extract_analysis(raw)
        if result.degraded:
            log.warning("profile analysis degraded to %s extraction", result.source.value)

    if any(p is not None for p in photos):
        result.photos = [p or photo_placeholder() for p in photos]
    return result


async def generate_bio(req: BioRequest, config: Optional[InvokerConfig] = None) -> BioSuggestions:
    if not (req.interests or req.personality or req.lookingFor):
        raise AnalysisValidationError("Interests, personality or what you're looking for is required")
    config = config or InvokerConfig.from_env()
    try:
        raw = await _bounded(invoke, build_bio_prompt(req), config=config, system=BIO_SYSTEM_PROMPT,
                             json_response=True, deadline=config.deadline())
    except InvokerError as e:
        log.error("bio generation failed (%s): %s", e.kind, e.detail or e)
        return BioSuggestions(bios=[PLACEHOLDERS["bios"]], source=ExtractionSource.SAMPLE)
    bios, source = extract_string_list(raw, "bios")
    return BioSuggestions(bios=bios, source=source)


async def conversation_starters(
    req: ConversationStarterRequest,
    config: Optional[InvokerConfig] = None,
) -> ConversationStarters:
    if not any(req.model_dump().values()):
        raise AnalysisValidationError("Tell us something about your match first")
    config = config or InvokerConfig.from_env()
    images = [req.photoUrl] if req.photoUrl else []
    try:
        raw = await _bounded(invoke, build_conversation_prompt(req), images, config=config,
                             system=CONVERSATION_SYSTEM_PROMPT, json_response=True,
                             deadline=config.deadline())
    except InvokerError as e:
        log.error("conversation starters failed (%s): %s", e.kind, e.detail or e)
        return ConversationStarters(
            messages=[PLACEHOLDERS["messages"]],
            followUps=[PLACEHOLDERS["followUps"]],
            tips=[PLACEHOLDERS["tips"]],
            source=ExtractionSource.SAMPLE,
        )
    return extract_conversation_starters(raw)


async def prompt_punchup(req: PromptPunchUpRequest, config: Optional[InvokerConfig] = None) -> PromptResponses:
    if not req.prompt.strip():
        raise AnalysisValidationError("Prompt is required")
    config = config or InvokerConfig.from_env()
    try:
        raw = await _bounded(invoke, build_punchup_prompt(req), config=config, system=PUNCHUP_SYSTEM_PROMPT,
                             json_response=True, deadline=config.deadline())
    except InvokerError as e:
        log.error("prompt punch-up failed (%s): %s", e.kind, e.detail or e)
        return PromptResponses(prompt=req.prompt, responses=[PLACEHOLDERS["responses"]],
                               source=ExtractionSource.SAMPLE)
    responses, source = extract_string_list(raw, "responses")
    return PromptResponses(prompt=req.prompt, responses=responses, source=source)


async def suggest_messages(
    req: MessageSuggestionRequest,
    config: Optional[InvokerConfig] = None,
) -> MessageSuggestions:
    if not (req.conversationHistory and req.userInterests):
        raise AnalysisValidationError("Conversation history and your interests are required")
    config = config or InvokerConfig.from_env()
    try:
        raw = await _bounded(invoke, build_message_prompt(req), config=config, system=CONVERSATION_SYSTEM_PROMPT,
                             json_response=True, deadline=config.deadline())
    except InvokerError as e:
        log.error("message suggestions failed (%s): %s", e.kind, e.detail or e)
        return MessageSuggestions(suggestions=[PLACEHOLDERS["replies"]], source=ExtractionSource.SAMPLE)
    suggestions, source = extract_string_list(raw, "replies")
    return MessageSuggestions(suggestions=suggestions, source=source)
