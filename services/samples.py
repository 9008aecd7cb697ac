# services/samples.py
from schemas import (
    AnalysisResult,
    DetailedAnalysis,
    ExtractionSource,
    FirstImpression,
    ImprovementSuggestion,
    PhotoAnalysis,
    ScoredNote,
)
from services.normalize import derive_fields

SAMPLE_RESULT = AnalysisResult(
    overallScore=6.5,
    firstImpression=FirstImpression(
        wouldSwipe="right",
        reason="Friendly and approachable, but the first photo doesn't show your face clearly.",
    ),
    strengths=[
        "Genuine smile in most photos",
        "Good mix of activities and settings",
    ],
    weaknesses=[
        "Main photo is dimly lit",
        "Too many group shots make it hard to tell who you are",
    ],
    improvementSuggestions=[
        ImprovementSuggestion(
            title="Upgrade your main photo",
            description="Use a well-lit, solo photo where your face is clearly visible.",
            actionText="Pick a New Main Photo",
        ),
        ImprovementSuggestion(
            title="Show a hobby",
            description="Add a photo of you doing something you love to spark conversation.",
            actionText="Add an Activity Photo",
        ),
    ],
    detailedAnalysis=DetailedAnalysis(
        photoQuality=ScoredNote(score=6, feedback="Mostly clear photos, a few are dark or blurry."),
        diversity=ScoredNote(score=7, feedback="Nice range of settings."),
        impression=ScoredNote(score=6, feedback="Warm overall, but the lead photo undersells you."),
    ),
    source=ExtractionSource.SAMPLE,
)


def sample_result() -> AnalysisResult:
    return derive_fields(SAMPLE_RESULT.model_copy(deep=True))


def photo_placeholder() -> PhotoAnalysis:
    return PhotoAnalysis(
        description="We couldn't analyze this photo right now.",
        verdict="Okay",
        suggestion="Try again in a moment, or use a smaller JPEG or PNG.",
    )
