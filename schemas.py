from enum import Enum
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, computed_field

Verdict = Literal["Good", "Okay", "Needs Improvement"]


class ExtractionSource(str, Enum):
    JSON = "json"
    FENCED = "fenced"
    EMBEDDED = "embedded"
    HEURISTIC = "heuristic"
    SAMPLE = "sample"


# --- Requests -------------------------------------------------------------

class AnalysisRequest(BaseModel):
    images: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("images", "photos", "imageUrls"),
    )
    bio: Optional[str] = None
    goals: Optional[str] = None
    preferences: Optional[str] = None
    tone: Optional[str] = None
    promptText: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.images) or bool((self.bio or "").strip()) or bool((self.promptText or "").strip())


class BioRequest(BaseModel):
    age: Optional[str] = None
    job: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    personality: Optional[str] = None
    lookingFor: Optional[str] = None
    culturalContext: str = "American"
    tone: str = "friendly"


class ConversationStarterRequest(BaseModel):
    name: Optional[str] = None
    profilePrompt: Optional[str] = None
    profileAnswer: Optional[str] = None
    bio: Optional[str] = None
    interests: Optional[str] = None
    photoDescription: Optional[str] = None
    photoUrl: Optional[str] = None


class PromptPunchUpRequest(BaseModel):
    prompt: str
    tone: str = "witty"


class MessageSuggestionRequest(BaseModel):
    conversationHistory: List[str] = Field(default_factory=list)
    userInterests: List[str] = Field(default_factory=list)
    matchInterests: Optional[List[str]] = None


# --- Results --------------------------------------------------------------

class FeedbackItem(BaseModel):
    type: Literal["positive", "improvement"]
    text: str


class FirstImpression(BaseModel):
    wouldSwipe: Literal["right", "left"]
    reason: str = ""


class ImprovementSuggestion(BaseModel):
    title: str = "Improvement Suggestion"
    description: str
    actionText: str = "Apply This Change"


class ScoredNote(BaseModel):
    score: Optional[float] = None
    feedback: str = ""


class DetailedAnalysis(BaseModel):
    photoQuality: Optional[ScoredNote] = None
    diversity: Optional[ScoredNote] = None
    impression: Optional[ScoredNote] = None
    bioFeedback: Optional[ScoredNote] = None


class PhotoAnalysis(BaseModel):
    description: str = ""
    verdict: Verdict = "Needs Improvement"
    suggestion: str = ""


class AnalysisResult(BaseModel):
    overallScore: Optional[float] = None
    firstImpression: Optional[FirstImpression] = None
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    photoFeedback: List[FeedbackItem] = Field(default_factory=list)
    bioFeedback: List[FeedbackItem] = Field(default_factory=list)
    improvementSuggestions: List[ImprovementSuggestion] = Field(default_factory=list)
    detailedAnalysis: Optional[DetailedAnalysis] = None
    photos: List[PhotoAnalysis] = Field(default_factory=list)
    overallVerdict: Optional[str] = None
    overallSuggestion: Optional[str] = None
    source: ExtractionSource = ExtractionSource.JSON

    @computed_field
    @property
    def fallback(self) -> bool:
        return self.source == ExtractionSource.SAMPLE

    @property
    def degraded(self) -> bool:
        return self.source in (ExtractionSource.HEURISTIC, ExtractionSource.SAMPLE)


class BioSuggestions(BaseModel):
    bios: List[str]
    source: ExtractionSource = ExtractionSource.JSON


class ConversationStarters(BaseModel):
    messages: List[str]
    followUps: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    source: ExtractionSource = ExtractionSource.JSON


class PromptResponses(BaseModel):
    prompt: str
    responses: List[str]
    source: ExtractionSource = ExtractionSource.JSON


class MessageSuggestions(BaseModel):
    suggestions: List[str]
    source: ExtractionSource = ExtractionSource.JSON
