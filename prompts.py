from typing import List, Tuple

from schemas import (
    AnalysisRequest,
    BioRequest,
    ConversationStarterRequest,
    MessageSuggestionRequest,
    PromptPunchUpRequest,
)

SYSTEM_PROMPT = """
You are an honest dating profile reviewer. You look at profile photos and text
and give specific, kind, actionable feedback. Follow the requested output format.
"""

ANALYSIS_JSON_SHAPE = """
Provide a detailed analysis with the following sections:
1. Overall Score (1-10)
2. Strengths (3 bullet points)
3. Areas for Improvement (3 bullet points)
4. Specific Suggestions for Improvement
5. Detailed Photo Analysis
6. Bio Feedback (if provided)

Format the response as JSON with the following structure:
{
  "overallScore": number,
  "strengths": string[],
  "weaknesses": string[],
  "improvementSuggestions": string[],
  "firstImpression": {"wouldSwipe": "right" | "left", "reason": string},
  "detailedAnalysis": {
    "photoQuality": {"score": number, "feedback": string},
    "diversity": {"score": number, "feedback": string},
    "impression": {"score": number, "feedback": string},
    "bioFeedback": {"score": number, "feedback": string}
  }
}
Output JSON only. No extra text.
"""

PHOTO_PROMPT_TEMPLATE = """
Review photo {index} of {total} from a dating profile. Return ONLY valid JSON:
{{
  "description": "string",
  "verdict": "Good" | "Okay" | "Needs Improvement",
  "suggestion": "string"
}}
"""

BIO_SYSTEM_PROMPT = "You are a dating profile expert who helps users create compelling bios."

CONVERSATION_SYSTEM_PROMPT = "You are a dating conversation expert who helps users craft engaging messages."

PUNCHUP_SYSTEM_PROMPT = (
    "You are a dating profile expert who specializes in creating witty, engaging prompt "
    "responses that help people stand out and showcase their personality on dating apps."
)


def build_analysis_prompt(req: AnalysisRequest) -> Tuple[str, List[str]]:
    """Render the aggregate analysis instruction and the ordered image refs.

    Each present field adds one clause. Absent fields are left out, never
    rendered as "none". Callers reject empty requests before getting here.
    """
    parts = ["Analyze this dating profile:"]
    if req.images:
        n = len(req.images)
        parts.append(f"Photos: {n} photo{'s' if n != 1 else ''} provided")
    clauses = (
        ("Bio", req.bio),
        ("Prompt Answer", req.promptText),
        ("Relationship Goals", req.goals),
        ("Preferences", req.preferences),
        ("Tone of feedback", req.tone),
    )
    for label, value in clauses:
        if value and value.strip():
            parts.append(f"{label}: {value.strip()}")
    parts.append(ANALYSIS_JSON_SHAPE.strip())
    return "\n\n".join(parts), list(req.images)


def build_photo_prompt(index: int, total: int) -> str:
    return PHOTO_PROMPT_TEMPLATE.format(index=index, total=total).strip()


def build_bio_prompt(req: BioRequest) -> str:
    lines = ["Generate 3 dating profile bio options for a person with the following characteristics:"]
    if req.age:
        lines.append(f"- Age: {req.age}")
    if req.job:
        lines.append(f"- Job: {req.job}")
    if req.interests:
        lines.append(f"- Interests: {', '.join(req.interests)}")
    if req.personality:
        lines.append(f"- Personality: {req.personality}")
    if req.lookingFor:
        lines.append(f"- Looking for: {req.lookingFor}")
    lines.append(f"- Cultural context: {req.culturalContext}")
    lines.append(f"- Tone: {req.tone}")
    lines.append("")
    lines.append("Each bio should be approximately 150-200 characters and have a different style or focus.")
    lines.append('Format the response as a JSON object with a "bios" array of strings.')
    return "\n".join(lines)


def build_conversation_prompt(req: ConversationStarterRequest) -> str:
    lines = ["Suggest ways to start a conversation with this dating app match."]
    if req.name:
        lines.append(f"Name: {req.name}")
    if req.profilePrompt:
        lines.append(f"Their prompt: {req.profilePrompt}")
    if req.profileAnswer:
        lines.append(f"Their answer: {req.profileAnswer}")
    if req.bio:
        lines.append(f"Their bio: {req.bio}")
    if req.interests:
        lines.append(f"Their interests: {req.interests}")
    if req.photoDescription:
        lines.append(f"Their photo: {req.photoDescription}")
    lines.append("")
    lines.append(
        "Give exactly 3 opening messages, 3 follow-up questions and 3 tips. "
        'Format the response as JSON: {"messages": [...], "followUps": [...], "tips": [...]}'
    )
    return "\n".join(lines)


def build_punchup_prompt(req: PromptPunchUpRequest) -> str:
    return (
        f"Generate 3 creative, {req.tone} responses for the following dating app prompt:\n\n"
        f'PROMPT: "{req.prompt}"\n\n'
        "The responses should be:\n"
        "- Unique and attention-grabbing\n"
        "- Between 100-150 characters each\n"
        "- Showcasing personality and humor\n"
        "- Avoiding cliches and generic answers\n"
        "- Each response should have a different approach or angle\n\n"
        'Format the response as a JSON object with a "responses" array containing 3 strings.'
    )


def build_message_prompt(req: MessageSuggestionRequest) -> str:
    lines = [
        "Generate 3 message suggestions for the next response in this dating app conversation:",
        "",
        "Conversation history:",
        *req.conversationHistory,
        "",
        f"My interests: {', '.join(req.userInterests)}",
    ]
    if req.matchInterests:
        lines.append(f"Their interests: {', '.join(req.matchInterests)}")
    lines.append("")
    lines.append("Provide 3 different suggestions that are engaging, authentic, and likely to get a positive response.")
    lines.append('Format the response as a JSON object with a "replies" array of strings.')
    return "\n".join(lines)
