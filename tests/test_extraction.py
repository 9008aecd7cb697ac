import json

import pytest

from schemas import ExtractionSource
from services.extraction import (
    ANALYSIS_CATEGORIES,
    PLACEHOLDERS,
    STARTER_CATEGORIES,
    extract_analysis,
    extract_conversation_starters,
    extract_photo_analysis,
    extract_score,
    extract_string_list,
    heuristic_split,
    split_sections,
)


FULL_REPLY = {
    "overallScore": 7.5,
    "strengths": ["Good lighting", "Genuine smile"],
    "weaknesses": ["Only selfies"],
    "improvementSuggestions": [
        {"title": "Add a hobby shot", "description": "Show what you love doing", "actionText": "Upload"}
    ],
    "firstImpression": {"wouldSwipe": "right", "reason": "Warm and friendly"},
    "detailedAnalysis": {
        "photoQuality": {"score": 8, "feedback": "Sharp"},
        "diversity": {"score": 5, "feedback": "Same setting"},
        "impression": {"score": 7, "feedback": "Approachable"},
        "bioFeedback": {"score": 6, "feedback": "A bit generic"},
    },
}


def test_well_formed_json_round_trips():
    r = extract_analysis(json.dumps(FULL_REPLY))
    assert r.source == ExtractionSource.JSON
    assert not r.degraded
    assert r.overallScore == FULL_REPLY["overallScore"]
    assert r.strengths == FULL_REPLY["strengths"]
    assert r.weaknesses == FULL_REPLY["weaknesses"]
    assert [s.model_dump() for s in r.improvementSuggestions] == FULL_REPLY["improvementSuggestions"]
    assert r.firstImpression.model_dump() == FULL_REPLY["firstImpression"]
    assert r.detailedAnalysis.model_dump() == FULL_REPLY["detailedAnalysis"]


def test_embedded_object_in_prose():
    raw = "Here you go:\n{\"overallScore\":7.5,\"strengths\":[\"Good lighting\"]}\nHope that helps!"
    r = extract_analysis(raw)
    assert r.source == ExtractionSource.EMBEDDED
    assert r.overallScore == 7.5
    assert r.strengths == ["Good lighting"]


def test_fenced_block_wins_over_embedded():
    raw = (
        "Sure! {not json}\n"
        "```json\n"
        '{"overallScore": 5, "weaknesses": ["Dark photos"]}\n'
        "```\n"
    )
    r = extract_analysis(raw)
    assert r.source == ExtractionSource.FENCED
    assert r.overallScore == 5
    assert r.weaknesses == ["Dark photos"]


def test_embedded_skips_objects_of_unknown_shape():
    raw = 'Config: {"model": "x"} and the answer {"overallScore": 9, "strengths": ["Style"]}'
    r = extract_analysis(raw)
    assert r.source == ExtractionSource.EMBEDDED
    assert r.overallScore == 9


def test_braces_inside_strings_do_not_break_scanning():
    raw = 'Result: {"overallScore": 6, "strengths": ["Uses {curly} quotes \\"well\\""]} done'
    r = extract_analysis(raw)
    assert r.strengths == ['Uses {curly} quotes "well"']


def test_heuristic_analysis_from_headed_lists():
    raw = (
        "Overall Score: 6/10\n\n"
        "Strengths:\n"
        "1. Great smile in the first photo\n"
        "2. Nice travel shots\n\n"
        "Areas for Improvement:\n"
        "1. Too many group photos\n\n"
        "Specific Suggestions for Improvement:\n"
        "1. Improve the lighting on photo three\n"
        "2. Add a photo with your dog\n"
    )
    r = extract_analysis(raw)
    assert r.source == ExtractionSource.HEURISTIC
    assert r.degraded and not r.fallback
    assert r.overallScore == 6
    assert r.strengths == ["Great smile in the first photo", "Nice travel shots"]
    assert r.weaknesses == ["Too many group photos"]
    assert [s.description for s in r.improvementSuggestions] == [
        "Improve the lighting on photo three",
        "Add a photo with your dog",
    ]


def test_heuristic_analysis_placeholders_for_empty_categories():
    r = extract_analysis("I'm sorry, I can't help with that.")
    assert r.source == ExtractionSource.HEURISTIC
    assert r.strengths == [PLACEHOLDERS["strengths"]]
    assert r.weaknesses == [PLACEHOLDERS["weaknesses"]]
    assert len(r.improvementSuggestions) == 1
    assert r.overallScore is None


@pytest.mark.parametrize("raw", ["", "{", "```json\n{broken\n```", "[1, 2, 3]", "null", "{}"])
def test_malformed_input_never_raises(raw):
    r = extract_analysis(raw)
    assert r.source == ExtractionSource.HEURISTIC
    assert r.strengths and r.weaknesses and r.improvementSuggestions


def test_three_numbered_message_sections_recovered_in_order():
    raw = (
        "Here are some ideas for you!\n\n"
        "1. Opening message: Hey, is that Machu Picchu in your second photo?\n"
        "2. Playful message: Settle a debate for me, pineapple on pizza?\n"
        "3. Direct message: Your dog looks like the real star here. What's their name?\n"
    )
    r = extract_conversation_starters(raw)
    assert r.source == ExtractionSource.HEURISTIC
    assert r.messages == [
        "Hey, is that Machu Picchu in your second photo?",
        "Settle a debate for me, pineapple on pizza?",
        "Your dog looks like the real star here. What's their name?",
    ]


def test_starter_categories_and_placeholders():
    raw = (
        "Message: Hi there!\n\n"
        "Follow-up: What got you into climbing?\n\n"
        "Another message: Loved your bio."
    )
    r = extract_conversation_starters(raw)
    assert r.messages == ["Hi there!", "Loved your bio."]
    assert r.followUps == ["What got you into climbing?"]
    assert r.tips == [PLACEHOLDERS["tips"]]


def test_starters_headed_sections():
    raw = (
        "Messages:\n- Hey!\n- Hi!\n- Hello!\n- Yo!\n\n"
        "Follow-up questions:\n- Where was that?\n\n"
        "Tips:\n- Keep it short\n"
    )
    r = extract_conversation_starters(raw, max_items=3)
    assert r.messages == ["Hey!", "Hi!", "Hello!"]
    assert r.followUps == ["Where was that?"]
    assert r.tips == ["Keep it short"]


def test_cap_policy_is_configurable():
    raw = "Messages:\n- a\n- b\n- c\n- d\n- e\n"
    assert extract_conversation_starters(raw, max_items=None).messages == ["a", "b", "c", "d", "e"]
    assert extract_conversation_starters(raw, max_items=2).messages == ["a", "b"]


def test_starters_json():
    raw = json.dumps({"messages": ["m1", "m2"], "followUps": ["f1"], "tips": []})
    r = extract_conversation_starters(raw)
    assert r.source == ExtractionSource.JSON
    assert r.messages == ["m1", "m2"]
    assert r.followUps == ["f1"]
    assert r.tips == []


def test_split_sections():
    sections = split_sections("Intro line\ncontinued\n\n1. first\n2) second\n   more\n- bullet")
    assert sections == [
        ("Intro line\ncontinued", False),
        ("first", True),
        ("second\nmore", True),
        ("bullet", True),
    ]


def test_tip_keyword_is_a_whole_word():
    found = heuristic_split("1. Multiple photos look the same", STARTER_CATEGORIES)
    assert found == {"followUps": [], "tips": [], "messages": []}


def test_analysis_labels_override_header():
    found = heuristic_split("Strengths:\n1. Weakness: blurry\n2. Bright colors", ANALYSIS_CATEGORIES)
    assert found["weaknesses"] == ["blurry"]
    assert found["strengths"] == ["Bright colors"]


@pytest.mark.parametrize(
    "text, expected",
    [("I'd give this a 7/10.", 7), ("Score: 8.5", 8.5), ("solid 6 out of 10", 6), ("no number", None),
     ("15/10 would date", None)],
)
def test_extract_score(text, expected):
    assert extract_score(text) == expected


def test_string_list_from_key_array_and_heuristic():
    items, source = extract_string_list('{"bios": ["one", "two"]}', "bios")
    assert (items, source) == (["one", "two"], ExtractionSource.JSON)

    items, source = extract_string_list('["a", "b", "c", "d"]', "responses", max_items=3)
    assert items == ["a", "b", "c"]

    items, source = extract_string_list('1. "First"\n2. "Second"', "responses")
    assert (items, source) == (["First", "Second"], ExtractionSource.HEURISTIC)

    items, source = extract_string_list("nothing useful", "bios")
    assert items == [PLACEHOLDERS["bios"]]


def test_photo_analysis_json_and_lines():
    p = extract_photo_analysis('{"description": "Hiking", "verdict": "Okay", "suggestion": "Crop"}')
    assert (p.description, p.verdict, p.suggestion) == ("Hiking", "Okay", "Crop")

    p = extract_photo_analysis("Description: Mirror selfie\nVerdict: Needs work\nSuggestion: Use natural light")
    assert p.description == "Mirror selfie"
    assert p.verdict == "Needs Improvement"
    assert p.suggestion == "Use natural light"

    p = extract_photo_analysis("")
    assert p.verdict == "Needs Improvement"
    assert p.description


def test_analysis_keywords_without_headers():
    text = (
        "1. Good energy in the beach photo\n"
        "2. Avoid sunglasses in the main shot\n"
        "3. Try a photo with your guitar\n"
        "4. Suggest adding a prompt about travel, the good kind"
    )
    found = heuristic_split(text, ANALYSIS_CATEGORIES)
    assert found["strengths"] == ["Good energy in the beach photo"]
    assert found["weaknesses"] == ["Avoid sunglasses in the main shot"]
    # suggestions are checked first
    assert found["suggestions"] == [
        "Try a photo with your guitar",
        "Suggest adding a prompt about travel, the good kind",
    ]
