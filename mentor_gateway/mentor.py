"""
Mentor features served by the gateway.

Each function here validates its request, bounds the input, asks the model
for a reply and shapes that reply into the response model. Model output is
coerced rather than rejected: missing text gets a fixed fallback and list
fields are reduced to lists of short strings.
"""

from collections.abc import Mapping
from typing import Any

from . import prompts
from .errors import MissingInputError
from .llm import ChatInvoker
from .models import (
    Anomaly,
    AnomalyRequest,
    AnomalyResponse,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    GoalReflection,
    GoalsRequest,
    GoalsResponse,
    Insights,
    InsightsRequest,
    InsightsResponse,
    PartnerRequest,
    PartnerResponse,
    PartnerShare,
    PatternMap,
    PatternRequest,
    PatternResponse,
    PromptRequest,
    PromptResponse,
    SummaryRequest,
    SummaryResponse,
    Transcript,
    TranscriptRequest,
    TranscriptResponse,
    WeeklySummary,
)
from .sanitize import (
    normalize_conversation,
    normalize_entries,
    normalize_mood_value,
    normalize_moods,
    sanitize,
    sanitize_strings,
)

RISK_LEVELS = ("low", "medium", "high")
OUTPUT_TEXT_MAX = 1200
OUTPUT_ITEM_MAX = 300
OUTPUT_LIST_LIMIT = 10
PROMPT_MAX_CHARS = 220
CHAT_HISTORY_LIMIT = 30
CHAT_MESSAGE_MAX = 1200
NOTE_MAX = 1800


# MARK: - Shaping Helpers


def _text(data: Mapping[str, Any], key: str, fallback: str) -> str:
    value = data.get(key)
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        cleaned = sanitize(value, OUTPUT_TEXT_MAX)
        if cleaned:
            return cleaned
    return fallback


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    strings = [
        item for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)
    ]
    return sanitize_strings(strings, OUTPUT_LIST_LIMIT, OUTPUT_ITEM_MAX)


def _risk_level(data: Mapping[str, Any]) -> str:
    value = data.get("risk_level")
    if value is None or value == "":
        return "low"
    level = sanitize(value, 20).lower()
    return level if level in RISK_LEVELS else "medium"


def _present(value: Any) -> bool:
    # Any falsy value (null, false, 0, empty) counts as absent
    return bool(value)


# MARK: - Features


async def generate_insights(invoker: ChatInvoker, request: InsightsRequest) -> InsightsResponse:
    entry = sanitize(request.entry)
    mood = normalize_mood_value(request.mood)
    stats = request.stats if _present(request.stats) else None
    goals = sanitize_strings(request.goals, 10, 120)

    if not entry and mood is None and stats is None:
        raise MissingInputError("Provide at least an entry, mood, or stats snapshot.")

    result = await invoker.run_json_chat(
        prompts.INSIGHTS_SYSTEM,
        {
            "entry": entry,
            "mood": mood.model_dump() if mood else None,
            "stats": stats,
            "goals": goals,
        },
        max_tokens=350,
    )
    data = result.json
    fallback = prompts.FALLBACK_INSIGHTS
    insights = Insights(
        primary_emotion=_text(data, "primary_emotion", fallback["primary_emotion"]),
        summary=_text(data, "summary", fallback["summary"]),
        reflection=_text(data, "reflection", fallback["reflection"]),
        action_item=_text(data, "action_item", fallback["action_item"]),
        risk_level=_risk_level(data),
        partner_share=_text(data, "partner_share", fallback["partner_share"]),
    )
    return InsightsResponse(insights=insights, usage=result.usage)


async def generate_prompt(invoker: ChatInvoker, request: PromptRequest) -> PromptResponse:
    focus = sanitize(request.focus, 200) or "balance and gratitude"
    mood = sanitize(request.mood, 40) or "curious"
    entry = sanitize(request.entry, 400) or "none"

    result = await invoker.run_chat(
        [
            ChatMessage(role="system", content=prompts.PROMPT_SYSTEM),
            ChatMessage(role="user", content=prompts.prompt_request(mood, focus, entry)),
        ],
        max_tokens=100,
        temperature=0.8,
    )
    prompt = sanitize(result.text, PROMPT_MAX_CHARS) or prompts.FALLBACK_PROMPT
    return PromptResponse(prompt=prompt, usage=result.usage)


async def summarize_week(invoker: ChatInvoker, request: SummaryRequest) -> SummaryResponse:
    entries = normalize_entries(request.entries, 20)
    moods = normalize_moods(request.moods, 20)
    stats = request.stats if _present(request.stats) else None

    if not entries and not moods and stats is None:
        raise MissingInputError("Provide entries, moods, or stats for the summary.")

    result = await invoker.run_json_chat(
        prompts.SUMMARY_SYSTEM,
        {
            "entries": [entry.model_dump() for entry in entries],
            "moods": [mood.model_dump() for mood in moods],
            "stats": stats,
        },
        max_tokens=420,
    )
    data = result.json
    fallback = prompts.FALLBACK_SUMMARY
    summary = WeeklySummary(
        overview=_text(data, "overview", fallback["overview"]),
        wins=_string_list(data, "wins"),
        growth_edges=_string_list(data, "growth_edges"),
        focus_theme=_text(data, "focus_theme", fallback["focus_theme"]),
        encouragement=_text(data, "encouragement", fallback["encouragement"]),
    )
    return SummaryResponse(summary=summary, usage=result.usage)


def _goal_reflections(raw: Any, goals: list[str]) -> list[GoalReflection]:
    reflections = []
    if isinstance(raw, list):
        for index, item in enumerate(raw[:OUTPUT_LIST_LIMIT]):
            if not isinstance(item, Mapping):
                continue
            default_goal = goals[index] if index < len(goals) else goals[-1]
            reflections.append(
                GoalReflection(
                    goal=_text(item, "goal", default_goal),
                    insight=_text(item, "insight", prompts.FALLBACK_GOAL_INSIGHT),
                    micro_action=_text(item, "micro_action", prompts.FALLBACK_GOAL_ACTION),
                )
            )
    if reflections:
        return reflections
    return [
        GoalReflection(
            goal=goal,
            insight=prompts.FALLBACK_GOAL_INSIGHT,
            micro_action=prompts.FALLBACK_GOAL_ACTION,
        )
        for goal in goals
    ]


async def reflect_on_goals(invoker: ChatInvoker, request: GoalsRequest) -> GoalsResponse:
    goals = sanitize_strings(request.goals, 10, 160)
    entry = sanitize(request.entry, 400)

    if not goals:
        raise MissingInputError("Provide at least one goal.")

    result = await invoker.run_json_chat(
        prompts.GOALS_SYSTEM, {"goals": goals, "entry": entry}, max_tokens=400
    )
    reflections = _goal_reflections(result.json.get("reflections"), goals)
    return GoalsResponse(reflections=reflections, usage=result.usage)


async def detect_anomalies(invoker: ChatInvoker, request: AnomalyRequest) -> AnomalyResponse:
    entries = normalize_entries(request.entries, 30)
    moods = normalize_moods(request.moods, 30)

    if not entries and not moods:
        raise MissingInputError("Provide recent entries or moods for analysis.")

    result = await invoker.run_json_chat(
        prompts.ANOMALY_SYSTEM,
        {
            "entries": [entry.model_dump() for entry in entries],
            "moods": [mood.model_dump() for mood in moods],
        },
        max_tokens=320,
    )
    data = result.json
    anomaly = Anomaly(
        risk_level=_risk_level(data),
        alerts=_string_list(data, "alerts"),
        recommendation=_text(
            data, "recommendation", prompts.FALLBACK_ANOMALY_RECOMMENDATION
        ),
    )
    return AnomalyResponse(anomaly=anomaly, usage=result.usage)


async def map_patterns(invoker: ChatInvoker, request: PatternRequest) -> PatternResponse:
    entries = normalize_entries(request.entries, 40)

    if not entries:
        raise MissingInputError("Provide entries to map life patterns.")

    result = await invoker.run_json_chat(
        prompts.PATTERN_SYSTEM,
        {"entries": [entry.model_dump() for entry in entries]},
        max_tokens=380,
    )
    data = result.json
    pattern = PatternMap(
        themes=_string_list(data, "themes"),
        triggers=_string_list(data, "triggers"),
        supportive_habits=_string_list(data, "supportive_habits"),
    )
    return PatternResponse(pattern=pattern, usage=result.usage)


async def clean_transcript(
    invoker: ChatInvoker, request: TranscriptRequest
) -> TranscriptResponse:
    note = (
        sanitize(request.voice_note, NOTE_MAX)
        or sanitize(request.voice_note_text, NOTE_MAX)
        or sanitize(request.note, NOTE_MAX)
    )

    if not note:
        raise MissingInputError("Provide a voice note snippet to transcribe.")

    result = await invoker.run_json_chat(prompts.TRANSCRIPT_SYSTEM, note, max_tokens=320)
    data = result.json
    transcript = Transcript(
        # The cleaned note falls back to the raw note itself
        transcript=_text(data, "transcript", note),
        emotions=_string_list(data, "emotions"),
        highlights=_string_list(data, "highlights"),
        action_item=_text(data, "action_item", prompts.FALLBACK_TRANSCRIPT_ACTION),
    )
    return TranscriptResponse(transcript=transcript, usage=result.usage)


async def share_with_partner(
    invoker: ChatInvoker, request: PartnerRequest
) -> PartnerResponse:
    insights = request.insights if _present(request.insights) else None
    summary = request.summary if _present(request.summary) else None
    audience = sanitize(request.audience or "partner", 40) or "partner"

    if insights is None and summary is None:
        raise MissingInputError(
            "Provide insights or a summary to craft a partner update."
        )

    result = await invoker.run_json_chat(
        prompts.PARTNER_SYSTEM,
        {"insights": insights, "summary": summary, "audience": audience},
        max_tokens=220,
    )
    share = PartnerShare(
        message=_text(result.json, "message", prompts.FALLBACK_PARTNER_MESSAGE)
    )
    return PartnerResponse(share=share, usage=result.usage)


async def continue_chat(invoker: ChatInvoker, request: ChatRequest) -> ChatResponse:
    topic = sanitize(request.topic, 120) or "overall wellbeing"
    history = normalize_conversation(
        request.conversation, CHAT_HISTORY_LIMIT, CHAT_MESSAGE_MAX
    )
    if not history:
        history = [ChatMessage(role="user", content=prompts.chat_opener(topic))]

    result = await invoker.run_chat(
        [ChatMessage(role="system", content=prompts.CHAT_SYSTEM), *history],
        max_tokens=360,
        temperature=0.7,
    )
    reply = result.text.strip() or prompts.FALLBACK_REPLY
    return ChatResponse(reply=reply, usage=result.usage)
