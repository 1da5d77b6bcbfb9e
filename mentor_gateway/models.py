"""
Shared data models for the Mentor Gateway.

This module defines the transient record shapes used across the gateway:
normalized journal records, chat messages, request bodies and the response
envelopes returned by the API.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# MARK: - Records


class Entry(BaseModel):
    """A bounded journal entry."""

    text: str = Field("", description="Entry text, at most 500 characters")
    created_at: Any = Field(None, description="Timestamp as supplied by the client")


class Mood(BaseModel):
    """A bounded mood check-in."""

    mood: str = Field("", description="Mood name, at most 50 characters")
    note: str = Field("", description="Free-text note, at most 240 characters")
    created_at: Any = Field(None, description="Timestamp as supplied by the client")


class ChatMessage(BaseModel):
    """A single message sent to the chat model."""

    role: Literal["system", "user", "assistant"]
    content: str


class StoredEntry(BaseModel):
    """An entry as returned by the entries service."""

    id: Any = None
    text: str = ""
    created_at: Any = None


# MARK: - Request Bodies

# Client payloads are loosely shaped: every field is optional and untyped
# so that bounding and normalization happen in one place.


class _LooseBody(BaseModel):
    model_config = ConfigDict(extra="ignore")


class InsightsRequest(_LooseBody):
    entry: Any = None
    mood: Any = None
    stats: Any = None
    goals: Any = None


class PromptRequest(_LooseBody):
    focus: Any = None
    mood: Any = None
    entry: Any = None


class SummaryRequest(_LooseBody):
    entries: Any = None
    moods: Any = None
    stats: Any = None


class GoalsRequest(_LooseBody):
    goals: Any = None
    entry: Any = None


class AnomalyRequest(_LooseBody):
    entries: Any = None
    moods: Any = None


class PatternRequest(_LooseBody):
    entries: Any = None


class TranscriptRequest(_LooseBody):
    voice_note: Any = None
    voice_note_text: Any = None
    note: Any = None


class PartnerRequest(_LooseBody):
    insights: Any = None
    summary: Any = None
    audience: Any = None


class ChatRequest(_LooseBody):
    conversation: Any = None
    topic: Any = None


class EntryCreate(_LooseBody):
    text: Any = None


# MARK: - Response Payloads

RiskLevel = Literal["low", "medium", "high"]
Usage = dict[str, Any] | None


class Insights(BaseModel):
    primary_emotion: str
    summary: str
    reflection: str
    action_item: str
    risk_level: RiskLevel
    partner_share: str


class WeeklySummary(BaseModel):
    overview: str
    wins: list[str]
    growth_edges: list[str]
    focus_theme: str
    encouragement: str


class GoalReflection(BaseModel):
    goal: str
    insight: str
    micro_action: str


class Anomaly(BaseModel):
    risk_level: RiskLevel
    alerts: list[str]
    recommendation: str


class PatternMap(BaseModel):
    themes: list[str]
    triggers: list[str]
    supportive_habits: list[str]


class Transcript(BaseModel):
    transcript: str
    emotions: list[str]
    highlights: list[str]
    action_item: str


class PartnerShare(BaseModel):
    message: str


# MARK: - Response Envelopes


class InsightsResponse(BaseModel):
    insights: Insights
    usage: Usage = None


class PromptResponse(BaseModel):
    prompt: str
    usage: Usage = None


class SummaryResponse(BaseModel):
    summary: WeeklySummary
    usage: Usage = None


class GoalsResponse(BaseModel):
    reflections: list[GoalReflection]
    usage: Usage = None


class AnomalyResponse(BaseModel):
    anomaly: Anomaly
    usage: Usage = None


class PatternResponse(BaseModel):
    pattern: PatternMap
    usage: Usage = None


class TranscriptResponse(BaseModel):
    transcript: Transcript
    usage: Usage = None


class PartnerResponse(BaseModel):
    share: PartnerShare
    usage: Usage = None


class ChatResponse(BaseModel):
    reply: str
    usage: Usage = None


class EntriesListResponse(BaseModel):
    rows: list[StoredEntry]


class EntryCreateResponse(BaseModel):
    ok: bool = True
    entry: StoredEntry
