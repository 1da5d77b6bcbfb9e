"""
Tests for the mentor features: input validation, prompt construction and
shaping of model replies.
"""

import json

import pytest

from fakes import make_invoker
from mentor_gateway import mentor, prompts
from mentor_gateway.errors import MissingInputError
from mentor_gateway.models import (
    AnomalyRequest,
    ChatRequest,
    GoalsRequest,
    InsightsRequest,
    PartnerRequest,
    PatternRequest,
    PromptRequest,
    SummaryRequest,
    TranscriptRequest,
)


def _user_payload(client) -> dict:
    return json.loads(client.calls[0]["messages"][1]["content"])


class TestInsights:
    async def test_requires_some_input(self):
        invoker, client = make_invoker()
        for body in [
            InsightsRequest(),
            InsightsRequest(entry="   ", mood={}, stats={}),
            InsightsRequest(goals=["be calm"]),
        ]:
            with pytest.raises(MissingInputError) as info:
                await mentor.generate_insights(invoker, body)
            assert info.value.status_code == 400
        assert client.calls == []

    async def test_model_fields_are_kept(self):
        reply = {
            "primary_emotion": "joy",
            "summary": "A warm day.",
            "reflection": "Who else made you smile?",
            "action_item": "Text your friend.",
            "risk_level": "LOW",
            "partner_share": "Had a lovely coffee.",
            "extra": "dropped",
        }
        invoker, client = make_invoker(reply)
        response = await mentor.generate_insights(
            invoker, InsightsRequest(entry="Had coffee with a friend")
        )

        expected = {key: value for key, value in reply.items() if key != "extra"}
        assert response.insights.model_dump() == {**expected, "risk_level": "low"}
        assert client.calls[0]["max_tokens"] == 350
        assert client.calls[0]["messages"][0]["content"] == prompts.INSIGHTS_SYSTEM

    async def test_payload_is_bounded(self):
        invoker, client = make_invoker({})
        await mentor.generate_insights(
            invoker,
            InsightsRequest(
                entry="e" * 1000,
                mood={"mood": "calm", "note": "fine", "secret": "x"},
                stats={"streak_days": 4},
                goals=["  run  ", "", "g" * 200] + ["more"] * 20,
            ),
        )
        payload = _user_payload(client)
        assert len(payload["entry"]) == 800
        assert payload["mood"] == {"mood": "calm", "note": "fine", "created_at": None}
        assert payload["stats"] == {"streak_days": 4}
        assert payload["goals"][0] == "run"
        assert len(payload["goals"][1]) == 120
        assert len(payload["goals"]) <= 10

    async def test_fallbacks_for_empty_reply(self):
        invoker, _ = make_invoker("not json at all")
        response = await mentor.generate_insights(invoker, InsightsRequest(mood="tired"))
        insights = response.insights
        assert insights.primary_emotion == prompts.FALLBACK_INSIGHTS["primary_emotion"]
        assert insights.summary
        assert insights.reflection
        assert insights.action_item
        assert insights.partner_share
        assert insights.risk_level == "low"

    async def test_unknown_risk_level(self):
        invoker, _ = make_invoker({"risk_level": "severe"})
        response = await mentor.generate_insights(invoker, InsightsRequest(entry="hi"))
        assert response.insights.risk_level == "medium"


class TestPrompt:
    async def test_defaults(self):
        invoker, client = make_invoker("  What made you laugh today?  ")
        response = await mentor.generate_prompt(invoker, PromptRequest())

        assert response.prompt == "What made you laugh today?"
        call = client.calls[0]
        assert call["max_tokens"] == 100
        assert call["temperature"] == 0.8
        assert call["messages"][1]["content"] == (
            "Mood: curious\nFocus request: balance and gratitude\nMost recent entry: none"
        )

    async def test_fallback_and_bound(self):
        invoker, _ = make_invoker("")
        response = await mentor.generate_prompt(invoker, PromptRequest(mood="sad"))
        assert response.prompt == prompts.FALLBACK_PROMPT

        invoker, _ = make_invoker("w" * 500)
        response = await mentor.generate_prompt(invoker, PromptRequest())
        assert len(response.prompt) == mentor.PROMPT_MAX_CHARS


class TestSummary:
    async def test_requires_input(self):
        invoker, _ = make_invoker()
        with pytest.raises(MissingInputError):
            await mentor.summarize_week(invoker, SummaryRequest(entries=[], moods=[]))

    async def test_shapes_lists(self):
        reply = {
            "overview": "Steady week.",
            "wins": ["Walked daily", "", 7, {"nested": True}],
            "growth_edges": "Sleep earlier",
        }
        invoker, client = make_invoker(reply)
        response = await mentor.summarize_week(
            invoker, SummaryRequest(entries=[{"text": "walk", "createdAt": "t1"}])
        )
        summary = response.summary
        assert summary.overview == "Steady week."
        assert summary.wins == ["Walked daily", "7"]
        assert summary.growth_edges == ["Sleep earlier"]
        assert summary.focus_theme == prompts.FALLBACK_SUMMARY["focus_theme"]
        assert summary.encouragement == prompts.FALLBACK_SUMMARY["encouragement"]
        assert _user_payload(client)["entries"] == [{"text": "walk", "created_at": "t1"}]
        assert client.calls[0]["max_tokens"] == 420


class TestGoals:
    async def test_requires_a_goal(self):
        invoker, _ = make_invoker()
        for goals in [[], None, ["   "], "run a marathon"]:
            with pytest.raises(MissingInputError) as info:
                await mentor.reflect_on_goals(invoker, GoalsRequest(goals=goals))
            assert "goal" in info.value.message

    async def test_reflections(self):
        reply = {
            "reflections": [
                {"goal": "Run", "insight": "You moved.", "micro_action": "Stretch."},
                {"insight": "Reading calms you."},
                "junk",
            ]
        }
        invoker, _ = make_invoker(reply)
        response = await mentor.reflect_on_goals(
            invoker, GoalsRequest(goals=["Run", "Read more"], entry="Read a chapter")
        )
        assert [r.goal for r in response.reflections] == ["Run", "Read more"]
        assert response.reflections[1].micro_action == prompts.FALLBACK_GOAL_ACTION

    async def test_fallback_per_goal(self):
        invoker, _ = make_invoker({})
        response = await mentor.reflect_on_goals(invoker, GoalsRequest(goals=["Run", "Rest"]))
        assert [r.goal for r in response.reflections] == ["Run", "Rest"]
        assert all(r.insight and r.micro_action for r in response.reflections)


class TestAnomalyAndPattern:
    async def test_anomaly_requires_entries_or_moods(self):
        invoker, _ = make_invoker()
        with pytest.raises(MissingInputError):
            await mentor.detect_anomalies(invoker, AnomalyRequest(stats={"x": 1}))

    async def test_anomaly_shape(self):
        invoker, client = make_invoker({"risk_level": "high", "alerts": "Low mood streak"})
        response = await mentor.detect_anomalies(
            invoker, AnomalyRequest(moods=[{"mood": "sad"}] * 40)
        )
        assert response.anomaly.risk_level == "high"
        assert response.anomaly.alerts == ["Low mood streak"]
        assert response.anomaly.recommendation == prompts.FALLBACK_ANOMALY_RECOMMENDATION
        assert len(_user_payload(client)["moods"]) == 30

    async def test_pattern_requires_entries(self):
        invoker, _ = make_invoker()
        with pytest.raises(MissingInputError):
            await mentor.map_patterns(invoker, PatternRequest(entries=[]))

    async def test_pattern_shape(self):
        invoker, client = make_invoker({"themes": ["family"], "triggers": None})
        response = await mentor.map_patterns(
            invoker, PatternRequest(entries=[{"text": "dinner"}] * 50)
        )
        assert response.pattern.themes == ["family"]
        assert response.pattern.triggers == []
        assert response.pattern.supportive_habits == []
        assert len(_user_payload(client)["entries"]) == 40


class TestTranscript:
    async def test_requires_note(self):
        invoker, _ = make_invoker()
        with pytest.raises(MissingInputError):
            await mentor.clean_transcript(invoker, TranscriptRequest(note="  "))

    async def test_note_aliases_in_order(self):
        invoker, client = make_invoker({"transcript": "Clean."})
        await mentor.clean_transcript(
            invoker, TranscriptRequest(voice_note="", voice_note_text="second", note="third")
        )
        assert client.calls[0]["messages"][1]["content"] == "second"

    async def test_raw_note_is_the_fallback_transcript(self):
        invoker, _ = make_invoker({})
        response = await mentor.clean_transcript(invoker, TranscriptRequest(note="um hello"))
        assert response.transcript.transcript == "um hello"
        assert response.transcript.action_item == prompts.FALLBACK_TRANSCRIPT_ACTION


class TestPartner:
    async def test_requires_insights_or_summary(self):
        invoker, _ = make_invoker()
        with pytest.raises(MissingInputError):
            await mentor.share_with_partner(invoker, PartnerRequest(audience="mom"))

    async def test_message(self):
        invoker, client = make_invoker({"message": "Doing well!"})
        response = await mentor.share_with_partner(
            invoker, PartnerRequest(summary={"overview": "ok"})
        )
        assert response.share.message == "Doing well!"
        assert _user_payload(client)["audience"] == "partner"

    async def test_fallback_message(self):
        invoker, _ = make_invoker({"message": ""})
        response = await mentor.share_with_partner(invoker, PartnerRequest(insights={"a": 1}))
        assert response.share.message == prompts.FALLBACK_PARTNER_MESSAGE


class TestChat:
    async def test_topic_opener(self):
        invoker, client = make_invoker("Let's begin.")
        response = await mentor.continue_chat(invoker, ChatRequest(topic="sleep"))

        assert response.reply == "Let's begin."
        messages = client.calls[0]["messages"]
        assert messages[0] == {"role": "system", "content": prompts.CHAT_SYSTEM}
        assert messages[1] == {"role": "user", "content": "I'd like to talk about sleep."}
        assert client.calls[0]["temperature"] == 0.7
        assert client.calls[0]["max_tokens"] == 360

    async def test_history_order_is_preserved(self):
        invoker, client = make_invoker("Noted.")
        await mentor.continue_chat(
            invoker,
            ChatRequest(
                conversation=[
                    {"role": "user", "content": "first"},
                    {"role": "assistant", "content": "second"},
                    {"role": "user", "text": "third"},
                ]
            ),
        )
        messages = client.calls[0]["messages"]
        assert messages[0]["role"] == "system"
        assert [m["content"] for m in messages[1:]] == ["first", "second", "third"]

    async def test_empty_history_uses_default_topic(self):
        invoker, client = make_invoker("")
        response = await mentor.continue_chat(
            invoker, ChatRequest(conversation=[{"content": ""}])
        )
        assert response.reply == prompts.FALLBACK_REPLY
        assert client.calls[0]["messages"][1]["content"] == (
            "I'd like to talk about overall wellbeing."
        )
