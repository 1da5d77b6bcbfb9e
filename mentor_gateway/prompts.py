"""
System prompts and fallback copy for the mentor features.
"""

INSIGHTS_SYSTEM = (
    "You are an empathetic AI mentor. Analyse the data and output JSON with keys "
    "primary_emotion, summary, reflection, action_item, risk_level (low|medium|high), "
    "and partner_share (short supportive sentence)."
)

PROMPT_SYSTEM = (
    "Create a single journaling prompt tailored to the user's current mood and "
    "context. Keep it under 220 characters."
)

SUMMARY_SYSTEM = (
    "Create an uplifting weekly executive summary of the user's emotional wellbeing. "
    "Respond with JSON keys: overview, wins (array), growth_edges (array), "
    "focus_theme, encouragement."
)

GOALS_SYSTEM = (
    "Relate the gratitude reflection to the user's life goals. "
    "Return JSON { reflections: [{ goal, insight, micro_action }] }."
)

ANOMALY_SYSTEM = (
    "Detect emotional anomalies or mental health risks. "
    "Return JSON { risk_level, alerts: [string], recommendation }."
)

PATTERN_SYSTEM = (
    "Analyse gratitude entries to build a life pattern map. Return JSON "
    "{ themes: [string], triggers: [string], supportive_habits: [string] }."
)

TRANSCRIPT_SYSTEM = (
    "You clean up raw voice note text into a polished transcript. Return JSON "
    "{ transcript, emotions: [string], highlights: [string], action_item }."
)

PARTNER_SYSTEM = (
    "Create a short, caring update that shares emotional status with a loved one "
    "without revealing raw journal text. Return JSON { message }."
)

CHAT_SYSTEM = (
    "You are a therapist-style AI mentor. Be empathetic, concise, and focus on "
    "actionable grounding techniques. Keep replies under 180 words."
)


def prompt_request(mood: str, focus: str, entry: str) -> str:
    return f"Mood: {mood}\nFocus request: {focus}\nMost recent entry: {entry}"


def chat_opener(topic: str) -> str:
    return f"I'd like to talk about {topic}."


# MARK: - Fallbacks

FALLBACK_PROMPT = "Take a mindful breath and describe one highlight from today."
FALLBACK_REPLY = (
    "Take a calming breath and notice one thing you appreciate in this moment."
)

FALLBACK_INSIGHTS = {
    "primary_emotion": "reflective",
    "summary": "You took a moment to check in with yourself today.",
    "reflection": "What felt most meaningful about this moment?",
    "action_item": "Take three slow breaths and name one thing you are grateful for.",
    "partner_share": "I'm checking in with myself and taking things one step at a time.",
}

FALLBACK_SUMMARY = {
    "overview": "You kept showing up for your journal this week.",
    "focus_theme": "Gentle consistency",
    "encouragement": "Small moments of gratitude add up. Keep going.",
}

FALLBACK_GOAL_INSIGHT = "Today's reflection is a step on the path toward this goal."
FALLBACK_GOAL_ACTION = "Pick one small action that moves this goal forward today."

FALLBACK_ANOMALY_RECOMMENDATION = (
    "Keep checking in regularly and reach out to someone you trust if things feel heavy."
)

FALLBACK_TRANSCRIPT_ACTION = "Revisit this note later and underline one thing to act on."

FALLBACK_PARTNER_MESSAGE = (
    "Just wanted to share that I'm taking time to reflect and look after myself."
)
