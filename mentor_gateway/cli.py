"""
Command-line interface tools for the Mentor Gateway.
"""

import asyncio
import json
from collections.abc import Coroutine
from typing import Any

import httpx
import typer

from .models import ChatResponse, EntriesListResponse, InsightsResponse, PromptResponse

DEFAULT_BASE_URL = "http://localhost:5000"

app = typer.Typer(help="Mentor Gateway CLI tools")

URL_OPTION = typer.Option(
    DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Mentor Gateway"
)
JSON_OPTION = typer.Option(False, "--json", "-j", help="Output raw JSON")


class GatewayRequestError(Exception):
    """The gateway answered with an error envelope."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


# MARK: - Commands


@app.command()
def health(base_url: str = URL_OPTION) -> None:
    """Show which upstreams the gateway is configured for."""

    async def _health() -> None:
        result = await _request(base_url, "GET", "/healthz")
        services = result.get("services", {})
        print(f"entries: {services.get('entries')}")
        print(f"openai:  {'configured' if services.get('openai') else 'not configured'}")

    _run_with_error_handling(_health(), base_url)


@app.command()
def entries(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries to list"),
    base_url: str = URL_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """List recent journal entries."""

    async def _entries() -> None:
        result = await _request(base_url, "GET", "/entries/all", params={"limit": limit})
        if json_output:
            print(json.dumps(result, indent=2))
            return

        rows = EntriesListResponse.model_validate(result).rows
        if not rows:
            print("No entries yet")
        for row in rows:
            stamp = f"{row.created_at} > " if row.created_at else ""
            print(f"{stamp}{row.text}")

    _run_with_error_handling(_entries(), base_url)


@app.command()
def add_entry(
    text: str = typer.Argument(..., help="Entry text"),
    base_url: str = URL_OPTION,
) -> None:
    """Add a journal entry."""

    async def _add_entry() -> None:
        result = await _request(base_url, "POST", "/entries", json={"text": text})
        print(f"Saved entry {result['entry'].get('id')}")

    _run_with_error_handling(_add_entry(), base_url)


@app.command()
def prompt(
    mood: str = typer.Option("", "--mood", "-m", help="Current mood"),
    focus: str = typer.Option("", "--focus", "-f", help="What to focus on"),
    entry: str = typer.Option("", "--entry", "-e", help="Most recent entry"),
    base_url: str = URL_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Ask for a journaling prompt."""

    async def _prompt() -> None:
        result = await _request(
            base_url, "POST", "/ai/prompt", json={"mood": mood, "focus": focus, "entry": entry}
        )
        if json_output:
            print(json.dumps(result, indent=2))
            return
        print(PromptResponse.model_validate(result).prompt)

    _run_with_error_handling(_prompt(), base_url)


@app.command()
def insights(
    entry: str = typer.Option("", "--entry", "-e", help="Journal entry text"),
    mood: str = typer.Option("", "--mood", "-m", help="Current mood"),
    base_url: str = URL_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Get mentor insights for an entry or mood."""

    async def _insights() -> None:
        payload = {"entry": entry, "mood": {"mood": mood} if mood else None}
        result = await _request(base_url, "POST", "/ai/insights", json=payload)
        if json_output:
            print(json.dumps(result, indent=2))
            return

        data = InsightsResponse.model_validate(result).insights
        print(f"Emotion:    {data.primary_emotion} (risk: {data.risk_level})")
        print(f"Summary:    {data.summary}")
        print(f"Reflection: {data.reflection}")
        print(f"Next step:  {data.action_item}")

    _run_with_error_handling(_insights(), base_url)


@app.command()
def chat(
    message: str = typer.Argument(..., help="Message for the mentor"),
    topic: str = typer.Option("", "--topic", "-t", help="Conversation topic"),
    base_url: str = URL_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Send a single message to the mentor chat."""

    async def _chat() -> None:
        payload = {
            "topic": topic,
            "conversation": [{"role": "user", "content": message}],
        }
        result = await _request(base_url, "POST", "/ai/chat", json=payload)
        if json_output:
            print(json.dumps(result, indent=2))
            return
        print(ChatResponse.model_validate(result).reply)

    _run_with_error_handling(_chat(), base_url)


# MARK: - Private Helpers


async def _request(base_url: str, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
    """Call the gateway and return its JSON body, raising on error envelopes."""
    async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
        response = await client.request(method, path, **kwargs)

    if response.is_error:
        try:
            message = response.json().get("error", "")
        except ValueError:
            message = ""
        raise GatewayRequestError(response.status_code, message or response.reason_phrase)
    return response.json()


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except GatewayRequestError as e:
        print(f"Error: HTTP {e.status_code}: {e}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
