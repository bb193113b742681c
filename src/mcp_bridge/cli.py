"""CLI entry point for mcp-bridge."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click
from mcp.types import JSONRPCMessage, JSONRPCRequest

from mcp_bridge.bridge import InProcessBridge
from mcp_bridge.correlation import extract_jsonrpc_id
from mcp_bridge.models import BridgeDiagnostic
from mcp_bridge.responders import EchoResponder


@click.group()
@click.version_option(package_name="mcp-bridge")
def main() -> None:
    """In-process MCP transport bridge."""


@main.command()
@click.option(
    "--message",
    "-m",
    "messages",
    multiple=True,
    default=("hello",),
    show_default=True,
    help="Text to echo. Repeat to send several requests.",
)
@click.option("--timeout", type=float, default=5.0, help="Seconds to wait for all responses.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show full JSON payloads.")
@click.option("--debug", is_flag=True, default=False, help="Log bridge internals to stderr.")
def echo(messages: tuple[str, ...], timeout: float, verbose: bool, debug: bool) -> None:
    """Send requests to an echo responder over an in-process bridge."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    try:
        responses, diagnostics = asyncio.run(_run_echo(list(messages), timeout))
    except TimeoutError as exc:
        raise click.ClickException(f"Timed out after {timeout}s waiting for responses") from exc

    for response in responses:
        payload = response.model_dump(by_alias=True, exclude_none=True)
        result = payload.get("result", {})
        click.echo(f"  ← id={extract_jsonrpc_id(response)} {json.dumps(result.get('echoed'))}")
        if verbose:
            click.echo(f"       {json.dumps(payload, indent=2)}")

    for diagnostic in diagnostics:
        click.echo(f"  ! {diagnostic.kind.value}: {diagnostic.message}", err=True)

    click.echo(f"Received {len(responses)}/{len(messages)} responses")


async def _run_echo(
    messages: list[str],
    timeout: float,
) -> tuple[list[JSONRPCMessage], list[BridgeDiagnostic]]:
    """Run one echo session over a fresh bridge.

    Args:
        messages: Texts to send, one request each.
        timeout: Seconds to wait for all responses.

    Returns:
        The responses in arrival order, and any diagnostics the bridge emitted.
    """
    responder = EchoResponder()
    diagnostics: list[BridgeDiagnostic] = []
    responses: list[JSONRPCMessage] = []
    done = asyncio.Event()

    def on_message(message: Any) -> None:
        responses.append(message)
        if len(responses) == len(messages):
            done.set()

    bridge = InProcessBridge(responder, on_diagnostic=diagnostics.append)
    bridge.onmessage = on_message
    try:
        async with bridge:
            for i, text in enumerate(messages, start=1):
                request = JSONRPCRequest(jsonrpc="2.0", id=i, method="echo", params={"text": text})
                await bridge.send(JSONRPCMessage(request))
            if messages:
                await asyncio.wait_for(done.wait(), timeout)
    finally:
        await responder.aclose()
    return responses, diagnostics
