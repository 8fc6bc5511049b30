"""
Terminal client for the hub.

Prints roster changes and chat as they arrive and sends what you type.

Usage:
    python -m tidal_client.main [--host HOST] [--port PORT]

Commands:
    /move X Y     - claim an absolute position
    /w /a /s /d   - step up, left, down, right
    /who          - list players
    /quit         - disconnect and exit
    anything else - chat
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, replace

from tidal_client.config import settings
from tidal_client.network.client import HubClient
from tidal_client.roster import RosterDiff
from tidal_shared.protocol import ChatMessage


STEPS = {
    "/w": (0, -1),
    "/a": (-1, 0),
    "/s": (0, 1),
    "/d": (1, 0),
}


@dataclass
class Command:
    """A parsed input line."""
    action: str
    args: tuple = ()


def parse_command(line: str) -> Command | None:
    """
    Parse one line of terminal input.

    Returns:
        The command, or None for a blank line or bad arguments
    """
    line = line.strip()
    if not line:
        return None

    if not line.startswith("/"):
        return Command("say", (line,))

    parts = line.split()
    command = parts[0].lower()

    if command in STEPS:
        return Command("step", STEPS[command])

    if command == "/move":
        if len(parts) != 3:
            return None
        try:
            return Command("move", (float(parts[1]), float(parts[2])))
        except ValueError:
            return None

    if command in ("/who", "/quit"):
        return Command(command[1:])

    return None


def print_diff(diff: RosterDiff) -> None:
    for record in diff.joined:
        print(f"  → {record.name} joined at ({record.x}, {record.y})")
    for record in diff.left:
        print(f"  → {record.name} left")


def print_chat(chat: ChatMessage) -> None:
    print(f"  [{chat.timestamp}] {chat.player}: {chat.message}")


async def run_interactive(client: HubClient) -> None:
    """Read commands until /quit or end of input."""
    loop = asyncio.get_running_loop()

    while client.is_connected:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break

        command = parse_command(line)
        if command is None:
            continue

        if command.action == "quit":
            break
        elif command.action == "say":
            await client.say(*command.args)
        elif command.action == "move":
            await client.move(*command.args)
        elif command.action == "step":
            await client.step(*command.args)
        elif command.action == "who":
            for record in client.roster:
                marker = "*" if record.id == client.player_id else " "
                print(f" {marker} {record.name} at ({record.x}, {record.y})")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Tidal Idle terminal client")
    parser.add_argument("--host", default=settings.server_host, help="Server host")
    parser.add_argument("--port", type=int, default=settings.server_port, help="Server port")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    config = replace(settings, server_host=args.host, server_port=args.port)
    client = HubClient(
        config=config,
        on_roster_change=print_diff,
        on_chat=print_chat,
        on_error=lambda message: print(f"  ✗ {message}"),
    )

    if not await client.connect():
        print(f"Failed to connect to {config.server_url}")
        return 1

    print(f"✓ Connected as {client.player.name}")
    try:
        await run_interactive(client)
    finally:
        await client.disconnect()
    return 0


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    cli()
