#!/usr/bin/env python3
"""Interactive chat with Gemini.

Setup:
    export GOOGLE_API_KEY="your-key"

Run:
    python examples/03_chat.py
"""

from __future__ import annotations

import asyncio

from rich.console import Console

from aiworks import ChatSession, GeminiProvider

console = Console()


async def main() -> None:
    chat = ChatSession(GeminiProvider(), system_prompt="You help people automate workflows.")
    console.print("[dim]Empty line to quit.[/]")
    while True:
        text = console.input("[bold]you>[/] ")
        if not text.strip():
            break
        console.print(f"[green]ai>[/] {await chat.send(text)}")


if __name__ == "__main__":
    asyncio.run(main())
