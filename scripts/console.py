"""
Interactive console for the browser command agent.

Type a command at the prompt; the agent thinks, shows the browser actions it
took and reveals its answer word by word. Press Ctrl+C while it is working
to cancel the command. Scheduled tasks keep firing in the background and
their results are printed as they arrive.

Usage:
    python scripts/console.py
    python scripts/console.py --data-dir /tmp/agent --latency 0.5
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.table import Table

from core.actions import ActionStatus, CommandResult
from shared.state import AgentServices, build_services

console = Console()

EXIT_WORDS = ("exit", "quit", "bye")

_STATUS_STYLE = {
    ActionStatus.COMPLETED: "green",
    ActionStatus.ERROR: "red",
    ActionStatus.ACTIVE: "yellow",
    ActionStatus.PENDING: "dim",
}


def print_actions(result: CommandResult):
    if not result.actions:
        return
    table = Table(title=f"🧭 {result.intent}", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Action")
    table.add_column("Details", style="dim")
    table.add_column("Status", justify="center")
    for action in result.actions:
        style = _STATUS_STYLE.get(action.status, "white")
        table.add_row(action.type.value, action.description, action.details or "", f"[{style}]{action.status.value}[/{style}]")
    console.print(table)
    if result.new_url:
        console.print(f"[dim]Now at {result.new_url}[/dim]")


async def run_command(services: AgentServices, text: str):
    processor = services.processor
    handle = processor.start(text)
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, handle.cancel)
        trapped = True
    except (NotImplementedError, RuntimeError):
        # No loop signal handlers on Windows; Ctrl+C ends the console there
        trapped = False

    try:
        with console.status("[cyan]Working...[/cyan]"):
            outcome = await processor.process(text, handle)
        if outcome.cancelled:
            console.print(f"[yellow]🛑 {outcome.response}[/yellow]")
            return

        print_actions(outcome.result)
        async for word in processor.reveal(outcome.response, handle):
            console.print(word, end=" ", soft_wrap=True)
        console.print()
        if handle.cancelled:
            console.print("[yellow](stopped)[/yellow]")
    finally:
        if trapped:
            loop.remove_signal_handler(signal.SIGINT)


async def watch_task_results(services: AgentServices):
    queue = await services.event_bus.subscribe()
    # Subscribing replays recent history; only new results are interesting here
    while not queue.empty():
        queue.get_nowait()
    try:
        while True:
            event = await queue.get()
            if event["type"] != "task_result":
                continue
            task = services.scheduler.get_task(event["data"]["task_id"])
            name = task.name if task else event["data"]["task_id"]
            console.print(f"\n[magenta]⏰ {name}:[/magenta] {event['data']['message']}")
    finally:
        services.event_bus.unsubscribe(queue)


async def repl(services: AgentServices):
    services.scheduler.start()
    watcher = asyncio.create_task(watch_task_results(services))
    loop = asyncio.get_running_loop()

    console.print("[bold]Browser Command Agent[/bold]")
    console.print("[dim]Try: search for python tutorials | login to GitHub | extract the table from it | schedule \"News\" to search for AI news every 10 minutes[/dim]")
    console.print(f"[dim]Type {', '.join(EXIT_WORDS)} to leave. Ctrl+C cancels a running command.[/dim]\n")

    try:
        while True:
            text = await loop.run_in_executor(None, console.input, "[bold green]> [/bold green]")
            text = text.strip()
            if not text:
                continue
            if text.lower() in EXIT_WORDS:
                break
            await run_command(services, text)
    finally:
        watcher.cancel()
        services.scheduler.shutdown()


def main():
    parser = argparse.ArgumentParser(description="Browser Command Agent console")
    parser.add_argument("--data-dir", type=Path, help="Directory for context, tasks and browser config")
    parser.add_argument("--latency", type=float, help="Seconds the agent 'works' on each command")
    parser.add_argument("--verbose", action="store_true", help="Show service logs")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    services = build_services(data_dir=args.data_dir, latency_seconds=args.latency)

    try:
        asyncio.run(repl(services))
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Goodbye.[/dim]")


if __name__ == "__main__":
    main()
