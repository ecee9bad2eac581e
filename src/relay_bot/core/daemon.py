#!/usr/bin/env python3
"""
Relay Bot Daemon.
Long-running service that answers private Telegram chats with an LLM.
Incoming text and voice messages are debounced per conversation, answered once
the sender pauses, and the answer is relayed back in paced chunks.
"""
import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from telethon import events

from relay_bot.core.config import load_config
from relay_bot.core.errors import ConfigurationError, DeliveryError, GenerationError
from relay_bot.core.log import setup_logging
from relay_bot.core.models import InboundMessage, MessageKind, RelayConfig, SettleResult
from relay_bot.core.service import TelegramService, create_client
from relay_bot.generation.backends import AnswerGenerator, create_answer_generator
from relay_bot.generation.retry import invoke_with_retry
from relay_bot.humanizer.splitter import split_reply
from relay_bot.humanizer.timing import NaturalTiming
from relay_bot.integrations.media_detector import classify_event, should_relay
from relay_bot.integrations.transcriber import VoiceTranscriber
from relay_bot.temporal.debounce import DebounceScheduler

console = Console()
logger = logging.getLogger(__name__)

STATUS_INTERVAL_SECONDS = 60 * 5


class RelayDaemon:
    """Main daemon that wires the relay pipeline together."""

    def __init__(
        self,
        config: RelayConfig,
        client=None,
        service: Optional[TelegramService] = None,
        generator: Optional[AnswerGenerator] = None,
        transcriber: Optional[VoiceTranscriber] = None,
    ):
        self.config = config
        self.client = client
        self.service = service
        self.generator = generator
        self.transcriber = transcriber
        self.scheduler = DebounceScheduler(
            settle_callback=self.settle,
            delay_seconds=config.settle_delay_seconds,
        )
        self.bot_user_id: Optional[int] = None
        self.running = False
        self.stop_requested = False
        self.stats = {
            "messages_received": 0,
            "voice_transcribed": 0,
            "bursts_settled": 0,
            "messages_sent": 0,
            "generation_failures": 0,
            "delivery_failures": 0,
            "started_at": None,
        }

    async def initialize(self) -> None:
        """Initialize all components and connect to Telegram."""
        console.print("[bold blue]Initializing Relay Bot Daemon...[/bold blue]")

        if self.generator is None:
            self.generator = create_answer_generator(self.config)
        console.print(f"  [green]✓[/green] Answer backend: {self.config.ai_selected.value} ({self.generator.name})")

        if self.transcriber is None:
            self.transcriber = VoiceTranscriber(
                api_key=self.config.assemblyai_api_key,
                temp_dir=self.config.temp_dir,
            )
        console.print(f"  [green]✓[/green] Voice transcription enabled (AssemblyAI, staging in {self.config.temp_dir})")

        if self.client is None:
            self.client = create_client(self.config)
        await self.client.start()

        if self.service is None:
            self.service = TelegramService(
                self.client,
                timing=NaturalTiming(self.config.timing_mode),
                typing_simulation=self.config.typing_simulation,
            )

        me = await self.service.get_me()
        self.bot_user_id = me["id"]
        console.print(f"  [green]✓[/green] Logged in as: {me['first_name']} (@{me.get('username')})")

        console.print(
            f"  [green]✓[/green] Debounce scheduler ready "
            f"(settle after {self.config.settle_delay_seconds:.0f}s, {self.config.max_retries} attempts)"
        )

        self._register_handlers()
        console.print(f"  [green]✓[/green] Message handlers registered")

    def _register_handlers(self) -> None:
        """Register Telegram event handlers."""

        @self.client.on(events.NewMessage(incoming=True))
        async def handle_incoming(event):
            """Handle incoming messages."""
            try:
                message = classify_event(event, self.bot_user_id)
                await self.handle_message(message)
            except Exception as e:
                logger.error(f"Error handling incoming message: {e}")

    async def handle_message(self, message: InboundMessage) -> bool:
        """
        Feed one inbound message into the debounce scheduler.

        Voice notes are transcribed first. With the stateful backend the
        conversation's session is prepared before buffering.

        Returns:
            True if the message was buffered, False if it was filtered out
        """
        if not should_relay(message):
            return False

        self.stats["messages_received"] += 1
        conversation_id = message.conversation_id

        if message.kind == MessageKind.VOICE:
            console.print(f"[cyan]Transcribing voice from {conversation_id}...[/cyan]")
            text = await self.transcriber.transcribe_message(self.client, message.media_ref)
            self.stats["voice_transcribed"] += 1
            console.print(f"[green]Transcribed:[/green] {text[:100]}")
        else:
            text = message.body or ""

        console.print(f"\n[cyan]<- Received from {conversation_id}:[/cyan] {text[:100]}")

        try:
            await self.generator.ensure_session(conversation_id)
        except GenerationError as e:
            # The settle pipeline retries session creation on generate()
            logger.warning(f"Could not prepare session for {conversation_id}: {e}")

        self.scheduler.on_message(conversation_id, text)
        console.print(f"[dim]Buffered message from {conversation_id}, waiting for more...[/dim]")
        return True

    async def settle(self, conversation_id: str, text: str) -> SettleResult:
        """
        Settle pipeline: generate (with retries) -> split -> deliver.

        Called by the DebounceScheduler once per settled burst. Failures are
        logged and recorded on the result; the conversation simply gets no
        reply for this burst.
        """
        result = SettleResult(conversation_id=conversation_id, prompt=text)
        self.stats["bursts_settled"] += 1

        try:
            result.answer = await invoke_with_retry(
                lambda: self.generator.generate(text, conversation_id),
                max_attempts=self.config.max_retries,
            )
        except Exception as e:
            self.stats["generation_failures"] += 1
            result.error = f"generation failed: {e}"
            console.print(f"[red]Could not generate answer for {conversation_id}: {e}[/red]")
            return result

        result.chunks = split_reply(result.answer)
        console.print(f"[dim]Sending {len(result.chunks)} message(s) to {conversation_id}[/dim]")

        try:
            result.delivered = await self.service.send_messages_with_delay(
                result.chunks,
                _chat_target(conversation_id),
            )
        except DeliveryError as e:
            self.stats["delivery_failures"] += 1
            result.delivered = e.sent_count
            result.error = f"delivery failed: {e}"
            console.print(f"[red]Delivery to {conversation_id} failed: {e}[/red]")
        finally:
            self.stats["messages_sent"] += result.delivered

        if result.success:
            console.print(f"[green]-> Sent to {conversation_id}:[/green] {result.answer[:100]}")
        return result

    def _create_status_table(self) -> Table:
        """Create status table for display."""
        table = Table(title="Relay Bot Status")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        if self.stats["started_at"]:
            uptime = datetime.now() - self.stats["started_at"]
            table.add_row("Uptime", str(uptime).split('.')[0])

        table.add_row("Messages Received", str(self.stats["messages_received"]))
        table.add_row("Voice Transcribed", str(self.stats["voice_transcribed"]))
        table.add_row("Bursts Settled", str(self.stats["bursts_settled"]))
        table.add_row("Messages Sent", str(self.stats["messages_sent"]))
        table.add_row("Generation Failures", str(self.stats["generation_failures"]))
        table.add_row("Delivery Failures", str(self.stats["delivery_failures"]))
        table.add_row("Pending Conversations", str(len(self.scheduler.pending_conversation_ids())))
        table.add_row("Active Pipelines", str(self.scheduler.active_pipelines))
        return table

    def request_stop(self) -> None:
        """Ask the daemon to stop; honoured even before run() starts."""
        self.stop_requested = True
        self.running = False

    async def run(self) -> None:
        """Run the daemon until stopped."""
        if self.stop_requested:
            console.print("[yellow]Stop requested during startup[/yellow]")
            await self.shutdown()
            return

        self.running = True
        self.stats["started_at"] = datetime.now()

        console.print(Panel.fit(
            "[bold green]Relay Bot Daemon Started[/bold green]\n"
            "Press Ctrl+C to stop",
            title="Status"
        ))

        last_status = datetime.now()
        try:
            while self.running:
                if (datetime.now() - last_status).total_seconds() >= STATUS_INTERVAL_SECONDS:
                    console.print(self._create_status_table())
                    last_status = datetime.now()
                await asyncio.sleep(1)
        except asyncio.CancelledError:
            console.print("\n[yellow]Shutdown requested...[/yellow]")
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Gracefully shutdown the daemon."""
        self.running = False
        console.print("[yellow]Shutting down...[/yellow]")

        pending = self.scheduler.pending_conversation_ids()
        if pending:
            console.print(f"[cyan]Dropping {len(pending)} pending conversation(s)...[/cyan]")
        await self.scheduler.cancel_all()

        if self.scheduler.active_pipelines:
            console.print(f"[cyan]Waiting for {self.scheduler.active_pipelines} reply pipeline(s)...[/cyan]")
            await self.scheduler.wait_idle()

        if self.client:
            await self.client.disconnect()
            console.print("[green]Disconnected from Telegram[/green]")

        console.print(Panel.fit(
            f"[bold]Final Stats[/bold]\n"
            f"Messages Received: {self.stats['messages_received']}\n"
            f"Voice Transcribed: {self.stats['voice_transcribed']}\n"
            f"Bursts Settled: {self.stats['bursts_settled']}\n"
            f"Messages Sent: {self.stats['messages_sent']}\n"
            f"Generation Failures: {self.stats['generation_failures']}\n"
            f"Delivery Failures: {self.stats['delivery_failures']}",
            title="Session Summary"
        ))


def _chat_target(conversation_id: str) -> int | str:
    """Telethon wants numeric chat IDs as ints."""
    try:
        return int(conversation_id)
    except ValueError:
        return conversation_id


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Telegram LLM Relay Bot")
    parser.add_argument(
        '--log-level',
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help='Logging level (default: INFO)',
    )
    parser.add_argument(
        '--env-file',
        type=Path,
        default=None,
        help='Explicit .env file to load',
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level, console=console)

    try:
        config = load_config(args.env_file)
    except ConfigurationError as e:
        console.print(f"[red bold]Configuration error: {e}[/red bold]")
        return 1

    daemon = RelayDaemon(config)

    loop = asyncio.get_running_loop()

    def signal_handler():
        daemon.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await daemon.initialize()
        await daemon.run()
    except ConfigurationError as e:
        console.print(f"[red bold]Configuration error: {e}[/red bold]")
        return 1
    except Exception as e:
        console.print(f"[red bold]Fatal error: {e}[/red bold]")
        raise
    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
