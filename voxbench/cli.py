#!/usr/bin/env python3
"""
voxbench CLI: talk to three speech models and compare them.

    COMMAND         ALIASES         WHAT IT DOES
    -------         -------         ----------------------------------
    serve           start, up       Start the gateway + API server
    record          talk, rec       Record one utterance and run an exchange
    history         ls, list        List your conversations
    show            open, cat       Print one conversation
    delete          rm              Delete a conversation
    stats           dashboard       Per-model latency / score dashboard
    models                          List the available speech models
"""

import argparse
import asyncio
import sys
from datetime import datetime, timezone

__version__ = "1.0.0"

RESET = "\033[0m"
_BAND_COLORS = {
    "fast": "\033[92m", "good": "\033[92m",
    "fair": "\033[93m",
    "slow": "\033[91m", "poor": "\033[91m",
}


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def latency_band(latency_ms: float) -> str:
    if latency_ms < 500:
        return "fast"
    if latency_ms < 1000:
        return "fair"
    return "slow"


def score_band(score: float) -> str:
    if score >= 4:
        return "good"
    if score >= 3:
        return "fair"
    return "poor"


def format_date(iso: str, now: datetime | None = None) -> str:
    """'Today', 'Yesterday', 'N days ago' within a week, else the date."""
    date = datetime.fromisoformat(iso)
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    days = abs((now.date() - date.astimezone(timezone.utc).date()).days)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days <= 7:
        return f"{days} days ago"
    return date.date().isoformat()


def _color(text: str, band: str) -> str:
    if not sys.stdout.isatty():
        return text
    return f"{_BAND_COLORS.get(band, '')}{text}{RESET}"


def _bar(fraction: float, width: int = 20) -> str:
    fraction = max(0.0, min(1.0, fraction))
    filled = int(round(fraction * width))
    return "█" * filled + "░" * (width - filled)


def render_stats(stats) -> list[str]:
    """Dashboard lines for a list of ModelStats."""
    from voxbench.backends.router import display_name

    if not stats:
        return ["  No performance data available yet"]

    lines = []
    for s in stats:
        lat_band = latency_band(s.avg_latency)
        lines.append(f"  {display_name(s.model_name)}  ({s.usage_count} uses)")
        lines.append(
            f"  ├─ Latency:      {_color(f'{round(s.avg_latency)}ms', lat_band):>8}  "
            f"{_bar((2000 - s.avg_latency) / 2000)}  {lat_band}"
        )
        lines.append(
            f"  ├─ Quality:      {_color(f'{s.avg_quality:.1f}/5', score_band(s.avg_quality)):>8}  "
            f"{_bar(s.avg_quality / 5)}  {score_band(s.avg_quality)}"
        )
        lines.append(
            f"  └─ Expressivity: {_color(f'{s.avg_expressivity:.1f}/5', score_band(s.avg_expressivity)):>8}  "
            f"{_bar(s.avg_expressivity / 5)}  {score_band(s.avg_expressivity)}"
        )
    lines.append("")
    lines.append("  (quality/expressivity are placeholder scores, not measurements)")
    return lines


def _print_messages(messages):
    for m in messages:
        who = "you" if m.is_user else "ai "
        latency = f" [{m.latency_ms}ms]" if m.latency_ms is not None else ""
        print(f"  {who} ▶ {m.content}{latency}")
        if m.audio_url:
            print(f"        ♪ {m.audio_url}")


# ---------------------------------------------------------------------------
# Shared wiring
# ---------------------------------------------------------------------------

def _owner(cfg, args) -> str:
    from voxbench.auth import AuthSession
    return AuthSession.from_config(cfg, override=getattr(args, "owner", None)).current_owner()


def _store(cfg):
    from voxbench.storage.sqlite_store import SQLiteStore
    return SQLiteStore(cfg["storage"]["sqlite_path"])


def _run(func, args):
    """Run a command, printing expected failures instead of a traceback."""
    from voxbench.errors import VoxBenchError
    try:
        return func(args)
    except VoxBenchError as e:
        print(f"  ✗  {e.title}: {e}")
        return 1


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args):
    """Start the gateway + API server."""
    import uvicorn
    from voxbench.config import get_config

    cfg = get_config()
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]

    print(f"  voxbench v{__version__} on {host}:{port}")
    print("  Gateway: /functions/v1/speech-to-speech")
    print()

    uvicorn.run(
        "voxbench.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_record(args):
    """Record one utterance (microphone or --file) and run an exchange."""
    from voxbench.client import InferenceGatewayClient
    from voxbench.config import get_config
    from voxbench.orchestrator import ExchangeOrchestrator
    from voxbench.performance import PerformanceAggregator
    from voxbench.recorder import FileAudioDevice, PyAudioDevice, Recorder
    from voxbench.session import ConversationSession

    cfg = get_config()
    owner = _owner(cfg, args)
    store = _store(cfg)
    audio_cfg = cfg["audio"]

    if args.file:
        device = FileAudioDevice(args.file)
    else:
        device = PyAudioDevice(
            sample_rate=audio_cfg.get("sample_rate", 16000),
            chunk_size=audio_cfg.get("chunk_size", 1024),
        )

    session = ConversationSession(store, owner)
    if args.conversation:
        session.switch_to(args.conversation)

    def show(note):
        mark = "✗" if note.variant == "destructive" else "✓"
        print(f"  {mark}  {note.title}: {note.description}")

    orch = ExchangeOrchestrator(
        client=InferenceGatewayClient(url=args.url or None),
        session=session,
        aggregator=PerformanceAggregator(store, owner),
        recorder=Recorder(device, mime_type=audio_cfg.get("mime_type", "audio/wav")),
        notify=show,
    )

    if not orch.start_recording():
        return 1
    if not args.file:
        try:
            input("  ● Recording… press Enter to stop ")
        except (EOFError, KeyboardInterrupt):
            print()

    print(f"  Processing with {args.model}...")
    outcome = asyncio.run(orch.stop_and_submit(args.model, args.language))
    if outcome is None:
        return 1

    print(f"  Conversation: {outcome.conversation_id}")
    _print_messages([outcome.user_message, outcome.assistant_message])
    return 0


def cmd_history(args):
    """List conversations newest first."""
    from voxbench.backends.router import display_name
    from voxbench.config import get_config
    from voxbench.history import HistoryBrowser

    cfg = get_config()
    summaries = HistoryBrowser(_store(cfg)).list(_owner(cfg, args), limit=args.limit)
    if not summaries:
        print("  No conversations yet")
        return 0
    for s in summaries:
        c = s.conversation
        print(f"  {c.id}  {c.title}")
        print(
            f"      {display_name(c.model_used)} · {c.language.upper()} · "
            f"{format_date(c.created_at)} · {s.message_count} messages"
        )
    return 0


def cmd_show(args):
    """Print one conversation."""
    from voxbench.config import get_config
    from voxbench.history import HistoryBrowser

    cfg = get_config()
    messages = HistoryBrowser(_store(cfg)).open(_owner(cfg, args), args.conversation_id)
    if not messages:
        print("  (no messages)")
    _print_messages(messages)
    return 0


def cmd_delete(args):
    """Delete a conversation and its messages."""
    from voxbench.config import get_config
    from voxbench.history import HistoryBrowser

    cfg = get_config()
    HistoryBrowser(_store(cfg)).delete(_owner(cfg, args), args.conversation_id)
    print(f"  ✓  Deleted {args.conversation_id}")
    return 0


def cmd_stats(args):
    """Per-model dashboard."""
    from voxbench.config import get_config
    from voxbench.performance import PerformanceAggregator

    cfg = get_config()
    owner = _owner(cfg, args)
    stats = PerformanceAggregator(_store(cfg), owner).compute_stats()
    print("  Model Performance")
    print("  " + "─" * 56)
    for line in render_stats(stats):
        print(line)
    return 0


def cmd_models(args):
    """List registered speech models."""
    from voxbench.backends.router import PROVIDERS

    for name, cls in PROVIDERS.items():
        print(f"  {name:<10} {cls.display_name} ({cls.description})")
    return 0


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    from voxbench.backends.router import MODEL_NAMES

    parser = argparse.ArgumentParser(
        prog="voxbench",
        description="voxbench: speech-to-speech model bench.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"voxbench {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def owner_opt(p):
        p.add_argument("--owner", default=None, help="Owner id (default: auth.owner_id from config)")

    def setup_serve(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["serve", "start", "up"],
                 "Start the gateway + API server", cmd_serve, setup_serve)

    def setup_record(p):
        owner_opt(p)
        p.add_argument("--model", "-m", choices=MODEL_NAMES, default="moshi", help="Speech model")
        p.add_argument("--language", "-l", default="en", help="Language code (en, ta, es, fr, de)")
        p.add_argument("--file", "-f", default=None, help="Submit an audio file instead of the microphone")
        p.add_argument("--conversation", "-c", default=None, help="Continue an existing conversation")
        p.add_argument("--url", default=None, help="Gateway URL (default: gateway.url from config)")

    _add_command(sub, ["record", "talk", "rec"],
                 "Record one utterance and run an exchange", cmd_record, setup_record)

    def setup_history(p):
        owner_opt(p)
        p.add_argument("--limit", "-n", type=int, default=None, help="Show at most N conversations")

    _add_command(sub, ["history", "ls", "list"],
                 "List your conversations", cmd_history, setup_history)

    def setup_show(p):
        owner_opt(p)
        p.add_argument("conversation_id")

    _add_command(sub, ["show", "open", "cat"], "Print one conversation", cmd_show, setup_show)
    _add_command(sub, ["delete", "rm"], "Delete a conversation", cmd_delete, setup_show)
    _add_command(sub, ["stats", "dashboard"], "Per-model dashboard", cmd_stats, owner_opt)
    _add_command(sub, ["models"], "List the available speech models", cmd_models)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0
    return _run(args.func, args) or 0


if __name__ == "__main__":
    sys.exit(main())
