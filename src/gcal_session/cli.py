"""CLI for gcal-session.

Usage:
    gcal-session init        # Show setup instructions
    gcal-session status      # Show configuration status
    gcal-session shell       # Interactive calendar session

Shell commands:
    login                    # Sign in with Google
    logout                   # Revoke the token and clear the list
    list                     # Refresh upcoming events
    show                     # Print the current list
    new                      # Create an event (prompts for fields)
    delete <n>               # Delete the n-th event in the list
    quit                     # Leave the shell
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date


def cmd_init() -> int:
    """Print setup instructions."""
    from gcal_session.config import ENV_FILE, REPO_ROOT

    print("=" * 60)
    print("GCAL-SESSION SETUP")
    print("=" * 60)
    print()
    print(f"Repository: {REPO_ROOT}")
    print()
    print("1. In Google Cloud Console, enable the Google Calendar API")
    print("2. Create an OAuth client of type 'Web application'")
    print("   Authorized redirect URI: http://localhost (or set GCAL_REDIRECT_URI)")
    print("3. Create an API key")
    print()
    print(f"Then create {ENV_FILE}:")
    print()
    print(f"  cat > {ENV_FILE} << 'EOF'")
    print("  GOOGLE_CLIENT_ID=...apps.googleusercontent.com")
    print("  GOOGLE_API_KEY=...")
    print("  EOF")
    print()
    return 0


def cmd_status() -> int:
    """Show configuration status."""
    from gcal_session.config import Settings, get_credential_status

    status = get_credential_status()
    settings = Settings.from_env()

    print("=" * 60)
    print("GCAL-SESSION STATUS")
    print("=" * 60)
    print()
    print(f"Repository: {status['repo_root']}")
    print(f".env:       {'[x]' if status['env_file'] else '[ ]'}")
    print()
    print("Google:")
    print(f"  GOOGLE_CLIENT_ID: {'[x]' if status['google']['client_id'] else '[ ]'}")
    print(f"  GOOGLE_API_KEY:   {'[x]' if status['google']['api_key'] else '[ ]'}")
    print()
    print(f"Event time zone:   {settings.event_time_zone}")
    print(f"Display locale:    {settings.display_locale}")
    print(f"Display time zone: {settings.display_time_zone or 'local'}")
    print()
    return 0 if all(status["google"].values()) else 1


def _print_events(app) -> None:
    snapshot = app.snapshot()
    if not snapshot.events:
        print("No upcoming events")
        return
    for index, event in enumerate(snapshot.events, start=1):
        print(f"{index:>2}. {event.summary}")
        print(f"    {event.formatted_date}  {event.formatted_time}")
        if event.description:
            print(f"    {event.description}")
        if event.html_link:
            print(f"    {event.html_link}")


def _read_draft():
    from gcal_session.models import EventDraft

    draft = EventDraft()
    draft.title = input("Title: ").strip()
    draft.description = input("Description (optional): ").strip()
    raw_date = input(f"Date [{date.today().isoformat()}]: ").strip()
    try:
        draft.date = date.fromisoformat(raw_date) if raw_date else date.today()
    except ValueError:
        draft.date = None
    draft.start_time = input(f"Start [{draft.start_time}]: ").strip() or draft.start_time
    draft.end_time = input(f"End [{draft.end_time}]: ").strip() or draft.end_time
    return draft


async def _shell() -> int:
    from gcal_session.app import CalendarApp

    app = CalendarApp()
    await app.start()
    print(app.snapshot().status)

    try:
        while True:
            line = (await asyncio.to_thread(input, "gcal> ")).strip()
            if not line:
                continue
            command, _, arg = line.partition(" ")

            if command in ("quit", "exit"):
                break
            elif command == "login":
                await app.sign_in()
            elif command == "logout":
                await app.sign_out()
            elif command == "list":
                await app.list_upcoming()
                _print_events(app)
            elif command == "show":
                _print_events(app)
            elif command == "new":
                draft = await asyncio.to_thread(_read_draft)
                await app.create_event(draft)
            elif command == "delete":
                events = app.snapshot().events
                try:
                    event = events[int(arg) - 1]
                except (ValueError, IndexError):
                    print(f"No event number {arg!r}")
                    continue
                await app.delete_event(event.id)
            else:
                print(f"Unknown command: {command}")
                continue

            print(app.snapshot().status)
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        await app.aclose()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="gcal-session",
        description="View, create and delete events on your primary Google Calendar",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("init", help="Show setup instructions")
    subparsers.add_parser("status", help="Show configuration status")
    subparsers.add_parser("shell", help="Interactive calendar session")

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "init":
        return cmd_init()

    if args.command == "status":
        return cmd_status()

    if args.command == "shell":
        return asyncio.run(_shell())

    return 0


if __name__ == "__main__":
    sys.exit(main())
