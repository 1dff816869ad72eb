#!/usr/bin/env python3
"""
Main entry point for the interview practice coach.
Allows running the package with: python -m ainterview [command] [options]

Commands:
    practice        Run a practice session (default)
    history         List saved sessions, newest first
    clear-history   Delete saved sessions
    login/signup    Sign in with --email= [--password=]
    logout          Sign out
    whoami          Show the signed-in user
"""
import asyncio
import dataclasses
import getpass
import sys
import time
from typing import List, Optional

from .config import get_config
from .context import AppContext, build_context
from .errors import InterviewError, ConfigurationError, AuthError
from .interview.models import Category, Difficulty, Session
from .interview.orchestrator import SessionState
from .utils import setup_logging

USAGE = (
    "Usage: python -m ainterview [practice|history|clear-history|login|signup|logout|whoami]\n"
    "   practice options: --category=behavioral|technical --difficulty=easy|medium|hard --static --speech\n"
    "   login/signup options: --email=you@example.com [--password=...]"
)


def _option(args: List[str], name: str) -> Optional[str]:
    prefix = f"--{name}="
    for arg in args:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


def relative_time(timestamp: float, now: Optional[float] = None) -> str:
    """Human-friendly age of a timestamp, e.g. '3 hours ago'."""
    seconds = max(0, int((now if now is not None else time.time()) - timestamp))
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def _print_feedback(machine) -> None:
    feedback = machine.last_feedback
    print(f"\n🗣️  You said: {machine.last_transcript}")
    print(f"   ✨ Clarity: {feedback.clarity}")
    print(f"   ✂️  Conciseness: {feedback.conciseness}")
    print(f"   🏅 Overall: {feedback.overall_quality}")
    print(f"   💡 Suggestions: {feedback.suggestions}")


def _print_session(session: Session, now: Optional[float] = None) -> None:
    print(f"\n📅 {relative_time(session.created_at, now)} | "
          f"{session.category.value}/{session.difficulty.value} | {len(session.exchanges)} answer(s)")
    for idx, exchange in enumerate(session.exchanges, 1):
        print(f"   {idx}. Q: {exchange.question.text}")
        print(f"      A: {exchange.answer}")
        print(f"      💡 {exchange.feedback.suggestions}")


async def run_practice(ctx: AppContext, category: Category, difficulty: Difficulty) -> Optional[Session]:
    """Interactive practice loop driving the session machine from the terminal."""
    machine = ctx.create_session_machine()
    print(f"🎯 Practice: {category.value} questions, {difficulty.value} difficulty")
    print("⏳ Preparing your first question...")

    try:
        state = await machine.begin_session(category, difficulty)
        while True:
            if machine.error:
                print(f"❌ {machine.error}")

            if state == SessionState.IDLE:
                return None

            if state == SessionState.READY_TO_RECORD:
                print(f"\n❓ {machine.current_question.text}")
                choice = await asyncio.to_thread(input, "   Press Enter to record your answer, or 'e' to end: ")
                if choice.strip().lower() == "e":
                    break
                state = await machine.begin_recording()
                if state != SessionState.RECORDING:
                    continue
                await asyncio.to_thread(input, "🎙️  Recording... press Enter to stop. ")
                print("⏳ Transcribing and analyzing your answer...")
                state = await machine.end_recording()

            elif state == SessionState.SHOWING_FEEDBACK:
                _print_feedback(machine)
                choice = await asyncio.to_thread(input, "\n   [n]ext question or [e]nd session? ")
                if choice.strip().lower().startswith("e"):
                    break
                print("⏳ Thinking of a follow-up question...")
                state = await machine.next_question()

        session = await machine.end_session()
        if session is None:
            print("👋 Session ended without any answers; nothing saved.")
        else:
            print(f"\n✅ Session complete: {len(session.exchanges)} answer(s)")
            if machine.error:
                print(f"⚠️  Could not save session: {machine.error}")
            elif not ctx.history_store.available(ctx.identity_provider.current()):
                print("ℹ️  Sign in to keep a history of your sessions.")
        return session
    finally:
        machine.shutdown()


def _cmd_practice(ctx: AppContext, args: List[str]) -> int:
    try:
        category = Category((_option(args, "category") or Category.BEHAVIORAL.value).lower())
        difficulty = Difficulty((_option(args, "difficulty") or Difficulty.MEDIUM.value).lower())
    except ValueError as e:
        print(f"❌ {e}")
        print(USAGE)
        return 1
    asyncio.run(run_practice(ctx, category, difficulty))
    return 0


def _cmd_history(ctx: AppContext) -> int:
    identity = ctx.identity_provider.current()
    if not ctx.history_store.available(identity):
        print("🔒 Sign in to see your session history.")
        return 0
    sessions = ctx.history_store.list(identity)
    if not sessions:
        print("📭 No saved sessions yet.")
        return 0
    now = time.time()
    for session in sessions:
        _print_session(session, now)
    return 0


def _cmd_clear_history(ctx: AppContext) -> int:
    identity = ctx.identity_provider.current()
    if not ctx.history_store.available(identity):
        print("🔒 Sign in to manage your session history.")
        return 0
    count = ctx.history_store.clear(identity)
    print(f"🗑️  Deleted {count} session(s).")
    return 0


def _cmd_login(ctx: AppContext, args: List[str], signup: bool) -> int:
    email = _option(args, "email")
    if not email:
        print("❌ --email= is required")
        return 1
    password = _option(args, "password")
    if password is None and ctx.config.firebase_configured:
        password = getpass.getpass("🔑 Password: ")

    provider = ctx.identity_provider
    identity = provider.signup(email, password) if signup else provider.login(email, password)
    print(f"✅ Signed in as {identity.email}")
    return 0


def _cmd_logout(ctx: AppContext) -> int:
    ctx.identity_provider.logout()
    print("👋 Signed out")
    return 0


def _cmd_whoami(ctx: AppContext) -> int:
    identity = ctx.identity_provider.current()
    print(f"👤 {identity.email}" if identity else "👤 Not signed in")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for the interview coach."""
    args = list(sys.argv[1:] if argv is None else argv)
    command = args[0] if args and not args[0].startswith("--") else "practice"

    # Load configuration from environment
    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    if "--static" in args:
        config = dataclasses.replace(config, question_source="static")
    if "--speech" in args:
        config = dataclasses.replace(config, transcription_backend="speech")

    log_file = setup_logging(config.log_file, config.log_level)

    try:
        with build_context(config) as ctx:
            if command == "practice":
                return _cmd_practice(ctx, args)
            if command == "history":
                return _cmd_history(ctx)
            if command == "clear-history":
                return _cmd_clear_history(ctx)
            if command in ("login", "signup"):
                return _cmd_login(ctx, args, signup=command == "signup")
            if command == "logout":
                return _cmd_logout(ctx)
            if command == "whoami":
                return _cmd_whoami(ctx)
            print(f"❌ Unknown command: {command}")
            print(USAGE)
            return 1
    except AuthError as e:
        print(f"❌ Sign-in failed: {e.message}")
        return 1
    except InterviewError as e:
        print(f"❌ {e}")
        print(f"   Details in {log_file}")
        return 1
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
