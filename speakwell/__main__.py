#!/usr/bin/env python3
"""
Main entry point for SpeakWell.
Allows running the package with: python -m speakwell <command>

Commands:
    analyze --duration=SECONDS [--save] TEXT...   Score a transcript
    practice                                      Type a practice answer line by line
    interview [--category=NAME] [--speech]        Text-mode mock interview
    history                                       Practice statistics and recent sessions
"""
import sys
import concurrent.futures

from .config import get_config, RECENT_SESSIONS_COUNT, PROGRESS_DAYS
from .fluency.analysis import analyze_speech
from .fluency.models import SpeechAnalysis
from .fluency.practice import PracticeRecorder, TranscriptTooShortError
from .infrastructure.data import SessionStore, daily_progress, user_stats
from .infrastructure.llm import ChatServiceError
from .infrastructure.speech import GoogleSpeechSink
from .interview import (
    InterviewOrchestrator, InterviewPhase, UnknownCategoryError,
    EventType, Role, get_category_config, parse_category
)
from .utils import setup_logging


def _option(name: str, default=None):
    prefix = f"--{name}="
    for arg in sys.argv[2:]:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return default


def _positional() -> list:
    return [arg for arg in sys.argv[2:] if not arg.startswith("--")]


def _print_analysis(analysis: SpeechAnalysis) -> None:
    print("\n" + "=" * 50)
    print("🎯 SPEECH ANALYSIS")
    print("=" * 50)
    print(f"📊 Overall Score: {analysis.overall_score}/100")
    print(f"🗣️  Fluency: {analysis.fluency_score}/100")
    print(f"✏️  Grammar: {analysis.grammar_score}/100")
    print(f"⏱️  Pace: {analysis.words_per_minute} wpm over {analysis.speaking_duration:.0f}s")
    print(f"⏸️  Pauses: {analysis.pause_count}")

    if analysis.filler_words:
        fillers = ", ".join(f"\"{f.word}\" x{f.count}" for f in analysis.filler_words)
        print(f"🔁 Filler words: {fillers}")
    for issue in analysis.grammar_issues:
        print(f"⚠️  \"{issue.original}\" -> \"{issue.suggestion}\"")

    print("\n💡 Suggestions:")
    for suggestion in analysis.suggestions:
        print(f"   - {suggestion}")


def cmd_analyze(config) -> int:
    try:
        duration = float(_option("duration", "0"))
    except ValueError:
        print("❌ Invalid duration. Use --duration=SECONDS")
        return 1

    text = " ".join(_positional()) or sys.stdin.read()
    analysis = analyze_speech(text, duration)
    _print_analysis(analysis)

    if "--save" in sys.argv:
        record = SessionStore(config.sessions_file).save(analysis, duration)
        print(f"\n💾 Saved as {record.id}")
    return 0


def cmd_practice(config) -> int:
    recorder = PracticeRecorder(SessionStore(config.sessions_file))
    print("🎙️  Practice mode: type what you would say, one sentence per line.")
    print("   Press Enter on an empty line to finish.")

    recorder.start()
    try:
        while True:
            line = input("> ")
            if not line.strip():
                break
            recorder.push(line.strip(), is_final=True)
    except (EOFError, KeyboardInterrupt):
        print()
    recorder.stop()

    try:
        analysis, record = recorder.finish()
    except TranscriptTooShortError as e:
        print(f"❌ {e}")
        return 1

    _print_analysis(analysis)
    print(f"\n💾 Saved as {record.id}")
    return 0


def cmd_history(config) -> int:
    store = SessionStore(config.sessions_file)
    sessions = store.list_sessions()
    stats = user_stats(sessions)

    print("📈 Practice statistics")
    print(f"   Sessions: {stats.total_sessions} ({stats.total_speaking_time} min speaking)")
    print(f"   Average fluency: {stats.average_fluency}  Average grammar: {stats.average_grammar}")
    print(f"   Best score: {stats.best_score}")
    print(f"   🔥 Streak: {stats.current_streak} days (longest {stats.longest_streak})")

    print(f"\n📅 Last {PROGRESS_DAYS} days")
    for day in daily_progress(sessions, days=PROGRESS_DAYS):
        bar = "█" * day.sessions_count
        print(f"   {day.date}  {bar:<5} fluency {day.average_fluency:>3}  grammar {day.average_grammar:>3}")

    recent = store.recent(RECENT_SESSIONS_COUNT)
    if recent:
        print("\n🗂️  Recent sessions")
        for record in recent:
            print(f"   {record.when:%Y-%m-%d %H:%M}  overall {record.overall_score:>3}  "
                  f"{record.words_per_minute:>3} wpm  ({record.id})")
    return 0


class StreamPrinter:
    """Prints the growing tail of streamed replies as they arrive."""

    def __init__(self):
        self._active = False
        self._printed = 0

    def _begin(self, label: str) -> None:
        if self._printed == 0:
            print(f"\n{label}: ", end="", flush=True)

    def _write(self, text: str, label: str) -> None:
        if not self._active or len(text) <= self._printed:
            return
        self._begin(label)
        print(text[self._printed:], end="", flush=True)
        self._printed = len(text)

    def handle_event(self, event) -> None:
        if event.event_type == EventType.LOADING_CHANGED:
            if self._printed:
                print()
            self._active = event.data["is_loading"]
            self._printed = 0
        elif event.event_type == EventType.MESSAGES_UPDATED:
            messages = event.messages
            if messages and messages[-1].role == Role.ASSISTANT:
                self._write(messages[-1].content, "🤖 Interviewer")
        elif event.event_type == EventType.VERDICT_UPDATED:
            self._write(event.data["verdict"], "🏁 Verdict")
        elif event.event_type == EventType.REQUEST_CANCELLED:
            self._active = False
            print("\n⏹️  Cancelled")


class InterviewSession:
    """Drives an orchestrator from the terminal; Ctrl-C cancels a streaming reply."""

    def __init__(self, orchestrator: InterviewOrchestrator):
        self.orchestrator = orchestrator
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)

    def _wait(self, future):
        while True:
            try:
                return future.result(timeout=0.1)
            except concurrent.futures.TimeoutError:
                continue
            except KeyboardInterrupt:
                self.orchestrator.cancel()

    def run(self, fn, *args, speak: bool = False):
        """Run a streaming call on the worker thread and report failures."""
        try:
            result = self._wait(self.executor.submit(fn, *args))
        except ChatServiceError as e:
            print(f"\n❌ {self.orchestrator.describe_error(e)}")
            return None

        if speak and result and self.orchestrator.speech_sink is not None:
            try:
                self.orchestrator.speak_latest()
            except Exception as e:
                print(f"⚠️  Speech failed: {e}")
        return result

    def close(self) -> None:
        self.orchestrator.close()
        self.executor.shutdown(wait=False)


def cmd_interview(config) -> int:
    try:
        category = parse_category(_option("category", config.default_category))
    except UnknownCategoryError as e:
        print(f"❌ {e}")
        return 1

    try:
        speech_sink = None
        if "--speech" in sys.argv or config.enable_tts:
            speech_sink = GoogleSpeechSink(
                voice=config.tts_voice,
                language_code=config.language_code,
                speaking_rate=config.tts_speaking_rate,
                output_dir=config.workdir,
            )
        orchestrator = InterviewOrchestrator.from_config(config, speech_sink=speech_sink)
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        return 1

    orchestrator.event_bus.subscribe_all(StreamPrinter().handle_event)
    session = InterviewSession(orchestrator)

    print(f"\n🎙️  Starting {get_category_config(category).label} interview")
    print(f"📝 Detailed logs: {config.log_file}")
    print("   Commands: /end for the verdict, /reset to start over, /quit to exit")
    print("=" * 50)

    try:
        session.run(orchestrator.start, category, speak=True)
        while True:
            try:
                text = input("\n👤 You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break

            if not text:
                continue
            if text == "/quit":
                break

            if text == "/reset":
                orchestrator.reset()
                print("🔄 Interview reset")
                session.run(orchestrator.start, category, speak=True)
            elif text == "/end":
                if not orchestrator.can_request_verdict:
                    print("⚠️  Answer at least one question before asking for a verdict.")
                    continue
                verdict = session.run(orchestrator.finish)
                if verdict is not None:
                    print(f"\n📋 Outcome: {verdict.outcome.value.replace('_', ' ').title()}")
                    print("   /reset for a new interview or /quit to exit")
            elif orchestrator.phase == InterviewPhase.COMPLETED:
                print("⚠️  This interview is over. Use /reset or /quit.")
            else:
                session.run(orchestrator.answer, text, speak=True)
    finally:
        session.close()

    print(f"\n📈 Session metrics: {orchestrator.get_metrics()}")
    return 0


def main():
    """Command-line interface for SpeakWell."""
    commands = {
        "analyze": cmd_analyze,
        "practice": cmd_practice,
        "interview": cmd_interview,
        "history": cmd_history,
    }

    if len(sys.argv) < 2 or sys.argv[1] not in commands:
        print(__doc__)
        sys.exit(1)

    # Load configuration from environment
    try:
        config = get_config(require_chat=sys.argv[1] == "interview")
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    setup_logging(config.log_file, config.log_level)
    sys.exit(commands[sys.argv[1]](config))


if __name__ == "__main__":
    main()
