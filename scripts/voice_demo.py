#!/usr/bin/env python3
"""Interactive CLI harness to exercise the voice session."""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from halo_voice.config import configure_logging, load_runtime_config
from halo_voice.onboarding import extract_entries
from halo_voice.runtime.dispatch.context import SimulationContext
from halo_voice.runtime.engine import KnowledgeEntry, StyleWeights
from halo_voice.runtime.memory import TranscriptStore
from halo_voice.runtime.session import VoiceSession
from halo_voice.runtime.voice.states import Transition


def load_knowledge(paths: List[str]) -> List[KnowledgeEntry]:
    entries: List[KnowledgeEntry] = []
    for raw_path in paths:
        path = Path(raw_path)
        if not path.exists():
            print(f"(skipping missing knowledge file {path})")
            continue
        entries.extend(extract_entries(path.read_text(encoding="utf-8")))
    return entries


def load_context(path: Optional[str], business: str) -> SimulationContext:
    if path:
        return SimulationContext.model_validate(json.loads(Path(path).read_text(encoding="utf-8")))
    return SimulationContext.model_validate({"businessProfile": {"name": business}})


def print_transitions(transitions: List[Transition]) -> None:
    for transition in transitions:
        if not transition.accepted and transition.reason:
            print(f"  [{transition.state.value}] ignored: {transition.reason}")
        else:
            print(f"  [{transition.state.value}]")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default=None, help="Runtime configuration JSON file.")
    parser.add_argument("--knowledge", nargs="*", default=[], help="Q:/A: documents to load as knowledge.")
    parser.add_argument("--context", default=None, help="Simulation context JSON for remote dispatch.")
    parser.add_argument("--business", default="Demo Realty", help="Business name when no context file is given.")
    parser.add_argument("--remote", action="store_true", help="Send turns to the simulation endpoint.")
    parser.add_argument("--friendly", type=int, default=None, help="Friendliness slider (0-100).")
    parser.add_argument("--concise", type=int, default=None, help="Conciseness slider (0-100).")
    parser.add_argument("--professional", type=int, default=None, help="Professionalism slider (0-100).")
    parser.add_argument("--session", default=None, help="Session id for transcript persistence.")
    parser.add_argument("--exit-cmd", default="/exit", help="Command to terminate the demo.")
    args = parser.parse_args()

    config = load_runtime_config(Path(args.config)) if args.config else load_runtime_config()
    configure_logging(config.logging)
    if args.remote:
        config.dispatch.use_remote = True

    context = load_context(args.context, args.business) if config.dispatch.use_remote else None
    store = TranscriptStore(config.memory)
    session = VoiceSession.from_config(config, context=context, store=store)
    if args.session:
        session.session_id = args.session
    knowledge = load_knowledge(args.knowledge)
    if knowledge:
        session.knowledge = knowledge
    session.style = StyleWeights(
        friendly=args.friendly if args.friendly is not None else config.style.friendly,
        concise=args.concise if args.concise is not None else config.style.concise,
        professional=args.professional if args.professional is not None else config.style.professional,
    )
    session.open()

    print("--- Voice demo ---")
    print("Type utterances to simulate speech. Commands: /stop, /reset, /stats, " + args.exit_cmd)
    print_transitions(session.check_microphone())
    print_transitions(session.start())

    try:
        while True:
            try:
                raw_input_text = input("You> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nExiting.")
                break

            if not raw_input_text:
                continue
            if raw_input_text == args.exit_cmd:
                print("Session terminated.")
                break
            if raw_input_text == "/stop":
                print_transitions(session.stop())
                continue
            if raw_input_text == "/stats":
                print(f"  controller: {json.dumps(session.controller.snapshot())}")
                for stage, stats in session.telemetry.stage_stats().items():
                    print(f"  {stage}: {stats['count']:.0f} runs, mean {stats['mean_ms']:.1f} ms, max {stats['max_ms']:.1f} ms")
                continue
            if raw_input_text == "/reset":
                session.reset()
                print_transitions(session.start())
                continue

            if session.controller.conversation_active:
                print_transitions(session.hear(raw_input_text, confidence=0.92))
            else:
                print_transitions(session.submit_text(raw_input_text))
            if session.last_result:
                reply = session.last_result.get("message") or session.last_result.get("response")
                print(f"Agent> {reply}")
            deadline = session.resume_deadline
            if deadline is not None:
                time.sleep(max(0.0, deadline - session.clock()))
                print_transitions(session.tick())
            for note in session.notifications:
                print(f"({note.level}) {note.message}")
            session.notifications.clear()
    finally:
        session.close()
        store.close()


if __name__ == "__main__":
    main()
