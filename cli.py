#!/usr/bin/env python3
"""
Ahrian command line

Runs one prompt end to end: plans it, asks for a clarification choice when the
planner needs one, streams every step's output and prints the sources.

Usage:
    python cli.py "Find cafes near Central Park"
    python cli.py "What is in this photo?" --image photo.jpg
    python cli.py "Restaurants near me" --lat 40.78 --lng -73.96
    python cli.py "Compare 12 laptops in a sheet" --export-csv laptops.csv
    python cli.py --list
"""
import argparse
import mimetypes
import sys
from pathlib import Path

from config import settings
from orchestration import (
    ConversationStatus,
    EventKind,
    ExecutionEvent,
    ExecutionInputs,
    Location,
    MediaAttachment,
    StepStatus,
)
from orchestration.factory import create_orchestrator


def load_media(path: str | None) -> MediaAttachment | None:
    if not path:
        return None
    file_path = Path(path)
    mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    return MediaAttachment(data=file_path.read_bytes(), mime_type=mime_type, name=file_path.name)


def print_event(event: ExecutionEvent) -> None:
    """Render progress as it streams in"""
    if event.kind == EventKind.CHUNK:
        sys.stdout.write(event.chunk)
        sys.stdout.flush()
    elif event.kind == EventKind.STEP_STATUS:
        if event.step_status == StepStatus.RUNNING:
            print(f"\n\n=== Step {event.step} ===")
        elif event.step_status == StepStatus.ERROR:
            print(f"\n❌ Step {event.step} failed: {event.text}")
    elif event.kind == EventKind.STATUS_CHANGED:
        print(f"\n[{event.status.value}]")


def ask_choice(question: str, options) -> str:
    print(f"\n{question}")
    for index, option in enumerate(options, 1):
        print(f"  {index}. {option.value}")
    while True:
        answer = input("Choose an option: ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1].key


def list_conversations(orchestrator) -> None:
    conversations = orchestrator.list_conversations()
    if not conversations:
        print("No stored conversations.")
        return
    for conversation in conversations:
        print(f"{conversation.created_at}  {conversation.status.value:<22} {conversation.prompt[:70]}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a prompt through the Ahrian agents")
    parser.add_argument("prompt", nargs="?", help="What you want done")
    parser.add_argument("--image", help="Image to attach for the vision agent")
    parser.add_argument("--video", help="Video to attach for the video agent")
    parser.add_argument("--lat", type=float, help="Latitude for the maps agent")
    parser.add_argument("--lng", type=float, help="Longitude for the maps agent")
    parser.add_argument("--export-csv", help="Write the generated sheet to this CSV file")
    parser.add_argument("--list", action="store_true", help="List stored conversations and exit")

    args = parser.parse_args()

    missing = settings.validate()
    if missing:
        print(f"❌ Missing configuration: {', '.join(missing)}")
        return 2

    orchestrator = create_orchestrator(observers=[print_event])

    if args.list:
        list_conversations(orchestrator)
        return 0
    if not args.prompt:
        parser.error("a prompt is required unless --list is given")

    location = Location(args.lat, args.lng) if args.lat is not None and args.lng is not None else None
    inputs = ExecutionInputs(
        image=load_media(args.image),
        video=load_media(args.video),
        location=location,
    )

    conversation = orchestrator.submit_prompt(args.prompt, inputs)
    while conversation.status == ConversationStatus.CLARIFICATION_NEEDED:
        key = ask_choice(conversation.clarification.question, conversation.clarification.options)
        conversation = orchestrator.resolve_clarification(conversation.id, key)

    if conversation.status == ConversationStatus.ERROR:
        print(f"\n❌ {conversation.error_message} ({conversation.error_code})")
        return 1

    sources = orchestrator.sources_for(conversation.id)
    if sources:
        print("\n\nSources:")
        for source in sources:
            print(f"  - {source.title}: {source.uri}")

    artifact = conversation.generated_artifact
    if artifact is not None:
        print(f"\n📄 Generated sheet '{artifact.name}' ({artifact.row_count} rows)")
        if args.export_csv:
            Path(args.export_csv).write_text(artifact.to_csv(), encoding="utf-8")
            print(f"   Exported to {args.export_csv}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
