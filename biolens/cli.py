from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import Settings, DEFAULT_MODEL, DEFAULT_STRUCTURE_ID, DEFAULT_STRUCTURE_URL
from .engine.render import render_html, snapshot_filename
from .session import ViewerSession, build_session


HELP_TEXT = """Commands:
  :load ID          fetch a structure by identifier
  :open PATH        open a local .pdb / .cif / .bcif file
  :style NAME       cartoon | surface | ball-and-stick | spacefill | putty | wireframe
  :color NAME       chain-id | element-symbol | residue-name | hydrophobicity | uniform
  :tint #RRGGBB     custom color for uniform coloring
  :water on|off     show solvent
  :hetero on|off    show hetero atoms
  :export [PATH]    write the current scene as a standalone HTML file
  :reset            reset the camera
  :state            print the current parameters
  :quit             leave
Anything else is sent to the assistant."""

_PARAM_COMMANDS = {
    ":style": "style",
    ":color": "colorMode",
    ":tint": "tint",
    ":water": "showWater",
    ":hetero": "showHetero",
}


def _parse_switch(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"on", "yes", "true", "1"}:
        return True
    if lowered in {"off", "no", "false", "0"}:
        return False
    raise ValueError(f"Expected on/off, got {value!r}")


def _export(session: ViewerSession, arg: str) -> str:
    html = render_html(session.engine)
    if not html:
        return "[Error] Nothing to export: load a text PDB or CIF structure first."
    path = Path(arg or snapshot_filename(session.state.structure_id))
    try:
        path.write_text(html, encoding="utf-8")
    except OSError as exc:
        return f"[Error] Cannot write {path}: {exc}"
    return f"Snapshot written to {path}."


async def handle_line(session: ViewerSession, line: str) -> Optional[str]:
    """Run one REPL line; returns the text to print (None means quit)."""
    if line.lower() in {":quit", ":exit", "quit", "exit"}:
        return None
    if line == ":help":
        return HELP_TEXT
    if line == ":state":
        return json.dumps(session.state.to_json(), indent=2)
    if line == ":reset":
        await session.reset_camera()
        return "Viewport reset."

    head, _, arg = line.partition(" ")
    arg = arg.strip()

    if head == ":load":
        ok = await session.load_identifier(arg)
        return f"Loaded {session.state.structure_id}." if ok else f"[Error] {session.last_error}"
    if head == ":export":
        return _export(session, arg)
    if head == ":open":
        ok = await session.open_file(arg)
        return f"Loaded {session.state.structure_id}." if ok else f"[Error] {session.last_error}"
    if head in _PARAM_COMMANDS:
        key = _PARAM_COMMANDS[head]
        try:
            value = _parse_switch(arg) if key in {"showWater", "showHetero"} else arg
        except ValueError as exc:
            return f"[Error] {exc}"
        ok = await session.update({key: value})
        return "OK." if ok else f"[Error] {session.last_error}"
    if head.startswith(":"):
        return f"Unknown command {head}. Type :help."

    result = await session.command(line)
    text = result.message
    if result.updates:
        text += "\n[Updates] " + ", ".join(f"{k}={v}" for k, v in result.updates.items())
    if session.last_error:
        text += f"\n[Error] {session.last_error}"
        session.dismiss_error()
    return text


async def run(args: argparse.Namespace) -> None:
    settings = Settings(
        model=args.model,
        structure_url=args.structure_url,
        verbose=args.verbose,
    )
    if args.ollama_host:
        settings.ollama_host = args.ollama_host
    session = build_session(settings)

    session_dir: Path | None = None
    if args.state_root:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        session_dir = Path(args.state_root) / f"{stamp}_{args.session_name}"
        session_dir.mkdir(parents=True, exist_ok=True)
        print(f"Session snapshots will be written to: {session_dir}")

    if args.structure:
        print(await handle_line(session, f":load {args.structure}"))

    print("BioLens viewer. Type :help for commands.")
    turn = 0
    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break
        if not line:
            continue

        reply = await handle_line(session, line)
        if reply is None:
            print("Goodbye.")
            break
        print(f"\n{reply}\n")

        turn += 1
        if session_dir:
            try:
                snapshot = session.snapshot()
                (session_dir / f"turn_{turn:03d}.json").write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
            except OSError as exc:
                logging.warning("Failed to write state snapshot: %s", exc)


def main() -> None:
    parser = argparse.ArgumentParser(description="Molecular viewer driven by controls and free text.")
    parser.add_argument("--model", help="Ollama model id", default=DEFAULT_MODEL)
    parser.add_argument("--ollama-host", help="Ollama server URL (defaults to OLLAMA_HOST env)")
    parser.add_argument("--structure", default=DEFAULT_STRUCTURE_ID, help="Structure identifier to load at start ('' for none)")
    parser.add_argument("--structure-url", default=DEFAULT_STRUCTURE_URL, help="Base URL for structure downloads")
    parser.add_argument("--session-name", default="session", help="Name for this session (used in state folder)")
    parser.add_argument("--state-root", help="Directory to store per-command state snapshots")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
