"""
MCP tool server exposing the viewer session.

Tools share one ViewerSession per process, so an agent can load a structure,
tweak its visuals directly, or hand free text to the command interpreter.
Run via stdio (Claude Desktop / MCP Inspector): python -m biolens.mcp_server
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, Field

from .engine.render import render_html, snapshot_filename
from .session import ViewerSession, build_session


# ============================================================
# Tool schemas
# ============================================================

class LoadInput(BaseModel):
    identifier: Optional[str] = Field(default=None, description="Structure identifier, e.g. 4HHB")
    path: Optional[str] = Field(default=None, description="Local .pdb / .cif / .bcif file")


class VisualsInput(BaseModel):
    style: Optional[str] = Field(default=None, description="cartoon | surface | ball-and-stick | spacefill | putty | wireframe")
    colorMode: Optional[str] = Field(default=None, description="chain-id | element-symbol | residue-name | hydrophobicity | uniform")
    tint: Optional[str] = Field(default=None, description="Hex color for uniform coloring, e.g. #4f46e5")
    showWater: Optional[bool] = None
    showHetero: Optional[bool] = None

    def updates(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CommandInput(BaseModel):
    text: str = Field(description="Free-text request, e.g. 'show me the surface colored by hydrophobicity'")


class ComponentInfo(BaseModel):
    kind: str
    representations: List[Dict[str, Any]] = Field(default_factory=list)


class ViewerOutput(BaseModel):
    ok: bool
    state: Dict[str, Any]
    components: List[ComponentInfo] = Field(default_factory=list)
    message: Optional[str] = None
    updates: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class SnapshotOutput(BaseModel):
    ok: bool
    filename: str
    html: str = Field(default="", description="Standalone HTML page rendering the current scene")


# ============================================================
# Implementations
# ============================================================

_session: Optional[ViewerSession] = None


def get_session() -> ViewerSession:
    global _session
    if _session is None:
        _session = build_session()
    return _session


def set_session(session: Optional[ViewerSession]) -> None:
    global _session
    _session = session


def _output(session: ViewerSession, ok: bool, **extra: Any) -> ViewerOutput:
    components: List[ComponentInfo] = []
    for item in getattr(session.engine, "components", []):
        components.append(
            ComponentInfo(
                kind=item.ref.kind.value,
                representations=[params.to_json() for params in item.representations],
            )
        )
    error = session.last_error
    session.dismiss_error()
    return ViewerOutput(ok=ok, state=session.state.to_json(), components=components, error=error, **extra)


async def load_structure_impl(inp: LoadInput) -> ViewerOutput:
    session = get_session()
    if inp.path:
        ok = await session.open_file(inp.path)
    elif inp.identifier:
        ok = await session.load_identifier(inp.identifier)
    else:
        raise ValueError("Either identifier or path is required.")
    return _output(session, ok)


async def set_visuals_impl(inp: VisualsInput) -> ViewerOutput:
    session = get_session()
    ok = await session.update(inp.updates())
    return _output(session, ok)


async def interpret_command_impl(inp: CommandInput) -> ViewerOutput:
    session = get_session()
    result = await session.command(inp.text)
    return _output(session, True, message=result.message, updates=result.updates)


async def export_snapshot_impl() -> SnapshotOutput:
    session = get_session()
    html = render_html(session.engine)
    return SnapshotOutput(ok=bool(html), filename=snapshot_filename(session.state.structure_id), html=html)


async def get_state_impl() -> ViewerOutput:
    return _output(get_session(), True)


# ============================================================
# MCP wiring
# ============================================================

mcp = FastMCP("biolens-viewer")


@mcp.tool()
async def load_structure(input: LoadInput) -> ViewerOutput:
    """Load a structure by identifier or local path and synchronize the scene."""
    return await load_structure_impl(input)


@mcp.tool()
async def set_visuals(input: VisualsInput) -> ViewerOutput:
    """Change visual parameters directly. Invalid values are rejected without changing anything."""
    return await set_visuals_impl(input)


@mcp.tool()
async def interpret_command(input: CommandInput) -> ViewerOutput:
    """Send free text to the command interpreter and apply its validated updates."""
    return await interpret_command_impl(input)


@mcp.tool()
async def get_state() -> ViewerOutput:
    """Current visual parameters and scene components."""
    return await get_state_impl()


@mcp.tool()
async def export_snapshot() -> SnapshotOutput:
    """Standalone HTML snapshot of the current scene (ok is false when nothing can be rendered)."""
    return await export_snapshot_impl()


if __name__ == "__main__":
    mcp.run()
