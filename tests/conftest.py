# tests/conftest.py
# ============================================================
# Shared pytest fixtures for all tests under tests/:
#   - pdb_text / pdb_no_water_text: tiny legacy-format structures
#   - engine / loaded_engine: in-process SceneEngine
#   - StubAdapter: scripted language-model replies (no network)
#   - session: ViewerSession wired to a stub adapter
# ============================================================

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, List, Optional, Union

import pytest


# ---------- Ensure project root is importable ----------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from biolens.engine.scene import SceneEngine  # noqa: E402
from biolens.history import History  # noqa: E402
from biolens.interpreter import CommandInterpreter  # noqa: E402
from biolens.session import ViewerSession  # noqa: E402


PDB_TEXT = """\
HEADER    OXYGEN TRANSPORT                        07-MAR-84   4HHB
ATOM      1  N   VAL A   1       6.204  16.869   4.854  1.00 49.05           N
ATOM      2  CA  VAL A   1       6.913  17.759   4.607  1.00 43.14           C
ATOM      3  N   LEU B   2       6.640  19.039   2.919  1.00 24.80           N
HETATM 4375 FE   HEM A 142       8.128   7.371 -15.022  1.00 16.74          FE
HETATM 4376  O   HOH A 143      10.070  -2.003 -11.870  1.00 31.24           O
END
"""

PDB_NO_WATER_TEXT = """\
ATOM      1  N   VAL A   1       6.204  16.869   4.854  1.00 49.05           N
HETATM 4375 FE   HEM A 142       8.128   7.371 -15.022  1.00 16.74          FE
END
"""

CIF_TEXT = """\
data_TEST
loop_
_atom_site.group_PDB
_atom_site.id
_atom_site.type_symbol
_atom_site.label_atom_id
_atom_site.label_comp_id
ATOM   1 N  N  VAL
HETATM 2 O  O  HOH
"""


@pytest.fixture
def pdb_text() -> str:
    return PDB_TEXT


@pytest.fixture
def pdb_no_water_text() -> str:
    return PDB_NO_WATER_TEXT


@pytest.fixture
def cif_text() -> str:
    return CIF_TEXT


@pytest.fixture
def engine() -> SceneEngine:
    return SceneEngine()


@pytest.fixture
def loaded_engine(engine: SceneEngine) -> SceneEngine:
    asyncio.run(engine.load_structure(PDB_TEXT, "pdb", "4HHB"))
    return engine


# ---------- Scripted language model ----------
class StubAdapter:
    """
    Stands in for LLMAdapter. Each call pops the next scripted reply; an
    Exception instance in the script is raised instead of returned.
    """

    def __init__(self, replies: Optional[List[Union[str, Exception]]] = None) -> None:
        self.replies = list(replies or [])
        self.calls: List[dict] = []

    async def request_text(self, stage: str, system_prompt: str, payload_text: str):
        self.calls.append({"stage": stage, "system_prompt": system_prompt, "payload": payload_text})
        if not self.replies:
            raise AssertionError("No scripted reply left for this test.")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply, [{"attempt": 1, "content": reply, "success": True}]


@pytest.fixture
def stub_adapter() -> StubAdapter:
    return StubAdapter()


@pytest.fixture
def interpreter(stub_adapter: StubAdapter) -> CommandInterpreter:
    return CommandInterpreter(stub_adapter, history=History())  # type: ignore[arg-type]


@pytest.fixture
def session(engine: SceneEngine, interpreter: CommandInterpreter) -> ViewerSession:
    return ViewerSession(engine, interpreter)


def run(coro: Any) -> Any:
    return asyncio.run(coro)
