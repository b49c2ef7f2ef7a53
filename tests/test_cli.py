import json

from conftest import PDB_TEXT, StubAdapter, run

from biolens.cli import HELP_TEXT, handle_line
from biolens.schemas import Style
from biolens.session import ViewerSession


def test_quit_and_help(session: ViewerSession):
    assert run(handle_line(session, ":quit")) is None
    assert run(handle_line(session, ":help")) == HELP_TEXT


def test_state_prints_wire_json(session: ViewerSession):
    out = run(handle_line(session, ":state"))
    assert json.loads(out)["style"] == "cartoon"


def test_parameter_commands(session: ViewerSession):
    assert run(handle_line(session, ":style putty")) == "OK."
    assert session.state.style is Style.PUTTY

    assert run(handle_line(session, ":water on")) == "OK."
    assert session.state.show_water is True

    assert run(handle_line(session, ":hetero maybe")).startswith("[Error]")
    assert run(handle_line(session, ":tint blue")).startswith("[Error]")


def test_open_and_unknown_command(session: ViewerSession, tmp_path):
    path = tmp_path / "x.pdb"
    path.write_text(PDB_TEXT, encoding="utf-8")

    assert run(handle_line(session, f":open {path}")) == "Loaded x.pdb."
    assert run(handle_line(session, ":frobnicate")).startswith("Unknown command")


def test_free_text_goes_to_interpreter(session: ViewerSession, stub_adapter: StubAdapter):
    stub_adapter.replies.append('{"updates": {"style": "wireframe"}, "message": "Wireframe it is."}')

    out = run(handle_line(session, "show wires"))

    assert out.startswith("Wireframe it is.")
    assert "[Updates] style=wireframe" in out
    assert session.state.style is Style.WIREFRAME


def test_reset(session: ViewerSession):
    assert run(handle_line(session, ":reset")) == "Viewport reset."


def test_export_writes_scene_html(session: ViewerSession, tmp_path):
    structure = tmp_path / "x.pdb"
    structure.write_text(PDB_TEXT, encoding="utf-8")
    run(handle_line(session, f":open {structure}"))
    target = tmp_path / "scene.html"

    out = run(handle_line(session, f":export {target}"))

    assert out == f"Snapshot written to {target}."
    html = target.read_text(encoding="utf-8")
    assert "addModel" in html
    assert "zoomTo" in html


def test_export_defaults_to_structure_name(session: ViewerSession, tmp_path, monkeypatch):
    structure = tmp_path / "1abc.pdb"
    structure.write_text(PDB_TEXT, encoding="utf-8")
    run(handle_line(session, f":open {structure}"))
    monkeypatch.chdir(tmp_path)

    assert run(handle_line(session, ":export")) == "Snapshot written to 1abc.html."
    assert (tmp_path / "1abc.html").exists()


def test_export_without_structure(session: ViewerSession):
    assert run(handle_line(session, ":export")).startswith("[Error] Nothing to export")
