import pytest
import requests

from conftest import CIF_TEXT, PDB_TEXT

from biolens.engine.adapter import EngineError
from biolens.engine.scene import classify_structure
from biolens.loader import (
    ParseError,
    detect_format,
    fetch_remote,
    normalize_identifier,
    read_local,
    source_from_bytes,
    structure_url,
)
from biolens.schemas import ComponentKind


class FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.content = text.encode("utf-8")
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout):
        self.urls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_normalize_identifier():
    assert normalize_identifier(" 4hhb ") == "4HHB"
    with pytest.raises(ValueError):
        normalize_identifier("")
    with pytest.raises(ValueError):
        normalize_identifier("../etc/passwd")


def test_structure_url():
    assert structure_url("4HHB", "https://files.example.org/download/") == "https://files.example.org/download/4hhb.pdb"


def test_fetch_remote_returns_pdb_source():
    http = FakeHttp(FakeResponse(PDB_TEXT))

    source = fetch_remote("4hhb", base_url="https://files.example.org", timeout=5, session=http)

    assert http.urls == [("https://files.example.org/4hhb.pdb", 5)]
    assert source.label == "4HHB"
    assert source.fmt == "pdb"
    assert source.data == PDB_TEXT
    assert not source.is_binary


def test_fetch_remote_unknown_identifier():
    http = FakeHttp(FakeResponse("Not Found", status=404))

    with pytest.raises(EngineError) as excinfo:
        fetch_remote("9ZZZ", session=http)
    assert "9ZZZ" in str(excinfo.value)


def test_fetch_remote_network_error():
    http = FakeHttp(error=requests.ConnectionError("offline"))

    with pytest.raises(EngineError):
        fetch_remote("4HHB", session=http)


def test_detect_format():
    assert detect_format("a.PDB") == ("pdb", False)
    assert detect_format("a.cif") == ("mmcif", False)
    assert detect_format("a.bcif") == ("mmcif", True)


def test_source_from_bytes():
    text = source_from_bytes("x.cif", CIF_TEXT.encode("utf-8"))
    assert text.fmt == "mmcif" and text.data == CIF_TEXT

    binary = source_from_bytes("x.bcif", b"\x00\x01")
    assert binary.is_binary

    with pytest.raises(ParseError):
        source_from_bytes("x.pdb", b"")
    with pytest.raises(ParseError):
        source_from_bytes("x.pdb", b"\xff\xfe\xfa")


def test_read_local(tmp_path):
    path = tmp_path / "model.cif"
    path.write_text(CIF_TEXT, encoding="utf-8")

    source = read_local(path)
    assert source.label == "model.cif"
    assert source.fmt == "mmcif"

    with pytest.raises(ParseError):
        read_local(tmp_path / "nope.pdb")


def test_classify_pdb_and_cif():
    assert classify_structure(PDB_TEXT, "pdb") == {
        ComponentKind.POLYMER,
        ComponentKind.LIGAND,
        ComponentKind.WATER,
    }
    assert classify_structure(CIF_TEXT, "mmcif") == {ComponentKind.POLYMER, ComponentKind.WATER}
    with pytest.raises(EngineError):
        classify_structure("HEADER only\nEND\n", "pdb")
