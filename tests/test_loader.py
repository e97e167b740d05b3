from __future__ import annotations

import os
from pathlib import Path

import pytest

from libretto import ScriptHandle, bind, load_file
from libretto.nodes import Int
from tests.support.harness import LoadError, ParseError, UnboundName


def write(path: Path, text: str, mtime: float) -> None:
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))


@pytest.fixture
def script(tmp_path: Path) -> Path:
    path = tmp_path / "config.lt"
    write(path, "let speed = 3;\nfn double(x) { x * 2 }\n", 1_000_000)
    return path


def test_load_file_reads_utf8(tmp_path: Path) -> None:
    path = tmp_path / "names.lt"
    path.write_text('let name = "café";', encoding="utf-8")

    scope = load_file(path)

    assert scope.lookup_variable("name").value == "café"


def test_snapshot_before_load_fails(script: Path) -> None:
    handle = ScriptHandle(script)

    assert not handle.loaded
    with pytest.raises(RuntimeError):
        handle.snapshot()


def test_reload_and_decode(script: Path) -> None:
    handle = ScriptHandle(script)
    handle.reload()

    assert handle.loaded
    assert handle.decode("speed", int) == 3
    assert handle.call("double", 4, returns=int) == 8


def test_reload_if_changed(script: Path) -> None:
    handle = ScriptHandle(script)

    assert handle.reload_if_changed() is True
    assert handle.reload_if_changed() is False

    write(script, "let speed = 9;", 1_000_100)

    assert handle.reload_if_changed() is True
    assert handle.decode("speed", int) == 9


def test_failed_reload_keeps_previous_scope(script: Path) -> None:
    handle = ScriptHandle(script)
    handle.reload()
    before = handle.snapshot()

    write(script, "let speed = ;", 1_000_100)

    with pytest.raises(ParseError):
        handle.reload_if_changed()

    assert handle.snapshot() is before
    assert handle.decode("speed", int) == 3
    assert isinstance(handle.last_error, ParseError)

    # the same broken file is not retried until it changes again
    assert handle.reload_if_changed() is False

    write(script, "let speed = 4;", 1_000_200)

    assert handle.reload_if_changed() is True
    assert handle.last_error is None
    assert handle.decode("speed", int) == 4


def test_eval_error_during_reload_keeps_scope(script: Path) -> None:
    handle = ScriptHandle(script)
    handle.reload()

    write(script, "let speed = missing + 1;", 1_000_100)

    with pytest.raises(UnboundName):
        handle.reload()

    assert handle.decode("speed", int) == 3


def test_snapshot_survives_reload(script: Path) -> None:
    handle = ScriptHandle(script)
    old = handle.reload()

    write(script, "let speed = 5;", 1_000_100)
    handle.reload()

    assert old.lookup_variable("speed") == Int(3)
    assert handle.decode("speed", int) == 5


def test_setup_hook_binds_host_values(tmp_path: Path) -> None:
    path = tmp_path / "derived.lt"
    write(path, "let total = base + 1;", 1_000_000)

    handle = ScriptHandle(path, setup=lambda scope: bind(scope, "base", 10))
    handle.reload()

    assert handle.decode("total", int) == 11


def test_load_file_rejects_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "broken.lt"
    path.write_bytes(b"let a = 1;\nlet b = \"\xff\";\n")

    with pytest.raises(ParseError) as exc_info:
        load_file(path)

    assert exc_info.value.pos is not None
    assert (exc_info.value.line, exc_info.value.column) == (2, 10)
    assert "byte 20" in str(exc_info.value)


def test_load_file_missing(tmp_path: Path) -> None:
    with pytest.raises(LoadError):
        load_file(tmp_path / "absent.lt")


def test_invalid_utf8_reload_is_recorded(script: Path) -> None:
    handle = ScriptHandle(script)
    handle.reload()

    script.write_bytes(b"let speed = \xff;")
    os.utime(script, (1_000_100, 1_000_100))

    with pytest.raises(ParseError):
        handle.reload_if_changed()

    assert isinstance(handle.last_error, ParseError)
    assert handle.reload_if_changed() is False
    assert handle.decode("speed", int) == 3


def test_missing_file_reload_is_recorded(script: Path) -> None:
    handle = ScriptHandle(script)
    handle.reload()
    script.unlink()

    with pytest.raises(LoadError):
        handle.reload_if_changed()

    assert isinstance(handle.last_error, LoadError)
    assert handle.decode("speed", int) == 3
