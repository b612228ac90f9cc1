from __future__ import annotations

from pathlib import Path

import pytest

from reapk.output import setVerbose
from reapk.payload import APKSIGNER_JAR, APKTOOL_JAR, DEBUG_CERT, DEBUG_KEY, Payload

# Stands in for "java -jar <apktool|apksigner>.jar ...". Every invocation is
# appended to $FAKE_JAVA_LOG; the subcommand named by $FAKE_JAVA_FAIL exits 42.
FAKE_JAVA = """#!/bin/sh
echo "$*" >> "$FAKE_JAVA_LOG"
if [ "$3" = "$FAKE_JAVA_FAIL" ]; then
    exit 42
fi
case "$3" in
    d)
        mkdir -p "$6" && cp "$4" "$6/original.apk"
        ;;
    b)
        cp "$4/original.apk" "$6"
        ;;
    sign)
        echo "key=$(cat "$5") cert=$(cat "$7")" >> "$FAKE_JAVA_LOG"
        printf '+signed' >> "$8"
        ;;
    *)
        exit 2
        ;;
esac
"""


class FakeJava:
    def __init__(self, path: Path, log: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        self.path = str(path)
        self.log = log
        self._monkeypatch = monkeypatch

    def fail_on(self, subcommand: str) -> None:
        self._monkeypatch.setenv("FAKE_JAVA_FAIL", subcommand)

    def lines(self) -> list[str]:
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()

    def subcommands(self) -> list[str]:
        return [line.split()[2] for line in self.lines() if line.startswith("-jar ")]

    def sign_credentials(self) -> list[str]:
        return [line for line in self.lines() if line.startswith("key=")]


@pytest.fixture(autouse=True)
def quiet_output():
    setVerbose(False)
    yield
    setVerbose(False)


@pytest.fixture
def fake_java(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeJava:
    bindir = tmp_path / "bin"
    bindir.mkdir()
    java = bindir / "java"
    java.write_text(FAKE_JAVA)
    java.chmod(0o755)
    log = tmp_path / "java.log"
    monkeypatch.setenv("FAKE_JAVA_LOG", str(log))
    monkeypatch.delenv("FAKE_JAVA_FAIL", raising=False)
    return FakeJava(java, log, monkeypatch)


@pytest.fixture
def payload() -> Payload:
    return Payload({
        APKTOOL_JAR: b"apktool",
        APKSIGNER_JAR: b"apksigner",
        DEBUG_CERT: b"DEBUG-CERT",
        DEBUG_KEY: b"DEBUG-KEY",
    })


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    root = tmp_path / "tmp"
    root.mkdir()
    return root


@pytest.fixture
def input_apk(tmp_path: Path) -> Path:
    apk = tmp_path / "app.apk"
    apk.write_bytes(b"APK")
    return apk


@pytest.fixture
def empty_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point PATH at an empty directory so no bare command name resolves."""

    empty = tmp_path / "empty-bin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    return empty
