from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from reapk.errors import AssetError, PayloadError
from reapk.payload import APKTOOL_JAR, DEBUG_CERT, DEBUG_KEY, Payload, loadPayload, missingAssets, writeAsset


def test_missing_asset_raises_payload_error() -> None:
    payload = Payload({APKTOOL_JAR: b"apktool", DEBUG_KEY: None})

    assert payload.has(APKTOOL_JAR)
    assert not payload.has(DEBUG_KEY)
    with pytest.raises(PayloadError, match="reapk-bundle"):
        payload.get(DEBUG_KEY)


def test_load_payload_is_cached() -> None:
    assert loadPayload() is loadPayload()


def test_write_asset(payload: Payload, tmp_path: Path) -> None:
    target = tmp_path / APKTOOL_JAR
    assert writeAsset(payload, APKTOOL_JAR, str(target)) == str(target)
    assert target.read_bytes() == b"apktool"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_debug_key_is_private(payload: Payload, tmp_path: Path) -> None:
    target = tmp_path / DEBUG_KEY
    writeAsset(payload, DEBUG_KEY, str(target))
    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_write_asset_failure(payload: Payload, tmp_path: Path) -> None:
    with pytest.raises(AssetError, match="Failed to write"):
        writeAsset(payload, APKTOOL_JAR, str(tmp_path / "missing-dir" / APKTOOL_JAR))


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_credentials_are_created_private(payload: Payload, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def no_chmod(*args, **kwargs):
        raise AssertionError("credentials must not need a chmod")

    monkeypatch.setattr(os, "chmod", no_chmod)
    old_umask = os.umask(0)
    try:
        writeAsset(payload, DEBUG_CERT, str(tmp_path / DEBUG_CERT))
        writeAsset(payload, APKTOOL_JAR, str(tmp_path / APKTOOL_JAR))
    finally:
        os.umask(old_umask)

    assert stat.S_IMODE((tmp_path / DEBUG_CERT).stat().st_mode) == 0o600
    assert stat.S_IMODE((tmp_path / APKTOOL_JAR).stat().st_mode) == 0o644


def test_missing_assets(payload: Payload) -> None:
    partial = Payload({APKTOOL_JAR: b"apktool"})

    assert missingAssets(payload, [APKTOOL_JAR, DEBUG_KEY]) == []
    assert missingAssets(partial, [APKTOOL_JAR, DEBUG_CERT, DEBUG_KEY]) == [DEBUG_CERT, DEBUG_KEY]
