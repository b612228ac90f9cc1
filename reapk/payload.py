import functools
import os
from importlib import resources

from reapk.errors import AssetError, PayloadError

APKTOOL_JAR = "apktool.jar"
APKSIGNER_JAR = "apksigner.jar"
DEBUG_CERT = "debug_cert.crt"
DEBUG_KEY = "debug_key.pk8"

ASSETS = (APKTOOL_JAR, APKSIGNER_JAR, DEBUG_CERT, DEBUG_KEY)
CREDENTIALS = (DEBUG_CERT, DEBUG_KEY)

class Payload:
    """The bundled assets, as immutable bytes keyed by file name.

    Missing assets are remembered as None so a partial installation fails at the
    stage that needs the asset rather than at startup.
    """

    def __init__(self, assets):
        self._assets = dict(assets)

    def get(self, name):
        data = self._assets.get(name)
        if data is None:
            raise PayloadError("Bundled asset " + name + " is missing from this installation, run reapk-bundle to fetch it")
        return data

    def has(self, name):
        return self._assets.get(name) is not None

####################
# Read the bundled assets from the package once per process
####################
@functools.lru_cache(maxsize=None)
def loadPayload():
    root = resources.files("reapk.assets")
    assets = {}
    for name in ASSETS:
        entry = root / name
        assets[name] = entry.read_bytes() if entry.is_file() else None
    return Payload(assets)

####################
# Materialize an asset's bytes at the given path inside the workspace
####################
def writeAsset(payload, name, path):
    data = payload.get(name)
    # Credentials are created private rather than tightened after the fact
    mode = 0o600 if name in CREDENTIALS else 0o644
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0), mode)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
    except OSError as e:
        raise AssetError("Failed to write " + name + " to " + path + ": " + str(e)) from e
    return path

####################
# Assets this run will need that the installation doesn't have
####################
def missingAssets(payload, names):
    return [name for name in names if not payload.has(name)]
