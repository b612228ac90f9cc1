"""reapk - unpack an APK, let a human edit it, then repack and re-sign it."""

__version__ = "0.3.0"
