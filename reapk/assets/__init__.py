"""Bundled tool archives and debug signing credentials, written here by reapk-bundle."""
