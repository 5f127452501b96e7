from __future__ import annotations

from pathlib import Path


_PACKAGE_DIR = Path(__file__).resolve().parent


def contracts_dir() -> Path:
    """
    Shipped contract artifacts. Assumes a filesystem-backed install (wheel or editable).
    """
    return _PACKAGE_DIR / "contracts"


def schemas_dir() -> Path:
    return contracts_dir() / "schemas"
