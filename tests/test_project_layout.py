from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/runtime_class/cli.py",
        "src/runtime_class/config.py",
        "src/runtime_class/expand.py",
        "src/runtime_class/paths.py",
        "src/runtime_class/extract/__init__.py",
        "src/runtime_class/sync/__init__.py",
        "src/runtime_class/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
