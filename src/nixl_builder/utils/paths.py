"""Path utilities for nixl-builder."""

import json
from pathlib import Path
from typing import Any


def get_resources_dir() -> Path:
    """Get the resources directory path.

    Resources are shipped inside the package at nixl_builder/resources.

    Returns:
        Path to the resources directory
    """
    # This file is at src/nixl_builder/utils/paths.py
    return Path(__file__).parent.parent / "resources"


def load_resource_json(name: str) -> Any:  # noqa: ANN401
    """Load a JSON resource file by name."""
    with open(get_resources_dir() / name, encoding="utf-8") as f:
        return json.load(f)
