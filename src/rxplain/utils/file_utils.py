# ============================================================================
# src/rxplain/utils/file_utils.py
# ============================================================================
"""
File utilities for rxplain local persistence.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def ensure_directory(path: Path) -> Path:
    """
    Ensure directory exists, create if not.

    Args:
        path: Directory path

    Returns:
        Path to directory
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_json(file_path: Path) -> Any:
    """
    Read JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(data: Any, file_path: Path, indent: int = 2) -> None:
    """
    Write JSON file.

    The file is written to a sibling temp file and moved into place, so
    readers never see a partially written document.

    Args:
        data: Data to write
        file_path: Path to JSON file
        indent: Indentation level
    """
    ensure_directory(file_path.parent)

    fd, tmp_name = tempfile.mkstemp(
        dir=str(file_path.parent), prefix=f".{file_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
        os.replace(tmp_name, file_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
