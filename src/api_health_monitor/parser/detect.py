"""Auto-detect whether a document is an API schema or a monitor config."""

import json
from pathlib import Path

import yaml


def detect_format(file_path: Path) -> str:
    """Detect the kind of document at file_path.

    Returns: 'schema' or 'config'.
    """
    text = file_path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        try:
            data = json.loads(text)
        except ValueError:
            data = None

    if isinstance(data, dict) and "targets" in data and "paths" not in data:
        return "config"
    return "schema"
