"""CLI input JSON validation against refract schemas."""

from __future__ import annotations

import json
from typing import Any

import click

from refract.core.schemas import validate_instance


def validate_json_file(filepath: str, schema_name: str) -> dict[str, Any] | list[Any]:
    """Load a JSON file and validate it against a refract schema.

    Parameters:
        filepath: Path to the JSON file.
        schema_name: Schema name (``"config"`` or ``"openrpc"``).

    Returns:
        The parsed JSON data.

    Raises:
        click.ClickException: On parse or validation errors.
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON in {filepath}: {exc}") from exc

    errors = validate_instance(data, schema_name)
    if errors:
        summary = "\n".join(f"  {e}" for e in errors[:5])
        raise click.ClickException(f"Validation errors for {filepath} (schema: {schema_name}):\n{summary}")

    return data
