"""Loading of the symbol registry.

The registry is a JSON object mapping ticker symbols to the display
names used as journal entry narrations, e.g. ``{"SPY": "SPDR S&P 500"}``.
"""

import json
from pathlib import Path


class RegistryError(Exception):
    """The registry file cannot be read or is not a symbol -> name object."""

    pass


def load_registry(path: Path) -> dict[str, str]:
    """Read the symbol registry from a JSON file.

    Raises:
        RegistryError: If the file cannot be opened or parsed, or holds
            anything but string keys mapped to string values.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise RegistryError(f"failed to open registry file {path}") from exc
    except json.JSONDecodeError as exc:
        raise RegistryError(f"failed to read registry {path}") from exc

    if not isinstance(data, dict) or not all(
        isinstance(value, str) for value in data.values()
    ):
        raise RegistryError(
            f"failed to read registry {path}: expected an object of symbol names"
        )
    return data
