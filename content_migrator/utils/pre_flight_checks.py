import subprocess
from typing import Callable, Iterable, Mapping

from .errors import ConfigurationError


class PreFlightCheckError(ConfigurationError):
    """Raised when the environment is not ready for a migration run."""


def ensure_wrangler_available(runner: Callable = subprocess.run) -> None:
    """
    Verifies that the Wrangler CLI can be invoked through ``npx``.

    Raises:
        PreFlightCheckError: If the command cannot be run or exits non-zero.
    """
    try:
        result = runner(
            ["npx", "wrangler", "--version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as e:
        raise PreFlightCheckError("Could not run npx. Is Node.js installed?", e) from e

    if result.returncode != 0:
        raise PreFlightCheckError(
            "Wrangler CLI is not available. Ensure dependencies are installed "
            "and you are authenticated with Cloudflare."
        )


def require_settings(values: Mapping[str, object], names: Iterable[str]) -> None:
    """
    Checks that every setting in ``names`` has a non-empty value.

    Raises:
        ConfigurationError: Naming the first missing setting.
    """
    for name in names:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ConfigurationError(f"Missing required configuration value: {name}")
