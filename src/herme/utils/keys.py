"""Nostr key management utilities for Herme.

Provides functions and a Pydantic model for loading the agent's identity.
Keys come from an environment variable when it is set (nsec1 bech32 or
hex), otherwise from a JSON key file, which is created with a freshly
generated key pair on first start.

Warning:
    Private keys must **never** be stored in configuration files, source code,
    or logged to any output. The key file is written with ``0600``
    permissions and should live outside version control.

Examples:
    ```python
    import os

    os.environ["HERME_PRIVATE_KEY"] = "nsec1..."  # pragma: allowlist secret
    keys = load_keys_from_env("HERME_PRIVATE_KEY")
    print(keys.public_key().to_bech32())
    ```
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from nostr_sdk import Keys, NostrSdkError
from pydantic import BaseModel, Field

from herme.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

ENV_PRIVATE_KEY = "HERME_PRIVATE_KEY"  # pragma: allowlist secret  # Default env var name
DEFAULT_KEYS_FILE = "keys.json"


def load_keys_from_env(env_var: str) -> Keys:
    """Load Nostr keys from an environment variable.

    Args:
        env_var: Name of the environment variable containing the private key.

    Raises:
        ValueError: If the environment variable is not set or is empty.
        nostr_sdk.NostrSdkError: If the key value is malformed.
    """
    value = os.getenv(env_var)

    if not value:
        raise ValueError(f"{env_var} environment variable is not set")

    return Keys.parse(value)


def load_keys_from_file(path: Path) -> Keys:
    """Load keys from a JSON key file written by
    [save_keys_to_file()][herme.utils.keys.save_keys_to_file].

    Raises:
        ConfigurationError: If the file cannot be read or holds no valid key.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Keys.parse(data["nostr"]["private_key"])
    except (OSError, json.JSONDecodeError, KeyError, TypeError, NostrSdkError) as e:
        raise ConfigurationError(f"Invalid key file {path}: {e}") from e


def save_keys_to_file(keys: Keys, path: Path) -> None:
    """Persist *keys* as JSON, readable by the owner only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "nostr": {
            "private_key": keys.secret_key().to_hex(),
            "public_key": keys.public_key().to_hex(),
        }
    }
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def load_or_create_keys(env_var: str, path: Path) -> Keys:
    """Return the agent identity, generating and persisting one if needed.

    Resolution order: the environment variable, then the key file, then a
    new key pair written to the key file.

    Raises:
        ConfigurationError: If the environment key or the key file is invalid.
    """
    if os.getenv(env_var):
        try:
            return load_keys_from_env(env_var)
        except NostrSdkError as e:
            raise ConfigurationError(f"{env_var} does not hold a valid private key") from e

    if path.exists():
        return load_keys_from_file(path)

    keys = Keys.generate()
    try:
        save_keys_to_file(keys, path)
    except OSError as e:
        raise ConfigurationError(f"Cannot write key file {path}: {e}") from e
    logger.info("keys_generated public_key=%s path=%s", keys.public_key().to_hex(), path)
    return keys


class KeysConfig(BaseModel):
    """Where the agent identity is loaded from.

    Attributes:
        keys_env: Environment variable holding the private key (nsec or hex).
        keys_file: Key file used when the variable is unset; a relative
            path is resolved against the agent ``data_dir``.
    """

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable name for private key",
    )
    keys_file: str = Field(
        default=DEFAULT_KEYS_FILE,
        min_length=1,
        description="JSON key file used (and created) when keys_env is unset",
    )

    def load(self, data_dir: Path) -> Keys:
        """Resolve ``keys_file`` against *data_dir* and load or create the keys."""
        path = Path(self.keys_file)
        if not path.is_absolute():
            path = data_dir / path
        return load_or_create_keys(self.keys_env, path)
