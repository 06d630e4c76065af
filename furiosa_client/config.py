"""Credential and endpoint resolution.

The client reads its access key pair from the environment::

    FURIOSA_ACCESS_KEY_ID=XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX
    FURIOSA_SECRET_ACCESS_KEY=YYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYY

If either is missing or empty, ``~/.furiosa/config`` and
``~/.furiosa/credential`` (dotenv format, same keys) are loaded first.
An empty key variable is dropped from the environment before loading, so the
files can fill it. Non-empty values already in the environment always win
over the files.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from dotenv.parser import Original, parse_stream

from .exceptions import ClientIOError, ConfigEnvVarError, ConfigParseError, NoCredentials

logger = logging.getLogger(__name__)

FURIOSA_API_ENDPOINT_ENV = "FURIOSA_API_ENDPOINT"
ACCESS_KEY_ID_ENV = "FURIOSA_ACCESS_KEY_ID"
SECRET_ACCESS_KEY_ENV = "FURIOSA_SECRET_ACCESS_KEY"
DEFAULT_FURIOSA_API_ENDPOINT = "https://api.furiosa.ai"

CONFIG_FILES = ("config", "credential")


@dataclass(frozen=True)
class Credentials:
    """Access key pair plus the API endpoint it is used against."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    endpoint: str = DEFAULT_FURIOSA_API_ENDPOINT

    def __post_init__(self) -> None:
        object.__setattr__(self, "endpoint", normalize_endpoint(self.endpoint))


def normalize_endpoint(url: str) -> str:
    """Strip every trailing slash: ``https://x/api/v1///`` -> ``https://x/api/v1``."""
    return url.rstrip("/")


def config_dir() -> Path:
    return Path.home() / ".furiosa"


def load_config_file(name: str, directory: Path | None = None) -> bool:
    """Load ``~/.furiosa/<name>`` into ``os.environ`` without overriding.

    Returns ``False`` if the file does not exist, which is not an error.

    Raises:
        ClientIOError: The file exists but cannot be read or is not UTF-8.
        ConfigParseError: The file contains a line that is not ``KEY=VALUE``.
    """
    path = (directory or config_dir()) / name
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("config_file_missing: %s", path)
        return False
    except (OSError, UnicodeDecodeError) as e:
        raise ClientIOError(f"fail to read {path}: {e}", path=path) from e

    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            raise _parse_error(binding.original)

    load_dotenv(stream=io.StringIO(text), override=False)
    logger.debug("config_file_loaded: %s", path)
    return True


def _parse_error(original: Original) -> ConfigParseError:
    # dotenv folds blank lines preceding a binding into its ``original``;
    # report the offending line itself and its own 1-based line number.
    string = original.string
    skipped = string[: len(string) - len(string.lstrip())].count("\n")
    return ConfigParseError(string.strip(), original.line + skipped)


def get_endpoint_from_env() -> str:
    """Return the API endpoint from ``FURIOSA_API_ENDPOINT`` or the default."""
    value = os.environ.get(FURIOSA_API_ENDPOINT_ENV)
    if value is None:
        return DEFAULT_FURIOSA_API_ENDPOINT

    endpoint = normalize_endpoint(value.strip())
    if not endpoint:
        raise ConfigEnvVarError(FURIOSA_API_ENDPOINT_ENV, "must not be empty")
    return endpoint


def _keys_from_env() -> tuple[str, str] | None:
    access_key_id = os.environ.get(ACCESS_KEY_ID_ENV)
    secret_access_key = os.environ.get(SECRET_ACCESS_KEY_ENV)
    if not access_key_id or not secret_access_key:
        return None
    return access_key_id, secret_access_key


def resolve_credentials(directory: Path | None = None) -> Credentials:
    """Resolve the access key pair and endpoint.

    Args:
        directory: Where to look for the optional dotfiles.
            Defaults to ``~/.furiosa``.

    Raises:
        NoCredentials: Neither the environment nor the dotfiles provide
            both keys.
    """
    keys = _keys_from_env()
    if keys is None:
        for name in (ACCESS_KEY_ID_ENV, SECRET_ACCESS_KEY_ENV):
            if os.environ.get(name) == "":
                del os.environ[name]
        for name in CONFIG_FILES:
            load_config_file(name, directory)
        keys = _keys_from_env()
    if keys is None:
        raise NoCredentials()

    return Credentials(
        access_key_id=keys[0],
        secret_access_key=keys[1],
        endpoint=get_endpoint_from_env(),
    )
