"""Environment-driven configuration for shodan_client.

Clients can always be constructed directly from a token.  This module
covers the other common case, building one from the process environment:

* **Credential resolution** -- :func:`resolve_credential` reads the token
  from ``env:VAR``, ``file:/path`` or a literal value.
* **Settings** -- :func:`load_settings` merges explicit arguments,
  environment variables and defaults into a :class:`Settings`.

Precedence (high to low):
    1. Arguments passed to :func:`load_settings`
    2. Environment variables (``SHODAN_API_KEY``, ``SHODAN_BASE_URL``,
       ``SHODAN_EXPLOIT_BASE_URL``, ``SHODAN_STREAM_BASE_URL``,
       ``SHODAN_TIMEOUT``)
    3. Defaults from :mod:`shodan_client.models`
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from shodan_client.exceptions import ConfigError
from shodan_client.models import BaseURLs, RequestConfig

ENV_API_KEY = "SHODAN_API_KEY"
ENV_BASE_URL = "SHODAN_BASE_URL"
ENV_EXPLOIT_BASE_URL = "SHODAN_EXPLOIT_BASE_URL"
ENV_STREAM_BASE_URL = "SHODAN_STREAM_BASE_URL"
ENV_TIMEOUT = "SHODAN_TIMEOUT"

DEFAULT_TOKEN_SOURCE = f"env:{ENV_API_KEY}"


class Settings(BaseModel):
    """Everything needed to construct a client."""

    token: str
    base_urls: BaseURLs = Field(default_factory=BaseURLs)
    request: RequestConfig = Field(default_factory=RequestConfig)


def resolve_credential(source: str) -> str:
    """Resolve a token from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else -- used verbatim as the token

    Raises:
        ConfigError: If the source can't be resolved or resolves to an
            empty value.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
    elif source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            value = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc
    else:
        value = source

    value = value.strip()
    if not value:
        raise ConfigError(f"Credential is empty (source: {source.split(':', 1)[0]})")
    return value


def load_settings(
    token_source: Optional[str] = None,
    base_url: Optional[str] = None,
    exploit_base_url: Optional[str] = None,
    stream_base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Settings:
    """Build :class:`Settings` from arguments, the environment and defaults.

    Args:
        token_source: Credential descriptor for :func:`resolve_credential`.
            Defaults to ``env:SHODAN_API_KEY``.
        base_url: Override for the standard API root.
        exploit_base_url: Override for the exploits API root.
        stream_base_url: Override for the streaming API root.
        timeout: Request timeout in seconds.

    Raises:
        ConfigError: If no token can be resolved or ``SHODAN_TIMEOUT`` is
            not a positive number.
    """
    token = resolve_credential(token_source or DEFAULT_TOKEN_SOURCE)

    overrides = {
        "base_url": base_url or os.environ.get(ENV_BASE_URL),
        "exploit_base_url": exploit_base_url or os.environ.get(ENV_EXPLOIT_BASE_URL),
        "stream_base_url": stream_base_url or os.environ.get(ENV_STREAM_BASE_URL),
    }
    base_urls = BaseURLs(**{k: v.rstrip("/") for k, v in overrides.items() if v})

    request = RequestConfig()
    if timeout is None:
        env_timeout = os.environ.get(ENV_TIMEOUT)
        if env_timeout:
            try:
                timeout = float(env_timeout)
            except ValueError as exc:
                raise ConfigError(
                    f"{ENV_TIMEOUT} must be a number of seconds, got {env_timeout!r}"
                ) from exc
    if timeout is not None:
        if timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {timeout}")
        request = RequestConfig(timeout=timeout)

    return Settings(token=token, base_urls=base_urls, request=request)
