"""Pydantic models shared across shodan_client.

The models fall into three groups:

**Client configuration** -- :class:`BaseURLs` and :class:`RequestConfig`,
held by :class:`~shodan_client.client.Client` and
:class:`~shodan_client.client.AsyncClient`.

**Query parameters** -- :class:`QueryParams`, the base class endpoint
wrappers subclass to describe their query string.  Field aliases are the
names sent on the wire and field declaration order is the order they
appear in the URL.

**Response payloads** -- :class:`Profile` and :class:`APIInfo`, the shapes
decoded from the account endpoints.
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.shodan.io"
DEFAULT_EXPLOIT_BASE_URL = "https://exploits.shodan.io/api"
DEFAULT_STREAM_BASE_URL = "https://stream.shodan.io"

# Query parameter reserved for the API token.
TOKEN_PARAM = "key"


# --- Client configuration ---


class BaseURLs(BaseModel):
    """Immutable snapshot of the three root addresses endpoint paths are appended to.

    Clients never mutate a snapshot; reconfiguring a base address swaps in a
    new instance built with :meth:`~pydantic.BaseModel.model_copy`, so a
    call that already read the snapshot keeps a consistent view.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Standard REST API")
    exploit_base_url: str = Field(
        default=DEFAULT_EXPLOIT_BASE_URL, description="Exploits API"
    )
    stream_base_url: str = Field(
        default=DEFAULT_STREAM_BASE_URL, description="Streaming API"
    )


class RequestConfig(BaseModel):
    """Default HTTP settings for the transport a client builds for itself."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


# --- Query parameters ---


def format_param_value(value: Any) -> str:
    """Render a single query parameter value as it is sent on the wire.

    Booleans become ``true`` / ``false``, enums use their value and
    sequences are comma-joined.  Everything else goes through :func:`str`,
    which renders integers in decimal.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return format_param_value(value.value)
    if isinstance(value, (list, tuple)):
        return ",".join(format_param_value(v) for v in value)
    return str(value)


class QueryParams(BaseModel):
    """Base class for an endpoint's query parameter set.

    Subclasses declare one field per parameter; the alias (or the field
    name when there is none) is the external name.  ``None`` values are
    left out of the query string.

    Example::

        class SearchParams(QueryParams):
            query: str
            page: int = 1
            minify: bool = Field(default=True, alias="minify")

        SearchParams(query="nginx").to_query()
        # [("query", "nginx"), ("page", "1"), ("minify", "true")]
    """

    model_config = ConfigDict(populate_by_name=True)

    reserved_names: ClassVar[frozenset[str]] = frozenset({TOKEN_PARAM})

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        for name, field in cls.model_fields.items():
            external = field.alias or name
            if external in cls.reserved_names:
                raise ValueError(
                    f"{cls.__name__}.{name}: query parameter '{external}' is reserved"
                )

    def to_query(self) -> list[tuple[str, str]]:
        """Return ``(name, value)`` pairs in field declaration order."""
        pairs: list[tuple[str, str]] = []
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if value is None:
                continue
            pairs.append((field.alias or name, format_param_value(value)))
        return pairs


# --- Response payloads ---


class Profile(BaseModel):
    """Account information for the API key in use (``/account/profile``)."""

    model_config = ConfigDict(populate_by_name=True)

    member: bool = False
    credits: int = 0
    name: Optional[str] = Field(default=None, alias="display_name")
    created: Optional[str] = None


class UsageLimits(BaseModel):
    """Per-plan monthly limits reported by ``/api-info``."""

    scan_credits: int = 0
    query_credits: int = 0
    monitored_ips: int = 0


class APIInfo(BaseModel):
    """Plan and remaining credits for the API key in use (``/api-info``).

    Unknown keys are kept and reachable through ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    plan: Optional[str] = None
    query_credits: int = 0
    scan_credits: int = 0
    monitored_ips: Optional[int] = None
    unlocked: bool = False
    unlocked_left: int = 0
    https: bool = False
    telnet: bool = False
    usage_limits: UsageLimits = Field(default_factory=UsageLimits)
