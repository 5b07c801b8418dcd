"""Tests for shared pydantic models."""

from __future__ import annotations

import enum

import pytest
from pydantic import Field, ValidationError

from shodan_client.models import (
    DEFAULT_BASE_URL,
    DEFAULT_EXPLOIT_BASE_URL,
    DEFAULT_STREAM_BASE_URL,
    APIInfo,
    BaseURLs,
    Profile,
    QueryParams,
    format_param_value,
)


class Order(enum.Enum):
    ASC = "asc"
    DESC = "desc"


class ExploitParams(QueryParams):
    query: str
    facet_list: list[str] | None = Field(default=None, alias="facets")
    page: int = 1
    order: Order | None = None


class TestQueryParams:
    def test_declaration_order(self) -> None:
        params = ExploitParams(query="apache", facets=["author", "platform"], page=2)
        assert params.to_query() == [
            ("query", "apache"),
            ("facets", "author,platform"),
            ("page", "2"),
        ]

    def test_none_is_omitted(self) -> None:
        assert ExploitParams(query="x").to_query() == [("query", "x"), ("page", "1")]

    def test_populate_by_field_name(self) -> None:
        params = ExploitParams(query="x", facet_list=["type"])
        assert ("facets", "type") in params.to_query()

    def test_enum_value(self) -> None:
        params = ExploitParams(query="x", order=Order.DESC)
        assert params.to_query()[-1] == ("order", "desc")

    def test_key_field_rejected(self) -> None:
        with pytest.raises(ValueError, match="reserved"):

            class Sneaky(QueryParams):
                key: str

    def test_key_alias_rejected(self) -> None:
        with pytest.raises(ValueError, match="reserved"):

            class Sneaky(QueryParams):
                token: str = Field(alias="key")


class TestFormatParamValue:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (-7, "-7"),
            ("text", "text"),
            (["a", 1, True], "a,1,true"),
        ],
    )
    def test_values(self, value: object, expected: str) -> None:
        assert format_param_value(value) == expected


class TestBaseURLs:
    def test_defaults(self) -> None:
        urls = BaseURLs()
        assert urls.base_url == DEFAULT_BASE_URL
        assert urls.exploit_base_url == DEFAULT_EXPLOIT_BASE_URL
        assert urls.stream_base_url == DEFAULT_STREAM_BASE_URL

    def test_frozen(self) -> None:
        urls = BaseURLs()
        with pytest.raises(ValidationError):
            urls.base_url = "http://elsewhere"


class TestPayloads:
    def test_profile_display_name_alias(self) -> None:
        profile = Profile.model_validate(
            {"member": True, "credits": 20, "display_name": "jdoe", "created": "2020-01-01T00:00:00"}
        )
        assert profile.member is True
        assert profile.credits == 20
        assert profile.name == "jdoe"
        assert profile.created == "2020-01-01T00:00:00"

    def test_profile_null_display_name(self) -> None:
        profile = Profile.model_validate({"member": False, "credits": 0, "display_name": None})
        assert profile.name is None

    def test_api_info_keeps_unknown_keys(self) -> None:
        info = APIInfo.model_validate(
            {
                "plan": "dev",
                "query_credits": 100,
                "scan_credits": 100,
                "usage_limits": {"scan_credits": 100, "query_credits": 100, "monitored_ips": 16},
                "new_field": "kept",
            }
        )
        assert info.plan == "dev"
        assert info.usage_limits.monitored_ips == 16
        assert info.model_extra == {"new_field": "kept"}
