"""Tests for option plumbing, helpers and exceptions."""

from datetime import timedelta

import pytest

from fastapi_block import __all__ as public_names
from fastapi_block.bots import BotsConfig
from fastapi_block.exceptions import BlockError, ConfigurationError
from fastapi_block.options import BlockConfig, apply_options, replace
from fastapi_block.prefetch import PrefetchConfig, with_cookie_name
from fastapi_block.utils import (
    contains_any,
    parse_nanosecond_timestamp,
    timedelta_to_nanoseconds,
    whole_seconds,
)


class TestApplyOptions:
    """Test folding options over a configuration."""

    def test_no_options_returns_config(self):
        """Nothing to apply leaves the configuration as is."""
        config = PrefetchConfig()
        assert apply_options(config, []) is config
        assert apply_options(config, None) is config

    def test_options_apply_left_to_right(self):
        """The last option for a field wins."""
        config = apply_options(
            PrefetchConfig(), [with_cookie_name("a"), with_cookie_name("b")]
        )
        assert config.cookie_name == "b"

    def test_non_callable_option(self):
        """Options must be callables."""
        with pytest.raises(ConfigurationError, match="callables"):
            apply_options(PrefetchConfig(), ["cookie_name"])

    def test_option_returning_wrong_type(self):
        """Options must return a configuration of the same type."""

        def broken(config):
            return {"cookie_name": "x"}

        with pytest.raises(ConfigurationError, match="broken"):
            apply_options(PrefetchConfig(), [broken])

    def test_option_for_other_config_type(self):
        """A bots option cannot be applied to a prefetch config."""

        def bots_option(config):
            return BotsConfig()

        with pytest.raises(ConfigurationError):
            apply_options(PrefetchConfig(), [bots_option])


class TestReplace:
    """Test validated copies."""

    def test_replace_returns_new_instance(self):
        """The original configuration is left untouched."""
        config = PrefetchConfig()
        updated = replace(config, path="/x")

        assert updated is not config
        assert updated.path == "/x"
        assert config.path == "/"

    def test_replace_validates(self):
        """Changes go through validation."""
        with pytest.raises(ConfigurationError) as exc_info:
            replace(PrefetchConfig(), max_age=timedelta(0))
        assert exc_info.value.field == "max_age"

    def test_direct_construction_reports_type_errors(self):
        """Type errors are reported with the failing field."""
        with pytest.raises(ConfigurationError) as exc_info:
            PrefetchConfig(no_cache="not a bool")
        assert exc_info.value.field == "no_cache"

    def test_configs_share_the_base_model(self):
        """Both middleware configurations translate validation errors."""
        assert issubclass(PrefetchConfig, BlockConfig)
        assert issubclass(BotsConfig, BlockConfig)


class TestUtils:
    """Test the matching and parsing helpers."""

    def test_contains_any(self):
        """Substring containment, case-sensitive."""
        assert contains_any("Mozilla/5.0 Chrome/100", ("Chrome",)) is True
        assert contains_any("Mozilla/5.0 chrome/100", ("Chrome",)) is False
        assert contains_any("anything", ()) is False

    def test_parse_nanosecond_timestamp(self):
        """Only base-10 int64 values parse."""
        assert parse_nanosecond_timestamp("1700000000000000000") == 1700000000000000000
        assert parse_nanosecond_timestamp("-42") == -42
        assert parse_nanosecond_timestamp(str(2**63 - 1)) == 2**63 - 1
        assert parse_nanosecond_timestamp(str(2**63)) is None
        assert parse_nanosecond_timestamp("1e9") is None
        assert parse_nanosecond_timestamp("123\n") is None

    def test_durations(self):
        """Durations convert to nanoseconds and truncated seconds."""
        assert timedelta_to_nanoseconds(timedelta(seconds=1)) == 1_000_000_000
        assert timedelta_to_nanoseconds(timedelta(microseconds=1)) == 1_000
        assert whole_seconds(timedelta(seconds=5, milliseconds=999)) == 5
        assert whole_seconds(timedelta(microseconds=1)) == 0


class TestExceptions:
    """Test the exception hierarchy."""

    def test_hierarchy(self):
        """Configuration errors are block errors and value errors."""
        assert issubclass(ConfigurationError, BlockError)
        assert issubclass(BlockError, ValueError)

    def test_message_includes_details(self):
        """Details are rendered after the message."""
        error = ConfigurationError("Bad value", field="path")
        assert error.field == "path"
        assert str(error) == "Bad value (field='path')"
        assert str(BlockError("plain")) == "plain"


def test_public_api():
    """The package exports both middlewares and their options."""
    for name in ("bots", "prefetch", "with_bot_handler", "with_max_age", "CookiePolicy"):
        assert name in public_names
