"""Environment-driven configuration for the prefetch guard.

Deployments that cannot change code can tune the guard through prefixed
environment variables:

    BLOCK_PREFETCH_COOKIE_NAME=my-cookie
    BLOCK_PREFETCH_MAX_AGE=5
    BLOCK_PREFETCH_PATH=/app
    BLOCK_PREFETCH_USER_AGENTS=Chrome,Edg/
    BLOCK_PREFETCH_NO_CACHE=true
    BLOCK_PREFETCH_COOKIE_POLICY=younger_than_max_age

The loader turns them into the same option callables used in code, so the
result can be mixed with explicit options.
"""

import logging
import os
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from fastapi_block.consts import DEFAULT_ENV_PREFIX
from fastapi_block.exceptions import ConfigurationError
from fastapi_block.prefetch import (
    CookiePolicy,
    with_cookie_name,
    with_cookie_policy,
    with_max_age,
    with_no_cache,
    with_path,
    with_user_agent,
)
from fastapi_block.typing import PrefetchOption

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _to_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Expected a boolean, got {value!r}", field=key)


def _to_seconds(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(
            f"Expected a number of seconds, got {value!r}", field=key
        ) from None


def _to_list(key: str, value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _to_cookie_policy(key: str, value: str) -> CookiePolicy:
    try:
        return CookiePolicy(value.strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in CookiePolicy)
        raise ConfigurationError(
            f"Unknown cookie policy {value!r}, expected one of: {allowed}",
            field=key,
        ) from None


def _to_str(key: str, value: str) -> str:
    return value


class EnvironmentConfigLoader:
    """Prefetch guard configuration loader reading environment variables."""

    # key (without prefix, lower-cased) -> (converter, option factory)
    FIELDS: Dict[
        str, Tuple[Callable[[str, str], Any], Callable[[Any], PrefetchOption]]
    ] = {
        "cookie_name": (_to_str, with_cookie_name),
        "max_age": (_to_seconds, with_max_age),
        "path": (_to_str, with_path),
        "user_agents": (_to_list, lambda agents: with_user_agent(*agents)),
        "no_cache": (_to_bool, with_no_cache),
        "cookie_policy": (_to_cookie_policy, with_cookie_policy),
    }

    def __init__(
        self,
        prefix: str = DEFAULT_ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.prefix = prefix
        self.environ = environ

    def load(self) -> Dict[str, Any]:
        """Read and convert every recognised variable under the prefix."""
        environ = os.environ if self.environ is None else self.environ
        prefix = self.prefix.upper()
        config: Dict[str, Any] = {}

        for key, value in environ.items():
            if not key.upper().startswith(prefix):
                continue
            config_key = key[len(prefix):].lower()
            if config_key not in self.FIELDS:
                logger.warning("Ignoring unknown prefetch setting %s", key)
                continue
            converter = self.FIELDS[config_key][0]
            config[config_key] = converter(key, value)

        return config

    def to_options(self) -> List[PrefetchOption]:
        """Translate the loaded settings into prefetch options."""
        options = []
        for key, value in self.load().items():
            option_factory = self.FIELDS[key][1]
            options.append(option_factory(value))
        return options


def prefetch_options_from_env(
    environ: Optional[Mapping[str, str]] = None,
    prefix: str = DEFAULT_ENV_PREFIX,
) -> List[PrefetchOption]:
    """Build prefetch options from environment variables.

    Examples:
        ```python
        app = prefetch(app, *prefetch_options_from_env())
        ```
    """
    return EnvironmentConfigLoader(prefix=prefix, environ=environ).to_options()
