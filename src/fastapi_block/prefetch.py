"""Prefetch guard middleware for fastapi-block.

Browsers speculatively fetch (prefetch, prerender) pages they expect the
user to open. The guard answers such a request with a tiny HTML page whose
script only runs its payload when the document is actually visible: it then
stores the current time in a cookie and reloads. The reload carries the
cookie, and the wrapped application is called once the cookie passes the
configured age test.

The guard keeps no state of its own. Everything it needs travels in the
cookie.
"""

import logging
import re
import time
from datetime import timedelta
from enum import Enum
from typing import Annotated, Any, Callable, Optional, Sequence, Tuple, Union

from fastapi.responses import HTMLResponse
from pydantic import field_validator
from starlette.datastructures import Headers
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Receive, Scope, Send
from typing_extensions import Doc

from fastapi_block.consts import (
    DEFAULT_COOKIE_NAME,
    DEFAULT_COOKIE_PATH,
    HTML_CONTENT_TYPE,
    NO_CACHE_HEADER_VALUE,
    USER_AGENT_HEADER,
)
from fastapi_block.exceptions import ConfigurationError
from fastapi_block.options import BlockConfig, apply_options, replace
from fastapi_block.typing import Clock, PrefetchOption
from fastapi_block.utils import (
    contains_any,
    parse_nanosecond_timestamp,
    timedelta_to_nanoseconds,
    whole_seconds,
)

logger = logging.getLogger(__name__)

CONFIRMATION_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
</head>
<body>
<script>
	if (document.visibilityState === 'visible') {
		document.cookie = '%s=%d' + '; max-age=%d; path=%s';
		window.location.reload();
	}
</script>
</body>
</html>"""

# characters that would end the cookie pair or escape the script's string literal
_INVALID_COOKIE_NAME = re.compile(r"""[\s;=,"'\\<>]""")
_INVALID_COOKIE_PATH = re.compile(r"""[\r\n;"'\\<>]""")


class CookiePolicy(str, Enum):
    """How the age of the prefetch cookie decides whether it is accepted."""

    # accepted once the cookie is older than max_age; a just-set cookie is
    # rejected, so the confirmation page is served again until it ages
    OLDER_THAN_MAX_AGE = "older_than_max_age"
    # accepted while the cookie is at most max_age old
    YOUNGER_THAN_MAX_AGE = "younger_than_max_age"

    def accepts(self, elapsed_ns: int, max_age_ns: int) -> bool:
        if self is CookiePolicy.OLDER_THAN_MAX_AGE:
            return max_age_ns < elapsed_ns
        return 0 <= elapsed_ns <= max_age_ns


class PrefetchConfig(BlockConfig):
    """Configuration of the prefetch guard."""

    cookie_name: str = DEFAULT_COOKIE_NAME
    max_age: timedelta = timedelta(microseconds=1)
    path: str = DEFAULT_COOKIE_PATH
    user_agents: Tuple[str, ...] = ()
    no_cache: bool = False
    cookie_policy: CookiePolicy = CookiePolicy.OLDER_THAN_MAX_AGE
    clock: Callable[[], int] = time.time_ns

    @field_validator("cookie_name")
    @classmethod
    def validate_cookie_name(cls, v: str) -> str:
        if not v:
            raise ValueError("cookie_name must not be empty")
        if _INVALID_COOKIE_NAME.search(v):
            raise ValueError(f"cookie_name {v!r} contains a reserved character")
        return v

    @field_validator("max_age")
    @classmethod
    def validate_max_age(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("max_age must be positive")
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if _INVALID_COOKIE_PATH.search(v):
            raise ValueError(f"path {v!r} contains a reserved character")
        return v

    @field_validator("user_agents")
    @classmethod
    def validate_user_agents(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not ua for ua in v):
            raise ValueError("user_agents entries must not be empty")
        return v

    @field_validator("clock", mode="before")
    @classmethod
    def validate_clock(cls, v: Any) -> Any:
        if not callable(v):
            raise ValueError("clock must be callable")
        return v

    @property
    def max_age_seconds(self) -> int:
        """`max_age` in whole seconds, as written into the cookie."""
        return whole_seconds(self.max_age)

    def applies_to(self, user_agent: str) -> bool:
        """Whether a request with `user_agent` is in scope of the guard."""
        if not self.user_agents:
            return True
        return contains_any(user_agent, self.user_agents)

    def cookie_is_valid(self, value: Optional[str]) -> bool:
        """Check a raw cookie value against `cookie_policy` and `max_age`."""
        timestamp = parse_nanosecond_timestamp(value)
        if timestamp is None:
            return False
        elapsed_ns = self.clock() - timestamp
        return self.cookie_policy.accepts(
            elapsed_ns, timedelta_to_nanoseconds(self.max_age)
        )


def with_max_age(max_age: Union[timedelta, int, float]) -> PrefetchOption:
    """Set the max age of the prefetch cookie.

    Numbers are taken as seconds. Default is the smallest positive
    `timedelta`, which the cookie header renders as `max-age=0`.
    """

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, max_age=max_age)

    return option


def with_cookie_name(cookie_name: str) -> PrefetchOption:
    """Set the name of the prefetch cookie. Default is `"block-prefetch"`."""

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, cookie_name=cookie_name)

    return option


def with_user_agent(*user_agents: str) -> PrefetchOption:
    """Restrict the guard to requests whose User-Agent contains one of `user_agents`.

    Matching is a case-sensitive substring test, so partial values such as
    `"Chrome"` work. Repeated options accumulate. Default is to guard every
    request.
    """

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, user_agents=(*config.user_agents, *user_agents))

    return option


def with_path(path: str) -> PrefetchOption:
    """Set the path attribute of the prefetch cookie. Default is `"/"`."""

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, path=path)

    return option


def with_no_cache(no_cache: bool) -> PrefetchOption:
    """Send no-cache headers with the confirmation page. Default is `False`."""

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, no_cache=no_cache)

    return option


def with_cookie_policy(cookie_policy: CookiePolicy) -> PrefetchOption:
    """Choose how the cookie age is judged.

    Default is `CookiePolicy.OLDER_THAN_MAX_AGE`.
    """

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, cookie_policy=cookie_policy)

    return option


def with_clock(clock: Clock) -> PrefetchOption:
    """Replace the nanosecond wall clock, `time.time_ns` by default."""

    def option(config: PrefetchConfig) -> PrefetchConfig:
        return replace(config, clock=clock)

    return option


def render_confirmation_page(
    cookie_name: str, timestamp_ns: int, max_age_seconds: int, path: str
) -> str:
    """Render the page that sets the prefetch cookie and reloads."""
    return CONFIRMATION_PAGE_TEMPLATE % (
        cookie_name,
        timestamp_ns,
        max_age_seconds,
        path,
    )


class PrefetchMiddleware:
    """ASGI middleware serving the confirmation page until the cookie is valid.

    Register it with `app.add_middleware(PrefetchMiddleware, options=[...])`
    or build it with `prefetch()`.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[PrefetchConfig] = None,
        *,
        options: Sequence[PrefetchOption] = (),
    ):
        base = config if config is not None else PrefetchConfig()
        self.app = app
        self.config = apply_options(base, options)

    def confirmation_response(self) -> HTMLResponse:
        config = self.config
        headers = {"Content-Type": HTML_CONTENT_TYPE}
        if config.no_cache:
            headers["Cache-Control"] = NO_CACHE_HEADER_VALUE
        content = render_confirmation_page(
            config.cookie_name,
            config.clock(),
            config.max_age_seconds,
            config.path,
        )
        return HTMLResponse(content=content, status_code=200, headers=headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        user_agent = Headers(scope=scope).get(USER_AGENT_HEADER, "")
        if not self.config.applies_to(user_agent):
            logger.debug("Prefetch guard bypassed for user agent %r", user_agent)
            await self.app(scope, receive, send)
            return

        cookie = HTTPConnection(scope).cookies.get(self.config.cookie_name)
        if not self.config.cookie_is_valid(cookie):
            logger.debug(
                "Serving prefetch confirmation page on %s (cookie %s=%r)",
                scope.get("path", ""),
                self.config.cookie_name,
                cookie,
            )
            await self.confirmation_response()(scope, receive, send)
            return

        await self.app(scope, receive, send)


def prefetch(
    app: Annotated[
        ASGIApp,
        Doc(
            """
            The downstream application served once the prefetch cookie is valid.
            """
        ),
    ],
    *options: Annotated[
        PrefetchOption,
        Doc(
            """
            Options such as `with_max_age` or `with_user_agent`, applied in order.
            """
        ),
    ],
) -> PrefetchMiddleware:
    """Wrap `app` with the prefetch guard.

    Examples:
        ```python
        from datetime import timedelta

        from fastapi import FastAPI

        app = FastAPI()
        wrapped = prefetch(
            app,
            with_max_age(timedelta(seconds=5)),
            with_user_agent("Chrome"),
            with_no_cache(True),
        )
        ```
    """
    return PrefetchMiddleware(app, options=options)
