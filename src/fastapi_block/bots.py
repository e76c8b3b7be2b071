"""Bot filter middleware for fastapi-block.

Requests whose User-Agent contains a known automation signature are handed
to a bot handler instead of the wrapped application. Matching is plain,
case-sensitive substring search over every `User-Agent` header the request
carries.
"""

import logging
from typing import Annotated, Any, Callable, Iterable, Optional, Sequence

from fastapi import Response
from pydantic import field_validator
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send
from typing_extensions import Doc

from fastapi_block.consts import USER_AGENT_HEADER
from fastapi_block.exceptions import ConfigurationError
from fastapi_block.options import BlockConfig, apply_options, replace
from fastapi_block.typing import BotsOption
from fastapi_block.utils import contains_any

logger = logging.getLogger(__name__)

BOT_USER_AGENTS = (
    "bot",
    "Bot",
    "facebookexternalhit",
)
"""Known User-Agent fragments used by bots and link-preview fetchers"""


def is_bot(user_agents: Iterable[str]) -> bool:
    """Return `True` if any User-Agent value contains a bot signature.

    Args:
        user_agents: Every `User-Agent` header value of the request.

    Returns:
        Whether the request looks like it was sent by a bot. An empty
        iterable is never a bot.
    """
    for user_agent in user_agents:
        if contains_any(user_agent, BOT_USER_AGENTS):
            return True
    return False


async def default_bot_handler(scope: Scope, receive: Receive, send: Send) -> None:
    """Answer bots with an empty `200 OK`."""
    response = Response(status_code=200)
    await response(scope, receive, send)


class BotsConfig(BlockConfig):
    """Configuration of the bot filter."""

    bot_handler: Callable[..., Any] = default_bot_handler

    @field_validator("bot_handler", mode="before")
    @classmethod
    def validate_bot_handler(cls, v):
        if not callable(v):
            raise ValueError("bot_handler must be an ASGI application")
        return v


def with_bot_handler(bot_handler: ASGIApp) -> BotsOption:
    """Set the ASGI application called when a bot is detected.

    The default handler returns an empty `200 OK` response.
    """
    if not callable(bot_handler):
        raise ConfigurationError(
            "bot_handler must be an ASGI application", field="bot_handler"
        )

    def option(config: BotsConfig) -> BotsConfig:
        return replace(config, bot_handler=bot_handler)

    return option


class BotsMiddleware:
    """ASGI middleware diverting bot traffic to `config.bot_handler`.

    Can be registered on a FastAPI or Starlette application with
    `app.add_middleware(BotsMiddleware, bot_handler=...)` or built directly
    with `bots()`.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[BotsConfig] = None,
        *,
        options: Sequence[BotsOption] = (),
        bot_handler: Optional[ASGIApp] = None,
    ):
        base = config if config is not None else BotsConfig()
        if bot_handler is not None:
            options = (*options, with_bot_handler(bot_handler))
        self.app = app
        self.config = apply_options(base, options)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        user_agents = Headers(scope=scope).getlist(USER_AGENT_HEADER)
        if is_bot(user_agents):
            logger.debug(
                "Bot detected on %s, diverting to bot handler: %r",
                scope.get("path", ""),
                user_agents,
            )
            await self.config.bot_handler(scope, receive, send)
            return

        await self.app(scope, receive, send)


def bots(
    app: Annotated[
        ASGIApp,
        Doc(
            """
            The downstream application served to everything that is not a bot.
            """
        ),
    ],
    *options: Annotated[
        BotsOption,
        Doc(
            """
            Options such as `with_bot_handler`, applied in order.
            """
        ),
    ],
) -> BotsMiddleware:
    """Wrap `app` with the bot filter.

    Examples:
        ```python
        from fastapi import FastAPI
        from starlette.responses import PlainTextResponse

        app = FastAPI()
        wrapped = bots(app, with_bot_handler(PlainTextResponse("no bots", 403)))
        ```
    """
    return BotsMiddleware(app, options=options)
