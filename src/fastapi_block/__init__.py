"""FastAPI Block - Keep bots and browser prefetches away from your FastAPI pages.

FastAPI Block provides two independent ASGI middlewares, each wrapping an
application and returning a new one:

Key Components:
    - bots: Diverts requests whose User-Agent looks like a bot to a bot handler
    - prefetch: Answers speculative prefetches with a page that only sets a
      confirmation cookie and reloads when the document is visible

Usage:
    ```python
    from datetime import timedelta

    from fastapi import FastAPI
    from fastapi_block import bots, prefetch, with_max_age, with_user_agent

    app = FastAPI()

    @app.get("/")
    def index():
        return {"message": "Hello"}

    application = bots(prefetch(app, with_max_age(timedelta(seconds=5))))
    ```
"""

from fastapi_block.bots import (
    BOT_USER_AGENTS,
    BotsConfig,
    BotsMiddleware,
    bots,
    default_bot_handler,
    is_bot,
    with_bot_handler,
)
from fastapi_block.config import EnvironmentConfigLoader, prefetch_options_from_env
from fastapi_block.exceptions import BlockError, ConfigurationError
from fastapi_block.options import apply_options
from fastapi_block.prefetch import (
    CookiePolicy,
    PrefetchConfig,
    PrefetchMiddleware,
    prefetch,
    render_confirmation_page,
    with_clock,
    with_cookie_name,
    with_cookie_policy,
    with_max_age,
    with_no_cache,
    with_path,
    with_user_agent,
)

__version__ = "0.1.0"

__all__ = [
    "BOT_USER_AGENTS",
    "BotsConfig",
    "BotsMiddleware",
    "bots",
    "default_bot_handler",
    "is_bot",
    "with_bot_handler",
    "EnvironmentConfigLoader",
    "prefetch_options_from_env",
    "BlockError",
    "ConfigurationError",
    "apply_options",
    "CookiePolicy",
    "PrefetchConfig",
    "PrefetchMiddleware",
    "prefetch",
    "render_confirmation_page",
    "with_clock",
    "with_cookie_name",
    "with_cookie_policy",
    "with_max_age",
    "with_no_cache",
    "with_path",
    "with_user_agent",
]
