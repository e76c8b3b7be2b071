USER_AGENT_HEADER = "user-agent"
"""Header inspected by both middlewares, in ASGI's lower-case form"""

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
"""Content type of the confirmation page"""

NO_CACHE_HEADER_VALUE = "no-cache, no-store, must-revalidate"
"""`Cache-Control` value sent with the confirmation page when `no_cache` is set"""

DEFAULT_COOKIE_NAME = "block-prefetch"
"""Name of the cookie written by the confirmation page unless overridden"""

DEFAULT_COOKIE_PATH = "/"
"""Path attribute of the cookie written by the confirmation page unless overridden"""

DEFAULT_ENV_PREFIX = "BLOCK_PREFETCH_"
"""Prefix of the environment variables read by `EnvironmentConfigLoader`"""
