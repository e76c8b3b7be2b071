from typing import Callable, TypeVar

from starlette.types import ASGIApp

TYPE_CHECKING = False

if TYPE_CHECKING:
    from fastapi_block.bots import BotsConfig
    from fastapi_block.prefetch import PrefetchConfig

T = TypeVar("T")
Option = Callable[[T], T]
Clock = Callable[[], int]
BotsOption = Callable[["BotsConfig"], "BotsConfig"]
PrefetchOption = Callable[["PrefetchConfig"], "PrefetchConfig"]

__all__ = ["ASGIApp", "BotsOption", "Clock", "Option", "PrefetchOption"]
