"""Option plumbing shared by the middleware configurations.

An option is a plain callable that takes a configuration and returns a new
one. Configurations are frozen pydantic models, so options never mutate
their input: `replace` builds a fresh, re-validated instance.
"""

import logging
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from fastapi_block.exceptions import ConfigurationError
from fastapi_block.typing import Option

logger = logging.getLogger(__name__)


def configuration_error(
    config_cls: type, error: ValidationError
) -> ConfigurationError:
    """Translate a pydantic `ValidationError` naming the first failing field."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    return ConfigurationError(
        f"Invalid {config_cls.__name__}: {first.get('msg', error)}",
        field=field,
    )


class BlockConfig(BaseModel):
    """Base of the middleware configurations.

    Validation failures raise `ConfigurationError` however the model is
    constructed, directly or through options.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise configuration_error(type(self), e) from e


ConfigT = TypeVar("ConfigT", bound=BlockConfig)


def replace(config: ConfigT, **changes: Any) -> ConfigT:
    """Return a validated copy of `config` with `changes` applied."""
    values = dict(config)
    values.update(changes)
    return type(config)(**values)


def apply_options(
    config: ConfigT, options: Optional[Iterable[Option[ConfigT]]] = None
) -> ConfigT:
    """Fold `options` over `config` from left to right.

    Later options win for scalar fields; list-valued options decide for
    themselves whether they append or replace.
    """
    for option in options or ():
        if not callable(option):
            raise ConfigurationError(
                f"Options must be callables, got {type(option).__name__}"
            )
        updated = option(config)
        if not isinstance(updated, type(config)):
            raise ConfigurationError(
                f"Option {getattr(option, '__name__', option)!r} returned "
                f"{type(updated).__name__}, expected {type(config).__name__}"
            )
        config = updated
    logger.debug("Resolved %s: %r", type(config).__name__, config)
    return config
