import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()

_FALSE_VALUES = ("0", "false", "no", "off")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


@dataclass(frozen=True)
class Config:
    """
    Library settings read from the environment

    STRIDEBIN_LOG_LEVEL sets the root log level, STRIDEBIN_DEBUG_CHECKS turns
    the linear-index contract check on or off.
    """

    log_level: str = "WARNING"
    debug_checks: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            log_level=os.getenv("STRIDEBIN_LOG_LEVEL", "WARNING").upper(),
            debug_checks=_env_flag("STRIDEBIN_DEBUG_CHECKS", True),
        )


settings = Config.from_env()


def configure_logging(config: Config = settings) -> None:
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {config.log_level}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
