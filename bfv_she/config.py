import logging
import os
import sys
from dataclasses import dataclass, replace
from typing import Optional

from .errors import ConfigurationError
from .keys import DEFAULT_DECOMPOSITION_BASE
from .params import DEFAULT_PLAINTEXT_MODULUS, BFVParameters, SecurityLevel

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ENV_PREFIX = "BFV_SHE_"


@dataclass
class SchemeConfig:
    """Scheme configuration, with optional overrides from BFV_SHE_* environment variables."""

    security_level: int = 128
    plaintext_modulus: int = DEFAULT_PLAINTEXT_MODULUS
    sigma: Optional[float] = None
    decomposition_base: int = DEFAULT_DECOMPOSITION_BASE
    workers: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self):
        try:
            self.security_level = SecurityLevel(int(self.security_level))
        except ValueError:
            raise ConfigurationError(f"Unsupported security level: {self.security_level}") from None
        if self.plaintext_modulus < 2:
            raise ConfigurationError("plaintext_modulus must be at least 2")
        if self.sigma is not None and self.sigma <= 0:
            raise ConfigurationError("sigma must be positive")
        if self.decomposition_base < 2:
            raise ConfigurationError("decomposition_base must be at least 2")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError("workers must be positive")
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"unknown log level {self.log_level}")

    @classmethod
    def from_env(cls, environ=None) -> "SchemeConfig":
        environ = os.environ if environ is None else environ
        kwargs = {}
        casts = {
            "security_level": int,
            "plaintext_modulus": int,
            "sigma": float,
            "decomposition_base": int,
            "workers": int,
            "log_level": str,
        }
        for field_name, cast in casts.items():
            raw = environ.get(_ENV_PREFIX + field_name.upper())
            if raw is None or raw == "":
                continue
            try:
                kwargs[field_name] = cast(raw)
            except ValueError:
                raise ConfigurationError(f"invalid value for {_ENV_PREFIX}{field_name.upper()}: {raw!r}") from None
        return cls(**kwargs)

    def parameters(self) -> BFVParameters:
        params = BFVParameters.from_security_level(self.security_level, plaintext_modulus=self.plaintext_modulus)
        if self.sigma is not None:
            params = replace(params, sigma=self.sigma)
        return params


def configure_logging(level="INFO", stream=None) -> None:
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stdout)],
    )
