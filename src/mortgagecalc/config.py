import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from mashumaro import DataClassDictMixin

from mortgagecalc.loan import InterestMethod

ENV_PREFIX = "MORTGAGECALC_"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class EngineConfig(DataClassDictMixin):
    # Balances at or below this are treated as paid off.
    balance_epsilon: Decimal = Decimal("0.01")
    interest_method: InterestMethod = InterestMethod.Actual365
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        environ = os.environ if environ is None else environ
        values = {
            key.removeprefix(ENV_PREFIX).lower(): value
            for key, value in environ.items()
            if key.startswith(ENV_PREFIX)
        }
        known = {name: values[name] for name in ("balance_epsilon", "interest_method", "log_level") if name in values}
        return cls.from_dict(known)


DEFAULT_CONFIG = EngineConfig()


def configure_logging(level: str | int = logging.WARNING) -> None:
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
