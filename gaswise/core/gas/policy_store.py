from __future__ import annotations

import dataclasses
from typing import Dict, Optional, Union

from gaswise.core.structures.structures import Aggressiveness, Policy
from gaswise.logging.logger import get_logger

log = get_logger(__name__)

_NUMERIC_FIELDS = ("max_wait_time_seconds", "min_savings_percent", "fee_percent")


def _coerce_aggressiveness(value: Union[str, Aggressiveness]) -> Aggressiveness:
    if isinstance(value, Aggressiveness):
        return value
    if isinstance(value, str):
        try:
            return Aggressiveness(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown aggressiveness: {value!r}") from None
    raise TypeError(f"aggressiveness must be a string or Aggressiveness, got {type(value).__name__}")


class PolicyStore:
    """
    Holds the current optimizer policy.

    `update()` merges the supplied fields over the current policy; the latest write
    wins and applies to the next evaluation. Only type constraints are checked here,
    range handling is done by the optimizer.
    """

    def __init__(self, initial: Optional[Policy] = None) -> None:
        self._policy: Policy = initial or Policy()

    def get(self) -> Policy:
        return self._policy

    def update(self, **changes: object) -> Policy:
        unknown = set(changes) - {f.name for f in dataclasses.fields(Policy)}
        if unknown:
            raise ValueError(f"Unknown policy fields: {', '.join(sorted(unknown))}")

        validated: Dict[str, object] = {}
        for name, value in changes.items():
            if value is None:
                continue
            if name == "aggressiveness":
                validated[name] = _coerce_aggressiveness(value)
            elif name in _NUMERIC_FIELDS:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise TypeError(f"{name} must be a number, got {type(value).__name__}")
                validated[name] = value

        self._policy = dataclasses.replace(self._policy, **validated)
        if validated:
            log.info("[GAS][POLICY][UPDATE] %s", self._policy)
        return self._policy
