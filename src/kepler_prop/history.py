import enum
from collections.abc import Mapping
from typing import Dict, Iterator, Optional

from .state import CartesianState


class PropagationStatus(enum.Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class PropagationHistory(Mapping):
    """
    Time-ordered record of one body's propagated states.

    A read-only mapping from elapsed time [s] to CartesianState. Keys are
    strictly increasing in insertion order. The history is written by
    exactly one propagation task and frozen when that task ends, either
    COMPLETE or FAILED. A failed history keeps the samples computed before
    the failure and the exception that stopped it.
    """

    def __init__(self, body_id=None):
        self.body_id = body_id
        self._states: Dict[float, CartesianState] = {}
        self._last_key: Optional[float] = None
        self.status = PropagationStatus.PENDING
        self.error: Optional[BaseException] = None

    # ---------- Mapping interface ----------

    def __getitem__(self, t: float) -> CartesianState:
        return self._states[t]

    def __iter__(self) -> Iterator[float]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        return (f"PropagationHistory(body_id={self.body_id!r}, status={self.status.value}, "
                f"samples={len(self._states)})")

    # ---------- writer side ----------

    @property
    def frozen(self) -> bool:
        return self.status is not PropagationStatus.PENDING

    def append(self, t: float, state: CartesianState) -> None:
        if self.frozen:
            raise RuntimeError(f"history of {self.body_id!r} is {self.status.value} and can no longer change")
        t = float(t)
        if self._last_key is not None and t <= self._last_key:
            raise ValueError(f"history keys must increase: {t} after {self._last_key}")
        self._states[t] = state
        self._last_key = t

    def mark_complete(self) -> None:
        if self.frozen:
            raise RuntimeError(f"history of {self.body_id!r} is already {self.status.value}")
        self.status = PropagationStatus.COMPLETE

    def mark_failed(self, error: BaseException) -> None:
        if self.frozen:
            raise RuntimeError(f"history of {self.body_id!r} is already {self.status.value}")
        self.status = PropagationStatus.FAILED
        self.error = error

    # ---------- reader side ----------

    @property
    def failed(self) -> bool:
        return self.status is PropagationStatus.FAILED

    @property
    def is_complete(self) -> bool:
        return self.status is PropagationStatus.COMPLETE

    def times(self):
        return list(self._states)

    def first(self):
        # (t, state) of the earliest sample
        if not self._states:
            raise LookupError(f"history of {self.body_id!r} is empty")
        t = next(iter(self._states))
        return t, self._states[t]

    def last(self):
        if not self._states:
            raise LookupError(f"history of {self.body_id!r} is empty")
        return self._last_key, self._states[self._last_key]
