"""Error taxonomy for the order store.

Every failure raised by the store is a ``StoreError`` tagged with an
``ErrorKind`` and the stage that failed. Callers branch on ``kind``; the
underlying driver exception stays reachable through ``__cause__`` so logs
still see the full chain.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of store failures."""

    CONNECTION = "CONNECTION"
    TRANSACTION = "TRANSACTION"
    WRITE = "WRITE"
    READ = "READ"
    NOT_FOUND = "NOT_FOUND"
    DECODE = "DECODE"
    SCHEMA_INIT = "SCHEMA_INIT"
    CANCELLED = "CANCELLED"


class StoreError(Exception):
    """A store failure carrying its kind and the failing stage.

    Attributes:
        kind: The ``ErrorKind`` of the failure.
        stage: Short name of the step that failed (e.g. "insert order").
    """

    def __init__(self, kind: ErrorKind, stage: str, detail: str | None = None):
        self.kind = kind
        self.stage = stage
        self.detail = detail
        super().__init__(self._message())

    def _message(self) -> str:
        msg = f"{self.kind.value}: failed to {self.stage}"
        if self.detail:
            msg += f": {self.detail}"
        return msg

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND
