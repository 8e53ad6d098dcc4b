"""Stable identifiers correlating sidebar entries, content sections and code panels."""
import logging
import re
from typing import NamedTuple

from .errors import UnknownOperationError
from .grouping import iter_operations
from .models import Operation

logger = logging.getLogger(__name__)

INTRO_IDS = ("introduction", "authentication", "base-url", "status-codes")

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def operation_id(path: str, method: str) -> str:
    # Lowercase method + path with every non-alphanumeric character replaced by "-".
    return f"{method.lower()}-{_NON_ALNUM.sub('-', path)}"


class OperationRef(NamedTuple):
    operation_id: str
    path: str
    method: str

    @property
    def section_id(self) -> str:
        return self.operation_id

    @property
    def request_id(self) -> str:
        return f"{self.operation_id}-request"

    @property
    def response_id(self) -> str:
        return f"{self.operation_id}-response"


class NavigationModel:
    """Assigns every operation a unique id, in document traversal order.

    Distinct paths can normalize to the same id (``/a.b`` and ``/a-b``). The
    first operation keeps the plain id; later ones get ``-2``, ``-3``, ...
    appended, so ids stay unique and readable in URL fragments.
    """

    def __init__(self, paths: dict[str, dict[str, Operation]]):
        self._by_key: dict[tuple[str, str], OperationRef] = {}
        self._by_id: dict[str, OperationRef] = {}
        self.collisions: list[str] = []

        for path, method, _ in iter_operations(paths):
            base = operation_id(path, method)
            candidate = base
            n = 1
            while candidate in self._by_id:
                n += 1
                candidate = f"{base}-{n}"
            if n > 1:
                logger.warning("Operation id %r already used; %s %s gets %r", base, method.upper(), path, candidate)
                if base not in self.collisions:
                    self.collisions.append(base)
            ref = OperationRef(candidate, path, method.lower())
            self._by_key[(path, method.lower())] = ref
            self._by_id[candidate] = ref

    def __iter__(self):
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def ref(self, path: str, method: str) -> OperationRef:
        try:
            return self._by_key[(path, method.lower())]
        except KeyError:
            raise UnknownOperationError(operation_id(path, method)) from None

    def resolve(self, op_id: str) -> OperationRef:
        """Look up the operation behind an id, e.g. from a URL fragment."""
        ref = self._by_id.get(op_id.lstrip("#"))
        if ref is None:
            raise UnknownOperationError(op_id)
        return ref
