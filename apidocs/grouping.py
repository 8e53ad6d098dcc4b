"""Group operations by tag, preserving document order."""
from typing import NamedTuple

from .config import DEFAULT_TAG
from .models import Operation


class GroupedOperation(NamedTuple):
    path: str
    method: str
    operation: Operation


def iter_operations(paths: dict[str, dict[str, Operation]]):
    # Yield (path, method, operation) in document traversal order.
    for path, methods in paths.items():
        for method, operation in methods.items():
            yield GroupedOperation(path, method, operation)


def group_by_tag(
    paths: dict[str, dict[str, Operation]],
    default_tag: str = DEFAULT_TAG,
) -> dict[str, list[GroupedOperation]]:
    """Group operations by their first tag. Untagged operations go to ``default_tag``.

    Groups appear in the order their first operation is met while walking
    paths, then methods within a path; operations keep that order inside
    each group. The sidebar and the code panel both rely on this ordering.
    """
    groups: dict[str, list[GroupedOperation]] = {}
    for entry in iter_operations(paths):
        tags = entry.operation.tags
        tag = tags[0] if tags and tags[0] else default_tag
        groups.setdefault(tag, []).append(entry)
    return groups
