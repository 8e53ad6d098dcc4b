"""Per-widget request tagging, so a late response cannot overwrite a newer one."""
import itertools


class RequestSequencer:
    """Hands out increasing tags; only the latest tag issued for a widget is current."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def next(self, widget: str) -> int:
        tag = next(self._counter)
        self._latest[widget] = tag
        return tag

    def is_latest(self, widget: str, tag: int) -> bool:
        return self._latest.get(widget) == tag
