"""Locators over an audio reading order.

Positions in an audiobook are a track plus a time offset. The service maps
between those and a progression through the whole publication, which needs
the duration of every track.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Callable
from dataclasses import dataclass
from itertools import accumulate

from .manifest import Link


@dataclass(frozen=True)
class Locator:
    href: str
    media_type: str
    title: str | None
    time: float
    progression: float
    total_progression: float

    def to_dict(self) -> dict:
        data = {
            "href": self.href,
            "type": self.media_type,
            "locations": {
                "fragments": [f"t={self.time:g}"],
                "progression": self.progression,
                "totalProgression": self.total_progression,
            },
        }
        if self.title is not None:
            data["title"] = self.title
        return data


class AudioLocatorService:
    def __init__(self, reading_order: tuple[Link, ...]) -> None:
        self.reading_order = reading_order
        durations = [link.duration for link in reading_order]
        if not durations or any(d is None for d in durations):
            self._starts: list[float] | None = None
            self.total_duration: float | None = None
        else:
            self._starts = list(accumulate(durations[:-1], initial=0.0))
            self.total_duration = sum(durations)

    @classmethod
    def make_factory(cls) -> Callable[[tuple[Link, ...]], AudioLocatorService]:
        return cls

    def locator_for(self, href: str, time: float = 0.0) -> Locator | None:
        """Locator for ``time`` seconds into the track at ``href``."""
        if self._starts is None or not self.total_duration:
            return None
        for index, link in enumerate(self.reading_order):
            if link.href == href:
                time = min(max(time, 0.0), link.duration)
                return self._locator(index, time)
        return None

    def locate_progression(self, total_progression: float) -> Locator | None:
        """Locator at ``total_progression`` (0.0 to 1.0) of the whole publication."""
        if self._starts is None or not self.total_duration:
            return None
        total_progression = min(max(total_progression, 0.0), 1.0)
        position = total_progression * self.total_duration
        index = max(0, bisect_right(self._starts, position) - 1)
        link = self.reading_order[index]
        time = min(position - self._starts[index], link.duration)
        return self._locator(index, max(time, 0.0))

    def _locator(self, index: int, time: float) -> Locator:
        link = self.reading_order[index]
        progression = time / link.duration if link.duration else 0.0
        return Locator(
            href=link.href,
            media_type=link.media_type,
            title=link.title,
            time=time,
            progression=progression,
            total_progression=(self._starts[index] + time) / self.total_duration,
        )
