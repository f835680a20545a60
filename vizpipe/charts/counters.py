"""
Counter recipes: bounded integer state re-driven through the data join.

The counter value is the chart's own state. Clicks change it and the chart
re-renders from it; there is no loaded data.
"""

from typing import Any, Hashable

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.schemas import Margin
from vizpipe.encode.colors import scheme
from vizpipe.interact.dispatch import Dispatcher
from vizpipe.interact.events import Click, DoubleClick
from vizpipe.interact.state import LIMIT, BoundedCounter, TwoCounterState
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget

COUNTER_MARGIN = Margin(top=0, right=0, bottom=0, left=0)
LABEL_STYLE = {"fill": "white", "font": "bold 1.2em sans-serif", "text-anchor": "middle"}


class CounterChart(Chart):
    """One circle labelled with a counter in [1, limit]; opacity grows with the count."""

    chart_type = "counter"
    default_margin = COUNTER_MARGIN

    def __init__(self, *, limit: int = LIMIT, **kwargs: Any):
        kwargs.setdefault("height", 40)
        super().__init__(**kwargs)
        self.counter = BoundedCounter(1, lower=1, upper=limit)

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        dispatcher.on(Click, self.on_click)
        dispatcher.on(DoubleClick, self.on_double_click)

    def transform(self, loaded: LoadResult) -> list[int]:
        return [self.counter.value]

    def encode(self, data: list[int]) -> None:
        self.data = data

    def render(self) -> RenderTarget:
        self.data = [self.counter.value]
        center = f"translate({self.dimensions.width / 2},20)"
        group = self.target.group(self.hover_group, transform=center)
        join(
            group,
            self.data,
            lambda d: "counter",
            lambda d, i: {"r": 20},
            style=lambda d, i: {"fill": "steelblue", "opacity": d * 0.1},
        )
        join(
            self.target.group("labels", transform=center),
            self.data,
            lambda d: "counter",
            lambda d, i: {"dy": "0.3em"},
            kind="text",
            style=lambda d, i: {**LABEL_STYLE, "opacity": d * 0.1},
            text=lambda d, i: str(d),
        )
        return self.target

    def on_click(self, event: Click) -> None:
        self.counter.increment()
        self.render()

    def on_double_click(self, event: DoubleClick) -> None:
        self.counter.reset()
        self.render()


class TwoCountersChart(Chart):
    """
    Two rows of numbered circles whose counts always add up to ``limit``.

    Clicking a row adds a circle to it and removes one from the other row;
    double clicking resets both rows to (1, limit - 1).
    """

    chart_type = "two_counters"
    default_margin = COUNTER_MARGIN

    def __init__(self, *, limit: int = LIMIT, **kwargs: Any):
        kwargs.setdefault("height", 150)
        super().__init__(**kwargs)
        self.counters = TwoCounterState(limit)
        self.colors = scheme("tableau10")

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        dispatcher.on(Click, self.on_click)
        dispatcher.on(DoubleClick, self.on_double_click)

    def transform(self, loaded: LoadResult) -> list[dict[str, int]]:
        return self.counters.records()

    def encode(self, data: list[dict[str, int]]) -> None:
        self.data = data

    def _circles(self) -> list[dict[str, int]]:
        """One entry per circle: its row, its number in the row, and the row's count."""
        return [
            {"row": row["id"], "n": n, "val": row["val"]}
            for row in self.data
            for n in range(1, row["val"] + 1)
        ]

    def render(self) -> RenderTarget:
        self.data = self.counters.records()
        left = self.dimensions.width / 2 - 240
        circles = self._circles()

        def key(c: dict[str, int]) -> str:
            return f"{c['row']}-{c['n']}"

        join(
            self.target.group(self.hover_group),
            circles,
            key,
            lambda c, i: {"cx": left + c["n"] * 50, "cy": (c["row"] + 1) * 50, "r": 20},
            style=lambda c, i: {"fill": self.colors[c["n"] % len(self.colors)], "opacity": c["val"] * 0.1},
        )
        join(
            self.target.group("labels"),
            circles,
            key,
            lambda c, i: {"x": left + c["n"] * 50, "y": (c["row"] + 1) * 50, "dy": "0.3em"},
            kind="text",
            style=lambda c, i: {**LABEL_STYLE, "opacity": c["val"] * 0.1},
            text=lambda c, i: str(c["n"]),
        )
        return self.target

    def row_of(self, key: Hashable) -> int:
        """Row index of a click target: a row id or a circle key like "1-4"."""
        if isinstance(key, int):
            return key
        return int(str(key).split("-", 1)[0])

    def on_click(self, event: Click) -> None:
        self.counters.click(self.row_of(event.key))
        self.render()

    def on_double_click(self, event: DoubleClick) -> None:
        self.counters.reset()
        self.render()
