from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pigger_timeline.data.filters import FilterState
from pigger_timeline.data.refresh import FeedMonitor
from pigger_timeline.data.view_model import DerivedView


@dataclass
class PageContext:
    monitor: FeedMonitor
    filters: FilterState
    view: DerivedView
    today: date

    @property
    def feed_state(self):
        return self.monitor.state
