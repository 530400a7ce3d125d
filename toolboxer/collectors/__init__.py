from .base import Collector
from .gather import AutoCollector, select_collector, take_snapshot

__all__ = ["Collector", "AutoCollector", "select_collector", "take_snapshot"]
