"""Read-only selectors over the indexer tables."""

from balance_kernel.selectors.base import BaseSelector
from balance_kernel.selectors.event_log_selector import EventLogSelector

__all__ = ["BaseSelector", "EventLogSelector"]
