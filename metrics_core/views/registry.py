"""
Metrics Core - View Registry
Copy-on-write table of aggregation views, resolved on every collection cycle
"""

import logging
import re
import threading
from types import MappingProxyType
from typing import Mapping, Tuple

from metrics_core.core.descriptors import InstrumentDescriptor
from metrics_core.core.instrument_types import InstrumentType
from metrics_core.views.aggregation import AggregationConfiguration, default_configuration
from metrics_core.views.selector import InstrumentSelector

logger = logging.getLogger(__name__)

ViewRule = Tuple[re.Pattern, AggregationConfiguration]
ViewTable = Mapping[InstrumentType, Tuple[ViewRule, ...]]


def _empty_table() -> ViewTable:
    return MappingProxyType({instrument_type: () for instrument_type in InstrumentType})


class ViewRegistry:
    """Registry of aggregation views keyed by instrument type.

    Readers never take the lock: `resolve` reads the published table once and
    works on that snapshot. Writers build a complete replacement table under
    the lock and publish it with a single attribute store, so a reader sees
    either the table before a registration or the one after it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._table: ViewTable = _empty_table()

    def register_view(self, selector: InstrumentSelector, configuration: AggregationConfiguration):
        """Register a view; it takes precedence over earlier views for the same type"""

        if not isinstance(selector, InstrumentSelector):
            raise TypeError(f"selector must be an InstrumentSelector, got {selector!r}")
        if not isinstance(configuration, AggregationConfiguration):
            raise TypeError(f"configuration must be an AggregationConfiguration, got {configuration!r}")

        with self._lock:
            table = dict(self._table)
            table[selector.instrument_type] = (
                (selector.name_pattern, configuration),
            ) + table[selector.instrument_type]
            self._table = MappingProxyType(table)

        logger.debug(
            f"Registered view {selector.name_pattern.pattern!r} for {selector.instrument_type.value}: "
            f"{configuration.aggregator.value}/{configuration.temporality.name}"
        )

    def resolve(self, descriptor: InstrumentDescriptor) -> AggregationConfiguration:
        """Get the aggregation that applies to an instrument"""

        rules = self._table[descriptor.instrument_type]
        for pattern, configuration in rules:
            if pattern.fullmatch(descriptor.name):
                return configuration

        return default_configuration(descriptor.instrument_type)

    def views(self, instrument_type: InstrumentType) -> Tuple[ViewRule, ...]:
        """Get registered views for a type, most recent first"""
        return self._table[instrument_type]
