"""
Metrics Core - Instrument Selector
Predicate over instrument type and name used to target a view
"""

import re
from dataclasses import dataclass
from typing import Union

from metrics_core.core.descriptors import InstrumentDescriptor
from metrics_core.core.instrument_types import InstrumentType

# Pattern of a selector that targets every instrument of its type
MATCH_ALL = ".*"


@dataclass(frozen=True)
class InstrumentSelector:
    """Selects instruments of one type whose name fully matches a pattern.

    The pattern is compiled once, when the selector is created, so that
    resolution never compiles regular expressions.
    """
    instrument_type: InstrumentType
    name_pattern: re.Pattern

    def __post_init__(self):
        if not isinstance(self.instrument_type, InstrumentType):
            raise TypeError(f"instrument_type must be an InstrumentType, got {self.instrument_type!r}")
        if not isinstance(self.name_pattern, re.Pattern):
            raise TypeError("name_pattern must be a compiled pattern, use InstrumentSelector.of()")

    @classmethod
    def of(
        cls,
        instrument_type: InstrumentType,
        name_regex: Union[str, re.Pattern] = MATCH_ALL
    ) -> 'InstrumentSelector':
        """Build a selector, compiling `name_regex` when given as a string"""
        pattern = name_regex if isinstance(name_regex, re.Pattern) else re.compile(name_regex)
        return cls(instrument_type, pattern)

    def matches(self, descriptor: InstrumentDescriptor) -> bool:
        return (
            descriptor.instrument_type is self.instrument_type
            and self.name_pattern.fullmatch(descriptor.name) is not None
        )
