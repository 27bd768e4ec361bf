"""Performance data (perfdata) representation.

Performance data are written into the *perfdata* section of the plugin's
output, one segment per measured duration.
https://github.com/monitoring-plugins/monitoring-plugin-guidelines/blob/main/monitoring_plugins_interface/03.Output.md#performance-data
"""

from __future__ import annotations

import re
from typing import Any, Optional

from .range import Range, RangeSpec


def quote(label: str) -> str:
    if re.match(r"^\w+$", label):
        return label
    return f"'{label}'"


def step_label(name: str) -> str:
    """Perfdata label for the duration of step *name*."""
    return "Step_{0}_duration".format(re.sub(r"['=]", "_", name))


class Performance:
    label: str
    """short identifier, results in graph titles for example"""

    value: Any
    """measured value (usually an int, float, or bool)"""

    uom: Optional[str]
    """unit of measure -- use base units whereever possible"""

    warn: Optional[RangeSpec]
    """warning range"""

    crit: Optional[RangeSpec]
    """critical range"""

    min: Optional[float]
    """known value minimum (None for no minimum)"""

    max: Optional[float]
    """known value maximum (None for no maximum)"""

    # pylint: disable-next=redefined-builtin,too-many-arguments
    def __init__(
        self,
        label: str,
        value: Any,
        uom: Optional[str] = None,
        warn: Optional[RangeSpec] = None,
        crit: Optional[RangeSpec] = None,
        min: Optional[float] = None,
        max: Optional[float] = None,
    ) -> None:
        """Create new performance data object.

        :param label: short identifier, must not contain ``'`` or ``=``
        :param value: measured value
        :param uom: unit of measure, "s" for durations
        :param warn: warning range
        :param crit: critical range
        :param min: known value minimum (None for no minimum)
        :param max: known value maximum (None for no maximum)
        """
        if "'" in label or "=" in label:
            raise RuntimeError("label contains illegal characters", label)
        self.label = label
        self.value = value
        self.uom = uom
        self.warn = warn
        self.crit = crit
        self.min = min
        self.max = max

    def __str__(self) -> str:
        """String representation conforming to the plugin API.

        Labels containing spaces or special characters will be quoted.
        Trailing empty fields are dropped, inner ones are kept empty.
        """
        performance = f"{quote(self.label)}={self.value}"
        if self.uom is not None:
            performance += self.uom

        out: list[str] = [
            performance,
            self._range_str(self.warn),
            self._range_str(self.crit),
            "" if self.min is None else str(self.min),
            "" if self.max is None else str(self.max),
        ]
        while out[-1] == "":
            out.pop()
        return ";".join(out)

    @staticmethod
    def _range_str(spec: Optional[RangeSpec]) -> str:
        if spec is None or spec == "" or Range(spec) == Range(""):
            return ""
        return str(spec).strip()
