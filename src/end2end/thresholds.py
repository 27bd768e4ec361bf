"""Per-step threshold lookup built from a single command line value.

A value without commas applies to every step. A comma-separated value is
assigned positionally to the steps in execution order, so ``-w ,0.2,,,0.5``
sets a warning threshold for the second and fifth step only. Steps beyond
the end of the list have no threshold.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from .error import InvalidThreshold
from .range import Range


class ThresholdTable:
    by_name: dict[str, str]

    def __init__(self, by_name: Optional[dict[str, str]] = None) -> None:
        self.by_name = dict(by_name or {})

    @classmethod
    def build(
        cls, raw: Optional[str], ordered_names: Iterable[str]
    ) -> "ThresholdTable":
        """Assigns the threshold specs in *raw* to *ordered_names*.

        :raises InvalidThreshold: if one of the specs is not a valid range
        """
        names = list(ordered_names)
        raw = raw or ""
        if "," in raw:
            values = re.split(r"\s*,\s*", raw.strip())
        else:
            values = [raw.strip()] * len(names)
        table = cls(
            {name: values[i] if i < len(values) else "" for i, name in enumerate(names)}
        )
        for name, spec in table.by_name.items():
            if not spec:
                continue
            try:
                Range(spec)
            except ValueError as exc:
                raise InvalidThreshold(
                    "invalid threshold '{0}' for step {1}: {2}".format(spec, name, exc)
                ) from exc
        return table

    def get(self, name: str) -> str:
        """Threshold spec for step *name*, empty if there is none."""
        return self.by_name.get(name, "")

    def __getitem__(self, name: str) -> str:
        return self.get(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.by_name)

    def __len__(self) -> int:
        return len(self.by_name)

    def __repr__(self) -> str:
        return "ThresholdTable({0!r})".format(self.by_name)
