"""Metric descriptors and samples produced by collectors."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping

NAMESPACE = "node"


class ValueType(enum.Enum):
    """Kind of value a metric carries."""

    COUNTER = "counter"
    GAUGE = "gauge"
    UNTYPED = "untyped"


class CollectorError(Exception):
    """Raised when a collector cannot gather its metrics."""


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts with underscores; an empty name gives ''."""
    if not name:
        return ""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class Desc:
    """Describes a metric: its name, help text and labels."""

    fq_name: str
    help: str
    variable_labels: tuple[str, ...] = ()
    const_labels: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variable_labels", tuple(self.variable_labels or ()))
        object.__setattr__(self, "const_labels", dict(self.const_labels or {}))


@dataclass(frozen=True)
class Metric:
    """A single sample of a described metric."""

    desc: Desc
    value_type: ValueType
    value: float
    label_values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "label_values", tuple(self.label_values))
        object.__setattr__(self, "value", float(self.value))
        if len(self.label_values) != len(self.desc.variable_labels):
            raise ValueError(
                f"inconsistent label cardinality for {self.desc.fq_name}: "
                f"expected {len(self.desc.variable_labels)} label values "
                f"but got {len(self.label_values)}"
            )

    @property
    def name(self) -> str:
        return self.desc.fq_name

    @property
    def labels(self) -> dict[str, str]:
        """Constant and variable labels merged into one mapping."""
        merged = dict(self.desc.const_labels)
        merged.update(zip(self.desc.variable_labels, self.label_values))
        return merged


@dataclass(frozen=True)
class TypedDesc:
    """A descriptor bound to the value type its samples carry."""

    desc: Desc
    value_type: ValueType

    def metric(self, value: float, *args: str) -> Metric:
        return Metric(self.desc, self.value_type, value, args)