"""Driver definition types.

A driver describes one kind of node that can be placed in a graph: the
ports it exposes, the parameters a user can configure, and the MicroPython
code template that implements it.  Drivers are plain frozen values; the
:class:`~orbita.drivers.catalog.DriverCatalog` holds them and nothing mutates
them after construction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

ParameterType = Literal["number", "string", "boolean", "select"]


class DriverCategory(Enum):
    """What a driver represents on the target board."""

    SENSOR = "sensor"
    ACTUATOR = "actuator"
    LOGIC = "logic"
    COMMUNICATION = "communication"


class DataKind(Enum):
    """Kind of value that flows through a port."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ANY = "any"


@dataclass(frozen=True)
class PortSpec:
    """One input or output handle of a driver.

    Attributes:
        id: Port identifier, unique among the driver's inputs (or outputs).
        label: Human-readable name.
        kind: :class:`DataKind` carried by the port.
    """

    id: str
    label: str
    kind: DataKind = DataKind.ANY


@dataclass(frozen=True)
class ParameterSpec:
    """One configurable parameter.

    Attributes:
        id: Parameter identifier, also the placeholder name in templates.
        label: Human-readable name.
        type: ``number``, ``string``, ``boolean`` or ``select``.
        default: Value used when a node does not override the parameter.
        minimum: Inclusive lower bound for ``number`` parameters.
        maximum: Inclusive upper bound for ``number`` parameters.
        options: Allowed values for ``select`` parameters.
        raw: For ``select`` parameters, emit the chosen option verbatim
            (e.g. a comparison operator) instead of as a string literal.
    """

    id: str
    label: str
    type: ParameterType
    default: Any
    minimum: float | None = None
    maximum: float | None = None
    options: tuple[str, ...] = ()
    raw: bool = False

    def check(self, value: Any) -> str | None:
        """Return a problem description for *value*, or ``None`` if it is acceptable."""
        if self.type == "number":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"expected a number, got {type(value).__name__}"
            if not math.isfinite(value):
                return f"{value!r} is not a finite number"
            if self.minimum is not None and value < self.minimum:
                return f"{value!r} is below the minimum {self.minimum!r}"
            if self.maximum is not None and value > self.maximum:
                return f"{value!r} is above the maximum {self.maximum!r}"
            return None
        if self.type == "boolean":
            if not isinstance(value, bool):
                return f"expected a boolean, got {type(value).__name__}"
            return None
        if not isinstance(value, str):
            return f"expected a string, got {type(value).__name__}"
        if self.type == "select" and value not in self.options:
            return f"{value!r} is not one of {', '.join(repr(o) for o in self.options)}"
        return None


@dataclass(frozen=True)
class DynamicParameterGroup:
    """Parameters that only exist while *input_id* has an incoming edge."""

    input_id: str
    parameters: tuple[ParameterSpec, ...]


@dataclass(frozen=True)
class CodeTemplate:
    """Code emitted for every node of a driver.

    Attributes:
        imports: Import statements, in the order they should appear.
        setup: Fragment executed once before the control loop.
        loop: Fragment executed once per control cycle.
    """

    imports: tuple[str, ...] = ()
    setup: str = ""
    loop: str = ""


@dataclass(frozen=True)
class DriverSpec:
    """Static specification for one driver.

    Attributes:
        id: Catalog key (e.g. ``"temperature_sensor"``).
        name: Display name.
        category: :class:`DriverCategory`.
        description: Human-readable summary.
        inputs: Input ports.
        outputs: Output ports.
        parameters: Always-present parameters.
        dynamic_parameters: Groups gated on an input port being connected.
        template: :class:`CodeTemplate` rendered for every node.
    """

    id: str
    name: str
    category: DriverCategory
    description: str
    inputs: tuple[PortSpec, ...]
    outputs: tuple[PortSpec, ...]
    parameters: tuple[ParameterSpec, ...]
    template: CodeTemplate
    dynamic_parameters: tuple[DynamicParameterGroup, ...] = ()

    def input(self, port_id: str) -> PortSpec | None:
        """The input port called *port_id*, or ``None``."""
        for port in self.inputs:
            if port.id == port_id:
                return port
        return None

    def output(self, port_id: str) -> PortSpec | None:
        """The output port called *port_id*, or ``None``."""
        for port in self.outputs:
            if port.id == port_id:
                return port
        return None

    def parameter(self, parameter_id: str) -> ParameterSpec | None:
        """Look up a static or dynamic parameter by id."""
        for param in self.all_parameters():
            if param.id == parameter_id:
                return param
        return None

    def all_parameters(self) -> tuple[ParameterSpec, ...]:
        """Static parameters followed by every dynamic group's parameters."""
        params = list(self.parameters)
        for group in self.dynamic_parameters:
            params.extend(group.parameters)
        return tuple(params)


def output_binding(symbol: str, port_id: str) -> str:
    """Expression a node with *symbol* exposes for its output *port_id*."""
    return f"{symbol}_{port_id}"


__all__ = [
    "CodeTemplate",
    "DataKind",
    "DriverCategory",
    "DriverSpec",
    "DynamicParameterGroup",
    "ParameterSpec",
    "ParameterType",
    "PortSpec",
    "output_binding",
]
