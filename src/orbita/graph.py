"""Immutable graph model.

A graph is a snapshot of nodes and edges taken from the editor.  The
records are pyrsistent values, so a transpile always sees one consistent
snapshot and produces new records instead of mutating the caller's.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Any, cast

from pyrsistent import PMap, PRecord, PVector, field, pmap, pvector


class LogicOperator(Enum):
    """Comparison used by a :class:`LogicRule`."""

    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="
    NE = "!="


class LogicAction(Enum):
    """What a satisfied :class:`LogicRule` does to its node."""

    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"


@dataclass(frozen=True)
class AttachedAction:
    """An action preset attached to a node, with its field configuration."""

    action_id: str
    config: Mapping[str, Any] = dc_field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", pmap(self.config))


@dataclass(frozen=True)
class LogicRule:
    """Threshold condition on a producer output that gates a node's loop code.

    Attributes:
        source_id: Node whose output is tested.  It must feed this node.
        source_port: Output port of the source node.
        operator: :class:`LogicOperator` comparison.
        value: Numeric right-hand side.
        action: :class:`LogicAction` applied while the condition holds.
    """

    source_id: str
    source_port: str
    operator: LogicOperator
    value: float
    action: LogicAction = LogicAction.TURN_ON


class GraphNode(PRecord):
    """One placed driver instance.

    Attributes:
        id: Unique node id.
        driver_id: Catalog key of the node's driver.
        label: Display text; never used to derive symbols.
        position: Canvas ``(x, y)``, irrelevant to compilation.
        parameters: Parameter overrides; absent ids fall back to driver defaults.
        actions: :class:`AttachedAction` entries, applied in order.
        logic_rules: :class:`LogicRule` entries guarding the loop fragment.
    """

    id = field(type=str, mandatory=True)
    driver_id = field(type=str, mandatory=True)
    label = field(type=str, initial="")
    position = field(type=tuple, initial=(0.0, 0.0), factory=tuple)
    parameters = field(type=PMap, initial=pmap(), factory=pmap)
    actions = field(type=PVector, initial=pvector(), factory=pvector)
    logic_rules = field(type=PVector, initial=pvector(), factory=pvector)

    def with_parameters(self, updates: Mapping[str, Any]) -> GraphNode:
        """Return a node with *updates* merged into its parameters. Original unchanged."""
        return cast(GraphNode, self.set(parameters=self.parameters.update(updates)))


class GraphEdge(PRecord):
    """Data-flow connection from ``source.source_port`` to ``target.target_port``."""

    id = field(type=str, mandatory=True)
    source = field(type=str, mandatory=True)
    source_port = field(type=str, mandatory=True)
    target = field(type=str, mandatory=True)
    target_port = field(type=str, mandatory=True)


class Graph(PRecord):
    """Nodes (in insertion order) and the edges between them."""

    nodes = field(type=PVector, initial=pvector(), factory=pvector)
    edges = field(type=PVector, initial=pvector(), factory=pvector)

    def node(self, node_id: str) -> GraphNode | None:
        """First node with *node_id*, or ``None``."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self.nodes)

    def incoming(self, node_id: str) -> tuple[GraphEdge, ...]:
        """Edges whose target is *node_id*, in edge order."""
        return tuple(edge for edge in self.edges if edge.target == node_id)

    def outgoing(self, node_id: str) -> tuple[GraphEdge, ...]:
        """Edges whose source is *node_id*, in edge order."""
        return tuple(edge for edge in self.edges if edge.source == node_id)


__all__ = [
    "AttachedAction",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "LogicAction",
    "LogicOperator",
    "LogicRule",
]
