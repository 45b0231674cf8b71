"""Per-invocation resolution state for one transpile."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from orbita.drivers.actions import ActionCatalog
from orbita.drivers.catalog import DriverCatalog
from orbita.drivers.spec import DriverSpec, ParameterSpec, output_binding
from orbita.graph import Graph, GraphNode
from orbita.transpile._constants import _UNBOUND_INPUT
from orbita.transpile._util import _literal, _node_symbol


@dataclass(frozen=True)
class NodeScope:
    """Everything the template interpreter needs for one node.

    Attributes:
        node: The graph node.
        spec: Its driver.
        symbol: Unique prefix substituted for ``{{var_name}}``.
        parameters: Visible parameter values after every merge step.
        flags: Names usable in ``{{#if}}``.
        literals: Source text for every substitutable placeholder.
    """

    node: GraphNode
    spec: DriverSpec
    symbol: str
    parameters: dict[str, Any]
    flags: dict[str, bool]
    literals: dict[str, str]


@dataclass
class TranspileContext:
    graph: Graph
    catalog: DriverCatalog
    actions: ActionCatalog

    symbol_table: dict[str, str] = field(default_factory=dict)
    input_bindings: dict[str, dict[str, str]] = field(default_factory=dict)

    def assign_symbols(self) -> None:
        self.symbol_table = {node.id: _node_symbol(node.id) for node in self.graph.nodes}

    def collect_input_bindings(self) -> None:
        """Map each node's connected input ports to producer expressions."""
        self.input_bindings = {node.id: {} for node in self.graph.nodes}
        for edge in self.graph.edges:
            if edge.target not in self.input_bindings or edge.source not in self.symbol_table:
                continue
            self.input_bindings[edge.target][edge.target_port] = output_binding(
                self.symbol_table[edge.source], edge.source_port
            )

    def symbol_for(self, node_id: str) -> str:
        return self.symbol_table[node_id]

    def resolve_parameters(self, node: GraphNode, spec: DriverSpec) -> tuple[dict[str, Any], set[str]]:
        """Return ``(visible parameters, hidden names)`` for *node*.

        Defaults are overlaid with the node's overrides, then with the
        attached actions.  Dynamic parameters whose gating input has no edge,
        and fields of actions that are not attached, are hidden.
        """
        overrides = node.parameters
        params: dict[str, Any] = {
            p.id: overrides.get(p.id, p.default) for p in spec.parameters
        }
        params.update(self.actions.merge(spec.id, node.actions))

        hidden: set[str] = set()
        connected = self.input_bindings.get(node.id, {})
        for group in spec.dynamic_parameters:
            for param in group.parameters:
                if group.input_id in connected:
                    params[param.id] = overrides.get(param.id, param.default)
                else:
                    hidden.add(param.id)

        for action in self.actions.for_driver(spec.id):
            if not params.get(action.namespace):
                hidden.update(action.parameter_names()[1:])
        return params, hidden

    def scope_for(self, node: GraphNode) -> NodeScope:
        spec = self.catalog.require(node.driver_id)
        symbol = self.symbol_for(node.id)
        params, hidden = self.resolve_parameters(node, spec)
        param_specs = self._parameter_specs(spec)
        connected = self.input_bindings.get(node.id, {})

        flags: dict[str, bool] = {name: False for name in hidden}
        literals: dict[str, str] = {"var_name": symbol}
        for port in spec.inputs:
            name = f"input_{port.id}"
            flags[name] = port.id in connected
            literals[name] = connected.get(port.id, _UNBOUND_INPUT)
        for name, value in params.items():
            flags[name] = bool(value)
            literals[name] = _literal(value, param_specs.get(name))
        return NodeScope(node, spec, symbol, params, flags, literals)

    def _parameter_specs(self, spec: DriverSpec) -> dict[str, ParameterSpec]:
        specs = {param.id: param for param in spec.all_parameters()}
        for action in self.actions.for_driver(spec.id):
            for action_field in action.fields:
                specs[f"{action.namespace}_{action_field.id}"] = action_field
        return specs


__all__ = ["NodeScope", "TranspileContext"]
