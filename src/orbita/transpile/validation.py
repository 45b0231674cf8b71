"""Graph validation ahead of rendering.

Every problem is collected into a :class:`ValidationReport` so one transpile
call reports all of them at once.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from orbita.drivers.actions import ActionCatalog
from orbita.drivers.catalog import DriverCatalog
from orbita.drivers.spec import DriverSpec, ParameterSpec
from orbita.graph import Graph, GraphNode, LogicAction, LogicOperator, LogicRule
from orbita.profiles import HardwareProfile, locked_pin_parameter

FindingSeverity = Literal["error", "warning"]

ORB_EMPTY_GRAPH = "ORB_EMPTY_GRAPH"
ORB_DUPLICATE_NODE = "ORB_DUPLICATE_NODE"
ORB_UNKNOWN_DRIVER = "ORB_UNKNOWN_DRIVER"
ORB_DRIVER_NOT_ALLOWED = "ORB_DRIVER_NOT_ALLOWED"
ORB_PIN_LOCKED = "ORB_PIN_LOCKED"
ORB_DANGLING_EDGE = "ORB_DANGLING_EDGE"
ORB_UNKNOWN_PORT = "ORB_UNKNOWN_PORT"
ORB_DUPLICATE_INPUT = "ORB_DUPLICATE_INPUT"
ORB_PARAM_INVALID = "ORB_PARAM_INVALID"
ORB_UNKNOWN_PARAM = "ORB_UNKNOWN_PARAM"
ORB_UNKNOWN_ACTION = "ORB_UNKNOWN_ACTION"
ORB_ACTION_NOT_APPLICABLE = "ORB_ACTION_NOT_APPLICABLE"
ORB_LOGIC_RULE_INVALID = "ORB_LOGIC_RULE_INVALID"
ORB_CYCLE = "ORB_CYCLE"
ORB_TEMPLATE = "ORB_TEMPLATE"
ORB_INVALID_SOURCE = "ORB_INVALID_SOURCE"

_ADVISORY_CODES = frozenset({ORB_UNKNOWN_PARAM})


@dataclass(frozen=True)
class TranspileFinding:
    code: str
    severity: FindingSeverity
    message: str
    location: str
    suggestion: str | None = None

    def format(self) -> str:
        return f"{self.code} @ {self.location}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    errors: tuple[TranspileFinding, ...] = ()
    warnings: tuple[TranspileFinding, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        parts: list[str] = []
        if self.errors:
            parts.append(f"{len(self.errors)} error(s)")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warning(s)")
        if not parts:
            return "No findings."
        return ", ".join(parts) + "."


def _finding(
    code: str, message: str, location: str, suggestion: str | None = None
) -> TranspileFinding:
    severity: FindingSeverity = "warning" if code in _ADVISORY_CODES else "error"
    return TranspileFinding(code, severity, message, location, suggestion)


def _node_location(node: GraphNode) -> str:
    return f"node[{node.id}]"


def _check_values(
    values: Mapping[str, Any],
    lookup: Mapping[str, ParameterSpec],
    location: str,
    owner: str,
) -> list[TranspileFinding]:
    findings: list[TranspileFinding] = []
    for key in sorted(values):
        spec = lookup.get(key)
        where = f"{location}.{key}"
        if spec is None:
            findings.append(
                _finding(ORB_UNKNOWN_PARAM, f"{owner} has no parameter {key!r}; it is ignored.", where)
            )
            continue
        problem = spec.check(values[key])
        if problem is not None:
            findings.append(_finding(ORB_PARAM_INVALID, f"{spec.label}: {problem}.", where))
    return findings


def _evaluate_node(
    node: GraphNode,
    spec: DriverSpec,
    profile: HardwareProfile | None,
    actions: ActionCatalog,
) -> list[TranspileFinding]:
    findings: list[TranspileFinding] = []
    location = _node_location(node)

    if profile is not None and not profile.allows(spec.id):
        findings.append(
            _finding(
                ORB_DRIVER_NOT_ALLOWED,
                f"Driver {spec.id!r} is not available on profile {profile.id}.",
                location,
                "Switch to a profile that supports this driver or remove the node.",
            )
        )

    findings.extend(
        _check_values(
            node.parameters,
            {param.id: param for param in spec.all_parameters()},
            f"{location}.parameters",
            f"Driver {spec.id!r}",
        )
    )

    if profile is not None:
        locked = locked_pin_parameter(profile, spec.id)
        if locked is not None:
            parameter, pin = locked
            param_spec = spec.parameter(parameter)
            if param_spec is not None:
                value = node.parameters.get(parameter, param_spec.default)
                if value != pin:
                    findings.append(
                        _finding(
                            ORB_PIN_LOCKED,
                            f"{parameter}={value!r} but profile {profile.id} locks it to {pin}.",
                            f"{location}.parameters.{parameter}",
                            "Apply the profile with orbita.profiles.apply_profile().",
                        )
                    )

    for i, attached in enumerate(node.actions):
        where = f"{location}.actions[{i}]"
        action = actions.get(attached.action_id)
        if action is None:
            findings.append(_finding(ORB_UNKNOWN_ACTION, f"Unknown action {attached.action_id!r}.", where))
            continue
        if spec.id not in action.driver_ids:
            findings.append(
                _finding(
                    ORB_ACTION_NOT_APPLICABLE,
                    f"Action {action.id!r} cannot be attached to driver {spec.id!r}.",
                    where,
                )
            )
            continue
        findings.extend(
            _check_values(
                attached.config,
                {field.id: field for field in action.fields},
                where,
                f"Action {action.id!r}",
            )
        )
    return findings


def _evaluate_logic_rule(
    rule: Any,
    node: GraphNode,
    graph: Graph,
    catalog: DriverCatalog,
    where: str,
) -> list[TranspileFinding]:
    def invalid(message: str) -> list[TranspileFinding]:
        return [_finding(ORB_LOGIC_RULE_INVALID, message, where)]

    if not isinstance(rule, LogicRule):
        return invalid(f"Expected LogicRule, got {type(rule).__name__}.")
    if not isinstance(rule.operator, LogicOperator) or not isinstance(rule.action, LogicAction):
        return invalid("Rule operator and action must be LogicOperator and LogicAction members.")
    if isinstance(rule.value, bool) or not isinstance(rule.value, (int, float)):
        return invalid(f"Rule value must be a number, got {type(rule.value).__name__}.")
    if not math.isfinite(rule.value):
        return invalid(f"Rule value {rule.value!r} is not finite.")
    source = graph.node(rule.source_id)
    if source is None:
        return invalid(f"Rule source node {rule.source_id!r} does not exist.")
    source_spec = catalog.get(source.driver_id)
    if source_spec is not None and source_spec.output(rule.source_port) is None:
        return invalid(f"Node {source.id!r} has no output port {rule.source_port!r}.")
    if not any(edge.source == source.id for edge in graph.incoming(node.id)):
        return invalid(f"Rule source {source.id!r} is not connected to node {node.id!r}.")
    return []


def _evaluate_edges(graph: Graph, catalog: DriverCatalog) -> list[TranspileFinding]:
    findings: list[TranspileFinding] = []
    claimed: dict[tuple[str, str], str] = {}
    for edge in graph.edges:
        where = f"edge[{edge.id}]"
        source = graph.node(edge.source)
        target = graph.node(edge.target)
        missing = [n for n, found in ((edge.source, source), (edge.target, target)) if found is None]
        if missing:
            findings.append(
                _finding(
                    ORB_DANGLING_EDGE,
                    f"Edge references missing node(s): {', '.join(repr(m) for m in missing)}.",
                    where,
                )
            )
            continue
        assert source is not None and target is not None

        source_spec = catalog.get(source.driver_id)
        if source_spec is not None and source_spec.output(edge.source_port) is None:
            findings.append(
                _finding(
                    ORB_UNKNOWN_PORT,
                    f"Driver {source_spec.id!r} has no output port {edge.source_port!r}.",
                    f"{where}.source_port",
                )
            )
        target_spec = catalog.get(target.driver_id)
        if target_spec is not None and target_spec.input(edge.target_port) is None:
            findings.append(
                _finding(
                    ORB_UNKNOWN_PORT,
                    f"Driver {target_spec.id!r} has no input port {edge.target_port!r}.",
                    f"{where}.target_port",
                )
            )

        key = (edge.target, edge.target_port)
        if key in claimed:
            findings.append(
                _finding(
                    ORB_DUPLICATE_INPUT,
                    f"Input {edge.target}.{edge.target_port} is already fed by edge {claimed[key]!r}.",
                    where,
                    "Keep a single edge per input port.",
                )
            )
        else:
            claimed[key] = edge.id
    return findings


def validate_graph(
    graph: Graph,
    catalog: DriverCatalog,
    profile: HardwareProfile | None = None,
    actions: ActionCatalog | None = None,
) -> ValidationReport:
    """Collect every finding for *graph* without rendering anything."""
    if actions is None:
        actions = ActionCatalog.default()

    findings: list[TranspileFinding] = []
    if not graph.nodes:
        findings.append(_finding(ORB_EMPTY_GRAPH, "The graph has no nodes.", "graph"))

    seen: set[str] = set()
    for node in graph.nodes:
        location = _node_location(node)
        if node.id in seen:
            findings.append(_finding(ORB_DUPLICATE_NODE, f"Node id {node.id!r} is used twice.", location))
            continue
        seen.add(node.id)

        spec = catalog.get(node.driver_id)
        if spec is None:
            findings.append(
                _finding(ORB_UNKNOWN_DRIVER, f"Unknown driver {node.driver_id!r}.", location)
            )
        else:
            findings.extend(_evaluate_node(node, spec, profile, actions))

        for i, rule in enumerate(node.logic_rules):
            findings.extend(
                _evaluate_logic_rule(rule, node, graph, catalog, f"{location}.logic_rules[{i}]")
            )

    findings.extend(_evaluate_edges(graph, catalog))

    return ValidationReport(
        errors=tuple(f for f in findings if f.severity == "error"),
        warnings=tuple(f for f in findings if f.severity == "warning"),
    )


__all__ = [
    "FindingSeverity",
    "ORB_ACTION_NOT_APPLICABLE",
    "ORB_CYCLE",
    "ORB_DANGLING_EDGE",
    "ORB_DRIVER_NOT_ALLOWED",
    "ORB_DUPLICATE_INPUT",
    "ORB_DUPLICATE_NODE",
    "ORB_EMPTY_GRAPH",
    "ORB_INVALID_SOURCE",
    "ORB_LOGIC_RULE_INVALID",
    "ORB_PARAM_INVALID",
    "ORB_PIN_LOCKED",
    "ORB_TEMPLATE",
    "ORB_UNKNOWN_ACTION",
    "ORB_UNKNOWN_DRIVER",
    "ORB_UNKNOWN_PARAM",
    "ORB_UNKNOWN_PORT",
    "TranspileFinding",
    "ValidationReport",
    "validate_graph",
]
