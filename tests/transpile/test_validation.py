"""Tests for graph validation findings."""

from __future__ import annotations

import pytest

from orbita.drivers import DriverCatalog
from orbita.graph import (
    AttachedAction,
    Graph,
    GraphNode,
    LogicAction,
    LogicOperator,
    LogicRule,
)
from orbita.profiles import PION_CANSAT_V1
from orbita.transpile.validation import (
    ORB_ACTION_NOT_APPLICABLE,
    ORB_DANGLING_EDGE,
    ORB_DRIVER_NOT_ALLOWED,
    ORB_DUPLICATE_INPUT,
    ORB_DUPLICATE_NODE,
    ORB_EMPTY_GRAPH,
    ORB_LOGIC_RULE_INVALID,
    ORB_PARAM_INVALID,
    ORB_PIN_LOCKED,
    ORB_UNKNOWN_ACTION,
    ORB_UNKNOWN_DRIVER,
    ORB_UNKNOWN_PARAM,
    ORB_UNKNOWN_PORT,
    TranspileFinding,
    ValidationReport,
    validate_graph,
)
from tests.conftest import edge, node

CATALOG = DriverCatalog.default()


def _validate(nodes, edges=(), profile=None) -> ValidationReport:
    return validate_graph(Graph(nodes=nodes, edges=list(edges)), CATALOG, profile)


def _codes(findings) -> list[str]:
    return [f.code for f in findings]


def _rule(source_id="gen", port="value", operator=LogicOperator.GT, value=10, action=LogicAction.TURN_ON):
    return LogicRule(source_id, port, operator, value, action)


# ---------------------------------------------------------------------------
# Clean graphs
# ---------------------------------------------------------------------------


class TestCleanGraphs:
    def test_single_node(self):
        report = _validate([node("a", "data_generator")])
        assert report.ok
        assert report.errors == ()
        assert report.warnings == ()
        assert report.summary() == "No findings."

    def test_connected_chain(self):
        report = _validate(
            [node("a", "ldr_sensor"), node("b", "threshold"), node("c", "led_output")],
            [edge("a", "luminosity", "b", "value"), edge("b", "active", "c", "input")],
        )
        assert report.ok, report.errors


# ---------------------------------------------------------------------------
# Node-level findings
# ---------------------------------------------------------------------------


class TestNodeFindings:
    def test_empty_graph(self):
        report = _validate([])
        assert _codes(report.errors) == [ORB_EMPTY_GRAPH]
        assert report.errors[0].location == "graph"

    def test_duplicate_node_id(self):
        report = _validate([node("a", "data_generator"), node("a", "threshold")])
        assert _codes(report.errors) == [ORB_DUPLICATE_NODE]

    def test_unknown_driver(self):
        report = _validate([node("a", "does_not_exist")])
        assert _codes(report.errors) == [ORB_UNKNOWN_DRIVER]
        assert report.errors[0].location == "node[a]"
        assert "does_not_exist" in report.errors[0].message

    def test_invalid_parameter(self):
        report = _validate([node("t", "threshold", threshold="high")])
        assert _codes(report.errors) == [ORB_PARAM_INVALID]
        assert report.errors[0].location == "node[t].parameters.threshold"

    def test_invalid_select_value(self):
        report = _validate([node("t", "threshold", mode="sideways")])
        assert _codes(report.errors) == [ORB_PARAM_INVALID]

    def test_unknown_parameter_is_a_warning(self):
        report = _validate([node("t", "threshold", colour="blue")])
        assert report.ok
        assert _codes(report.warnings) == [ORB_UNKNOWN_PARAM]
        assert report.warnings[0].severity == "warning"
        assert report.summary() == "1 warning(s)."

    def test_findings_are_sorted_by_parameter(self):
        report = _validate([node("t", "threshold", threshold="x", mode="y")])
        assert [f.location for f in report.errors] == [
            "node[t].parameters.mode",
            "node[t].parameters.threshold",
        ]

    def test_dynamic_parameter_is_known(self):
        report = _validate([node("s", "servo_motor", servo_temp_threshold=30)])
        assert report.ok
        assert report.warnings == ()


class TestProfileFindings:
    def test_driver_not_allowed_on_profile(self):
        report = _validate([node("s", "servo_motor", pin=5)], profile=PION_CANSAT_V1)
        assert ORB_DRIVER_NOT_ALLOWED in _codes(report.errors)
        finding = report.errors[0]
        assert finding.suggestion is not None

    def test_locked_pin_mismatch(self):
        report = _validate([node("l", "led_output", pin=4)], profile=PION_CANSAT_V1)
        assert _codes(report.errors) == [ORB_PIN_LOCKED]
        assert report.errors[0].location == "node[l].parameters.pin"

    def test_locked_pin_default_matches(self):
        report = _validate([node("l", "led_output")], profile=PION_CANSAT_V1)
        assert report.ok

    def test_locked_i2c_parameter(self):
        report = _validate([node("b", "bme280_sensor", sda=5)], profile=PION_CANSAT_V1)
        assert _codes(report.errors) == [ORB_PIN_LOCKED]
        assert report.errors[0].location == "node[b].parameters.sda"

    def test_no_profile_means_no_pin_checks(self):
        assert _validate([node("l", "led_output", pin=4)]).ok


class TestActionFindings:
    def test_unknown_action(self):
        bad = GraphNode(id="l", driver_id="led_output", actions=[AttachedAction("nope")])
        report = _validate([bad])
        assert _codes(report.errors) == [ORB_UNKNOWN_ACTION]
        assert report.errors[0].location == "node[l].actions[0]"

    def test_action_on_wrong_driver(self):
        bad = GraphNode(id="b", driver_id="buzzer", actions=[AttachedAction("led_blink")])
        assert _codes(_validate([bad]).errors) == [ORB_ACTION_NOT_APPLICABLE]

    def test_action_field_checks(self):
        bad = GraphNode(
            id="l",
            driver_id="led_output",
            actions=[AttachedAction("led_blink", {"interval": "fast", "speed": 3})],
        )
        report = _validate([bad])
        assert _codes(report.errors) == [ORB_PARAM_INVALID]
        assert report.errors[0].location == "node[l].actions[0].interval"
        assert _codes(report.warnings) == [ORB_UNKNOWN_PARAM]


class TestLogicRuleFindings:
    def _graph(self, *rules, connected=True):
        target = GraphNode(id="led", driver_id="led_output", logic_rules=list(rules))
        edges = [edge("gen", "value", "led", "input")] if connected else []
        return [node("gen", "data_generator"), target], edges

    def test_valid_rule(self):
        nodes, edges = self._graph(_rule())
        assert _validate(nodes, edges).ok

    @pytest.mark.parametrize(
        ("rule", "message"),
        [
            ("not a rule", "Expected LogicRule"),
            (_rule(operator=">"), "LogicOperator"),
            (_rule(value="10"), "must be a number"),
            (_rule(value=True), "must be a number"),
            (_rule(value=float("inf")), "not finite"),
            (_rule(source_id="ghost"), "does not exist"),
            (_rule(port="nope"), "no output port"),
        ],
    )
    def test_invalid_rules(self, rule, message):
        nodes, edges = self._graph(rule)
        report = _validate(nodes, edges)
        assert _codes(report.errors) == [ORB_LOGIC_RULE_INVALID]
        assert message in report.errors[0].message
        assert report.errors[0].location == "node[led].logic_rules[0]"

    def test_rule_source_must_feed_node(self):
        nodes, edges = self._graph(_rule(), connected=False)
        report = _validate(nodes, edges)
        assert _codes(report.errors) == [ORB_LOGIC_RULE_INVALID]
        assert "not connected" in report.errors[0].message


# ---------------------------------------------------------------------------
# Edge-level findings
# ---------------------------------------------------------------------------


class TestEdgeFindings:
    def test_dangling_edge(self):
        report = _validate([node("a", "data_generator")], [edge("a", "value", "ghost", "value")])
        assert _codes(report.errors) == [ORB_DANGLING_EDGE]
        assert "'ghost'" in report.errors[0].message

    def test_unknown_ports(self):
        report = _validate(
            [node("a", "data_generator"), node("b", "threshold")],
            [edge("a", "nope", "b", "missing")],
        )
        assert _codes(report.errors) == [ORB_UNKNOWN_PORT, ORB_UNKNOWN_PORT]
        assert [f.location for f in report.errors] == [
            "edge[a.nope->b.missing].source_port",
            "edge[a.nope->b.missing].target_port",
        ]

    def test_duplicate_input(self):
        report = _validate(
            [node("a", "data_generator"), node("b", "data_generator"), node("t", "threshold")],
            [edge("a", "value", "t", "value"), edge("b", "value", "t", "value")],
        )
        assert _codes(report.errors) == [ORB_DUPLICATE_INPUT]
        assert report.errors[0].location == "edge[b.value->t.value]"

    def test_fan_out_is_allowed(self):
        report = _validate(
            [node("a", "data_generator"), node("t1", "threshold"), node("t2", "threshold")],
            [edge("a", "value", "t1", "value"), edge("a", "value", "t2", "value")],
        )
        assert report.ok

    def test_edges_on_unknown_driver_skip_port_checks(self):
        report = _validate(
            [node("a", "mystery"), node("t", "threshold")],
            [edge("a", "whatever", "t", "value")],
        )
        assert _codes(report.errors) == [ORB_UNKNOWN_DRIVER]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class TestReport:
    def test_every_problem_is_reported_at_once(self):
        report = _validate(
            [node("a", "does_not_exist"), node("t", "threshold", threshold="x")],
            [edge("t", "active", "ghost", "input")],
        )
        assert _codes(report.errors) == [ORB_UNKNOWN_DRIVER, ORB_PARAM_INVALID, ORB_DANGLING_EDGE]
        assert report.summary() == "3 error(s)."

    def test_summary_with_errors_and_warnings(self):
        report = _validate([node("t", "threshold", threshold="x", extra=1)])
        assert report.summary() == "1 error(s), 1 warning(s)."

    def test_finding_format(self):
        finding = TranspileFinding("ORB_X", "error", "Broken.", "node[a]")
        assert finding.format() == "ORB_X @ node[a]: Broken."
