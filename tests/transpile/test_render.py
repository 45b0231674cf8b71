"""Tests for fragment rendering and program assembly."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from orbita.drivers import ActionCatalog, DriverCatalog
from orbita.graph import Graph, GraphNode, LogicAction, LogicOperator, LogicRule
from orbita.transpile.context import TranspileContext
from orbita.transpile.render import NodeFragments, assemble_program, render_node
from tests.conftest import edge, node


def _context(nodes, edges=()) -> TranspileContext:
    ctx = TranspileContext(
        graph=Graph(nodes=nodes, edges=list(edges)),
        catalog=DriverCatalog.default(),
        actions=ActionCatalog.default(),
    )
    ctx.assign_symbols()
    ctx.collect_input_bindings()
    return ctx


def _fragment(node_id="a", imports=(), setup="", loop="") -> NodeFragments:
    return NodeFragments(node_id, f"n_{node_id}", tuple(imports), setup, loop)


def _assemble(fragments, **overrides) -> str:
    options = dict(
        node_count=len(fragments),
        digest="0123456789ab",
        baseline_import="import time",
        cycle_delay_ms=50,
    )
    options.update(overrides)
    return assemble_program(fragments, **options)


# ---------------------------------------------------------------------------
# Context resolution
# ---------------------------------------------------------------------------


class TestContext:
    def test_symbols_and_bindings(self):
        ctx = _context(
            [node("A", "data_generator"), node("B", "threshold")],
            [edge("A", "value", "B", "value")],
        )
        assert ctx.symbol_table == {"A": "n_A_", "B": "n_B_"}
        assert ctx.input_bindings == {"A": {}, "B": {"value": "n_A__value"}}

    def test_scope_for_unconnected_input(self):
        ctx = _context([node("B", "threshold", threshold=12.0)])
        scope = ctx.scope_for(ctx.graph.node("B"))
        assert scope.flags["input_value"] is False
        assert scope.literals["input_value"] == "None"
        assert scope.literals["threshold"] == "12"
        assert scope.literals["mode"] == "'above'"
        assert scope.literals["var_name"] == "n_B_"

    def test_raw_select_is_emitted_verbatim(self):
        ctx = _context([node("C", "comparator", operator="<=")])
        scope = ctx.scope_for(ctx.graph.node("C"))
        assert scope.literals["operator"] == "<="
        assert scope.literals["combine_operator"] == "and"

    def test_dynamic_parameters_follow_their_input(self):
        unconnected = _context([node("S", "servo_motor", servo_temp_threshold=30)])
        scope = unconnected.scope_for(unconnected.graph.node("S"))
        assert "servo_temp_threshold" not in scope.parameters
        assert scope.flags["servo_temp_threshold"] is False

        connected = _context(
            [node("T", "data_generator"), node("S", "servo_motor", servo_temp_threshold=30)],
            [edge("T", "value", "S", "temperature")],
        )
        scope = connected.scope_for(connected.graph.node("S"))
        assert scope.parameters["servo_temp_threshold"] == 30
        assert scope.parameters["servo_temp_angle"] == 180
        assert "servo_value_min" not in scope.parameters

    def test_unattached_action_fields_are_hidden(self):
        ctx = _context([node("L", "led_output")])
        scope = ctx.scope_for(ctx.graph.node("L"))
        assert scope.flags["action_blink"] is False
        assert scope.flags["action_blink_interval"] is False
        assert "action_blink_interval" not in scope.literals


# ---------------------------------------------------------------------------
# render_node
# ---------------------------------------------------------------------------


class TestRenderNode:
    def test_threshold_with_default_parameters(self):
        ctx = _context(
            [node("A", "data_generator"), node("B", "threshold")],
            [edge("A", "value", "B", "value")],
        )
        frag = render_node(ctx, ctx.graph.node("B"))
        assert frag.symbol == "n_B_"
        assert frag.setup == "n_B__active = False\n"
        assert frag.loop == "n_B__active = n_A__value > 50\n"
        assert frag.imports == ()

    def test_threshold_below_mode(self):
        ctx = _context(
            [node("A", "data_generator"), node("B", "threshold", mode="below", threshold=7.5)],
            [edge("A", "value", "B", "value")],
        )
        frag = render_node(ctx, ctx.graph.node("B"))
        assert frag.loop == "n_B__active = n_A__value < 7.5\n"

    def test_unconnected_input_drops_guarded_code(self):
        ctx = _context([node("B", "threshold")])
        frag = render_node(ctx, ctx.graph.node("B"))
        assert frag.loop.strip() == ""

    def test_led_setup_uses_pin(self):
        ctx = _context([node("C", "led_output")])
        frag = render_node(ctx, ctx.graph.node("C"))
        assert "n_C__led = Pin(2, Pin.OUT)" in frag.setup

    def test_logic_guard_wraps_loop(self):
        rules = [
            LogicRule("A", "value", LogicOperator.GT, 10),
            LogicRule("A", "value", LogicOperator.GT, 90, LogicAction.TURN_OFF),
        ]
        target = GraphNode(id="L", driver_id="led_output", logic_rules=rules)
        ctx = _context([node("A", "data_generator"), target], [edge("A", "value", "L", "input")])
        frag = render_node(ctx, target)
        lines = frag.loop.splitlines()
        assert lines[0] == "if ((n_A__value > 10)) and not ((n_A__value > 90)):"
        assert all(line.startswith("    ") for line in lines[1:] if line)

    @pytest.mark.parametrize(
        ("rules", "expected"),
        [
            (
                [LogicRule("A", "value", LogicOperator.LE, 3)],
                "if (n_A__value <= 3):",
            ),
            (
                [
                    LogicRule("A", "value", LogicOperator.EQ, 1),
                    LogicRule("A", "value", LogicOperator.NE, 2.5),
                ],
                "if (n_A__value == 1) or (n_A__value != 2.5):",
            ),
            (
                [LogicRule("A", "value", LogicOperator.LT, 0, LogicAction.TURN_OFF)],
                "if not ((n_A__value < 0)):",
            ),
        ],
    )
    def test_logic_guard_shapes(self, rules, expected):
        target = GraphNode(id="L", driver_id="buzzer", logic_rules=rules)
        ctx = _context([node("A", "data_generator"), target], [edge("A", "value", "L", "input")])
        frag = render_node(ctx, target)
        assert frag.loop.splitlines()[0] == expected


# ---------------------------------------------------------------------------
# assemble_program
# ---------------------------------------------------------------------------


class TestAssembleProgram:
    def test_layout(self):
        code = _assemble(
            [
                _fragment("a", ("import urandom",), "n_a_x = 0\n", "n_a_x += 1\n"),
                _fragment("b", (), "n_b_y = 1\n", "if n_a_x:\n    n_b_y = 2\n"),
            ]
        )
        assert code == (
            "# ORBITA generated program\n"
            "# Nodes: 2\n"
            "# Graph digest: 0123456789ab\n"
            "\n"
            "import time\n"
            "import urandom\n"
            "\n"
            "# ===== SETUP =====\n"
            "n_a_x = 0\n"
            "n_b_y = 1\n"
            "\n"
            "# ===== MAIN LOOP =====\n"
            "while True:\n"
            "    n_a_x += 1\n"
            "    if n_a_x:\n"
            "        n_b_y = 2\n"
            "    time.sleep_ms(50)\n"
        )

    def test_imports_deduplicated_with_baseline_first(self):
        code = _assemble(
            [
                _fragment("a", ("from machine import Pin", "import time")),
                _fragment("b", ("  from machine import Pin  ", "import dht")),
            ]
        )
        imports = [line for line in code.splitlines() if line.startswith(("import", "from"))]
        assert imports == ["import time", "from machine import Pin", "import dht"]

    def test_blank_fragments_are_skipped(self):
        code = _assemble([_fragment("a", (), "\n\n", "   \n"), _fragment("b", (), "", "x = 1\n")])
        assert "# ===== SETUP =====\n\n# ===== MAIN LOOP =====\n" in code
        assert "while True:\n    x = 1\n    time.sleep_ms(50)\n" in code

    def test_empty_program_still_compiles(self):
        code = _assemble([])
        compile(code, "main.py", "exec")
        assert code.endswith("while True:\n    time.sleep_ms(50)\n")

    def test_generated_at_header(self):
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        code = _assemble([], generated_at=stamp)
        assert code.splitlines()[1] == "# Generated at: 2024-05-01T12:00:00+00:00"

    def test_cycle_delay_and_custom_baseline(self):
        code = _assemble([], cycle_delay_ms=0, baseline_import="import utime as time")
        assert "import utime as time\n" in code
        assert code.endswith("    time.sleep_ms(0)\n")

    def test_blank_lines_inside_fragments_are_not_indented(self):
        code = _assemble([_fragment("a", (), "", "a = 1\n\nb = 2\n")])
        assert "    a = 1\n\n    b = 2\n" in code
