"""Per-node fragment rendering and program assembly."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from orbita.drivers.spec import output_binding
from orbita.graph import GraphNode, LogicAction
from orbita.transpile._constants import (
    _HEADER_TITLE,
    _LOOP_BANNER,
    _LOOP_INDENT,
    _SETUP_BANNER,
)
from orbita.transpile._util import _indent_body, _is_blank, _literal
from orbita.transpile.context import TranspileContext
from orbita.transpile.template import render_template


@dataclass(frozen=True)
class NodeFragments:
    node_id: str
    symbol: str
    imports: tuple[str, ...]
    setup: str
    loop: str


def _fragment_lines(fragment: str) -> list[str]:
    return [line.rstrip() for line in fragment.strip("\n").splitlines()]


def _logic_guard(ctx: TranspileContext, node: GraphNode) -> str | None:
    turn_on: list[str] = []
    turn_off: list[str] = []
    for rule in node.logic_rules:
        source = output_binding(ctx.symbol_for(rule.source_id), rule.source_port)
        condition = f"({source} {rule.operator.value} {_literal(rule.value)})"
        (turn_on if rule.action is LogicAction.TURN_ON else turn_off).append(condition)

    on_expr = " or ".join(turn_on)
    off_expr = " or ".join(turn_off)
    if turn_on and turn_off:
        return f"({on_expr}) and not ({off_expr})"
    if turn_on:
        return on_expr
    if turn_off:
        return f"not ({off_expr})"
    return None


def render_node(ctx: TranspileContext, node: GraphNode) -> NodeFragments:
    """Render one node's template against the graph wiring.

    Raises:
        TemplateError: the driver template is malformed or references a
            placeholder the node cannot supply.
    """
    scope = ctx.scope_for(node)
    template = scope.spec.template

    def _render(text: str) -> str:
        return render_template(
            text, flags=scope.flags, literals=scope.literals, values=scope.parameters
        )

    setup = _render(template.setup)
    loop = _render(template.loop)

    guard = _logic_guard(ctx, node)
    if guard is not None and not _is_blank(loop):
        body = _indent_body(_fragment_lines(loop), _LOOP_INDENT)
        loop = "\n".join([f"if {guard}:", *body])

    return NodeFragments(
        node_id=node.id,
        symbol=scope.symbol,
        imports=template.imports,
        setup=setup,
        loop=loop,
    )


def _merge_imports(baseline: str, fragments: Iterable[NodeFragments]) -> list[str]:
    seen: set[str] = set()
    imports: list[str] = []
    for line in (baseline, *(imp for frag in fragments for imp in frag.imports)):
        stripped = line.strip()
        if stripped and stripped not in seen:
            seen.add(stripped)
            imports.append(stripped)
    return imports


def _render_header(node_count: int, digest: str, generated_at: datetime | None) -> list[str]:
    lines = [_HEADER_TITLE]
    if generated_at is not None:
        lines.append(f"# Generated at: {generated_at.isoformat()}")
    lines.append(f"# Nodes: {node_count}")
    lines.append(f"# Graph digest: {digest}")
    return lines


def assemble_program(
    fragments: Sequence[NodeFragments],
    *,
    node_count: int,
    digest: str,
    baseline_import: str,
    cycle_delay_ms: int,
    generated_at: datetime | None = None,
) -> str:
    """Merge ordered node fragments into one program.

    Imports are de-duplicated in first-occurrence order after the baseline
    import.  Setup fragments run once in order; loop fragments run in the
    same order on every pass of ``while True``.  Blank fragments are skipped.
    The header line "# Generated at" is written only when *generated_at* is
    passed.
    """
    lines: list[str] = []

    # 1) header
    lines.extend(_render_header(node_count, digest, generated_at))
    lines.append("")

    # 2) imports
    lines.extend(_merge_imports(baseline_import, fragments))
    lines.append("")

    # 3) setup
    lines.append(_SETUP_BANNER)
    for frag in fragments:
        if _is_blank(frag.setup):
            continue
        lines.extend(_fragment_lines(frag.setup))
    lines.append("")

    # 4) control loop
    lines.append(_LOOP_BANNER)
    lines.append("while True:")
    for frag in fragments:
        if _is_blank(frag.loop):
            continue
        lines.extend(_indent_body(_fragment_lines(frag.loop), _LOOP_INDENT))
    lines.append(f"{' ' * _LOOP_INDENT}time.sleep_ms({cycle_delay_ms})")

    return "\n".join(lines) + "\n"


__all__ = ["NodeFragments", "assemble_program", "render_node"]
