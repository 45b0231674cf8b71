"""Graph-to-MicroPython transpiler."""

from __future__ import annotations

from orbita.transpile.context import NodeScope, TranspileContext
from orbita.transpile.generate import TranspileResult, Transpiler, transpile
from orbita.transpile.order import CycleError, dependency_order
from orbita.transpile.render import NodeFragments, assemble_program, render_node
from orbita.transpile.template import TemplateError, render_template
from orbita.transpile.validation import (
    TranspileFinding,
    ValidationReport,
    validate_graph,
)

__all__ = [
    "CycleError",
    "NodeFragments",
    "NodeScope",
    "TemplateError",
    "TranspileContext",
    "TranspileFinding",
    "TranspileResult",
    "Transpiler",
    "ValidationReport",
    "assemble_program",
    "dependency_order",
    "render_node",
    "render_template",
    "transpile",
    "validate_graph",
]
