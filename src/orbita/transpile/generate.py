"""Graph-to-MicroPython transpiler entry points."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from orbita.drivers.actions import ActionCatalog
from orbita.drivers.catalog import DriverCatalog
from orbita.graph import Graph, GraphEdge, GraphNode
from orbita.profiles import HardwareProfile, HardwareProfiles
from orbita.transpile._util import _graph_digest
from orbita.transpile.context import TranspileContext
from orbita.transpile.order import CycleError, dependency_order
from orbita.transpile.render import NodeFragments, assemble_program, render_node
from orbita.transpile.template import TemplateError
from orbita.transpile.validation import (
    ORB_CYCLE,
    ORB_INVALID_SOURCE,
    ORB_TEMPLATE,
    TranspileFinding,
    validate_graph,
)


@dataclass(frozen=True)
class TranspileResult:
    """Outcome of one transpile.

    Attributes:
        success: Whether ``code`` holds a complete program.
        code: The generated program, or ``None`` on failure.
        errors: ``"<code> @ <location>: <message>"`` strings, empty on success.
        node_count: Number of nodes in the input graph.
        warnings: Non-fatal findings, formatted like ``errors``.
        variable_map: Node id to generated symbol prefix.
        order: Node ids in emission order.
    """

    success: bool
    code: str | None
    errors: tuple[str, ...]
    node_count: int
    warnings: tuple[str, ...] = ()
    variable_map: Mapping[str, str] = field(default_factory=dict)
    order: tuple[str, ...] = ()


def _failure(
    errors: Iterable[str], node_count: int, warnings: tuple[str, ...] = ()
) -> TranspileResult:
    return TranspileResult(
        success=False,
        code=None,
        errors=tuple(errors),
        node_count=node_count,
        warnings=warnings,
    )


class Transpiler:
    """Compiles node/edge graphs into one MicroPython program.

    Catalogs and profiles are injected so tests can supply synthetic ones;
    each defaults to the built-in table.  A transpiler holds no per-call
    state and may be shared between threads.

    Example::

        result = Transpiler().transpile(nodes, edges, "PION_CANSAT_V1")
        if result.success:
            upload(result.code)
        else:
            print("\\n".join(result.errors))
    """

    def __init__(
        self,
        catalog: DriverCatalog | None = None,
        *,
        profiles: HardwareProfiles | None = None,
        actions: ActionCatalog | None = None,
        cycle_delay_ms: int = 50,
        baseline_import: str = "import time",
    ) -> None:
        if catalog is not None and not isinstance(catalog, DriverCatalog):
            raise TypeError(f"catalog must be DriverCatalog, got {type(catalog).__name__}")
        if profiles is not None and not isinstance(profiles, HardwareProfiles):
            raise TypeError(f"profiles must be HardwareProfiles, got {type(profiles).__name__}")
        if actions is not None and not isinstance(actions, ActionCatalog):
            raise TypeError(f"actions must be ActionCatalog, got {type(actions).__name__}")
        if isinstance(cycle_delay_ms, bool) or not isinstance(cycle_delay_ms, int):
            raise TypeError(f"cycle_delay_ms must be int, got {type(cycle_delay_ms).__name__}")
        if cycle_delay_ms < 0:
            raise ValueError("cycle_delay_ms must be >= 0")
        if not isinstance(baseline_import, str) or not baseline_import.strip():
            raise ValueError("baseline_import must be a non-empty import statement")

        self.catalog = catalog if catalog is not None else DriverCatalog.default()
        self.profiles = profiles if profiles is not None else HardwareProfiles.default()
        self.actions = actions if actions is not None else ActionCatalog.default()
        self.cycle_delay_ms = cycle_delay_ms
        self.baseline_import = baseline_import.strip()

    def resolve_profile(self, profile: str | HardwareProfile | None) -> HardwareProfile | None:
        if profile is None or isinstance(profile, HardwareProfile):
            return profile
        if isinstance(profile, str):
            return self.profiles.require(profile)
        raise TypeError(
            f"profile must be a profile id, HardwareProfile or None, got {type(profile).__name__}"
        )

    def transpile(
        self,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        profile: str | HardwareProfile | None = None,
        *,
        generated_at: datetime | None = None,
    ) -> TranspileResult:
        """Compile *nodes* and *edges* into a program.

        Graph problems never raise; they come back as ``errors`` on a failed
        result.  Only misuse of the API raises.

        The header records the node count and a digest of the graph.  It
        carries a generation timestamp only when *generated_at* is given, so
        by default the same graph always yields byte-identical source.

        Raises:
            TypeError: an argument has the wrong type.
            ValueError: *profile* names an unknown profile.
        """
        node_list = list(nodes)
        edge_list = list(edges)
        for node in node_list:
            if not isinstance(node, GraphNode):
                raise TypeError(f"nodes must contain GraphNode, got {type(node).__name__}")
        for edge in edge_list:
            if not isinstance(edge, GraphEdge):
                raise TypeError(f"edges must contain GraphEdge, got {type(edge).__name__}")
        if generated_at is not None and not isinstance(generated_at, datetime):
            raise TypeError(f"generated_at must be datetime or None, got {type(generated_at).__name__}")
        resolved_profile = self.resolve_profile(profile)

        graph = Graph(nodes=node_list, edges=edge_list)
        node_count = len(node_list)

        report = validate_graph(graph, self.catalog, resolved_profile, self.actions)
        warnings = tuple(finding.format() for finding in report.warnings)
        if report.errors:
            return _failure((err.format() for err in report.errors), node_count, warnings)

        try:
            order = dependency_order(graph.node_ids(), graph.edges)
        except CycleError as exc:
            finding = TranspileFinding(ORB_CYCLE, "error", str(exc), "graph")
            return _failure([finding.format()], node_count, warnings)

        ctx = TranspileContext(graph=graph, catalog=self.catalog, actions=self.actions)
        ctx.assign_symbols()
        ctx.collect_input_bindings()

        fragments: list[NodeFragments] = []
        errors: list[str] = []
        for node_id in order:
            node = graph.node(node_id)
            assert node is not None
            try:
                fragments.append(render_node(ctx, node))
            except TemplateError as exc:
                finding = TranspileFinding(
                    ORB_TEMPLATE, "error", f"Driver {node.driver_id!r}: {exc}", f"node[{node_id}]"
                )
                errors.append(finding.format())
        if errors:
            return _failure(errors, node_count, warnings)

        source = assemble_program(
            fragments,
            node_count=node_count,
            digest=_graph_digest(graph),
            baseline_import=self.baseline_import,
            cycle_delay_ms=self.cycle_delay_ms,
            generated_at=generated_at,
        )
        try:
            compile(source, "main.py", "exec")
        except SyntaxError as exc:
            finding = TranspileFinding(
                ORB_INVALID_SOURCE, "error", f"Generated source is invalid: {exc}", "program"
            )
            return _failure([finding.format()], node_count, warnings)

        return TranspileResult(
            success=True,
            code=source,
            errors=(),
            node_count=node_count,
            warnings=warnings,
            variable_map=dict(ctx.symbol_table),
            order=tuple(order),
        )


def transpile(
    nodes: Iterable[GraphNode],
    edges: Iterable[GraphEdge],
    profile: str | HardwareProfile | None = None,
    *,
    generated_at: datetime | None = None,
) -> TranspileResult:
    """Transpile with the built-in catalogs and profiles."""
    return Transpiler().transpile(nodes, edges, profile, generated_at=generated_at)


__all__ = ["TranspileResult", "Transpiler", "transpile"]
