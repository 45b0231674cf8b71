"""Ready-made mission graphs.

Each preset is a small, valid graph a beginner can load and upload as-is::

    from orbita.presets import get_preset
    from orbita.transpile import transpile

    preset = get_preset("preset-blink-led")
    result = transpile(preset.nodes, preset.edges, "PION_CANSAT_V1")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from orbita.drivers.catalog import DriverCatalog
from orbita.graph import Graph, GraphEdge, GraphNode


@dataclass(frozen=True)
class MissionPreset:
    id: str
    name: str
    description: str
    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]

    def graph(self) -> Graph:
        return Graph(nodes=self.nodes, edges=self.edges)


def build_node(
    id: str,
    driver_id: str,
    position: tuple[float, float],
    label: str | None = None,
    parameters: Mapping[str, Any] | None = None,
    *,
    catalog: DriverCatalog | None = None,
) -> GraphNode:
    """Node with every static parameter filled in from the driver defaults.

    Raises:
        KeyError: *driver_id* is not in the catalog.
    """
    spec = (catalog or DriverCatalog.default()).require(driver_id)
    overrides = dict(parameters or {})
    values = {param.id: overrides.pop(param.id, param.default) for param in spec.parameters}
    values.update(overrides)
    return GraphNode(
        id=id,
        driver_id=driver_id,
        label=label or spec.name,
        position=position,
        parameters=values,
    )


def build_edge(id: str, source: str, source_port: str, target: str, target_port: str) -> GraphEdge:
    return GraphEdge(
        id=id,
        source=source,
        source_port=source_port,
        target=target,
        target_port=target_port,
    )


def _three_step_cycle(duration_on: int, duration_off: int) -> dict[str, Any]:
    return {
        "step1_state": True,
        "step1_duration": duration_on,
        "step2_state": False,
        "step2_duration": duration_off,
        "step3_state": True,
        "step3_duration": duration_on,
        "repeat_cycle": True,
    }


MISSION_PRESETS: Final[tuple[MissionPreset, ...]] = (
    MissionPreset(
        id="preset-blink-led",
        name="Blinking LED",
        description="A sequencer drives the onboard LED in an endless cycle.",
        nodes=(
            build_node("seq1", "sequence_timer", (0, 80), "LED sequence", _three_step_cycle(600, 600)),
            build_node("led1", "led_output", (260, 80), "Onboard LED", {"blink_enabled": False}),
        ),
        edges=(build_edge("e-seq-led", "seq1", "state", "led1", "input"),),
    ),
    MissionPreset(
        id="preset-beep",
        name="Beep signal",
        description="A short sequence sends pulses to the buzzer.",
        nodes=(
            build_node("seq2", "sequence_timer", (0, 80), "Buzzer sequence", _three_step_cycle(250, 450)),
            build_node(
                "buzz1",
                "buzzer",
                (260, 80),
                "Buzzer",
                {"repeat_enabled": False, "tone": "normal", "duration": 200},
            ),
        ),
        edges=(build_edge("e-seq-buzz", "seq2", "state", "buzz1", "input"),),
    ),
    MissionPreset(
        id="preset-blink-beep",
        name="Blink + beep",
        description="LED and buzzer driven together for a simple alert.",
        nodes=(
            build_node("seq3", "sequence_timer", (0, 120), "Alert sequence", _three_step_cycle(500, 500)),
            build_node("led2", "led_output", (260, 60), "Alert LED"),
            build_node(
                "buzz2",
                "buzzer",
                (260, 180),
                "Alert buzzer",
                {"repeat_enabled": False, "tone": "high", "duration": 200},
            ),
        ),
        edges=(
            build_edge("e-seq-led2", "seq3", "state", "led2", "input"),
            build_edge("e-seq-buzz2", "seq3", "state", "buzz2", "input"),
        ),
    ),
)


def get_preset(preset_id: str) -> MissionPreset:
    """Look up a preset by id.

    Raises:
        KeyError: no preset has *preset_id*.
    """
    for preset in MISSION_PRESETS:
        if preset.id == preset_id:
            return preset
    raise KeyError(f"Unknown mission preset {preset_id!r}")


__all__ = ["MISSION_PRESETS", "MissionPreset", "build_edge", "build_node", "get_preset"]
