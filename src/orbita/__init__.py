"""ORBITA: compile visual driver graphs into MicroPython programs.

A graph of sensor, logic and actuator nodes becomes one ordered program
for an ESP32 target::

    from orbita import build_edge, build_node, transpile

    nodes = [
        build_node("ldr", "ldr_sensor", (0, 0)),
        build_node("dark", "threshold", (200, 0), parameters={"mode": "below", "threshold": 800}),
        build_node("led", "led_output", (400, 0)),
    ]
    edges = [
        build_edge("e1", "ldr", "luminosity", "dark", "value"),
        build_edge("e2", "dark", "active", "led", "input"),
    ]
    result = transpile(nodes, edges, "PION_CANSAT_V1")
    print(result.code)
"""

from orbita.drivers import ACTION_CATALOG, DRIVER_CATALOG, ActionCatalog, DriverCatalog
from orbita.graph import (
    AttachedAction,
    Graph,
    GraphEdge,
    GraphNode,
    LogicAction,
    LogicOperator,
    LogicRule,
)
from orbita.presets import MISSION_PRESETS, build_edge, build_node, get_preset
from orbita.profiles import (
    GENERIC_ESP32,
    PION_CANSAT_V1,
    HardwareProfile,
    HardwareProfiles,
    apply_profile,
)
from orbita.transpile import TranspileResult, Transpiler, transpile

__all__ = [
    "ACTION_CATALOG",
    "ActionCatalog",
    "AttachedAction",
    "DRIVER_CATALOG",
    "DriverCatalog",
    "GENERIC_ESP32",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "HardwareProfile",
    "HardwareProfiles",
    "LogicAction",
    "LogicOperator",
    "LogicRule",
    "MISSION_PRESETS",
    "PION_CANSAT_V1",
    "TranspileResult",
    "Transpiler",
    "apply_profile",
    "build_edge",
    "build_node",
    "get_preset",
    "transpile",
]
