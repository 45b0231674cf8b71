"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
import types
from collections.abc import Mapping
from typing import Any

import pytest

from orbita.graph import GraphEdge, GraphNode


def node(node_id: str, driver_id: str, **parameters: Any) -> GraphNode:
    """Graph node with only the given parameter overrides."""
    return GraphNode(id=node_id, driver_id=driver_id, parameters=parameters)


def edge(
    source: str, source_port: str, target: str, target_port: str, edge_id: str | None = None
) -> GraphEdge:
    return GraphEdge(
        id=edge_id or f"{source}.{source_port}->{target}.{target_port}",
        source=source,
        source_port=source_port,
        target=target,
        target_port=target_port,
    )


class FakeBoard:
    """Stand-ins for the MicroPython ``machine`` and ``time`` modules.

    Time only advances through ``sleep_ms``, so a run is fully deterministic.
    Every ``Pin.value`` and ``PWM.duty`` write is recorded per pin number.
    """

    def __init__(self) -> None:
        self.now = 0
        self.pin_writes: dict[int, list[int]] = {}
        self.duty_writes: dict[int, list[int]] = {}
        self.printed: list[tuple[Any, ...]] = []

    def time_module(self) -> types.ModuleType:
        board = self
        mod = types.ModuleType("time")

        def sleep_ms(ms: int) -> None:
            board.now += int(ms)

        mod.ticks_ms = lambda: board.now
        mod.ticks_diff = lambda a, b: a - b
        mod.sleep_ms = sleep_ms
        return mod

    def machine_module(self) -> types.ModuleType:
        board = self
        mod = types.ModuleType("machine")

        class Pin:
            OUT = 1
            IN = 0

            def __init__(self, number: int, mode: int | None = None) -> None:
                self.number = number

            def value(self, v: int | None = None) -> int | None:
                if v is None:
                    return (board.pin_writes.get(self.number) or [0])[-1]
                board.pin_writes.setdefault(self.number, []).append(int(v))
                return None

        class PWM:
            def __init__(self, pin: Pin, freq: int = 0, duty: int = 0) -> None:
                self.number = pin.number
                self._freq = freq

            def duty(self, value: int) -> None:
                board.duty_writes.setdefault(self.number, []).append(int(value))

            def freq(self, value: int) -> None:
                self._freq = value

        class ADC:
            ATTN_11DB = 3

            def __init__(self, pin: Pin) -> None:
                self.number = pin.number

            def atten(self, value: int) -> None:
                return None

            def read(self) -> int:
                return 2048

        mod.Pin = Pin
        mod.PWM = PWM
        mod.ADC = ADC
        return mod

    def urandom_module(self) -> types.ModuleType:
        mod = types.ModuleType("urandom")
        # midpoint keeps generated values predictable
        mod.uniform = lambda a, b: (a + b) / 2
        return mod

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "time", self.time_module())
        monkeypatch.setitem(sys.modules, "machine", self.machine_module())
        monkeypatch.setitem(sys.modules, "urandom", self.urandom_module())

    def run(self, source: str, cycles: int, extra_globals: Mapping[str, Any] | None = None) -> dict:
        """Execute *source* with its control loop limited to *cycles* passes."""
        bounded = source.replace("while True:", f"for __cycle in range({cycles}):", 1)
        namespace: dict[str, Any] = {"print": lambda *args: self.printed.append(args)}
        namespace.update(extra_globals or {})
        exec(compile(bounded, "main.py", "exec"), namespace, namespace)
        return namespace


@pytest.fixture
def board(monkeypatch: pytest.MonkeyPatch) -> FakeBoard:
    fake = FakeBoard()
    fake.install(monkeypatch)
    return fake
