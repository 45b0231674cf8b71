"""Ready-made behaviours that can be attached to actuator nodes.

An action contributes parameters to the node it is attached to.  Every
action applicable to a driver owns a *namespace*; the templates branch on
the namespace flag (``{{#if action_blink}}``) and read its fields as
``{{action_blink_interval}}`` and so on.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from orbita.drivers.spec import ParameterSpec

if TYPE_CHECKING:
    from orbita.graph import AttachedAction


@dataclass(frozen=True)
class ActionSpec:
    """Static description of one attachable action.

    Attributes:
        id: Catalog key (e.g. ``"led_blink"``).
        label: Display name.
        description: Human-readable summary.
        driver_ids: Drivers the action may be attached to.
        namespace: Prefix of the parameters the action contributes.
        fields: Configurable fields, exposed as ``<namespace>_<field>``.
        derived: Driver parameters forced while the action is attached.
    """

    id: str
    label: str
    description: str
    driver_ids: tuple[str, ...]
    namespace: str
    fields: tuple[ParameterSpec, ...] = ()
    derived: tuple[tuple[str, Any], ...] = ()

    def field(self, field_id: str) -> ParameterSpec | None:
        for spec in self.fields:
            if spec.id == field_id:
                return spec
        return None

    def parameter_names(self) -> tuple[str, ...]:
        """Every parameter name this action contributes, flag first."""
        return (self.namespace, *(f"{self.namespace}_{spec.id}" for spec in self.fields))


_TONES = ("very_high", "high", "normal", "low", "very_low")


def _operator_field(default: str = ">") -> ParameterSpec:
    return ParameterSpec("operator", "Operator", "select", default, options=(">", "<", ">=", "<="), raw=True)


ACTION_CATALOG: Final[dict[str, ActionSpec]] = {
    spec.id: spec
    for spec in (
        ActionSpec(
            id="led_blink",
            label="Periodic blink",
            description="Blinks the LED with a controlled interval, duty cycle and optional count.",
            driver_ids=("led_output",),
            namespace="action_blink",
            fields=(
                ParameterSpec("interval", "Interval (ms)", "number", 500, minimum=50, maximum=5000),
                ParameterSpec("duty", "Duty (%)", "number", 50, minimum=1, maximum=99),
                ParameterSpec("count_enabled", "Limit count", "boolean", False),
                ParameterSpec("count", "Blinks", "number", 5, minimum=1, maximum=200),
            ),
        ),
        ActionSpec(
            id="led_fixed_white",
            label="Fixed white LED",
            description="Keeps the white LED steadily on or off.",
            driver_ids=("led_output",),
            namespace="action_white",
            fields=(ParameterSpec("state", "State", "select", "on", options=("on", "off")),),
            derived=(("led_type", "white"),),
        ),
        ActionSpec(
            id="led_fixed_rgb",
            label="Fixed color (RGB)",
            description="Shows one fixed color on an RGB LED.",
            driver_ids=("led_output",),
            namespace="action_rgb",
            fields=(
                ParameterSpec(
                    "preset",
                    "Color",
                    "select",
                    "cyan",
                    options=("red", "green", "blue", "cyan", "magenta", "yellow", "white"),
                ),
            ),
            derived=(("led_type", "rgb"),),
        ),
        ActionSpec(
            id="led_alert",
            label="Conditional alert",
            description="Lights the LED while the connected value meets a condition.",
            driver_ids=("led_output",),
            namespace="action_alert",
            fields=(
                _operator_field(),
                ParameterSpec("threshold", "Limit", "number", 30, minimum=-100, maximum=200),
                ParameterSpec("color", "Alert color", "select", "red", options=("red", "orange", "white")),
            ),
        ),
        ActionSpec(
            id="buzzer_beep",
            label="Single beep",
            description="Emits one beep with configurable tone and duration.",
            driver_ids=("buzzer",),
            namespace="action_beep",
            fields=(
                ParameterSpec("tone", "Tone", "select", "normal", options=_TONES),
                ParameterSpec("duration", "Duration (ms)", "number", 300, minimum=50, maximum=2000),
            ),
        ),
        ActionSpec(
            id="buzzer_pattern",
            label="Repeated beep",
            description="A run of beeps with interval and count.",
            driver_ids=("buzzer",),
            namespace="action_pattern",
            fields=(
                ParameterSpec("tone", "Tone", "select", "high", options=_TONES),
                ParameterSpec("duration", "Duration (ms)", "number", 200, minimum=50, maximum=2000),
                ParameterSpec("interval", "Interval (ms)", "number", 400, minimum=50, maximum=5000),
                ParameterSpec("count", "Repetitions", "number", 3, minimum=1, maximum=50),
            ),
        ),
        ActionSpec(
            id="buzzer_alert",
            label="Conditional alert",
            description="Sounds an alert whenever the configured condition holds.",
            driver_ids=("buzzer",),
            namespace="action_alert",
            fields=(
                _operator_field(),
                ParameterSpec("threshold", "Limit", "number", 50, minimum=-100, maximum=200),
                ParameterSpec("cooldown", "Time between alerts (ms)", "number", 1000, minimum=200, maximum=10000),
            ),
        ),
    )
}


class ActionCatalog:
    """Lookup over :class:`ActionSpec` entries."""

    def __init__(self, actions: Iterable[ActionSpec]) -> None:
        entries: dict[str, ActionSpec] = {}
        for spec in actions:
            if spec.id in entries:
                msg = f"Duplicate action id {spec.id!r}."
                raise ValueError(msg)
            entries[spec.id] = spec
        self._actions = entries
        for driver_id in {d for spec in entries.values() for d in spec.driver_ids}:
            namespaces = [spec.namespace for spec in self.for_driver(driver_id)]
            if len(namespaces) != len(set(namespaces)):
                msg = f"Actions for driver {driver_id!r} share a namespace: {namespaces}."
                raise ValueError(msg)

    @classmethod
    def default(cls) -> ActionCatalog:
        return cls(ACTION_CATALOG.values())

    def get(self, action_id: str) -> ActionSpec | None:
        return self._actions.get(action_id)

    def for_driver(self, driver_id: str) -> tuple[ActionSpec, ...]:
        """Actions that may be attached to nodes of *driver_id*, in catalog order."""
        return tuple(spec for spec in self._actions.values() if driver_id in spec.driver_ids)

    def merge(self, driver_id: str, attached: Iterable[AttachedAction]) -> dict[str, Any]:
        """Parameters contributed by *attached* actions on a *driver_id* node.

        Every applicable namespace flag is present (``False`` unless attached).
        An attached action adds its flag, its fields (configured value or field
        default) and its derived overrides.  Later actions win on conflicts.

        Raises:
            KeyError: an attached action id is not in the catalog.
            ValueError: an attached action does not apply to *driver_id*.
        """
        merged: dict[str, Any] = {spec.namespace: False for spec in self.for_driver(driver_id)}
        for action in attached:
            spec = self._actions.get(action.action_id)
            if spec is None:
                msg = f"Unknown action {action.action_id!r}."
                raise KeyError(msg)
            if driver_id not in spec.driver_ids:
                msg = f"Action {spec.id!r} does not apply to driver {driver_id!r}."
                raise ValueError(msg)
            merged.update(_action_parameters(spec, action.config))
        return merged

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._actions

    def __iter__(self) -> Iterator[ActionSpec]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)


def _action_parameters(spec: ActionSpec, config: Mapping[str, Any]) -> dict[str, Any]:
    params: dict[str, Any] = {spec.namespace: True}
    for field_spec in spec.fields:
        params[f"{spec.namespace}_{field_spec.id}"] = config.get(field_spec.id, field_spec.default)
    params.update(spec.derived)
    return params


__all__ = ["ACTION_CATALOG", "ActionCatalog", "ActionSpec"]
