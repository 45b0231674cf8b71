"""Hardware profiles.

A profile describes one deployment target: which pin each driver is wired
to, whether that pin may be changed, and optionally which drivers the
target supports at all.  The transpiler only consumes profiles; it never
rewrites node parameters itself.  Use :func:`apply_profile` beforehand to
force locked pins onto a node.
"""

from __future__ import annotations

import warnings
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from orbita.drivers.catalog import DriverCatalog
    from orbita.graph import GraphNode


@dataclass(frozen=True)
class PinMapping:
    """Wiring of one driver on a profile.

    Attributes:
        driver_id: Driver the mapping applies to.
        pin: GPIO number (``0`` for virtual drivers without a pin).
        label: Human-readable description of the wiring.
        locked: Whether nodes must use exactly this pin.
        parameter: Driver parameter that carries the pin, or ``None``.
    """

    driver_id: str
    pin: int
    label: str
    locked: bool = True
    parameter: str | None = "pin"


@dataclass(frozen=True)
class HardwareProfile:
    """One deployment target.

    Attributes:
        id: Profile key (e.g. ``"PION_CANSAT_V1"``).
        name: Display name.
        description: Human-readable summary.
        pin_mappings: :class:`PinMapping` per driver.
        allow_custom_pins: When true, no pin is ever locked.
        allowed_driver_ids: Drivers usable on this target; ``None`` allows all.
    """

    id: str
    name: str
    description: str
    pin_mappings: tuple[PinMapping, ...] = ()
    allow_custom_pins: bool = True
    allowed_driver_ids: frozenset[str] | None = None

    def mapping(self, driver_id: str) -> PinMapping | None:
        for mapping in self.pin_mappings:
            if mapping.driver_id == driver_id:
                return mapping
        return None

    def allows(self, driver_id: str) -> bool:
        return self.allowed_driver_ids is None or driver_id in self.allowed_driver_ids


def _virtual(driver_id: str) -> PinMapping:
    return PinMapping(driver_id, 0, "Virtual (no pin)", locked=False, parameter=None)


def _i2c(driver_id: str) -> PinMapping:
    return PinMapping(driver_id, 21, "I2C SDA (21/22)", parameter="sda")


GENERIC_ESP32: Final = HardwareProfile(
    id="GENERIC_ESP32",
    name="Generic ESP32",
    description="Default profile, every pin configurable by hand",
)

_PION_MAPPINGS: Final = (
    # shared I2C bus
    _i2c("bme280_sensor"),
    _i2c("sht30_sensor"),
    _i2c("ccs811_sensor"),
    _i2c("imu_mpu9250"),
    PinMapping("ldr_sensor", 34, "LDR (GPIO34)"),
    PinMapping("vbat_sensor", 35, "VBAT (GPIO35)"),
    PinMapping("buzzer", 25, "Buzzer (GPIO25)"),
    PinMapping("led_output", 2, "Onboard LED (GPIO2)"),
    PinMapping("sd_logger", 15, "SD CS (GPIO15)", parameter="cs_pin"),
    _virtual("data_generator"),
    _virtual("print_log"),
    _virtual("comparator"),
    _virtual("threshold"),
)

PION_CANSAT_V1: Final = HardwareProfile(
    id="PION_CANSAT_V1",
    name="Pion CanSat V1",
    description="Pion educational kit with pre-wired, locked pins",
    pin_mappings=_PION_MAPPINGS,
    allow_custom_pins=False,
    allowed_driver_ids=frozenset(
        {m.driver_id for m in _PION_MAPPINGS} | {"delay_trigger", "sequence_timer"}
    ),
)


class HardwareProfiles:
    """Lookup over :class:`HardwareProfile` entries, keyed by id."""

    def __init__(self, profiles: Iterable[HardwareProfile]) -> None:
        entries: dict[str, HardwareProfile] = {}
        for profile in profiles:
            if profile.id in entries:
                msg = f"Duplicate hardware profile id {profile.id!r}."
                raise ValueError(msg)
            entries[profile.id] = profile
        self._profiles = entries

    @classmethod
    def default(cls) -> HardwareProfiles:
        return cls((GENERIC_ESP32, PION_CANSAT_V1))

    def get(self, profile_id: str) -> HardwareProfile | None:
        return self._profiles.get(profile_id)

    def require(self, profile_id: str) -> HardwareProfile:
        profile = self._profiles.get(profile_id)
        if profile is None:
            known = ", ".join(sorted(self._profiles))
            msg = f"Unknown hardware profile {profile_id!r}. Known profiles: {known}."
            raise ValueError(msg)
        return profile

    def ids(self) -> tuple[str, ...]:
        return tuple(self._profiles)

    def __iter__(self) -> Iterator[HardwareProfile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)


def pin_for(profile: HardwareProfile, driver_id: str) -> int | None:
    """Pin the profile wires *driver_id* to, or ``None`` when unmapped."""
    mapping = profile.mapping(driver_id)
    return mapping.pin if mapping is not None else None


def is_pin_locked(profile: HardwareProfile, driver_id: str) -> bool:
    if profile.allow_custom_pins:
        return False
    mapping = profile.mapping(driver_id)
    return mapping.locked if mapping is not None else False


def pin_label(profile: HardwareProfile, driver_id: str) -> str | None:
    mapping = profile.mapping(driver_id)
    return mapping.label if mapping is not None else None


def locked_pin_parameter(profile: HardwareProfile, driver_id: str) -> tuple[str, int] | None:
    """``(parameter, pin)`` a node of *driver_id* must carry, or ``None``."""
    if not is_pin_locked(profile, driver_id):
        return None
    mapping = profile.mapping(driver_id)
    if mapping is None or mapping.parameter is None:
        return None
    return mapping.parameter, mapping.pin


def apply_profile(node: GraphNode, catalog: DriverCatalog, profile: HardwareProfile) -> GraphNode:
    """Return *node* with its locked pin parameter forced to the profile's pin.

    Nodes of unknown drivers, or drivers without a locked pin, are returned
    unchanged.  Overriding a pin the user set explicitly emits a
    ``UserWarning``.
    """
    locked = locked_pin_parameter(profile, node.driver_id)
    spec = catalog.get(node.driver_id)
    if locked is None or spec is None:
        return node
    parameter, pin = locked
    if spec.parameter(parameter) is None:
        return node
    current = node.parameters.get(parameter)
    if current == pin:
        return node
    if current is not None:
        warnings.warn(
            f"Node '{node.id}' sets {parameter}={current!r} but profile {profile.id} "
            f"locks it to {pin}. The profile pin takes precedence.",
            UserWarning,
            stacklevel=2,
        )
    return node.with_parameters({parameter: pin})


__all__ = [
    "GENERIC_ESP32",
    "HardwareProfile",
    "HardwareProfiles",
    "PION_CANSAT_V1",
    "PinMapping",
    "apply_profile",
    "is_pin_locked",
    "locked_pin_parameter",
    "pin_for",
    "pin_label",
]
