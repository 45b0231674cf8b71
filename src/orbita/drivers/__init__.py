"""Driver catalog for ORBITA graphs.

Every node in a graph names a driver by id; the driver supplies ports,
parameters and the MicroPython template for that node::

    from orbita.drivers import DriverCatalog, DriverCategory

    catalog = DriverCatalog.default()
    spec = catalog.require("threshold")
    [p.id for p in spec.parameters]     # ['threshold', 'mode']
    catalog.by_category(DriverCategory.LOGIC)
"""

from orbita.drivers.actions import ACTION_CATALOG, ActionCatalog, ActionSpec
from orbita.drivers.catalog import DRIVER_CATALOG, DriverCatalog
from orbita.drivers.spec import (
    CodeTemplate,
    DataKind,
    DriverCategory,
    DriverSpec,
    DynamicParameterGroup,
    ParameterSpec,
    PortSpec,
    output_binding,
)

__all__ = [
    "ACTION_CATALOG",
    "ActionCatalog",
    "ActionSpec",
    "CodeTemplate",
    "DRIVER_CATALOG",
    "DataKind",
    "DriverCatalog",
    "DriverCategory",
    "DriverSpec",
    "DynamicParameterGroup",
    "ParameterSpec",
    "PortSpec",
    "output_binding",
]
