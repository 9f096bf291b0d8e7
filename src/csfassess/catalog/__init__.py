"""
Framework catalog: the static control hierarchy being assessed.

The catalog is loaded from a packaged JSON data file and is read-only
after construction. Lookups are total: unknown ids return empty lists or
None rather than raising.

Control Hierarchy (NIST CSF 2.0):
    - 6 Functions: Govern (GV), Identify (ID), Protect (PR), Detect (DE),
                   Respond (RS), Recover (RC)
    - 22 Categories
    - 106 Subcategories
"""

from csfassess.catalog.framework import (
    DEFAULT_FRAMEWORK_ID,
    CatalogError,
    Category,
    ControlRef,
    FrameworkCatalog,
    Function,
    Subcategory,
    get_available_frameworks,
    get_catalog,
    load_catalog,
)

__all__ = [
    "DEFAULT_FRAMEWORK_ID",
    "CatalogError",
    "Category",
    "ControlRef",
    "FrameworkCatalog",
    "Function",
    "Subcategory",
    "get_available_frameworks",
    "get_catalog",
    "load_catalog",
]
