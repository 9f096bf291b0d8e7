"""
Framework catalog definitions.

This module loads the static control hierarchy of a compliance framework
(functions -> categories -> subcategories) from a packaged JSON data file
and exposes read-only lookup and search helpers over it.

The NIST CSF 2.0 structure shipped with the package:
    - 6 Functions: Govern (GV), Identify (ID), Protect (PR), Detect (DE),
                   Respond (RS), Recover (RC)
    - 22 Categories: Grouped under functions
    - 106 Subcategories: Specific outcomes within categories

The catalog is built once and never mutated. A flat index from control id
to its parent function and category is built at construction time so the
scoring code never has to walk the nested structure.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

DEFAULT_FRAMEWORK_ID = "nist-csf-2.0"

# Framework id -> packaged data file
FRAMEWORK_FILES: dict[str, str] = {
    "nist-csf-2.0": "nist_csf_2_0.json",
}


class CatalogError(Exception):
    """Raised when a framework catalog is missing or structurally invalid."""

    pass


@dataclass(frozen=True)
class Subcategory:
    """
    A single assessable control (the leaf of the hierarchy).

    Attributes:
        id: Globally unique identifier (e.g., "GV.OC-01").
        name: Short name.
        description: Outcome description.
        function_id: Parent function ID.
        category_id: Parent category ID.
    """

    id: str
    name: str
    description: str
    function_id: str
    category_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


@dataclass(frozen=True)
class Category:
    """
    A group of related controls within one function.

    Attributes:
        id: Identifier, unique within its function (e.g., "GV.OC").
        name: Category name.
        description: Category description.
        function_id: Parent function ID.
        subcategories: Controls in this category, in catalog order.
    """

    id: str
    name: str
    description: str
    function_id: str
    subcategories: tuple[Subcategory, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "subcategories": [s.to_dict() for s in self.subcategories],
        }


@dataclass(frozen=True)
class Function:
    """
    A top-level grouping of the framework.

    Attributes:
        id: Identifier, unique within the framework (e.g., "GV").
        name: Function name.
        description: Function description.
        categories: Categories in this function, in catalog order.
    """

    id: str
    name: str
    description: str
    categories: tuple[Category, ...] = field(default_factory=tuple)

    @property
    def subcategories(self) -> list[Subcategory]:
        """All controls of this function in catalog order."""
        return [s for c in self.categories for s in c.subcategories]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "categories": [c.to_dict() for c in self.categories],
        }


@dataclass(frozen=True)
class ControlRef:
    """
    A control annotated with its parent function and category.

    This is the flattened view returned by the catalog lookups.
    """

    id: str
    name: str
    description: str
    function_id: str
    function_name: str
    category_id: str
    category_name: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "function_id": self.function_id,
            "function_name": self.function_name,
            "category_id": self.category_id,
            "category_name": self.category_name,
        }


class FrameworkCatalog:
    """
    Immutable catalog of one framework's functions, categories, and controls.

    Example:
        catalog = get_catalog()

        controls = catalog.all_subcategories()
        protect = catalog.subcategories_of_function("PR")
        matches = catalog.search("backup")

    Attributes:
        id: Framework identifier (e.g., "nist-csf-2.0").
        name: Framework name.
        version: Framework version string.
        functions: Functions in catalog order.
    """

    def __init__(
        self,
        id: str,
        name: str,
        functions: list[Function] | tuple[Function, ...],
        version: str = "",
    ) -> None:
        self.id = id
        self.name = name
        self.version = version
        self.functions: tuple[Function, ...] = tuple(functions)

        self._function_index: dict[str, Function] = {}
        self._category_index: dict[tuple[str, str], Category] = {}
        self._control_index: dict[str, ControlRef] = {}
        self._controls: list[ControlRef] = []

        for func in self.functions:
            if func.id in self._function_index:
                raise CatalogError(f"Duplicate function id: {func.id}")
            self._function_index[func.id] = func

            for cat in func.categories:
                key = (func.id, cat.id)
                if key in self._category_index:
                    raise CatalogError(
                        f"Duplicate category id {cat.id} in function {func.id}"
                    )
                self._category_index[key] = cat

                for sub in cat.subcategories:
                    if sub.id in self._control_index:
                        raise CatalogError(f"Duplicate control id: {sub.id}")
                    ref = ControlRef(
                        id=sub.id,
                        name=sub.name,
                        description=sub.description,
                        function_id=func.id,
                        function_name=func.name,
                        category_id=cat.id,
                        category_name=cat.name,
                    )
                    self._control_index[sub.id] = ref
                    self._controls.append(ref)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FrameworkCatalog:
        """
        Build a catalog from its nested dictionary form.

        Args:
            data: Dictionary with "id", "name", optional "version", and a
                "functions" list of nested categories and subcategories.

        Returns:
            FrameworkCatalog instance.

        Raises:
            CatalogError: If required fields are missing or ids collide.
        """
        try:
            functions = []
            for func_data in data["functions"]:
                categories = []
                for cat_data in func_data.get("categories", []):
                    subcategories = tuple(
                        Subcategory(
                            id=sub["id"],
                            name=sub["name"],
                            description=sub.get("description", ""),
                            function_id=func_data["id"],
                            category_id=cat_data["id"],
                        )
                        for sub in cat_data.get("subcategories", [])
                    )
                    categories.append(
                        Category(
                            id=cat_data["id"],
                            name=cat_data["name"],
                            description=cat_data.get("description", ""),
                            function_id=func_data["id"],
                            subcategories=subcategories,
                        )
                    )
                functions.append(
                    Function(
                        id=func_data["id"],
                        name=func_data["name"],
                        description=func_data.get("description", ""),
                        categories=tuple(categories),
                    )
                )
            return cls(
                id=data["id"],
                name=data["name"],
                version=str(data.get("version", "")),
                functions=functions,
            )
        except (KeyError, TypeError) as e:
            raise CatalogError(f"Invalid catalog structure: {e}") from e

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def all_subcategories(self) -> list[ControlRef]:
        """
        Get every control in catalog order.

        Returns:
            List of controls annotated with function and category.
        """
        return list(self._controls)

    def subcategories_of_function(self, function_id: str) -> list[ControlRef]:
        """
        Get all controls of a function.

        Args:
            function_id: Function identifier (e.g., "PR").

        Returns:
            List of controls, empty if the function is unknown.
        """
        return [c for c in self._controls if c.function_id == function_id]

    def subcategories_of_category(
        self,
        function_id: str,
        category_id: str,
    ) -> list[ControlRef]:
        """
        Get all controls of a category.

        Args:
            function_id: Parent function identifier.
            category_id: Category identifier (e.g., "PR.AA").

        Returns:
            List of controls, empty if the category is unknown.
        """
        return [
            c
            for c in self._controls
            if c.function_id == function_id and c.category_id == category_id
        ]

    def search(self, term: str) -> list[ControlRef]:
        """
        Case-insensitive substring search over the catalog.

        Matches against control id, control name, control description,
        function name, and category name.

        Args:
            term: Search term.

        Returns:
            Matching controls.
        """
        needle = term.lower()
        return [
            c
            for c in self._controls
            if needle in c.id.lower()
            or needle in c.name.lower()
            or needle in c.description.lower()
            or needle in c.function_name.lower()
            or needle in c.category_name.lower()
        ]

    def get_function(self, function_id: str) -> Function | None:
        """Get a function by ID, or None if not found."""
        return self._function_index.get(function_id)

    def get_category(self, function_id: str, category_id: str) -> Category | None:
        """Get a category by function and category ID, or None if not found."""
        return self._category_index.get((function_id, category_id))

    def get_subcategory(self, control_id: str) -> ControlRef | None:
        """Get a control by ID, or None if not found."""
        return self._control_index.get(control_id)

    @property
    def control_ids(self) -> list[str]:
        """All control ids in catalog order."""
        return [c.id for c in self._controls]

    @property
    def total_controls(self) -> int:
        """Number of controls in the catalog."""
        return len(self._controls)

    def __contains__(self, control_id: object) -> bool:
        return control_id in self._control_index

    def __len__(self) -> int:
        return len(self._controls)

    def get_statistics(self) -> dict[str, int]:
        """
        Get counts of functions, categories, and controls.

        Returns:
            Dictionary with "functions", "categories", "subcategories".
        """
        return {
            "functions": len(self._function_index),
            "categories": len(self._category_index),
            "subcategories": len(self._controls),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to the nested dictionary form used by the data files."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "functions": [f.to_dict() for f in self.functions],
        }


def load_catalog(path: Path | str) -> FrameworkCatalog:
    """
    Load a catalog from a JSON file.

    Args:
        path: Path to the catalog JSON file.

    Returns:
        FrameworkCatalog instance.

    Raises:
        CatalogError: If the file cannot be read or is invalid.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in catalog file {path}: {e}") from e
    except OSError as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}") from e

    catalog = FrameworkCatalog.from_dict(data)
    logger.debug(
        "Loaded catalog %s with %d controls from %s",
        catalog.id,
        catalog.total_controls,
        path,
    )
    return catalog


@lru_cache(maxsize=None)
def get_catalog(framework_id: str = DEFAULT_FRAMEWORK_ID) -> FrameworkCatalog:
    """
    Get a packaged framework catalog.

    The catalog is loaded once per process and shared afterwards.

    Args:
        framework_id: Framework identifier (default "nist-csf-2.0").

    Returns:
        FrameworkCatalog instance.

    Raises:
        CatalogError: If the framework is not packaged.
    """
    filename = FRAMEWORK_FILES.get(framework_id)
    if filename is None:
        raise CatalogError(
            f"Unknown framework: {framework_id}. "
            f"Available: {', '.join(sorted(FRAMEWORK_FILES))}"
        )
    return load_catalog(DATA_DIR / filename)


def get_available_frameworks() -> list[str]:
    """Get the ids of all packaged frameworks."""
    return sorted(FRAMEWORK_FILES)
