"""Tool protocol, building tools, and the process-wide tool registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import AMENITIES, PACKAGE_STATUS_PENDING, PACKAGE_STATUS_PICKED_UP
from .errors import StorageError, UnknownToolError
from .models import ToolDef, ToolResult
from .persistence import ConciergeStore, get_default_store

logger = logging.getLogger(__name__)

GENERIC_TOOL_FAILURE = "An unexpected error occurred while running this action."


class BaseTool(ABC):
    """Base class for concierge tools.

    Arguments are declared as a pydantic model; its JSON Schema is what the
    model sees, and the same model validates the arguments it sends back.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def args_model(self) -> type[BaseModel]:
        ...

    @abstractmethod
    async def execute(self, args: Any) -> ToolResult:
        """Run the tool with validated arguments. Must not raise for expected failures."""
        ...

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for parameters."""
        return self.args_model.model_json_schema()

    def validate(self, params: dict[str, Any]) -> BaseModel:
        """Raises pydantic.ValidationError when params do not match the schema."""
        return self.args_model.model_validate(params)

    def to_def(self) -> ToolDef:
        return ToolDef(name=self.name, description=self.description, parameters=self.parameters)

    def to_tool_schema(self) -> dict[str, Any]:
        """Standard function-calling schema for any LLM provider."""
        return self.to_def().to_tool_schema()


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class UnitArgs(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    unit_number: str = Field(
        ...,
        min_length=1,
        description="The resident's unit number, e.g. '101'",
    )


class BookAmenityArgs(UnitArgs):
    amenity: Literal[AMENITIES] = Field(  # type: ignore[valid-type]
        ...,
        description="Which amenity to reserve: " + ", ".join(AMENITIES),
    )
    booking_time: str = Field(
        ...,
        min_length=1,
        description=(
            "When the reservation starts, as an ISO 8601 timestamp. Resolve relative "
            "phrases like 'tomorrow at 6pm' before calling."
        ),
    )


# ---------------------------------------------------------------------------
# Building tools
# ---------------------------------------------------------------------------


class CheckPackagesTool(BaseTool):
    """Reports pending deliveries for a unit."""

    def __init__(self, store: ConciergeStore):
        self._store = store

    @property
    def name(self) -> str:
        return "check_packages"

    @property
    def description(self) -> str:
        return "Check if a specific unit has pending packages."

    @property
    def args_model(self) -> type[BaseModel]:
        return UnitArgs

    async def execute(self, args: UnitArgs) -> ToolResult:
        logger.info("[check_packages] Checking for unit: %s", args.unit_number)
        try:
            packages = await self._store.query_pending_packages(args.unit_number)
        except StorageError as e:
            logger.error("[check_packages] Database error: %s", e)
            return ToolResult(success=False, error="Database unreachable.")
        logger.info("[check_packages] Found %d packages", len(packages))
        if not packages:
            return ToolResult(success=True, content="No pending packages found.", metadata={"count": 0})
        couriers = [p.courier for p in packages]
        noun = "package" if len(packages) == 1 else "packages"
        return ToolResult(
            success=True,
            content=f"Found {len(packages)} {noun} from {' and '.join(couriers)}.",
            metadata={"count": len(packages), "couriers": couriers},
        )


class LogPickupTool(BaseTool):
    """Marks every pending package of a unit as picked up."""

    def __init__(self, store: ConciergeStore):
        self._store = store

    @property
    def name(self) -> str:
        return "log_pickup"

    @property
    def description(self) -> str:
        return "Mark all pending packages for a unit as picked up."

    @property
    def args_model(self) -> type[BaseModel]:
        return UnitArgs

    async def execute(self, args: UnitArgs) -> ToolResult:
        try:
            updated = await self._store.update_packages_status(
                args.unit_number,
                PACKAGE_STATUS_PICKED_UP,
                from_status=PACKAGE_STATUS_PENDING,
            )
        except StorageError as e:
            logger.error("[log_pickup] Database error: %s", e)
            return ToolResult(success=False, error="Failed to update.")
        if updated == 0:
            content = "Successfully logged pickup. There were no pending packages to update."
        else:
            noun = "package" if updated == 1 else "packages"
            content = f"Successfully logged pickup of {updated} {noun}."
        return ToolResult(success=True, content=content, metadata={"updated": updated})


class BookAmenityTool(BaseTool):
    """Reserves a building amenity. No conflict detection."""

    def __init__(self, store: ConciergeStore):
        self._store = store

    @property
    def name(self) -> str:
        return "book_amenity"

    @property
    def description(self) -> str:
        return (
            "Book a building amenity (tennis court, pool, gym, or party room) for a unit "
            "at a specific time."
        )

    @property
    def args_model(self) -> type[BaseModel]:
        return BookAmenityArgs

    async def execute(self, args: BookAmenityArgs) -> ToolResult:
        try:
            booking = await self._store.insert_booking(
                args.unit_number,
                args.amenity,
                args.booking_time,
                created_at=datetime.now(timezone.utc),
            )
        except StorageError as e:
            logger.error("[book_amenity] Database error: %s", e)
            return ToolResult(success=False, error=f"Failed to book the {args.amenity.replace('_', ' ')}.")
        label = args.amenity.replace("_", " ")
        return ToolResult(
            success=True,
            content=f"Booked the {label} for unit {args.unit_number} at {args.booking_time}.",
            metadata={"booking_id": booking.booking_id},
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """Read-only name → tool table. Safe to share across concurrent requests."""

    def __init__(self, tools: Iterable[BaseTool]):
        table: dict[str, BaseTool] = {}
        for tool in tools:
            if tool.name in table:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            table[tool.name] = tool
        self._tools = MappingProxyType(table)

    def get(self, name: str) -> BaseTool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def tool_schemas(self) -> list[dict[str, Any]]:
        return [t.to_tool_schema() for t in self._tools.values()]


def _format_validation_error(e: ValidationError) -> str:
    problems = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        problems.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(problems)


async def invoke_tool(registry: ToolRegistry, call: dict[str, Any]) -> ToolResult:
    """Resolve one model tool call into a result. Never raises."""
    name = call.get("name", "") or ""
    params = call.get("params") or call.get("arguments") or {}
    try:
        tool = registry.get(name)
    except UnknownToolError as e:
        logger.error("Model requested unregistered tool %r", name)
        return ToolResult(success=False, error=str(e))
    try:
        args = tool.validate(params if isinstance(params, dict) else {})
    except ValidationError as e:
        logger.info("Rejected arguments for %s: %s", name, e)
        return ToolResult(
            success=False,
            error=f"Invalid arguments for {name}: {_format_validation_error(e)}",
        )
    try:
        return await tool.execute(args)
    except Exception:
        logger.exception("Tool %s failed", name)
        return ToolResult(success=False, error=GENERIC_TOOL_FAILURE)


def build_registry(store: ConciergeStore) -> ToolRegistry:
    """Return the building tool set bound to a store."""
    return ToolRegistry([
        CheckPackagesTool(store),
        LogPickupTool(store),
        BookAmenityTool(store),
    ])


_default_registry: ToolRegistry | None = None


def get_default_registry() -> ToolRegistry:
    """Registry over the default store, built once per process."""
    global _default_registry
    if _default_registry is None:
        _default_registry = build_registry(get_default_store())
    return _default_registry
