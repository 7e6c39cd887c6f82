"""Registry of named resources and tools.

Architecture:
- ResourceDefinition: fixed-URI read-only document
- ResourceTemplateDefinition: URI with one {slot}, resolved per request
- ToolDefinition: named operation with a pydantic input model and a handler
- Registry: lookup by URI / tool name

Usage:
    registry = Registry()

    async def read_profile(uri: str, params: dict[str, str]) -> ReadResourceResult:
        ...

    registry.register_resource("resume-json", "resume://profile", read_profile)

    class AskInput(BaseModel):
        question: str

    async def ask(args: AskInput, context: ToolContext) -> CallToolResult:
        ...

    registry.register_tool("cv_query", AskInput, ask, description="...")
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from .types import CallToolResult, ReadResourceResult

logger = logging.getLogger(__name__)

_SLOT_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass
class ToolContext:
    """Context passed to tool handlers."""

    session_id: str
    request_id: str | int | None = None


ResourceReader = Callable[[str, dict[str, str]], Awaitable[ReadResourceResult]]
ToolHandler = Callable[[Any, ToolContext], Awaitable[CallToolResult]]


@dataclass
class ResourceDefinition:
    """A resource addressed by an exact URI."""

    name: str
    uri: str
    reader: ResourceReader
    title: str | None = None
    description: str | None = None
    mime_type: str | None = None

    def describe(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri, "name": self.name}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        if self.mime_type:
            data["mimeType"] = self.mime_type
        return data


@dataclass
class ResourceTemplateDefinition:
    """A resource whose URI carries exactly one substitution slot.

    The slot value is handed to the reader as a string; interpreting it
    (and bounds-checking it) is the reader's job.
    """

    name: str
    uri_template: str
    reader: ResourceReader
    title: str | None = None
    description: str | None = None
    mime_type: str | None = None
    slot: str = field(init=False)
    _regex: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        slots = _SLOT_PATTERN.findall(self.uri_template)
        if len(slots) != 1:
            raise ValueError(
                f"Resource template '{self.uri_template}' must have exactly one slot, "
                f"found {len(slots)}"
            )
        self.slot = slots[0]
        prefix, suffix = _SLOT_PATTERN.split(self.uri_template)[0::2]
        self._regex = re.compile(
            f"^{re.escape(prefix)}(?P<{self.slot}>[^/]+){re.escape(suffix)}$"
        )

    def match(self, uri: str) -> dict[str, str] | None:
        """Return the extracted slot if the URI fits this template."""
        found = self._regex.match(uri)
        if found is None:
            return None
        return {self.slot: found.group(self.slot)}

    def describe(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uriTemplate": self.uri_template, "name": self.name}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        if self.mime_type:
            data["mimeType"] = self.mime_type
        return data


@dataclass
class ToolDefinition:
    """Definition of an invokable tool.

    Attributes:
        name: Unique identifier for the tool
        input_model: pydantic model describing the accepted arguments
        handler: Async function receiving the validated model and a ToolContext
        title: Short display name
        description: Human-readable description
    """

    name: str
    input_model: type[BaseModel]
    handler: ToolHandler
    title: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tool name cannot be empty")
        if not callable(self.handler):
            raise ValueError("Tool handler must be callable")

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's arguments."""
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def describe(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "inputSchema": self.input_schema}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        return data


ResolvedResource = tuple[ResourceDefinition | ResourceTemplateDefinition, dict[str, str]]


class Registry:
    """Holds resources and tools by name.

    Registration happens at startup, before any request is served; lookups
    are read-only afterwards.
    """

    def __init__(self) -> None:
        self._resources: dict[str, ResourceDefinition] = {}
        self._templates: dict[str, ResourceTemplateDefinition] = {}
        self._tools: dict[str, ToolDefinition] = {}

    def _check_name(self, name: str) -> None:
        if name in self._resources or name in self._templates:
            raise ValueError(f"Resource '{name}' already registered")

    def register_resource(
        self,
        name: str,
        uri: str,
        reader: ResourceReader,
        *,
        title: str | None = None,
        description: str | None = None,
        mime_type: str | None = None,
    ) -> ResourceDefinition:
        """Register a fixed-URI resource.

        Raises:
            ValueError: If the name or URI is already registered
        """
        self._check_name(name)
        if any(r.uri == uri for r in self._resources.values()):
            raise ValueError(f"Resource URI '{uri}' already registered")
        definition = ResourceDefinition(
            name=name,
            uri=uri,
            reader=reader,
            title=title,
            description=description,
            mime_type=mime_type,
        )
        self._resources[name] = definition
        logger.info(f"Registered resource: {name} ({uri})")
        return definition

    def register_resource_template(
        self,
        name: str,
        uri_template: str,
        reader: ResourceReader,
        *,
        title: str | None = None,
        description: str | None = None,
        mime_type: str | None = None,
    ) -> ResourceTemplateDefinition:
        """Register a templated resource with one substitution slot."""
        self._check_name(name)
        definition = ResourceTemplateDefinition(
            name=name,
            uri_template=uri_template,
            reader=reader,
            title=title,
            description=description,
            mime_type=mime_type,
        )
        self._templates[name] = definition
        logger.info(f"Registered resource template: {name} ({uri_template})")
        return definition

    def register_tool(
        self,
        name: str,
        input_model: type[BaseModel],
        handler: ToolHandler,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> ToolDefinition:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if name in self._tools:
            raise ValueError(f"Tool '{name}' already registered")
        definition = ToolDefinition(
            name=name,
            input_model=input_model,
            handler=handler,
            title=title,
            description=description,
        )
        self._tools[name] = definition
        logger.info(f"Registered tool: {name}")
        return definition

    def resolve_resource(self, uri: str) -> ResolvedResource | None:
        """Find the resource serving a URI.

        Exact URIs win over templates; templates are tried in
        registration order.
        """
        for resource in self._resources.values():
            if resource.uri == uri:
                return resource, {}
        for template in self._templates.values():
            params = template.match(uri)
            if params is not None:
                return template, params
        return None

    def resolve_tool(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list_resources(self) -> list[ResourceDefinition]:
        return list(self._resources.values())

    def list_resource_templates(self) -> list[ResourceTemplateDefinition]:
        return list(self._templates.values())

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())
