"""MCP tools provider.

Tools arrive through the search context (``mcp_tools`` and ``mcp_servers``,
pushed by the host); nothing is fetched. Only tools of connected servers
are offered.

Tool names follow ``mcp__<server>__<tool>``; the tool part may itself
contain ``__``.
"""

from __future__ import annotations

import logging
import re
import time

from pydantic import BaseModel

from ..models import MentionCategory
from ..models import MentionItem
from ..models import MentionMetadata
from ..models import MentionSearchContext
from ..models import MentionSearchResult
from ..provider import MentionProvider
from ..provider import empty_result
from ..provider import failed_result
from ..tokens import MentionPrefix
from ..utils.error_format import format_error_message
from .base import bounded_result
from .base import rank_items

logger = logging.getLogger(__name__)

MCP_TOOL_PREFIX = "mcp"
MCP_SEPARATOR = "__"


class ToolData(BaseModel):
    full_name: str
    tool_name: str
    server_name: str
    display_name: str


def format_tool_name(tool_name: str) -> str:
    """
    Readable name for a snake_case tool.

    Examples:
        >>> format_tool_name("get_design_context")
        'Get Design Context'
    """
    spaced = re.sub(r"\b\w", lambda m: m.group(0).upper(), tool_name.replace("_", " "))
    return " ".join(spaced.split())


def parse_tool_name(full_name: str) -> ToolData | None:
    """Split ``mcp__<server>__<tool>``; None if it does not follow that shape."""
    parts = full_name.split(MCP_SEPARATOR)
    if len(parts) < 3 or parts[0] != MCP_TOOL_PREFIX:
        return None

    server_name = parts[1]
    tool_name = MCP_SEPARATOR.join(parts[2:])
    if not server_name or not tool_name:
        return None

    return ToolData(
        full_name=full_name,
        tool_name=tool_name,
        server_name=server_name,
        display_name=format_tool_name(tool_name),
    )


def connected_tools(context: MentionSearchContext) -> list[ToolData]:
    """Tools from the context whose server is connected."""
    if not context.mcp_tools or not context.mcp_servers:
        return []

    connected = {server.name for server in context.mcp_servers if server.status == "connected"}
    tools = []
    for full_name in context.mcp_tools:
        tool = parse_tool_name(full_name)
        if tool is not None and tool.server_name in connected:
            tools.append(tool)
    return tools


class ToolsProvider(MentionProvider):
    """Mentions of MCP tools from connected servers."""

    id = "tools"
    name = "MCP Tools"
    category = MentionCategory(id="tools", label="MCP Tools", priority=60)
    priority = 60

    async def search(self, context: MentionSearchContext) -> MentionSearchResult:
        started = time.perf_counter()

        if context.signal.is_cancelled:
            return empty_result()

        try:
            tools = connected_tools(context)
        except Exception as e:
            logger.error(f"Reading MCP tools from context failed: {format_error_message(e)}")
            return failed_result("Failed to load MCP tools", started)

        items = rank_items([self._item(tool) for tool in tools], context.query)
        return bounded_result(items, context, started, total_count=len(tools))

    def deserialize(self, token: str) -> MentionItem | None:
        if not token.startswith(MentionPrefix.TOOL.value):
            return None
        tool = parse_tool_name(token[len(MentionPrefix.TOOL.value) :])
        if tool is None:
            return None
        return self._item(tool)

    def is_available(self, context: MentionSearchContext | None = None) -> bool:
        return context is not None and bool(context.mcp_tools) and bool(context.mcp_servers)

    def _item(self, tool: ToolData) -> MentionItem:
        return MentionItem(
            id=f"{MentionPrefix.TOOL.value}{tool.full_name}",
            label=tool.display_name,
            description=f"{tool.server_name} / {tool.tool_name}",
            icon="tool",
            data=tool,
            keywords=[tool.tool_name, tool.server_name, tool.full_name],
            metadata=MentionMetadata(type="tool"),
        )
