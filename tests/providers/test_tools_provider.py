"""Tests for ToolsProvider and MCP tool name helpers."""

import pytest

from amplifier_mentions.models import McpServerInfo
from amplifier_mentions.models import MentionSearchContext
from amplifier_mentions.providers.tools import ToolsProvider
from amplifier_mentions.providers.tools import connected_tools
from amplifier_mentions.providers.tools import format_tool_name
from amplifier_mentions.providers.tools import parse_tool_name


@pytest.fixture
def figma_context():
    def build(query=""):
        return MentionSearchContext(
            query=query,
            mcp_tools=["mcp__figma__get_design_context", "mcp__figma__get_screenshot", "mcp__jira__create_issue"],
            mcp_servers=[
                McpServerInfo(name="figma", status="connected"),
                McpServerInfo(name="jira", status="disconnected"),
            ],
        )

    return build


class TestToolNames:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("get_design_context", "Get Design Context"),
            ("screenshot", "Screenshot"),
            ("list__nested_name", "List Nested Name"),
        ],
    )
    def test_format_tool_name(self, raw, expected):
        assert format_tool_name(raw) == expected

    def test_parse_tool_name(self):
        tool = parse_tool_name("mcp__figma__get_design_context")

        assert tool.server_name == "figma"
        assert tool.tool_name == "get_design_context"
        assert tool.display_name == "Get Design Context"

    def test_parse_keeps_separator_in_tool_part(self):
        assert parse_tool_name("mcp__srv__a__b").tool_name == "a__b"

    @pytest.mark.parametrize("name", ["figma__get", "mcp__figma", "mcp____tool", "other__figma__tool"])
    def test_parse_rejects(self, name):
        assert parse_tool_name(name) is None

    def test_connected_tools_filters_servers(self, figma_context):
        tools = connected_tools(figma_context())
        assert [t.full_name for t in tools] == ["mcp__figma__get_design_context", "mcp__figma__get_screenshot"]


class TestToolsProvider:
    """Test searching tools pushed through the context."""

    @pytest.mark.asyncio
    async def test_search_matches_display_name(self, figma_context):
        result = await ToolsProvider().search(figma_context("design"))

        assert len(result.items) == 1
        item = result.items[0]
        assert item.id == "tool:mcp__figma__get_design_context"
        assert item.label == "Get Design Context"
        assert item.description == "figma / get_design_context"
        assert item.metadata.type == "tool"

    @pytest.mark.asyncio
    async def test_search_by_server_name(self, figma_context):
        result = await ToolsProvider().search(figma_context("figma"))
        assert len(result.items) == 2

    @pytest.mark.asyncio
    async def test_disconnected_server_tools_hidden(self, figma_context):
        result = await ToolsProvider().search(figma_context("issue"))
        assert result.items == []

    @pytest.mark.asyncio
    async def test_empty_query_lists_connected(self, figma_context):
        result = await ToolsProvider().search(figma_context())

        assert len(result.items) == 2
        assert result.total_count == 2

    def test_availability(self, figma_context):
        provider = ToolsProvider()
        assert provider.is_available(figma_context()) is True
        assert provider.is_available(MentionSearchContext(mcp_tools=["mcp__a__b"])) is False
        assert provider.is_available(MentionSearchContext()) is False
        assert provider.is_available(None) is False

    def test_deserialize(self):
        provider = ToolsProvider()

        item = provider.deserialize("tool:mcp__figma__get_screenshot")

        assert item.label == "Get Screenshot"
        assert item.data.server_name == "figma"
        assert provider.deserialize("tool:not_a_tool") is None
        assert provider.deserialize("file:mcp__figma__x") is None
