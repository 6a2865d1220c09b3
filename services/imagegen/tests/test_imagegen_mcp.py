from __future__ import annotations

import asyncio

import pytest

pytest.importorskip("mcp")

from mcp.server.fastmcp.exceptions import ToolError  # noqa: E402

from services.imagegen.app import mcp as mcp_module  # noqa: E402
from services.imagegen.imagegen_core import GenerationOutcome, ImageGenerationService, Scheduler  # noqa: E402


def _server(make_config, make_client, fake_clock, **client_kwargs):
    client = make_client(**client_kwargs)
    service = ImageGenerationService(make_config(), client=client, clock=fake_clock)
    return mcp_module.create_mcp_server(service), client


def test_tools_registered_with_camel_case_inputs(make_config, make_client, fake_clock) -> None:
    server, _ = _server(make_config, make_client, fake_clock)
    tools = {tool.name: tool for tool in asyncio.run(server.list_tools())}

    assert set(tools) == {"generate_image", "get_generation_status"}
    properties = tools["generate_image"].inputSchema["properties"]
    for name in ("prompt", "negativePrompt", "cfgScale", "clipSkip", "additionalNetworks", "wait"):
        assert name in properties
    assert tools["generate_image"].inputSchema["required"] == ["prompt"]


def test_failure_becomes_tool_error_with_kind(make_config, make_client, fake_clock) -> None:
    server, client = _server(make_config, make_client, fake_clock)

    with pytest.raises(ToolError, match="validation_error"):
        asyncio.run(server.call_tool("generate_image", {"prompt": "fox", "width": 500}))
    assert client.submitted == []


def test_unwrap_outcome() -> None:
    assert mcp_module.unwrap_outcome(GenerationOutcome.success({"remoteUrl": "u"})) == {"remoteUrl": "u"}
    with pytest.raises(RuntimeError, match="^timeout: gave up$"):
        mcp_module.unwrap_outcome(GenerationOutcome.failure("timeout", "gave up"))


def test_build_generation_input_drops_unset_values() -> None:
    assert mcp_module.build_generation_input(prompt="fox", steps=None, wait=False) == {
        "prompt": "fox",
        "wait": False,
    }


@pytest.mark.parametrize("steps", [True, 20.5, "20"])
def test_loose_numbers_reach_request_validator(make_config, make_client, fake_clock, steps) -> None:
    server, client = _server(make_config, make_client, fake_clock)

    with pytest.raises(ToolError) as excinfo:
        asyncio.run(server.call_tool("generate_image", {"prompt": "fox", "steps": steps, "wait": False}))
    assert "validation_error: steps" in str(excinfo.value)
    assert client.submitted == []


def test_valid_arguments_submitted_unchanged(make_config, make_client, fake_clock) -> None:
    server, client = _server(make_config, make_client, fake_clock)

    asyncio.run(
        server.call_tool(
            "generate_image",
            {"prompt": "fox", "steps": 30, "cfgScale": 6.5, "scheduler": "DPM2Karras", "wait": False},
        )
    )
    params = client.submitted[0][0]["params"]
    assert (params["steps"], params["cfgScale"], params["scheduler"]) == (30, 6.5, "DPM2Karras")
    assert client.queries == []


def test_schema_advertises_scheduler_values_and_ranges(make_config, make_client, fake_clock) -> None:
    server, _ = _server(make_config, make_client, fake_clock)
    tools = {tool.name: tool for tool in asyncio.run(server.list_tools())}
    properties = tools["generate_image"].inputSchema["properties"]

    assert properties["scheduler"]["enum"] == [item.value for item in Scheduler]
    assert properties["steps"]["type"] == "integer"
    assert (properties["steps"]["minimum"], properties["steps"]["maximum"]) == (1, 100)
    assert properties["width"]["multipleOf"] == 8
    assert properties["cfgScale"]["type"] == "number"
    assert properties["wait"]["type"] == "boolean"


def test_status_tool_rejects_non_string_token(make_config, make_client, fake_clock) -> None:
    server, client = _server(make_config, make_client, fake_clock)

    with pytest.raises(ToolError, match="validation_error: token"):
        asyncio.run(server.call_tool("get_generation_status", {"token": 42}))
    assert client.queries == []
