from __future__ import annotations

import asyncio
from typing import Annotated, Any, Dict, Iterable

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import TransportSecuritySettings
from pydantic import WithJsonSchema

from libs.core import logging as core_logging
from services.imagegen.imagegen_core import GenerationOutcome, ImageGenerationService, Scheduler

LOGGER = core_logging.get_logger("imagegen")

SERVER_NAME = "civitai-image-generator"


def _passthrough(schema: Dict[str, Any]) -> Any:
    # FastMCP only advertises the schema; values reach validate_request unconverted.
    return Annotated[Any, WithJsonSchema(schema)]


StringArg = _passthrough({"type": "string"})
SchedulerArg = _passthrough({"type": "string", "enum": [item.value for item in Scheduler]})
StepsArg = _passthrough({"type": "integer", "minimum": 1, "maximum": 100})
CfgScaleArg = _passthrough({"type": "number", "minimum": 1, "maximum": 30})
DimensionArg = _passthrough({"type": "integer", "minimum": 64, "maximum": 1024, "multipleOf": 8})
SeedArg = _passthrough({"type": "integer", "minimum": -1})
ClipSkipArg = _passthrough({"type": "integer", "minimum": 1, "maximum": 10})
NetworksArg = _passthrough(
    {
        "type": "object",
        "additionalProperties": {
            "type": "object",
            "properties": {
                "strength": {"type": "number"},
                "triggerWord": {"type": "string"},
            },
            "additionalProperties": False,
        },
    }
)
BooleanArg = _passthrough({"type": "boolean"})


def unwrap_outcome(outcome: GenerationOutcome) -> Dict[str, Any]:
    if outcome.ok:
        return dict(outcome.result or {})
    # FastMCP reports a raised tool exception as an error result carrying this text.
    raise RuntimeError(outcome.error_text())


def build_generation_input(**params: Any) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


def create_mcp_server(
    service: ImageGenerationService, allowed_hosts: Iterable[str] | None = None
) -> FastMCP:
    hosts = list(allowed_hosts or service.config.allowed_hosts)
    mcp = FastMCP(
        SERVER_NAME,
        transport_security=TransportSecuritySettings(allowed_hosts=hosts),
    )

    @mcp.tool()
    async def generate_image(
        prompt: StringArg,
        negativePrompt: StringArg = None,  # noqa: N803
        scheduler: SchedulerArg = None,
        steps: StepsArg = None,
        cfgScale: CfgScaleArg = None,  # noqa: N803
        width: DimensionArg = None,
        height: DimensionArg = None,
        seed: SeedArg = None,
        clipSkip: ClipSkipArg = None,  # noqa: N803
        additionalNetworks: NetworksArg = None,  # noqa: N803
        model: StringArg = None,
        wait: BooleanArg = None,
    ) -> Dict[str, Any]:
        """Generate an image with Civitai from a text prompt.

        steps 1-100 (default 20), cfgScale 1-30 (default 7), width/height
        64-1024 and a multiple of 8 (default 512x768), clipSkip 1-10
        (default 2), seed -1 for random. additionalNetworks maps a network
        URN to {strength, triggerWord}. model overrides the configured model
        URN. With wait=false the job token is returned without polling.
        """
        LOGGER.info(
            "mcp_generate_image_started",
            prompt_len=len(prompt) if isinstance(prompt, str) else None,
            wait=wait,
        )
        raw = build_generation_input(
            prompt=prompt,
            negativePrompt=negativePrompt,
            scheduler=scheduler,
            steps=steps,
            cfgScale=cfgScale,
            width=width,
            height=height,
            seed=seed,
            clipSkip=clipSkip,
            additionalNetworks=additionalNetworks,
            model=model,
            wait=wait,
        )
        outcome = await asyncio.to_thread(service.execute, raw)
        return unwrap_outcome(outcome)

    @mcp.tool()
    async def get_generation_status(token: StringArg) -> Dict[str, Any]:
        """Check the status of a Civitai job submitted with wait=false."""
        outcome = await asyncio.to_thread(service.execute_check, token)
        return unwrap_outcome(outcome)

    return mcp


def create_mcp_asgi_app(service: ImageGenerationService):
    mcp = create_mcp_server(service)
    mcp_app = mcp.streamable_http_app()
    session_manager = mcp.session_manager
    return mcp_app, session_manager
