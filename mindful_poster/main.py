from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Annotated, Any, NoReturn

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from fastmcp.utilities.types import Image
from loguru import logger
from pydantic import Field

from .engines.base_engine import ImageEngine
from .engines.catalog import ModelCatalog
from .exceptions import ImageGenerationError
from .orchestrator import GenerationOrchestrator
from .schema import (
    CatalogResponse,
    Error,
    GenerationRecord,
    PosterDescriptor,
    PosterSelections,
    PosterToolStructured,
    RequestLogResponse,
)
from .settings import get_settings
from .shard import constants as C
from .shard.enums import AspectRatio, ContentSeries, GenerationModelId, GenerationStatus, StylePreset
from .shard.instructions import SERVER_INSTRUCTIONS, TOOL_DESCRIPTIONS
from .state import AppState
from .storage import JsonFileStore
from .utils.image_utils import export_record, sniff_mime
from .utils.prompt import preset_prompt, prompt_suggestions, series_emblem, series_for_today

app = FastMCP("mindful-poster", instructions=SERVER_INSTRUCTIONS)

_app_state: AppState | None = None
_orchestrator: GenerationOrchestrator | None = None


def configure(app_state: AppState, engine: ImageEngine | None = None) -> GenerationOrchestrator:
    """Bind the tool surface to an explicit application state (and optional engine)."""
    global _app_state, _orchestrator
    _app_state = app_state
    _orchestrator = GenerationOrchestrator(app_state, engine=engine)
    return _orchestrator


def get_app_state() -> AppState:
    if _app_state is None:
        raise ToolError("Server state is not configured.")
    return _app_state


def get_orchestrator() -> GenerationOrchestrator:
    get_app_state()
    assert _orchestrator is not None
    return _orchestrator


def _handle_image_generation_error(e: Exception) -> NoReturn:
    """Convert an exception to a ToolError for proper MCP error handling."""
    if isinstance(e, ToolError):
        raise e
    if isinstance(e, ImageGenerationError):
        raise ToolError(e.user_message)

    logger.error(f"Unexpected error: {type(e).__name__}: {e}")
    raise ToolError("An unexpected error occurred. Please try again.")


# ------------------------------ result helpers ------------------------------ #
def describe_record(record: GenerationRecord, file_path: str | None = None) -> PosterDescriptor:
    return PosterDescriptor(
        id=record.id,
        prompt=record.prompt,
        model=record.model,
        model_name=ModelCatalog.display_name(record.model),
        image_url=record.image_url,
        seed=record.seed,
        cost=record.cost,
        content_series=record.content_series,
        aspect_ratio=record.aspect_ratio,
        generated_at=record.generated_at,
        has_image_data=record.image_data is not None,
        file_path=file_path,
    )


def record_to_image(record: GenerationRecord) -> Any:
    """Build an MCP image content block from a record's bytes."""
    assert record.image_data is not None
    fmt = sniff_mime(record.image_data).split("/", 1)[1]
    return Image(data=record.image_data, format=fmt).to_image_content()


def build_generation_result(orchestrator: GenerationOrchestrator, records: list[GenerationRecord]) -> ToolResult:
    """Convert a finished generation into image contents plus structured metadata."""
    state = orchestrator.state
    structured = PosterToolStructured(
        ok=state.status == GenerationStatus.COMPLETED,
        status=state.status,
        image_count=len(records),
        images=[describe_record(r) for r in records],
        meta={"daily_cost": orchestrator.app_state.daily_cost()},
        error=state.error,
    )
    contents = [record_to_image(r) for r in records if r.image_data]
    return ToolResult(content=contents, structured_content=structured.model_dump(mode="json"))


def _selections(
    app_state: AppState,
    *,
    series: ContentSeries | None,
    aspect_ratio: AspectRatio,
    model: GenerationModelId,
    advanced: bool | None,
    style: StylePreset,
    negative_prompt: str | None,
    seed: str | None,
    batch_count: int = C.DEFAULT_BATCH_COUNT,
) -> PosterSelections:
    return PosterSelections(
        series=series or C.DEFAULT_SERIES,
        aspect_ratio=aspect_ratio,
        model=model,
        advanced_mode=app_state.preferences.advanced_controls if advanced is None else advanced,
        style=style,
        negative_prompt=negative_prompt or "",
        seed=seed or "",
        batch_count=batch_count,
    )


def _find_or_raise(app_state: AppState, poster_id: str) -> GenerationRecord:
    record = app_state.find_record(poster_id)
    if record is None:
        raise ToolError(f"Poster '{poster_id}' not found.")
    return record


# --------------------------------- tools ---------------------------------- #
SeriesArg = Annotated[ContentSeries | None, Field(description="Content series theme, e.g. 'Monday Motivation'. Defaults to Daily Affirmation.")]
AspectArg = Annotated[AspectRatio, Field(description="Aspect ratio: '1:1' | '4:5' | '9:16' | '16:9'.")]
ModelArg = Annotated[GenerationModelId, Field(description="Model id from get_model_catalog.")]
AdvancedArg = Annotated[bool | None, Field(description="Apply style, negative_prompt and seed. Defaults to the advanced controls preference.")]
StyleArg = Annotated[StylePreset, Field(description="Style preset (advanced only).")]
NegativeArg = Annotated[str | None, Field(description="Extra negative prompt text (advanced only).")]
SeedArg = Annotated[str | None, Field(description="Integer seed for reproducible results (advanced only).")]


@app.tool(
    name="generate_poster",
    description=TOOL_DESCRIPTIONS["generate_poster"],
    annotations={
        "title": "Generate Poster",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def mcp_generate_poster(
    prompt: Annotated[str, Field(description="Short description of the scene, at least 3 characters.")],
    series: SeriesArg = None,
    aspect_ratio: AspectArg = C.DEFAULT_ASPECT_RATIO,
    model: ModelArg = C.DEFAULT_MODEL,
    advanced: AdvancedArg = None,
    style: StyleArg = C.DEFAULT_STYLE,
    negative_prompt: NegativeArg = None,
    seed: SeedArg = None,
    ctx: Context | None = None,
) -> ToolResult:
    """Generate a single poster."""
    try:
        orchestrator = get_orchestrator()
        selections = _selections(
            orchestrator.app_state,
            series=series,
            aspect_ratio=aspect_ratio,
            model=model,
            advanced=advanced,
            style=style,
            negative_prompt=negative_prompt,
            seed=seed,
        )
        records = await orchestrator.generate_poster(prompt, selections)
        return build_generation_result(orchestrator, records)
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="generate_poster_batch",
    description=TOOL_DESCRIPTIONS["generate_poster_batch"],
    annotations={
        "title": "Generate Poster Batch",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def mcp_generate_poster_batch(
    prompt: Annotated[str, Field(description="Short description of the scene, at least 3 characters.")],
    count: Annotated[int, Field(ge=1, le=C.MAX_BATCH_COUNT, description="Number of variations (1-4).")] = C.DEFAULT_BATCH_COUNT,
    series: SeriesArg = None,
    aspect_ratio: AspectArg = C.DEFAULT_ASPECT_RATIO,
    model: ModelArg = C.DEFAULT_MODEL,
    advanced: AdvancedArg = None,
    style: StyleArg = C.DEFAULT_STYLE,
    negative_prompt: NegativeArg = None,
    seed: SeedArg = None,
    ctx: Context | None = None,
) -> ToolResult:
    """Generate several variations in one request."""
    try:
        orchestrator = get_orchestrator()
        selections = _selections(
            orchestrator.app_state,
            series=series,
            aspect_ratio=aspect_ratio,
            model=model,
            advanced=advanced,
            style=style,
            negative_prompt=negative_prompt,
            seed=seed,
            batch_count=count,
        )
        records = await orchestrator.generate_poster(prompt, selections, batch=True)
        return build_generation_result(orchestrator, records)
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="regenerate_poster",
    description=TOOL_DESCRIPTIONS["regenerate_poster"],
    annotations={
        "title": "Regenerate Poster",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def mcp_regenerate_poster(
    poster_id: Annotated[str, Field(description="Id of a stored poster whose prompt is reused.")],
    series: SeriesArg = None,
    aspect_ratio: AspectArg = C.DEFAULT_ASPECT_RATIO,
    model: ModelArg = C.DEFAULT_MODEL,
    advanced: AdvancedArg = None,
    style: StyleArg = C.DEFAULT_STYLE,
    negative_prompt: NegativeArg = None,
    seed: SeedArg = None,
    ctx: Context | None = None,
) -> ToolResult:
    try:
        orchestrator = get_orchestrator()
        record = _find_or_raise(orchestrator.app_state, poster_id)
        selections = _selections(
            orchestrator.app_state,
            series=series,
            aspect_ratio=aspect_ratio,
            model=model,
            advanced=advanced,
            style=style,
            negative_prompt=negative_prompt,
            seed=seed,
        )
        records = await orchestrator.regenerate(record, selections)
        return build_generation_result(orchestrator, records)
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="list_posters",
    description=TOOL_DESCRIPTIONS["list_posters"],
    annotations={
        "title": "List Posters",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_list_posters(
    limit: Annotated[int | None, Field(ge=1, description="Maximum number of posters to return.")] = None,
    series: Annotated[ContentSeries | None, Field(description="Only posters from this series.")] = None,
) -> PosterToolStructured:
    try:
        records = get_app_state().gallery
        if series is not None:
            records = [r for r in records if r.content_series == series]
        if limit is not None:
            records = records[:limit]
        return PosterToolStructured(status=GenerationStatus.COMPLETED, image_count=len(records), images=[describe_record(r) for r in records])
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="delete_poster",
    description=TOOL_DESCRIPTIONS["delete_poster"],
    annotations={
        "title": "Delete Poster",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_delete_poster(
    poster_id: Annotated[str, Field(description="Id of the poster to delete.")],
) -> PosterToolStructured:
    try:
        if not get_app_state().delete_record(poster_id):
            return PosterToolStructured(
                ok=False,
                status=GenerationStatus.FAILED,
                error=Error(code=C.ERROR_CODE_NOT_FOUND, message=f"Poster '{poster_id}' not found."),
            )
        return PosterToolStructured(status=GenerationStatus.COMPLETED, meta={"deleted": poster_id})
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="export_poster",
    description=TOOL_DESCRIPTIONS["export_poster"],
    annotations={
        "title": "Export Poster",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def mcp_export_poster(
    poster_id: Annotated[str, Field(description="Id of the poster to export.")],
    directory: Annotated[
        str | None,
        Field(description="Directory to write the image into. Defaults to EXPORT_DIRECTORY, then a temporary directory."),
    ] = None,
    share: Annotated[bool, Field(description="Also return the image as MCP image content.")] = False,
) -> ToolResult:
    try:
        app_state = get_app_state()
        record = _find_or_raise(app_state, poster_id)
        if not record.image_data:
            raise ToolError(f"Poster '{poster_id}' has no image data to export.")
        file_path = await asyncio.to_thread(export_record, record, directory or app_state.settings.export_directory)
        structured = PosterToolStructured(
            ok=file_path is not None,
            status=GenerationStatus.COMPLETED if file_path else GenerationStatus.FAILED,
            image_count=1,
            images=[describe_record(record, file_path=file_path)],
            error=None if file_path else Error(code=C.ERROR_CODE_PERSISTENCE, message="Failed to write the image file."),
        )
        contents = [record_to_image(record)] if share else []
        return ToolResult(content=contents, structured_content=structured.model_dump(mode="json"))
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="get_model_catalog",
    description=TOOL_DESCRIPTIONS["get_model_catalog"],
    annotations={
        "title": "Model Catalog",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_get_model_catalog() -> CatalogResponse:
    return CatalogResponse(
        models=ModelCatalog.list_models(),
        aspect_ratios={ratio.value: ratio.dimensions for ratio in AspectRatio},
        series=list(ContentSeries),
        styles=list(StylePreset),
    )


@app.tool(
    name="get_request_logs",
    description=TOOL_DESCRIPTIONS["get_request_logs"],
    annotations={
        "title": "Request Logs",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_get_request_logs(
    limit: Annotated[int | None, Field(ge=1, le=C.LOG_CAPACITY, description="Maximum number of entries to return.")] = None,
) -> RequestLogResponse:
    try:
        app_state = get_app_state()
        if not app_state.preferences.developer_mode:
            raise ToolError("Request logs are only available in developer mode; enable it with set_preferences.")
        entries = app_state.request_log.entries
        if limit is not None:
            entries = entries[:limit]
        return RequestLogResponse(daily_cost=app_state.daily_cost(), entries=entries)
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="get_prompt_suggestions",
    description=TOOL_DESCRIPTIONS["get_prompt_suggestions"],
    annotations={
        "title": "Prompt Suggestions",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_get_prompt_suggestions() -> dict[str, Any]:
    today = series_for_today()
    return {
        "today_series": today.value,
        "today_emblem": series_emblem(today),
        "suggestions": prompt_suggestions(),
        "series_prompts": {s.value: preset_prompt(s) for s in ContentSeries},
    }


@app.tool(
    name="set_api_key",
    description=TOOL_DESCRIPTIONS["set_api_key"],
    annotations={
        "title": "Set API Key",
        "readOnlyHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_set_api_key(
    api_key: Annotated[str, Field(description="Runware API key.")],
) -> dict[str, Any]:
    try:
        app_state = get_app_state()
        app_state.save_api_key(api_key)
        return {"ok": True, "has_api_key": app_state.has_api_key}
    except Exception as e:
        _handle_image_generation_error(e)


@app.tool(
    name="set_preferences",
    description=TOOL_DESCRIPTIONS["set_preferences"],
    annotations={
        "title": "Set Preferences",
        "readOnlyHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_set_preferences(
    developer_mode: Annotated[bool | None, Field(description="Enable request logs and cost tracking views.")] = None,
    advanced_controls: Annotated[bool | None, Field(description="Apply style, negative prompt and seed by default.")] = None,
) -> dict[str, Any]:
    app_state = get_app_state()
    if developer_mode is not None and developer_mode != app_state.preferences.developer_mode:
        app_state.toggle_developer_mode()
    if advanced_controls is not None and advanced_controls != app_state.preferences.advanced_controls:
        app_state.toggle_advanced_controls()
    return app_state.preferences.model_dump()


def main() -> None:
    parser = argparse.ArgumentParser(description="Mindful Poster MCP Server")
    # Only accept transports supported by FastMCP for server runs.
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse", "streamable-http"],
        help="Transport to use (stdio, sse, http, streamable-http). Default: stdio",
    )
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to listen on")
    args = parser.parse_args()

    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    transport = args.transport
    host = args.host
    port = args.port

    app_state = AppState.open(JsonFileStore(settings.store_path), settings)
    configure(app_state)
    logger.info(f"Starting mindful poster server on {host}:{port} with {transport} transport (store: {settings.store_path})")

    try:
        # stdio does not accept host/port
        http_transports = {"http", "sse", "streamable-http"}
        if transport in http_transports:
            app.run(transport=transport, host=host, port=port)
        else:
            app.run()
    finally:
        app_state.close()


if __name__ == "__main__":
    main()
