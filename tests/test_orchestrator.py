from __future__ import annotations

import pytest

from mindful_poster.exceptions import DecodeError, InvalidPromptError, MissingCredentialError, TransportError
from mindful_poster.orchestrator import GenerationOrchestrator
from mindful_poster.schema import GenerationResponse, PosterSelections
from mindful_poster.shard import constants as C
from mindful_poster.shard.enums import AspectRatio, ContentSeries, GenerationModelId, GenerationStatus


def _response(*items: tuple[str | None, float | None]) -> GenerationResponse:
    data = []
    for index, (url, cost) in enumerate(items):
        artifact = {"taskType": "imageInference", "taskUUID": "task", "imageUUID": f"img-{index}", "seed": 100 + index}
        if url is not None:
            artifact["imageURL"] = url
        if cost is not None:
            artifact["cost"] = cost
        data.append(artifact)
    return GenerationResponse.model_validate({"data": data})


def _track(orchestrator: GenerationOrchestrator) -> list:
    states: list = []
    orchestrator.subscribe(states.append)
    return states


@pytest.mark.asyncio
async def test_single_generation_stores_record(keyed_state, engine, png_bytes):
    engine.response = _response(("https://img.test/a.png", 0.003))
    engine.images = {"https://img.test/a.png": png_bytes}
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)
    states = _track(orchestrator)

    selections = PosterSelections(series=ContentSeries.WEEKEND_WELLNESS, aspect_ratio=AspectRatio.LANDSCAPE)
    records = await orchestrator.generate_poster("forest morning", selections)

    assert len(records) == 1
    record = records[0]
    assert record.prompt == "forest morning"
    assert record.image_data == png_bytes
    assert record.content_series == ContentSeries.WEEKEND_WELLNESS
    assert record.aspect_ratio == AspectRatio.LANDSCAPE
    assert record.seed == 100
    assert record.cost == 0.003
    assert record.model == GenerationModelId.DREAM_SHAPER.value

    assert [s.status for s in states] == [GenerationStatus.IN_PROGRESS, GenerationStatus.IN_PROGRESS, GenerationStatus.COMPLETED]
    assert [s.progress for s in states[:2]] == [0.1, 0.5]
    assert orchestrator.state.record == record
    assert keyed_state.gallery[0] == record
    assert engine.requests[0].number_results == 1


@pytest.mark.asyncio
async def test_batch_drops_artifacts_without_url(keyed_state, engine, png_bytes):
    engine.response = _response(
        ("https://img.test/1.png", 0.001),
        (None, 0.001),
        ("https://img.test/3.png", 0.001),
        (None, 0.001),
    )
    engine.images = {"https://img.test/1.png": png_bytes, "https://img.test/3.png": png_bytes}
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    records = await orchestrator.generate_poster("quiet tea ceremony", PosterSelections(), batch=True)

    assert engine.requests[0].number_results == C.DEFAULT_BATCH_COUNT
    assert len(records) == 2
    assert len(keyed_state.gallery) == 2
    assert orchestrator.state.status == GenerationStatus.COMPLETED
    assert orchestrator.state.record == records[0]
    assert engine.fetched == ["https://img.test/1.png", "https://img.test/3.png"]
    # cost covers every returned artifact, not just the stored ones
    assert keyed_state.request_log.entries[0].cost == pytest.approx(0.004)


@pytest.mark.asyncio
async def test_failed_fetch_drops_only_that_artifact(keyed_state, engine, png_bytes):
    engine.response = _response(("https://img.test/ok.png", None), ("https://img.test/gone.png", None), ("data:image/png;base64,AAAA", None))
    engine.images = {"https://img.test/ok.png": png_bytes}
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    records = await orchestrator.generate_poster("sunset pier", batch=True)

    assert len(records) == 1
    assert records[0].image_url == "https://img.test/ok.png"
    assert engine.fetched == ["https://img.test/ok.png", "https://img.test/gone.png"]


@pytest.mark.asyncio
async def test_no_retrievable_images_fails(keyed_state, engine):
    engine.response = _response((None, 0.002), ("https://img.test/gone.png", 0.002))
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    records = await orchestrator.generate_poster("empty result", batch=True)

    assert records == []
    assert keyed_state.gallery == []
    assert orchestrator.state.status == GenerationStatus.FAILED
    assert orchestrator.state.error.code == "no_images_generated"
    entry = keyed_state.request_log.entries[0]
    assert entry.response is not None
    assert entry.cost == pytest.approx(0.004)


@pytest.mark.asyncio
async def test_log_entry_and_daily_cost_after_success(keyed_state, engine, png_bytes):
    engine.response = _response(("https://img.test/a.png", 1.5))
    engine.images = {"https://img.test/a.png": png_bytes}
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    await orchestrator.generate_poster("morning light")
    engine.response = _response(("https://img.test/a.png", 2.0))
    await orchestrator.generate_poster("evening light")

    assert keyed_state.daily_cost() == pytest.approx(3.5)
    entries = keyed_state.request_log.entries
    assert len(entries) == 2
    assert entries[0].request.positive_prompt.find("evening light") >= 0
    assert entries[0].error is None
    assert entries[0].execution_time >= 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [TransportError(500, "internal error"), TransportError(None, "timed out"), DecodeError("not json")],
)
async def test_transport_failure_logs_without_cost(keyed_state, engine, error):
    keyed_state.request_log.cost_counter.add(1.0)
    engine.error = error
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    records = await orchestrator.generate_poster("stormy sea")

    assert records == []
    assert keyed_state.gallery == []
    assert engine.fetched == []
    assert orchestrator.state.status == GenerationStatus.FAILED
    assert orchestrator.state.error.code == error.code
    entry = keyed_state.request_log.entries[0]
    assert entry.error == str(error)
    assert entry.response is None
    assert entry.cost is None
    assert entry.request.task_uuid == engine.requests[0].task_uuid
    assert keyed_state.daily_cost() == 1.0


@pytest.mark.asyncio
async def test_auth_failure_message_gets_credential_tip(keyed_state, engine):
    engine.error = TransportError(401, "Invalid API key")
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    await orchestrator.generate_poster("stormy sea")

    assert "set_api_key" in orchestrator.state.error.message


@pytest.mark.asyncio
async def test_invalid_prompt_raises_before_transmit(keyed_state, engine):
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    with pytest.raises(InvalidPromptError):
        await orchestrator.generate_poster("hi")

    assert engine.requests == []
    assert orchestrator.state.status == GenerationStatus.FAILED
    assert orchestrator.state.error.code == "invalid_prompt"
    assert len(keyed_state.request_log) == 0


@pytest.mark.asyncio
async def test_missing_credential_raises_before_transmit(app_state, engine):
    orchestrator = GenerationOrchestrator(app_state, engine=engine)

    with pytest.raises(MissingCredentialError):
        await orchestrator.generate_poster("calm lake")

    assert engine.requests == []
    assert orchestrator.state.error.code == "missing_credential"


@pytest.mark.asyncio
async def test_engine_factory_receives_api_key(keyed_state, engine, png_bytes):
    engine.response = _response(("https://img.test/a.png", None))
    engine.images = {"https://img.test/a.png": png_bytes}
    keys: list[str] = []

    def factory(api_key: str):
        keys.append(api_key)
        return engine

    orchestrator = GenerationOrchestrator(keyed_state, engine_factory=factory)
    await orchestrator.generate_poster("calm lake")

    assert keys == ["test-key"]


@pytest.mark.asyncio
async def test_regenerate_reuses_prompt_with_current_selections(keyed_state, engine, png_bytes):
    engine.response = _response(("https://img.test/a.png", None))
    engine.images = {"https://img.test/a.png": png_bytes}
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)

    original = (await orchestrator.generate_poster("  lotus on still water ", PosterSelections(series=ContentSeries.MINDFUL_MOMENT)))[0]
    current = PosterSelections(series=ContentSeries.MONDAY_MOTIVATION, model=GenerationModelId.SDXL_BASE, batch_count=4)
    regenerated = (await orchestrator.regenerate(original, current))[0]

    assert regenerated.prompt == original.prompt == "  lotus on still water "
    assert regenerated.id != original.id
    second_request = engine.requests[1]
    assert "  lotus on still water " in second_request.positive_prompt
    assert second_request.model == GenerationModelId.SDXL_BASE.value
    assert second_request.number_results == 1
    assert regenerated.content_series == ContentSeries.MONDAY_MOTIVATION
    assert [r.id for r in keyed_state.gallery] == [regenerated.id, original.id]


@pytest.mark.asyncio
async def test_next_run_restarts_from_in_progress(keyed_state, engine, png_bytes):
    engine.error = TransportError(503, "busy")
    orchestrator = GenerationOrchestrator(keyed_state, engine=engine)
    await orchestrator.generate_poster("first try")
    assert orchestrator.state.status == GenerationStatus.FAILED

    engine.error = None
    engine.response = _response(("https://img.test/a.png", None))
    engine.images = {"https://img.test/a.png": png_bytes}
    states = _track(orchestrator)
    await orchestrator.generate_poster("second try")

    assert states[0].status == GenerationStatus.IN_PROGRESS
    assert states[0].progress == 0.1
    assert orchestrator.state.status == GenerationStatus.COMPLETED


def test_subscribe_unsubscribe_and_reset(keyed_state):
    orchestrator = GenerationOrchestrator(keyed_state)
    states: list = []
    unsubscribe = orchestrator.subscribe(states.append)
    orchestrator.reset()
    unsubscribe()
    orchestrator.reset()
    assert len(states) == 1
    assert orchestrator.state.status == GenerationStatus.IDLE
