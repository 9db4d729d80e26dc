from __future__ import annotations

import base64

import pytest
from pydantic import TypeAdapter, ValidationError

from mindful_poster.schema import (
    GenerationRecord,
    GenerationRequest,
    GenerationResponse,
    GenerationState,
    ImageArtifact,
    LogEntry,
    PosterSelections,
)
from mindful_poster.shard.enums import AspectRatio, ContentSeries, GenerationStatus

SAMPLE_PNG_BYTES = base64.b64decode("iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQAB/9k3WQAAAABJRU5ErkJggg==")


def test_request_payload_uses_wire_names_and_omits_unset():
    request = GenerationRequest(
        task_uuid="abc",
        positive_prompt="calm",
        negative_prompt="busy",
        width=1024,
        height=576,
        model="runware:100@1",
        steps=25,
        cfg_scale=4.0,
        number_results=2,
    )
    assert request.to_payload() == {
        "taskType": "imageInference",
        "taskUUID": "abc",
        "positivePrompt": "calm",
        "negativePrompt": "busy",
        "width": 1024,
        "height": 576,
        "model": "runware:100@1",
        "steps": 25,
        "CFGScale": 4.0,
        "numberResults": 2,
    }

    minimal = GenerationRequest(task_uuid="xyz", positive_prompt="calm", model="google:4@1").to_payload()
    assert set(minimal) == {"taskType", "taskUUID", "positivePrompt", "model", "numberResults"}


def test_request_seed_included_when_set():
    request = GenerationRequest(positive_prompt="calm", model="runware:100@1", seed=7)
    assert request.to_payload()["seed"] == 7


@pytest.mark.parametrize("width", [100, 1000, 4096])
def test_request_rejects_invalid_dimensions(width: int):
    with pytest.raises(ValidationError):
        GenerationRequest(positive_prompt="calm", model="m", width=width, height=1024)


def test_request_requires_width_and_height_together():
    with pytest.raises(ValidationError):
        GenerationRequest(positive_prompt="calm", model="m", width=1024)


def test_request_is_frozen():
    request = GenerationRequest(positive_prompt="calm", model="m")
    with pytest.raises(ValidationError):
        request.model = "other"  # type: ignore[misc]


def test_response_parses_wire_shape_and_sums_cost():
    response = GenerationResponse.model_validate(
        {
            "data": [
                {"taskType": "imageInference", "taskUUID": "t", "imageURL": "https://x/1.png", "cost": 0.0026, "NSFWContent": False, "seed": 5},
                {"taskType": "imageInference", "taskUUID": "t", "imageUUID": "i2", "cost": 0.0014, "extra": "ignored"},
                {"taskType": "imageInference", "taskUUID": "t"},
            ]
        }
    )
    assert len(response.data) == 3
    assert response.data[0].image_url == "https://x/1.png"
    assert response.data[0].nsfw_content is False
    assert response.total_cost() == pytest.approx(0.004)


def test_response_without_costs_totals_zero():
    response = GenerationResponse(data=[ImageArtifact(task_type="imageInference", task_uuid="t")])
    assert response.total_cost() == 0.0


def test_response_requires_data():
    with pytest.raises(ValidationError):
        GenerationResponse.model_validate({"error": "nope"})


def test_record_from_artifact_and_json_roundtrip():
    art = ImageArtifact.model_validate({"taskType": "imageInference", "taskUUID": "t", "imageURL": "https://x/a.png", "seed": 11, "cost": 0.5})
    record = GenerationRecord.from_artifact(
        art,
        prompt="calm lake",
        model="runware:100@1",
        image_data=SAMPLE_PNG_BYTES,
        content_series=ContentSeries.MINDFUL_MOMENT,
        aspect_ratio=AspectRatio.STORY,
    )
    dumped = record.model_dump(mode="json", by_alias=True)
    assert dumped["imageData"] == base64.b64encode(SAMPLE_PNG_BYTES).decode("ascii")
    assert dumped["imageURL"] == "https://x/a.png"
    assert dumped["contentSeries"] == "Mindful Moment"
    assert dumped["aspectRatio"] == "9:16"

    restored = GenerationRecord.model_validate(dumped)
    assert restored == record
    assert restored.image_data == SAMPLE_PNG_BYTES


def test_record_without_aspect_ratio_defaults_to_square():
    stored = {"id": "r1", "prompt": "old", "generatedAt": "2024-01-01T00:00:00Z", "model": "runware:100@1"}
    record = GenerationRecord.model_validate(stored)
    assert record.aspect_ratio == AspectRatio.SQUARE
    assert record.image_data is None
    assert record.content_series is None


def test_log_entry_roundtrip_through_json():
    request = GenerationRequest(positive_prompt="calm", model="m")
    entry = LogEntry(request=request, error="HTTP 500: boom", execution_time=1.25)
    adapter = TypeAdapter(list[LogEntry])
    restored = adapter.validate_python(adapter.dump_python([entry], mode="json", by_alias=True))
    assert restored[0].request.task_uuid == request.task_uuid
    assert restored[0].cost is None
    assert restored[0].execution_time == 1.25


def test_generation_state_constructors():
    assert GenerationState.idle().status == GenerationStatus.IDLE
    progress = GenerationState.in_progress(0.5)
    assert progress.status == GenerationStatus.IN_PROGRESS and progress.progress == 0.5
    with pytest.raises(ValidationError):
        GenerationState.in_progress(1.5)


def test_selections_batch_bounds():
    assert PosterSelections().batch_count == 4
    with pytest.raises(ValidationError):
        PosterSelections(batch_count=0)
    with pytest.raises(ValidationError):
        PosterSelections(batch_count=5)
