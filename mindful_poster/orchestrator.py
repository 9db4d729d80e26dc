from __future__ import annotations

import time
from collections.abc import Callable

from loguru import logger

from .composer import compose_from_selections
from .engines.base_engine import EngineFactory, ImageEngine
from .engines.catalog import ModelCatalog
from .engines.runware import RunwareEngine
from .exceptions import (
    ArtifactFetchError,
    DecodeError,
    ImageGenerationError,
    InvalidPromptError,
    MissingCredentialError,
    NoImagesGeneratedError,
    TransportError,
    UnknownModelError,
)
from .schema import (
    Error,
    GenerationRecord,
    GenerationRequest,
    GenerationResponse,
    GenerationState,
    LogEntry,
    PosterSelections,
)
from .shard.enums import AspectRatio, ContentSeries
from .state import AppState
from .utils.error_helpers import augment_with_credential_tip
from .utils.image_utils import is_url
from .utils.prompt import render_generation_summary

StateListener = Callable[[GenerationState], None]

# Progress reported before and after the request is issued
_PROGRESS_STARTED = 0.1
_PROGRESS_ISSUED = 0.5


class GenerationOrchestrator:
    """Drives one generation: compose, transmit, fetch, persist, log.

    Every step runs sequentially in the calling coroutine. There is no lock;
    callers should not trigger a new generation while one is in progress.
    """

    def __init__(
        self,
        app_state: AppState,
        engine: ImageEngine | None = None,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        self.app_state = app_state
        self._engine = engine
        self._engine_factory: EngineFactory = engine_factory or (lambda api_key: RunwareEngine.from_settings(api_key, app_state.settings))
        self._state = GenerationState.idle()
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------
    @property
    def state(self) -> GenerationState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def reset(self) -> None:
        self._transition(GenerationState.idle())

    def _transition(self, new_state: GenerationState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    def _fail(self, exc: ImageGenerationError) -> None:
        self._transition(GenerationState.failed(Error(code=exc.code, message=augment_with_credential_tip(exc.user_message))))

    # ------------------------------------------------------------------
    # Engine resolution
    # ------------------------------------------------------------------
    def _resolve_engine(self) -> ImageEngine:
        api_key = self.app_state.api_key
        if not api_key:
            raise MissingCredentialError()
        if self._engine is not None:
            return self._engine
        return self._engine_factory(api_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def generate_poster(
        self,
        raw_prompt: str,
        selections: PosterSelections | None = None,
        *,
        batch: bool = False,
    ) -> list[GenerationRecord]:
        """Compose a request from the selections and run it.

        Raises:
            InvalidPromptError: Prompt too short; nothing is transmitted.
            MissingCredentialError: No API key configured; nothing is transmitted.
        """
        selections = selections or PosterSelections()
        try:
            request = compose_from_selections(raw_prompt, selections, batch=batch)
            engine = self._resolve_engine()
        except (InvalidPromptError, MissingCredentialError, UnknownModelError) as e:
            logger.info(f"Generation rejected before transmit: {e}")
            self._fail(e)
            raise

        logger.debug(
            render_generation_summary(
                original_prompt=raw_prompt,
                request=request,
                series=selections.series,
                style=selections.style if selections.advanced_mode else None,
            )
        )
        return await self.run(
            request,
            prompt=raw_prompt,
            series=selections.series,
            aspect_ratio=selections.aspect_ratio,
            engine=engine,
        )

    async def regenerate(self, record: GenerationRecord, selections: PosterSelections | None = None) -> list[GenerationRecord]:
        """Generate again from a stored poster's prompt using the current selections."""
        return await self.generate_poster(record.prompt, selections, batch=False)

    async def run(
        self,
        request: GenerationRequest,
        *,
        prompt: str,
        series: ContentSeries | None = None,
        aspect_ratio: AspectRatio = AspectRatio.SQUARE,
        engine: ImageEngine | None = None,
    ) -> list[GenerationRecord]:
        """Transmit a composed request and store every retrievable image.

        Transport and decode failures do not raise: they are logged, recorded
        in the request log and reflected as a failed state with an empty result.
        """
        engine = engine or self._resolve_engine()
        self._transition(GenerationState.in_progress(_PROGRESS_STARTED))
        started = time.monotonic()
        logger.info(f"Generating {request.number_results} image(s) with {ModelCatalog.display_name(request.model)} (task {request.task_uuid})")

        self._transition(GenerationState.in_progress(_PROGRESS_ISSUED))
        try:
            response = await engine.generate(request)
        except (TransportError, DecodeError) as e:
            elapsed = time.monotonic() - started
            logger.warning(f"Generation {request.task_uuid} failed after {elapsed:.2f}s: {e}")
            self.app_state.record_log_entry(LogEntry(request=request, error=str(e), execution_time=elapsed))
            self._fail(e)
            return []

        records = await self._retrieve(response, engine=engine, request=request, prompt=prompt, series=series, aspect_ratio=aspect_ratio)
        if records:
            self.app_state.add_records(records)

        elapsed = time.monotonic() - started
        total_cost = response.total_cost()
        self.app_state.record_log_entry(LogEntry(request=request, response=response, execution_time=elapsed, cost=total_cost))

        if not records:
            logger.warning(f"Generation {request.task_uuid} returned {len(response.data)} image(s) but none could be retrieved")
            self._fail(NoImagesGeneratedError(len(response.data)))
            return []

        logger.info(f"Stored {len(records)}/{len(response.data)} image(s) in {elapsed:.2f}s, cost {total_cost:.4f}")
        self._transition(GenerationState.completed(records[0]))
        return records

    async def _retrieve(
        self,
        response: GenerationResponse,
        *,
        engine: ImageEngine,
        request: GenerationRequest,
        prompt: str,
        series: ContentSeries | None,
        aspect_ratio: AspectRatio,
    ) -> list[GenerationRecord]:
        """Fetch artifacts one by one; failures drop that artifact only."""
        records: list[GenerationRecord] = []
        for artifact in response.data:
            label = artifact.image_uuid or artifact.task_uuid
            if not is_url(artifact.image_url):
                logger.warning(f"Dropping image {label}: no fetchable URL")
                continue
            try:
                image_data = await engine.fetch_image(artifact.image_url)  # type: ignore[arg-type]
            except ArtifactFetchError as e:
                logger.warning(f"Dropping image {label}: {e}")
                continue
            records.append(
                GenerationRecord.from_artifact(
                    artifact,
                    prompt=prompt,
                    model=request.model,
                    image_data=image_data,
                    content_series=series,
                    aspect_ratio=aspect_ratio,
                )
            )
        return records


__all__ = ["GenerationOrchestrator", "StateListener"]
