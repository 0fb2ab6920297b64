"""
Request orchestration for the generator UI.

GenerationController owns the form values (prompt, uploaded image, style,
aspect ratio) and the displayed UIState, and drives one generation request at
a time. The presentation layer reads ``state`` and calls the named transition
methods; it never mutates state directly.
"""

import asyncio
from collections.abc import Callable
from functools import partial

from everybanana.core import image_gen
from everybanana.core.config import Config
from everybanana.core.reference import ReferenceImage
from everybanana.core.types import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_STYLE,
    MISSING_INPUT_MESSAGE,
    AspectRatio,
    GenerationRequest,
    Status,
    Style,
    UIState,
)
from everybanana.logging_config import get_logger
from everybanana.utils.exceptions import ValidationError, error_message

logger = get_logger(__name__)

# (final_prompt, aspect_ratio, image) -> image reference
GenerationClient = Callable[[str, AspectRatio, ReferenceImage | None], str]


class GenerationController:
    """Single-session state machine: IDLE -> LOADING -> SUCCESS | FAILED."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: Config | None = None,
    ) -> None:
        """
        Args:
            client: Callable doing the remote call; runs in a worker thread.
                Defaults to image_gen.generate with the given config.
            config: Config passed to the default client (ignored when client is given).
        """
        self._client: GenerationClient = client or partial(image_gen.generate, config=config)
        self._state = UIState.idle()
        self._prompt = ""
        self._image: ReferenceImage | None = None
        self._style = DEFAULT_STYLE
        self._aspect_ratio = DEFAULT_ASPECT_RATIO
        self._is_text_only_result = True

    @property
    def state(self) -> UIState:
        return self._state

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def image(self) -> ReferenceImage | None:
        return self._image

    @property
    def style(self) -> Style:
        return self._style

    @property
    def aspect_ratio(self) -> AspectRatio:
        return self._aspect_ratio

    @property
    def is_text_only_result(self) -> bool:
        """True when the last accepted request had no uploaded image."""
        return self._is_text_only_result

    @property
    def can_retry_aspect_ratio(self) -> bool:
        return self._state.status is Status.SUCCESS and self._is_text_only_result

    def _transition(self, new_state: UIState) -> UIState:
        logger.debug("State %s -> %s", self._state.status.value, new_state.status.value)
        self._state = new_state
        return new_state

    async def submit(
        self,
        prompt: str,
        style: Style | str = DEFAULT_STYLE,
        aspect_ratio: AspectRatio | str = DEFAULT_ASPECT_RATIO,
        image: ReferenceImage | None = None,
    ) -> UIState:
        """
        Request a generation from the current form values.

        A submission while another request is in flight is dropped and the
        current state returned. Service failures end in FAILED rather than
        being raised. The form values are only replaced once a request is
        accepted.

        Raises:
            ValidationError: If neither prompt nor image is given, or style /
                aspect ratio are unknown. State becomes FAILED for the former.
        """
        request = GenerationRequest(
            prompt=prompt or "",
            style=Style.from_label(style),
            aspect_ratio=AspectRatio.parse(aspect_ratio),
            image=image,
        )
        try:
            request.validate()
        except ValidationError:
            if not self._state.is_loading:
                self._transition(UIState.failed(MISSING_INPUT_MESSAGE))
            raise
        if self._state.is_loading:
            logger.debug("Generation already in progress; ignoring submit")
            return self._state
        return await self._run(request)

    async def retry_with_aspect_ratio(self, aspect_ratio: AspectRatio | str) -> UIState:
        """
        Generate again from the last prompt, image and style with a new aspect ratio.

        Raises:
            ValidationError: If the current result is not a text-only success.
        """
        ratio = AspectRatio.parse(aspect_ratio)
        if self._state.is_loading:
            logger.debug("Generation already in progress; ignoring retry")
            return self._state
        if not self.can_retry_aspect_ratio:
            raise ValidationError(
                "A different aspect ratio can only be tried on an image generated from text.",
                field="aspect_ratio",
            )
        request = GenerationRequest(
            prompt=self._prompt,
            style=self._style,
            aspect_ratio=ratio,
            image=self._image,
        )
        return await self._run(request)

    async def _run(self, request: GenerationRequest) -> UIState:
        self._prompt = request.prompt
        self._image = request.image
        self._style = request.style
        self._aspect_ratio = request.aspect_ratio
        self._is_text_only_result = request.is_text_only
        self._transition(UIState.loading())

        logger.info(
            "Generation requested style=%s aspect_ratio=%s has_image=%s",
            request.style.value,
            request.aspect_ratio.value,
            request.image is not None,
        )
        try:
            image_url = await asyncio.to_thread(
                self._client, request.final_prompt, request.aspect_ratio, request.image
            )
        except Exception as e:
            logger.info("Generation failed: %s", error_message(e))
            return self._transition(UIState.failed(error_message(e)))
        return self._transition(UIState.success(image_url))

    def reset(self) -> UIState:
        """Clear the result and error; the prompt and uploaded image are kept."""
        if self._state.is_loading:
            return self._state
        return self._transition(UIState.idle())

    def clear_error(self) -> UIState:
        """Dismiss a FAILED state. Other states are returned unchanged."""
        if self._state.status is Status.FAILED:
            return self._transition(UIState.idle())
        return self._state
