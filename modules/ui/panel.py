"""State holder behind the image generation panel."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from modules.generation.controller import RequestController, RequestTicket
from modules.generation.errors import CANCELLED_MESSAGE, GenerationError
from modules.generation.models import GeneratedImage, GenerationRequest, parse_generated_images
from modules.generation.options import DEFAULT_COUNT, DEFAULT_SIZE, DEFAULT_STYLE
from modules.services.history_service import DEFAULT_CAPACITY, ResultHistory

logger = logging.getLogger(__name__)

EMPTY_PROMPT_MESSAGE = "请输入提示词。"
READY_MESSAGE = "准备就绪。"
GENERATING_MESSAGE = "正在生成图像……"


class GenerationBackend(Protocol):
    async def generate(self, request: GenerationRequest) -> Dict[str, Any]: ...


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    INVALID = "invalid"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class PanelInputs:
    """Current form values."""

    prompt: str = ""
    style: str = DEFAULT_STYLE.value
    size: str = DEFAULT_SIZE.value
    count: int = DEFAULT_COUNT


@dataclass(slots=True)
class SubmitOutcome:
    """Terminal result of one submit."""

    kind: OutcomeKind
    message: str
    images: List[GeneratedImage] = field(default_factory=list)
    superseded: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageGenerationPanel:
    """Inputs, one cancellable request, and the bounded result list.

    ``submit`` runs on the event loop; the other operations may run on Gradio
    worker threads, so state changes happen under a lock. A request that has
    been superseded or cancelled never touches ``results``, ``error`` or
    ``loading`` afterwards.
    """

    def __init__(
        self,
        client: GenerationBackend,
        max_results: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.history = ResultHistory(max_results)
        self.controller = RequestController()
        self.inputs = PanelInputs()
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.loading = False
        self._clock = clock
        self._lock = threading.RLock()

    def __deepcopy__(self, memo: dict) -> "ImageGenerationPanel":
        # live session object (lock, running task); gr.State copies share it
        return self

    @property
    def results(self) -> List[GeneratedImage]:
        with self._lock:
            return self.history.list()

    @property
    def status(self) -> str:
        """One-line status for display."""
        with self._lock:
            if self.loading:
                return GENERATING_MESSAGE
            if self.error:
                return self.error
            return self.notice or READY_MESSAGE

    # Request lifecycle ---------------------------------------------------------
    async def submit(self, prompt: str, style: Any = None, size: Any = None, count: Any = None) -> SubmitOutcome:
        """Validate the inputs and run one generation request to completion.

        Starting a submit cancels the request in flight and waits for its
        connection to close before the new POST goes out.
        """
        request = GenerationRequest.from_inputs(
            prompt,
            style if style is not None else self.inputs.style,
            size if size is not None else self.inputs.size,
            count if count is not None else self.inputs.count,
        )
        with self._lock:
            self.inputs = PanelInputs(
                prompt=prompt or "",
                style=request.style,
                size=request.size,
                count=request.count,
            )
            if not request.prompt:
                self.error = EMPTY_PROMPT_MESSAGE
                return SubmitOutcome(OutcomeKind.INVALID, EMPTY_PROMPT_MESSAGE)
            self.error = None
            self.loading = True
            previous = self.controller.active
            ticket = self.controller.begin()

        if previous is not None:
            try:
                await previous.drained()
            except asyncio.CancelledError:
                self._abandon(ticket)
                raise
        if ticket.cancelled:
            return self._settle(ticket, OutcomeKind.CANCELLED, CANCELLED_MESSAGE)

        task = asyncio.ensure_future(self.client.generate(request))
        ticket.attach(task)
        try:
            payload = await task
            images = parse_generated_images(payload, request, self._clock())
        except asyncio.CancelledError:
            if not ticket.cancelled:
                # the caller itself was cancelled
                self._abandon(ticket)
                raise
            return self._settle(ticket, OutcomeKind.CANCELLED, CANCELLED_MESSAGE)
        except GenerationError as exc:
            return self._settle(ticket, OutcomeKind.ERROR, str(exc))
        except Exception:
            self._abandon(ticket)
            raise

        if ticket.cancelled:
            return self._settle(ticket, OutcomeKind.CANCELLED, CANCELLED_MESSAGE)
        return self._settle(
            ticket,
            OutcomeKind.SUCCESS,
            f"生成成功，共 {len(images)} 张图像。",
            images,
        )

    def cancel(self) -> bool:
        """Abort the in-flight request, if any, and leave the loading state at once."""
        with self._lock:
            ticket = self.controller.cancel()
            if ticket is None:
                return False
            self.loading = False
            self.error = CANCELLED_MESSAGE
        logger.info("Request #%d cancelled by user", ticket.sequence)
        return True

    def _abandon(self, ticket: RequestTicket) -> None:
        ticket.cancel()
        with self._lock:
            if self.controller.is_current(ticket):
                self.controller.finish(ticket)
                self.loading = False

    def _settle(
        self,
        ticket: RequestTicket,
        kind: OutcomeKind,
        message: str,
        images: Optional[List[GeneratedImage]] = None,
    ) -> SubmitOutcome:
        with self._lock:
            if not self.controller.is_current(ticket):
                logger.info("Discarding result of cancelled request #%d", ticket.sequence)
                return SubmitOutcome(OutcomeKind.CANCELLED, CANCELLED_MESSAGE, superseded=ticket.superseded)

            self.controller.finish(ticket)
            self.loading = False
            if kind is OutcomeKind.SUCCESS:
                self.history.prepend(images or [])
                self.error = None
                self.notice = message
            else:
                self.error = message
        return SubmitOutcome(kind, message, list(images or []))

    # Result management ---------------------------------------------------------
    def clear_results(self) -> None:
        with self._lock:
            self.history.clear()

    def delete_result(self, image_id: str) -> bool:
        with self._lock:
            return self.history.delete(image_id)

    def find(self, image_id: Optional[str]) -> Optional[GeneratedImage]:
        if not image_id:
            return None
        with self._lock:
            return self.history.get(image_id)

    def reset_inputs(self) -> PanelInputs:
        """Restore default form values; results are left alone."""
        with self._lock:
            self.inputs = PanelInputs()
            return self.inputs

    # Per-image actions ---------------------------------------------------------
    def copy_link(self, image_id: Optional[str]) -> Optional[str]:
        image = self.find(image_id)
        return image.url if image is not None else None
