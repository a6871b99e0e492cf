"""Session: the VENUS capture → analysis → result flow.

One instance per running app. Owns all phase transitions; the three Gemini
clients are injected so the flow can run against fakes. Everything runs on
one event loop: the only suspension points are the client calls.

Phases: welcome → capture → analyzing → result → (restart) welcome.
Failures never escape the session: every client error is classified into a
SessionError and the session returns to a stable state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from venus.config import settings
from venus.errors import VenusError, to_session_error
from venus.models.contracts import (
    AnalysisResult,
    CapturedImage,
    ErrorKind,
    SessionError,
    SessionPhase,
    SessionState,
    SimulatedImage,
)
from venus.services.analyze_face import analyze_face
from venus.services.simulate_style import simulate_style
from venus.services.style_advice import suggest_alternative_style
from venus.utils.credential_store import CredentialStore

log = structlog.get_logger("session")

DEFAULT_STATUS_MESSAGE = "이미지 분석 중..."

LOADING_MESSAGES: tuple[str, ...] = (
    "비너스의 황금비를 분석하고 있습니다...",
    "이목구비의 조화를 측정 중입니다...",
    "피부결과 톤을 확인하고 있습니다...",
    "당신만의 아우라를 읽는 중...",
    "최상의 스타일 제안을 생성하는 중...",
)

# Errors that send the user back to the API key form
_CREDENTIAL_KINDS = {ErrorKind.MISSING_CREDENTIAL, ErrorKind.INVALID_CREDENTIAL}

Analyzer = Callable[[CapturedImage, str | None], Awaitable[AnalysisResult]]
Advisor = Callable[[CapturedImage, str, Sequence[str], str | None], Awaitable[str]]
Simulator = Callable[[CapturedImage, str, str | None], Awaitable[SimulatedImage]]


class InvalidTransitionError(RuntimeError):
    pass


class Ticker(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


class StatusTicker:
    """Rotates the analyzing-phase status line on a fixed interval.

    Purely cosmetic. ``cancel()`` is idempotent; once cancelled no further
    message is reported.
    """

    def __init__(
        self,
        on_message: Callable[[str], None],
        messages: Sequence[str] = LOADING_MESSAGES,
        interval: float | None = None,
    ) -> None:
        if not messages:
            raise ValueError("StatusTicker needs at least one message")
        self._on_message = on_message
        self.messages = tuple(messages)
        self.interval = interval if interval is not None else settings.status_interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.cancelled = False

    def start(self) -> None:
        if self._task is not None or self.cancelled:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        index = 0
        while True:
            await asyncio.sleep(self.interval)
            if self.cancelled:
                return
            self._on_message(self.messages[index])
            index = (index + 1) % len(self.messages)

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._task is not None:
            self._task.cancel()


@dataclass
class AdviceView:
    loading: bool = False
    error: SessionError | None = None


@dataclass
class SimulationView:
    open: bool = False
    loading: bool = False
    advice: str | None = None
    error: SessionError | None = None
    image: SimulatedImage | None = None


class Session:
    def __init__(
        self,
        store: CredentialStore,
        *,
        analyzer: Analyzer = analyze_face,
        advisor: Advisor = suggest_alternative_style,
        simulator: Simulator = simulate_style,
        ticker_factory: Callable[[Callable[[str], None]], Ticker] = StatusTicker,
    ) -> None:
        self._store = store
        self._analyzer = analyzer
        self._advisor = advisor
        self._simulator = simulator
        self._ticker_factory = ticker_factory

        self.credential: str | None = store.load()
        self.credential_prompt = False
        self.credential_error: SessionError | None = None

        self.phase = SessionPhase.WELCOME
        self.captured_image: CapturedImage | None = None
        self.result: AnalysisResult | None = None
        self.advice_history: list[str] = []
        self.error: SessionError | None = None
        self.status_message: str | None = None

        # Sub-views are replaced wholesale on reset; in-flight calls compare
        # identity to detect that their result is moot.
        self.advice = AdviceView()
        self.simulation = SimulationView()

    # --- Credential ---

    def submit_credential(self, candidate: str) -> bool:
        """Validate and persist a new API key. Rejections keep the old key."""
        try:
            self.credential = self._store.save(candidate)
        except VenusError as e:
            self.credential_error = to_session_error(e)
            log.info("session_credential_rejected", kind=e.kind.value)
            return False
        self.credential_error = None
        self.credential_prompt = False
        return True

    def clear_credential(self) -> None:
        self._store.clear()
        self.credential = None

    def open_credential_prompt(self) -> None:
        self.credential_prompt = True
        self.credential_error = None

    def dismiss_credential_prompt(self) -> None:
        self.credential_prompt = False
        self.credential_error = None

    # --- Phase transitions ---

    def _require(self, phase: SessionPhase, action: str) -> None:
        if self.phase is not phase:
            raise InvalidTransitionError(f"Cannot {action} from phase '{self.phase}'")

    def start(self) -> bool:
        """Welcome → capture. Without a credential, prompt for one and stay."""
        self._require(SessionPhase.WELCOME, "start")
        if not self.credential:
            self.credential_prompt = True
            log.info("session_credential_required")
            return False
        self.error = None
        self.phase = SessionPhase.CAPTURE
        return True

    def cancel_capture(self) -> None:
        self._require(SessionPhase.CAPTURE, "cancel capture")
        self.phase = SessionPhase.WELCOME

    async def submit_image(self, image: CapturedImage) -> None:
        """Capture → analyzing → result, or back to welcome on failure."""
        self._require(SessionPhase.CAPTURE, "submit an image")
        self._discard_cycle()
        self.captured_image = image
        self.error = None
        self.phase = SessionPhase.ANALYZING
        self.status_message = DEFAULT_STATUS_MESSAGE

        ticker = self._ticker_factory(self._set_status)
        ticker.start()
        log.info("session_analyzing", mime_type=image.mime_type)
        try:
            result = await self._analyzer(image, self.credential)
        except Exception as e:
            self._fail_analysis(image, e)
            return
        finally:
            ticker.cancel()
            self.status_message = None

        if self.phase is not SessionPhase.ANALYZING or self.captured_image is not image:
            log.info("session_analysis_result_ignored")
            return
        self.result = result
        self.phase = SessionPhase.RESULT
        log.info("session_result", overall_score=result.overall_score)

    async def upload_image(self, image: CapturedImage) -> None:
        """Welcome-screen upload: start and submit in one step."""
        if self.start():
            await self.submit_image(image)

    def restart(self) -> None:
        """Result → welcome, discarding the image, result and history."""
        if self.phase is SessionPhase.WELCOME:
            return
        self._require(SessionPhase.RESULT, "restart")
        self._discard_cycle()
        self.error = None
        self.phase = SessionPhase.WELCOME
        log.info("session_restarted")

    def _discard_cycle(self) -> None:
        self.captured_image = None
        self.result = None
        self.advice_history = []
        self.advice = AdviceView()
        self.simulation = SimulationView()

    def _set_status(self, message: str) -> None:
        self.status_message = message

    def _fail_analysis(self, image: CapturedImage, error: Exception) -> None:
        if self.phase is not SessionPhase.ANALYZING or self.captured_image is not image:
            log.info("session_analysis_error_ignored", error_type=type(error).__name__)
            return
        session_error = to_session_error(error)
        log.warning(
            "session_analysis_failed",
            kind=session_error.kind.value,
            detail=session_error.detail,
        )
        self.error = session_error
        self.captured_image = None
        self.phase = SessionPhase.WELCOME
        self._prompt_if_credential_error(session_error)

    def _prompt_if_credential_error(self, error: SessionError) -> None:
        if error.kind in _CREDENTIAL_KINDS:
            self.credential_prompt = True

    # --- Result sub-views (never change the phase) ---

    def _result_context(self, action: str) -> tuple[CapturedImage, AnalysisResult]:
        self._require(SessionPhase.RESULT, action)
        if self.captured_image is None or self.result is None:
            raise InvalidTransitionError(f"Cannot {action}: no analysis result")
        return self.captured_image, self.result

    async def request_alternative_style(self) -> str | None:
        """Swap the current advice for a new one; the old one joins the history."""
        image, result = self._result_context("request style advice")
        if self.advice.loading:
            log.warning("session_advice_already_loading")
            return None

        view = self.advice
        view.loading = True
        view.error = None
        current = result.style_advice
        try:
            suggestion = await self._advisor(
                image, current, list(self.advice_history), self.credential
            )
        except Exception as e:
            if view is self.advice:
                view.error = to_session_error(e, operation="advice")
                log.warning("session_advice_failed", kind=view.error.kind.value)
                self._prompt_if_credential_error(view.error)
            return None
        finally:
            view.loading = False

        if view is not self.advice or self.result is not result:
            log.info("session_advice_ignored")
            return None
        self.advice_history.append(current)
        self.result = result.model_copy(update={"style_advice": suggestion})
        return suggestion

    async def simulate(self, advice: str | None = None) -> SimulatedImage | None:
        """Open the simulation view and render ``advice`` (default: current advice)."""
        image, result = self._result_context("simulate a style")
        if self.simulation.loading:
            log.warning("session_simulation_already_loading")
            return None

        target = (advice or result.style_advice).strip()
        view = SimulationView(open=True, loading=True, advice=target)
        self.simulation = view
        try:
            simulated = await self._simulator(image, target, self.credential)
        except Exception as e:
            if view is self.simulation:
                view.error = to_session_error(e, simulation=True)
                log.warning("session_simulation_failed", kind=view.error.kind.value)
                self._prompt_if_credential_error(view.error)
            return None
        finally:
            view.loading = False

        if view is not self.simulation:
            log.info("session_simulation_ignored")
            return None
        view.image = simulated
        return simulated

    def close_simulation(self) -> None:
        self.simulation = SimulationView()

    # --- Observation ---

    def state(self) -> SessionState:
        return SessionState(
            phase=self.phase,
            has_credential=bool(self.credential),
            credential_prompt=self.credential_prompt,
            credential_error=self.credential_error,
            error=self.error,
            status_message=self.status_message,
            result=self.result,
            advice_history=list(self.advice_history),
            advice_loading=self.advice.loading,
            advice_error=self.advice.error,
            simulation_open=self.simulation.open,
            simulation_loading=self.simulation.loading,
            simulation_error=self.simulation.error,
            simulated_image=self.simulation.image,
        )
