"""Voice session coordinating the controller with capture, replies, and playback."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, Tuple

from halo_voice.config.defaults import RuntimeConfig
from halo_voice.runtime.dispatch.context import SimulationContext
from halo_voice.runtime.dispatch.remote import RemoteDispatchAdapter
from halo_voice.runtime.engine import (
    IntentClassifier,
    KnowledgeEntry,
    KnowledgeMatcher,
    LatencyProbe,
    ResponseEngine,
    StyleWeights,
)
from halo_voice.runtime.memory import Speaker, Transcript, TranscriptStore, Utterance
from halo_voice.runtime.voice.controller import TurnTakingController
from halo_voice.runtime.voice.speech import (
    CaptureSource,
    CaptureStartError,
    PermissionProbe,
    PlaybackError,
    RemoteTextToSpeech,
    StaticPermissionProbe,
    VoiceOutput,
)
from halo_voice.runtime.voice.states import (
    CancelResume,
    CaptureError,
    Dispatch,
    Effect,
    FinalTranscript,
    Notify,
    PermissionChanged,
    PlaybackEnded,
    PlaybackFailed,
    ResponseReady,
    ResumeTimerElapsed,
    ScheduleResume,
    StartCapture,
    StartPlayback,
    StartRequested,
    StopCapture,
    StopPlayback,
    StopRequested,
    TextSubmitted,
    Transition,
    VoiceEvent,
    VoiceState,
)

logger = logging.getLogger(__name__)


class VoiceSession:
    """High-level orchestrator for one visitor conversation."""

    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        capture: Optional[CaptureSource] = None,
        output: Optional[VoiceOutput] = None,
        engine: Optional[ResponseEngine] = None,
        dispatcher: Optional[RemoteDispatchAdapter] = None,
        context: Optional[SimulationContext] = None,
        knowledge: Optional[Sequence[KnowledgeEntry]] = None,
        style: Optional[StyleWeights] = None,
        store: Optional[TranscriptStore] = None,
        permission_probe: Optional[PermissionProbe] = None,
        clock: Callable[[], float] = time.monotonic,
        session_id: Optional[str] = None,
        telemetry: Optional[LatencyProbe] = None,
    ) -> None:
        self.config = config or RuntimeConfig()
        self.session_id = session_id or self.config.session.get("default_session_id", "default")
        self.controller = TurnTakingController(self.config.turn_taking)
        self.capture = capture or CaptureSource(self.config.turn_taking)
        self.output = output or VoiceOutput(self.config.speech)
        self.engine = engine or ResponseEngine(
            classifier=IntentClassifier(),
            matcher=KnowledgeMatcher(config=self.config.matcher),
            style_config=self.config.style,
        )
        self.dispatcher = dispatcher
        self.context = context
        if knowledge is None:
            knowledge = context.knowledge_entries() if context is not None else []
        self.knowledge: List[KnowledgeEntry] = list(knowledge)
        self.style = style or StyleWeights.from_config(self.config.style)
        self.store = store
        self.permission_probe = permission_probe or StaticPermissionProbe()
        self.clock = clock
        self.telemetry = telemetry or LatencyProbe()
        self.transcript = Transcript()
        self.notifications: List[Notify] = []
        self.last_result: Optional[Dict[str, Any]] = None
        self._queue: Deque[VoiceEvent] = deque()
        self._draining = False
        self._resume: Optional[Tuple[int, float]] = None

    @classmethod
    def from_config(
        cls,
        config: RuntimeConfig,
        context: Optional[SimulationContext] = None,
        store: Optional[TranscriptStore] = None,
    ) -> "VoiceSession":
        """Wire the remote adapters when ``dispatch.use_remote`` is enabled."""
        dispatcher = None
        tts = None
        if config.dispatch.use_remote:
            if context is None:
                raise ValueError("remote dispatch requires a simulation context")
            dispatcher = RemoteDispatchAdapter(config.dispatch)
            tts = RemoteTextToSpeech(config.speech)
        return cls(
            config,
            output=VoiceOutput(config.speech, tts=tts),
            dispatcher=dispatcher,
            context=context,
            store=store,
        )

    @property
    def state(self) -> VoiceState:
        return self.controller.state

    @property
    def resume_deadline(self) -> Optional[float]:
        return self._resume[1] if self._resume is not None else None

    # Event entry points -------------------------------------------------------
    def handle(self, event: VoiceEvent) -> List[Transition]:
        """Feed one event and drain every follow-up event it causes.

        Events raised while the queue is draining are queued in arrival order
        and handled by the outer call, which then returns their transitions.
        """
        self._queue.append(event)
        if self._draining:
            return []
        self._draining = True
        transitions: List[Transition] = []
        try:
            while self._queue:
                transition = self.controller.transition(self._queue.popleft())
                transitions.append(transition)
                for effect in transition.effects:
                    self._execute(effect)
        finally:
            self._draining = False
        return transitions

    def check_microphone(self) -> List[Transition]:
        return self.handle(PermissionChanged(self.permission_probe.check()))

    def start(self) -> List[Transition]:
        return self.handle(StartRequested())

    def stop(self) -> List[Transition]:
        return self.handle(StopRequested())

    def hear(self, text: str, confidence: Optional[float] = None) -> List[Transition]:
        """Feed a final transcript; ``last_result`` is only set when the turn is dispatched."""
        self.last_result = None
        return self.handle(FinalTranscript(text=text, confidence=confidence))

    def submit_text(self, text: str) -> List[Transition]:
        self.last_result = None
        return self.handle(TextSubmitted(text=text))

    def tick(self) -> List[Transition]:
        """Fire the resume timer if its deadline has passed."""
        if self._resume is None:
            return []
        token, deadline = self._resume
        if self.clock() < deadline:
            return []
        self._resume = None
        return self.handle(ResumeTimerElapsed(token=token))

    # Lifecycle ----------------------------------------------------------------
    def open(self) -> None:
        if self.store is not None:
            self.transcript = self.store.load(self.session_id)
            logger.info("Loaded %d utterances for session %s", len(self.transcript), self.session_id)

    def close(self) -> None:
        if self.state is not VoiceState.IDLE:
            self.stop()
        if self.store is not None:
            self.store.save(self.session_id, self.transcript)
        if self.dispatcher is not None:
            self.dispatcher.close()

    def reset(self) -> None:
        """Stop the loop and forget the conversation."""
        self.stop()
        self.transcript.clear()
        self.notifications.clear()
        self.last_result = None
        self.telemetry.clear()
        if self.store is not None:
            self.store.clear(self.session_id)

    # Effects ------------------------------------------------------------------
    def _execute(self, effect: Effect) -> None:
        if isinstance(effect, StartCapture):
            try:
                self.capture.start()
            except CaptureStartError as exc:
                logger.warning("Failed to start voice capture: %s", exc)
                self._queue.append(CaptureError(kind=exc.kind))
        elif isinstance(effect, StopCapture):
            self.capture.stop()
        elif isinstance(effect, Dispatch):
            self._dispatch(effect)
        elif isinstance(effect, StartPlayback):
            self._play(effect)
        elif isinstance(effect, StopPlayback):
            self.output.stop()
        elif isinstance(effect, ScheduleResume):
            self._resume = (effect.token, self.clock() + effect.delay_ms / 1000.0)
        elif isinstance(effect, CancelResume):
            if self._resume is not None and self._resume[0] == effect.token:
                self._resume = None
        elif isinstance(effect, Notify):
            logger.log(logging.ERROR if effect.level == "error" else logging.INFO, "%s", effect.message)
            self.notifications.append(effect)

    def _dispatch(self, effect: Dispatch) -> None:
        confidence = effect.confidence
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            confidence = None
        self.transcript.append(Utterance(speaker=Speaker.USER, text=effect.text, confidence=confidence))
        text, confidence = self._generate(effect.text, effect.mode)
        self._queue.append(ResponseReady(turn_id=effect.turn_id, text=text, confidence=confidence))

    def _generate(self, text: str, mode: str) -> Tuple[str, float]:
        if self.dispatcher is not None and self.context is not None:
            window = self.config.dispatch.history_window
            with self.telemetry.track("dispatch"):
                result = self.dispatcher.dispatch(text, self.context, self.transcript.recent(window), mode=mode)
            if not (result.degraded and self.config.dispatch.fallback_to_engine):
                self.last_result = result.to_dict()
                return result.response, result.confidence
            logger.info("Remote dispatch degraded; answering with the local engine")
        with self.telemetry.track("response"):
            reply = self.engine.respond(text, self.knowledge, self.style)
        self.last_result = reply.to_dict()
        return reply.message, reply.confidence

    def _play(self, effect: StartPlayback) -> None:
        self.transcript.append(Utterance(speaker=Speaker.AGENT, text=effect.text, confidence=effect.confidence))
        try:
            with self.telemetry.track("playback"):
                self.output.play(effect.text)
        except PlaybackError as exc:
            self._queue.append(PlaybackFailed(reason=str(exc)))
            return
        if self.output.blocking:
            self._queue.append(PlaybackEnded())
