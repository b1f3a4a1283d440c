"""
Turn Router - the learning-state engine's single entry point.

Finite state machine per user:

    idle --message resolves to X--> teaching(X) --content delivered--> awaiting_completion(X)
    awaiting_completion(X) --no signal--> teaching(X) --> awaiting_completion(X)
    awaiting_completion(X) --completion--> [complete_quest(X)] --> idle | teaching(Y)

Ordering:
- Turns of one user run strictly one at a time (per-user asyncio.Lock)
- The completion commit happens before the revision lookup for the next
  concept, both before any collaborator dispatch
- Profiling and the content -> notes chain run concurrently, each external
  call bounded by its own timeout

Failure policy:
- Content generation is essential: its failure or timeout fails the turn
- Revision lookup, profiling and note extraction are best-effort: failures
  are logged and listed in TurnResult.degraded
- UnknownConcept and UnresolvedConcept always surface to the caller
- complete_quest is never retried
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from loguru import logger

from learnstate.core.errors import (
    CollaboratorTimeout,
    ContentGenerationFailed,
    LearnStateError,
    UnknownConcept,
    UnresolvedConcept,
)
from learnstate.core.mastery import RevisionCandidate, ensure_utc
from learnstate.integrations.collaborators import (
    ConceptResolver,
    ContentGenerator,
    ContentRequest,
    GeneratedContent,
    NoteExtractor,
    Profiler,
)
from learnstate.routing.completion import (
    CompletionDetector,
    CompletionMasteryPolicy,
    CompletionSignal,
)
from learnstate.routing.context import (
    RouterState,
    TurnContext,
    TurnOutcome,
    TurnResult,
    UserSession,
)
from learnstate.scheduling.scheduler import Scheduler

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TurnRouter:
    """
    Route user turns through completion detection, scheduling and dispatch.

    Sessions live in memory for the lifetime of the router; mastery lives in
    the scheduler's store.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        resolver: ConceptResolver,
        content: ContentGenerator,
        notes: NoteExtractor | None = None,
        profiler: Profiler | None = None,
        detector: CompletionDetector | None = None,
        mastery_policy: CompletionMasteryPolicy | None = None,
        topic_window_size: int = 10,
        dispatch_timeout_seconds: float = 20.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.scheduler = scheduler
        self.resolver = resolver
        self.content = content
        self.notes = notes
        self.profiler = profiler
        self.detector = detector or CompletionDetector(phrases=())
        self.mastery_policy = mastery_policy or CompletionMasteryPolicy()
        if topic_window_size < self.detector.topic_shift_min_turns:
            raise ValueError("topic_window_size must hold at least topic_shift_min_turns turns")
        self.topic_window_size = topic_window_size
        self.dispatch_timeout_seconds = dispatch_timeout_seconds
        self.clock = clock

        self._sessions: dict[str, UserSession] = {}
        # user -> [lock, turns holding or waiting on it]
        self._locks: dict[str, list] = {}

    @classmethod
    def from_settings(
        cls,
        settings,
        scheduler: Scheduler,
        resolver: ConceptResolver,
        content: ContentGenerator,
        notes: NoteExtractor | None = None,
        profiler: Profiler | None = None,
    ) -> TurnRouter:
        """Build a router with detector and policy taken from Settings."""
        return cls(
            scheduler,
            resolver,
            content,
            notes=notes,
            profiler=profiler,
            detector=CompletionDetector(
                settings.completion_phrases,
                topic_shift_min_turns=settings.topic_shift_min_turns,
            ),
            mastery_policy=CompletionMasteryPolicy.from_settings(settings),
            topic_window_size=settings.topic_window_size,
            dispatch_timeout_seconds=settings.dispatch_timeout_seconds,
        )

    # ==========================================================================
    # Public API
    # ==========================================================================

    async def handle_turn(
        self,
        user_id: str,
        message: str,
        now: datetime | None = None,
    ) -> TurnResult:
        """
        Process one user message.

        Args:
            user_id: Learner identifier
            message: Raw message text
            now: Turn timestamp (defaults to the router clock)

        Returns:
            TurnResult with resolved concept, revisions and completion flag

        Raises:
            UnresolvedConcept: Idle and the message maps to no concept
            UnknownConcept: The resolver returned an unregistered concept
            ContentGenerationFailed / CollaboratorTimeout: Essential dispatch failed
        """
        turn_time = ensure_utc(now) if now is not None else self.clock()
        entry = self._locks.setdefault(user_id, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                return await self._run_turn(user_id, message, turn_time)
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[user_id]

    def session_state(self, user_id: str) -> RouterState:
        session = self._sessions.get(user_id)
        return session.state if session else RouterState.idle()

    def reset_session(self, user_id: str) -> None:
        """Forget a user's routing state; mastery is untouched."""
        self._sessions.pop(user_id, None)

    # ==========================================================================
    # Turn pipeline
    # ==========================================================================

    async def _run_turn(self, user_id: str, message: str, now: datetime) -> TurnResult:
        session = self._sessions.get(user_id)
        if session is None:
            session = UserSession(topics=deque(maxlen=self.topic_window_size))
            self._sessions[user_id] = session

        context = TurnContext(
            user_id=user_id,
            message=message,
            active_concept=session.active_concept,
            recent_topics=tuple(session.topics),
            now=now,
        )

        inferred = await self._call("resolver", self.resolver.resolve(message))
        if inferred is not None:
            self.scheduler.graph.require(inferred)

        if context.active_concept is None and inferred is None:
            logger.info("Turn for {} stays idle: no concept resolved", user_id)
            raise UnresolvedConcept(message)

        # ---- completion detection and commit --------------------------------
        outcome = TurnOutcome.CONTINUING
        completed_concept = None
        next_concept = context.active_concept or inferred

        signal = self.detector.detect(context, inferred)
        if signal is not None:
            completed_concept = context.active_concept
            session.state = RouterState.awaiting_completion(completed_concept)
            self._commit_completion(user_id, completed_concept, signal, now)
            outcome = (
                TurnOutcome.COMPLETED
                if signal is CompletionSignal.EXPLICIT
                else TurnOutcome.TOPIC_SHIFT
            )
            next_concept = inferred if inferred not in (None, completed_concept) else None

        # label is the concept this turn was routed to, not the one mentioned
        session.topics.append(next_concept or completed_concept)

        # ---- state transition and revision lookup ---------------------------
        degraded: list[str] = []
        revisions: list[RevisionCandidate] = []
        if next_concept is None:
            session.state = RouterState.idle()
        else:
            entering = next_concept != context.active_concept or completed_concept is not None
            session.state = RouterState.teaching(next_concept)
            if entering:
                revisions = self._revisions_for(user_id, next_concept, now, degraded)
        logger.info(
            "Turn {} -> {} ({}){}",
            user_id,
            session.state,
            outcome.value,
            f", completed {completed_concept}" if completed_concept else "",
        )

        # ---- dispatch ---------------------------------------------------------
        profile, content, notes = await self._dispatch(
            context, next_concept, revisions, completed_concept, degraded
        )
        if content is not None:
            session.state = RouterState.awaiting_completion(next_concept)

        return TurnResult(
            concept_id=next_concept,
            revisions=revisions,
            completed=completed_concept is not None,
            completed_concept=completed_concept,
            outcome=outcome,
            state=session.state,
            content=content,
            notes=notes,
            profile=profile,
            degraded=degraded,
        )

    def _commit_completion(
        self, user_id: str, concept_id: str, signal: CompletionSignal, now: datetime
    ) -> None:
        record = self.scheduler.store.get(user_id, concept_id)
        mastery = self.mastery_policy.mastery_for(record, signal)
        self.scheduler.complete_quest(user_id, concept_id, mastery, now)
        logger.info(
            "Completion ({}) committed for {}/{} at mastery {:.2f}",
            signal.value,
            user_id,
            concept_id,
            mastery,
        )

    def _revisions_for(
        self, user_id: str, concept_id: str, now: datetime, degraded: list[str]
    ) -> list[RevisionCandidate]:
        try:
            return self.scheduler.revisions_needed_for(user_id, concept_id, now)
        except UnknownConcept:
            raise
        except Exception as exc:  # best-effort: a store outage must not abort teaching
            logger.warning("Revision lookup failed for {}/{}: {}", user_id, concept_id, exc)
            degraded.append(f"revisions: {exc}")
            return []

    async def _dispatch(
        self,
        context: TurnContext,
        concept_id: str | None,
        revisions: list[RevisionCandidate],
        completed_concept: str | None,
        degraded: list[str],
    ) -> tuple[dict[str, Any], GeneratedContent | None, list[dict[str, Any]]]:
        profile_job = self._profile(context, degraded)
        if concept_id is None:
            profile = await profile_job
            return profile, None, []

        request = ContentRequest(
            user_id=context.user_id,
            concept_id=concept_id,
            message=context.message,
            revisions=tuple(revisions),
            completed_concept=completed_concept,
        )
        profile, delivered = await asyncio.gather(
            profile_job,
            self._content_and_notes(request, degraded),
            return_exceptions=True,
        )
        for part in (delivered, profile):
            if isinstance(part, BaseException):
                raise part
        content, notes = delivered
        return profile, content, notes

    async def _profile(self, context: TurnContext, degraded: list[str]) -> dict[str, Any]:
        if self.profiler is None:
            return {}
        try:
            return await self._call("profiler", self.profiler.profile(context))
        except Exception as exc:  # best-effort
            logger.warning("Profiler failed for {}: {}", context.user_id, exc)
            degraded.append(f"profiler: {exc}")
            return {}

    async def _content_and_notes(
        self, request: ContentRequest, degraded: list[str]
    ) -> tuple[GeneratedContent, list[dict[str, Any]]]:
        try:
            content = await self._call("content", self.content.generate(request))
        except LearnStateError:
            logger.error("Content generation failed for {}/{}", request.user_id, request.concept_id)
            raise
        except Exception as exc:
            logger.error("Content generation error for {}/{}: {}", request.user_id, request.concept_id, exc)
            raise ContentGenerationFailed(str(exc)) from exc

        if self.notes is None:
            return content, []
        try:
            notes = await self._call("notes", self.notes.extract(content.text))
        except Exception as exc:  # best-effort
            logger.warning("Note extraction failed for {}: {}", request.user_id, exc)
            degraded.append(f"notes: {exc}")
            notes = []
        return content, notes

    async def _call(self, name: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.dispatch_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("{} timed out after {:.1f}s", name, self.dispatch_timeout_seconds)
            raise CollaboratorTimeout(name, self.dispatch_timeout_seconds) from None
