"""
Streaming analysis session.

One session runs one query: it retrieves context, asks the LLM for an
incremental analysis and hands the caller an ordered sequence of typed
events. A single producer task writes events into a queue that the
caller drains. The queue is bounded, so the producer never runs more than
`event_buffer_size` events ahead of the caller. Closing the event iterator
(or calling `cancel`) cancels the producer together with any in-flight
adapter call, and no further events are delivered.
"""

import asyncio
import json
import time
from collections.abc import AsyncIterator
from contextlib import aclosing

from src.config import StreamingConfig
from src.core.llm.base import LLMProvider
from src.models.analysis import AnalysisEvent, AnalysisEventType, SessionState
from src.models.context import ContextOptions, ContextResponse
from src.services.context_engine import ContextFusionEngine
from src.utils.exceptions import StateTransitionError
from src.utils.id_generator import generate_session_id
from src.utils.logger import get_logger

logger = get_logger(__name__)

NO_CONTEXT_MESSAGE = "No relevant context found for the given query."

_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CREATED: frozenset(
        {SessionState.CONTEXT_RETRIEVED, SessionState.ERRORED, SessionState.CANCELLED}
    ),
    SessionState.CONTEXT_RETRIEVED: frozenset(
        {
            SessionState.ANALYZING,
            SessionState.COMPLETED,
            SessionState.ERRORED,
            SessionState.CANCELLED,
        }
    ),
    SessionState.ANALYZING: frozenset(
        {SessionState.COMPLETED, SessionState.ERRORED, SessionState.CANCELLED}
    ),
    SessionState.COMPLETED: frozenset(),
    SessionState.ERRORED: frozenset(),
    SessionState.CANCELLED: frozenset(),
}

# Marks the end of the event queue
_END = object()


class StreamingAnalysisSession:
    """
    Cancellable, ordered LLM analysis over a retrieved context.

    Usage:
        session = StreamingAnalysisSession(query, context_engine, llm)
        async for event in session.events():
            send(event.to_sse())

    Exactly one terminal event (`done` or `error`) is emitted, unless the
    session is cancelled, in which case emission simply stops.
    """

    def __init__(
        self,
        query: str,
        context_engine: ContextFusionEngine,
        llm: LLMProvider,
        options: ContextOptions | None = None,
        config: StreamingConfig | None = None,
        session_id: str | None = None,
    ):
        """
        Create a session. Nothing runs until `events()` is iterated.

        Args:
            query: Query to analyze
            context_engine: Context retrieval
            llm: Streaming LLM provider
            options: Context retrieval options
            config: Streaming configuration

        Raises:
            ValidationError: If the query or options are invalid
        """
        context_engine.validate_query(query)
        if options is not None:
            context_engine.validate_options(options)

        self.id = session_id or generate_session_id()
        self.query = query
        self.context_engine = context_engine
        self.llm = llm
        self.options = options
        self.config = config or StreamingConfig()

        self.state = SessionState.CREATED
        self.context: ContextResponse | None = None
        self.analysis_chunks = 0

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.event_buffer_size)
        self._producer: asyncio.Task | None = None
        self._consumed = False
        self._sealed = False
        self._cancelled = False
        self._delivered = False

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    async def events(self) -> AsyncIterator[AnalysisEvent]:
        """
        Run the session and yield its events in order.

        Can be consumed once. Leaving the loop early, closing the iterator or
        cancelling the consuming task cancels the session.

        Raises:
            StateTransitionError: If the events were already consumed
        """
        if self._consumed:
            raise StateTransitionError(
                f"Session {self.id} events can only be consumed once",
                context={"session_id": self.id},
            )
        self._consumed = True
        if self.state.is_terminal:
            return
        self._producer = asyncio.create_task(self._run(), name=f"analysis-{self.id}")

        try:
            while not self._cancelled:
                item = await self._queue.get()
                if item is _END or self._cancelled:
                    return
                if item.is_terminal:
                    self._delivered = True
                yield item
        finally:
            await self._stop_producer()

    async def sse(self) -> AsyncIterator[str]:
        """Events framed for server-sent events."""
        async with aclosing(self.events()) as events:
            async for event in events:
                yield event.to_sse()

    def cancel(self) -> None:
        """
        Cancel the session (e.g. on client disconnect).

        Safe to call at any time. Events still buffered are dropped, so none
        reach the caller after this returns. A session whose terminal event
        was already delivered is left as is.
        """
        if self._delivered or self._cancelled:
            return
        self._cancelled = True
        self._sealed = True
        self.state = SessionState.CANCELLED
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()

    async def _stop_producer(self) -> None:
        if self._producer is None or self._producer.done():
            return
        self._producer.cancel()
        try:
            await self._producer
        except asyncio.CancelledError:
            # The producer ends by re-raising its own cancellation
            pass

    def _transition(self, state: SessionState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise StateTransitionError(
                f"Illegal session transition {self.state.value} -> {state.value}",
                context={"session_id": self.id},
            )
        self.state = state

    async def _emit(self, event_type: AnalysisEventType, data: str) -> None:
        if self._sealed:
            return
        event = AnalysisEvent(type=event_type, data=data)
        if event.is_terminal:
            self._sealed = True
        await self._queue.put(event)

    async def _run(self) -> None:
        start = time.perf_counter()
        logger.bind(session_id=self.id, operation="analysis").info(
            f"Analysis session {self.id} started"
        )

        try:
            await self._emit(AnalysisEventType.STATUS, "Starting context retrieval...")
            self.context = await self.context_engine.get_context(self.query, self.options)

            documents = self.context.context.documents
            await self._emit(
                AnalysisEventType.STATUS, f"Found {self.context.total_results} relevant documents"
            )
            self._transition(SessionState.CONTEXT_RETRIEVED)

            if not documents:
                await self._emit(AnalysisEventType.ANALYSIS, NO_CONTEXT_MESSAGE)
                await self._finish()
                return

            messages = self._build_messages(self.context)
            self._transition(SessionState.ANALYZING)
            await self._emit(AnalysisEventType.STATUS, "Generating analysis...")

            async with aclosing(self.llm.stream_chat(messages)) as stream:
                async for increment in stream:
                    if not increment:
                        continue
                    self.analysis_chunks += 1
                    await self._emit(AnalysisEventType.ANALYSIS, increment)

            await self._emit(AnalysisEventType.STATUS, "Analysis complete")
            metadata = {
                "documents_analyzed": len(documents),
                "relationships_found": len(self.context.context.relationships),
                "processing_time_ms": round((time.perf_counter() - start) * 1000, 2),
                "total_analysis_chunks": self.analysis_chunks,
            }
            await self._emit(AnalysisEventType.METADATA, json.dumps(metadata))
            await self._finish()
        except asyncio.CancelledError:
            self._sealed = True
            self.state = SessionState.CANCELLED
            logger.bind(session_id=self.id, chunks=self.analysis_chunks).info(
                f"Analysis session {self.id} cancelled"
            )
            raise
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or type(e).__name__
            logger.bind(session_id=self.id, error=message, error_type=type(e).__name__).error(
                f"Analysis session {self.id} failed: {message}"
            )
            self.state = SessionState.ERRORED
            await self._emit(AnalysisEventType.ERROR, f"Analysis failed: {message}")
        finally:
            if self.state == SessionState.CANCELLED:
                # A full queue already wakes the consumer
                if not self._queue.full():
                    self._queue.put_nowait(_END)
            else:
                await self._queue.put(_END)

    async def _finish(self) -> None:
        self._transition(SessionState.COMPLETED)
        await self._emit(AnalysisEventType.DONE, "Analysis stream completed")
        logger.bind(session_id=self.id, chunks=self.analysis_chunks).info(
            f"Analysis session {self.id} completed"
        )

    def _build_messages(self, context: ContextResponse) -> list[dict[str, str]]:
        max_chars = self.config.max_document_chars
        lines = [f"Query: {context.query}", "", "Context documents:"]

        for index, document in enumerate(context.context.documents, start=1):
            title = document.metadata.get("title") or document.id
            lines.append(f"[{index}] {title} (relevance {document.score:.2f})")
            lines.append(document.content[:max_chars])
            lines.append("")

        if context.context.relationships:
            lines.append("Known relationships:")
            for rel in context.context.relationships:
                lines.append(
                    f"- {rel.source} -[{rel.type}]-> {rel.target} (confidence {rel.confidence:.2f})"
                )
            lines.append("")

        lines.append("Analyze this context in relation to the query.")

        return [
            {"role": "system", "content": self.config.system_prompt},
            {"role": "user", "content": "\n".join(lines)},
        ]
