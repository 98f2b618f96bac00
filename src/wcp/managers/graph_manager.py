# src/wcp/managers/graph_manager.py
import logging
import threading
from collections import deque
from typing import Deque, Optional, Union

from bs4 import BeautifulSoup, Tag

from wcp.dom.builder import RegionGraphBuilder
from wcp.dom.incremental import apply_mutation
from wcp.dom.models import Mutation, PageGraph
from wcp.dom.qngine import QueryEngine

logger = logging.getLogger(__name__)


class GraphManager:
    """
    Owns the published PageGraph for one live document.

    Mutations are queued and applied one at a time, each producing a new
    snapshot that replaces the published reference. A full reparse request
    supersedes any queued incremental work (last request wins). Readers
    never lock: they hold whichever snapshot they fetched.
    """

    def __init__(
            self,
            source: Union[str, BeautifulSoup, Tag],
            builder: Optional[RegionGraphBuilder] = None,
            beacon=None
    ):
        self.builder = builder or RegionGraphBuilder()
        self.beacon = beacon
        self._queue: Deque[Mutation] = deque()
        self._lock = threading.Lock()
        self._processing = False
        self._full_requested = False
        self._snapshot = self.builder.build(source, version=0)
        self._ping_beacon()

    @property
    def snapshot(self) -> PageGraph:
        return self._snapshot

    @property
    def document(self):
        return self._snapshot.source

    @property
    def pending(self) -> int:
        return len(self._queue)

    def query(self) -> QueryEngine:
        """A QueryEngine bound to the snapshot published right now."""
        return QueryEngine(self._snapshot)

    def notify(self, mutation: Mutation) -> PageGraph:
        """Enqueues a mutation and drains the queue unless a drain is already running."""
        with self._lock:
            self._queue.append(mutation)
        return self.process_pending()

    def request_full_reparse(self) -> PageGraph:
        """Schedules a full rebuild that discards any queued incremental work."""
        with self._lock:
            self._full_requested = True
        return self.process_pending()

    def process_pending(self) -> PageGraph:
        """
        Applies queued work one item at a time on the calling thread.
        Re-entrant calls only enqueue; the running drain picks their work up.
        """
        with self._lock:
            if self._processing:
                return self._snapshot
            self._processing = True

        try:
            while True:
                with self._lock:
                    if self._full_requested:
                        self._full_requested = False
                        dropped = len(self._queue)
                        self._queue.clear()
                        mutation = None
                        full = True
                    elif self._queue:
                        mutation = self._queue.popleft()
                        full = False
                        dropped = 0
                    else:
                        # Cleared under the same lock that saw the empty queue,
                        # so a notify() arriving after this drains itself.
                        self._processing = False
                        break

                if full:
                    if dropped:
                        logger.info("Full reparse supersedes %d queued mutation(s).", dropped)
                    self._publish(self.builder.build(self.document, version=self._snapshot.version + 1))
                    self._ping_beacon()
                else:
                    self._publish(apply_mutation(self._snapshot, mutation, self.builder))
        except BaseException:
            with self._lock:
                self._processing = False
            raise

        return self._snapshot

    def _publish(self, graph: PageGraph) -> None:
        self._snapshot = graph
        logger.debug("Published page graph v%s.", graph.version)

    def _ping_beacon(self) -> None:
        if self.beacon is not None:
            self.beacon.maybe_ping(self.document)
