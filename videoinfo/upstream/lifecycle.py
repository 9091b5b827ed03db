"""
Lifecycle management for the shared upstream client.

Constructing a client negotiates a session with the platform, so it is
expensive. One construction may be in flight at a time: concurrent callers
join it instead of starting their own, and a forced refresh replaces it.
"""
import threading
import logging
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Callable, Generic, Optional, TypeVar

from ..errors import InitializationError

logger = logging.getLogger("upstream.lifecycle")

C = TypeVar("C")


class ClientLifecycleManager(Generic[C]):
    """
    Owns the single shared client handle.

    Pattern:
    - First acquire() creates a pending Future and runs the factory
    - Callers arriving meanwhile wait on that same Future
    - The resolved Future stays cached until acquire(force_refresh=True)
      or invalidate() drops it
    - A failed construction is raised to every waiter and then forgotten,
      so the next acquire() starts from scratch

    Usage:
        clients = ClientLifecycleManager(lambda: InnertubeClient.create(settings))
        client = clients.acquire()
        client = clients.acquire(force_refresh=True)  # after a stale-handle error
    """

    def __init__(self, factory: Callable[[], C], timeout: Optional[float] = 30.0):
        """
        Initialize the manager.

        Args:
            factory: Builds a new client; may raise
            timeout: Max seconds a waiter blocks on someone else's construction
        """
        self._factory = factory
        self._timeout = timeout
        self._lock = threading.Lock()
        self._pending: Optional[Future] = None

    def acquire(self, force_refresh: bool = False) -> C:
        """
        Return the shared client, constructing it if needed.

        Args:
            force_refresh: Discard any cached or in-flight client first

        Returns:
            A client that was valid when this call returned

        Raises:
            InitializationError: If construction failed or timed out
        """
        with self._lock:
            if force_refresh:
                logger.info("Client refresh requested, discarding cached client")
                self._pending = None

            pending = self._pending
            is_builder = pending is None
            if is_builder:
                pending = Future()
                self._pending = pending

        if is_builder:
            self._build(pending)

        try:
            return pending.result(timeout=self._timeout)
        except FutureTimeoutError:
            raise InitializationError(
                f"Timed out after {self._timeout}s waiting for client initialization"
            )

    def invalidate(self) -> None:
        """Forget the cached client; the next acquire() rebuilds it."""
        with self._lock:
            self._pending = None

    @property
    def is_ready(self) -> bool:
        """True if a successfully constructed client is cached."""
        with self._lock:
            pending = self._pending
        return (
            pending is not None
            and pending.done()
            and pending.exception() is None
        )

    def _build(self, pending: Future) -> None:
        """Run the factory and publish the outcome on ``pending``."""
        logger.info("Initializing upstream client...")
        try:
            client = self._factory()
        except Exception as e:
            with self._lock:
                # A forced refresh may already have replaced this construction
                if self._pending is pending:
                    self._pending = None
            logger.error(f"Upstream client initialization failed: {e}")
            if isinstance(e, InitializationError):
                pending.set_exception(e)
            else:
                error = InitializationError(f"Client initialization failed: {e}")
                error.__cause__ = e
                pending.set_exception(error)
            return

        logger.info("Upstream client initialized")
        pending.set_result(client)
