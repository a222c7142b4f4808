import asyncio, logging
from typing import Any, Callable, List, Optional
import requests
from office365.sharepoint.client_context import ClientContext
from errors import RemoteServiceError

log = logging.getLogger(__name__)

RETRY_STATUSES = (429, 503)

class PendingOperation:
    """One queued client-object query; its value is readable after the flush that carried it."""
    def __init__(self, queue: Callable[[], Any], parse: Optional[Callable[[Any], Any]] = None):
        self.queue = queue
        self.parse = parse
        self.target = None
        self.executed = False
        self._value = None

    @property
    def is_read(self) -> bool:
        return self.parse is not None

    def requeue(self):
        self.target = self.queue()

    def resolve(self):
        self._value = self.parse(self.target) if self.parse else None
        self.executed = True

    @property
    def value(self):
        if not self.executed:
            raise RuntimeError("Query has not been executed yet; call execute() first.")
        return self._value

def client_error_message(e: requests.RequestException) -> str:
    """Pull the SharePoint error text out of a failed request."""
    response = getattr(e, "response", None)
    if response is not None:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = payload.get("error") or payload.get("odata.error") or {}
            message = error.get("message") if isinstance(error, dict) else None
            if isinstance(message, dict):
                message = message.get("value")
            if message:
                return message
    message = getattr(e, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(e) or e.__class__.__name__

class QueryBatch:
    """Queue of client-object queries sent together by execute().

    Each execute() is one flush: the queue is emptied, its queries are put on the
    ClientContext and sent with execute_batch(). A throttled or dropped flush is
    replayed as a whole.
    """
    def __init__(self, ctx: ClientContext, retry_count: int = 10, retry_delay: float = 0.5,
                 max_retry_delay: float = 30.0):
        self.ctx = ctx
        self.retry_count = max(1, retry_count)
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self.pending: List[PendingOperation] = []

    def enqueue(self, queue: Callable[[], Any], parse: Optional[Callable[[Any], Any]] = None) -> PendingOperation:
        op = PendingOperation(queue, parse)
        self.pending.append(op)
        return op

    def _backoff(self, attempt: int, response) -> float:
        retry_after = response.headers.get("Retry-After") if response is not None else None
        if retry_after:
            try:
                return min(float(retry_after), self.max_retry_delay)
            except ValueError:
                pass
        return min(self.retry_delay * (2 ** attempt), self.max_retry_delay)

    def _send(self, ops: List[PendingOperation]):
        self.ctx.clear()
        for op in ops:
            op.requeue()
        self.ctx.execute_batch()

    async def execute(self) -> List[PendingOperation]:
        ops, self.pending = self.pending, []
        if not ops:
            return ops
        log.debug(f"Sending batch of {len(ops)} queries ({sum(op.is_read for op in ops)} reads)")
        for attempt in range(self.retry_count):
            try:
                await asyncio.to_thread(self._send, ops)
                break
            except requests.RequestException as e:
                response = getattr(e, "response", None)
                status = response.status_code if response is not None else None
                transient = status in RETRY_STATUSES or (
                    response is None and isinstance(e, (requests.ConnectionError, requests.Timeout)))
                if not transient:
                    raise RemoteServiceError(client_error_message(e), details={"status": status}) from e
                if attempt == self.retry_count - 1:
                    raise RemoteServiceError(f"SharePoint batch failed after {self.retry_count} attempts: {client_error_message(e)}",
                                             details={"status": status}) from e
                delay = self._backoff(attempt, response)
                log.warning(f"Batch attempt {attempt + 1}/{self.retry_count} failed ({status or e.__class__.__name__}); retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
        for op in ops:
            op.resolve()
        return ops
