"""
Streaming REST client for the interview chat service.
"""
import logging
from typing import Any, Dict, Iterator, Optional

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from .errors import ChatServiceError, StreamCancelledError, error_for_status
from .stream import CancellationToken, EventStreamDecoder
from ...config import Config, GOOGLE_CLOUD_SCOPE, REQUEST_TIMEOUT

logger = logging.getLogger("llm_client")


class ChatServiceClient:
    """POSTs chat payloads and yields the streamed reply text fragment by fragment."""

    def __init__(self,
                 url: str,
                 api_key: Optional[str] = None,
                 use_google_auth: bool = False,
                 credentials_json: Optional[str] = None,
                 timeout: int = REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.api_key = api_key
        self.use_google_auth = use_google_auth
        self.credentials_json = credentials_json
        self.timeout = timeout
        self.session = session or requests.Session()
        self._credentials = None

    @classmethod
    def from_config(cls, config: Config, session: Optional[requests.Session] = None) -> 'ChatServiceClient':
        url = config.chat_url
        if not url:
            raise ValueError("No chat endpoint configured")
        return cls(
            url=url,
            api_key=config.chat_api_key,
            use_google_auth=config.uses_vertex,
            credentials_json=config.google_application_credentials,
            timeout=config.request_timeout,
            session=session,
        )

    def _refresh_credentials(self):
        """Refresh the OAuth token for Vertex AI calls."""
        if self._credentials is None:
            if self.credentials_json:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_json, scopes=[GOOGLE_CLOUD_SCOPE],
                )
            else:
                self._credentials, _ = google.auth.default(scopes=[GOOGLE_CLOUD_SCOPE])

        if not self._credentials.valid:
            self._credentials.refresh(google.auth.transport.requests.Request())
        return self._credentials.token

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.use_google_auth:
            headers["Authorization"] = f"Bearer {self._refresh_credentials()}"
        elif self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def stream_completion(self, payload: Dict[str, Any], token: CancellationToken) -> Iterator[str]:
        """
        Send one chat request and yield reply fragments as they arrive.

        Args:
            payload: JSON body for the chat endpoint
            token: Cancellation handle, checked around every chunk read

        Raises:
            StreamCancelledError: token was cancelled; not a failure
            RateLimitError, ServiceUnavailableError, ChatServiceError: request failed
        """
        if token.cancelled:
            raise StreamCancelledError("Cancelled before request was sent")

        logger.debug("POST %s with %d messages", self.url, len(payload.get("messages", [])))
        try:
            response = self.session.post(
                self.url, headers=self._headers(), json=payload, stream=True, timeout=self.timeout
            )
        except requests.RequestException as e:
            if token.cancelled:
                raise StreamCancelledError("Cancelled while connecting") from e
            logger.error("Chat request failed: %s", e)
            raise ChatServiceError(f"Chat request failed: {e}") from e

        token.on_cancel(response.close)
        try:
            if response.status_code >= 400:
                error = error_for_status(response.status_code, response.text)
                logger.error("Chat service returned %d: %s", response.status_code, error)
                raise error

            decoder = EventStreamDecoder()
            chunks = response.iter_content(chunk_size=None)
            while True:
                if token.cancelled:
                    raise StreamCancelledError("Cancelled while streaming")
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except Exception as e:
                    # Closing the response from another thread breaks the read
                    if token.cancelled:
                        raise StreamCancelledError("Cancelled while streaming") from e
                    if isinstance(e, requests.RequestException):
                        raise ChatServiceError(f"Stream interrupted: {e}") from e
                    raise
                if token.cancelled:
                    raise StreamCancelledError("Cancelled while streaming")

                for fragment in decoder.feed(chunk):
                    yield fragment
                if decoder.done:
                    logger.debug("Stream finished with [DONE]")
                    return

            for fragment in decoder.close():
                yield fragment
            logger.debug("Stream ended without [DONE]")
        finally:
            response.close()
