# race_relay/adapters/base.py
from typing import NoReturn
from typing import Optional

import httpx
import structlog


class BaseAdapter:
    """
    Common request handling for the relay's HTTP collaborators.

    Requests are made exactly once; there is no retry layer; a failed fetch
    is picked up again on the next scheduled pass. Transport and status errors
    are handed to ``_raise_request_error`` so each adapter can raise the
    exception type its callers handle.
    """

    def __init__(self, source_name: str, base_url: str = "", timeout: int = 20):
        self.source_name = source_name
        self.base_url = base_url
        self.timeout = timeout
        self.logger = structlog.get_logger(self.__class__.__name__)
        self.http_client: httpx.AsyncClient = None  # Injected by the engine

    def _raise_request_error(
        self, context: str, message: str, url: str, status_code: Optional[int] = None
    ) -> NoReturn:
        raise NotImplementedError

    async def make_request(self, method: str, url: str, context: str = "", **kwargs) -> httpx.Response:
        """
        Makes a single HTTP request and raises for 4xx/5xx responses.

        Raises whatever ``_raise_request_error`` raises for timeouts, connection
        failures and unsuccessful status codes. ``context`` (an event key or a
        race id) is passed through to it.
        """
        if self.http_client is None:
            raise RuntimeError(f"{self.source_name}: http_client has not been set")

        full_url = url if url.startswith("http") else f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"

        try:
            self.logger.debug("Making request", method=method.upper(), url=full_url)
            response = await self.http_client.request(method, full_url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            self.logger.error("request_timeout", url=full_url, error=str(e))
            self._raise_request_error(context, f"Request timed out for {full_url}", full_url)
        except httpx.ConnectError as e:
            self.logger.error("request_connection_error", url=full_url, error=str(e))
            self._raise_request_error(context, f"Connection failed for {full_url}", full_url)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            self.logger.error("http_status_error", status_code=status, url=full_url)
            self._raise_request_error(context, f"Received HTTP {status} from {full_url}", full_url, status)
        except httpx.RequestError as e:
            self.logger.error("request_error", url=full_url, error=str(e))
            self._raise_request_error(context, f"An unexpected request error occurred for {full_url}", full_url)
