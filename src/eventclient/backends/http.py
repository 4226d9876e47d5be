"""
HTTP backend implementation.

Talks to the REST API with httpx. Status codes are mapped onto the error
contract of the Backend interface:
- 404 on an aggregate load: AggregateNotFoundError
- 409 on an append: BackendError with status_code 409
- 412 on a delete confirmation: PreconditionFailedError
- any other failure: BackendError
"""

import logging
from typing import Any
from urllib.parse import quote
from uuid import UUID

import httpx

from eventclient.backends.interface import ALL_FEED, Backend
from eventclient.config import ClientConfig
from eventclient.delete import DeleteScope
from eventclient.events import EventBatch, LoadedAggregate
from eventclient.exceptions import AggregateNotFoundError, BackendError, PreconditionFailedError
from eventclient.feed.models import FeedInfo, FeedPage
from eventclient.observability import (
    ATTR_HTTP_METHOD,
    ATTR_HTTP_STATUS_CODE,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)

ACCESS_KEY_HEADER = "Serialized-Access-Key"
SECRET_ACCESS_KEY_HEADER = "Serialized-Secret-Access-Key"
TENANT_ID_HEADER = "Serialized-Tenant-Id"
CURRENT_SEQUENCE_NUMBER_HEADER = "Serialized-SequenceNumber-Current"


class HttpBackend(Backend):
    """
    Backend that calls the REST API over HTTP.

    The httpx client is created from the config unless one is injected;
    close() only closes a client this backend created.

    Example:
        >>> config = ClientConfig(access_key="key", secret_access_key="secret")
        >>> async with HttpBackend(config) as backend:
        ...     orders = AggregateClient(backend, "order", fold, OrderState)
        ...     await orders.update(order_id, place_order)
    """

    def __init__(
        self,
        config: ClientConfig,
        client: httpx.AsyncClient | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the HTTP backend.

        Args:
            config: Connection settings
            client: Optional pre-configured httpx client (e.g. with a mock
                transport); requests use absolute URLs so it needs no base_url
            tracer: Optional custom Tracer instance
            enable_tracing: If True, emit OpenTelemetry spans. Ignored if
                tracer is explicitly provided.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(config.timeout))

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def load_aggregate(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> LoadedAggregate:
        response = await self._request(
            "GET",
            self._aggregate_path(aggregate_type, aggregate_id),
            tenant_id=tenant_id,
        )
        if response.status_code == 404:
            raise AggregateNotFoundError(aggregate_type, aggregate_id)
        self._raise_for_status(response)
        return LoadedAggregate.model_validate(response.json())

    async def append_events(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        batch: EventBatch,
        tenant_id: UUID | None = None,
    ) -> None:
        response = await self._request(
            "POST",
            f"{self._aggregate_path(aggregate_type, aggregate_id)}/events",
            tenant_id=tenant_id,
            json=batch.to_wire(),
        )
        self._raise_for_status(response)

    async def aggregate_exists(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> bool:
        response = await self._request(
            "HEAD",
            self._aggregate_path(aggregate_type, aggregate_id),
            tenant_id=tenant_id,
        )
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    async def request_delete(self, scope: DeleteScope) -> str:
        response = await self._request("DELETE", self._delete_path(scope), tenant_id=scope.tenant_id)
        self._raise_for_status(response)
        token = response.json().get("deleteToken")
        if not token:
            raise BackendError(f"No delete token returned for {scope}", status_code=response.status_code)
        return token

    async def confirm_delete(self, scope: DeleteScope, token: str) -> None:
        response = await self._request(
            "DELETE",
            self._delete_path(scope),
            tenant_id=scope.tenant_id,
            params={"deleteToken": token},
        )
        self._raise_for_status(response)

    async def fetch_feed_page(
        self,
        feed_name: str,
        since: int = 0,
        *,
        limit: int | None = None,
        partition_count: int | None = None,
        partition_number: int | None = None,
        tenant_id: UUID | None = None,
    ) -> FeedPage:
        params: dict[str, Any] = {"since": since}
        if limit is not None:
            params["limit"] = limit
        if partition_count is not None and partition_number is not None:
            params["partitionCount"] = partition_count
            params["partitionNumber"] = partition_number

        response = await self._request(
            "GET",
            self._feed_path(feed_name),
            tenant_id=tenant_id,
            params=params,
        )
        self._raise_for_status(response)
        return FeedPage.model_validate(response.json())

    async def list_feeds(self, tenant_id: UUID | None = None) -> list[FeedInfo]:
        response = await self._request("GET", "/feeds", tenant_id=tenant_id)
        self._raise_for_status(response)
        return [FeedInfo.model_validate(feed) for feed in response.json().get("feeds", [])]

    async def current_sequence_number(
        self,
        feed_name: str = ALL_FEED,
        tenant_id: UUID | None = None,
    ) -> int:
        response = await self._request("HEAD", self._feed_path(feed_name), tenant_id=tenant_id)
        self._raise_for_status(response)

        value = response.headers.get(CURRENT_SEQUENCE_NUMBER_HEADER)
        if value is None:
            raise BackendError(
                f"Response for feed {feed_name} has no {CURRENT_SEQUENCE_NUMBER_HEADER} header",
                status_code=response.status_code,
            )
        try:
            return int(value)
        except ValueError:
            raise BackendError(
                f"Invalid {CURRENT_SEQUENCE_NUMBER_HEADER} header for feed {feed_name}: {value!r}",
                status_code=response.status_code,
            ) from None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpBackend":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        tenant_id: UUID | None = None,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request; transport failures become BackendError."""
        attributes: dict[str, Any] = {ATTR_HTTP_METHOD: method}
        if tenant_id is not None:
            attributes[ATTR_TENANT_ID] = str(tenant_id)

        with self._tracer.span(f"eventclient.http.{method.lower()}", attributes) as span:
            try:
                response = await self._client.request(
                    method,
                    f"{self._config.api_root}{path}",
                    headers=self._headers(tenant_id),
                    params=params,
                    json=json,
                )
            except httpx.HTTPError as e:
                logger.warning("%s %s failed: %s", method, path, e)
                raise BackendError(f"{method} {path} failed: {e}") from e

            if span:
                span.set_attribute(ATTR_HTTP_STATUS_CODE, response.status_code)

        logger.debug(
            "%s %s -> %d",
            method,
            path,
            response.status_code,
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        return response

    def _headers(self, tenant_id: UUID | None) -> dict[str, str]:
        headers = {
            ACCESS_KEY_HEADER: self._config.access_key,
            SECRET_ACCESS_KEY_HEADER: self._config.secret_access_key,
        }
        if tenant_id is not None:
            headers[TENANT_ID_HEADER] = str(tenant_id)
        return headers

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = e.response.text or e.response.reason_phrase
            if status == 412:
                raise PreconditionFailedError(
                    f"{e.request.method} {e.request.url.path} rejected: {detail}"
                ) from e
            raise BackendError(
                f"{e.request.method} {e.request.url.path} failed: {detail}",
                status_code=status,
            ) from e

    @staticmethod
    def _aggregate_path(aggregate_type: str, aggregate_id: UUID) -> str:
        return f"/aggregates/{quote(aggregate_type, safe='')}/{aggregate_id}"

    @staticmethod
    def _delete_path(scope: DeleteScope) -> str:
        path = f"/aggregates/{quote(scope.aggregate_type, safe='')}"
        if scope.aggregate_id is not None:
            path = f"{path}/{scope.aggregate_id}"
        return path

    @staticmethod
    def _feed_path(feed_name: str) -> str:
        return f"/feeds/{quote(feed_name, safe='')}"


__all__ = ["HttpBackend"]
