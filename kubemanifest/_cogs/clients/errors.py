"""
The failures reported by the K8s API, as the reconciler sees them.

Every HTTP response of 400 and above becomes an :class:`APIError`.
The subclasses are the statuses that the reconciliation calls react to:

* :class:`APINotFoundError` is the goal when reading or deleting the objects,
  and a failure everywhere else.
* :class:`APIConflictError` means a stale ``resourceVersion`` in the patches,
  or an existing object on creation (:class:`APIAlreadyExistsError`).
  The conflicts are never retried: the caller must re-read the object.
* :class:`APIServerError` (5xx) is retried in the API calls with
  the configured backoffs, and escalated when they are exhausted.

The connectivity & TLS errors are not wrapped: they are not K8s' verdicts.
The ``aiohttp`` errors remain available as the causes of these errors.

Only the ``Status`` payloads are kept in the errors and shown in the messages.
Other payloads might contain the objects' data (e.g. secrets), so they are
dropped and the errors carry only the HTTP status.
"""
import collections.abc
import json
from typing import Collection, Mapping, Optional, Tuple, Type

import aiohttp
from typing_extensions import Literal, TypedDict


class RawStatusCause(TypedDict):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.28/#status-v1-meta
class RawStatus(TypedDict):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


class APIError(Exception):
    """ A failed API call; the fields are taken from the ``Status`` payload, if any. """

    def __init__(
            self,
            payload: Optional[RawStatus],
            *,
            status: int,
    ) -> None:
        super().__init__(payload.get('message') if payload else None, payload)
        self._status = status
        self._payload = payload

    def __str__(self) -> str:
        text = self.message or self.reason or 'no details from the API'
        return f"({self._status}) {text}"

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return None if self._payload is None else self._payload.get('code')

    @property
    def reason(self) -> Optional[str]:
        return None if self._payload is None else self._payload.get('reason')

    @property
    def message(self) -> Optional[str]:
        return None if self._payload is None else self._payload.get('message')

    @property
    def details(self) -> Optional[RawStatusDetails]:
        return None if self._payload is None else self._payload.get('details')


class APIServerError(APIError):
    pass


class APIUnauthorizedError(APIError):
    pass


class APIForbiddenError(APIError):
    pass


class APINotFoundError(APIError):
    pass


class APIConflictError(APIError):
    pass


class APIAlreadyExistsError(APIConflictError):
    pass


class ResourceNoMatchError(Exception):
    """ The kind is not served by the API (e.g. a CRD is not installed). """


# The (status, reason) pairs first, then the statuses with any reason.
SPECIALISED_ERRORS: Mapping[Tuple[int, Optional[str]], Type[APIError]] = {
    (409, 'AlreadyExists'): APIAlreadyExistsError,
    (401, None): APIUnauthorizedError,
    (403, None): APIForbiddenError,
    (404, None): APINotFoundError,
    (409, None): APIConflictError,
}


def classify_error(status: int, reason: Optional[str] = None) -> Type[APIError]:
    """ Pick the error class for the HTTP status and the ``Status`` reason. """
    for lookup in [(status, reason), (status, None)]:
        if lookup in SPECIALISED_ERRORS:
            return SPECIALISED_ERRORS[lookup]
    return APIServerError if status >= 500 else APIError


async def _read_status(response: aiohttp.ClientResponse) -> Optional[RawStatus]:
    try:
        payload = await response.json()
    except (json.JSONDecodeError, aiohttp.ContentTypeError, aiohttp.ClientConnectionError):
        return None
    if isinstance(payload, collections.abc.Mapping) and payload.get('kind') == 'Status':
        return payload  # type: ignore
    return None


async def check_response(response: aiohttp.ClientResponse) -> None:
    """
    Raise the classified :class:`APIError` if the response is a failure.

    The body is read before ``raise_for_status()``, which releases it.
    """
    if response.status < 400:
        return

    payload = await _read_status(response)
    cls = classify_error(response.status, payload.get('reason') if payload else None)
    try:
        response.raise_for_status()
    except aiohttp.ClientResponseError as e:
        raise cls(payload, status=response.status) from e
