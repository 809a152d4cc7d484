"""
All configuration flags, options, settings to fine-tune the reconciler.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).
"""
import dataclasses
from typing import Iterable, Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the whole API request (all of its phases), in seconds.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for establishing the connection to the API server, in seconds.
    """

    error_backoffs: Iterable[float] = ()
    """
    Backoff intervals in case of connection errors and HTTP 5xx in the requests.

    The default is to not retry at all: the errors are escalated immediately
    to the reconciliation calls, which fail and can be re-run by the caller.
    To retry, set it to e.g. ``(1, 2, 4)`` -- 3 retries after 1s, 2s, 4s.
    """


@dataclasses.dataclass
class PollingSettings:

    delay: float = 5.0
    """
    How long to wait before the first check of the object's state, in seconds.
    """

    interval: float = 5.0
    """
    How long to wait between the checks of the object's state, in seconds.
    """


@dataclasses.dataclass
class TimeoutSettings:
    """
    The deadlines of the waits, per operation, in seconds.
    """

    create: float = 5 * 60
    update: float = 5 * 60
    delete: float = 5 * 60


@dataclasses.dataclass
class ReconcilerSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    polling: PollingSettings = dataclasses.field(default_factory=PollingSettings)
    timeouts: TimeoutSettings = dataclasses.field(default_factory=TimeoutSettings)

    namespace: str = 'default'
    """
    The namespace for the objects which have no namespace neither in the manifest,
    nor explicitly requested by the caller.
    """
