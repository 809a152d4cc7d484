import io
import json
import logging
import re
import sys
import time
from typing import Any, Dict, List, NamedTuple, Optional

import aiohttp.test_utils
import aiohttp.web
import pytest

from kubemanifest._cogs.clients.auth import APIContext
from kubemanifest._cogs.configs.configuration import ReconcilerSettings
from kubemanifest._cogs.structs.credentials import ConnectionInfo
from kubemanifest._core.actions.loggers import ObjectPrefixingTextFormatter, configure


@pytest.fixture()
def settings():
    settings = ReconcilerSettings()
    settings.polling.delay = 0
    settings.polling.interval = 0
    settings.timeouts.create = 1.0
    settings.timeouts.update = 1.0
    settings.timeouts.delete = 1.0
    return settings


@pytest.fixture()
def logger():
    return logging.getLogger('kubemanifest.tests')


#
# A fake K8s API server: the responses are pre-defined per method & path,
# the requests are recorded for the later assertions.
#

class RecordedRequest(NamedTuple):
    method: str
    path: str
    query: Dict[str, str]
    headers: Dict[str, str]
    data: Any


class FakeAPIServer:
    """
    Serve the pre-defined responses in order; the last one is repeated forever.

    The responses are either the dicts (served as JSON with HTTP 200),
    or the tuples ``(status, payload)``. Unknown paths get HTTP 404.
    """

    def __init__(self) -> None:
        super().__init__()
        self.url: str = ''
        self.requests: List[RecordedRequest] = []
        self._routes: Dict[Any, List[Any]] = {}

    def add(self, method: str, path: str, *responses: Any) -> None:
        self._routes[(method.upper(), path)] = list(responses)

    def requested(self, method: str, path: Optional[str] = None) -> List[RecordedRequest]:
        return [request for request in self.requests
                if request.method == method.upper() and (path is None or request.path == path)]

    async def handle(self, request: aiohttp.web.Request) -> aiohttp.web.Response:
        raw = await request.read()
        self.requests.append(RecordedRequest(
            method=request.method,
            path=request.path,
            query=dict(request.query),
            headers=dict(request.headers),
            data=json.loads(raw) if raw else None,
        ))

        responses = self._routes.get((request.method, request.path))
        if not responses:
            return aiohttp.web.json_response(status_payload(404, 'NotFound'), status=404)

        response = responses.pop(0) if len(responses) > 1 else responses[0]
        status, payload = response if isinstance(response, tuple) else (200, response)
        return aiohttp.web.json_response(payload, status=status)


def status_payload(code: int, reason: str, message: str = 'msg') -> Dict[str, Any]:
    return {'apiVersion': 'v1', 'kind': 'Status', 'status': 'Failure',
            'code': code, 'reason': reason, 'message': message}


@pytest.fixture()
async def fake_api():
    server = FakeAPIServer()
    app = aiohttp.web.Application()
    app.router.add_route('*', '/{tail:.*}', server.handle)
    test_server = aiohttp.test_utils.TestServer(app)
    await test_server.start_server()
    server.url = str(test_server.make_url('/')).rstrip('/')
    try:
        yield server
    finally:
        await test_server.close()


@pytest.fixture()
async def api_context(fake_api):
    context = APIContext(ConnectionInfo(server=fake_api.url))
    try:
        yield context
    finally:
        await context.close()


CORE_V1 = {
    'kind': 'APIResourceList',
    'groupVersion': 'v1',
    'resources': [
        {'name': 'pods', 'kind': 'Pod', 'namespaced': True},
        {'name': 'pods/status', 'kind': 'Pod', 'namespaced': True},
        {'name': 'services', 'kind': 'Service', 'namespaced': True},
        {'name': 'configmaps', 'kind': 'ConfigMap', 'namespaced': True},
        {'name': 'namespaces', 'kind': 'Namespace', 'namespaced': False},
    ],
}

APPS_V1 = {
    'kind': 'APIResourceList',
    'groupVersion': 'apps/v1',
    'resources': [
        {'name': 'deployments', 'kind': 'Deployment', 'namespaced': True},
        {'name': 'deployments/scale', 'kind': 'Scale', 'namespaced': True},
        {'name': 'statefulsets', 'kind': 'StatefulSet', 'namespaced': True},
    ],
}

EXAMPLE_V1 = {
    'kind': 'APIResourceList',
    'groupVersion': 'example.com/v1',
    'resources': [
        {'name': 'widgets', 'kind': 'Widget', 'namespaced': True},
    ],
}


@pytest.fixture()
def discovery(fake_api):
    fake_api.add('get', '/api/v1', CORE_V1)
    fake_api.add('get', '/apis/apps/v1', APPS_V1)
    fake_api.add('get', '/apis/example.com/v1', EXAMPLE_V1)


#
# Helpers for the logging checks.
#

@pytest.fixture()
def logstream(caplog):
    """ Prefixing is done at the final output. We have to intercept it. """

    logger = logging.getLogger()
    handlers = list(logger.handlers)

    # Setup all log levels of sub-libraries. A side-effect: the handlers are also added.
    configure(verbose=True)

    # Remove any stream handlers added in the step above. But keep the caplog's handlers.
    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            logger.removeHandler(handler)

    # Inject our stream-intercepting handler.
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    formatter = ObjectPrefixingTextFormatter('prefix %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    try:
        with caplog.at_level(logging.DEBUG):
            yield stream
    finally:
        logger.removeHandler(handler)
        logger.handlers[:] = handlers  # undo `configure()`


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns, prohibited=()):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            for idx, pattern in enumerate(remaining_patterns):
                if re.search(pattern, message):
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")

            for pattern in prohibited:
                if re.search(pattern, message):
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn


#
# Helpers for the timing checks.
#

@pytest.fixture()
def timer():
    return Timer()


class Timer:
    """
    A helper context manager to measure the time of the code-blocks.

    Usage:

        with Timer() as timer:
            do_something()
            print(f"Executing for {timer.seconds}s already.")
            do_something_else()

        print(f"Executed in {timer.seconds}s.")
        assert timer.seconds < 5.0
    """

    def __init__(self):
        super().__init__()
        self._ts = None
        self._te = None

    @property
    def seconds(self):
        if self._ts is None:
            return None
        elif self._te is None:
            return time.perf_counter() - self._ts
        else:
            return self._te - self._ts

    def __enter__(self):
        self._ts = time.perf_counter()
        self._te = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._te = time.perf_counter()

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
