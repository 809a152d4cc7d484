import aiohttp
import pytest

from kubemanifest._cogs.clients.api import delete, get, patch, post, request
from kubemanifest._cogs.clients.auth import APIContext
from kubemanifest._cogs.clients.errors import APIConflictError, APIServerError
from kubemanifest._cogs.structs.credentials import ConnectionInfo


def status(code, reason):
    return {'apiVersion': 'v1', 'kind': 'Status', 'code': code, 'reason': reason, 'message': 'msg'}


async def test_get(fake_api, api_context, settings, logger):
    fake_api.add('get', '/url', {'a': 'b'})
    result = await get('/url', params={'x': 'y'}, settings=settings, logger=logger, context=api_context)
    assert result == {'a': 'b'}
    assert fake_api.requested('get', '/url')[0].query == {'x': 'y'}


async def test_post(fake_api, api_context, settings, logger):
    fake_api.add('post', '/url', {'a': 'b'})
    result = await post('/url', payload={'x': 'y'}, settings=settings, logger=logger, context=api_context)
    assert result == {'a': 'b'}
    assert fake_api.requested('post', '/url')[0].data == {'x': 'y'}


async def test_patch(fake_api, api_context, settings, logger):
    fake_api.add('patch', '/url', {'a': 'b'})
    result = await patch('/url', data=b'{"x":"y"}', headers={'Content-Type': 'application/merge-patch+json'},
                         settings=settings, logger=logger, context=api_context)
    assert result == {'a': 'b'}
    request_ = fake_api.requested('patch', '/url')[0]
    assert request_.data == {'x': 'y'}
    assert request_.headers['Content-Type'] == 'application/merge-patch+json'


async def test_delete(fake_api, api_context, settings, logger):
    fake_api.add('delete', '/url', {'a': 'b'})
    result = await delete('/url', payload={'x': 'y'}, settings=settings, logger=logger, context=api_context)
    assert result == {'a': 'b'}
    assert fake_api.requested('delete', '/url')[0].data == {'x': 'y'}


@pytest.mark.parametrize('version, useragent', [
    ('1.2.3', 'kubemanifest/1.2.3'),
    ('1.2rc', 'kubemanifest/1.2rc'),
    (None, 'kubemanifest/unknown'),
])
async def test_user_agent_is_set(fake_api, settings, logger, mocker, version, useragent):
    mocker.patch('kubemanifest._cogs.helpers.versions.version', version)
    fake_api.add('get', '/url', {})
    context = APIContext(ConnectionInfo(server=fake_api.url))
    try:
        await get('/url', settings=settings, logger=logger, context=context)
    finally:
        await context.close()
    assert fake_api.requests[0].headers['User-Agent'] == useragent


async def test_token_auth(fake_api, settings, logger):
    fake_api.add('get', '/url', {})
    context = APIContext(ConnectionInfo(server=fake_api.url, token='tkn'))
    try:
        await get('/url', settings=settings, logger=logger, context=context)
    finally:
        await context.close()
    assert fake_api.requests[0].headers['Authorization'] == 'Bearer tkn'


async def test_no_retries_by_default(fake_api, api_context, settings, logger):
    fake_api.add('get', '/url', (500, status(500, 'InternalError')), {'a': 'b'})
    with pytest.raises(APIServerError):
        await get('/url', settings=settings, logger=logger, context=api_context)
    assert len(fake_api.requests) == 1


async def test_server_errors_are_retried(fake_api, api_context, settings, logger, assert_logs):
    settings.networking.error_backoffs = [0, 0]
    fake_api.add('get', '/url', (500, status(500, 'InternalError')),
                                (503, status(503, 'ServiceUnavailable')), {'a': 'b'})
    result = await get('/url', settings=settings, logger=logger, context=api_context)
    assert result == {'a': 'b'}
    assert len(fake_api.requests) == 3
    assert_logs([
        r"Request attempt #1/3 failed; will retry: GET .*/url",
        r"Request attempt #2/3 failed; will retry: GET .*/url",
        r"Request attempt #3/3 succeeded: GET .*/url",
    ])


async def test_retries_are_limited(fake_api, api_context, settings, logger, assert_logs):
    settings.networking.error_backoffs = [0]
    fake_api.add('get', '/url', (500, status(500, 'InternalError')))
    with pytest.raises(APIServerError):
        await get('/url', settings=settings, logger=logger, context=api_context)
    assert len(fake_api.requests) == 2
    assert_logs([r"Request attempt #2/2 failed; escalating: GET .*/url"])


async def test_client_errors_are_not_retried(fake_api, api_context, settings, logger):
    settings.networking.error_backoffs = [0, 0]
    fake_api.add('get', '/url', (409, status(409, 'Conflict')))
    with pytest.raises(APIConflictError):
        await get('/url', settings=settings, logger=logger, context=api_context)
    assert len(fake_api.requests) == 1


async def test_connection_errors_are_escalated(unused_tcp_port, settings, logger):
    context = APIContext(ConnectionInfo(server=f'http://127.0.0.1:{unused_tcp_port}'))
    try:
        with pytest.raises(aiohttp.ClientConnectionError):
            await request('get', '/url', settings=settings, logger=logger, context=context)
    finally:
        await context.close()
