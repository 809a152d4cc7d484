import asyncio
import collections.abc
import itertools
from typing import Any, Mapping, Optional

import aiohttp

from kubemanifest._cogs.clients import auth, errors
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs


@auth.authenticated
async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ReconcilerSettings,
        payload: Optional[object] = None,
        data: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: Optional[auth.APIContext] = None,  # injected by the decorator
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    if context is None:  # for type-checking!
        raise RuntimeError("API instance is not injected by the decorator.")

    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    backoffs = settings.networking.error_backoffs
    backoffs = backoffs if isinstance(backoffs, collections.abc.Iterable) else [backoffs]
    count = len(backoffs) + 1 if isinstance(backoffs, collections.abc.Sized) else None
    backoff: Optional[float]
    for retry, backoff in enumerate(itertools.chain(backoffs, [None]), start=1):
        idx = f"#{retry}/{count}" if count is not None else f"#{retry}"
        what = f"{method.upper()} {url}"
        try:
            if retry > 1:
                logger.debug(f"Request attempt {idx}: {what}")

            response = await context.session.request(
                method=method,
                url=url,
                json=payload,
                data=data,
                params=params,
                headers=headers,
                timeout=timeout,
            )
            await errors.check_response(response)  # but do not parse it!

        except (aiohttp.ClientConnectionError, errors.APIServerError, asyncio.TimeoutError) as e:
            if backoff is None:  # i.e. the last or the only attempt.
                logger.debug(f"Request attempt {idx} failed; escalating: {what} -> {e!r}")
                raise
            else:
                logger.error(f"Request attempt {idx} failed; will retry: {what} -> {e!r}")
                await asyncio.sleep(backoff)
        else:
            if retry > 1:
                logger.debug(f"Request attempt {idx} succeeded: {what}")
            return response

    raise RuntimeError("Broken retryable routine.")  # impossible, but needed for type-checking.


async def _call(method: str, url: str, **kwargs: Any) -> Any:
    """ Make a request and parse its JSON response. The errors are raised before parsing. """
    response = await request(method, url, **kwargs)
    async with response:
        return await response.json()


async def get(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ReconcilerSettings,
        params: Optional[Mapping[str, str]] = None,
        context: Optional[auth.APIContext] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _call('get', url, params=params,
                       settings=settings, context=context, logger=logger)


async def post(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ReconcilerSettings,
        payload: Optional[object] = None,
        context: Optional[auth.APIContext] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _call('post', url, payload=payload,
                       settings=settings, context=context, logger=logger)


async def patch(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ReconcilerSettings,
        data: bytes,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[auth.APIContext] = None,
        logger: typedefs.Logger,
) -> Any:
    # The patches are pre-serialized: their content type depends on the merge semantics.
    return await _call('patch', url, data=data, headers=headers,
                       settings=settings, context=context, logger=logger)


async def delete(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ReconcilerSettings,
        payload: Optional[object] = None,
        context: Optional[auth.APIContext] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _call('delete', url, payload=payload,
                       settings=settings, context=context, logger=logger)
