"""
The reconciliation calls: create, read, update, delete, import.

Every call is a single coroutine, which runs to completion: the remote calls,
then the wait for the object to reach its target state (ready or deleted).
The objects are identified between the calls by their tracking keys.

The API errors are escalated wrapped into :class:`OperationError`
with the phase of the call, the object's kind & name, and the key
(the original error is the cause). The only exception is the absence
of the object where the absence is the goal: in reading and deleting.
"""
import asyncio
import contextlib
from typing import Iterator, Optional, Tuple, Type

from kubemanifest._cogs.clients import auth, creating, deleting, discovery, errors, fetching
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import errors as reconciliation_errors
from kubemanifest._cogs.helpers import manifests, typedefs
from kubemanifest._cogs.structs import bodies, ids, references, schemes
from kubemanifest._core.actions import loggers
from kubemanifest._core.engines import patching, readiness


async def create(
        content: str,
        *,
        namespace: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[configuration.ReconcilerSettings] = None,
        stop: Optional[asyncio.Event] = None,
        context: Optional[auth.APIContext] = None,
) -> ids.TrackingKey:
    """
    Create an object from its manifest, and wait until it is ready.

    The tracking key is known as soon as the object is created. If the wait
    fails afterwards, the key is available on the error as ``.key``, so that
    the callers can track the created object anyway.
    """
    settings = settings if settings is not None else configuration.ReconcilerSettings()
    timeout = timeout if timeout is not None else settings.timeouts.create
    body = manifests.parse_manifest(content)
    bodies.resolve_namespace(body, namespace, default=settings.namespace)
    logger = loggers.ObjectLogger(body=body, settings=settings)
    key = ids.build_id(body)

    with _phase('resolve', body, key):
        resource = await discovery.resolve_resource(settings=settings, gvk=body.group_version_kind,
                                                    logger=logger, context=context)

    logger.info("Creating the object.")
    with _phase('create', body, key):
        await creating.create_obj(settings=settings, resource=resource, body=body.raw,
                                  logger=logger, context=context)
    logger.debug(f"Created as {key!r}; waiting for it to become ready.")

    await _wait_for_readiness(body, resource, key=key, timeout=timeout, stop=stop,
                              settings=settings, logger=logger, context=context)

    with _phase('read back', body, key):
        await _fetch(body, resource, settings=settings, logger=logger, context=context)
    logger.info("The object is created and ready.")
    return key


async def read(
        key: str,
        *,
        settings: Optional[configuration.ReconcilerSettings] = None,
        context: Optional[auth.APIContext] = None,
) -> Optional[bodies.Body]:
    """
    Read the object by its key, or return ``None`` if it does not exist anymore.

    The kinds that are not served by the API anymore (e.g. with their CRDs
    deleted) are considered as gone too: their objects are surely gone.
    """
    settings = settings if settings is not None else configuration.ReconcilerSettings()
    body = ids.build_body(key)
    logger = loggers.ObjectLogger(body=body, settings=settings)
    try:
        with _phase('resolve', body, key, passthrough=(errors.ResourceNoMatchError,)):
            resource = await discovery.resolve_resource(settings=settings,
                                                        gvk=body.group_version_kind,
                                                        logger=logger, context=context)
            _check_scope(body, resource)
        with _phase('read', body, key, passthrough=(errors.APINotFoundError,)):
            return await _fetch(body, resource, settings=settings, logger=logger, context=context)
    except (errors.ResourceNoMatchError, errors.APINotFoundError):
        logger.info("The object is gone.")
        return None


async def update(
        key: str,
        original_content: str,
        target_content: str,
        *,
        timeout: Optional[float] = None,
        settings: Optional[configuration.ReconcilerSettings] = None,
        scheme: Optional[schemes.NativeScheme] = None,
        stop: Optional[asyncio.Event] = None,
        context: Optional[auth.APIContext] = None,
) -> ids.TrackingKey:
    """
    Patch the live object from the previously applied manifest to the new one.

    The changes made to the live object by others are kept, unless they
    conflict with the new manifest. The object must exist: there is nothing
    to patch otherwise.
    """
    settings = settings if settings is not None else configuration.ReconcilerSettings()
    timeout = timeout if timeout is not None else settings.timeouts.update
    identity = ids.parse_id(key)
    original = manifests.parse_manifest(original_content)
    target = manifests.parse_manifest(target_content)
    bodies.resolve_namespace(original, identity.namespace, default=settings.namespace)
    bodies.resolve_namespace(target, identity.namespace, default=settings.namespace)
    logger = loggers.ObjectLogger(body=target, settings=settings)

    with _phase('resolve', target, key):
        resource = await discovery.resolve_resource(settings=settings,
                                                    gvk=target.group_version_kind,
                                                    logger=logger, context=context)
    with _phase('fetch', target, key):
        current = await _fetch(target, resource, settings=settings, logger=logger, context=context)

    original.resource_version = ''
    target.resource_version = current.resource_version
    with _phase('compute the patch for', target, key):
        patch = patching.create_patch(target, original, current, scheme=scheme)

    with _phase('patch', target, key):
        await patching.apply_patch(settings=settings, resource=resource, current=current,
                                   patch=patch, logger=logger, context=context)

    new_key = ids.build_id(target)
    await _wait_for_readiness(target, resource, key=new_key, timeout=timeout, stop=stop,
                              settings=settings, logger=logger, context=context)
    logger.info("The object is updated and ready.")
    return new_key


async def delete(
        key: str,
        *,
        cascade: bool = False,
        timeout: Optional[float] = None,
        settings: Optional[configuration.ReconcilerSettings] = None,
        stop: Optional[asyncio.Event] = None,
        context: Optional[auth.APIContext] = None,
) -> None:
    """
    Delete the object by its key, and wait until it is actually gone.
    """
    settings = settings if settings is not None else configuration.ReconcilerSettings()
    timeout = timeout if timeout is not None else settings.timeouts.delete
    body = ids.build_body(key)
    logger = loggers.ObjectLogger(body=body, settings=settings)

    with _phase('resolve', body, key):
        resource = await discovery.resolve_resource(settings=settings, gvk=body.group_version_kind,
                                                    logger=logger, context=context)
        _check_scope(body, resource)

    logger.info(f"Deleting the object{' with its dependents' if cascade else ''}.")
    try:
        with _phase('delete', body, key, passthrough=(errors.APINotFoundError,)):
            await deleting.delete_obj(settings=settings, resource=resource,
                                      namespace=body.namespace, name=body.name,
                                      cascade=cascade, logger=logger, context=context)
    except errors.APINotFoundError:
        logger.info("The object is already deleted.")
        return

    async def fetch() -> bodies.Body:
        return await _fetch(body, resource, settings=settings, logger=logger, context=context)

    with _phase('wait for deletion', body, key):
        await readiness.wait_for_deletion(fetch, settings=settings, timeout=timeout, key=key,
                                          stop=stop, logger=logger)
    logger.info("The object is deleted.")


async def import_(
        key: str,
        *,
        settings: Optional[configuration.ReconcilerSettings] = None,
        context: Optional[auth.APIContext] = None,
) -> bodies.Body:
    """
    Read an existing object by its key to take it under management.

    Unlike reading, the absence of the object is an error here.
    """
    settings = settings if settings is not None else configuration.ReconcilerSettings()
    body = ids.build_body(key)
    logger = loggers.ObjectLogger(body=body, settings=settings)
    with _phase('resolve', body, key):
        resource = await discovery.resolve_resource(settings=settings, gvk=body.group_version_kind,
                                                    logger=logger, context=context)
        _check_scope(body, resource)
    with _phase('import', body, key):
        imported = await _fetch(body, resource, settings=settings, logger=logger, context=context)
    logger.info("The object is imported.")
    return imported


async def _fetch(
        body: bodies.Body,
        resource: references.Resource,
        *,
        settings: configuration.ReconcilerSettings,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext],
) -> bodies.Body:
    raw = await fetching.read_obj(settings=settings, resource=resource,
                                  namespace=body.namespace, name=body.name,
                                  logger=logger, context=context)
    return bodies.Body(raw)


def _check_scope(body: bodies.Body, resource: references.Resource) -> None:
    """ The keys of the namespaced objects must have the namespaces. """
    if resource.namespaced and not body.namespace:
        raise reconciliation_errors.IdFormatError(
            f"The key has no namespace for the namespaced {body.kind} {body.name!r}.")


async def _wait_for_readiness(
        body: bodies.Body,
        resource: references.Resource,
        *,
        key: ids.TrackingKey,
        timeout: float,
        stop: Optional[asyncio.Event],
        settings: configuration.ReconcilerSettings,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext],
) -> None:
    async def fetch() -> bodies.Body:
        return await _fetch(body, resource, settings=settings, logger=logger, context=context)

    with _phase('wait for readiness', body, key):
        await readiness.wait_for_readiness(fetch, settings=settings, timeout=timeout, key=key,
                                           stop=stop, logger=logger)


@contextlib.contextmanager
def _phase(
        phase: str,
        body: bodies.Body,
        key: str,
        *,
        passthrough: Tuple[Type[BaseException], ...] = (),
) -> Iterator[None]:
    """
    Wrap the API errors with the context of the failed call: what, where, which object.

    The reconciliation errors get the tracking key, if they have none yet.
    """
    try:
        yield
    except passthrough:
        raise
    except (errors.APIError, errors.ResourceNoMatchError) as e:
        target = f"{body.namespace}/{body.name}" if body.namespace else body.name
        raise reconciliation_errors.OperationError(
            f"Failed to {phase} {body.kind} {target!r}: {e}",
            phase=phase, key=key, error=e,
        ) from e
    except reconciliation_errors.ReconciliationError as e:
        if e.key is None:
            e.key = key
        raise
