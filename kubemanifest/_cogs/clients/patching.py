import json
from typing import Optional

from kubemanifest._cogs.clients import api, auth
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs
from kubemanifest._cogs.structs import bodies, patches, references


async def patch_obj(
        *,
        settings: configuration.ReconcilerSettings,
        resource: references.Resource,
        namespace: Optional[str],
        name: str,
        patch: patches.PatchDescriptor,
        resource_version: Optional[str] = None,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,
) -> bodies.RawBody:
    """
    Patch an object with a pre-computed patch of the specified merge semantics.

    If the resource version is set, it is added to the patch. K8s rejects
    such patches with HTTP 409 if the object has been modified since that
    version was read, so that the concurrent changes are never overwritten.
    The conflicts are escalated as `APIConflictError`, and not retried.
    """
    data = patch.data
    if resource_version:
        payload = json.loads(data)
        payload.setdefault('metadata', {})['resourceVersion'] = resource_version
        data = patches.serialize(payload)

    patched_body: bodies.RawBody = await api.patch(
        url=resource.get_url(namespace=namespace, name=name),
        headers={'Content-Type': patch.strategy.content_type},
        data=data,
        settings=settings,
        logger=logger,
        context=context,
    )
    return patched_body
