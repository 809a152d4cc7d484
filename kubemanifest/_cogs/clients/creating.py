from typing import Optional

from kubemanifest._cogs.clients import api, auth
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs
from kubemanifest._cogs.structs import bodies, references


async def create_obj(
        *,
        settings: configuration.ReconcilerSettings,
        resource: references.Resource,
        body: bodies.RawBody,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,
) -> bodies.RawBody:
    """
    Create an object. The existing objects fail with `APIAlreadyExistsError`.
    """
    namespace = body.get('metadata', {}).get('namespace')
    created_body: bodies.RawBody = await api.post(
        url=resource.get_url(namespace=namespace),
        payload=body,
        settings=settings,
        logger=logger,
        context=context,
    )
    return created_body
