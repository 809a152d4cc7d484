from typing import Optional

from kubemanifest._cogs.clients import api, auth
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs
from kubemanifest._cogs.structs import bodies, references


async def read_obj(
        *,
        settings: configuration.ReconcilerSettings,
        resource: references.Resource,
        namespace: Optional[str],
        name: str,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,
) -> bodies.RawBody:
    """
    Read one object by its identity.

    The absence of the object is escalated as `APINotFoundError`: it is up to
    the callers to decide whether it is an error or an expected outcome.
    """
    raw: bodies.RawBody = await api.get(
        url=resource.get_url(namespace=namespace, name=name),
        settings=settings,
        logger=logger,
        context=context,
    )
    return raw
