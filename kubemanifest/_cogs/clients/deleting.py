from typing import Any, Dict, Optional

from kubemanifest._cogs.clients import api, auth
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs
from kubemanifest._cogs.structs import references


async def delete_obj(
        *,
        settings: configuration.ReconcilerSettings,
        resource: references.Resource,
        namespace: Optional[str],
        name: str,
        cascade: bool = False,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,
) -> None:
    """
    Request the deletion of an object; do not wait for it to be actually gone.

    With cascading, the object is kept until all its dependents are deleted
    (the foreground propagation). Otherwise, the server's default applies:
    the dependents are either orphaned or deleted in the background.
    """
    payload: Dict[str, Any] = {'apiVersion': 'v1', 'kind': 'DeleteOptions'}
    if cascade:
        payload['propagationPolicy'] = 'Foreground'

    await api.delete(
        url=resource.get_url(namespace=namespace, name=name),
        payload=payload,
        settings=settings,
        logger=logger,
        context=context,
    )
