from typing import Dict, Optional

from kubemanifest._cogs.clients import api, auth, errors
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs
from kubemanifest._cogs.structs import references


@auth.authenticated
async def discover(
        *,
        settings: configuration.ReconcilerSettings,
        group: str,
        version: str,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,  # injected by the decorator
) -> Dict[str, references.Resource]:
    """
    Get all the resources of one group-version, indexed by their kinds.

    The group-versions are scanned once per API context, and then cached.
    The absent group-versions (HTTP 404) are cached as empty.
    """
    if context is None:
        raise RuntimeError("API instance is not injected by the decorator.")

    api_version = f'{group}/{version}'.strip('/')
    if api_version not in context._discovered_resources:
        async with context._discovery_lock:
            if api_version not in context._discovered_resources:
                resources: Dict[str, references.Resource] = {}
                try:
                    rsp = await api.get(
                        url=references.get_version_url(group, version),
                        settings=settings,
                        logger=logger,
                        context=context,
                    )
                except errors.APINotFoundError:
                    rsp = {}

                for info in rsp.get('resources', []):
                    if '/' in info['name']:  # subresources are not the objects
                        continue
                    resources[info['kind']] = references.Resource(
                        group=group,
                        version=version,
                        plural=info['name'],
                        kind=info['kind'],
                        namespaced=bool(info.get('namespaced', True)),
                    )
                context._discovered_resources[api_version] = resources

    return context._discovered_resources[api_version]


async def resolve_resource(
        *,
        settings: configuration.ReconcilerSettings,
        gvk: references.GroupVersionKind,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,
) -> references.Resource:
    """
    Map the object's kind to the resource's endpoint (its plural name & scope).
    """
    resources = await discover(settings=settings, group=gvk.group, version=gvk.version,
                               logger=logger, context=context)
    try:
        return resources[gvk.kind]
    except KeyError:
        raise errors.ResourceNoMatchError(f"No matches for kind {gvk.kind!r} "
                                          f"in version {gvk.group_version!r}.") from None
