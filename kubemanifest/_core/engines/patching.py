"""
Patching of the live objects towards their desired states.

The patch strategy depends on whether the kind is natively known to K8s:
the native kinds are patched with the strategic merge-patches (three-way),
the custom & unknown kinds are patched with the JSON merge-patches (two-way),
since K8s has no merging metadata for them.

The resource versions are excluded from diffing: they are assigned by
the server and would always differ. Instead, the live object's version is
added to the patch when it is applied, so that the stale writes are rejected.
"""
import json
from typing import Any, Dict, Optional

from kubemanifest._cogs.clients import auth, patching
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import errors, typedefs
from kubemanifest._cogs.structs import bodies, patches, references, schemes
from kubemanifest._core.engines import merging


def create_patch(
        target: bodies.Body,
        original: bodies.Body,
        current: bodies.Body,
        *,
        scheme: Optional[schemes.NativeScheme] = None,
) -> patches.PatchDescriptor:
    """
    Compute the patch from the live state to the desired one.

    The bodies are not modified. The result is empty (``EMPTY_PATCH``)
    if the live object is already in the desired state.
    """
    scheme = scheme if scheme is not None else schemes.get_native_scheme()
    try:
        target_raw = _canonicalize(target)
        original_raw = _canonicalize(original)
        current_raw = _canonicalize(current)

        schema = scheme.lookup(target.group_version_kind)
        if schema is None:
            patch = merging.create_merge_patch(current_raw, target_raw)
            strategy = patches.PatchStrategy.MERGE
        else:
            patch = merging.create_three_way_merge_patch(original_raw, target_raw, current_raw,
                                                         schema=schema)
            strategy = patches.PatchStrategy.STRATEGIC_MERGE

        return patches.PatchDescriptor.from_patch(patch, strategy)
    except (TypeError, ValueError) as e:
        raise errors.PatchComputationError(f"Cannot compute a patch for {target.kind} "
                                           f"{target.name!r}: {e}") from e


def _canonicalize(body: bodies.Body) -> Dict[str, Any]:
    """ Serialize & deserialize the body with no resource version in it. """
    body = body.deepcopy()
    body.resource_version = ''
    canonical: Dict[str, Any] = json.loads(body.as_bytes())
    return canonical


async def apply_patch(
        *,
        settings: configuration.ReconcilerSettings,
        resource: references.Resource,
        current: bodies.Body,
        patch: patches.PatchDescriptor,
        logger: typedefs.Logger,
        context: Optional[auth.APIContext] = None,
) -> Optional[bodies.RawBody]:
    """
    Apply the patch to the live object, unless the patch is empty.

    The write is conditional: it succeeds only if the live object is still
    of the same version as was read. Otherwise, the conflict is escalated.
    """
    if patch.is_empty:
        logger.info("The object is already in the desired state; no patch is needed.")
        return None

    logger.info(f"Patching with a {patch.strategy} patch.")
    logger.debug(f"Patch: {patch.data.decode('utf-8')}")
    return await patching.patch_obj(
        settings=settings,
        resource=resource,
        namespace=current.namespace,
        name=current.name,
        patch=patch,
        resource_version=current.resource_version or None,
        logger=logger,
        context=context,
    )
