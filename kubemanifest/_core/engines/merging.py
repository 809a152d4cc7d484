"""
Computation of the patches between the states of an object.

Two kinds of patches are computed here, both as plain dicts:

* JSON merge-patches (RFC 7386): the mappings are merged recursively,
  while all other values (lists included) are replaced as a whole;
  ``None`` removes the key.

* Strategic merge-patches, the way K8s merges them for its native kinds:
  same as the merge-patches, but the lists that have a patch strategy
  in the kind's schema are merged element-wise: either by the merge key
  (for the lists of mappings), or as sets (for the lists of scalars).

The strategic patches are computed three-way: from the last applied state
(the "original"), the newly desired state (the "modified"), and the live
state (the "current"). This way, the fields that the others have added
to the live object (the server's defaults, other controllers) are kept,
and only those fields that we ourselves have removed are deleted.

The directive ``$setElementOrder`` is not produced: the order of the merged
list elements is left to the server's defaults (the existing elements keep
their positions, the new ones are appended).
"""
import collections.abc
from typing import Any, Dict, List, Mapping, Optional, Sequence

from kubemanifest._cogs.structs import dicts, schemes

PATCH_DIRECTIVE = '$patch'
DELETE_DIRECTIVE = 'delete'
DELETE_FROM_PRIMITIVE_LIST_PREFIX = '$deleteFromPrimitiveList'

Patch = Dict[str, Any]
Schema = Mapping[dicts.FieldPath, schemes.FieldMeta]


def create_merge_patch(
        current: Mapping[str, Any],
        target: Mapping[str, Any],
) -> Patch:
    """
    Build a JSON merge-patch that turns the current state into the target one.
    """
    patch: Patch = {}
    for key in current:
        if key not in target:
            patch[key] = None
    for key, value in target.items():
        if key not in current:
            patch[key] = value
        elif _is_mapping(current[key]) and _is_mapping(value):
            subpatch = create_merge_patch(current[key], value)
            if subpatch:
                patch[key] = subpatch
        elif current[key] != value:
            patch[key] = value
    return patch


def create_three_way_merge_patch(
        original: Mapping[str, Any],
        modified: Mapping[str, Any],
        current: Mapping[str, Any],
        *,
        schema: Schema,
) -> Patch:
    """
    Build a strategic merge-patch from the three states of an object.

    The patch is a union of the changes & additions from the current state
    to the modified one (but not the deletions), and the deletions from the
    original state to the modified one (but not the changes & additions).

    The conflicts of our changes with the changes of others are not checked:
    our values overwrite theirs (as with ``kubectl apply``).
    """
    delta = _diff_maps(current, modified, schema=schema, path=(),
                       ignore_deletions=True, ignore_changes=False)
    deletions = _diff_maps(original, modified, schema=schema, path=(),
                           ignore_deletions=False, ignore_changes=True)
    return _merge_patches(deletions, delta, schema=schema, path=())


def _diff_maps(
        original: Mapping[str, Any],
        modified: Mapping[str, Any],
        *,
        schema: Schema,
        path: dicts.FieldPath,
        ignore_deletions: bool,
        ignore_changes: bool,
) -> Patch:
    patch: Patch = {}
    for key, mod_value in modified.items():
        field = path + (key,)
        if key not in original:
            if not ignore_changes:
                patch[key] = mod_value
            continue

        orig_value = original[key]
        meta = schema.get(field)
        if _is_mapping(orig_value) and _is_mapping(mod_value):
            subpatch = _diff_maps(orig_value, mod_value, schema=schema, path=field,
                                  ignore_deletions=ignore_deletions, ignore_changes=ignore_changes)
            if subpatch:
                patch[key] = subpatch
        elif _is_list(orig_value) and _is_list(mod_value) and meta is not None and meta.merging:
            if meta.merge_key is not None:
                items = _diff_keyed_lists(orig_value, mod_value, schema=schema, path=field,
                                          merge_key=meta.merge_key,
                                          ignore_deletions=ignore_deletions,
                                          ignore_changes=ignore_changes)
                if items:
                    patch[key] = items
            else:
                additions = [item for item in mod_value if item not in orig_value]
                deletions = [item for item in orig_value if item not in mod_value]
                if additions and not ignore_changes:
                    patch[key] = additions
                if deletions and not ignore_deletions:
                    patch[f'{DELETE_FROM_PRIMITIVE_LIST_PREFIX}/{key}'] = deletions
        elif orig_value != mod_value and not ignore_changes:
            patch[key] = mod_value

    if not ignore_deletions:
        for key in original:
            if key not in modified:
                patch[key] = None

    return patch


def _diff_keyed_lists(
        original: Sequence[Any],
        modified: Sequence[Any],
        *,
        schema: Schema,
        path: dicts.FieldPath,
        merge_key: str,
        ignore_deletions: bool,
        ignore_changes: bool,
) -> List[Any]:
    originals = _index_by_key(original, merge_key, path)
    modifieds = _index_by_key(modified, merge_key, path)

    items: List[Any] = []
    for key_value, mod_item in modifieds.items():
        if key_value not in originals:
            if not ignore_changes:
                items.append(mod_item)
            continue
        subpatch = _diff_maps(originals[key_value], mod_item, schema=schema, path=path,
                              ignore_deletions=ignore_deletions, ignore_changes=ignore_changes)
        if subpatch:
            items.append({merge_key: key_value, **subpatch})

    if not ignore_deletions:
        for key_value in originals:
            if key_value not in modifieds:
                items.append({PATCH_DIRECTIVE: DELETE_DIRECTIVE, merge_key: key_value})

    return items


def _index_by_key(
        items: Sequence[Any],
        merge_key: str,
        path: dicts.FieldPath,
) -> Dict[Any, Mapping[str, Any]]:
    index: Dict[Any, Mapping[str, Any]] = {}
    for item in items:
        if not _is_mapping(item) or merge_key not in item:
            raise ValueError(f"A list item of {'.'.join(path)!r} has no merge key "
                             f"{merge_key!r}: {item!r}")
        key_value = item[merge_key]
        if not isinstance(key_value, collections.abc.Hashable):
            raise ValueError(f"A list item of {'.'.join(path)!r} has an unhashable merge key "
                             f"{merge_key!r}: {key_value!r}")
        index[key_value] = item
    return index


def _merge_patches(
        first: Mapping[str, Any],
        second: Mapping[str, Any],
        *,
        schema: Schema,
        path: dicts.FieldPath,
) -> Patch:
    result: Patch = dict(first)
    for key, value in second.items():
        field = path + (key,)
        existing = result.get(key)
        meta = schema.get(field)
        if _is_mapping(existing) and _is_mapping(value):
            result[key] = _merge_patches(existing, value, schema=schema, path=field)
        elif _is_list(existing) and _is_list(value) and meta is not None and meta.merge_key:
            result[key] = _merge_keyed_items(existing, value, schema=schema, path=field,
                                             merge_key=meta.merge_key)
        else:
            result[key] = value
    return result


def _merge_keyed_items(
        first: Sequence[Any],
        second: Sequence[Any],
        *,
        schema: Schema,
        path: dicts.FieldPath,
        merge_key: str,
) -> List[Any]:
    items: List[Any] = list(first)
    for item in second:
        position = _find_mergeable(items, item, merge_key)
        if position is None:
            items.append(item)
        else:
            items[position] = _merge_patches(items[position], item, schema=schema, path=path)
    return items


def _find_mergeable(items: Sequence[Any], item: Any, merge_key: str) -> Optional[int]:
    if not _is_mapping(item) or PATCH_DIRECTIVE in item:
        return None
    for position, existing in enumerate(items):
        if (_is_mapping(existing) and PATCH_DIRECTIVE not in existing and
                existing.get(merge_key) == item.get(merge_key)):
            return position
    return None


def _is_mapping(value: Any) -> bool:
    return isinstance(value, collections.abc.Mapping)


def _is_list(value: Any) -> bool:
    return isinstance(value, list)
