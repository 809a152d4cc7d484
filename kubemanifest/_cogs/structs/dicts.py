"""
Some basic dicts and field-in-a-dict manipulation helpers.

The objects' spec & status are opaque trees of mappings, lists, and scalars,
as decoded from YAML/JSON. Nothing guarantees their shapes: a field that is
expected to be an integer can be a string, a mapping can be a list, etc.
The typed accessors below never fail on such values: they treat them as absent.
"""
import collections.abc
import enum
from typing import Any, List, Mapping, MutableMapping, Optional, Sequence, Tuple, TypeVar, Union

FieldPath = Tuple[str, ...]
FieldSpec = Union[None, str, FieldPath, List[str]]

_T = TypeVar('_T')


class _UNSET(enum.Enum):
    token = enum.auto()


def parse_field(
        field: FieldSpec,
) -> FieldPath:
    """
    Convert any field into a tuple of nested sub-fields.

    Supported notations:

    * ``None`` (for root of a dict).
    * ``"field.subfield"``
    * ``("field", "subfield")``
    * ``["field", "subfield"]``
    """
    if field is None:
        return tuple()
    elif isinstance(field, str):
        return tuple(field.split('.'))
    elif isinstance(field, (list, tuple)):
        return tuple(field)
    else:
        raise ValueError(f"Field must be either a str, or a list/tuple. Got {field!r}")


def resolve(
        d: Optional[Mapping[Any, Any]],
        field: FieldSpec,
        default: Union[_T, _UNSET] = _UNSET.token,
) -> Union[Any, _T]:
    """
    Retrieve a nested sub-field from a dict.

    If ``default`` is provided, then all non-existent and non-mapping values
    are assumed to be empty dictionaries, and ``default`` is returned.

    Otherwise (with no default), attempts to get the inexistent keys will
    raise either a ``TypeError`` or ``KeyError``:

    * ``KeyError`` for actual absence of keys while the structures are correct.
    * ``TypeError`` for attempting to get a key for a non-dictionary:
      e.g. ``None['key']``, ``"string"['key']``, ``123['key']``, etc.
    """
    path = parse_field(field)
    try:
        result = d
        for key in path:
            if isinstance(result, collections.abc.Mapping):
                result = result[key]
            elif not isinstance(default, _UNSET):
                return default
            else:
                raise TypeError(f"The structure is not a dict with field {key!r}: {result!r}")
        return result
    except KeyError:
        if not isinstance(default, _UNSET):
            return default
        raise


def resolve_int(d: Optional[Mapping[Any, Any]], field: FieldSpec) -> Optional[int]:
    value = resolve(d, field, None)
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def resolve_str(d: Optional[Mapping[Any, Any]], field: FieldSpec) -> Optional[str]:
    value = resolve(d, field, None)
    return value if isinstance(value, str) else None


def resolve_list(d: Optional[Mapping[Any, Any]], field: FieldSpec) -> Optional[Sequence[Any]]:
    value = resolve(d, field, None)
    return value if isinstance(value, list) else None


def resolve_mapping(d: Optional[Mapping[Any, Any]], field: FieldSpec) -> Optional[Mapping[str, Any]]:
    value = resolve(d, field, None)
    return value if isinstance(value, collections.abc.Mapping) else None


def ensure(
        d: MutableMapping[Any, Any],
        field: FieldSpec,
        value: Any,
) -> None:
    """
    Force-set a nested sub-field in a dict.

    If some levels of parents are missing, they are created as empty dicts
    (this what makes it "ensuring", not just "setting").
    """
    result = d
    path = parse_field(field)
    if not path:
        raise ValueError("Setting a root of a dict is impossible. Provide the specific fields.")
    for key in path[:-1]:
        try:
            result = result[key]
        except KeyError:
            result = result.setdefault(key, {})
    result[path[-1]] = value


def remove(
        d: MutableMapping[Any, Any],
        field: FieldSpec,
) -> None:
    """
    Remove a nested sub-field from a dict, and all empty parents.

    If the target key is absent already, or any of the intermediate parents
    is absent (which implies that the target key is also absent), no error
    is raised, since the goal of deletion is achieved.
    """
    path = parse_field(field)
    if not path:
        raise ValueError("Removing a root of a dict is impossible. Provide a specific field.")

    elif len(path) == 1:
        try:
            del d[path[0]]
        except KeyError:
            pass

    else:
        try:
            remove(d[path[0]], path[1:])
        except KeyError:
            pass
        else:
            # Clean the parent dict if it has become empty due to deletion of the only sub-key.
            if d[path[0]] == {}:  # but not None, and not False, etc.
                del d[path[0]]
