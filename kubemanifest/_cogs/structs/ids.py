"""
Tracking keys of the reconciled objects.

A tracking key is the durable external identifier of an object, as stored
by the callers between the reconciliation calls::

    namespace::groupVersion::kind::name

The separator is not escaped in the values: the identity fields containing
``::`` are not supported. This never happens with the valid K8s names.
"""
from typing import NamedTuple, NewType

from kubemanifest._cogs.helpers import errors
from kubemanifest._cogs.structs import bodies, references

# Strings are taken from the callers, but then tainted as this type for stricter type-checking.
TrackingKey = NewType('TrackingKey', str)

SEPARATOR = '::'


class Identity(NamedTuple):
    namespace: str
    group_version: str
    kind: str
    name: str

    @property
    def group_version_kind(self) -> references.GroupVersionKind:
        try:
            return references.GroupVersionKind.from_api_version(self.group_version, self.kind)
        except ValueError as e:
            raise errors.IdFormatError(f"Invalid group-version in the key: {e}") from e


def build_id(body: bodies.Body) -> TrackingKey:
    gvk = body.group_version_kind
    return TrackingKey(SEPARATOR.join([body.namespace, gvk.group_version, gvk.kind, body.name]))


def parse_id(key: str) -> Identity:
    parts = key.split(SEPARATOR)
    if len(parts) != 4:
        raise errors.IdFormatError(f"Unexpected ID format ({key!r}), "
                                   f"expected 'namespace::groupVersion::kind::name'.")
    return Identity(*parts)


def build_body(key: str) -> bodies.Body:
    """
    Restore an identity-only body from the key (no spec, no status).
    """
    identity = parse_id(key)
    return bodies.Body.from_identity(
        identity.group_version_kind,
        namespace=identity.namespace,
        name=identity.name,
    )
