"""
All the structures coming from/to the Kubernetes API.

Everything marked "raw" is a plain unwrapped unprocessed data as decoded
from the manifests or as JSON-decoded from the Kubernetes API.
All non-used payload falls into `Any`, and is not type-checked.

The `Body` wraps such a raw dict with typed accessors for the fields
that identify the object, and for the opaque spec & status trees.
It is the only in-memory representation of an object during one
reconciliation call: it is built either from a manifest or from
a tracking key, and is discarded when the call is over.
"""
import copy
import json
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, cast

from typing_extensions import TypedDict

from kubemanifest._cogs.structs import dicts, references

Labels = Mapping[str, str]
Annotations = Mapping[str, str]


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    finalizers: List[str]
    resourceVersion: str
    generation: int
    deletionTimestamp: str
    creationTimestamp: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class Body:
    """
    A live view of one object's raw dict, with typed access to its identity.

    The setters modify the underlying raw dict in place, so that the changes
    are visible when the body is sent to the API or serialized for diffing.
    """

    def __init__(self, __src: Optional[MutableMapping[str, Any]] = None) -> None:
        super().__init__()
        self._raw: Dict[str, Any] = dict(__src) if __src is not None else {}

    @classmethod
    def from_identity(
            cls,
            gvk: references.GroupVersionKind,
            *,
            namespace: Optional[str],
            name: str,
    ) -> "Body":
        body = cls({'apiVersion': gvk.api_version, 'kind': gvk.kind})
        body.name = name
        if namespace:
            body.namespace = namespace
        return body

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self._raw!r})'

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Body):
            return self._raw == other._raw
        else:
            return NotImplemented

    @property
    def raw(self) -> RawBody:
        return cast(RawBody, self._raw)

    @property
    def api_version(self) -> str:
        return dicts.resolve_str(self._raw, 'apiVersion') or ''

    @property
    def kind(self) -> str:
        return dicts.resolve_str(self._raw, 'kind') or ''

    @property
    def group_version_kind(self) -> references.GroupVersionKind:
        return references.GroupVersionKind.from_api_version(self.api_version, self.kind)

    @property
    def metadata(self) -> Mapping[str, Any]:
        return dicts.resolve_mapping(self._raw, 'metadata') or {}

    @property
    def name(self) -> str:
        return dicts.resolve_str(self._raw, 'metadata.name') or ''

    @name.setter
    def name(self, value: str) -> None:
        dicts.ensure(self._raw, 'metadata.name', value)

    @property
    def namespace(self) -> str:
        return dicts.resolve_str(self._raw, 'metadata.namespace') or ''

    @namespace.setter
    def namespace(self, value: str) -> None:
        dicts.ensure(self._raw, 'metadata.namespace', value)

    @property
    def resource_version(self) -> str:
        return dicts.resolve_str(self._raw, 'metadata.resourceVersion') or ''

    @resource_version.setter
    def resource_version(self, value: str) -> None:
        if value:
            dicts.ensure(self._raw, 'metadata.resourceVersion', value)
        else:
            # Same as in K8s: an empty version is the same as no version.
            metadata = self._raw.get('metadata')
            if isinstance(metadata, dict):
                metadata.pop('resourceVersion', None)

    @property
    def generation(self) -> Optional[int]:
        return dicts.resolve_int(self._raw, 'metadata.generation')

    @property
    def spec(self) -> Mapping[str, Any]:
        return dicts.resolve_mapping(self._raw, 'spec') or {}

    @property
    def has_status(self) -> bool:
        return 'status' in self._raw

    @property
    def status(self) -> Optional[Mapping[str, Any]]:
        """
        The status as reported by the server, or ``None`` if absent at all.

        A status that is present but is not a mapping (e.g. ``null``)
        is presented as an empty mapping: it is there, it just says nothing.
        """
        if 'status' not in self._raw:
            return None
        return dicts.resolve_mapping(self._raw, 'status') or {}

    def deepcopy(self) -> "Body":
        return self.__class__(copy.deepcopy(self._raw))

    def as_bytes(self) -> bytes:
        """
        Serialize the whole body canonically: the same data give the same bytes.
        """
        return json.dumps(self._raw, sort_keys=True, separators=(',', ':')).encode('utf-8')


def build_object_reference(
        body: Body,
) -> Dict[str, str]:
    """
    Construct an object reference for the logs.

    Keep in mind that some fields can be absent: e.g. ``namespace``
    for cluster resources, or even ``name`` for malformed manifests.
    """
    ref = dict(
        apiVersion=body.api_version,
        kind=body.kind,
        name=body.name,
        namespace=body.namespace,
    )
    return {key: val for key, val in ref.items() if val}


def resolve_namespace(
        body: Body,
        namespace: Optional[str] = None,
        *,
        default: str = 'default',
) -> None:
    """
    Set the object's namespace once, before it is used in the API calls.

    The namespace of the manifest itself has the highest priority;
    then, the namespace explicitly requested by the caller;
    and only then, the default namespace.
    """
    if not body.namespace:
        body.namespace = namespace or default
