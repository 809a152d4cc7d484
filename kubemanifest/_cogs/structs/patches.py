"""
All the structures needed for Kubernetes patching.

The patches are computed as plain dicts, but are carried to the API
as already serialized bytes together with their merge semantics:
a JSON merge-patch (RFC 7386) for the custom & unknown kinds,
or a strategic merge-patch for the kinds natively known to K8s.
"""
import enum
import json
from typing import Any, Mapping, NamedTuple

EMPTY_PATCH = b'{}'


class PatchStrategy(str, enum.Enum):
    MERGE = 'merge'
    STRATEGIC_MERGE = 'strategic-merge'

    def __str__(self) -> str:
        return str(self.value)

    @property
    def content_type(self) -> str:
        return f'application/{self.value}-patch+json'


class PatchDescriptor(NamedTuple):
    data: bytes
    strategy: PatchStrategy

    @classmethod
    def from_patch(cls, patch: Mapping[str, Any], strategy: PatchStrategy) -> "PatchDescriptor":
        return cls(data=serialize(patch), strategy=strategy)

    @property
    def is_empty(self) -> bool:
        return self.data == EMPTY_PATCH

    def as_dict(self) -> Any:
        return json.loads(self.data)


def serialize(patch: Mapping[str, Any]) -> bytes:
    return json.dumps(patch, sort_keys=True, separators=(',', ':')).encode('utf-8')
