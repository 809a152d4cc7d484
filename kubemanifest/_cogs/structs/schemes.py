"""
The natively known kinds and their patching metadata.

K8s merges the strategic patches field-by-field according to the metadata
of the built-in types: e.g. the containers of a pod are merged by their names,
the ports of a service are merged by their port numbers, and so on.
This metadata exists only for the kinds built into K8s itself. The custom
resources have no such metadata, so the strategic merge patches are not
supported for them at all; they can only be patched with JSON merge-patches.

The scheme is therefore used for one purpose only: to distinguish the native
kinds from the custom ones, and to provide the list merge keys for the former.

The scheme is built only from the kinds defined here. Nothing can be added to
it later, so that the custom kinds never get mistaken for the native ones.
It is immutable once built, and can be safely shared across threads & tasks.

The kinds listed are from the stable built-in API groups of K8s. The alpha-only
groups and the aggregated APIs (e.g. metrics) are not listed: their objects
are patched with JSON merge-patches, same as the custom resources. So are
the CRDs themselves (``apiextensions.k8s.io``) and the API services
(``apiregistration.k8s.io``), which are not the core types of K8s either.
"""
import threading
import types
from typing import Collection, Dict, Iterable, Iterator, Mapping, NamedTuple, Optional, Tuple

from kubemanifest._cogs.structs import dicts, references

MERGE = 'merge'
REPLACE = 'replace'
RETAIN_KEYS = 'retainKeys'


class FieldMeta(NamedTuple):
    """
    How to merge a list field: by which key, and whether to merge at all.

    The lists with no metadata are replaced as a whole, as in JSON merge-patches.
    The lists of scalars with the merge strategy are merged as sets.
    """
    strategy: str
    merge_key: Optional[str] = None

    @property
    def merging(self) -> bool:
        return MERGE in self.strategy.split(',')


# Sub-schemas, relative to their own root. Nested list items continue the path with no indices.
SubSchema = Mapping[dicts.FieldPath, FieldMeta]


def _nest(prefix: dicts.FieldSpec, *subschemas: SubSchema) -> Dict[dicts.FieldPath, FieldMeta]:
    path = dicts.parse_field(prefix)
    return {path + subpath: meta for subschema in subschemas for subpath, meta in subschema.items()}


def _keyed(key: str, *, strategy: str = MERGE) -> FieldMeta:
    return FieldMeta(strategy=strategy, merge_key=key)


OBJECT_META: SubSchema = {
    ('finalizers',): FieldMeta(strategy=MERGE),
    ('ownerReferences',): _keyed('uid'),
}

CONTAINER: SubSchema = {
    ('ports',): _keyed('containerPort'),
    ('env',): _keyed('name'),
    ('volumeMounts',): _keyed('mountPath'),
    ('volumeDevices',): _keyed('devicePath'),
    ('resizePolicy',): FieldMeta(strategy=REPLACE),
}

POD_SPEC: SubSchema = {
    ('containers',): _keyed('name'),
    ('initContainers',): _keyed('name'),
    ('ephemeralContainers',): _keyed('name'),
    **_nest('containers', CONTAINER),
    **_nest('initContainers', CONTAINER),
    **_nest('ephemeralContainers', CONTAINER),
    ('volumes',): _keyed('name', strategy=f'{MERGE},{RETAIN_KEYS}'),
    ('imagePullSecrets',): _keyed('name'),
    ('hostAliases',): _keyed('ip'),
    ('topologySpreadConstraints',): _keyed('topologyKey'),
    ('resourceClaims',): _keyed('name', strategy=f'{MERGE},{RETAIN_KEYS}'),
    ('schedulingGates',): _keyed('name'),
}

POD_TEMPLATE: SubSchema = {
    **_nest('metadata', OBJECT_META),
    **_nest('spec', POD_SPEC),
}

CONDITIONS: SubSchema = {
    ('conditions',): _keyed('type'),
}

WORKLOAD: SubSchema = {
    **_nest('spec.template', POD_TEMPLATE),
    **_nest('status', CONDITIONS),
}

SERVICE: SubSchema = {
    ('spec', 'ports'): _keyed('port'),
    **_nest('status', CONDITIONS),
    ('status', 'loadBalancer', 'ingress', 'ports'): FieldMeta(strategy=REPLACE),
}

NODE: SubSchema = {
    **_nest('status', CONDITIONS),
    ('status', 'addresses'): _keyed('type'),
}

WEBHOOKS: SubSchema = {
    ('webhooks',): _keyed('name'),
}

# Per API group: the versions known natively, and the kinds with their sub-schemas.
# The metadata of the objects (finalizers, owners) is added to every kind.
NATIVE_GROUPS: Mapping[str, Tuple[Collection[str], Mapping[str, SubSchema]]] = {
    '': (['v1'], {
        'Pod': {**_nest('spec', POD_SPEC), **_nest('status', CONDITIONS)},
        'PodTemplate': _nest('template', POD_TEMPLATE),
        'ReplicationController': WORKLOAD,
        'Service': SERVICE,
        'Endpoints': {},
        'ConfigMap': {},
        'Secret': {},
        'ServiceAccount': {('secrets',): _keyed('name')},
        'Namespace': _nest('status', CONDITIONS),
        'Node': NODE,
        'PersistentVolume': {},
        'PersistentVolumeClaim': _nest('status', CONDITIONS),
        'LimitRange': {},
        'ResourceQuota': {},
        'Event': {},
    }),
    'apps': (['v1', 'v1beta1', 'v1beta2'], {
        'Deployment': WORKLOAD,
        'StatefulSet': WORKLOAD,
        'DaemonSet': WORKLOAD,
        'ReplicaSet': WORKLOAD,
        'ControllerRevision': {},
    }),
    'extensions': (['v1beta1'], {
        'Deployment': WORKLOAD,
        'DaemonSet': WORKLOAD,
        'ReplicaSet': WORKLOAD,
        'Ingress': {},
        'NetworkPolicy': {},
    }),
    'batch': (['v1', 'v1beta1'], {
        'Job': WORKLOAD,
        'CronJob': _nest('spec.jobTemplate.spec.template', POD_TEMPLATE),
    }),
    'autoscaling': (['v1', 'v2', 'v2beta1', 'v2beta2'], {
        'HorizontalPodAutoscaler': _nest('status', CONDITIONS),
    }),
    'networking.k8s.io': (['v1', 'v1beta1'], {
        'Ingress': {},
        'IngressClass': {},
        'NetworkPolicy': {},
    }),
    'policy': (['v1', 'v1beta1'], {
        'PodDisruptionBudget': _nest('status', CONDITIONS),
    }),
    'rbac.authorization.k8s.io': (['v1', 'v1beta1'], {
        'Role': {},
        'ClusterRole': {},
        'RoleBinding': {},
        'ClusterRoleBinding': {},
    }),
    'storage.k8s.io': (['v1', 'v1beta1'], {
        'StorageClass': {},
        'CSIDriver': {},
        'CSINode': {('spec', 'drivers'): _keyed('name')},
        'VolumeAttachment': {},
        'CSIStorageCapacity': {},
    }),
    'scheduling.k8s.io': (['v1'], {
        'PriorityClass': {},
    }),
    'coordination.k8s.io': (['v1'], {
        'Lease': {},
    }),
    'discovery.k8s.io': (['v1'], {
        'EndpointSlice': {},
    }),
    'node.k8s.io': (['v1'], {
        'RuntimeClass': {},
    }),
    'certificates.k8s.io': (['v1'], {
        'CertificateSigningRequest': _nest('status', CONDITIONS),
    }),
    'admissionregistration.k8s.io': (['v1', 'v1beta1'], {
        'ValidatingWebhookConfiguration': WEBHOOKS,
        'MutatingWebhookConfiguration': WEBHOOKS,
        'ValidatingAdmissionPolicy': _nest('status', CONDITIONS),
        'ValidatingAdmissionPolicyBinding': {},
    }),
    'events.k8s.io': (['v1', 'v1beta1'], {
        'Event': {},
    }),
    'flowcontrol.apiserver.k8s.io': (['v1', 'v1beta3', 'v1beta2'], {
        'FlowSchema': _nest('status', CONDITIONS),
        'PriorityLevelConfiguration': _nest('status', CONDITIONS),
    }),
}


class KindSchema(Mapping[dicts.FieldPath, FieldMeta]):
    """
    The patching metadata of one native kind: per-field, for the list fields.
    """

    def __init__(self, gvk: references.GroupVersionKind, fields: SubSchema) -> None:
        super().__init__()
        self._gvk = gvk
        self._fields: Mapping[dicts.FieldPath, FieldMeta] = types.MappingProxyType(dict(fields))

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self._gvk}>'

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[dicts.FieldPath]:
        return iter(self._fields)

    def __getitem__(self, path: dicts.FieldPath) -> FieldMeta:
        return self._fields[path]

    @property
    def group_version_kind(self) -> references.GroupVersionKind:
        return self._gvk


class NativeScheme(Mapping[references.GroupVersionKind, KindSchema]):
    """
    An immutable registry of the natively known kinds.
    """

    def __init__(self, kinds: Iterable[KindSchema] = ()) -> None:
        super().__init__()
        self._kinds = types.MappingProxyType({schema.group_version_kind: schema for schema in kinds})

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} with {len(self._kinds)} kinds>'

    def __len__(self) -> int:
        return len(self._kinds)

    def __iter__(self) -> Iterator[references.GroupVersionKind]:
        return iter(self._kinds)

    def __getitem__(self, gvk: references.GroupVersionKind) -> KindSchema:
        return self._kinds[gvk]

    def lookup(self, gvk: references.GroupVersionKind) -> Optional[KindSchema]:
        return self._kinds.get(references.GroupVersionKind(*gvk))


def build_native_scheme(
        groups: Mapping[str, Tuple[Collection[str], Mapping[str, SubSchema]]] = NATIVE_GROUPS,
) -> NativeScheme:
    return NativeScheme(
        KindSchema(
            references.GroupVersionKind(group=group, version=version, kind=kind),
            {**_nest('metadata', OBJECT_META), **subschema},
        )
        for group, (versions, kinds) in groups.items()
        for version in versions
        for kind, subschema in kinds.items()
    )


_native_scheme: Optional[NativeScheme] = None
_native_scheme_lock = threading.Lock()


def get_native_scheme() -> NativeScheme:
    """
    Build the native scheme once per process, and then return it as is.

    The concurrent first callers wait until the only build is finished.
    The later callers get the ready scheme without locking.
    """
    global _native_scheme
    if _native_scheme is None:
        with _native_scheme_lock:
            if _native_scheme is None:
                _native_scheme = build_native_scheme()
    return _native_scheme
