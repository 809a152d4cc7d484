import dataclasses
import urllib.parse
from typing import List, Mapping, NamedTuple, Optional, Tuple


class GroupVersionKind(NamedTuple):
    """
    A type of the objects as declared in the manifests.

    For the Core v1 API kinds, the group is an empty string: ``""``.
    """
    group: str
    version: str
    kind: str

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> "GroupVersionKind":
        group, version = parse_group_version(api_version)
        return cls(group=group, version=version, kind=kind)

    @property
    def group_version(self) -> str:
        # Strip heading/trailing slashes if group is absent (e.g. for pods).
        return f'{self.group}/{self.version}'.strip('/')

    @property
    def api_version(self) -> str:
        return self.group_version

    def __str__(self) -> str:
        return f'{self.group_version}, Kind={self.kind}'


def parse_group_version(group_version: str) -> Tuple[str, str]:
    """
    Split the API version (``"apps/v1"``, ``"v1"``) into the group & version.

    An empty string is an empty group-version (as for some discovery calls).
    More than one slash is an invalid group-version.
    """
    if not group_version:
        return '', ''
    parts = group_version.split('/')
    if len(parts) == 1:
        return '', parts[0]
    elif len(parts) == 2:
        return parts[0], parts[1]
    else:
        raise ValueError(f"Unexpected group-version string: {group_version!r}")


@dataclasses.dataclass(frozen=True)
class Resource:
    """
    A reference to a very specific custom or built-in resource kind.

    It is used to form the K8s API URLs. Generally, K8s API only needs
    an API group, an API version, and a plural name of the resource.
    The kind & the scope are discovered from the API.
    """

    group: str
    version: str
    plural: str
    kind: Optional[str] = None
    namespaced: bool = True

    @property
    def api_version(self) -> str:
        return f'{self.group}/{self.version}'.strip('/')

    def __repr__(self) -> str:
        return f'{self.plural}.{self.version}.{self.group}'.strip('.')

    def get_url(
            self,
            *,
            server: Optional[str] = None,
            namespace: Optional[str] = None,
            name: Optional[str] = None,
            params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Build a URL to be used with K8s API.

        For cluster-scoped resources, the namespace is ignored: the manifests
        of cluster-scoped objects still get the default namespace resolved,
        and it remains in their tracking keys.

        If the name is not set, the URL for the resource list is returned.
        Otherwise (if set), the URL for the individual resource is returned.
        """
        if self.namespaced and not namespace and name is not None:
            raise ValueError("Specific namespaces are required for specific namespaced resources.")

        return build_url(server, params, [
            '/api' if self.group == '' else '/apis',
            self.group,
            self.version,
            'namespaces' if self.namespaced and namespace else None,
            namespace if self.namespaced and namespace else None,
            self.plural,
            name,
        ])


def get_version_url(
        group: str,
        version: str,
        *,
        server: Optional[str] = None,
) -> str:
    return build_url(server, None, [
        '/api' if group == '' else '/apis',
        group,
        version,
    ])


def build_url(
        server: Optional[str],
        params: Optional[Mapping[str, str]],
        parts: List[Optional[str]],
) -> str:
    query = urllib.parse.urlencode(params, encoding='utf-8') if params else ''
    path = '/'.join([part for part in parts if part])
    url = path + ('?' if query else '') + query
    return url if server is None else server.rstrip('/') + '/' + url.lstrip('/')
