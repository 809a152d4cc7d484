"""
Decoding of the manifests' text into the object bodies.

Only the first non-empty YAML document is taken: the manifests describe
one object each. JSON is a subset of YAML, so it is decoded the same way.

The unquoted timestamps (e.g. ``since: 2021-01-01``) remain strings:
the bodies are sent as JSON, which has no dates, and K8s parses them itself.
"""
import collections.abc

import yaml

from kubemanifest._cogs.helpers import errors
from kubemanifest._cogs.structs import bodies

TIMESTAMP_TAG = 'tag:yaml.org,2002:timestamp'


class ManifestLoader(yaml.SafeLoader):
    """ A safe loader with no implicit timestamps. """


ManifestLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_manifest(content: str) -> bodies.Body:

    # The trailing documents are never decoded, so they can be broken.
    document = None
    try:
        for document in yaml.load_all(content, Loader=ManifestLoader):
            if document is not None:
                break
    except yaml.YAMLError as e:
        raise errors.ParseError(f"The manifest is not a valid YAML/JSON: {e}") from e

    if document is None:
        raise errors.ParseError("The manifest is empty.")
    if not isinstance(document, collections.abc.Mapping):
        raise errors.ParseError(f"The manifest is not an object: {type(document).__name__}.")

    body = bodies.Body(dict(document))
    missing = [field for field, value in [
        ('apiVersion', body.api_version),
        ('kind', body.kind),
        ('metadata.name', body.name),
    ] if not value]
    if missing:
        raise errors.ParseError(f"The manifest has no required fields: {', '.join(missing)}.")

    try:
        body.group_version_kind
    except ValueError as e:
        raise errors.ParseError(f"The manifest has an invalid apiVersion: {e}") from e

    return body
