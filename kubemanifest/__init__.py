"""
The main module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubemanifest._cogs.clients.auth import (
    APIContext,
    connected,
)
from kubemanifest._cogs.clients.errors import (
    APIError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIAlreadyExistsError,
    ResourceNoMatchError,
)
from kubemanifest._cogs.configs.configuration import (
    ReconcilerSettings,
    NetworkingSettings,
    PollingSettings,
    TimeoutSettings,
)
from kubemanifest._cogs.helpers.errors import (
    ReconciliationError,
    ParseError,
    IdFormatError,
    PatchComputationError,
    RolloutError,
    WaitTimeoutError,
    WaitInterruptedError,
    OperationError,
)
from kubemanifest._cogs.helpers.manifests import (
    parse_manifest,
)
from kubemanifest._cogs.helpers.typedefs import (
    Logger,
)
from kubemanifest._cogs.helpers.versions import (
    version as __version__,
)
from kubemanifest._cogs.structs.bodies import (
    RawBody,
    RawMeta,
    Body,
    build_object_reference,
    resolve_namespace,
)
from kubemanifest._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from kubemanifest._cogs.structs.ids import (
    TrackingKey,
    Identity,
    build_id,
    parse_id,
    build_body,
)
from kubemanifest._cogs.structs.patches import (
    EMPTY_PATCH,
    PatchStrategy,
    PatchDescriptor,
)
from kubemanifest._cogs.structs.references import (
    GroupVersionKind,
    Resource,
)
from kubemanifest._cogs.structs.schemes import (
    FieldMeta,
    KindSchema,
    NativeScheme,
    build_native_scheme,
    get_native_scheme,
)
from kubemanifest._core.actions.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from kubemanifest._core.engines.patching import (
    create_patch,
    apply_patch,
)
from kubemanifest._core.engines.polling import (
    Poller,
)
from kubemanifest._core.engines.readiness import (
    ReadinessState,
    DeletionState,
    StatusSnapshot,
    classify_readiness,
    classify_deletion,
)
from kubemanifest._core.intents.piggybacking import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)
from kubemanifest._core.reactor.reconciling import (
    create,
    read,
    update,
    delete,
    import_,
)

__all__ = [
    'create', 'read', 'update', 'delete', 'import_',
    'configure', 'LogFormat', 'ObjectLogger', 'Logger',
    'login', 'login_with_kubeconfig', 'login_with_service_account',
    'LoginError', 'ConnectionInfo', 'APIContext', 'connected',
    'APIError', 'APIServerError', 'APIUnauthorizedError', 'APIForbiddenError',
    'APINotFoundError', 'APIConflictError', 'APIAlreadyExistsError',
    'ResourceNoMatchError',
    'ReconcilerSettings', 'NetworkingSettings', 'PollingSettings', 'TimeoutSettings',
    'ReconciliationError', 'ParseError', 'IdFormatError', 'PatchComputationError',
    'RolloutError', 'WaitTimeoutError', 'WaitInterruptedError', 'OperationError',
    'parse_manifest',
    'RawBody', 'RawMeta', 'Body', 'build_object_reference', 'resolve_namespace',
    'TrackingKey', 'Identity', 'build_id', 'parse_id', 'build_body',
    'EMPTY_PATCH', 'PatchStrategy', 'PatchDescriptor',
    'GroupVersionKind', 'Resource',
    'FieldMeta', 'KindSchema', 'NativeScheme', 'build_native_scheme', 'get_native_scheme',
    'create_patch', 'apply_patch',
    'Poller',
    'ReadinessState', 'DeletionState', 'StatusSnapshot',
    'classify_readiness', 'classify_deletion',
]
