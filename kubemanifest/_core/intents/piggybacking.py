"""
Login to the cluster with the credentials found in the environment.

Only the minimalistic logins are supported: the in-cluster service accounts,
and the kubeconfig files with static credentials (tokens, certificates,
basic auth). No sophisticated multi-step token retrieval is performed:
e.g. the exec-plugins and the auth-providers' token refreshes.
"""
import os
from typing import Any, Dict, Optional

import yaml

from kubemanifest._cogs.structs import credentials

SERVICE_ACCOUNT_DIR = '/var/run/secrets/kubernetes.io/serviceaccount'


def has_service_account() -> bool:
    return os.path.exists(os.path.join(SERVICE_ACCOUNT_DIR, 'token'))


def login_with_service_account() -> Optional[credentials.ConnectionInfo]:
    """
    Get the credentials of the pod's service account, if running in a cluster.
    """

    # As per https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
    token_path = os.path.join(SERVICE_ACCOUNT_DIR, 'token')
    ns_path = os.path.join(SERVICE_ACCOUNT_DIR, 'namespace')
    ca_path = os.path.join(SERVICE_ACCOUNT_DIR, 'ca.crt')

    if os.path.exists(token_path):
        with open(token_path, encoding='utf-8') as f:
            token = f.read().strip()

        namespace: Optional[str] = None
        if os.path.exists(ns_path):
            with open(ns_path, encoding='utf-8') as f:
                namespace = f.read().strip()

        return credentials.ConnectionInfo(
            server='https://kubernetes.default.svc',
            ca_path=ca_path if os.path.exists(ca_path) else None,
            token=token or None,
            default_namespace=namespace or None,
        )
    else:
        return None


def login_with_kubeconfig(
        kubeconfig: Optional[str] = None,
        *,
        context_name: Optional[str] = None,
) -> Optional[credentials.ConnectionInfo]:
    """
    Get the credentials of a context (the current one by default) of kubeconfigs.

    The files are taken either from the explicitly passed path, or from
    ``$KUBECONFIG``, or from ``~/.kube/config`` -- the first one found.
    Several files can be separated as ``$PATH`` is (``:`` on Linux/MacOS).
    The relative paths in the files are relative to the files themselves.
    """

    # As per https://kubernetes.io/docs/concepts/configuration/organize-cluster-access-kubeconfig/
    kubeconfig = kubeconfig or os.environ.get('KUBECONFIG')
    if not kubeconfig and os.path.exists(os.path.expanduser('~/.kube/config')):
        kubeconfig = '~/.kube/config'
    if not kubeconfig:
        return None

    paths = [path.strip() for path in kubeconfig.split(os.pathsep)]
    paths = [os.path.expanduser(path) for path in paths if path]

    # As prescribed: if the file is absent or non-deserialisable, then fail. The first value wins.
    current_context: Optional[str] = None
    contexts: Dict[Any, Any] = {}
    clusters: Dict[Any, Any] = {}
    users: Dict[Any, Any] = {}
    for path in paths:

        with open(path, encoding='utf-8') as f:
            config = yaml.safe_load(f.read()) or {}

        basedir = os.path.dirname(os.path.abspath(path))
        if current_context is None:
            current_context = config.get('current-context')
        for item in config.get('contexts') or []:
            if item['name'] not in contexts:
                contexts[item['name']] = item.get('context') or {}
        for item in config.get('clusters') or []:
            if item['name'] not in clusters:
                clusters[item['name']] = _absolutize(item.get('cluster') or {}, basedir)
        for item in config.get('users') or []:
            if item['name'] not in users:
                users[item['name']] = _absolutize(item.get('user') or {}, basedir)

    # Once fully parsed, use the requested or the current context only.
    context_name = context_name or current_context
    if context_name is None:
        raise credentials.LoginError('Current context is not set in kubeconfigs.')
    try:
        context = contexts[context_name]
        cluster = clusters[context['cluster']]
        user = users.get(context.get('user'), {})
    except KeyError as e:
        raise credentials.LoginError(f'Context {context_name!r} is incomplete '
                                     f'in kubeconfigs: {e} is not found.') from e

    # We do not make a fake API request to refresh the token.
    provider_token = user.get('auth-provider', {}).get('config', {}).get('access-token')

    # Map the retrieved fields into the credentials object.
    return credentials.ConnectionInfo(
        server=cluster.get('server'),
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or provider_token,
        default_namespace=context.get('namespace'),
    )


def _absolutize(section: Dict[str, Any], basedir: str) -> Dict[str, Any]:
    result = dict(section)
    for key in ['certificate-authority', 'client-certificate', 'client-key']:
        if result.get(key):
            result[key] = os.path.join(basedir, os.path.expanduser(result[key]))
    return result


def login(kubeconfig: Optional[str] = None) -> credentials.ConnectionInfo:
    """
    Login with the first available method: the explicit kubeconfig, or in-cluster, or default kubeconfigs.
    """
    info: Optional[credentials.ConnectionInfo]
    if kubeconfig:
        info = login_with_kubeconfig(kubeconfig)
    else:
        info = login_with_service_account() or login_with_kubeconfig()
    if info is None:
        raise credentials.LoginError("Cannot authenticate neither in-cluster, nor via kubeconfig.")
    return info
