import os

import pytest

from kubemanifest._cogs.structs.credentials import ConnectionInfo, LoginError
from kubemanifest._core.intents.piggybacking import login_with_kubeconfig

MINICONFIG = '''
    kind: Config
    current-context: ctx
    contexts:
      - name: ctx
        context:
          cluster: clstr
          user: usr
          namespace: ns1
    clusters:
      - name: clstr
        cluster:
          server: https://hostname:1234/
          certificate-authority: ca.crt
    users:
      - name: usr
        user:
          token: tkn
'''


@pytest.fixture(autouse=True)
def no_kubeconfig_env(monkeypatch):
    monkeypatch.delenv('KUBECONFIG', raising=False)


def test_no_kubeconfig_at_all(mocker):
    mocker.patch('os.path.exists', return_value=False)
    assert login_with_kubeconfig() is None


def test_explicit_path(tmp_path):
    path = tmp_path / 'config'
    path.write_text(MINICONFIG)
    info = login_with_kubeconfig(str(path))
    assert info == ConnectionInfo(
        server='https://hostname:1234/',
        ca_path=os.path.join(str(tmp_path), 'ca.crt'),
        token='tkn',
        default_namespace='ns1',
    )


def test_env_var(tmp_path, monkeypatch):
    path = tmp_path / 'config'
    path.write_text(MINICONFIG)
    monkeypatch.setenv('KUBECONFIG', str(path))
    info = login_with_kubeconfig()
    assert info is not None
    assert info.server == 'https://hostname:1234/'


def test_absent_file_fails(tmp_path):
    with pytest.raises(IOError):
        login_with_kubeconfig(str(tmp_path / 'absent'))


def test_no_current_context(tmp_path):
    path = tmp_path / 'config'
    path.write_text('kind: Config')
    with pytest.raises(LoginError, match=r"Current context is not set"):
        login_with_kubeconfig(str(path))


def test_explicit_context_overrides_current(tmp_path):
    path = tmp_path / 'config'
    path.write_text('''
        current-context: ctx1
        contexts:
          - name: ctx1
            context: {cluster: clstr1}
          - name: ctx2
            context: {cluster: clstr2}
        clusters:
          - name: clstr1
            cluster: {server: https://one/}
          - name: clstr2
            cluster: {server: https://two/}
    ''')
    info = login_with_kubeconfig(str(path), context_name='ctx2')
    assert info is not None
    assert info.server == 'https://two/'
    assert info.token is None


def test_incomplete_context(tmp_path):
    path = tmp_path / 'config'
    path.write_text('''
        current-context: ctx
        contexts:
          - name: ctx
            context: {cluster: absent}
    ''')
    with pytest.raises(LoginError, match=r"Context 'ctx' is incomplete"):
        login_with_kubeconfig(str(path))


def test_multiple_files_first_value_wins(tmp_path):
    path1 = tmp_path / 'config1'
    path2 = tmp_path / 'config2'
    path1.write_text('''
        current-context: ctx
        clusters:
          - name: clstr
            cluster: {server: https://first/}
    ''')
    path2.write_text('''
        current-context: other
        contexts:
          - name: ctx
            context: {cluster: clstr, user: usr}
        clusters:
          - name: clstr
            cluster: {server: https://second/}
        users:
          - name: usr
            user: {username: me, password: secret}
    ''')
    info = login_with_kubeconfig(f'{path1}{os.pathsep}{path2}')
    assert info is not None
    assert info.server == 'https://first/'
    assert info.username == 'me'
    assert info.password == 'secret'


def test_auth_provider_token(tmp_path):
    path = tmp_path / 'config'
    path.write_text('''
        current-context: ctx
        contexts:
          - name: ctx
            context: {cluster: clstr, user: usr}
        clusters:
          - name: clstr
            cluster: {server: https://host/}
        users:
          - name: usr
            user:
              auth-provider:
                config:
                  access-token: provided
    ''')
    info = login_with_kubeconfig(str(path))
    assert info is not None
    assert info.token == 'provided'


def test_absolute_paths_are_kept(tmp_path):
    path = tmp_path / 'config'
    path.write_text('''
        current-context: ctx
        contexts:
          - name: ctx
            context: {cluster: clstr, user: usr}
        clusters:
          - name: clstr
            cluster: {server: https://host/, certificate-authority: /etc/ca.crt}
        users:
          - name: usr
            user: {client-certificate: cert.pem, client-key: /etc/key.pem}
    ''')
    info = login_with_kubeconfig(str(path))
    assert info is not None
    assert info.ca_path == '/etc/ca.crt'
    assert info.certificate_path == os.path.join(str(tmp_path), 'cert.pem')
    assert info.private_key_path == '/etc/key.pem'
