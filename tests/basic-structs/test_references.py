import pytest

from kubemanifest._cogs.structs.references import GroupVersionKind, Resource, \
                                                 get_version_url, parse_group_version


@pytest.mark.parametrize('group_version, expected', [
    pytest.param('', ('', ''), id='empty'),
    pytest.param('v1', ('', 'v1'), id='core'),
    pytest.param('apps/v1', ('apps', 'v1'), id='group'),
    pytest.param('example.com/v1beta1', ('example.com', 'v1beta1'), id='dotted'),
])
def test_group_version_parsing(group_version, expected):
    assert parse_group_version(group_version) == expected


def test_group_version_parsing_fails_with_extra_slashes():
    with pytest.raises(ValueError):
        parse_group_version('a/b/c')


def test_gvk_of_core_kinds():
    gvk = GroupVersionKind.from_api_version('v1', 'Service')
    assert gvk == ('', 'v1', 'Service')
    assert gvk.group_version == 'v1'
    assert gvk.api_version == 'v1'
    assert str(gvk) == 'v1, Kind=Service'


def test_gvk_of_grouped_kinds():
    gvk = GroupVersionKind.from_api_version('apps/v1', 'Deployment')
    assert gvk.group == 'apps'
    assert gvk.version == 'v1'
    assert gvk.kind == 'Deployment'
    assert gvk.group_version == 'apps/v1'
    assert str(gvk) == 'apps/v1, Kind=Deployment'


def test_namespaced_urls():
    resource = Resource('apps', 'v1', 'deployments')
    assert resource.get_url() == '/apis/apps/v1/deployments'
    assert resource.get_url(namespace='ns1') == '/apis/apps/v1/namespaces/ns1/deployments'
    assert resource.get_url(namespace='ns1', name='nm1') == '/apis/apps/v1/namespaces/ns1/deployments/nm1'


def test_core_urls():
    resource = Resource('', 'v1', 'pods')
    assert resource.get_url(namespace='ns1', name='nm1') == '/api/v1/namespaces/ns1/pods/nm1'


def test_cluster_scoped_urls_ignore_namespaces():
    resource = Resource('', 'v1', 'namespaces', namespaced=False)
    assert resource.get_url(namespace='default', name='nm1') == '/api/v1/namespaces/nm1'
    assert resource.get_url(name='nm1') == '/api/v1/namespaces/nm1'


def test_namespaced_urls_require_namespaces_for_names():
    resource = Resource('apps', 'v1', 'deployments')
    with pytest.raises(ValueError):
        resource.get_url(name='nm1')


def test_urls_with_servers_and_params():
    resource = Resource('apps', 'v1', 'deployments')
    url = resource.get_url(server='https://host:443/', namespace='ns1', params={'a': 'b'})
    assert url == 'https://host:443/apis/apps/v1/namespaces/ns1/deployments?a=b'


def test_version_urls():
    assert get_version_url('', 'v1') == '/api/v1'
    assert get_version_url('apps', 'v1') == '/apis/apps/v1'
    assert get_version_url('apps', 'v1', server='https://host') == 'https://host/apis/apps/v1'
