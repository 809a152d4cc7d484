import kubemanifest


def test_package_version():
    assert hasattr(kubemanifest, '__version__')


def test_public_interface():
    for name in kubemanifest.__all__:
        assert hasattr(kubemanifest, name), name
    for name in ['create', 'read', 'update', 'delete', 'import_']:
        assert callable(getattr(kubemanifest, name))
