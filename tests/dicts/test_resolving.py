"""
The test design notes:

* The field "abc.def.hij" is existent.
* The field "rst.uvw.xyz" is inexistent.
* For the existent keys, the default should not matter.
* For the non-existent keys, the default is returned,
  or a ``KeyError`` raised -- as with regular mappings.
* For the "wrong" intermediate values (``"value"["z"]``, ``None["z"]``),
  a ``TypeError`` is raised normally, or the default is returned.
"""
import pytest

from kubemanifest._cogs.structs.dicts import parse_field, resolve

default = object()


@pytest.mark.parametrize('field, expected', [
    pytest.param(None, (), id='none'),
    pytest.param('abc', ('abc',), id='str-simple'),
    pytest.param('abc.def', ('abc', 'def'), id='str-dotted'),
    pytest.param(['abc', 'def'], ('abc', 'def'), id='list'),
    pytest.param(('abc', 'def'), ('abc', 'def'), id='tuple'),
])
def test_field_parsing(field, expected):
    assert parse_field(field) == expected


def test_field_parsing_fails_on_unsupported_types():
    with pytest.raises(ValueError):
        parse_field(123)


def test_existent_key_with_no_default():
    d = {'abc': {'def': {'hij': 'val'}}}
    assert resolve(d, 'abc.def.hij') == 'val'


def test_existent_key_with_default():
    d = {'abc': {'def': {'hij': 'val'}}}
    assert resolve(d, 'abc.def.hij', default) == 'val'


def test_inexistent_key_with_no_default():
    d = {'abc': {'def': {'hij': 'val'}}}
    with pytest.raises(KeyError):
        resolve(d, 'rst.uvw.xyz')


def test_inexistent_key_with_default():
    d = {'abc': {'def': {'hij': 'val'}}}
    assert resolve(d, 'rst.uvw.xyz', default) is default


def test_partially_inexistent_key_with_default():
    d = {'abc': {'def': {'hij': 'val'}}}
    assert resolve(d, 'abc.def.xyz', default) is default


@pytest.mark.parametrize('value', ['scalar', None, 123, ['a', 'b']])
def test_nonmapping_intermediate_with_no_default(value):
    d = {'abc': value}
    with pytest.raises(TypeError):
        resolve(d, 'abc.def')


@pytest.mark.parametrize('value', ['scalar', None, 123, ['a', 'b']])
def test_nonmapping_intermediate_with_default(value):
    d = {'abc': value}
    assert resolve(d, 'abc.def', default) is default


def test_none_dict_with_default():
    assert resolve(None, 'abc', default) is default


def test_root_is_returned_for_empty_field():
    d = {'abc': 'val'}
    assert resolve(d, None) is d
