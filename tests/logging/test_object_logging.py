import json
import logging

import pytest

from kubemanifest._cogs.configs.configuration import ReconcilerSettings
from kubemanifest._cogs.structs.bodies import Body
from kubemanifest._core.actions.loggers import LogFormat, ObjectJsonFormatter, ObjectLogger, \
                                              ObjectPrefixingJsonFormatter, \
                                              ObjectPrefixingTextFormatter, ObjectTextFormatter, \
                                              make_formatter

BODY = Body({
    'apiVersion': 'example.com/v1',
    'kind': 'Widget',
    'metadata': {'namespace': 'ns1', 'name': 'w1'},
})


@pytest.fixture()
def object_logger():
    return ObjectLogger(body=BODY, settings=ReconcilerSettings())


def make_record(object_logger, msg='hello', level=logging.INFO):
    """ Build a record the same way as the adapter would log it. """
    msg, kwargs = object_logger.process(msg, {})
    return object_logger.logger.makeRecord(
        object_logger.logger.name, level, __file__, 1, msg, (), None, extra=kwargs['extra'])


def test_reference_is_carried(object_logger):
    record = make_record(object_logger)
    assert record.k8s_ref == {
        'apiVersion': 'example.com/v1',
        'kind': 'Widget',
        'namespace': 'ns1',
        'name': 'w1',
    }
    assert isinstance(record.settings, ReconcilerSettings)


def test_reference_is_copied_at_construction():
    body = Body({'apiVersion': 'v1', 'kind': 'Pod', 'metadata': {'name': 'p1'}})
    object_logger = ObjectLogger(body=body, settings=ReconcilerSettings())
    body.namespace = 'ns9'
    record = make_record(object_logger)
    assert 'namespace' not in record.k8s_ref


def test_extras_are_merged(object_logger):
    msg, kwargs = object_logger.process('hello', {'extra': {'custom': 123}})
    assert kwargs['extra']['custom'] == 123
    assert kwargs['extra']['k8s_ref']['name'] == 'w1'


def test_text_without_prefix(object_logger):
    formatter = ObjectTextFormatter('%(message)s')
    assert formatter.format(make_record(object_logger)) == 'hello'


def test_text_with_prefix(object_logger):
    formatter = ObjectPrefixingTextFormatter('%(message)s')
    assert formatter.format(make_record(object_logger)) == '[ns1/w1] hello'


def test_text_with_prefix_for_cluster_objects():
    body = Body({'apiVersion': 'v1', 'kind': 'Namespace', 'metadata': {'name': 'ns9'}})
    object_logger = ObjectLogger(body=body, settings=ReconcilerSettings())
    formatter = ObjectPrefixingTextFormatter('%(message)s')
    assert formatter.format(make_record(object_logger)) == '[ns9] hello'


def test_text_with_prefix_for_non_object_records():
    formatter = ObjectPrefixingTextFormatter('%(message)s')
    record = logging.LogRecord('any', logging.INFO, __file__, 1, 'hello', (), None)
    assert formatter.format(record) == 'hello'


def test_prefixing_does_not_alter_the_record(object_logger):
    record = make_record(object_logger)
    ObjectPrefixingTextFormatter('%(message)s').format(record)
    assert record.msg == 'hello'


def test_json_fields(object_logger):
    formatter = ObjectJsonFormatter()
    data = json.loads(formatter.format(make_record(object_logger)))
    assert data['message'] == 'hello'
    assert data['severity'] == 'info'
    assert data['object'] == {
        'apiVersion': 'example.com/v1',
        'kind': 'Widget',
        'namespace': 'ns1',
        'name': 'w1',
    }
    assert 'timestamp' in data
    assert 'k8s_ref' not in data
    assert 'settings' not in data


def test_json_with_custom_refkey(object_logger):
    formatter = ObjectJsonFormatter(refkey='k8s-obj')
    data = json.loads(formatter.format(make_record(object_logger)))
    assert data['k8s-obj']['name'] == 'w1'
    assert 'object' not in data


@pytest.mark.parametrize('level, severity', [
    (logging.DEBUG, 'debug'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
    (logging.CRITICAL, 'fatal'),
])
def test_json_severities(object_logger, level, severity):
    formatter = ObjectJsonFormatter()
    data = json.loads(formatter.format(make_record(object_logger, level=level)))
    assert data['severity'] == severity


def test_json_with_prefix(object_logger):
    formatter = ObjectPrefixingJsonFormatter()
    data = json.loads(formatter.format(make_record(object_logger)))
    assert data['message'] == '[ns1/w1] hello'


@pytest.mark.parametrize('log_format, log_prefix, expected_cls', [
    (LogFormat.PLAIN, None, ObjectPrefixingTextFormatter),
    (LogFormat.FULL, None, ObjectPrefixingTextFormatter),
    (LogFormat.FULL, False, ObjectTextFormatter),
    (LogFormat.JSON, None, ObjectJsonFormatter),
    (LogFormat.JSON, True, ObjectPrefixingJsonFormatter),
    ('%(levelname)s %(message)s', False, ObjectTextFormatter),
])
def test_formatter_selection(log_format, log_prefix, expected_cls):
    formatter = make_formatter(log_format=log_format, log_prefix=log_prefix)
    assert type(formatter) is expected_cls
