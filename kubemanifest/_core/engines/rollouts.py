"""
Kind-specific readiness of the workloads: are they rolled out completely?

These are the same checks as ``kubectl rollout status`` does for the native
workload kinds. Every classifier returns ``True`` when the rollout is done,
``False`` while it is in progress, and raises ``RolloutError`` when it will
never be done (so that it makes no sense to wait for it).

All fields are read as optional: the fields absent in the status are treated
as zeroes, the same as the server does for its own zero-valued fields.
"""
import collections.abc
from typing import Callable, Mapping, Optional, Tuple

from kubemanifest._cogs.helpers import errors
from kubemanifest._cogs.structs import bodies, dicts

RolloutClassifier = Callable[[bodies.Body], bool]

ROLLING_UPDATE = 'RollingUpdate'
PROGRESS_DEADLINE_EXCEEDED = 'ProgressDeadlineExceeded'


def _int(body: bodies.Body, field: str) -> int:
    return dicts.resolve_int(body.raw, field) or 0


def _observed(body: bodies.Body) -> bool:
    """ Whether the controller has seen the latest spec at all. """
    return (body.generation or 0) <= _int(body, 'status.observedGeneration')


def _find_condition(body: bodies.Body, type_: str) -> Optional[Mapping[str, object]]:
    for condition in dicts.resolve_list(body.raw, 'status.conditions') or []:
        if isinstance(condition, collections.abc.Mapping) and condition.get('type') == type_:
            return condition
    return None


def _check_rolling_update(body: bodies.Body) -> None:
    strategy = dicts.resolve_str(body.raw, 'spec.updateStrategy.type') or ROLLING_UPDATE
    if strategy != ROLLING_UPDATE:
        raise errors.RolloutError(f"Rollout status is only available for {ROLLING_UPDATE} "
                                  f"strategy type of {body.kind} {body.name!r}, not {strategy!r}.")


def deployment_ready(body: bodies.Body) -> bool:
    if not _observed(body):
        return False

    condition = _find_condition(body, 'Progressing')
    if condition is not None and condition.get('reason') == PROGRESS_DEADLINE_EXCEEDED:
        raise errors.RolloutError(f"Deployment {body.name!r} exceeded its progress deadline.")

    desired = dicts.resolve_int(body.raw, 'spec.replicas')
    updated = _int(body, 'status.updatedReplicas')
    if desired is not None and updated < desired:
        return False  # some new replicas are not updated yet
    if _int(body, 'status.replicas') > updated:
        return False  # some old replicas are pending termination
    if _int(body, 'status.availableReplicas') < updated:
        return False  # some updated replicas are not available yet
    return True


def daemon_set_ready(body: bodies.Body) -> bool:
    _check_rolling_update(body)
    if not _observed(body):
        return False

    desired = _int(body, 'status.desiredNumberScheduled')
    if _int(body, 'status.updatedNumberScheduled') < desired:
        return False
    if _int(body, 'status.numberAvailable') < desired:
        return False
    return True


def stateful_set_ready(body: bodies.Body) -> bool:
    _check_rolling_update(body)
    if _int(body, 'status.observedGeneration') == 0 or not _observed(body):
        return False

    desired = dicts.resolve_int(body.raw, 'spec.replicas')
    if desired is not None and _int(body, 'status.readyReplicas') < desired:
        return False

    partition = dicts.resolve_int(body.raw, 'spec.updateStrategy.rollingUpdate.partition')
    if partition is not None:
        if desired is not None and _int(body, 'status.updatedReplicas') < desired - partition:
            return False
        return True  # a partitioned rollout is done when its partition is updated

    update_revision = dicts.resolve_str(body.raw, 'status.updateRevision')
    current_revision = dicts.resolve_str(body.raw, 'status.currentRevision')
    return update_revision == current_revision


# Keyed by the API group & the kind, regardless of the version.
CLASSIFIERS: Mapping[Tuple[str, str], RolloutClassifier] = {
    ('apps', 'Deployment'): deployment_ready,
    ('extensions', 'Deployment'): deployment_ready,
    ('apps', 'DaemonSet'): daemon_set_ready,
    ('extensions', 'DaemonSet'): daemon_set_ready,
    ('apps', 'StatefulSet'): stateful_set_ready,
}


def get_classifier(body: bodies.Body) -> Optional[RolloutClassifier]:
    gvk = body.group_version_kind
    return CLASSIFIERS.get((gvk.group, gvk.kind))
