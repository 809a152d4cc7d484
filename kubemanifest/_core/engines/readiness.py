"""
Classification of the objects' states: are they ready? are they deleted?

The readiness is checked in this order, the first applicable rule wins:

* The objects with no status at all are ready: they have nothing to report.
* The native workloads are checked by their kind-specific rollout rules.
* The status with ``readyReplicas`` is ready if there is at least one.
* The status with ``phase`` is ready if the phase is one of the ready ones.
* The status with ``loadBalancer`` is ready if there is at least one ingress;
  except for the core v1 services of other types than ``LoadBalancer``,
  for which this check is skipped.
* All other statuses are ready: the unknown shapes never block forever.

The deletion is complete when the object cannot be found anymore.
"""
import asyncio
import dataclasses
import enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from kubemanifest._cogs.clients import errors
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import typedefs
from kubemanifest._cogs.structs import bodies, dicts
from kubemanifest._core.engines import polling, rollouts

READY_PHASES = frozenset({'Active', 'Bound', 'Running', 'Ready', 'Online', 'Healthy'})


class ReadinessState(str, enum.Enum):
    PENDING = 'pending'
    READY = 'ready'


class DeletionState(str, enum.Enum):
    DELETING = 'deleting'
    DELETED = 'deleted'


@dataclasses.dataclass(frozen=True)
class StatusSnapshot:
    """
    The few fields of the opaque status that matter for the heuristics.

    The fields of unexpected types are treated as absent.
    """
    ready_replicas: Optional[int] = None
    phase: Optional[str] = None
    load_balancer_ingress: Optional[Sequence[Any]] = None

    @classmethod
    def from_status(cls, status: Optional[Mapping[str, Any]]) -> "StatusSnapshot":
        load_balancer = dicts.resolve_mapping(status, 'loadBalancer')
        return cls(
            ready_replicas=dicts.resolve_int(status, 'readyReplicas'),
            phase=dicts.resolve_str(status, 'phase'),
            load_balancer_ingress=(
                None if load_balancer is None else
                dicts.resolve_list(load_balancer, 'ingress') or []
            ),
        )


def classify_readiness(body: bodies.Body) -> ReadinessState:
    if not body.has_status:
        return ReadinessState.READY

    classifier = rollouts.get_classifier(body)
    if classifier is not None:
        return ReadinessState.READY if classifier(body) else ReadinessState.PENDING

    snapshot = StatusSnapshot.from_status(body.status)

    if snapshot.ready_replicas is not None:
        ready = snapshot.ready_replicas > 0
        return ReadinessState.READY if ready else ReadinessState.PENDING

    if snapshot.phase is not None:
        ready = snapshot.phase in READY_PHASES
        return ReadinessState.READY if ready else ReadinessState.PENDING

    if snapshot.load_balancer_ingress is not None and _needs_load_balancer(body):
        ready = len(snapshot.load_balancer_ingress) > 0
        return ReadinessState.READY if ready else ReadinessState.PENDING

    return ReadinessState.READY


def _needs_load_balancer(body: bodies.Body) -> bool:
    # The load balancers of the ingresses & the custom resources are always awaited.
    # The services populate it only for their type, and the type is ClusterIP by default.
    if body.api_version == 'v1' and body.kind == 'Service':
        service_type = dicts.resolve_str(body.raw, 'spec.type') or 'ClusterIP'
        return service_type == 'LoadBalancer'
    return True


async def classify_deletion(fetch: Callable[[], Awaitable[Any]]) -> DeletionState:
    try:
        await fetch()
    except errors.APINotFoundError:
        return DeletionState.DELETED
    else:
        return DeletionState.DELETING


async def wait_for_readiness(
        fetch: Callable[[], Awaitable[bodies.Body]],
        *,
        settings: configuration.ReconcilerSettings,
        timeout: float,
        key: Optional[str] = None,
        stop: Optional[asyncio.Event] = None,
        logger: typedefs.Logger,
) -> ReadinessState:
    """
    Poll the object until it is ready. The fetching errors are escalated as is.
    """
    async def tick() -> ReadinessState:
        return classify_readiness(await fetch())

    poller = polling.Poller(
        tick,
        targets={ReadinessState.READY},
        delay=settings.polling.delay,
        interval=settings.polling.interval,
        timeout=timeout,
        stop=stop,
        key=key,
        logger=logger,
    )
    return await poller.wait()


async def wait_for_deletion(
        fetch: Callable[[], Awaitable[Any]],
        *,
        settings: configuration.ReconcilerSettings,
        timeout: float,
        key: Optional[str] = None,
        stop: Optional[asyncio.Event] = None,
        logger: typedefs.Logger,
) -> DeletionState:
    """
    Poll the object until it is gone. All fetching errors except for 404 are escalated.
    """
    async def tick() -> DeletionState:
        return await classify_deletion(fetch)

    poller = polling.Poller(
        tick,
        targets={DeletionState.DELETED},
        delay=settings.polling.delay,
        interval=settings.polling.interval,
        timeout=timeout,
        stop=stop,
        key=key,
        logger=logger,
    )
    return await poller.wait()
