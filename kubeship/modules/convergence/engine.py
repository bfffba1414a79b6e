import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from kubeship.modules.manifests import DesiredResourceSet
from kubeship.modules.store import (
    ResourceKind,
    ResourceNotFoundError,
    ResourceStore,
    ResourceStoreError,
)

logger = logging.getLogger("kubeship.convergence")


class ConvergenceAction(str, Enum):
    """What happened to one resource during convergence."""

    CREATED = "created"
    REPLACED = "replaced"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ResourceOutcome:
    kind: str
    name: str
    action: ConvergenceAction
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        if data["error"] is None:
            del data["error"]
        return data


@dataclass
class ConvergenceReport:
    """Per-resource outcomes in apply order."""

    outcomes: List[ResourceOutcome] = field(default_factory=list)

    def to_list(self) -> List[Dict[str, Any]]:
        return [o.to_dict() for o in self.outcomes]


class ConvergenceError(Exception):
    """Convergence stopped partway; earlier resources stay applied."""

    def __init__(self, report: ConvergenceReport, cause: ResourceStoreError):
        super().__init__(cause.message)
        self.report = report
        self.cause = cause
        self.status = cause.status


OutcomeCallback = Callable[[ResourceOutcome], Awaitable[None]]


class ConvergenceModule:
    def __init__(self, store: ResourceStore):
        """
        Initialize convergence engine.

        Args:
            store: Resource store every converge call goes through
        """
        self.store = store

    async def converge(
        self, kind: ResourceKind, name: str, document: Dict[str, Any]
    ) -> ConvergenceAction:
        """
        Make the named resource match `document`.

        Args:
            kind: Resource kind
            name: Resource name
            document: Full desired-state document

        Returns:
            REPLACED if the resource existed, CREATED otherwise

        Logic:
        1. Attempt a full replace
        2. On not-found, create instead
        3. Anything else propagates untouched (no retry, not even on conflict)
        """
        try:
            await self.store.replace(kind, name, document)
            logger.info(f"Replaced {kind.value} {name}")
            return ConvergenceAction.REPLACED
        except ResourceNotFoundError:
            await self.store.create(kind, document)
            logger.info(f"Created {kind.value} {name}")
            return ConvergenceAction.CREATED

    async def converge_resource_set(
        self,
        resources: DesiredResourceSet,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> ConvergenceReport:
        """
        Converge Deployment, then Service, then Ingress.

        The Service selects the Deployment's pods and the Ingress routes to
        the Service by name, so each step waits for the previous one. The
        first failure stops the sequence; there is no rollback.

        Raises:
            ConvergenceError: carrying the partial report
        """
        steps = [
            (ResourceKind.DEPLOYMENT, resources.deployment),
            (ResourceKind.SERVICE, resources.service),
            (ResourceKind.INGRESS, resources.ingress),
        ]
        report = ConvergenceReport()

        for index, (kind, document) in enumerate(steps):
            name = document["metadata"]["name"]
            try:
                action = await self.converge(kind, name, document)
            except ResourceStoreError as e:
                logger.error(f"Failed to converge {kind.value} {name}: {e.message}")
                failed = ResourceOutcome(kind.value, name, ConvergenceAction.FAILED, e.message)
                report.outcomes.append(failed)
                for skipped_kind, skipped_doc in steps[index + 1:]:
                    report.outcomes.append(
                        ResourceOutcome(
                            skipped_kind.value,
                            skipped_doc["metadata"]["name"],
                            ConvergenceAction.SKIPPED,
                        )
                    )
                if on_outcome:
                    await on_outcome(failed)
                raise ConvergenceError(report, e) from e

            outcome = ResourceOutcome(kind.value, name, action)
            report.outcomes.append(outcome)
            if on_outcome:
                await on_outcome(outcome)

        return report
