from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable

from app.shiptrack.core.context import RequestContext
from app.shiptrack.core.error_catalog import AppError, not_found, reference_not_found
from app.shiptrack.core.logging import log_event
from app.shiptrack.core.metrics import metrics
from app.shiptrack.db.enums import BatchStatus
from app.shiptrack.db.models import Batch
from app.shiptrack.db.unit_of_work import UnitOfWork
from app.shiptrack.repos.batches import BatchQueryFilters
from app.shiptrack.services.batch_state_machine import (
    BatchOperation,
    TransitionParams,
    TransitionResult,
    apply_transition,
    check_transition,
)

logger = logging.getLogger(__name__)


class BatchLifecycleService:
    def __init__(self, uow: UnitOfWork, context: RequestContext | None = None):
        self.uow = uow
        self.context = context

    def _actor(self) -> str | None:
        return self.context.user_id if self.context else None

    def _trace_id(self) -> str | None:
        return (self.context.trace_id or None) if self.context else None

    def load(self, batch_id, *, for_update: bool = False) -> Batch:
        repo = self.uow.batches
        batch = repo.get_for_update(batch_id) if for_update else repo.get(batch_id)
        if batch is None:
            raise not_found("Batch", batch_id)
        return batch

    def create_batch(self, *, branch_id, name: str, threshold_count: int, threshold_weight: Decimal) -> Batch:
        if not self.uow.branches.exists(branch_id):
            raise reference_not_found("Branch", branch_id, field="branch_id")
        batch = Batch(
            branch_id=branch_id,
            name=name,
            status=BatchStatus.DRAFT,
            shipment_count=0,
            total_weight=Decimal("0"),
            threshold_count=threshold_count,
            threshold_weight=threshold_weight,
        )
        with self.uow.transaction():
            self.uow.batches.add(batch)
        log_event(logger, "batch.created", batch_id=str(batch.id), branch_id=str(branch_id), actor=self._actor())
        return batch

    def get_batch(self, batch_id) -> Batch:
        batch = self.uow.batches.get_with_shipments(batch_id)
        if batch is None:
            raise not_found("Batch", batch_id)
        return batch

    def list_batches(self, *, branch_id=None, status: BatchStatus | None = None) -> list[Batch]:
        return self.uow.batches.list_batches(BatchQueryFilters(branch_id=branch_id, status=status))

    def open(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.OPEN, notes=notes)

    def close(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.CLOSE, notes=notes)

    def move_to_warehouse(self, batch_id, warehouse_id, *, notes: str | None = None) -> Batch:
        return self._run(
            batch_id,
            BatchOperation.MOVE_TO_WAREHOUSE,
            TransitionParams(warehouse_id=warehouse_id),
            warehouses={"source_warehouse_id": warehouse_id},
            notes=notes,
        )

    def assign_destination_warehouse(self, batch_id, warehouse_id, *, notes: str | None = None) -> Batch:
        return self._run(
            batch_id,
            BatchOperation.ASSIGN_DESTINATION_WAREHOUSE,
            TransitionParams(warehouse_id=warehouse_id),
            warehouses={"destination_warehouse_id": warehouse_id},
            notes=notes,
        )

    def move_to_source_port(
        self, batch_id, source_port_id, destination_port_id=None, *, notes: str | None = None
    ) -> Batch:
        ports = {"source_port_id": source_port_id}
        if destination_port_id is not None:
            ports["destination_port_id"] = destination_port_id
        return self._run(
            batch_id,
            BatchOperation.MOVE_TO_SOURCE_PORT,
            TransitionParams(source_port_id=source_port_id, destination_port_id=destination_port_id),
            ports=ports,
            notes=notes,
        )

    def clear_source_port(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.CLEAR_SOURCE_PORT, notes=notes)

    def start_transit(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.START_TRANSIT, notes=notes)

    def mark_arrival(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.MARK_ARRIVAL, notes=notes)

    def move_to_destination_warehouse(self, batch_id, warehouse_id, *, notes: str | None = None) -> Batch:
        return self._run(
            batch_id,
            BatchOperation.MOVE_TO_DESTINATION_WAREHOUSE,
            TransitionParams(warehouse_id=warehouse_id),
            warehouses={"destination_warehouse_id": warehouse_id},
            notes=notes,
        )

    def complete_delivery(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.COMPLETE_DELIVERY, resolve=self._member_statuses, notes=notes)

    def _member_statuses(self, batch: Batch) -> TransitionParams:
        statuses = [shipment.status for shipment in self.uow.shipments.list_by_batch(batch.id)]
        return TransitionParams(shipment_statuses=statuses)

    def archive(self, batch_id, *, notes: str | None = None) -> Batch:
        return self._run(batch_id, BatchOperation.ARCHIVE, notes=notes)

    def cancel(self, batch_id, *, notes: str | None = None) -> Batch:
        batch = self._run(batch_id, BatchOperation.CANCEL, notes=notes)
        if batch.shipment_count:
            # Member shipments keep their own status and batch link.
            log_event(
                logger,
                "batch.cancelled_with_members",
                batch_id=str(batch.id),
                member_shipments=batch.shipment_count,
                trace_id=self._trace_id(),
            )
        return batch

    def _validate_references(self, *, warehouses: dict | None, ports: dict | None) -> None:
        for field_name, warehouse_id in (warehouses or {}).items():
            if not self.uow.warehouses.exists(warehouse_id):
                raise reference_not_found("Warehouse", warehouse_id, field=field_name)
        for field_name, port_id in (ports or {}).items():
            if not self.uow.ports.exists(port_id):
                raise reference_not_found("Port", port_id, field=field_name)

    def _run(
        self,
        batch_id,
        operation: BatchOperation,
        params: TransitionParams | None = None,
        *,
        warehouses: dict | None = None,
        ports: dict | None = None,
        resolve: Callable[[Batch], TransitionParams] | None = None,
        notes: str | None = None,
    ) -> Batch:
        try:
            batch = self.load(batch_id, for_update=True)
            check_transition(batch, operation)
            if resolve is not None:
                # Member statuses are read while the batch row is locked.
                params = resolve(batch)
            self._validate_references(warehouses=warehouses, ports=ports)
            result = apply_transition(batch, operation, params)
            self.uow.commit()
        except AppError as exc:
            self.uow.rollback()
            metrics.record_batch_transition(str(operation), "rejected")
            log_event(
                logger,
                "batch.transition_rejected",
                batch_id=str(batch_id),
                operation=str(operation),
                code=exc.error.code,
                reason=exc.message,
                actor=self._actor(),
                trace_id=self._trace_id(),
            )
            raise
        except Exception:
            self.uow.rollback()
            metrics.record_batch_transition(str(operation), "error")
            raise
        self._log_transition(batch, result, notes)
        return batch

    def _log_transition(self, batch: Batch, result: TransitionResult, notes: str | None) -> None:
        metrics.record_batch_transition(str(result.operation), "applied")
        log_event(
            logger,
            "batch.transition",
            batch_id=str(batch.id),
            operation=str(result.operation),
            previous=str(result.previous),
            current=str(result.current),
            notes=notes,
            actor=self._actor(),
            trace_id=self._trace_id(),
        )
