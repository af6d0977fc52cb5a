import logging
from typing import Optional

from sqlmodel import Session

from core.clock import utc_now
from models.enums import TableStatus
from models.tables import Table, TableStatusHistory

logger = logging.getLogger(__name__)


def change_table_status(
    session: Session,
    table: Table,
    new_status: TableStatus,
    changed_by: Optional[str] = None,
    reason: Optional[str] = None,
) -> bool:
    """
    Cambia el estado de la mesa y deja constancia en `table_status_history`.
    No hace commit. Devuelve False si el estado ya era el mismo.
    """
    new_status = TableStatus(new_status)
    previous = table.status
    if previous == new_status:
        return False

    table.status = new_status
    table.updated_at = utc_now()
    session.add(table)
    session.add(TableStatusHistory(
        id_table=table.id,
        previous_status=previous,
        new_status=new_status,
        changed_by=changed_by,
        reason=reason,
    ))
    logger.info("Mesa %s: %s -> %s (%s)", table.number, previous.value, new_status.value, reason or "sin motivo")
    return True
