from fastapi import status


class OrderError(Exception):
    """Falla de negocio del ciclo de vida de órdenes. El router la traduce a HTTP."""
    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "order_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class OrderNotFound(OrderError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "order_not_found"


class ItemNotFound(OrderError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "item_not_found"


class TableNotFound(OrderError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "table_not_found"


class NoOpenOrders(OrderError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "no_open_orders"


class InvalidState(OrderError):
    status_code = status.HTTP_409_CONFLICT
    kind = "invalid_state"


class InvalidStatus(OrderError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "invalid_status"
