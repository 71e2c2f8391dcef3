class FinanceApiError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    message = "Internal server error"


class InvalidRecordIdError(FinanceApiError):
    code = "INVALID_ID"
    status_code = 400
    message = "Invalid ID format"

    def __init__(self, record_id: object) -> None:
        super().__init__(f"invalid record id: {record_id!r}")
        self.record_id = record_id


class RecordNotFoundError(FinanceApiError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, record_id: object) -> None:
        super().__init__(f"{resource} not found: {record_id}")
        self.message = f"{resource} not found"
        self.resource = resource
        self.record_id = record_id


class StoreError(FinanceApiError):
    """Any failure reported by the document store driver."""

    code = "STORE_ERROR"
    status_code = 500

    def __init__(self, operation: str, resource: str) -> None:
        super().__init__(f"store error during {operation} on {resource}")
        self.message = f"Error during {operation} of {resource}"
        self.operation = operation
        self.resource = resource
