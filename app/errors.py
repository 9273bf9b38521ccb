# app/errors.py
"""
Domain errors raised by the service layer.

Routes translate these into HTTP responses; row-level data problems never
raise (they are skipped or reported as warnings instead).
"""


class FinanceError(Exception):
    """Base class for user-facing failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoTransactionsFound(FinanceError):
    def __init__(self, message: str = "No valid transactions found. Please check your CSV format."):
        super().__init__(message)


class BatchNotFound(FinanceError):
    status_code = 404

    def __init__(self, batch_id: str):
        super().__init__(f"No pending import batch {batch_id!r}")


class ProtectedCategoryError(FinanceError):
    def __init__(self, name: str):
        super().__init__(f"Category {name!r} is protected and cannot be deleted")


class DuplicateCategoryError(FinanceError):
    status_code = 409

    def __init__(self, name: str):
        super().__init__(f"Category {name!r} already exists")


class ImportSaveError(FinanceError):
    status_code = 500

    def __init__(self, message: str = "Import failed"):
        super().__init__(message)
