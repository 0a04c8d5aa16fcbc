"""Errors raised when a blocking operation cannot be activated."""

from __future__ import annotations

from enum import Enum


class BlockingOperationErrorType(Enum):
    THERE_IS_ALREADY_AN_ACTIVE_OPERATION = (
        "There is already an active operation which is running. "
        "We cannot have more than 1 active operation running."
    )
    OPERATION_ID_HAS_NO_ASSOCIATED_CONFIG = (
        "The given operationId has not an associated config. "
        "Please associate it by calling the method BlockingOperation.AddConfig()."
    )


class BlockingOperationError(Exception):
    """Raised when a blocking operation cannot be activated."""

    def __init__(self, error_type: BlockingOperationErrorType, operation_id: str) -> None:
        self.error_type = error_type
        self.operation_id = operation_id
        super().__init__(
            "Cannot active a blocking operation. Reason: "
            f"OperationId: '{operation_id}' - {error_type.value}"
        )

    @property
    def there_is_already_an_active_operation(self) -> bool:
        return self.error_type is BlockingOperationErrorType.THERE_IS_ALREADY_AN_ACTIVE_OPERATION

    @property
    def operation_id_has_no_associated_config(self) -> bool:
        return self.error_type is BlockingOperationErrorType.OPERATION_ID_HAS_NO_ASSOCIATED_CONFIG