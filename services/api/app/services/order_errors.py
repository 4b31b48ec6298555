from __future__ import annotations


class OrderPipelineError(Exception):
    """Base class for errors surfaced to the caller of the order pipeline."""


class EmptyCartError(OrderPipelineError):
    def __init__(self, owner_id: str) -> None:
        super().__init__(f"No cart items found for owner {owner_id}")
        self.owner_id = owner_id


class NoOrderLinesError(OrderPipelineError):
    def __init__(self, entry_count: int) -> None:
        super().__init__(f"No valid order lines could be built from {entry_count} cart entries")
        self.entry_count = entry_count


class OrderPersistenceError(OrderPipelineError):
    pass


class SubmissionFailedError(OrderPipelineError):
    def __init__(self, reason: str, workflow_id: str) -> None:
        super().__init__(f"Error sending order to intake: {reason}")
        self.reason = reason
        self.workflow_id = workflow_id
