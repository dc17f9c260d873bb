"""Error kinds raised by the goal evaluation engine.

Validation errors (`InvalidDate`, `InvalidRecurrenceRule`,
`InvalidCheckinCount`) are raised synchronously and reach the caller.
`StorageUnavailable` wraps database failures. `DuplicateMiss` signals that a
miss marker already exists and is treated as a no-op by the sweep.
"""


class CheckmateError(Exception):
    """Base class for engine errors."""


class InvalidDate(CheckmateError, ValueError):
    pass


class InvalidRecurrenceRule(CheckmateError, ValueError):
    pass


class InvalidCheckinCount(CheckmateError, ValueError):
    pass


class StorageUnavailable(CheckmateError):
    pass


class DuplicateMiss(CheckmateError):
    def __init__(self, goal_id: int, period_key: str):
        super().__init__(f"miss already recorded for goal {goal_id} ({period_key})")
        self.goal_id = goal_id
        self.period_key = period_key


class PenaltyDeliveryError(CheckmateError):
    pass
