from pydantic import BaseModel


class SweepResult(BaseModel):
    processed_count: int
    penalized: int
    skipped: int
    failed: int
    deferred: int
