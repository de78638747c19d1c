"""Move submission handed to the chain client."""
from pydantic import BaseModel, ConfigDict, Field

from ..games.board import Move


class MoveSubmission(BaseModel):
    """Opening move plus stake for a new game. Consumed once by the chain client."""
    model_config = ConfigDict(frozen=True)

    cell_index: int = Field(ge=0, le=8)
    mark: Move = Move.X
    stake_micro: int = Field(gt=0)
    use_lending: bool = False


class SubmissionResult(BaseModel):
    """Outcome of a successful create-game contract call."""
    txid: str
    function_name: str
    status: str = "pending"  # pending, success, abort_by_response
