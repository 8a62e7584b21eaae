"""State model for the LangGraph agent loop."""

from operator import add
from typing import Annotated, Literal, Optional, TypedDict


class AgentState(TypedDict):
    """The state object passed through the agent graph.

    Attributes:
        messages: Transcript turns ({"role", "content"}), append-only
        turn_count: Model calls made so far in this run
        max_turns: Turn budget for this run
        status: "running", "finished" or "error"
        last_response: Raw text of the most recent model reply
        final_message: Message shown to the user when the run ends
        read_paths: Paths successfully read during this run, append-only
    """

    messages: Annotated[list[dict], add]
    turn_count: int
    max_turns: int
    status: Literal["running", "finished", "error"]
    last_response: Optional[str]
    final_message: Optional[str]
    read_paths: Annotated[list[str], add]
