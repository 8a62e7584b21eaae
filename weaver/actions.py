"""Agent action schema and the parser for raw model output."""

import json
import re
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from weaver.errors import ParseError
from weaver.tools.file_store import normalize_path

_FENCED_JSON_RE = re.compile(r"```(?:json|JSON)?\s*(\{.*?\})\s*```", re.DOTALL)


class ReadFile(BaseModel):
    """Ask to see the current content of a file."""

    action: Literal["readFile"] = "readFile"
    path: str = Field(min_length=1, description="Path of a file in the repository")


class WriteFile(BaseModel):
    """Replace the whole content of a file."""

    action: Literal["writeFile"] = "writeFile"
    path: str = Field(min_length=1, description="Path of a file in the repository")
    content: str = Field(description="Complete new file content")


class NaturalLanguageEdit(BaseModel):
    """Describe an edit in words and let a follow-up model call produce the code."""

    model_config = ConfigDict(populate_by_name=True)

    action: Literal["naturalLanguageEdit"] = "naturalLanguageEdit"
    path: str = Field(min_length=1, description="Path of a file in the repository")
    instruction: str = Field(min_length=1, description="What to change")
    selected_content: Optional[str] = Field(
        None,
        alias="selectedContent",
        description="Snippet of the file to rewrite instead of the whole file",
    )


class Finish(BaseModel):
    """End the run with a message for the user."""

    action: Literal["finish"] = "finish"
    message: str


class UnknownAction(BaseModel):
    """An action tag the loop does not recognize."""

    action: str
    raw: str = ""


KnownAction = Annotated[
    Union[ReadFile, WriteFile, NaturalLanguageEdit, Finish],
    Field(discriminator="action"),
]
AgentAction = Union[ReadFile, WriteFile, NaturalLanguageEdit, Finish, UnknownAction]

KNOWN_ACTIONS = ("readFile", "writeFile", "naturalLanguageEdit", "finish")

_action_adapter: TypeAdapter = TypeAdapter(KnownAction)


def extract_json(text: str) -> Optional[dict[str, Any]]:
    """Pull one JSON object out of free-form model text.

    A fenced code block is tried first, then the whole trimmed text.

    Args:
        text: Raw model response

    Returns:
        Decoded object, or None if nothing decodes to a JSON object
    """
    candidates = []
    match = _FENCED_JSON_RE.search(text)
    if match:
        candidates.append(match.group(1))
    candidates.append(text.strip())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def parse_action(text: str) -> AgentAction:
    """Parse raw model output into an action.

    Args:
        text: Raw model response

    Returns:
        A known action with normalized path, or UnknownAction for an unrecognized tag

    Raises:
        ParseError: If no JSON object is found, the "action" field is missing,
            or a recognized action has missing or mistyped fields
    """
    data = extract_json(text)
    if data is None:
        raise ParseError(f"Model response is not a valid JSON action:\n{text}", raw=text)

    tag = data.get("action")
    if not isinstance(tag, str) or not tag:
        raise ParseError(f"Model response has no \"action\" field:\n{text}", raw=text)

    if tag not in KNOWN_ACTIONS:
        return UnknownAction(action=tag, raw=text)

    try:
        action = _action_adapter.validate_python(data)
    except ValidationError as e:
        raise ParseError(f"Invalid \"{tag}\" action ({e.error_count()} errors):\n{text}", raw=text) from e

    if hasattr(action, "path"):
        action.path = normalize_path(action.path)
    return action


def action_to_dict(action: AgentAction) -> dict[str, Any]:
    """Serialize an action back to its JSON wire shape."""
    if isinstance(action, UnknownAction):
        return {"action": action.action}
    return action.model_dump(by_alias=True, exclude_none=True)
