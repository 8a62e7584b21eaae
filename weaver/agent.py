"""Agent control loop: model call -> parse action -> execute -> observe, repeated."""

from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol, Sequence, Union

from langgraph.graph import END, StateGraph

from weaver.actions import (
    Finish,
    NaturalLanguageEdit,
    ReadFile,
    UnknownAction,
    WriteFile,
    action_to_dict,
    parse_action,
)
from weaver.config import Config
from weaver.errors import ActionError, CancelledError, ParseError, TurnLimitError, UnknownActionError, WeaverError
from weaver.llm import strip_code_fence
from weaver.repository import AITask, CodeChange, ConversationMessage, utc_now
from weaver.state import AgentState
from weaver.system_prompt import SystemPromptBuilder, build_edit_prompt
from weaver.tools.file_store import RepositoryFileStore, normalize_path
from weaver.tools.task_log import TaskLog
from weaver.utils.cancel import CancelToken
from weaver.utils.diffs import create_patch, diff_lines, diff_stats
from weaver.utils.locks import RepositoryLocks, default_locks
from weaver.utils.logging import SessionLogger


class ModelClient(Protocol):
    """What the loop needs from a model client."""

    def complete(self, system_prompt: str, history: list[dict[str, str]], cancel: Optional[CancelToken] = None) -> str:
        ...

    def generate(self, prompt: str, cancel: Optional[CancelToken] = None) -> str:
        ...


@dataclass
class AgentResult:
    """Outcome of one agent run."""

    status: Literal["finished", "error"]
    message: str
    transcript: list[ConversationMessage] = field(default_factory=list)
    changes: list[CodeChange] = field(default_factory=list)
    turns: int = 0
    error: Optional[WeaverError] = None

    @property
    def success(self) -> bool:
        return self.status == "finished"

    @property
    def reply(self) -> ConversationMessage:
        """Final assistant message, with the last change attached for display."""
        return ConversationMessage(
            role="assistant",
            content=self.message,
            attached_change=self.changes[-1] if self.changes else None,
        )


class AgentRun:
    """State and graph nodes for a single run against one repository."""

    def __init__(
        self,
        loop: "AgentLoop",
        store: RepositoryFileStore,
        prompt: str,
        cancel: CancelToken,
    ):
        self.loop = loop
        self.store = store
        self.prompt = prompt
        self.cancel = cancel
        self.system_prompt = SystemPromptBuilder(store.repository.name, store.list_files()).build()
        self.changes: list[CodeChange] = []
        self.error: Optional[WeaverError] = None

    def build_graph(self):
        """Build the compiled graph: call_model <-> execute, with exits to END."""
        workflow = StateGraph(AgentState)

        workflow.add_node("call_model", self.call_model)
        workflow.add_node("execute", self.execute)
        workflow.add_node("exhausted", self.exhausted)

        workflow.set_entry_point("call_model")
        workflow.add_conditional_edges(
            "call_model",
            self.route_after_model,
            {"execute": "execute", END: END},
        )
        workflow.add_conditional_edges(
            "execute",
            self.route_after_execute,
            {"call_model": "call_model", "exhausted": "exhausted", END: END},
        )
        workflow.add_edge("exhausted", END)

        return workflow.compile()

    # Nodes

    def call_model(self, state: AgentState) -> dict:
        """Send the transcript to the model and record its raw reply."""
        self.cancel.raise_if_cancelled()
        turn = state["turn_count"] + 1

        try:
            raw = self.loop.client.complete(self.system_prompt, state["messages"], cancel=self.cancel)
        except CancelledError:
            raise
        except WeaverError as e:
            self.error = e
            return {
                "turn_count": turn,
                "status": "error",
                "final_message": f"Failed to get a response from the AI model: {e}",
            }

        self._log("assistant", raw, turn=turn)
        return {
            "turn_count": turn,
            "last_response": raw,
            "messages": [{"role": "assistant", "content": raw}],
        }

    def execute(self, state: AgentState) -> dict:
        """Parse the last reply and run the action it names."""
        raw = state["last_response"] or ""

        try:
            action = parse_action(raw)
        except ParseError as e:
            self.error = e
            return {
                "status": "error",
                "final_message": f"I couldn't understand the AI model's response. Raw response:\n\n{raw}",
            }

        if isinstance(action, UnknownAction):
            self.error = UnknownActionError(f"Unknown action: {action.action}")
            return {
                "status": "error",
                "final_message": f"The AI model requested an unknown action: \"{action.action}\".",
            }

        if isinstance(action, Finish):
            return {"status": "finished", "final_message": action.message}

        read_paths = set(state["read_paths"])
        update: dict = {}

        try:
            if isinstance(action, ReadFile):
                observation = self.read_file(action.path)
                update["read_paths"] = [action.path]
            elif isinstance(action, WriteFile):
                observation = self.write_file(action.path, action.content, read_paths)
            else:
                observation = self.edit_file(action, read_paths)
        except ActionError as e:
            observation = f"Error: {e}"
        except CancelledError:
            raise
        except WeaverError as e:
            # The edit follow-up call failed
            self.error = e
            return {
                "status": "error",
                "final_message": f"Failed to get a response from the AI model: {e}",
            }

        self._log("system", observation, action=action_to_dict(action)["action"])
        update["messages"] = [{"role": "system", "content": observation}]
        return update

    def exhausted(self, state: AgentState) -> dict:
        """Force-exit once the turn budget is spent."""
        self.error = TurnLimitError(f"No finish action after {state['max_turns']} turns")
        return {
            "status": "error",
            "final_message": (
                f"The agent took too many steps ({state['max_turns']}) without finishing. "
                "Try a more specific request."
            ),
        }

    # Routing

    def route_after_model(self, state: AgentState) -> str:
        if state["status"] != "running":
            return END
        return "execute"

    def route_after_execute(self, state: AgentState) -> str:
        if state["status"] != "running":
            return END
        if state["turn_count"] >= state["max_turns"]:
            return "exhausted"
        return "call_model"

    # Actions

    def read_file(self, path: str) -> str:
        success, content, error = self.store.read(path)
        if not success:
            known = self.store.list_files()
            listing = ", ".join(known[:50]) + (" ..." if len(known) > 50 else "")
            raise ActionError(f"{error}. Known files: {listing}")
        return f"Content of {path}:\n```\n{content}\n```"

    def write_file(self, path: str, content: str, read_paths: set[str]) -> str:
        original = self._require_writable(path, read_paths)
        self._apply_write(path, original, content)
        return f"Successfully wrote {path}."

    def edit_file(self, action: NaturalLanguageEdit, read_paths: set[str]) -> str:
        original = self._require_writable(action.path, read_paths)
        selected = action.selected_content

        if selected is not None and selected not in original:
            raise ActionError(f"Selected content not found in {action.path}")

        code = selected if selected is not None else original
        prompt = build_edit_prompt(action.path, action.instruction, code, selected)
        replacement = strip_code_fence(self.loop.client.generate(prompt, cancel=self.cancel))

        if selected is not None:
            modified = original.replace(selected, replacement, 1)
        else:
            modified = replacement

        self._apply_write(action.path, original, modified)
        return f"Successfully edited {action.path}."

    def _require_writable(self, path: str, read_paths: set[str]) -> str:
        """Return the current content of path, or raise ActionError."""
        success, content, error = self.store.read(path)
        if not success:
            raise ActionError(f"{error}. No file was changed")

        if self.loop.config.enforce_read_before_write and normalize_path(path) not in read_paths:
            raise ActionError(f"You must read {path} with readFile before changing it. No file was changed")

        return content

    def _apply_write(self, path: str, original: str, modified: str) -> None:
        self.cancel.raise_if_cancelled()

        success, error = self.store.write(path, modified)
        if not success:
            raise ActionError(f"{error}. No file was changed")

        self.changes.append(CodeChange(file_path=path, original_code=original, modified_code=modified))
        stats = diff_stats(diff_lines(original, modified))

        task = AITask(
            repository_id=self.store.repository_id,
            prompt=self.prompt,
            status="completed",
            completed_at=utc_now(),
            original_code=original,
            modified_code=modified,
            lines_added=stats["added"],
            lines_removed=stats["removed"],
        )
        if self.loop.task_log is not None:
            self.loop.task_log.add(task)

        if self.loop.logger is not None:
            self.loop.logger.save_diff(path, create_patch(original, modified, path))

    def _log(self, role: str, content: str, **extra) -> None:
        if self.loop.logger is not None:
            self.loop.logger.log_message(role, content, **extra)


class AgentLoop:
    """Drives repeated model calls and file actions for one user request."""

    def __init__(
        self,
        client: ModelClient,
        config: Config,
        task_log: Optional[TaskLog] = None,
        logger: Optional[SessionLogger] = None,
        locks: Optional[RepositoryLocks] = None,
    ):
        """Initialize the agent loop.

        Args:
            client: Model client (see OllamaClient)
            config: Configuration (turn budget, read-before-write enforcement)
            task_log: Receives one AITask per successful write
            logger: Optional session logger for transcript and diffs
            locks: Per-repository locks (process-wide default if omitted)
        """
        self.client = client
        self.config = config
        self.task_log = task_log
        self.logger = logger
        self.locks = locks or default_locks

    def run(
        self,
        store: RepositoryFileStore,
        prompt: str,
        history: Sequence[Union[ConversationMessage, dict]] = (),
        cancel: Optional[CancelToken] = None,
        max_turns: Optional[int] = None,
    ) -> AgentResult:
        """Run the loop until the model finishes, fails, or the turn budget is spent.

        Args:
            store: File store for the target repository
            prompt: The user's request
            history: Earlier conversation turns, oldest first
            cancel: Optional cancellation token
            max_turns: Override for config.max_turns

        Returns:
            AgentResult with status "finished" or "error"

        Raises:
            RepositoryBusyError: Another run holds the repository
            CancelledError: The token was cancelled mid-run
        """
        cancel = cancel or CancelToken()
        budget = max_turns if max_turns is not None else self.config.max_turns
        if budget <= 0:
            raise ValueError("max_turns must be positive")

        turns = [m.to_turn() if isinstance(m, ConversationMessage) else dict(m) for m in history]
        turns.append({"role": "user", "content": prompt})

        with self.locks.hold(store.repository_id):
            run = AgentRun(self, store, prompt, cancel)
            if self.logger is not None:
                self.logger.log_message("user", prompt)

            initial: AgentState = {
                "messages": turns,
                "turn_count": 0,
                "max_turns": budget,
                "status": "running",
                "last_response": None,
                "final_message": None,
                "read_paths": [],
            }
            # Each turn visits two nodes, plus the exhausted node
            final = run.build_graph().invoke(initial, config={"recursion_limit": budget * 2 + 5})

        status = "finished" if final["status"] == "finished" else "error"
        message = final["final_message"] or ""
        if self.logger is not None:
            self.logger.log_message("assistant", message, status=status)
            if self.task_log is not None:
                self.logger.save_tasks(self.task_log.to_list())

        # Prior history stays with the caller; only this run's turns are returned
        new_turns = final["messages"][len(turns) - 1:]
        transcript = [ConversationMessage(role=t["role"], content=t["content"]) for t in new_turns]

        result = AgentResult(
            status=status,
            message=message,
            changes=list(run.changes),
            turns=final["turn_count"],
            error=run.error,
        )
        result.transcript = transcript + [result.reply]
        return result
