"""System prompts for the agent loop and the edit follow-up call."""

from typing import Optional


class SystemPromptBuilder:
    """Builds the action-protocol system prompt for one repository."""

    def __init__(self, repository_name: str, file_paths: list[str], max_listed_files: int = 300):
        """Initialize system prompt builder.

        Args:
            repository_name: Name shown to the model
            file_paths: Known file paths, in import order
            max_listed_files: Cap on how many paths are listed in the prompt
        """
        self.repository_name = repository_name
        self.file_paths = file_paths
        self.max_listed_files = max_listed_files

    def build(self) -> str:
        """Build the full system prompt."""
        return "\n\n".join([
            self._build_core_identity(),
            self._build_protocol(),
            self._build_file_list(),
        ])

    def _build_core_identity(self) -> str:
        return f"""# Weaver Coding Agent

You are an expert software engineer working on the repository "{self.repository_name}".
You answer questions about the code and make changes to its files.
You can only see a file after reading it. You act by emitting exactly one JSON action per reply."""

    def _build_protocol(self) -> str:
        return """# Action Protocol

Reply with ONLY one JSON object, optionally inside a ```json code block. No other text.

Available actions:

1. Read a file (its content is returned to you as an observation):
   {"action": "readFile", "path": "src/app.py"}

2. Replace the whole content of a file:
   {"action": "writeFile", "path": "src/app.py", "content": "<complete new file content>"}

3. Describe an edit and let a code editor apply it. Use selectedContent to limit
   the edit to one snippet of the file:
   {"action": "naturalLanguageEdit", "path": "src/app.py", "instruction": "Rename foo to bar", "selectedContent": "def foo():"}

4. Finish and answer the user:
   {"action": "finish", "message": "<answer or summary of the changes>"}

Rules:
- You MUST read a file with readFile before writing or editing it.
- Only use paths from the file list below. New files cannot be created.
- writeFile content must be the complete file, never a fragment or a diff.
- When the request is a question, read what you need and then finish with the answer.
- When all changes are done, finish with a short summary."""

    def _build_file_list(self) -> str:
        listed = self.file_paths[: self.max_listed_files]
        lines = [f"- {path}" for path in listed]
        if len(self.file_paths) > self.max_listed_files:
            lines.append(f"... and {len(self.file_paths) - self.max_listed_files} more files")
        if not lines:
            lines.append("(repository has no files)")
        return "# Repository Files\n\n" + "\n".join(lines)


def build_edit_prompt(path: str, instruction: str, code: str, selected: Optional[str] = None) -> str:
    """Build the single-shot prompt that turns an instruction into replacement code.

    Args:
        path: File being modified
        instruction: Edit described in natural language
        code: Full current file content, or the selected snippet
        selected: Set when only a snippet of the file is being rewritten

    Returns:
        Prompt text
    """
    target = "the selected code snippet" if selected is not None else "the given code file"
    return f"""You are a code modification expert. Your task is to apply suggested changes to {target} and return ONLY the complete, updated code. Do not add any explanations, comments, or markdown formatting like ``` around the code.

File to modify: {path}

Suggested Changes:
{instruction}

Original Code:
---
{code}
---

Now, provide the full and complete code with the changes applied."""
