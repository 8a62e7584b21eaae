"""CLI and REPL for Weaver."""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from weaver.agent import AgentLoop, AgentResult
from weaver.config import Config
from weaver.conversation import ConversationContext
from weaver.errors import CancelledError, RepositoryBusyError
from weaver.llm import OllamaClient
from weaver.repository import CodeChange, Repository, load_repository
from weaver.tools.file_store import RepositoryFileStore
from weaver.tools.workspace import WorkspaceStore
from weaver.utils.diffs import DiffLine, diff_lines, diff_stats
from weaver.utils.ignore import IgnoreRules
from weaver.utils.logging import SessionLogger

app = typer.Typer(help="Weaver - chat with a local model about your code and let it edit files")
console = Console()


def render_diff(diff: list[DiffLine]) -> Text:
    """Render an edit script with +/- gutters and colors."""
    text = Text()
    for line in diff:
        if line.added:
            text.append(f"+ {line.value}\n", style="green")
        elif line.removed:
            text.append(f"- {line.value}\n", style="red")
        else:
            text.append(f"  {line.value}\n", style="dim")
    return text


def show_change(change: CodeChange) -> None:
    diff = diff_lines(change.original_code, change.modified_code)
    stats = diff_stats(diff)
    title = f"{change.file_path}  [green]+{stats['added']}[/green] [red]-{stats['removed']}[/red]"
    console.print(Panel(render_diff(diff), title=title, border_style="yellow"))


def show_result(result: AgentResult) -> None:
    for change in result.changes:
        show_change(change)

    style = "cyan" if result.success else "red"
    title = "Weaver" if result.success else "Error"
    console.print(Panel(Markdown(result.message or "(no message)"), title=title, border_style=style))
    console.print(f"[dim]{result.turns} turn(s), {len(result.changes)} file(s) changed[/dim]")


def load_config(
    project_root: Path,
    model: Optional[str] = None,
    url: Optional[str] = None,
    validate: bool = True,
) -> Config:
    """Load configuration, exiting on errors.

    Commands that never call the model pass validate=False so that an unset
    endpoint does not block them.
    """
    try:
        config = Config.load(project_root)
    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    if model:
        config.ollama_model = model
    if url:
        config.ollama_url = url

    errors = config.validate() if validate else []
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        sys.exit(1)

    return config


def resolve_project(path: Optional[str]) -> Path:
    project_root = Path(path).resolve() if path else Path.cwd()

    if not project_root.exists():
        console.print(f"[red]Error: Path does not exist: {project_root}[/red]")
        sys.exit(1)

    if not project_root.is_dir():
        console.print(f"[red]Error: Path is not a directory: {project_root}[/red]")
        sys.exit(1)

    return project_root


def import_directory(workspace: WorkspaceStore, project_root: Path, config: Config) -> Repository:
    """Load a directory into the workspace, keeping the id of an earlier import."""
    repository = load_repository(project_root, IgnoreRules(project_root), config.max_read_mb)
    existing = workspace.find_by_name(repository.name)
    if existing is not None:
        repository.id = existing.id
    workspace.add_repository(repository)
    workspace.save()
    return repository


class Session:
    """One project: workspace state, model client and agent loop."""

    def __init__(self, project_root: Path, config: Config):
        """Initialize session.

        Args:
            project_root: Project root directory
            config: Configuration object
        """
        self.project_root = project_root
        self.config = config
        self.workspace = WorkspaceStore(project_root, config.task_log_limit)
        self.workspace.load()
        self.logger = SessionLogger(project_root)
        self.client = OllamaClient(config)
        self.agent = AgentLoop(self.client, config, task_log=self.workspace.task_log, logger=self.logger)
        self.context = ConversationContext()
        self.repository = self._select_repository()

    def _select_repository(self) -> Repository:
        repository = self.workspace.find_by_name(self.project_root.name)
        if repository is None:
            console.print("[dim]Importing project files...[/dim]")
            repository = import_directory(self.workspace, self.project_root, self.config)
        console.print(f"[dim]Repository {repository.name}: {len(repository.files)} files[/dim]")
        return repository

    def ask(self, prompt: str) -> AgentResult:
        """Run one agent request and merge its transcript into the conversation."""
        store = RepositoryFileStore(self.repository)
        with console.status("[dim]Thinking...[/dim]"):
            result = self.agent.run(store, prompt, history=self.context.history())
        self.context.extend(result.transcript)
        self.workspace.save()
        return result


class REPL:
    """Interactive REPL for Weaver."""

    def __init__(self, session: Session):
        self.session = session
        self.running = True

    def start(self) -> None:
        """Start the REPL."""
        console.print(Panel.fit(
            "[bold cyan]Weaver[/bold cyan] - Local Model Code Assistant\n"
            f"Project: {self.session.project_root}\n"
            f"Model: {self.session.config.ollama_model} @ {self.session.config.ollama_url}\n"
            "\n"
            "Type /help for commands or /quit to exit",
            border_style="cyan"
        ))

        while self.running:
            try:
                user_input = console.input("[bold cyan]weaver>[/bold cyan] ").strip()

                if not user_input:
                    continue

                self.handle_input(user_input)

            except KeyboardInterrupt:
                console.print("\n[dim]Use /quit to exit[/dim]")
                continue
            except EOFError:
                break

        console.print("\n[cyan]Goodbye![/cyan]")

    def handle_input(self, user_input: str) -> None:
        if user_input.startswith("/"):
            self.handle_command(user_input)
        else:
            self.handle_natural_language(user_input)

    def handle_command(self, command: str) -> None:
        """Handle slash command.

        Args:
            command: Command string (starting with /)
        """
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd == "/help":
            self.show_help()
        elif cmd in ("/quit", "/exit"):
            self.running = False
        elif cmd == "/files":
            for path in self.session.repository.file_paths():
                console.print(f"  {path}")
        elif cmd == "/show":
            if not args:
                console.print("[red]Usage: /show <path>[/red]")
                return
            success, content, error = RepositoryFileStore(self.session.repository).read(args)
            if success:
                console.print(Panel(Text(content), title=args))
            else:
                console.print(f"[red]{error}[/red]")
        elif cmd == "/diff":
            change = self.session.context.last_change()
            if change is None:
                console.print("[dim]No changes in this session yet[/dim]")
            else:
                show_change(change)
        elif cmd == "/reimport":
            self.session.repository = import_directory(
                self.session.workspace, self.session.project_root, self.session.config
            )
            self.session.context.clear()
            console.print(f"[green]Re-imported {len(self.session.repository.files)} files[/green]")
        elif cmd == "/tasks":
            print_tasks(self.session.workspace, self.session.repository.id)
        elif cmd == "/models":
            print_connection(self.session.client)
        elif cmd == "/config":
            config_dict = self.session.config.to_dict()
            console.print(Panel(
                "\n".join(f"{k}: {v}" for k, v in config_dict.items()),
                title="Configuration",
                border_style="blue"
            ))
        elif cmd == "/clear":
            self.session.context.clear()
            console.print("[dim]Conversation cleared[/dim]")
        elif cmd == "/log":
            console.print(f"[dim]Session logs: {self.session.logger.get_log_path()}[/dim]")
        else:
            console.print(f"[red]Unknown command: {cmd}[/red]")
            console.print("[dim]Type /help for available commands[/dim]")

    def handle_natural_language(self, text: str) -> None:
        try:
            result = self.session.ask(text)
        except (RepositoryBusyError, CancelledError) as e:
            console.print(f"[red]{e}[/red]")
            return
        show_result(result)

    def show_help(self) -> None:
        help_text = """
**Available Commands:**

- `/files` - List repository files
- `/show <path>` - Show the current content of a file
- `/diff` - Show the last change made in this session
- `/reimport` - Reload files from disk (discards in-memory edits)
- `/tasks` - Show completed tasks for this repository
- `/models` - Test the connection and list installed models
- `/config` - Show current configuration
- `/clear` - Forget the conversation history
- `/log` - Show session log path
- `/help` - Show this help message
- `/quit` - Exit Weaver

Anything else is sent to the agent, for example:

```
Explain what src/app.py does
Add input validation to the parse_args function in cli.py
```
        """
        console.print(Markdown(help_text))


def print_tasks(workspace: WorkspaceStore, repository_id: Optional[str] = None) -> None:
    tasks = workspace.task_log.for_repository(repository_id) if repository_id else workspace.task_log.tasks
    if not tasks:
        console.print("[dim]No tasks yet[/dim]")
        return

    table = Table(title="Tasks (newest first)")
    table.add_column("Created")
    table.add_column("Status")
    table.add_column("Prompt")
    table.add_column("Lines +/-")
    for task in tasks:
        table.add_row(task.created_at, task.status, task.prompt[:60], f"+{task.lines_added}/-{task.lines_removed}")
    console.print(table)


def print_connection(client: OllamaClient) -> bool:
    result = client.test_connection()
    if not result.ok:
        console.print(f"[red]{result.message}[/red]")
        return False

    console.print(f"[green]{result.message}[/green]")
    for name in result.models:
        console.print(f"  - {name}")
    return True


@app.command()
def chat(
    path: Optional[str] = typer.Argument(None, help="Project path (default: current directory)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Ollama model name"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Ollama server URL"),
) -> None:
    """Start an interactive session."""
    project_root = resolve_project(path)
    config = load_config(project_root, model, url)

    try:
        REPL(Session(project_root, config)).start()
    except Exception as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        sys.exit(1)


@app.command()
def run(
    prompt: str = typer.Argument(..., help="Request for the agent"),
    path: Optional[str] = typer.Option(None, "--path", "-p", help="Project path (default: current directory)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Ollama model name"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Ollama server URL"),
) -> None:
    """Run a single agent request and print the result."""
    project_root = resolve_project(path)
    config = load_config(project_root, model, url)
    session = Session(project_root, config)

    try:
        result = session.ask(prompt)
    except (RepositoryBusyError, CancelledError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    show_result(result)
    if not result.success:
        sys.exit(1)


@app.command("import")
def import_cmd(
    path: Optional[str] = typer.Argument(None, help="Project path (default: current directory)"),
) -> None:
    """Load (or reload) a directory's files into the workspace."""
    project_root = resolve_project(path)
    config = load_config(project_root, validate=False)
    workspace = WorkspaceStore(project_root, config.task_log_limit)
    workspace.load()
    repository = import_directory(workspace, project_root, config)
    console.print(f"[green]Imported {repository.name}: {len(repository.files)} files[/green]")


@app.command()
def models(
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Ollama server URL"),
) -> None:
    """Test the connection to the model server and list its models."""
    config = load_config(Path.cwd(), url=url, validate=False)
    if not print_connection(OllamaClient(config)):
        sys.exit(1)


@app.command()
def tasks(
    path: Optional[str] = typer.Argument(None, help="Project path (default: current directory)"),
) -> None:
    """Show the task history of a project."""
    project_root = resolve_project(path)
    config = load_config(project_root, validate=False)
    workspace = WorkspaceStore(project_root, config.task_log_limit)
    workspace.load()
    print_tasks(workspace)


@app.command()
def diff(
    original: Path = typer.Argument(..., exists=True, dir_okay=False, help="Original file"),
    modified: Path = typer.Argument(..., exists=True, dir_okay=False, help="Modified file"),
) -> None:
    """Show a line diff between two files."""
    try:
        original_text = original.read_text(encoding="utf-8")
        modified_text = modified.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        console.print(f"[red]Error: Only UTF-8 text files can be diffed ({e.reason})[/red]")
        sys.exit(1)

    result = diff_lines(original_text, modified_text)
    console.print(render_diff(result))


if __name__ == "__main__":
    app()
