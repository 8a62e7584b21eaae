"""Constants and default values for Weaver."""

# Model endpoint defaults
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MODEL = "qwen2.5-coder:7b"
DEFAULT_API_MODE = "chat"
API_MODES = ("chat", "generate")

# Timeouts (seconds)
DEFAULT_REQUEST_TIMEOUT = 120
DEFAULT_PROBE_TIMEOUT = 10

# Agent loop defaults
DEFAULT_MAX_TURNS = 10
DEFAULT_TASK_LOG_LIMIT = 100

# File size limits (in MB)
DEFAULT_MAX_READ_MB = 2

# Upstream error bodies are truncated to this many characters
MAX_ERROR_BODY_CHARS = 500

# Header that makes ngrok skip its browser warning page
TUNNEL_SKIP_HEADER = "ngrok-skip-browser-warning"

# Markers of a tunneling gateway interstitial page
TUNNEL_MARKERS = (
    "ngrok-skip-browser-warning",
    "ERR_NGROK_",
)

# Workspace directory (relative to project root)
WORKSPACE_DIR = ".weaver"

# Ignore files read from the project root, in order; later patterns win
IGNORE_FILES = (".gitignore", ".weaverignore")

# Built-in ignore patterns
BUILTIN_IGNORES = [
    # Version control and project metadata
    ".git/",
    ".github/",

    # Weaver internal
    ".weaver/",

    # Python
    "__pycache__/",
    "*.pyc",
    "*.pyo",
    "*.egg-info/",
    ".pytest_cache/",
    ".mypy_cache/",
    ".ruff_cache/",

    # Virtual environments
    "venv/",
    ".venv/",

    # Build artifacts
    "dist/",
    "build/",
    "*.so",
    "*.dylib",
    "*.dll",

    # JavaScript/Node
    "node_modules/",
    "package-lock.json",
    "yarn.lock",
    ".next/",

    # IDE and editor files
    ".DS_Store",
    "*.swp",
    ".vscode/",
    ".idea/",

    # Logs and databases
    "*.log",
    "*.sqlite",
    "*.db",
]

# Extensions treated as text when loading a local directory
TEXT_EXTENSIONS = {
    ".py", ".js", ".jsx", ".ts", ".tsx", ".java", ".go", ".rs", ".c", ".cpp",
    ".h", ".hpp", ".rb", ".php", ".swift", ".kt", ".sh", ".md", ".rst", ".txt",
    ".json", ".yaml", ".yml", ".toml", ".xml", ".html", ".css", ".sql", ".cfg",
    ".ini",
}
