"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

CONFIG_FILE_NAME = "metal_lsp.toml"
COLUMN_LIMIT_CAP = 400

DEFAULT_INCLUDE_EXTENSIONS = (".metal", ".h", ".hh", ".hpp", ".hxx", ".inc", ".inl")
DEFAULT_EXCLUDE_GLOBS = (
    "**/.git/**",
    "**/.hg/**",
    "**/.svn/**",
    "**/.build/**",
    "**/build/**",
    "**/DerivedData/**",
    "**/Pods/**",
    "**/node_modules/**",
)
DEFAULT_COMPILER_COMMAND = ("xcrun", "metal")
DEFAULT_FORMATTER_COMMAND = "clang-format"
DEFAULT_COLUMN_LIMIT = 100


@dataclass(slots=True, frozen=True)
class WorkspaceConfig:
    """File enumeration settings."""

    include_extensions: tuple[str, ...] = DEFAULT_INCLUDE_EXTENSIONS
    exclude_globs: tuple[str, ...] = DEFAULT_EXCLUDE_GLOBS


@dataclass(slots=True, frozen=True)
class CompilerConfig:
    """External compiler invocation settings."""

    command: tuple[str, ...] = DEFAULT_COMPILER_COMMAND
    include_dirs: tuple[Path, ...] = ()


@dataclass(slots=True, frozen=True)
class FormatterConfig:
    """External formatter invocation settings."""

    command: str = DEFAULT_FORMATTER_COMMAND
    column_limit: int = DEFAULT_COLUMN_LIMIT


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """Diagnostic trace and audit log settings."""

    verbose: bool = False
    log_messages: bool = False
    data_dir: Path | None = None


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    workspace_root: Path | None
    workspace: WorkspaceConfig
    compiler: CompilerConfig
    formatter: FormatterConfig
    logging: LoggingConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable config snapshot."""
        return {
            "workspace_root": None if self.workspace_root is None else str(self.workspace_root),
            "workspace": {
                "include_extensions": list(self.workspace.include_extensions),
                "exclude_globs": list(self.workspace.exclude_globs),
            },
            "compiler": {
                "command": list(self.compiler.command),
                "include_dirs": [str(path) for path in self.compiler.include_dirs],
            },
            "formatter": {
                "command": self.formatter.command,
                "column_limit": self.formatter.column_limit,
            },
            "logging": {
                "verbose": self.logging.verbose,
                "log_messages": self.logging.log_messages,
                "data_dir": None if self.logging.data_dir is None else str(self.logging.data_dir),
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    compiler_command: tuple[str, ...] | None = None
    formatter_command: str | None = None
    verbose: bool | None = None
    log_messages: bool | None = None


def default_config(workspace_root: Path | None = None) -> ServerConfig:
    """Build default config, optionally bound to a workspace root."""
    return ServerConfig(
        workspace_root=None if workspace_root is None else workspace_root.resolve(),
        workspace=WorkspaceConfig(),
        compiler=CompilerConfig(),
        formatter=FormatterConfig(),
        logging=LoggingConfig(),
    )


def load_workspace_config_file(workspace_root: Path) -> dict[str, object]:
    """Load optional metal_lsp.toml from the workspace root."""
    config_path = workspace_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def merge_config(
    base: ServerConfig, workspace_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, workspace config, then CLI overrides."""
    workspace_table = _get_table(workspace_payload, "workspace")
    compiler_table = _get_table(workspace_payload, "compiler")
    formatter_table = _get_table(workspace_payload, "formatter")

    include_extensions = base.workspace.include_extensions
    if "include_extensions" in workspace_table:
        include_extensions = tuple(
            _normalize_extension(item)
            for item in _tuple_of_strings(
                workspace_table["include_extensions"], "workspace", "include_extensions"
            )
        )
    exclude_globs = base.workspace.exclude_globs
    if "exclude_globs" in workspace_table:
        exclude_globs = _tuple_of_strings(
            workspace_table["exclude_globs"], "workspace", "exclude_globs"
        )

    command = base.compiler.command
    if "command" in compiler_table:
        command = _tuple_of_strings(compiler_table["command"], "compiler", "command")
        if not command:
            raise ValueError("Config field 'compiler.command' must not be empty.")
    include_dirs = base.compiler.include_dirs
    if "include_dirs" in compiler_table:
        raw_dirs = _tuple_of_strings(compiler_table["include_dirs"], "compiler", "include_dirs")
        include_dirs = tuple(_resolve_against(base.workspace_root, item) for item in raw_dirs)

    formatter_command = base.formatter.command
    if "command" in formatter_table:
        raw_command = formatter_table["command"]
        if not isinstance(raw_command, str) or not raw_command.strip():
            raise ValueError("Config field 'formatter.command' must be a non-empty string.")
        formatter_command = raw_command
    column_limit = _optional_positive_int_with_cap(
        formatter_table.get("column_limit"),
        "formatter.column_limit",
        base.formatter.column_limit,
        COLUMN_LIMIT_CAP,
    )

    merged = ServerConfig(
        workspace_root=base.workspace_root,
        workspace=WorkspaceConfig(
            include_extensions=include_extensions,
            exclude_globs=exclude_globs,
        ),
        compiler=CompilerConfig(command=command, include_dirs=include_dirs),
        formatter=FormatterConfig(command=formatter_command, column_limit=column_limit),
        logging=base.logging,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    compiler = config.compiler
    if overrides.compiler_command is not None:
        if not overrides.compiler_command:
            raise ValueError("Config field 'overrides.compiler_command' must not be empty.")
        compiler = replace(compiler, command=overrides.compiler_command)
    formatter = config.formatter
    if overrides.formatter_command is not None:
        formatter = replace(formatter, command=overrides.formatter_command)
    logging = LoggingConfig(
        verbose=overrides.verbose if overrides.verbose is not None else config.logging.verbose,
        log_messages=(
            overrides.log_messages
            if overrides.log_messages is not None
            else config.logging.log_messages
        ),
        data_dir=(
            overrides.data_dir.resolve()
            if overrides.data_dir is not None
            else config.logging.data_dir
        ),
    )
    return ServerConfig(
        workspace_root=config.workspace_root,
        workspace=config.workspace,
        compiler=compiler,
        formatter=formatter,
        logging=logging,
    )


def load_effective_config(
    workspace_root: Path | None, overrides: CliOverrides | None = None
) -> ServerConfig:
    """Load effective config using merge order defaults -> workspace config -> overrides."""
    base = default_config(workspace_root)
    payload: dict[str, object] = {}
    if base.workspace_root is not None:
        payload = load_workspace_config_file(base.workspace_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _normalize_extension(value: str) -> str:
    lowered = value.strip().lower()
    if lowered and not lowered.startswith("."):
        return f".{lowered}"
    return lowered


def _resolve_against(root: Path | None, value: str) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute() or root is None:
        return path.resolve()
    return (root / path).resolve()


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
