"""Settings models - Site and Config snapshot

Both are frozen pydantic models: a reload builds new objects, nothing is
mutated in place. JSON keys are camelCase (``localPath``, ``preSyncUp``...);
attributes are snake_case.
"""

import shlex
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..rsync import validate_option

HookCommand = Annotated[tuple[str, ...], Field(min_length=1)]


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Site(_Frozen):
    """One sync endpoint."""

    name: str | None = None
    local_path: str | None = None
    remote_path: str | None = None

    executable: str = "rsync"
    executable_shell: str | None = None

    flags: str = "rlptzv"
    options: tuple[tuple[str, ...], ...] = ()
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = (".git", ".vscode")
    shell: str | None = None
    chmod: str | None = None
    delete_files: bool = False
    args: tuple[str, ...] = ()

    up_only: bool = False
    down_only: bool = False

    pre_sync_up: HookCommand | None = None
    pre_sync_down: HookCommand | None = None
    post_sync_up: HookCommand | None = None
    post_sync_down: HookCommand | None = None
    after_sync: HookCommand | None = None

    @field_validator("options", mode="before")
    @classmethod
    def _check_options(cls, value):
        return tuple(validate_option(option) for option in value or ())

    @field_validator("pre_sync_up", "pre_sync_down", "post_sync_up", "post_sync_down", "after_sync", mode="before")
    @classmethod
    def _split_command_string(cls, value):
        # "make deploy" is shorthand for ["make", "deploy"]; quotes group words
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @property
    def label(self) -> str:
        """Picker label: name, else remote path."""
        return self.name or self.remote_path or "Unknown Site"

    @property
    def display_name(self) -> str:
        """Status bar label: name, else remote path."""
        return self.name or self.remote_path or "No Site"


class Config(_Frozen):
    """Behavioural toggles plus the site list, read once per operation."""

    auto_show_output: bool = False
    auto_hide_output: bool = False
    auto_show_output_on_error: bool = True
    notification: bool = False
    show_progress: bool = True
    use_wsl: bool = Field(default=False, alias="useWSL")

    on_file_save: bool = False
    on_file_save_individual: bool = False
    on_file_load_individual: bool = False

    watch_globs: tuple[str, ...] = ()
    sites: tuple[Site, ...] = ()
