"""Transfer argument builder

Builds the argv for the rsync-compatible transfer tool from a declarative
option set. Options are ``(name, *values)`` tuples applied through a closed
vocabulary; unknown names are rejected when the settings are loaded
(``validate_option``), never while building.

Argument order (some rsync flags are position-sensitive):
    dry-run, extra options, flag bundle, progress, includes, excludes,
    --rsh, --delete, --chmod, site args, source, destination
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .session.types import SyncDirection

if TYPE_CHECKING:
    from .settings.models import Site

# Long options the builder accepts in a site's "options" list.
KNOWN_LONG_OPTIONS = frozenset({
    "append", "append-verify", "archive", "backup", "backup-dir", "bwlimit",
    "checksum", "chmod", "chown", "compress", "compress-level", "copy-dirlinks",
    "copy-links", "copy-unsafe-links", "cvs-exclude", "delay-updates", "delete",
    "delete-after", "delete-before", "delete-delay", "delete-during",
    "delete-excluded", "devices", "dirs", "dry-run", "exclude", "exclude-from",
    "executability", "existing", "files-from", "filter", "force", "group",
    "hard-links", "human-readable", "ignore-errors", "ignore-existing",
    "ignore-times", "include", "include-from", "inplace", "itemize-changes",
    "keep-dirlinks", "link-dest", "links", "list-only", "log-file",
    "log-file-format", "max-delete", "max-size", "min-size", "modify-window",
    "no-implied-dirs", "no-motd", "numeric-ids", "omit-dir-times",
    "omit-link-times", "out-format", "owner", "partial", "partial-dir",
    "password-file", "perms", "port", "progress", "protect-args", "prune-empty-dirs",
    "recursive", "relative", "remove-source-files", "rsh", "rsync-path",
    "safe-links", "size-only", "sparse", "specials", "stats", "suffix",
    "temp-dir", "timeout", "times", "update", "usermap", "groupmap", "verbose",
    "whole-file", "xattrs", "acls",
})


def validate_option(option: Sequence[object]) -> tuple[str, ...]:
    """Normalize one configured option to a ``(name, *values)`` tuple.

    Single-letter names are rsync short options and always accepted.

    Raises:
        ValueError: empty option or unknown name
    """
    if not option:
        raise ValueError("option must contain at least a name")
    name = str(option[0]).lstrip("-")
    if len(name) != 1 and name not in KNOWN_LONG_OPTIONS:
        raise ValueError(f"unknown rsync option: {name!r}")
    return (name, *(str(v) for v in option[1:]))


@dataclass
class RsyncCommand:
    """Ordered argument accumulator for one transfer invocation."""

    _args: list[str] = field(default_factory=list)
    dry_run: bool = False

    def set(self, name: str, *values: str) -> "RsyncCommand":
        """Apply one option.

        ``-x`` / ``--name`` with no value; one ``--name=value`` per value
        otherwise (short options take the value as the next argument).
        """
        if len(name) == 1:
            if not values:
                self._args.append(f"-{name}")
            for value in values:
                self._args.extend([f"-{name}", value])
        elif not values:
            self._args.append(f"--{name}")
        else:
            self._args.extend(f"--{name}={value}" for value in values)
        return self

    def dry(self) -> "RsyncCommand":
        self.dry_run = True
        return self.set("n")

    def flags(self, flags: str) -> "RsyncCommand":
        if flags:
            self._args.append(f"-{flags.lstrip('-')}")
        return self

    def progress(self) -> "RsyncCommand":
        return self.set("progress")

    def include(self, patterns: Iterable[str]) -> "RsyncCommand":
        return self.set("include", *patterns)

    def exclude(self, patterns: Iterable[str]) -> "RsyncCommand":
        return self.set("exclude", *patterns)

    def shell(self, shell: str) -> "RsyncCommand":
        return self.set("rsh", shell)

    def delete(self) -> "RsyncCommand":
        return self.set("delete")

    def chmod(self, spec: str) -> "RsyncCommand":
        return self.set("chmod", spec)

    def args(self) -> list[str]:
        return list(self._args)


def _apply_site_transfer_options(rsync: RsyncCommand, site: "Site", show_progress: bool) -> None:
    rsync.flags(site.flags)
    if show_progress:
        rsync.progress()
    if site.include:
        rsync.include(site.include)
    if site.exclude:
        rsync.exclude(site.exclude)
    if site.shell:
        rsync.shell(site.shell)
    if site.delete_files:
        rsync.delete()
    if site.chmod:
        rsync.chmod(site.chmod)


def ordered_paths(direction: SyncDirection, local: str, remote: str) -> list[str]:
    """Source then destination for a direction."""
    if direction is SyncDirection.DOWN:
        return [remote, local]
    return [local, remote]


def join_site_path(base: str, relative: str) -> str:
    """Append a workspace-relative file path to a site root."""
    relative = relative.lstrip("/")
    if base.endswith("/"):
        return base + relative
    return f"{base}/{relative}"


def build_site_args(
    site: "Site",
    direction: SyncDirection,
    *,
    dry_run: bool = False,
    show_progress: bool = False,
) -> list[str]:
    """Full argv (without the executable) for a full-site transfer.

    Args:
        site: Site whose paths and transfer parameters are used
        direction: Up (local→remote) or down (remote→local)
        dry_run: Compare only
        show_progress: Config-level progress toggle

    Returns:
        Builder args + site args + [source, destination]
    """
    rsync = RsyncCommand()
    if dry_run:
        rsync.dry()
    for name, *values in site.options:
        rsync.set(name, *values)
    _apply_site_transfer_options(rsync, site, show_progress)

    paths = ordered_paths(direction, site.local_path or "", site.remote_path or "")
    return rsync.args() + list(site.args) + paths


def build_file_args(
    site: "Site",
    direction: SyncDirection,
    relative_path: str,
    *,
    show_progress: bool = False,
) -> list[str]:
    """Argv for a single-file transfer.

    Same transfer parameters as a full sync, without dry-run or extra options;
    both site roots are extended with ``relative_path``.
    """
    rsync = RsyncCommand()
    _apply_site_transfer_options(rsync, site, show_progress)

    paths = ordered_paths(
        direction,
        join_site_path(site.local_path or "", relative_path),
        join_site_path(site.remote_path or "", relative_path),
    )
    return rsync.args() + list(site.args) + paths
