"""Exception hierarchy

All of these are recovered at the session or command boundary; none escape a
public command.
"""


class SyncError(Exception):
    """Base class for sync failures."""

    @property
    def user_message(self) -> str:
        """Text shown to the user."""
        return str(self)


class ConfigurationError(SyncError):
    """No site selected, no sites configured, or a required path is missing."""


class HookFailure(SyncError):
    """A pre/post hook command exited non-zero."""

    def __init__(self, tag: str, code: int):
        super().__init__(f"{tag} returned {code}")
        self.tag = tag
        self.code = code


class TransferFailure(SyncError):
    """The transfer tool exited non-zero or could not be spawned."""

    def __init__(self, code: int):
        super().__init__(f"rsync returned {code}")
        self.code = code


class SettingsError(ConfigurationError):
    """The settings file could not be read or validated."""
