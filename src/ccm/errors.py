"""
Exceptions raised by ccm.

All exceptions inherit from CcmError so the CLI can report them in one place.
"""


class CcmError(Exception):
    """Base exception for all ccm errors."""
    pass


class ProfileNotFound(CcmError):
    """A named profile has no file in the profiles directory."""

    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' does not exist")
        self.name = name


class ProfileAlreadyExists(CcmError):
    """Creating or renaming onto a name that is already taken."""

    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' already exists")
        self.name = name


class ActiveProfileError(CcmError):
    """Attempt to remove the profile the current pointer names."""

    def __init__(self, name: str, scope: str = "global"):
        super().__init__(
            f"Cannot remove profile '{name}' because it is currently active ({scope}). "
            "Switch to a different profile first."
        )
        self.name = name
        self.scope = scope


class InvalidProfileName(CcmError):
    """Name cannot be used as a profile file stem."""
    pass


class InvalidProfile(CcmError):
    """Profile content is missing a required key."""
    pass


class MalformedProfile(CcmError):
    """JSON could not be parsed or lacks the expected structure."""

    def __init__(self, path, reason: str):
        super().__init__(f"Malformed file {path}: {reason}")
        self.path = path


class SettingsNotFound(CcmError):
    """The live settings file does not exist."""

    def __init__(self, path):
        super().__init__(f"No Claude settings found at {path}")
        self.path = path


class StorageError(CcmError):
    """Filesystem failure while reading or writing a file."""

    def __init__(self, action: str, path, cause: OSError):
        super().__init__(f"Failed {action} {path}: {cause}")
        self.path = path
        self.cause = cause


class CancelledByUser(CcmError):
    """The user chose to cancel a switch. Nothing was written."""
    pass
