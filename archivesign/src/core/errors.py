from typing import Optional, Sequence


class ArchiveSignError(Exception):
    """Base class for every failure raised by a signing pipeline stage"""


class ExtractionError(ArchiveSignError):
    """Archive could not be read or the workspace could not be created"""


class LocatorError(ArchiveSignError):
    """Searching the workspace for bundles failed"""


class NoBundlesFound(ArchiveSignError):
    """The workspace holds no bundle of the requested kind"""


class ToolInvocationError(ArchiveSignError):
    """An external tool could not be spawned or exited with an error"""

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class UnexpectedToolOutput(ArchiveSignError):
    """A successful export report did not have the expected shape"""


class NoMatchingIdentity(ArchiveSignError):
    """No valid code-signing identity matches the bundle's current signer"""


class PackagingError(ArchiveSignError):
    """The delivery archive could not be written"""


class ResolutionError(ArchiveSignError):
    """The valid code-signing identities could not be queried"""


class KeychainError(ArchiveSignError):
    """A credential could not be read from the keychain"""


class ConfigError(ArchiveSignError):
    """The configuration file could not be loaded"""


class SigningFailed(ArchiveSignError):
    """An xcarchive pipeline run failed; the cause is only in the log"""
