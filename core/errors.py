"""Exceptions raised by workspace operations."""


class WorkspaceError(Exception):
    """Base class for every error the workspace reports to a caller."""


class CodeParseError(WorkspaceError, ValueError):
    """Generated code could not be turned into a file tree."""


class PathNotFoundError(WorkspaceError, KeyError):
    def __str__(self):
        return f"No such path: {self.args[0]}" if self.args else "No such path"


class PathExistsError(WorkspaceError):
    pass


class NotAFolderError(WorkspaceError):
    pass


class TypingInProgressError(WorkspaceError):
    """Manual edits are refused while generated code is still being revealed."""


class DiagramRenderError(WorkspaceError):
    pass


class InvalidConfigError(WorkspaceError, ValueError):
    pass
