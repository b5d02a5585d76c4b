"""Exception taxonomy for unidb.

All of these are recovered at the boundary of a single tool call and turned
into a failed ToolResult. None of them is fatal to the process.
"""


class UnidbError(Exception):
    """Base exception for unidb."""


class NotConnectedError(UnidbError):
    """A tool was called for a backend that has no open handle."""


class ConnectionFailedError(UnidbError):
    """Opening or verifying a backend connection failed."""


class MaterializationError(UnidbError):
    """Column metadata or a row could not be read from a cursor."""


class IterationError(UnidbError):
    """The cursor reported an error after all result sets were walked."""


class CommandParseError(UnidbError):
    """A raw key-value command string could not be tokenized."""


class EmptyCommandError(CommandParseError):
    def __init__(self) -> None:
        super().__init__("empty command")


class InvalidArgumentError(UnidbError):
    """A tool argument had the wrong shape or value."""


class ToolExecutionError(UnidbError):
    """A tool call failed; raised at the protocol boundary to mark the reply as an error."""
