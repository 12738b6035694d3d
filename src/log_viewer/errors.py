"""Error taxonomy for the viewer.

None of these are fatal: each is recovered where it is raised and the worst
outcome is that state did not update for one cycle.
"""


class ViewerError(Exception):
    """Base class for recoverable viewer errors."""


class DecodeError(ViewerError):
    """A stream payload could not be decoded into a LogEvent."""


class TransportError(ViewerError):
    """The event stream connection dropped or could not be opened."""


class PollError(ViewerError):
    """A metrics snapshot could not be fetched or parsed."""
