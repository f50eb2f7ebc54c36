"""mdpreview exception hierarchy.

Keep this module small and dependency-free: it is imported by the CLI, config
and watch layers. The renderer itself never raises.
"""


class MdPreviewError(Exception):
    """Base exception for all mdpreview errors."""


class MdPreviewConfigError(MdPreviewError):
    """Raised for invalid user configuration."""


class MdPreviewIOError(MdPreviewError):
    """Raised when a source document cannot be read or output cannot be written."""
