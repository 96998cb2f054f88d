"""Cue sheet and track geometry errors."""


class CueError(Exception):
    """Base class for cue sheet processing errors."""
    pass


class CueFormatError(CueError):
    """Malformed timestamp or statement that cannot be interpreted."""
    pass


class CueStructureError(CueError):
    """Cue sheet parsed but yields no usable FILE/TRACK structure."""
    pass


class InvalidOperationError(CueError):
    """Operation used with a parse that violates its precondition."""
    pass


class CueIntegrityError(CueError):
    """
    Geometry does not add up for the data on disk.

    Raised for sizes that do not divide evenly by the sector size or for
    track lengths that would come out negative. Indicates a corrupt or
    non-standard dump rather than a missing file.
    """
    pass


class BinFilesMissingError(CueError):
    """One or more bin files referenced by a cue sheet are missing on disk."""
    pass
