"""debslice - cut minimal filesystems out of Debian packages."""

__version__ = "0.1.0"
