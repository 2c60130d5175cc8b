"""ctoldup — keep a working copy of a remote source tree in sync and fan it out."""

__version__ = "0.1.0"
