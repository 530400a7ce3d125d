"""toolboxer: a directory-tree printer and a port/process ownership inspector."""

__version__ = "0.1.0"
