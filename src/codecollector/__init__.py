"""
codecollector - copy a project's source files to the clipboard.

Walks a directory tree, keeps files matching an optional extension filter,
and places their contents, each under a comment header naming its relative
path, on the system clipboard while printing a tree of what was copied.
"""

__version__ = "0.1.0"
