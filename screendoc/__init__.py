"""
Screendoc - turns an application screenshot into an interactive HTML guide.

A multi-stage pipeline of model calls (analysis, content, build, validation)
produces a documentation package that is zipped, recorded in the history
store and can be previewed through a short-lived per-job file server.
"""

__version__ = "0.1.0"
