"""Smartlead campaign reporting package.

This package provides the data-acquisition and export core of the Smartlead
reporting dashboard: a rate-limited, cached client for the Smartlead API and
a batch export pipeline that assembles multi-sheet campaign workbooks.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"
