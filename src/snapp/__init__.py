"""
snapp-builder - package visual-programming projects into self-contained
desktop executables for macOS, Linux and Windows.

- snapp.core: errors, logging, settings
- snapp.packaging: the two-stage packaging pipeline
- snapp.api: FastAPI transport
- snapp.cli: Typer command line
"""

__version__ = "0.1.0"
