"""
snapp command line.

Entry point: ``snapp`` (see ``[project.scripts]``)::

    snapp build demo.xml --os lin64 --resolution 1024x768
    snapp inspect Demo.zip
    snapp serve --port 12010
"""

from snapp.cli.app import app

__all__ = ["app"]
