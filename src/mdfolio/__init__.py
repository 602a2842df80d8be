"""Content toolchain for a Markdown blog and portfolio"""

__version__ = "0.1.0"
