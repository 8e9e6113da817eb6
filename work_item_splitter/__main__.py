"""
Entry point for ``python -m work_item_splitter``.
"""

from .cli import app

if __name__ == "__main__":
    app()
