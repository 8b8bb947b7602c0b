"""csvedit: display, paginate, and edit comma-delimited text files."""

__version__ = "0.1.0"
