"""docs2llms: bundle documentation files into an llms.txt index and a full-content dump."""

__version__ = "0.3.0"
