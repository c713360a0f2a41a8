"""Execute CenturyLink Cloud packages on existing servers."""

__version__ = "0.1.0"
