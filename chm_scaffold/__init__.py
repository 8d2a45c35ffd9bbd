"""CHM plugin scaffold: create, build and package CHM plugin crates."""

__version__ = "0.1.0"
