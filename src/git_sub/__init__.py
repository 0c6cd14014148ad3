"""git-sub - one view over a repository and all of its submodules."""

__version__ = "0.1.0"
