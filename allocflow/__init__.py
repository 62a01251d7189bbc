"""AllocFlow: bulk teacher import tooling for the allocation system backend."""

__version__ = "0.1.0"
