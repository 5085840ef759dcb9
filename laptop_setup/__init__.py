"""laptop-setup — certify and install the developer toolchain on a laptop."""

__version__ = "0.1.0"
