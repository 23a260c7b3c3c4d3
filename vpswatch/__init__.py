"""vpswatch - site availability and host liveness monitoring."""

__version__ = "1.0.0"
