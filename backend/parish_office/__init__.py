"""Parish office back end: sacrament registry, service requests and certificates."""

__version__ = "0.3.0"
