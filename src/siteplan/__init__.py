"""siteplan — plan reverse-proxy routes, supervisor programs and TLS requests."""

__version__ = "0.1.0"
