"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (media types, suffixes, namespaces)
- exceptions: Custom exception hierarchy
- ingress: HTTP request parsing for the Functions entry points
- responses: HTTP response builders
"""
