"""Infrastructure layer: site discovery, filesystem I/O, post index.

This layer depends on stdlib and third-party libs (SQLAlchemy, Jinja2).
It must never import from services, commands, or output.
"""
