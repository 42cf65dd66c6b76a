"""Domain layer: front matter, filenames, permalinks, and references.

This layer depends only on stdlib, pydantic, and ruamel.yaml.
It must never import from services, infrastructure, commands, or config.
"""
