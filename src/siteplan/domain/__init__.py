"""Domain layer — descriptors, validation rules, and the route resolver.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
