"""Infrastructure layer — manifest input, template loading, file output.

This layer may import domain types and config models.
It must never import from services, commands, or output.
"""
