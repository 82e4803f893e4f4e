"""Application layer for the guild banner service.

Use cases: data aggregation, layout planning, composition and the render
entry points built on them.
"""
