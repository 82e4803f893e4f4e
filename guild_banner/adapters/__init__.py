"""Adapters layer for the guild banner service.

Translates between the core domain and external systems (TibiaData, Firebot,
the filesystem, HTTP, metrics exporters).
"""
