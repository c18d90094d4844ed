"""Domain layer - pure business entities and rules.

Nothing here imports from the application, infrastructure or bootstrap
layers.
"""
