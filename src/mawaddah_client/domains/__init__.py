"""Domain layer (validation, diffing, normalization, error kinds).

Domain modules should not perform IO. Network access and persistence are
injected into the stores instead.
"""
