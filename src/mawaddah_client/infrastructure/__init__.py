"""Infrastructure layer: HTTP transport and persisted local state.

Everything that talks to the network or the filesystem lives here so the domain
layer stays pure.
"""
