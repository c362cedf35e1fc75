"""
Viewer Service package for the ladder viewer.

Builds a per-channel "viewer" profile collection out of the StarCraft II
community API and serves it through a read-through Redis cache.

- app.main: API surface (viewer data, channel config, health, metrics).
- app.domain: Output models, upstream decode schemas and transforms.
- app.adapters: Battle.net community API client.
- app.ratelimit: Pacing and token-bucket limiting of upstream calls.
- app.assembly: Per-profile assembly and concurrent batch aggregation.
- app.caching: Redis cache gateway and payload codec.
- app.viewer: Read-through entry point used by the routes.
- app.persistence: PostgreSQL storage of channel profile lists.
"""
