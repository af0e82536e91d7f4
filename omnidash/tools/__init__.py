"""
Command-line tools for OmniDash.

- snapshot_cli: Inspect and edit the local snapshot cache
"""
