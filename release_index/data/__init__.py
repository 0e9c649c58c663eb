"""
In-memory index of releases.

This package is responsible for:
* Merging and de-duplicating the versions of all sources.
* Building the per-platform and ordering indices.
* Publishing complete snapshots so readers never see a half-built index.
"""
