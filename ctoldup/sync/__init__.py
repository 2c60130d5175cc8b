"""Synchronization pipeline — detect new revisions and fan the tree out.

This package provides:
- Update detection: compare the fetched revision against the checkpoint
- Mirroring: make a destination directory match the working copy
- Rosters: YAML manifests of what a merge destination holds
- Archiving: zip a source tree into a templated archive path
- The orchestrator that sequences a run from start to finish
"""
