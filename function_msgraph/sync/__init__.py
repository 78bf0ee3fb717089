"""Keeping targets in sync with Graph.

This package provides the primitives for:
- Skip policy: when an already-populated target may skip its query
- Drift detection: whether a fresh result differs from the recorded one
- Operations: the watched-resource invocation shape and its annotations
"""
