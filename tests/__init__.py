"""Test package for markercluster.

This package contains:
- Geometry and projection tests (test_bounds.py, test_projection.py)
- Cluster and engine tests (test_cluster.py, test_clusterer.py)
- Configuration tests (test_config.py)
- Rendering adapter tests (test_overlay.py)
- Shared fixtures (conftest.py)
"""
