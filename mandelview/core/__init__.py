"""Numerical core: complex numbers, camera, divergence engine and sample grid."""
