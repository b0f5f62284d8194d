"""Batched and parallel execution of the divergence phase."""
