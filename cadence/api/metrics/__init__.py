"""On-demand metrics resources."""
