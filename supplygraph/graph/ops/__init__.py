"""Graph operations grouped by node family."""
