"""Tree transformations applied by the optimization pipeline."""
