"""examtrack command-line interface."""
