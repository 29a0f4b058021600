"""Contract compilation: provenance, assembly, linting, breaking-change gates and watch mode."""
