"""Pipeline phases: query derivation, context, generation, reconciliation, expansion."""
