"""Rule contract, registry and report models."""
