"""Invoice type metadata referenced by customers."""
