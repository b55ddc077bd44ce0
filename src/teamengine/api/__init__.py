"""HTTP surface for the team engine."""
