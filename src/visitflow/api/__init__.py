"""HTTP surface for the start-visit workflow."""
