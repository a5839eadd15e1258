"""HTTP interface for PageLens."""
