"""HTTP API over the repository facade."""
