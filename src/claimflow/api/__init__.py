"""HTTP transport for the claim lifecycle service."""
