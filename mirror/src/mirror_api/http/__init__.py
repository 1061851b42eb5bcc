"""HTTP helpers shared by the API implementations."""
