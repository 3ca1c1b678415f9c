"""HTTP routes and error mapping."""
