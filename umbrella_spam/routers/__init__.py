"""HTTP routers for the scoring service."""
