"""HTTP service for the museum docent."""
