"""Museum docent: narrated tours, AI docent chat and the quiz mission."""
