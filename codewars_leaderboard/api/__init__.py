"""Flask web app serving the leaderboard page and JSON endpoints."""
