"""LFG cycling app backend: accounts, Strava integration and route import."""
