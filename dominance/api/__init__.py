from .client import LeagueDataProvider, RateLimiter, SleeperClient, client_from_env

__all__ = ["LeagueDataProvider", "RateLimiter", "SleeperClient", "client_from_env"]
