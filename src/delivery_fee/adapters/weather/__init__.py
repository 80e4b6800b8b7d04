from .base import WeatherFeedAdapter, WeatherFeedError
from .ilmateenistus import IlmateenistusWeatherAdapter

__all__ = ["IlmateenistusWeatherAdapter", "WeatherFeedAdapter", "WeatherFeedError"]
