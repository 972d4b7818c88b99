"""Upstream feed adapters: aviation, nws, openweathermap, nhc."""
