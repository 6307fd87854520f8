"""HTTP API exposing the matcher and the price aggregator."""
