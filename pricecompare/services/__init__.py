"""Business logic services.

Available Services:
    - matching: Local catalog matching and catalog growth
    - aggregation: Multi-source price aggregation and list comparison
    - external: Kroger, Walmart (SerpApi) and Open Food Facts clients
"""
