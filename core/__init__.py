"""Core domain modules.

- assets: the fixed catalog of tradable asset ids
- persistence: holdings/price boundaries (interfaces)
- storage: PostgreSQL and in-memory holdings stores
- market_data: CoinGecko price client
- portfolio: valuation of holdings against current prices
- errors: error taxonomy shared by all of the above
"""
