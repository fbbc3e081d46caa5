"""PostgreSQL storage for the holdings ledger.

Notes
- We avoid logging connection URLs to prevent accidental secret leakage.
- Connectivity failures surface as `StoreUnavailableError`.
"""

from .config import PostgresConfig
from .stores import PostgresHoldingsStore
