"""Asset catalog."""

from .catalog import DEFAULT_ASSETS, AssetCatalog, catalog_from_env, default_catalog

__all__ = ["DEFAULT_ASSETS", "AssetCatalog", "catalog_from_env", "default_catalog"]
