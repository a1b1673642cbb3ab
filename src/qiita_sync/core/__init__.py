"""HTTP access to the Qiita API."""

from .client import QiitaClient, build_item_body

__all__ = ["QiitaClient", "build_item_body"]
