"""Shared fixtures for CMDB tests."""

from .cmdb import CMDBSandbox, create_cmdb_sandbox

__all__ = ["CMDBSandbox", "create_cmdb_sandbox"]
