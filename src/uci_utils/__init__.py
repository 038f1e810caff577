"""Configuration and logging helpers for PipeFish.

Nothing is re-exported here; use the submodules, e.g.
``uci_utils.config_loader.load_config``.
"""
