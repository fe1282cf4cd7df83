"""
BAMS: tamper-evident attendance ledger for a department/class/student tree.
"""

from .config import AnchorMode, BamsConfig, load_config

__version__ = "0.1.0"

__all__ = ["AnchorMode", "BamsConfig", "load_config", "__version__"]
