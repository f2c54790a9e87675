"""COT positioning tracker: fetch latest CFTC reports and reconcile them into per-market series."""

__version__ = "0.1.0"
