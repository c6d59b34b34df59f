"""payload-tools: map CSV rows onto nested JSON payload templates."""

__version__ = "0.1.0"
