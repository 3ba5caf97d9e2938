"""wc-deploy: WooCommerce.com deployment monitoring."""

__version__ = "0.3.0"
