"""Order management backend for the flower shop storefront."""
