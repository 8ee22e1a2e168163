"""AWS provider implementations."""

from .route53 import Route53

__all__ = [
    "Route53",
]
