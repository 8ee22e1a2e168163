"""route53-ip-update — keep Route 53 hostnames pointed at this machine.

Import :func:`update_all_zones` with a :class:`Route53` client to drive
updates from your own code::

    from ipupdate import Route53, update_all_zones
    from ipupdate.base.config import AWSConfig

    results = await update_all_zones(Route53(AWSConfig()), zones, desired)
"""

__version__ = "0.2.0"

from .aws import Route53
from .base import ZoneAPIBlueprint
from .diff import diff_hostname, resolve_ttl
from .update import update_all_zones, update_zone

__all__ = [
    "__version__",
    "Route53",
    "ZoneAPIBlueprint",
    "diff_hostname",
    "resolve_ttl",
    "update_all_zones",
    "update_zone",
]
