"""Version resolvers for different module registry kinds."""

from .base import VersionResolver
from .facade import VersionResolverFacade
from .okapi import OkapiVersionResolver
from .s3 import S3VersionResolver
from .simple import SimpleVersionResolver

__all__ = [
    "VersionResolver",
    "VersionResolverFacade",
    "OkapiVersionResolver",
    "S3VersionResolver",
    "SimpleVersionResolver",
]
