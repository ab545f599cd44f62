"""Module descriptor loaders for different module registry kinds."""

from .base import ModuleDescriptorLoader
from .facade import ModuleDescriptorLoaderFacade
from .okapi import OkapiDescriptorLoader
from .s3 import S3DescriptorLoader
from .simple import SimpleDescriptorLoader

__all__ = [
    "ModuleDescriptorLoader",
    "ModuleDescriptorLoaderFacade",
    "OkapiDescriptorLoader",
    "S3DescriptorLoader",
    "SimpleDescriptorLoader",
]
