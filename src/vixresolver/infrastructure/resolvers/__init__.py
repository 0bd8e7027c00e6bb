from .chain import ResolverChain, select_mode
from .generic import GenericFrameResolver
from .host_token import HostTokenResolver
from .native import NativeTokenResolver

__all__ = [
    "GenericFrameResolver",
    "HostTokenResolver",
    "NativeTokenResolver",
    "ResolverChain",
    "select_mode",
]
