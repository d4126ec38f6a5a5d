"""Service layer helpers"""

from .erc1155 import ERC1155Service, get_erc1155_service

__all__ = [
    "ERC1155Service",
    "get_erc1155_service",
]
