from .address import parse_address, parse_address_list

__all__ = [
    "parse_address",
    "parse_address_list",
]
