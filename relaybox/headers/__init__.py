from .rewriter import HeaderBlock, HeaderField, remove_headers, update_header

__all__ = [
    "HeaderBlock",
    "HeaderField",
    "remove_headers",
    "update_header",
]
