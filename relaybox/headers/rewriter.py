import logging
import re
from typing import Iterable, Iterator, Optional

from relaybox.errors import MalformedMessage


logger = logging.getLogger(__name__)


CRLF = b"\r\n"
LF = b"\n"

# RFC 5322 recommends lines of no more than 78 characters
MAX_LINE_LENGTH = 78

UNFOLD = re.compile(r"\r?\n(?=[ \t])")

# Printable ASCII other than the colon, optionally followed by stray whitespace
FIELD_NAME = re.compile(rb"[!-9;-~]+[ \t]*")


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def fold(text: str) -> list[str]:
    """
    Splits a `Name: value` line at spaces so that no line is longer than
    MAX_LINE_LENGTH where this can be helped. Continuation lines keep the
    space they were split on as their leading whitespace.
    """
    if len(text) <= MAX_LINE_LENGTH:
        return [text]

    lines = []
    current = None

    for word in text.split(" "):
        if current is None:
            current = word
        elif len(current) + 1 + len(word) > MAX_LINE_LENGTH and (lines or " " in current):
            lines.append(current)
            current = " " + word
        else:
            current = f"{current} {word}"

    lines.append(current)

    return lines


class HeaderField:
    """
    A single header field, kept as the raw lines it was read from.

    Lines that do not look like a field (no colon) are kept as opaque
    fields with no name so that they survive a rewrite untouched.
    """

    def __init__(self, lines: list[bytes]) -> None:
        self.lines = lines

        colon = lines[0].find(b":")
        if colon > 0 and FIELD_NAME.fullmatch(lines[0][:colon]):
            self.name = _decode(lines[0][:colon]).strip()
            self._colon = colon
        else:
            self.name = None
            self._colon = -1

    @classmethod
    def build(cls, name: str, value: str, eol: bytes) -> "HeaderField":
        lines = fold(f"{name}: {value}")
        return cls([_encode(line) + eol for line in lines])

    def matches(self, name: str) -> bool:
        return self.name is not None and self.name.lower() == name.lower()

    @property
    def raw_name(self) -> str:
        """
        The field name exactly as written, including any odd spacing.
        """
        return _decode(self.lines[0][:self._colon])

    @property
    def value(self) -> Optional[str]:
        """
        The unfolded value, with surrounding whitespace removed.
        """
        if self.name is None:
            return None

        raw_value = _decode(b"".join(self.lines)[self._colon + 1:])

        return UNFOLD.sub("", raw_value).strip()

    def as_bytes(self) -> bytes:
        return b"".join(self.lines)


class HeaderBlock:
    """
    The header block of a raw message, split into fields, plus the body.

    Only the fields that are explicitly removed or replaced change when the
    message is rebuilt. Every other field, and the body, is reproduced byte
    for byte.
    """

    def __init__(self, fields: list[HeaderField], body: bytes, eol: bytes = CRLF) -> None:
        self.fields = fields
        self.body = body
        self.eol = eol

    @classmethod
    def parse(cls, raw: bytes) -> "HeaderBlock":
        """
        Splits the message at the first blank line.

        The body keeps the blank line itself, so that `as_bytes` is the exact
        inverse of `parse` when nothing has been changed.
        """
        fields: list[HeaderField] = []
        eol = None
        position = 0

        while True:
            end = raw.find(LF, position)

            if end == -1:
                raise MalformedMessage("Malformed message: no separator between headers and body")

            line = raw[position:end + 1]

            if eol is None:
                eol = CRLF if line.endswith(CRLF) else LF

            if line in (LF, CRLF):
                break

            if line[:1] in (b" ", b"\t") and fields:
                fields[-1].lines.append(line)
            else:
                fields.append(HeaderField([line]))

            position = end + 1

        return cls(fields, raw[position:], eol)

    def get(self, name: str) -> Optional[str]:
        """
        Returns the value of the first field called `name`, if any.
        """
        return next((field.value for field in self.fields if field.matches(name)), None)

    def get_all(self, name: str) -> list[str]:
        return [field.value for field in self.fields if field.matches(name)]

    def items(self) -> Iterator[tuple[str, str]]:
        for field in self.fields:
            if field.name is not None:
                yield (field.name, field.value)

    def remove(self, names: Iterable[str]) -> int:
        """
        Removes every field whose name matches one of `names`, ignoring case.

        Returns the number of fields removed. Removing a header that does not
        exist is not an error.
        """
        lowered = {name.lower() for name in names}

        kept = [
            field for field in self.fields
            if field.name is None or field.name.lower() not in lowered
        ]
        removed = len(self.fields) - len(kept)
        self.fields = kept

        logger.debug("Removed %(count)d header(s) matching %(names)s", {
            "count": removed,
            "names": ", ".join(sorted(lowered)),
        })

        return removed

    def upsert(self, name: str, value: str) -> None:
        """
        Sets the value of the named header.

        The first existing field is replaced in place (keeping its original
        spelling of the name) and any later duplicates are dropped. If there
        is no such field a new one is added at the end of the header block.
        """
        updated = []
        replaced = False

        for field in self.fields:
            if not field.matches(name):
                updated.append(field)
            elif not replaced:
                updated.append(HeaderField.build(field.raw_name, value, self.eol))
                replaced = True

        if not replaced:
            updated.append(HeaderField.build(name, value, self.eol))

        self.fields = updated

    def as_bytes(self) -> bytes:
        return b"".join(field.as_bytes() for field in self.fields) + self.body


def remove_headers(raw: bytes, names: Iterable[str]) -> bytes:
    block = HeaderBlock.parse(raw)
    block.remove(names)
    return block.as_bytes()


def update_header(raw: bytes, name: str, value: str) -> bytes:
    block = HeaderBlock.parse(raw)
    block.upsert(name, value)
    return block.as_bytes()
