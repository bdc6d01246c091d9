import pytest

from relaybox.errors import MalformedMessage
from relaybox.headers import HeaderBlock, remove_headers, update_header
from relaybox.headers.rewriter import MAX_LINE_LENGTH, fold
from tests.mocks.store import load_fixture

plain = load_fixture("plain.eml")
multipart = load_fixture("multipart.eml")


class TestHeaderBlockParsing:
    def test_it_round_trips_untouched_messages(self):
        assert HeaderBlock.parse(plain).as_bytes() == plain
        assert HeaderBlock.parse(multipart).as_bytes() == multipart

    def test_it_splits_at_the_first_blank_line(self):
        block = HeaderBlock.parse(plain)

        assert block.body.startswith(b"\r\nHi Carol,")
        # The body mentions Bcc but it is not a header
        assert block.get_all("Bcc") == ["secret@example.com"]

    def test_it_detects_the_line_ending(self):
        assert HeaderBlock.parse(plain).eol == b"\r\n"
        assert HeaderBlock.parse(multipart).eol == b"\n"

    def test_it_unfolds_values(self):
        block = HeaderBlock.parse(plain)

        assert block.get("received") == (
            "from mx.example.com (mx.example.com [192.0.2.1])"
            "\tby capture.local with ESMTP id 4f2a; Mon, 1 Jan 2024 10:00:00 +0000"
        )

    def test_it_returns_none_for_missing_headers(self):
        assert HeaderBlock.parse(plain).get("Sender") is None

    def test_it_lists_items_in_order(self):
        names = [name for (name, _value) in HeaderBlock.parse(multipart).items()]

        assert names == ["From", "Sender", "To", "BCC", "Subject", "Message-Id", "MIME-Version", "Content-Type"]

    def test_it_rejects_messages_without_a_separator(self):
        with pytest.raises(MalformedMessage):
            HeaderBlock.parse(b"From: alice@example.com\r\nSubject: no body")

        with pytest.raises(MalformedMessage):
            HeaderBlock.parse(b"From: alice@example.com\r\n")

    def test_it_keeps_lines_that_are_not_fields(self):
        raw = b"From alice@example.com Mon Jan  1 10:00:00 2024\nFrom: alice@example.com\n\nbody\n"
        block = HeaderBlock.parse(raw)

        assert block.fields[0].name is None
        assert block.get("From") == "alice@example.com"
        assert block.as_bytes() == raw


class TestRemove:
    def test_it_removes_every_occurrence_ignoring_case(self):
        raw = b"Bcc: a@example.com\r\nTo: b@example.com\r\nbcc: c@example.com\r\n\r\nbody"

        assert remove_headers(raw, ["BCC"]) == b"To: b@example.com\r\n\r\nbody"

    def test_it_removes_folded_fields_entirely(self):
        result = remove_headers(multipart, ["Bcc"])

        assert b"hidden-one" not in result
        assert b"hidden-two" not in result
        assert result == multipart.replace(b"BCC: hidden-one@example.org,\n hidden-two@example.org\n", b"")

    def test_removing_a_missing_header_is_a_no_op(self):
        block = HeaderBlock.parse(plain)

        assert block.remove(["X-Not-There"]) == 0
        assert block.as_bytes() == plain

    def test_it_never_touches_the_body(self):
        result = remove_headers(plain, ["Bcc"])

        assert result.endswith(b"\r\nBcc: this line is part of the body.\r\n")


class TestUpsert:
    def test_it_replaces_the_first_occurrence_in_place(self):
        result = update_header(plain, "Message-Id", "<new@relaybox>")

        assert result == plain.replace(b"<original-4f2a@example.com>", b"<new@relaybox>")

    def test_it_drops_later_duplicates(self):
        raw = b"Date: one\nTo: b@example.com\nDATE: two\n\nbody"

        assert update_header(raw, "date", "three") == b"Date: three\nTo: b@example.com\n\nbody"

    def test_it_appends_missing_headers_before_the_body(self):
        raw = b"From: a@example.com\r\nTo: b@example.com\r\n\r\nbody"

        result = update_header(raw, "Date", "Tue, 2 Jan 2024 10:00:00 +0000")

        assert result == (
            b"From: a@example.com\r\nTo: b@example.com\r\n"
            b"Date: Tue, 2 Jan 2024 10:00:00 +0000\r\n\r\nbody"
        )

    def test_it_uses_the_line_ending_of_the_message(self):
        result = update_header(multipart, "Date", "Tue, 2 Jan 2024 10:00:00 +0000")

        assert b"\nDate: Tue, 2 Jan 2024 10:00:00 +0000\n\n--b1" in result
        assert b"\r" not in result

    def test_it_leaves_other_fields_byte_identical(self):
        result = update_header(plain, "Subject", "Replaced")
        original_lines = plain.split(b"\r\n")
        result_lines = result.split(b"\r\n")

        assert len(original_lines) == len(result_lines)
        for original, updated in zip(original_lines, result_lines):
            if original.startswith(b"Subject:"):
                assert updated == b"Subject: Replaced"
            else:
                assert updated == original

    def test_it_folds_long_values(self):
        value = " ".join(f"<reference-{n}@example.com>" for n in range(10))

        block = HeaderBlock.parse(update_header(plain, "References", value))
        field = block.fields[-1]

        assert len(field.lines) > 1
        assert all(len(line.rstrip(b"\r\n")) <= MAX_LINE_LENGTH for line in field.lines)
        assert all(line.startswith(b" ") for line in field.lines[1:])
        assert block.get("References") == value
        assert block.body == HeaderBlock.parse(plain).body


class TestFold:
    def test_short_lines_are_untouched(self):
        assert fold("Date: Tue, 2 Jan 2024 10:00:00 +0000") == ["Date: Tue, 2 Jan 2024 10:00:00 +0000"]

    def test_a_single_long_word_is_left_alone(self):
        text = "X-Token: " + "a" * 100

        assert fold(text) == [text]
