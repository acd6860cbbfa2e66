"""Tests for typed tag values and the immutable ExifDocument."""

import math

import pytest

from photosafe import tags
from photosafe.document import (
    ArrayOf, Ascii, Byte, ExifDocument, Long, Rational, Short, SignedLong,
    SignedRational, Undefined,
)
from photosafe.tags import TagGroup

from tests.conftest import privacy_document


class TestValueValidity:
    def test_ascii(self):
        assert Ascii('Canon').is_valid()
        assert Ascii('').is_valid()
        assert not Ascii(None).is_valid()

    @pytest.mark.parametrize('value,ok', [
        (0, True), (65535, True), (65536, False), (-1, False),
        (True, False), (1.0, False), (float('nan'), False),
    ])
    def test_short_range(self, value, ok):
        assert Short(value).is_valid() is ok

    def test_long_range(self):
        assert Long(0xFFFFFFFF).is_valid()
        assert not Long(0x100000000).is_valid()

    def test_signed_long_range(self):
        assert SignedLong(-0x80000000).is_valid()
        assert not SignedLong(0x80000000).is_valid()

    def test_rational_zero_denominator_invalid(self):
        assert Rational(72, 1).is_valid()
        assert not Rational(72, 0).is_valid()

    def test_rational_non_integer_invalid(self):
        assert not Rational(math.inf, 1).is_valid()
        assert not Rational(1.5, 2).is_valid()

    def test_signed_rational(self):
        assert SignedRational(-1, 3).is_valid()
        assert SignedRational(1, -3).is_valid()
        assert not SignedRational(1, 0).is_valid()

    def test_byte(self):
        assert Byte((2, 2, 0, 0)).is_valid()
        assert not Byte(()).is_valid()
        assert not Byte((256,)).is_valid()

    def test_undefined(self):
        assert Undefined(b'').is_valid()
        assert not Undefined('text').is_valid()

    def test_array_homogeneous(self):
        coord = ArrayOf((Rational(40, 1), Rational(26, 1), Rational(4608, 100)))
        assert coord.is_valid()
        assert coord.type_id == Rational.type_id

    def test_array_mixed_invalid(self):
        assert not ArrayOf((Rational(1, 1), Short(1))).is_valid()

    def test_array_empty_invalid(self):
        assert not ArrayOf(()).is_valid()

    def test_array_nested_invalid(self):
        assert not ArrayOf((ArrayOf((Short(1),)),)).is_valid()

    def test_array_with_invalid_item(self):
        assert not ArrayOf((Rational(1, 1), Rational(1, 0))).is_valid()


class TestPreview:
    def test_binary_values_not_echoed(self):
        assert Undefined(b'secret').preview() == '<6 bytes>'
        assert Undefined(b'x').is_binary
        assert not Ascii('x').is_binary

    def test_long_text_truncated(self):
        preview = Ascii('x' * 200).preview()
        assert len(preview) == 60
        assert preview.endswith('...')

    def test_rational(self):
        assert Rational(1, 250).preview() == '1/250'


class TestExifDocument:
    def test_empty(self):
        doc = ExifDocument.empty()
        assert doc.is_empty()
        assert len(doc) == 0
        for group in TagGroup:
            assert dict(doc.group(group)) == {}

    def test_thumbnail_only_is_not_empty(self):
        assert not ExifDocument(thumbnail=b'\xff\xd8').is_empty()

    def test_set_returns_new_document(self):
        doc = ExifDocument.empty()
        updated = doc.set(TagGroup.PRIMARY, tags.ORIENTATION, Short(6))
        assert doc.get(TagGroup.PRIMARY, tags.ORIENTATION) is None
        assert updated.get(TagGroup.PRIMARY, tags.ORIENTATION) == Short(6)

    def test_remove(self):
        doc = privacy_document()
        updated = doc.remove(TagGroup.PRIMARY, tags.MAKE)
        assert doc.has(TagGroup.PRIMARY, tags.MAKE)
        assert not updated.has(TagGroup.PRIMARY, tags.MAKE)

    def test_remove_missing_is_noop(self):
        doc = privacy_document()
        assert doc.remove(TagGroup.PRIMARY, 0xABCD) is doc

    def test_groups_are_read_only(self):
        doc = privacy_document()
        with pytest.raises(TypeError):
            doc.group(TagGroup.PRIMARY)[tags.MAKE] = Ascii('Nikon')

    def test_input_mapping_copied(self):
        primary = {tags.MAKE: Ascii('Canon')}
        doc = ExifDocument({TagGroup.PRIMARY: primary})
        primary[tags.MODEL] = Ascii('R5')
        assert not doc.has(TagGroup.PRIMARY, tags.MODEL)

    def test_entries_in_group_then_id_order(self):
        doc = privacy_document()
        entries = [(g, t) for g, t, _ in doc.entries()]
        group_order = list(TagGroup)
        assert entries == sorted(entries, key=lambda e: (group_order.index(e[0]), e[1]))

    def test_invalid_entries(self):
        doc = ExifDocument({TagGroup.PRIMARY: {
            tags.X_RESOLUTION: Rational(72, 0),
            tags.MAKE: Ascii('Canon'),
        }})
        assert doc.invalid_entries() == [
            (TagGroup.PRIMARY, tags.X_RESOLUTION, Rational(72, 0))]
        assert not doc.is_encodable()
        assert doc.remove(TagGroup.PRIMARY, tags.X_RESOLUTION).is_encodable()

    def test_equality(self):
        assert privacy_document() == privacy_document()
        assert privacy_document() != privacy_document(orientation=1)
