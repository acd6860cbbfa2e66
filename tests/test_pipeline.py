"""Tests for the redaction pipeline -- JPEG, HEIC and passthrough paths, batches."""

import io

import pytest
from PIL import Image

from photosafe import tags
from photosafe.codec import PiexifCodec
from photosafe.document import Ascii, Short
from photosafe.errors import DecodeError, EncodeError
from photosafe.fallback import (
    TIER_BARE_STRIP, TIER_FULL, TIER_MINIMAL, TIER_SAFE_REBUILD,
)
from photosafe.models import ImageInput, PipelineState
from photosafe.options import RedactionOptions
from photosafe.pipeline import (
    NOTE_NO_EXIF, NOTE_UNSUPPORTED, RedactionPipeline, clean_bytes,
)
from photosafe.scanner import scan_bytes
from photosafe.tags import TagGroup, TagPolicy

from tests.conftest import FakeCodec, FakePixelCodec, privacy_document


class FlakyPiexifCodec(PiexifCodec):
    """Real codec whose first ``fail_encodes`` encodes are rejected."""

    def __init__(self, fail_encodes):
        self.fail_encodes = fail_encodes

    def encode(self, document, container):
        if self.fail_encodes > 0:
            self.fail_encodes -= 1
            raise EncodeError('value rejected')
        return super().encode(document, container)


class ExplodingCodec(FakeCodec):
    def decode(self, data):
        raise RuntimeError('codec crashed')


@pytest.fixture
def pipeline(fixed_clock):
    return RedactionPipeline(pixel_codec=FakePixelCodec(), clock=fixed_clock)


def _decode(data):
    return PiexifCodec().decode(data)


class TestJpegPath:
    def test_success_with_full_tier(self, pipeline, privacy_jpeg):
        result = pipeline.clean(ImageInput(privacy_jpeg, 'holiday.jpg', 'image/jpeg'))
        assert result.success
        assert result.tier == TIER_FULL
        assert result.state is PipelineState.DONE
        assert result.format == 'jpeg'
        assert result.filename == 'holiday.jpg'
        assert result.mime_type == 'image/jpeg'
        assert result.original_size == len(privacy_jpeg)
        assert result.cleaned_size == len(result.data)
        assert result.redaction_time_ms >= 0

    def test_gps_eliminated(self, pipeline, privacy_jpeg):
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        assert dict(doc.group(TagGroup.GPS)) == {}

    def test_removal_complete(self, pipeline, privacy_jpeg):
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        for group, tag_id, _ in doc.entries():
            assert tags.classify(group, tag_id) is not TagPolicy.REMOVE
        assert doc.thumbnail is None
        assert dict(doc.group(TagGroup.THUMBNAIL)) == {}

    def test_output_scans_clean(self, pipeline, privacy_jpeg):
        assert not scan_bytes(privacy_jpeg).is_clean
        assert scan_bytes(pipeline.clean_bytes(privacy_jpeg).data).is_clean

    def test_orientation_preserved(self, pipeline, privacy_jpeg):
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        assert doc.get(TagGroup.PRIMARY, tags.ORIENTATION) == Short(6)

    def test_attribution(self, privacy_jpeg):
        pipeline = RedactionPipeline(options=RedactionOptions(copyright='(c) Studio',
                                                              artist='Studio'))
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        assert doc.get(TagGroup.PRIMARY, tags.COPYRIGHT) == Ascii('(c) Studio')
        assert doc.get(TagGroup.PRIMARY, tags.ARTIST) == Ascii('Studio')

    def test_per_call_options_override(self, pipeline, privacy_jpeg):
        result = pipeline.clean_bytes(privacy_jpeg, options=RedactionOptions(artist='Other'))
        assert _decode(result.data).get(TagGroup.PRIMARY, tags.ARTIST) == Ascii('Other')
        assert 'Artist: Other' in result.added_fields

    def test_timestamps_truncated(self, pipeline, privacy_jpeg):
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        assert doc.get(TagGroup.EXIF, tags.DATE_TIME_ORIGINAL) == Ascii('2023:07:14 00:00:00')
        assert doc.get(TagGroup.PRIMARY, tags.DATE_TIME) == Ascii('2023:07:14 00:00:00')

    def test_offsets_written(self, privacy_jpeg):
        pipeline = RedactionPipeline(options=RedactionOptions(offset_time='-05:00'))
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        for tag_id in tags.OFFSET_TIME_TAGS:
            assert doc.get(TagGroup.EXIF, tag_id) == Ascii('-05:00')

    def test_preserved_exposure_data(self, pipeline, privacy_jpeg):
        doc = _decode(pipeline.clean_bytes(privacy_jpeg).data)
        assert doc.has(TagGroup.EXIF, tags.EXPOSURE_TIME)
        assert doc.has(TagGroup.EXIF, tags.F_NUMBER)

    def test_report(self, pipeline, privacy_jpeg):
        result = pipeline.clean_bytes(privacy_jpeg)
        assert 'GPS (entire block)' in result.removed_fields
        assert 'Thumbnail' in result.removed_fields
        assert 'Primary.Make: Canon' in result.removed_fields
        assert 'Copyright: © All Rights Reserved.' in result.added_fields
        assert result.converted_from is None

    def test_image_still_decodes(self, pipeline, privacy_jpeg):
        img = Image.open(io.BytesIO(pipeline.clean_bytes(privacy_jpeg).data))
        assert img.size == (16, 12)

    def test_clean_twice_is_stable(self, pipeline, privacy_jpeg):
        once = pipeline.clean_bytes(privacy_jpeg).data
        twice = pipeline.clean_bytes(once)
        assert twice.success
        assert _decode(twice.data) == _decode(once)


class TestFallbackTiers:
    @pytest.mark.parametrize('failures,tier', [
        (1, TIER_MINIMAL), (2, TIER_SAFE_REBUILD),
    ])
    def test_orientation_survives_rebuilt_tiers(self, privacy_jpeg, failures, tier):
        pipeline = RedactionPipeline(codec=FlakyPiexifCodec(failures))
        result = pipeline.clean_bytes(privacy_jpeg)
        assert result.success
        assert result.tier == tier
        doc = _decode(result.data)
        assert doc.get(TagGroup.PRIMARY, tags.ORIENTATION) == Short(6)
        assert dict(doc.group(TagGroup.GPS)) == {}
        assert doc.has(TagGroup.PRIMARY, tags.COPYRIGHT)

    def test_minimal_tier_note(self, privacy_jpeg):
        result = RedactionPipeline(codec=FlakyPiexifCodec(1)).clean_bytes(privacy_jpeg)
        assert 'metadata written by minimal fallback tier' in result.report.notes

    def test_safe_rebuild_report(self, privacy_jpeg):
        result = RedactionPipeline(codec=FlakyPiexifCodec(2)).clean_bytes(privacy_jpeg)
        assert 'All original EXIF (safe rebuild fallback)' in result.removed_fields
        assert all(f.startswith(('Copyright:', 'Artist:')) for f in result.added_fields)
        assert len(result.added_fields) == 2

    def test_bare_strip(self, privacy_jpeg):
        result = RedactionPipeline(codec=FlakyPiexifCodec(99)).clean_bytes(privacy_jpeg)
        assert result.success
        assert result.tier == TIER_BARE_STRIP
        assert result.added_fields == []
        assert 'All EXIF (bare strip fallback)' in result.removed_fields
        with pytest.raises(DecodeError):
            _decode(result.data)

    def test_fail_safe_returns_original_bytes(self, privacy_jpeg):
        codec = FakeCodec(document=privacy_document(), encode_always_fails=True,
                          strip_fails=True)
        result = RedactionPipeline(codec=codec).clean_bytes(privacy_jpeg)
        assert not result.success
        assert result.data == privacy_jpeg
        assert result.data is privacy_jpeg
        assert result.state is PipelineState.FAILED
        assert result.tier is None
        assert 'All metadata encoding tiers failed' in result.error

    def test_unexpected_exception_becomes_failure(self, privacy_jpeg):
        result = RedactionPipeline(codec=ExplodingCodec()).clean_bytes(privacy_jpeg)
        assert not result.success
        assert result.data == privacy_jpeg
        assert 'codec crashed' in result.error


class TestPassthrough:
    def test_no_exif(self, pipeline, plain_jpeg):
        result = pipeline.clean_bytes(plain_jpeg)
        assert result.success
        assert result.data == plain_jpeg
        assert result.note == NOTE_NO_EXIF
        assert result.tier is None
        assert result.report.is_empty()

    def test_unsupported_format(self, pipeline):
        buf = io.BytesIO()
        Image.new('RGB', (4, 4)).save(buf, format='PNG')
        png = buf.getvalue()
        result = pipeline.clean(ImageInput(png, 'shot.png', 'image/png'))
        assert result.success
        assert result.data == png
        assert result.format == 'unsupported'
        assert result.note == NOTE_UNSUPPORTED
        assert result.filename == 'shot.png'

    def test_jpeg_name_without_magic(self, pipeline):
        result = pipeline.clean(ImageInput(b'GIF89a...', 'fake.jpg', 'image/jpeg'))
        assert result.success
        assert result.note == NOTE_UNSUPPORTED


class TestHeicPath:
    def test_converts_to_jpeg(self, pipeline):
        result = pipeline.clean(ImageInput(b'\x00\x00\x00\x18ftypheic', 'IMG_0001.HEIC',
                                           'image/heic'))
        assert result.success
        assert result.format == 'heic'
        assert result.filename == 'IMG_0001.jpg'
        assert result.mime_type == 'image/jpeg'
        assert result.converted_from == 'HEIC/HEIF'
        assert result.tier == TIER_MINIMAL
        assert result.data[:2] == b'\xff\xd8'
        assert Image.open(io.BytesIO(result.data)).size == (8, 6)

    def test_metadata_written(self, pipeline):
        result = pipeline.clean(ImageInput(b'heic', 'a.heic', 'image/heic'))
        doc = _decode(result.data)
        assert doc.get(TagGroup.EXIF, tags.DATE_TIME_ORIGINAL) == Ascii('2024:03:09 00:00:00')
        assert doc.get(TagGroup.PRIMARY, tags.ARTIST) == Ascii('Anonymous')
        assert doc.get(TagGroup.EXIF, tags.OFFSET_TIME_ORIGINAL) == Ascii('+00:00')
        assert dict(doc.group(TagGroup.GPS)) == {}

    def test_quality_from_options(self, fixed_clock):
        pixel_codec = FakePixelCodec()
        pipeline = RedactionPipeline(pixel_codec=pixel_codec, clock=fixed_clock,
                                     options=RedactionOptions(heic_quality=0.5))
        pipeline.clean(ImageInput(b'heic', 'a.heic', 'image/heic'))
        assert pixel_codec.qualities == [50]

    def test_pixel_decode_failure(self, fixed_clock):
        pipeline = RedactionPipeline(pixel_codec=FakePixelCodec(fail=True), clock=fixed_clock)
        data = b'corrupt heic'
        result = pipeline.clean(ImageInput(data, 'a.heic', 'image/heic'))
        assert not result.success
        assert result.data == data
        assert result.filename == 'a.heic'
        assert result.state is PipelineState.FAILED

    def test_without_pixel_codec(self, fixed_clock):
        pipeline = RedactionPipeline(clock=fixed_clock)
        pipeline.pixel_codec = None
        result = pipeline.clean(ImageInput(b'heic', 'a.heic', 'image/heic'))
        assert not result.success
        assert 'pillow-heif' in result.error


class TestBatch:
    def test_five_items_two_failing(self, fixed_clock, privacy_jpeg, plain_jpeg):
        pipeline = RedactionPipeline(pixel_codec=FakePixelCodec(fail=True), clock=fixed_clock)
        items = [
            ImageInput(privacy_jpeg, '1.jpg', 'image/jpeg'),
            ImageInput(b'bad', '2.heic', 'image/heic'),
            ImageInput(plain_jpeg, '3.jpg', 'image/jpeg'),
            ImageInput(b'bad', '4.heic', 'image/heic'),
            ImageInput(privacy_jpeg, '5.jpg', 'image/jpeg'),
        ]
        seen = []
        done = []
        batch = pipeline.clean_batch(
            items,
            progress_callback=lambda i, total, item: seen.append((i, total, item.filename)),
            result_callback=lambda i, total, item, r: done.append((i, r.success)),
        )
        assert batch.total_files == 5
        assert batch.succeeded == 3
        assert batch.failed == 2
        assert [r.filename for r in batch.results] == ['1.jpg', '2.heic', '3.jpg', '4.heic', '5.jpg']
        assert [r.success for r in batch.results] == [True, False, True, False, True]
        assert seen == [(i, 5, f'{i}.{ext}') for i, ext in
                        [(1, 'jpg'), (2, 'heic'), (3, 'jpg'), (4, 'heic'), (5, 'jpg')]]
        assert done == [(1, True), (2, False), (3, True), (4, False), (5, True)]
        assert batch.results[1].data == b'bad'

    def test_totals(self, pipeline, privacy_jpeg, plain_jpeg):
        batch = pipeline.clean_batch([
            ImageInput(privacy_jpeg, 'a.jpg', 'image/jpeg'),
            ImageInput(plain_jpeg, 'b.jpg', 'image/jpeg'),
        ])
        assert batch.total_original_size == len(privacy_jpeg) + len(plain_jpeg)
        assert batch.total_cleaned_size == sum(r.cleaned_size for r in batch.results)
        assert batch.total_time_seconds >= 0

    def test_empty_batch(self, pipeline):
        batch = pipeline.clean_batch([])
        assert batch.total_files == 0
        assert batch.succeeded == batch.failed == 0


class TestModuleFunctions:
    def test_clean_bytes_defaults(self, privacy_jpeg):
        result = clean_bytes(privacy_jpeg)
        assert result.success
        assert result.filename == 'image.jpg'
        assert result.mime_type == 'image/jpeg'
