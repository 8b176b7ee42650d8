import asyncio

import numpy as np
import pytest
from requests.exceptions import HTTPError

from wadors_loader.decode import DecodedImage, PixelDataDecoder
from wadors_loader.error import MetadataNotFoundError
from wadors_loader.loader import ImageLoader, LoadHandle, LoadStage
from wadors_loader.metadata import MetadataStore
from wadors_loader.uri import build_image_id
from wadors_loader.web import WADORSFrameFetcher


def _clock(*values):
    iterator = iter(values)
    return lambda: next(iterator)


def _load(loader, image_id, options=None):
    async def run():
        handle = loader.load(image_id, options)
        assert isinstance(handle, LoadHandle)
        await asyncio.wait([handle.promise])
        return handle

    return asyncio.run(run())


def test_load(metadata_store, image_id, fetcher_factory, decoder_factory):
    fetcher = fetcher_factory(
        content_type='application/octet-stream; transfer-syntax=1.2.3',
        pixel_data=b'\x01\x02\x03'
    )
    decoder = decoder_factory()
    loader = ImageLoader(
        metadata_store, fetcher, decoder, clock=_clock(10.0, 10.25)
    )
    options = {'rows': 2}
    handle = _load(loader, image_id, options)
    image = handle.promise.result()
    assert image.load_time_in_ms == pytest.approx(250.0)
    assert handle.stage == LoadStage.COMPLETE
    assert handle.done()
    assert fetcher.calls == [(
        image_id[len('wadors:'):],
        image_id,
        'multipart/related; type="application/octet-stream"',
    )]
    assert decoder.calls == [(image_id, b'\x01\x02\x03', '1.2.3', options)]


def test_load_default_transfer_syntax(metadata_store, image_id,
                                      fetcher_factory, decoder_factory):
    fetcher = fetcher_factory(content_type='multipart/related')
    decoder = decoder_factory()
    loader = ImageLoader(metadata_store, fetcher, decoder)
    image = _load(loader, image_id).promise.result()
    assert image.load_time_in_ms >= 0
    assert decoder.calls[0][2] == '1.2.840.10008.1.2'


def test_load_transfer_syntax_from_metadata(image_id, metadata_factory,
                                            fetcher_factory, decoder_factory):
    store = MetadataStore()
    store.add(image_id, metadata_factory('1.2.840.10008.1.2.4.91'))
    fetcher = fetcher_factory(
        content_type='image/jp2; transfer-syntax=1.2.840.10008.1.2.4.90'
    )
    decoder = decoder_factory()
    loader = ImageLoader(store, fetcher, decoder)
    handle = _load(loader, image_id)
    assert handle.stage == LoadStage.COMPLETE
    assert fetcher.calls[0][2] == 'multipart/related; type="image/jp2"'
    assert decoder.calls[0][2] == '1.2.840.10008.1.2.4.91'


def test_load_jpeg(image_id, metadata_factory, fetcher_factory,
                   decoder_factory):
    store = MetadataStore()
    store.add(image_id, metadata_factory('1.2.840.10008.1.2.4.51'))
    fetcher = fetcher_factory()
    decoder = decoder_factory()
    loader = ImageLoader(store, fetcher, decoder)
    _load(loader, image_id)
    assert fetcher.calls[0][2] == 'multipart/related; type="image/jpeg"'
    assert decoder.calls[0][2] == '1.2.840.10008.1.2.4.51'


def test_load_missing_metadata(image_id, fetcher_factory, decoder_factory):
    fetcher = fetcher_factory()
    decoder = decoder_factory()
    loader = ImageLoader(MetadataStore(), fetcher, decoder)
    handle = _load(loader, image_id)
    error = handle.promise.exception()
    assert isinstance(error, MetadataNotFoundError)
    assert 'no metadata' in str(error)
    assert error.image_id == image_id
    assert handle.stage == LoadStage.METADATA
    assert fetcher.calls == []
    assert decoder.calls == []


def test_load_missing_metadata_raises(image_id, fetcher_factory,
                                      decoder_factory):
    loader = ImageLoader(MetadataStore(), fetcher_factory(), decoder_factory())

    async def run():
        return await loader.load(image_id)

    with pytest.raises(MetadataNotFoundError):
        asyncio.run(run())


def test_load_fetch_failure(metadata_store, image_id, fetcher_factory,
                            decoder_factory):
    error = HTTPError('503 Server Error')
    fetcher = fetcher_factory(error=error)
    decoder = decoder_factory()
    loader = ImageLoader(metadata_store, fetcher, decoder)
    handle = _load(loader, image_id)
    assert handle.promise.exception() is error
    assert handle.stage == LoadStage.FETCH
    assert len(fetcher.calls) == 1
    assert decoder.calls == []


def test_load_decode_failure(metadata_store, image_id, fetcher_factory,
                             decoder_factory):
    error = NotImplementedError('unsupported transfer syntax')
    fetcher = fetcher_factory()
    decoder = decoder_factory(error=error)
    loader = ImageLoader(metadata_store, fetcher, decoder)
    handle = _load(loader, image_id)
    assert handle.promise.exception() is error
    assert handle.stage == LoadStage.DECODE
    assert len(decoder.calls) == 1


def test_load_invalid_image_id(metadata_store, fetcher_factory,
                               decoder_factory):
    fetcher = fetcher_factory()
    loader = ImageLoader(metadata_store, fetcher, decoder_factory())

    async def run():
        loader.load('wadouri:https://host/file.dcm')

    with pytest.raises(ValueError):
        asyncio.run(run())
    assert fetcher.calls == []


def test_load_without_event_loop(metadata_store, image_id, fetcher_factory,
                                 decoder_factory):
    loader = ImageLoader(metadata_store, fetcher_factory(), decoder_factory())
    with pytest.raises(RuntimeError):
        loader.load(image_id)


def test_load_concurrently(image_id, metadata_factory, fetcher_factory,
                           decoder_factory):
    store = MetadataStore()
    other_image_id = image_id[:-1] + '2'
    store.add(image_id, metadata_factory('1.2.840.10008.1.2.4.90'))
    store.add(other_image_id, metadata_factory('1.2.840.10008.1.2.4.50'))
    fetcher = fetcher_factory()
    decoder = decoder_factory()
    loader = ImageLoader(store, fetcher, decoder)

    async def run():
        handles = [loader.load(image_id), loader.load(other_image_id)]
        return await asyncio.gather(*[h.promise for h in handles])

    images = asyncio.run(run())
    assert len(images) == 2
    transfer_syntax_uids = {call[0]: call[2] for call in decoder.calls}
    assert transfer_syntax_uids == {
        image_id: '1.2.840.10008.1.2.4.90',
        other_image_id: '1.2.840.10008.1.2.4.50',
    }


def test_cancel(metadata_store, image_id, decoder_factory):
    class StalledFetcher:

        def __init__(self):
            self.started = None

        async def fetch(self, uri, image_id, media_type):
            self.started.set()
            await asyncio.Event().wait()

    fetcher = StalledFetcher()
    decoder = decoder_factory()
    loader = ImageLoader(metadata_store, fetcher, decoder)

    async def run():
        fetcher.started = asyncio.Event()
        handle = loader.load(image_id)
        await fetcher.started.wait()
        assert handle.stage == LoadStage.FETCH
        assert handle.cancel()
        with pytest.raises(asyncio.CancelledError):
            await handle
        assert handle.promise.cancelled()
        assert not handle.cancel()

    asyncio.run(run())
    assert decoder.calls == []


def test_handle_not_started():
    handle = LoadHandle()
    with pytest.raises(RuntimeError):
        handle.promise


def test_load_from_server(httpserver, metadata_factory):
    pixel_array = np.arange(6, dtype='<u2').reshape(2, 3)
    boundary = 'boundary'
    headers = {
        'content-type': (
            'multipart/related; type="application/octet-stream"; '
            f'boundary="{boundary}"'
        ),
    }
    message = (
        f'--{boundary}\r\n'
        'Content-Type: application/octet-stream; '
        'transfer-syntax=1.2.840.10008.1.2.1\r\n'
        '\r\n'
    ).encode('utf-8')
    message += pixel_array.tobytes()
    message += f'\r\n--{boundary}--'.encode('utf-8')
    httpserver.serve_content(content=message, code=200, headers=headers)
    image_id = build_image_id(httpserver.url, '1.2.3', '1.2.4', '1.2.5', 1)
    store = MetadataStore()
    store.add(image_id, metadata_factory())
    loader = ImageLoader(store, WADORSFrameFetcher(), PixelDataDecoder(store))
    handle = _load(loader, image_id)
    image = handle.promise.result()
    assert isinstance(image, DecodedImage)
    assert image.transfer_syntax_uid == '1.2.840.10008.1.2.1'
    assert image.load_time_in_ms >= 0
    np.testing.assert_array_equal(image.pixel_array, pixel_array)
    request = httpserver.requests[0]
    assert request.path == (
        '/studies/1.2.3/series/1.2.4/instances/1.2.5/frames/1'
    )
