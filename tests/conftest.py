import json

import pytest

from wadors_loader.cli import _get_parser
from wadors_loader.metadata import MetadataStore
from wadors_loader.protocol import PixelDataResult


IMAGE_ID = (
    'wadors:https://dicomweb.example.org/rs'
    '/studies/1.2.3/series/1.2.4/instances/1.2.5/frames/1'
)


class FakeFetcher:

    def __init__(self, content_type=None, pixel_data=b'\x00\x01', error=None):
        self.content_type = content_type
        self.pixel_data = pixel_data
        self.error = error
        self.calls = []

    async def fetch(self, uri, image_id, media_type):
        self.calls.append((uri, image_id, media_type))
        if self.error is not None:
            raise self.error
        return PixelDataResult(self.content_type, self.pixel_data)


class FakeImage:
    pass


class FakeDecoder:

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def decode(self, image_id, pixel_data, transfer_syntax_uid,
                     options=None):
        self.calls.append((image_id, pixel_data, transfer_syntax_uid, options))
        if self.error is not None:
            raise self.error
        return FakeImage()


def make_metadata(transfer_syntax_uid=None):
    metadata = {
        '00280010': {'vr': 'US', 'Value': [2]},
        '00280011': {'vr': 'US', 'Value': [3]},
        '00280100': {'vr': 'US', 'Value': [16]},
        '00280101': {'vr': 'US', 'Value': [12]},
        '00280103': {'vr': 'US', 'Value': [0]},
        '00280002': {'vr': 'US', 'Value': [1]},
        '00280004': {'vr': 'CS', 'Value': ['MONOCHROME2']},
    }
    if transfer_syntax_uid is not None:
        metadata['00020010'] = {'vr': 'UI', 'Value': [transfer_syntax_uid]}
    return metadata


@pytest.fixture
def parser():
    '''Instance of `argparse.Argparser`.'''
    return _get_parser()


@pytest.fixture
def image_id():
    '''Identifier of a frame.'''
    return IMAGE_ID


@pytest.fixture
def metadata_store():
    '''Instance of `wadors_loader.metadata.MetadataStore` holding metadata of
    a frame without transfer syntax.'''
    store = MetadataStore()
    store.add(IMAGE_ID, make_metadata())
    return store


@pytest.fixture
def metadata_file(tmp_path):
    '''File with metadata of a JPEG baseline compressed frame.'''
    filepath = tmp_path.joinpath('metadata.json')
    with open(filepath, 'w') as f:
        json.dump([make_metadata('1.2.840.10008.1.2.4.50')], f)
    return filepath


@pytest.fixture
def fetcher_factory():
    '''Factory of fetchers that record their calls.'''
    return FakeFetcher


@pytest.fixture
def decoder_factory():
    '''Factory of decoders that record their calls.'''
    return FakeDecoder


@pytest.fixture
def metadata_factory():
    '''Factory of DICOM JSON metadata of a 2 x 3 frame.'''
    return make_metadata
