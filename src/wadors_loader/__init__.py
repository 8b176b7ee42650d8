from wadors_loader.decode import DecodedImage, DecodeOptions, PixelDataDecoder
from wadors_loader.error import MetadataNotFoundError
from wadors_loader.loader import ImageLoader, LoadHandle, LoadStage
from wadors_loader.metadata import MetadataStore
from wadors_loader.protocol import (
    ImageDecoder,
    MetadataProvider,
    PixelDataFetcher,
    PixelDataResult,
)
from wadors_loader.transfer_syntax import (
    get_transfer_syntax_for_content_type,
    select_media_type,
)
from wadors_loader.uri import build_image_id, image_id_to_uri
from wadors_loader.web import WADORSFrameFetcher

__version__ = '0.1.0'

__all__ = [
    'DecodedImage',
    'DecodeOptions',
    'ImageDecoder',
    'ImageLoader',
    'LoadHandle',
    'LoadStage',
    'MetadataNotFoundError',
    'MetadataProvider',
    'MetadataStore',
    'PixelDataDecoder',
    'PixelDataFetcher',
    'PixelDataResult',
    'WADORSFrameFetcher',
    'build_image_id',
    'get_transfer_syntax_for_content_type',
    'image_id_to_uri',
    'select_media_type',
]
