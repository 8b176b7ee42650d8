"""Construction of images from the pixel data of individual frames."""
import asyncio
import dataclasses
import logging
from typing import Any, Dict, Optional

import numpy as np
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.encaps import encapsulate
from pydicom.pixel_data_handlers.numpy_handler import unpack_bits
from pydicom.uid import UID

from wadors_loader.metadata import get_number_value, get_value
from wadors_loader.protocol import MetadataProvider


logger = logging.getLogger(__name__)


_NATIVE_TRANSFER_SYNTAX_UIDS = frozenset({
    '1.2.840.10008.1.2',
    '1.2.840.10008.1.2.1',
    '1.2.840.10008.1.2.2',
    '1.2.840.10008.1.2.1.99',
})

_PIXEL_MODULE_KEYWORDS = {
    'rows': 'Rows',
    'columns': 'Columns',
    'samples_per_pixel': 'SamplesPerPixel',
    'bits_allocated': 'BitsAllocated',
    'bits_stored': 'BitsStored',
    'pixel_representation': 'PixelRepresentation',
    'photometric_interpretation': 'PhotometricInterpretation',
    'planar_configuration': 'PlanarConfiguration',
}

_REQUIRED_PIXEL_MODULE_ATTRIBUTES = ('rows', 'columns', 'bits_allocated')


@dataclasses.dataclass(frozen=True)
class DecodeOptions:

    """Attributes of the image pixel module used for decoding a frame.

    Attributes that are ``None`` are looked up in the metadata of the image.

    """

    rows: Optional[int] = None
    columns: Optional[int] = None
    samples_per_pixel: Optional[int] = None
    bits_allocated: Optional[int] = None
    bits_stored: Optional[int] = None
    pixel_representation: Optional[int] = None
    photometric_interpretation: Optional[str] = None
    planar_configuration: Optional[int] = None


@dataclasses.dataclass
class DecodedImage:

    """Decoded frame of an image."""

    image_id: str
    transfer_syntax_uid: str
    pixel_array: np.ndarray
    rows: int
    columns: int
    load_time_in_ms: Optional[float] = None


def _are_frames_encapsulated(transfer_syntax_uid: str) -> bool:
    return transfer_syntax_uid not in _NATIVE_TRANSFER_SYNTAX_UIDS


def _decode_frame(
    frame: bytes,
    transfer_syntax_uid: str,
    rows: int,
    columns: int,
    samples_per_pixel: int,
    bits_allocated: int,
    bits_stored: int,
    photometric_interpretation: str,
    pixel_representation: int,
    planar_configuration: Optional[int] = None
) -> np.ndarray:
    """Decode the pixel data of an individual frame.

    Parameters
    ----------
    frame: bytes
        Pixel data of the frame
    transfer_syntax_uid: str
        UID of the transfer syntax in which `frame` is encoded
    rows: int
        Number of rows
    columns: int
        Number of columns
    samples_per_pixel: int
        Number of samples (color channels) per pixel
    bits_allocated: int
        Number of bits allocated per sample
    bits_stored: int
        Number of bits stored per sample
    photometric_interpretation: str
        Photometric interpretation
    pixel_representation: int
        Whether samples are unsigned (``0``) or signed (``1``)
    planar_configuration: Union[int, None], optional
        Whether color samples are interleaved (``0``) or stored in planes
        (``1``)

    Returns
    -------
    numpy.ndarray
        Array of decoded pixels of the frame with shape (Rows x Columns)
        in case of a monochrome image or (Rows x Columns x SamplesPerPixel)
        in case of a color image.

    """
    if bits_allocated == 1:
        unpacked_frame: np.ndarray = unpack_bits(  # type: ignore
            frame,
            as_array=True
        )
        num_pixels = rows * columns * samples_per_pixel
        return unpacked_frame[:num_pixels].reshape(rows, columns)

    # A small data set with a Pixel Data element that only contains the frame
    # lets pydicom pick the matching pixel data handler.
    ds = Dataset()
    ds.file_meta = FileMetaDataset()
    ds.file_meta.TransferSyntaxUID = UID(transfer_syntax_uid)
    ds.Rows = rows
    ds.Columns = columns
    ds.SamplesPerPixel = samples_per_pixel
    ds.PhotometricInterpretation = photometric_interpretation
    ds.PixelRepresentation = pixel_representation
    if planar_configuration is not None and samples_per_pixel > 1:
        ds.PlanarConfiguration = planar_configuration
    ds.BitsAllocated = bits_allocated
    ds.BitsStored = bits_stored
    ds.HighBit = bits_stored - 1
    if _are_frames_encapsulated(transfer_syntax_uid):
        ds.PixelData = encapsulate(frames=[frame])
    else:
        ds.PixelData = frame
    return ds.pixel_array


class PixelDataDecoder(object):

    """Decoder of frames of images whose metadata is held by a store."""

    def __init__(self, metadata_store: MetadataProvider) -> None:
        """
        Parameters
        ----------
        metadata_store: wadors_loader.protocol.MetadataProvider
            Store providing the image pixel module attributes of images

        """
        self._metadata_store = metadata_store

    def _get_pixel_module(
        self,
        image_id: str,
        options: Optional[DecodeOptions]
    ) -> Dict[str, Any]:
        if options is None:
            options = DecodeOptions()
        metadata = self._metadata_store.get(image_id) or {}
        pixel_module = {}
        for name, keyword in _PIXEL_MODULE_KEYWORDS.items():
            value = getattr(options, name)
            if value is None:
                if name == 'photometric_interpretation':
                    value = get_value(metadata, keyword)
                else:
                    value = get_number_value(metadata, keyword)
            pixel_module[name] = value

        missing = [
            _PIXEL_MODULE_KEYWORDS[name]
            for name in _REQUIRED_PIXEL_MODULE_ATTRIBUTES
            if pixel_module[name] is None
        ]
        if missing:
            raise ValueError(
                f'Cannot decode pixel data of image "{image_id}" without '
                f'attributes: {", ".join(missing)}.'
            )
        if pixel_module['samples_per_pixel'] is None:
            pixel_module['samples_per_pixel'] = 1
        if pixel_module['bits_stored'] is None:
            pixel_module['bits_stored'] = pixel_module['bits_allocated']
        if pixel_module['pixel_representation'] is None:
            pixel_module['pixel_representation'] = 0
        if pixel_module['photometric_interpretation'] is None:
            if pixel_module['samples_per_pixel'] == 1:
                pixel_module['photometric_interpretation'] = 'MONOCHROME2'
            else:
                pixel_module['photometric_interpretation'] = 'RGB'
        return pixel_module

    def decode_frame(
        self,
        image_id: str,
        pixel_data: bytes,
        transfer_syntax_uid: str,
        options: Optional[DecodeOptions] = None
    ) -> DecodedImage:
        """Decode the pixel data of a frame.

        Parameters
        ----------
        image_id: str
            Image identifier
        pixel_data: bytes
            Pixel data of the frame
        transfer_syntax_uid: str
            UID of the transfer syntax in which `pixel_data` is encoded
        options: Union[wadors_loader.decode.DecodeOptions, None], optional
            Image pixel module attributes that take precedence over the
            metadata of the image

        Returns
        -------
        wadors_loader.decode.DecodedImage
            Decoded image

        Raises
        ------
        ValueError
            When Rows, Columns or Bits Allocated are neither given by
            `options` nor by the metadata of the image

        """
        pixel_module = self._get_pixel_module(image_id, options)
        logger.debug(
            f'decode pixel data of image "{image_id}" with transfer syntax '
            f'"{transfer_syntax_uid}"'
        )
        pixel_array = _decode_frame(
            pixel_data,
            transfer_syntax_uid=transfer_syntax_uid,
            **pixel_module
        )
        return DecodedImage(
            image_id=image_id,
            transfer_syntax_uid=transfer_syntax_uid,
            pixel_array=pixel_array,
            rows=pixel_module['rows'],
            columns=pixel_module['columns'],
        )

    async def decode(
        self,
        image_id: str,
        pixel_data: bytes,
        transfer_syntax_uid: str,
        options: Optional[DecodeOptions] = None
    ) -> DecodedImage:
        """Decode the pixel data of a frame without blocking the event loop.

        See :meth:`decode_frame` for parameters.

        """
        return await asyncio.to_thread(
            self.decode_frame,
            image_id,
            pixel_data,
            transfer_syntax_uid,
            options
        )
