"""Resolution of transfer syntaxes and media types for WADO-RS frames.

The transfer syntax of a frame is preferably derived from the cached metadata
of the image. Only when the metadata does not name a transfer syntax that maps
onto an image media type, the frame is requested as
``application/octet-stream`` and the transfer syntax is taken from the
``transfer-syntax`` parameter of the content type returned by the server.

"""
import logging
from typing import FrozenSet, Mapping, NamedTuple, Optional, Tuple

from pydicom.uid import (
    ImplicitVRLittleEndian,
    JPEG2000,
    JPEG2000Lossless,
    JPEGBaseline8Bit,
    JPEGExtended12Bit,
    JPEGLosslessSV1,
    JPEGLSLossless,
    JPEGLSNearLossless,
)


logger = logging.getLogger(__name__)


#: Transfer syntax assumed when the server does not announce one.
DEFAULT_TRANSFER_SYNTAX_UID = str(ImplicitVRLittleEndian)

#: Tag of the Transfer Syntax UID attribute in DICOM JSON metadata.
TRANSFER_SYNTAX_UID_TAG = '00020010'

_TRANSFER_SYNTAX_PARAMETER = 'transfer-syntax'


def build_multipart_media_type(subtype: str) -> str:
    """Build the media type of a multipart/related message.

    Parameters
    ----------
    subtype: str
        Media type of the message parts (e.g., ``"image/jpeg"``)

    Returns
    -------
    str
        Media type (e.g., ``'multipart/related; type="image/jpeg"'``)

    """
    return f'multipart/related; type="{subtype}"'


JP2_MEDIA_TYPE = build_multipart_media_type('image/jp2')
JPEG_MEDIA_TYPE = build_multipart_media_type('image/jpeg')
OCTET_STREAM_MEDIA_TYPE = build_multipart_media_type(
    'application/octet-stream'
)

#: Ordered lookup table of media types and the transfer syntaxes they carry.
#: The first entry whose transfer syntaxes contain the UID is selected.
MEDIA_TYPE_TABLE: Tuple[Tuple[str, FrozenSet[str]], ...] = (
    (
        JP2_MEDIA_TYPE,
        frozenset({
            str(JPEG2000Lossless),
            str(JPEG2000),
        }),
    ),
    (
        JPEG_MEDIA_TYPE,
        frozenset({
            str(JPEGBaseline8Bit),
            str(JPEGExtended12Bit),
            str(JPEGLosslessSV1),
            str(JPEGLSLossless),
            str(JPEGLSNearLossless),
        }),
    ),
)


class MediaTypeSelection(NamedTuple):

    """Media type that should be requested for a frame."""

    media_type: str
    transfer_syntax_uid: Optional[str] = None


def get_transfer_syntax_for_content_type(content_type: Optional[str]) -> str:
    """Extract the transfer syntax from a content type.

    Parameters of the content type are processed in order and the last
    non-empty ``transfer-syntax`` parameter wins. Parameters that are not
    ``key=value`` pairs are skipped.

    Parameters
    ----------
    content_type: Union[str, None]
        Value of the Content-Type header field as returned by the server

    Returns
    -------
    str
        Transfer syntax UID announced by the server or the UID of Implicit VR
        Little Endian if the server did not announce one

    """
    transfer_syntax_uid = DEFAULT_TRANSFER_SYNTAX_UID
    if not content_type:
        return transfer_syntax_uid

    for parameter in content_type.split(';'):
        key_value = parameter.split('=')
        if len(key_value) != 2:
            continue
        key, value = key_value
        if key.strip() == _TRANSFER_SYNTAX_PARAMETER:
            transfer_syntax_uid = value.strip() or transfer_syntax_uid

    return transfer_syntax_uid


def _get_transfer_syntax_uid(
    metadata: Optional[Mapping[str, dict]]
) -> Optional[str]:
    if not isinstance(metadata, Mapping):
        return None
    element = metadata.get(TRANSFER_SYNTAX_UID_TAG)
    if not isinstance(element, Mapping):
        return None
    values = element.get('Value')
    if not isinstance(values, (list, tuple)) or len(values) == 0:
        return None
    value = values[0]
    if not isinstance(value, str):
        return None
    return value


def select_media_type(
    metadata: Optional[Mapping[str, dict]]
) -> MediaTypeSelection:
    """Select the media type that should be requested for a frame.

    Parameters
    ----------
    metadata: Union[Mapping[str, dict], None]
        Metadata of the image in DICOM JSON format

    Returns
    -------
    wadors_loader.transfer_syntax.MediaTypeSelection
        Media type and, in case it can be derived from `metadata`, the
        transfer syntax UID of the frame

    Note
    ----
    Metadata without a (valid) Transfer Syntax UID attribute or with a
    transfer syntax that is not listed in ``MEDIA_TYPE_TABLE`` results in
    ``application/octet-stream`` without a transfer syntax UID. The transfer
    syntax then needs to be determined from the response of the server.

    """
    transfer_syntax_uid = _get_transfer_syntax_uid(metadata)
    if transfer_syntax_uid is not None:
        for media_type, transfer_syntax_uids in MEDIA_TYPE_TABLE:
            if transfer_syntax_uid in transfer_syntax_uids:
                return MediaTypeSelection(media_type, transfer_syntax_uid)
        logger.debug(
            f'transfer syntax "{transfer_syntax_uid}" does not map onto an '
            'image media type'
        )
    return MediaTypeSelection(OCTET_STREAM_MEDIA_TYPE)
