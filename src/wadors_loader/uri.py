"""Utilities for handling identifiers of images retrieved via WADO-RS."""
import re
from urllib.parse import urlparse


#: Scheme prefix of image identifiers handled by the loader.
WADORS_SCHEME = 'wadors:'

_MAX_UID_LENGTH = 64
_REGEX_UID = re.compile(r'[0-9]+([.][0-9]+)*')


def build_image_id(
    url: str,
    study_instance_uid: str,
    series_instance_uid: str,
    sop_instance_uid: str,
    frame_number: int
) -> str:
    """Build the identifier of an individual frame of an instance.

    Parameters
    ----------
    url: str
        Base URL of the DICOMweb service (e.g., ``"https://host/dicomweb"``)
    study_instance_uid: str
        Study Instance UID
    series_instance_uid: str
        Series Instance UID
    sop_instance_uid: str
        SOP Instance UID
    frame_number: int
        One-based number of the frame

    Returns
    -------
    str
        Image identifier (e.g.,
        ``"wadors:https://host/dicomweb/studies/1.2/series/1.3/instances/1.4/frames/1"``)

    Raises
    ------
    ValueError
        When `url` is not an HTTP[S] URL, any of the UIDs is invalid or
        `frame_number` is not positive

    """  # noqa: E501
    _validate_base_url(url)
    for uid in (study_instance_uid, series_instance_uid, sop_instance_uid):
        _validate_uid(uid)
    if frame_number < 1:
        raise ValueError(
            f'Frame number must be positive. Actual number: {frame_number!r}'
        )
    return (
        f'{WADORS_SCHEME}{url}'
        f'/studies/{study_instance_uid}'
        f'/series/{series_instance_uid}'
        f'/instances/{sop_instance_uid}'
        f'/frames/{frame_number}'
    )


def image_id_to_uri(image_id: str) -> str:
    """Strip the scheme prefix from an image identifier.

    Parameters
    ----------
    image_id: str
        Image identifier

    Returns
    -------
    str
        URI of the frame

    Raises
    ------
    ValueError
        When `image_id` does not start with ``"wadors:"``

    """
    if not image_id.startswith(WADORS_SCHEME):
        raise ValueError(
            f'Image identifier must start with {WADORS_SCHEME!r}. '
            f'Actual identifier: {image_id!r}'
        )
    return image_id[len(WADORS_SCHEME):]


def _validate_base_url(url: str) -> None:
    parse_result = urlparse(url)
    if parse_result.scheme not in ('http', 'https'):
        raise ValueError(
            f'Only HTTP[S] URLs are permitted. Actual URL: {url!r}')
    if url.endswith('/'):
        raise ValueError('Base (DICOMweb service) URL cannot have a trailing '
                         f'forward slash: {url!r}')


def _validate_uid(uid: str) -> None:
    if not isinstance(uid, str):
        raise TypeError('DICOM UID must be a string.')
    if len(uid) > _MAX_UID_LENGTH:
        raise ValueError('UID cannot have more than 64 chars. '
                         f'Actual count in {uid!r}: {len(uid)}')
    if _REGEX_UID.fullmatch(uid) is None:
        raise ValueError(f'UID {uid!r} must match regex {_REGEX_UID!r} in '
                         'conformance with the DICOM Standard.')
