"""In-memory store of image metadata in DICOM JSON format."""
import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydicom.dataset import Dataset
from pydicom.tag import Tag


logger = logging.getLogger(__name__)


def _tag_to_key(tag: Union[str, int]) -> str:
    """Convert a tag into a key of a DICOM JSON data set.

    Parameters
    ----------
    tag: Union[str, int]
        Tag in hexadecimal string (e.g., ``"00280010"``) or integer form, or
        keyword of an attribute (e.g., ``"Rows"``)

    Returns
    -------
    str
        Eight upper-case hexadecimal digits

    """
    if isinstance(tag, str) and len(tag) == 8:
        try:
            return f'{int(tag, 16):08X}'
        except ValueError:
            pass
    return f'{int(Tag(tag)):08X}'


def get_value(
    metadata: Mapping[str, dict],
    tag: Union[str, int],
    index: int = 0,
    default: Any = None
) -> Any:
    """Get a value of an attribute of a DICOM JSON data set.

    Parameters
    ----------
    metadata: Mapping[str, dict]
        DICOM JSON data set
    tag: Union[str, int]
        Tag or keyword of the attribute
    index: int, optional
        Zero-based index of the value for multi-valued attributes
    default: Any, optional
        Value that is returned if the attribute or value is missing

    Returns
    -------
    Any
        Value of the attribute

    """
    element = metadata.get(_tag_to_key(tag))
    if not isinstance(element, Mapping):
        return default
    values = element.get('Value')
    if not isinstance(values, (list, tuple)):
        return default
    try:
        return values[index]
    except IndexError:
        return default


def get_number_value(
    metadata: Mapping[str, dict],
    tag: Union[str, int],
    index: int = 0,
    default: Optional[int] = None
) -> Optional[int]:
    """Get a numeric value of an attribute of a DICOM JSON data set.

    Integer strings (VR IS) are converted to ``int``.

    """
    value = get_value(metadata, tag, index)
    if value is None:
        return default
    if isinstance(value, str):
        return int(value.strip())
    return value


class MetadataStore:

    """Metadata of images, looked up by image identifier.

    The store is populated before images are loaded (typically with the
    response of a WADO-RS metadata request) and only read while loads are in
    flight.

    """

    def __init__(self) -> None:
        self._metadata: Dict[str, Dict[str, dict]] = {}

    def add(
        self,
        image_id: str,
        metadata: Union[Mapping[str, dict], Dataset]
    ) -> None:
        """Register metadata of an image.

        Parameters
        ----------
        image_id: str
            Image identifier
        metadata: Union[Mapping[str, dict], pydicom.dataset.Dataset]
            Metadata in DICOM JSON format or as a data set

        """
        if isinstance(metadata, Dataset):
            metadata = metadata.to_json_dict()
        elif not isinstance(metadata, Mapping):
            raise TypeError(
                'Metadata must be provided as DICOM JSON mapping or as '
                'pydicom data set.'
            )
        if image_id in self._metadata:
            logger.debug(f'replace metadata of image "{image_id}"')
        else:
            logger.debug(f'add metadata of image "{image_id}"')
        self._metadata[image_id] = dict(metadata)

    def get(self, image_id: str) -> Optional[Dict[str, dict]]:
        """Get metadata of an image.

        Parameters
        ----------
        image_id: str
            Image identifier

        Returns
        -------
        Union[Dict[str, dict], None]
            Metadata in DICOM JSON format or ``None`` if no metadata has been
            registered for `image_id`

        """
        return self._metadata.get(image_id)

    def remove(self, image_id: str) -> None:
        """Remove metadata of an image (no-op for unknown images)."""
        logger.debug(f'remove metadata of image "{image_id}"')
        self._metadata.pop(image_id, None)

    def purge(self) -> None:
        """Remove metadata of all images."""
        logger.debug(f'purge metadata of {len(self._metadata)} images')
        self._metadata.clear()

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._metadata

    def __len__(self) -> int:
        return len(self._metadata)
