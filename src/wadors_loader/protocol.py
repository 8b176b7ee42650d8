from typing import (
    Any,
    Dict,
    NamedTuple,
    Optional,
    Protocol,
    runtime_checkable,
)


class PixelDataResult(NamedTuple):

    """Pixel data of a frame as returned by the image store."""

    content_type: Optional[str]
    pixel_data: bytes


@runtime_checkable
class MetadataProvider(Protocol):

    """Protocol for stores of image metadata."""

    def get(self, image_id: str) -> Optional[Dict[str, dict]]:
        """Get metadata of an image.

        Parameters
        ----------
        image_id: str
            Image identifier

        Returns
        -------
        Union[Dict[str, dict], None]
            Metadata in DICOM JSON format or ``None`` if the image is unknown

        """
        pass


@runtime_checkable
class PixelDataFetcher(Protocol):

    """Protocol for retrieval of frame pixel data."""

    async def fetch(
        self,
        uri: str,
        image_id: str,
        media_type: str
    ) -> PixelDataResult:
        """Fetch the pixel data of a frame.

        Parameters
        ----------
        uri: str
            Location of the frame
        image_id: str
            Image identifier
        media_type: str
            Media type that should be requested
            (e.g., ``'multipart/related; type="image/jpeg"'``)

        Returns
        -------
        wadors_loader.protocol.PixelDataResult
            Pixel data and the content type announced by the server

        """
        pass


@runtime_checkable
class ImageDecoder(Protocol):

    """Protocol for construction of images from frame pixel data."""

    async def decode(
        self,
        image_id: str,
        pixel_data: bytes,
        transfer_syntax_uid: str,
        options: Optional[Any] = None
    ) -> Any:
        """Decode the pixel data of a frame.

        Parameters
        ----------
        image_id: str
            Image identifier
        pixel_data: bytes
            Pixel data of the frame
        transfer_syntax_uid: str
            UID of the transfer syntax in which `pixel_data` is encoded
        options: Any, optional
            Decoding options

        Returns
        -------
        Any
            Image; must allow setting the ``load_time_in_ms`` attribute

        """
        pass
