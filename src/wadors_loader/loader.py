"""Loading of individual frames of images retrieved via WADO-RS."""
import asyncio
import enum
import logging
import time
from typing import Any, Callable, Generator, Optional

from wadors_loader.error import MetadataNotFoundError
from wadors_loader.protocol import (
    ImageDecoder,
    MetadataProvider,
    PixelDataFetcher,
)
from wadors_loader.transfer_syntax import (
    get_transfer_syntax_for_content_type,
    select_media_type,
)
from wadors_loader.uri import image_id_to_uri


logger = logging.getLogger(__name__)


class LoadStage(enum.Enum):
    """Stage of loading an image."""
    METADATA = 'metadata'
    FETCH = 'fetch'
    DECODE = 'decode'
    COMPLETE = 'complete'


class LoadHandle(object):

    """Handle of an image that is being loaded.

    The handle can be awaited to obtain the loaded image. In case loading
    failed, :attr:`stage` names the stage that raised the exception.

    """

    def __init__(self) -> None:
        self.stage = LoadStage.METADATA
        self._task: Optional['asyncio.Task[Any]'] = None

    @property
    def promise(self) -> 'asyncio.Task[Any]':
        """asyncio.Task: Task that produces the loaded image"""
        if self._task is None:
            raise RuntimeError('Loading has not been started.')
        return self._task

    def cancel(self) -> bool:
        """Cancel loading of the image.

        Awaiting the handle after cancellation raises
        ``asyncio.CancelledError``. Blocking work that has already been handed
        over to a worker thread runs to completion, but its result is
        discarded.

        Returns
        -------
        bool
            Whether cancellation was requested, i.e., ``False`` if the image
            has already been loaded or loading failed

        """
        return self.promise.cancel()

    def done(self) -> bool:
        return self.promise.done()

    def __await__(self) -> Generator[Any, None, Any]:
        return self.promise.__await__()


class ImageLoader(object):

    """Loader of images identified by ``wadors:`` image identifiers.

    Examples
    --------
    >>> store = MetadataStore()
    >>> store.add(image_id, metadata)
    >>> loader = ImageLoader(
    ...     store, WADORSFrameFetcher(), PixelDataDecoder(store)
    ... )
    >>> image = await loader.load(image_id)
    >>> image.load_time_in_ms
    42.0

    """

    def __init__(
        self,
        metadata_store: MetadataProvider,
        fetcher: PixelDataFetcher,
        decoder: ImageDecoder,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        """
        Parameters
        ----------
        metadata_store: wadors_loader.protocol.MetadataProvider
            Store of image metadata; must be populated before images are
            loaded and must not be modified while loads are in flight
        fetcher: wadors_loader.protocol.PixelDataFetcher
            Fetcher of frame pixel data
        decoder: wadors_loader.protocol.ImageDecoder
            Decoder of frame pixel data
        clock: Callable[[], float], optional
            Time source returning seconds, used for measuring load times

        """
        self._metadata_store = metadata_store
        self._fetcher = fetcher
        self._decoder = decoder
        self._clock = clock

    def load(self, image_id: str, options: Optional[Any] = None) -> LoadHandle:
        """Start loading an image.

        Must be called while an event loop is running.

        Parameters
        ----------
        image_id: str
            Image identifier (e.g.,
            ``"wadors:https://host/studies/1/series/2/instances/3/frames/1"``)
        options: Any, optional
            Options that are passed to the decoder as they are

        Returns
        -------
        wadors_loader.loader.LoadHandle
            Handle of the image that is being loaded

        Raises
        ------
        ValueError
            When `image_id` is not a ``wadors:`` image identifier
        RuntimeError
            When no event loop is running

        """
        start = self._clock()
        uri = image_id_to_uri(image_id)
        loop = asyncio.get_running_loop()
        handle = LoadHandle()
        handle._task = loop.create_task(
            self._load(handle, image_id, uri, options, start)
        )
        return handle

    async def _load(
        self,
        handle: LoadHandle,
        image_id: str,
        uri: str,
        options: Optional[Any],
        start: float
    ) -> Any:
        metadata = self._metadata_store.get(image_id)
        if metadata is None:
            raise MetadataNotFoundError(image_id)

        media_type, transfer_syntax_uid = select_media_type(metadata)
        logger.debug(f'request image "{image_id}" as {media_type}')

        handle.stage = LoadStage.FETCH
        result = await self._fetcher.fetch(uri, image_id, media_type)
        if transfer_syntax_uid is None:
            transfer_syntax_uid = get_transfer_syntax_for_content_type(
                result.content_type
            )
            logger.debug(
                f'use transfer syntax "{transfer_syntax_uid}" announced for '
                f'image "{image_id}"'
            )

        handle.stage = LoadStage.DECODE
        image = await self._decoder.decode(
            image_id,
            result.pixel_data,
            transfer_syntax_uid,
            options
        )

        image.load_time_in_ms = (self._clock() - start) * 1000
        handle.stage = LoadStage.COMPLETE
        logger.debug(
            f'loaded image "{image_id}" in {image.load_time_in_ms:.1f} ms'
        )
        return image
