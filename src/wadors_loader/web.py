"""Retrieval of frame pixel data from a DICOMweb service using HTTP.

Frames are requested via WADO-RS and returned by the server in form of
``multipart/related`` messages.

"""
import asyncio
import logging
from typing import (
    Callable,
    Dict,
    Iterator,
    Optional,
    Tuple,
    Union,
)

import requests

from wadors_loader.protocol import PixelDataResult
from wadors_loader.transfer_syntax import OCTET_STREAM_MEDIA_TYPE


logger = logging.getLogger(__name__)


class WADORSFrameFetcher(object):

    """Fetcher of frames from a DICOMweb service.

    Attributes
    ----------
    chunk_size: int
        Maximum number of bytes that should be transferred per data chunk
        when streaming data from the server using chunked transfer encoding

    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
        proxies: Optional[Dict[str, str]] = None,
        callback: Optional[Callable] = None,
        chunk_size: int = 10**6
    ) -> None:
        """Instatiate fetcher.

        Parameters
        ----------
        session: Union[requests.Session, None], optional
            Session required to make connections to the DICOMweb service
            (see ``wadors_loader.session_utils`` module to create a valid
            session if necessary)
        headers: Union[Dict[str, str], None], optional
            Custom headers that should be included in request messages,
            e.g., authentication tokens
        proxies: Union[Dict[str, str], None], optional
            Mapping of protocol or protocol + host to the URL of a proxy server
        callback: Union[Callable[[requests.Response, ...], requests.Response], None], optional
            Callback function to manipulate responses generated from requests
            (see `requests event hooks <http://docs.python-requests.org/en/master/user/advanced/#event-hooks>`_)
        chunk_size: int, optional
            Maximum number of bytes that should be transferred per data chunk
            when streaming data from the server using chunked transfer encoding;
            defaults to ``10**6`` bytes (1MB)

        Warning
        -------
        Modifies the passed `session` (in particular header fields),
        so be careful when reusing the session outside the scope of an instance.

        """  # noqa: E501
        if session is None:
            logger.debug('initialize HTTP session')
            session = requests.session()
        self._session = session
        if headers is not None:
            self._session.headers.update(headers)
        if proxies is not None:
            self._session.proxies = proxies
        if callback is not None:
            self._session.hooks = {'response': [callback, ]}
        self.chunk_size = chunk_size

    @staticmethod
    def _build_accept_header_field_value(media_type: str) -> str:
        if media_type == OCTET_STREAM_MEDIA_TYPE:
            # Let the server pick the transfer syntax and announce it in the
            # content type of the response.
            return f'{media_type}; transfer-syntax=*'
        return media_type

    def _http_get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        stream: bool = False
    ) -> requests.models.Response:
        """Perform an HTTP GET request.

        Parameters
        ----------
        url: str
            Unique resource locator
        headers: Union[Dict[str, str], None], optional
            Request message headers
        stream: bool, optional
            Whether data should be streamed (i.e., requested using chunked
            transfer encoding)

        Returns
        -------
        requests.models.Response
            Response message

        """
        logger.debug(f'GET: {url} {headers}')
        response = self._session.get(url=url, headers=headers, stream=stream)
        logger.debug(f'request status code: {response.status_code}')
        response.raise_for_status()
        if response.status_code == 204:
            logger.warning('empty response')
        if 'Warning' in response.headers:
            logger.warning(response.headers['Warning'])
        return response

    @classmethod
    def _extract_part(
        cls,
        part: bytes
    ) -> Union[Tuple[Dict[str, str], bytes], None]:
        """Extract header fields and content of a single part of a multipart
        message.

        Parameters
        ----------
        part: bytes
            Individual part of a multipart message

        Returns
        -------
        Union[Tuple[Dict[str, str], bytes], None]
            Header fields (with lower-case names) and content of the message
            part or ``None`` in case the message part is empty

        Raises
        ------
        ValueError
            When the message part is not CRLF CRLF terminated

        """
        if part in (b'', b'--', b'\r\n') or part.startswith(b'--\r\n'):
            return None
        idx = part.find(b'\r\n\r\n')
        if idx < 0:
            raise ValueError('Message part does not contain CRLF CRLF')
        headers = {}
        for line in part[:idx].decode('latin-1').split('\r\n'):
            name, sep, value = line.partition(':')
            if sep:
                headers[name.strip().lower()] = value.strip()
        return (headers, part[idx + 4:])

    def _decode_multipart_message(
        self,
        response: requests.Response,
        stream: bool
    ) -> Iterator[Tuple[Optional[str], bytes]]:
        """Decode extracted parts of a multipart response message.

        Parameters
        ----------
        response: requests.Response
            Response message
        stream: bool
            Whether data should be streamed (i.e., requested using chunked
            transfer encoding)

        Returns
        -------
        Iterator[Tuple[Union[str, None], bytes]]
            Content type and content of message parts; the content type of the
            message itself is used for parts without Content-Type header field

        """
        logger.debug('decode multipart message')
        content_type = response.headers.get('content-type')
        if content_type is None:
            yield (None, response.content)
            return
        media_type, *ct_info = [ct.strip() for ct in content_type.split(';')]
        if media_type.lower() != 'multipart/related':
            # Some servers ignore the requested media type and respond with a
            # single-part message.
            yield (content_type, response.content)
            return
        for item in ct_info:
            attr, _, value = item.partition('=')
            if attr.lower() == 'boundary':
                boundary = value.strip('"').encode('utf-8')
                break
        else:
            # Some servers set the media type to multipart but don't provide a
            # boundary and just send a single frame in the body - return as is.
            yield (content_type, response.content)
            return

        marker = b''.join((b'--', boundary))
        delimiter = b''.join((b'\r\n', marker))
        data = b''
        j = 0
        with response:
            logger.debug('decode message content')
            if stream:
                iterator = response.iter_content(chunk_size=self.chunk_size)
            else:
                iterator = iter([response.content])
            for chunk in iterator:
                data += chunk
                while delimiter in data:
                    logger.debug(f'decode message part #{j}')
                    part, data = data.split(delimiter, maxsplit=1)
                    extracted = self._extract_part(part)
                    j += 1
                    if extracted is not None:
                        part_headers, content = extracted
                        logger.debug(
                            f'extracted {len(content)} bytes from part #{j}'
                        )
                        yield (
                            part_headers.get('content-type', content_type),
                            content
                        )

        extracted = self._extract_part(data)
        if extracted is not None:
            part_headers, content = extracted
            yield (part_headers.get('content-type', content_type), content)

    def retrieve_frame(
        self,
        uri: str,
        media_type: str,
        stream: bool = False
    ) -> PixelDataResult:
        """Retrieve the pixel data of an individual frame.

        Parameters
        ----------
        uri: str
            Location of the frame
        media_type: str
            Media type that should be requested
        stream: bool, optional
            Whether data should be streamed (i.e., requested using chunked
            transfer encoding)

        Returns
        -------
        wadors_loader.protocol.PixelDataResult
            Pixel data of the frame and the content type announced for it

        Raises
        ------
        requests.exceptions.HTTPError
            When the server responded with an error status code
        ValueError
            When the response message does not contain any pixel data

        """
        headers = {
            'Accept': self._build_accept_header_field_value(media_type),
        }
        response = self._http_get(uri, headers=headers, stream=stream)
        parts = self._decode_multipart_message(response, stream=stream)
        try:
            content_type, pixel_data = next(parts)
        except StopIteration:
            raise ValueError(f'Response for frame "{uri}" has no content.')
        if not pixel_data:
            raise ValueError(f'Response for frame "{uri}" has no content.')
        remaining = sum(1 for _ in parts)
        if remaining > 0:
            logger.warning(
                f'ignore {remaining} additional parts of response for '
                f'frame "{uri}"'
            )
        return PixelDataResult(content_type, pixel_data)

    async def fetch(
        self,
        uri: str,
        image_id: str,
        media_type: str
    ) -> PixelDataResult:
        """Fetch the pixel data of a frame without blocking the event loop.

        Parameters
        ----------
        uri: str
            Location of the frame
        image_id: str
            Image identifier
        media_type: str
            Media type that should be requested

        Returns
        -------
        wadors_loader.protocol.PixelDataResult
            Pixel data of the frame and the content type announced for it

        """
        logger.debug(f'fetch pixel data of image "{image_id}"')
        return await asyncio.to_thread(self.retrieve_frame, uri, media_type)
