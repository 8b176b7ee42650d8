'''Command Line Interface (CLI)'''
import os
import sys
import json
import asyncio
import logging
import argparse
import tempfile
import traceback
import getpass

import numpy as np
from PIL import Image

from wadors_loader.decode import PixelDataDecoder
from wadors_loader.loader import ImageLoader
from wadors_loader.log import configure_logging
from wadors_loader.metadata import MetadataStore
from wadors_loader.session_utils import (
    add_certs_to_session,
    create_session,
    create_session_from_user_pass,
)
from wadors_loader.transfer_syntax import (
    get_transfer_syntax_for_content_type,
    select_media_type,
)
from wadors_loader.web import WADORSFrameFetcher


logger = logging.getLogger(__name__)


def _get_parser():
    '''Builds the object for parsing command line arguments.

    Returns
    -------
    argparse.ArgumentParser

    '''
    parser = argparse.ArgumentParser(
        description='Loader of image frames from DICOMweb services.',
        prog='wadors_loader'
    )
    parser.add_argument(
        '-v', '--verbosity', dest='logging_verbosity', default=0,
        action='count',
        help=(
            'logging verbosity that maps to a logging level '
            '(default: error, -v: warning, -vv: info, -vvv: debug, '
            '-vvvv: debug + traceback); '
            'all log messages are written to standard error'
        )
    )
    parser.add_argument(
        '-u', '--user', dest='username', metavar='NAME',
        help='username for authentication with the DICOMweb service'
    )
    parser.add_argument(
        '-p', '--password', dest='password', metavar='PASSWORD',
        help='password for authentication with the DICOMweb service'
    )
    parser.add_argument(
        '--ca-bundle', dest='ca_bundle', metavar='PATH',
        help='path to CA bundle file for verification of the server'
    )
    parser.add_argument(
        '--cert', dest='cert', metavar='PATH',
        help='path to client certificate file in PEM format'
    )

    abstract_metadata_parser = argparse.ArgumentParser(add_help=False)
    abstract_metadata_parser.add_argument(
        '--metadata', metavar='PATH', dest='metadata_file', required=True,
        help=(
            'path to file with metadata of the image in DICOM JSON format '
            '(e.g., response of a WADO-RS metadata request)'
        )
    )

    subparsers = parser.add_subparsers(dest='method', help='methods')
    subparsers.required = True

    load_parser = subparsers.add_parser(
        'load',
        description='Load an individual frame via WADO-RS.',
        parents=[abstract_metadata_parser]
    )
    load_parser.add_argument(
        metavar='IMAGE_ID', dest='image_id',
        help=(
            'image identifier (e.g., "wadors:https://host/rs/studies/1.2'
            '/series/1.3/instances/1.4/frames/1")'
        )
    )
    load_parser.add_argument(
        '--save', action='store_true',
        help='whether the loaded frame should be saved'
    )
    load_parser.add_argument(
        '--output-dir', metavar='PATH', dest='output_dir',
        default=tempfile.gettempdir(),
        help='path to directory where the loaded frame should be saved'
    )
    load_parser.add_argument(
        '--show', action='store_true',
        help='display the loaded frame'
    )
    load_parser.set_defaults(func=_load_image)

    media_type_parser = subparsers.add_parser(
        'media-type',
        description=(
            'Select the media type that would be requested for an image.'
        ),
        parents=[abstract_metadata_parser]
    )
    media_type_parser.set_defaults(func=_select_media_type)

    transfer_syntax_parser = subparsers.add_parser(
        'transfer-syntax',
        description='Extract the transfer syntax from a content type.',
    )
    transfer_syntax_parser.add_argument(
        metavar='CONTENT_TYPE', dest='content_type',
        help='value of a Content-Type header field'
    )
    transfer_syntax_parser.set_defaults(func=_parse_transfer_syntax)

    return parser


def _read_metadata(filename):
    logger.info(f'read metadata from file "{filename}"')
    with open(filename) as f:
        metadata = json.load(f)
    # Metadata resources are JSON arrays of data sets.
    if isinstance(metadata, list):
        if len(metadata) == 0:
            raise ValueError(f'Metadata file "{filename}" is empty.')
        if len(metadata) > 1:
            logger.warning(
                f'use first of {len(metadata)} data sets in metadata file'
            )
        metadata = metadata[0]
    return metadata


def _create_session(args):
    if args.username:
        session = create_session_from_user_pass(args.username, args.password)
    else:
        session = create_session()
    return add_certs_to_session(session, args.ca_bundle, args.cert)


def _to_pil_image(pixel_array):
    if pixel_array.dtype != np.uint8:
        pixel_array = pixel_array.astype(np.float64)
        low, high = pixel_array.min(), pixel_array.max()
        if high > low:
            pixel_array = (pixel_array - low) / (high - low) * 255.0
        else:
            pixel_array = np.zeros_like(pixel_array)
        pixel_array = pixel_array.astype(np.uint8)
    return Image.fromarray(pixel_array)


def _save_image(image, directory, image_id):
    name = image_id.rstrip('/').split('/studies/')[-1].replace('/', '_')
    filepath = os.path.join(directory, f'{name}.png')
    logger.info(f'save pixel data to file "{filepath}"')
    image.save(filepath)


def _show_image(image):
    logger.info('show pixel data')
    image.show()


async def _run_load(loader, image_id):
    return await loader.load(image_id)


def _load_image(args):
    '''Loads an individual frame and prints the load time and the shape of
    the decoded pixel array.
    '''
    store = MetadataStore()
    store.add(args.image_id, _read_metadata(args.metadata_file))
    fetcher = WADORSFrameFetcher(session=_create_session(args))
    loader = ImageLoader(store, fetcher, PixelDataDecoder(store))
    image = asyncio.run(_run_load(loader, args.image_id))
    print(f'load time: {image.load_time_in_ms:.1f} ms')
    print(f'transfer syntax: {image.transfer_syntax_uid}')
    print(f'shape: {image.pixel_array.shape}')
    if args.save or args.show:
        pil_image = _to_pil_image(image.pixel_array)
        if args.save:
            _save_image(pil_image, args.output_dir, args.image_id)
        if args.show:
            _show_image(pil_image)


def _select_media_type(args):
    '''Prints the media type and transfer syntax that would be requested.'''
    metadata = _read_metadata(args.metadata_file)
    media_type, transfer_syntax_uid = select_media_type(metadata)
    print(media_type)
    print(transfer_syntax_uid or '-')


def _parse_transfer_syntax(args):
    '''Prints the transfer syntax announced by a content type.'''
    print(get_transfer_syntax_for_content_type(args.content_type))


def main(args=None):
    '''Main entry point for the ``wadors_loader`` command line program.

    Parameters
    ----------
    args: Union[argparse.Namespace, None], optional
        Parsed command line arguments; parsed from ``sys.argv`` if not given

    '''
    if args is None:
        parser = _get_parser()
        args = parser.parse_args()

    if args.username:
        if not args.password:
            message = 'Enter password for user "{0}": '.format(args.username)
            args.password = getpass.getpass(message)

    configure_logging(args.logging_verbosity)
    try:
        args.func(args)
        sys.exit(0)
    except Exception as err:
        logger.error(str(err))
        if args.logging_verbosity > 3:
            tb = traceback.format_exc()
            logger.error(tb)
        sys.exit(1)


if __name__ == '__main__':

    main()
