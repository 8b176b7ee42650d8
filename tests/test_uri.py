import pytest

from wadors_loader.uri import WADORS_SCHEME, build_image_id, image_id_to_uri


_BASE_URL = 'https://dicomweb.example.org/rs'


def test_build_image_id():
    image_id = build_image_id(_BASE_URL, '1.2.3', '1.2.4', '1.2.5', 7)
    assert image_id == (
        'wadors:https://dicomweb.example.org/rs'
        '/studies/1.2.3/series/1.2.4/instances/1.2.5/frames/7'
    )


def test_image_id_to_uri(image_id):
    uri = image_id_to_uri(image_id)
    assert len(WADORS_SCHEME) == 7
    assert uri == image_id[7:]
    assert uri.startswith('https://')


def test_build_image_id_round_trip():
    image_id = build_image_id(_BASE_URL, '1.2.3', '1.2.4', '1.2.5', 1)
    assert image_id_to_uri(image_id).startswith(_BASE_URL + '/studies/')


@pytest.mark.parametrize('image_id', [
    '',
    'wado',
    'wadouri:https://host/file.dcm',
    'https://host/studies/1/series/2/instances/3/frames/1',
])
def test_image_id_to_uri_wrong_scheme(image_id):
    with pytest.raises(ValueError):
        image_id_to_uri(image_id)


@pytest.mark.parametrize('url', [
    'ftp://dicomweb.example.org',
    'https://dicomweb.example.org/rs/',
])
def test_build_image_id_invalid_url(url):
    with pytest.raises(ValueError):
        build_image_id(url, '1.2.3', '1.2.4', '1.2.5', 1)


@pytest.mark.parametrize('uid', [
    '1.2.a',
    '1..2',
    '1.' * 40 + '1',
])
def test_build_image_id_invalid_uid(uid):
    with pytest.raises(ValueError):
        build_image_id(_BASE_URL, '1.2.3', uid, '1.2.5', 1)


def test_build_image_id_uid_wrong_type():
    with pytest.raises(TypeError):
        build_image_id(_BASE_URL, 123, '1.2.4', '1.2.5', 1)


def test_build_image_id_invalid_frame_number():
    with pytest.raises(ValueError):
        build_image_id(_BASE_URL, '1.2.3', '1.2.4', '1.2.5', 0)
