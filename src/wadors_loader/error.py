'''Custom error classes'''


class MetadataNotFoundError(LookupError):
    '''Exception class for image identifiers without registered metadata.'''

    def __init__(self, image_id: str) -> None:
        super().__init__(f'no metadata for image identifier "{image_id}"')
        self.image_id = image_id
