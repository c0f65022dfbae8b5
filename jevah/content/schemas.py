from enum import Enum


class InteractiveContentType(str, Enum):
    MEDIA = "media"
    EBOOK = "ebook"
    PODCAST = "podcast"
    DEVOTIONAL = "devotional"
    ARTIST = "artist"
    MERCH = "merch"


MEDIA_BACKED_TYPES = {
    InteractiveContentType.MEDIA.value,
    InteractiveContentType.EBOOK.value,
    InteractiveContentType.PODCAST.value,
}
