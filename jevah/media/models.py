from enum import Enum


class ContentType(str, Enum):
    MUSIC = "music"
    VIDEOS = "videos"
    BOOKS = "books"
    EBOOK = "ebook"
    PODCAST = "podcast"
    SERMON = "sermon"
    DEVOTIONAL = "devotional"
    AUDIO = "audio"
    LIVE = "live"
    RECORDING = "recording"
    MERCH = "merch"


class InteractionType(str, Enum):
    VIEW = "view"
    LISTEN = "listen"
    READ = "read"
    DOWNLOAD = "download"
    LIKE = "like"
    COMMENT = "comment"
    SHARE = "share"


class UserActionType(str, Enum):
    FAVORITE = "favorite"
    SHARE = "share"


class LiveStreamStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    ENDED = "ended"
    ARCHIVED = "archived"


UPLOADABLE_CONTENT_TYPES = {
    ContentType.MUSIC.value,
    ContentType.VIDEOS.value,
    ContentType.BOOKS.value,
    ContentType.EBOOK.value,
    ContentType.PODCAST.value,
    ContentType.SERMON.value,
    ContentType.AUDIO.value,
    ContentType.LIVE.value,
}

VIDEO_MIME_TYPES = {"video/mp4", "video/webm", "video/ogg", "video/avi", "video/x-msvideo", "video/quicktime", "video/mov"}
AUDIO_MIME_TYPES = {"audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav", "audio/ogg", "audio/aac", "audio/flac"}
DOCUMENT_MIME_TYPES = {"application/pdf", "application/epub+zip"}
THUMBNAIL_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
MAX_THUMBNAIL_BYTES = 5 * 1024 * 1024

# Sermons may be audio or video recordings
ALLOWED_MIME_TYPES = {
    "videos": VIDEO_MIME_TYPES,
    "music": AUDIO_MIME_TYPES,
    "audio": AUDIO_MIME_TYPES,
    "podcast": AUDIO_MIME_TYPES,
    "sermon": AUDIO_MIME_TYPES | VIDEO_MIME_TYPES,
    "books": DOCUMENT_MIME_TYPES,
    "ebook": DOCUMENT_MIME_TYPES,
}

# Which consumption interactions make sense for which content
ALLOWED_INTERACTIONS = {
    "videos": {"view"},
    "sermon": {"view", "listen"},
    "live": {"view"},
    "recording": {"view"},
    "music": {"listen"},
    "audio": {"listen"},
    "podcast": {"listen"},
    "books": {"read", "download"},
    "ebook": {"read", "download"},
}

INTERACTION_COUNTERS = {
    "view": "viewCount",
    "listen": "listenCount",
    "read": "readCount",
    "download": "downloadCount",
}

INTERACTION_PAST_TENSE = {
    "view": "viewed",
    "listen": "listened to",
    "read": "read",
    "download": "downloaded",
}

ACTION_COUNTERS = {
    "favorite": "favoriteCount",
    "share": "shareCount",
}

DEFAULT_VIEW_THRESHOLD = 30
MAX_VIEWED_MEDIA = 50
