class C:
    # Media types that carry an encrypted attachment.
    MEDIA_TYPES = ['image', 'sticker', 'ptt', 'audio', 'video', 'document']
    # HKDF info strings, one per media category.
    MEDIA_HKDF_INFO = {
        'image': b'WhatsApp Image Keys',
        'sticker': b'WhatsApp Image Keys',
        'ptt': b'WhatsApp Audio Keys',
        'audio': b'WhatsApp Audio Keys',
        'video': b'WhatsApp Video Keys',
        'document': b'WhatsApp Document Keys',
    }
    # HKDF-SHA256 parameters for media keys
    HKDF_HASH_LEN = 32
    MEDIA_KEY_EXPANDED_SIZE = 112
    # Media payloads end with a truncated HMAC we do not verify
    MEDIA_MAC_SIZE = 10

    # Fallback CDN for WhatsApp media
    MEDIA_HOSTNAME = "mmg.whatsapp.net"
    MEDIA_CACHE_NAME = "lru-media-array-buffer-cache"
    MEDIA_CACHE_URL = "https://_media_cache_v2_.whatsapp.com/"

    # Object stores of the browser database
    MESSAGE_STORE = "message"
    CHAT_STORE = "chat"
    CONTACT_STORE = "contact"
    GROUP_STORE = "group-metadata"

    # Archive layout
    MESSAGE_DOCUMENT = "message.json"
    CHAT_DOCUMENT = "chat.json"
    CONTACT_DOCUMENT = "contact.json"
    GROUP_DOCUMENT = "group-metadata.json"
    DOCUMENTS = [MESSAGE_DOCUMENT, CONTACT_DOCUMENT, GROUP_DOCUMENT, CHAT_DOCUMENT]
    MEDIA_DIRECTORY = "media"

    # Tar subset
    TAR_BLOCK_SIZE = 512
    TAR_NAME_SIZE = 100
    TAR_FILE_MODE = 0o644

    # Varints wider than this do not fit in 32 bits
    MAX_VARINT_BYTES = 4

    # CLI defaults
    DEFAULT_SOURCE = "model-storage"
    DEFAULT_OUTPUT = "whatsapp.tar"
    DEFAULT_CACHE_DIR = "media-cache"
    DEFAULT_ROW_ALGORITHM = "AES-GCM"
